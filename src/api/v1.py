"""Centralized v1 API router — all module routers are included here."""

from fastapi import APIRouter

from src.modules.delivery_job.agency_router import router as agency_delivery_router
from src.modules.delivery_job.router import router as delivery_job_router
from src.modules.dispute.router import router as dispute_router
from src.modules.kyc.router import router as kyc_router
from src.modules.payment.router import router as payment_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(payment_router)
v1_router.include_router(delivery_job_router)
v1_router.include_router(dispute_router)
v1_router.include_router(kyc_router)
v1_router.include_router(agency_delivery_router)
