"""Agency self-service delivery router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.modules.delivery_job.agency_service import AgencyDeliveryService
from src.modules.delivery_job.schemas import (
    AgencyResponse,
    DeliveryJobListItem,
    DeliveryJobResponse,
    UpdateJobStatusRequest,
)
from src.modules.identity.auth import AuthenticatedUser
from src.modules.identity.dependencies import require_agency

router = APIRouter(prefix="/agency/deliveries", tags=["agency-deliveries"])


@router.get("/available", response_model=list[DeliveryJobListItem])
async def list_available_jobs(
    user: AuthenticatedUser = Depends(require_agency),
    db: AsyncSession = Depends(get_db),
):
    """OPEN jobs in the cities this agency covers."""
    svc = AgencyDeliveryService(db)
    jobs = await svc.list_available_jobs(user.id)
    return [DeliveryJobListItem.model_validate(j) for j in jobs]


@router.get("/me", response_model=list[DeliveryJobListItem])
async def list_my_jobs(
    user: AuthenticatedUser = Depends(require_agency),
    db: AsyncSession = Depends(get_db),
):
    svc = AgencyDeliveryService(db)
    jobs = await svc.list_my_jobs(user.id)
    return [DeliveryJobListItem.model_validate(j) for j in jobs]


@router.get("/profile", response_model=AgencyResponse)
async def get_profile(
    user: AuthenticatedUser = Depends(require_agency),
    db: AsyncSession = Depends(get_db),
):
    svc = AgencyDeliveryService(db)
    agency = await svc.get_profile(user.id)
    return AgencyResponse.model_validate(agency)


@router.post("/{job_id}/accept", response_model=DeliveryJobResponse)
async def accept_job(
    job_id: uuid.UUID,
    user: AuthenticatedUser = Depends(require_agency),
    db: AsyncSession = Depends(get_db),
):
    """Claim an OPEN job. Returns 409 if another agency got there first."""
    svc = AgencyDeliveryService(db)
    job = await svc.accept_job(user.id, job_id)
    return DeliveryJobResponse.model_validate(job)


@router.post("/{job_id}/delivered", response_model=DeliveryJobResponse)
async def mark_delivered(
    job_id: uuid.UUID,
    user: AuthenticatedUser = Depends(require_agency),
    db: AsyncSession = Depends(get_db),
):
    svc = AgencyDeliveryService(db)
    job = await svc.mark_delivered(user.id, job_id)
    return DeliveryJobResponse.model_validate(job)


@router.patch("/{job_id}/status", response_model=DeliveryJobResponse)
async def update_status(
    job_id: uuid.UUID,
    body: UpdateJobStatusRequest,
    user: AuthenticatedUser = Depends(require_agency),
    db: AsyncSession = Depends(get_db),
):
    svc = AgencyDeliveryService(db)
    job = await svc.update_status(user.id, job_id, body.status)
    return DeliveryJobResponse.model_validate(job)
