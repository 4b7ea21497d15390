"""Admin delivery job router — listing, dashboard, manual assignment, cancellation."""

from __future__ import annotations

import math
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.models.enums import DeliveryJobStatus
from src.modules.delivery_job.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from src.modules.delivery_job.schemas import (
    AgencyResponse,
    AssignJobRequest,
    CancelJobRequest,
    DeliveryJobDetailResponse,
    DeliveryJobListItem,
    DeliveryJobListResponse,
    DeliveryJobResponse,
    DeliveryJobStatsResponse,
)
from src.modules.delivery_job.service import DeliveryJobService
from src.modules.identity.auth import AuthenticatedUser
from src.modules.identity.dependencies import require_admin

router = APIRouter(prefix="/admin/delivery-jobs", tags=["admin-delivery-jobs"])


# ---------------------------------------------------------------------------
# List / Dashboard
# ---------------------------------------------------------------------------


@router.get("", response_model=DeliveryJobListResponse)
async def list_jobs(
    status: DeliveryJobStatus | None = Query(None),
    city: str | None = Query(None, max_length=100),
    agency_id: uuid.UUID | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """List delivery jobs; ``city`` matches either pickup or dropoff."""
    svc = DeliveryJobService(db)
    items, total = await svc.list_jobs(
        status=status,
        city=city,
        agency_id=agency_id,
        page=page,
        page_size=page_size,
    )
    return DeliveryJobListResponse(
        items=[DeliveryJobListItem.model_validate(j) for j in items],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size),
    )


@router.get("/stats", response_model=DeliveryJobStatsResponse)
async def get_stats(
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    svc = DeliveryJobService(db)
    return DeliveryJobStatsResponse(**await svc.get_stats())


@router.get("/agencies", response_model=list[AgencyResponse])
async def list_agencies_for_city(
    city: str = Query(..., min_length=1, max_length=100),
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Active agencies covering a city, for the assignment dropdown."""
    svc = DeliveryJobService(db)
    agencies = await svc.list_agencies_for_city(city)
    return [AgencyResponse.model_validate(a) for a in agencies]


@router.get("/{job_id}", response_model=DeliveryJobDetailResponse)
async def get_job(
    job_id: uuid.UUID,
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    svc = DeliveryJobService(db)
    job = await svc.get_job(job_id)
    return DeliveryJobDetailResponse.model_validate(job)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


@router.patch("/{job_id}/assign", response_model=DeliveryJobResponse)
async def assign_job(
    job_id: uuid.UUID,
    body: AssignJobRequest,
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Manually assign an OPEN job to an active agency."""
    svc = DeliveryJobService(db)
    job = await svc.assign_to_agency(
        job_id=job_id,
        agency_id=body.agency_id,
        admin_id=user.id,
        admin_name=user.name,
    )
    return DeliveryJobResponse.model_validate(job)


@router.patch("/{job_id}/cancel", response_model=DeliveryJobResponse)
async def cancel_job(
    job_id: uuid.UUID,
    body: CancelJobRequest | None = None,
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    svc = DeliveryJobService(db)
    job = await svc.cancel_job(
        job_id=job_id,
        admin_id=user.id,
        reason=body.reason if body else None,
        admin_name=user.name,
    )
    return DeliveryJobResponse.model_validate(job)
