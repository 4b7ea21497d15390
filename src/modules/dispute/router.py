"""Admin dispute router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.models.dispute import Dispute
from src.models.enums import DisputeStatus
from src.modules.dispute.schemas import (
    DisputeListItem,
    DisputeResponse,
    ResolveDisputeRequest,
)
from src.modules.dispute.service import DisputeService
from src.modules.identity.auth import AuthenticatedUser
from src.modules.identity.dependencies import require_admin

router = APIRouter(prefix="/admin/disputes", tags=["admin-disputes"])


def _response(dispute: Dispute, status: DisputeStatus) -> DisputeResponse:
    return DisputeResponse(
        id=dispute.id,
        order_id=dispute.order_id,
        status=status,
        reason=dispute.reason,
        description=dispute.description,
        resolution=dispute.resolution,
        resolved_at=dispute.resolved_at,
        created_at=dispute.created_at,
    )


def _list_item(dispute: Dispute, status: DisputeStatus) -> DisputeListItem:
    order = dispute.order
    customer = order.customer if order is not None else None
    return DisputeListItem(
        **_response(dispute, status).model_dump(),
        customer_phone=customer.phone if customer is not None else None,
        vendor_business_name=order.vendor_name if order is not None else None,
    )


@router.get("", response_model=list[DisputeListItem])
async def list_disputes(
    status: DisputeStatus | None = Query(None),
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """List disputes newest first, optionally filtered by derived status."""
    svc = DisputeService(db)
    rows = await svc.list_disputes(status=status)
    return [_list_item(d, s) for d, s in rows]


@router.patch("/{dispute_id}/resolve", response_model=DisputeResponse)
async def resolve_dispute(
    dispute_id: uuid.UUID,
    body: ResolveDisputeRequest | None = None,
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    svc = DisputeService(db)
    dispute, status = await svc.resolve(
        dispute_id, notes=body.notes if body else None, actor_id=user.id
    )
    return _response(dispute, status)


@router.patch("/{dispute_id}/reject", response_model=DisputeResponse)
async def reject_dispute(
    dispute_id: uuid.UUID,
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    svc = DisputeService(db)
    dispute, status = await svc.reject(dispute_id, actor_id=user.id)
    return _response(dispute, status)
