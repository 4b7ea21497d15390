"""Admin payment review router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.models.enums import PaymentStatus
from src.models.order import Order
from src.models.payment import Payment
from src.modules.identity.auth import AuthenticatedUser
from src.modules.identity.dependencies import require_admin
from src.modules.payment.schemas import (
    PaymentListItem,
    PaymentOrderSummary,
    PaymentResponse,
    PaymentTransitionResponse,
)
from src.modules.payment.service import PaymentService

router = APIRouter(prefix="/admin/payments", tags=["admin-payments"])


def _order_summary(order: Order) -> PaymentOrderSummary:
    customer = order.customer
    return PaymentOrderSummary(
        id=order.id,
        status=order.status,
        customer_phone=customer.phone if customer is not None else None,
    )


def _list_item(payment: Payment) -> PaymentListItem:
    order = payment.order
    return PaymentListItem(
        **PaymentResponse.model_validate(payment).model_dump(),
        order=_order_summary(order) if order is not None else None,
    )


def _transition_response(payment: Payment, order: Order) -> PaymentTransitionResponse:
    return PaymentTransitionResponse(
        payment=PaymentResponse.model_validate(payment),
        order=PaymentOrderSummary(id=order.id, status=order.status),
    )


@router.get("", response_model=list[PaymentListItem])
async def list_payments(
    status: PaymentStatus | None = Query(None),
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """List payments newest first, optionally filtered by status."""
    svc = PaymentService(db)
    payments = await svc.list_payments(status=status)
    return [_list_item(p) for p in payments]


@router.patch("/{payment_id}/confirm", response_model=PaymentTransitionResponse)
async def confirm_payment(
    payment_id: uuid.UUID,
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Confirm an INITIATED online payment; its order moves to CONFIRMED."""
    svc = PaymentService(db)
    payment, order = await svc.confirm_payment(payment_id, actor_id=user.id)
    return _transition_response(payment, order)


@router.patch("/{payment_id}/fail", response_model=PaymentTransitionResponse)
async def fail_payment(
    payment_id: uuid.UUID,
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Fail an INITIATED online payment; its order moves to CANCELLED."""
    svc = PaymentService(db)
    payment, order = await svc.fail_payment(payment_id, actor_id=user.id)
    return _transition_response(payment, order)
