"""Payment workflow service — manual confirm/fail of online payments.

Refunds are manual-only; nothing here moves money.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from src.database.transaction import atomic
from src.exceptions import BadRequestException, NotFoundException
from src.models.enums import ActorType, OrderStatus, PaymentStatus
from src.models.order import Order
from src.models.payment import Payment
from src.modules.payment.constants import (
    AUDIT_ENTITY_PAYMENT,
    MANUAL_REVIEW_STATUS,
    OFFLINE_PAYMENT_METHODS,
)
from src.modules.workflow.audit import WorkflowAuditLogger
from src.modules.workflow.constants import EVENT_PAYMENT_CONFIRMED, EVENT_PAYMENT_FAILED
from src.modules.workflow.transitions import validate_order_transition

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = WorkflowAuditLogger(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_payment_for_update(self, payment_id: uuid.UUID) -> Payment:
        result = await self.db.execute(
            select(Payment).where(Payment.id == payment_id).with_for_update()
        )
        payment = result.scalar_one_or_none()
        if payment is None:
            raise NotFoundException(f"Payment {payment_id} not found")
        return payment

    async def _get_order_for_update(self, order_id: uuid.UUID) -> Order:
        result = await self.db.execute(
            select(Order).where(Order.id == order_id).with_for_update()
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundException(f"Order {order_id} not found")
        return order

    @staticmethod
    def _check_manual_review(payment: Payment, verb: str, past: str) -> None:
        """COD is settled at delivery; online payments must still be INITIATED."""
        if payment.payment_method in OFFLINE_PAYMENT_METHODS:
            raise BadRequestException(
                f"{payment.payment_method.value} payments cannot be {past} manually"
            )
        if payment.status != MANUAL_REVIEW_STATUS:
            raise BadRequestException(
                f"Cannot {verb} payment with status {payment.status.value}"
            )

    @staticmethod
    def _move_order(order: Order, target: OrderStatus) -> OrderStatus:
        """Apply ``target`` to the order unless it is already there. Returns the previous status."""
        previous = order.status
        if previous != target:
            validate_order_transition(previous, target, ActorType.ADMIN)
            order.status = target
        return previous

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_payments(self, status: PaymentStatus | None = None) -> list[Payment]:
        """List payments newest first, with their order and customer loaded."""
        query = select(Payment).options(
            joinedload(Payment.order).joinedload(Order.customer)
        )
        if status is not None:
            query = query.where(Payment.status == status)
        query = query.order_by(Payment.created_at.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def confirm_payment(
        self, payment_id: uuid.UUID, actor_id: uuid.UUID | None = None
    ) -> tuple[Payment, Order]:
        """Mark an online payment SUCCESS and confirm its order."""
        async with atomic(self.db):
            payment = await self._get_payment_for_update(payment_id)
            self._check_manual_review(payment, "confirm", "confirmed")
            order = await self._get_order_for_update(payment.order_id)

            logger.info("Payment confirmation - ID: %s, Order: %s", payment_id, order.id)

            now = datetime.now(UTC)
            previous_payment_status = payment.status
            previous_order_status = self._move_order(order, OrderStatus.CONFIRMED)
            if order.confirmed_at is None:
                order.confirmed_at = now
            payment.status = PaymentStatus.SUCCESS
            payment.paid_at = now
            await self.db.flush()

            await self.audit.log_event(
                entity_type=AUDIT_ENTITY_PAYMENT,
                entity_id=payment.id,
                event=EVENT_PAYMENT_CONFIRMED,
                previous_status=previous_payment_status,
                new_status=payment.status,
                actor_id=actor_id,
                metadata={
                    "order_id": order.id,
                    "order_previous_status": previous_order_status.value,
                    "order_new_status": order.status.value,
                },
            )

        return payment, order

    async def fail_payment(
        self, payment_id: uuid.UUID, actor_id: uuid.UUID | None = None
    ) -> tuple[Payment, Order]:
        """Mark an online payment FAILED and cancel its order."""
        async with atomic(self.db):
            payment = await self._get_payment_for_update(payment_id)
            self._check_manual_review(payment, "fail", "failed")
            order = await self._get_order_for_update(payment.order_id)

            logger.info("Payment failure - ID: %s, Order: %s", payment_id, order.id)

            previous_payment_status = payment.status
            previous_order_status = self._move_order(order, OrderStatus.CANCELLED)
            if order.cancelled_at is None:
                order.cancelled_at = datetime.now(UTC)
            payment.status = PaymentStatus.FAILED
            await self.db.flush()

            await self.audit.log_event(
                entity_type=AUDIT_ENTITY_PAYMENT,
                entity_id=payment.id,
                event=EVENT_PAYMENT_FAILED,
                previous_status=previous_payment_status,
                new_status=payment.status,
                actor_id=actor_id,
                metadata={
                    "order_id": order.id,
                    "order_previous_status": previous_order_status.value,
                    "order_new_status": order.status.value,
                },
            )

        return payment, order
