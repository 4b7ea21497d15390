"""Agency self-service: browse OPEN jobs in covered cities, accept, deliver."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import joinedload, selectinload

from src.database.transaction import atomic
from src.exceptions import ForbiddenException, NotFoundException
from src.models.delivery_agency import DeliveryAgency
from src.models.delivery_job import DeliveryJob
from src.models.enums import (
    ActorType,
    DeliveryJobStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from src.models.order import Order
from src.models.order_item import OrderItem
from src.models.payment import Payment
from src.models.product import Product
from src.modules.delivery_job.constants import (
    MSG_AGENCY_INACTIVE,
    MSG_AGENCY_PROFILE_NOT_FOUND,
    normalize_city,
)
from src.modules.delivery_job.service import DeliveryJobService
from src.modules.payment.constants import AUDIT_ENTITY_PAYMENT
from src.modules.workflow.constants import (
    EVENT_PAYMENT_COD_COLLECTED,
    JOB_EVENT_ACCEPTED,
    JOB_EVENT_DELIVERED,
    JOB_EVENT_STATUS_CHANGED,
)
from src.modules.workflow.transitions import (
    validate_agency_owns_job,
    validate_job_acceptance,
    validate_job_transition,
    validate_order_transition,
)

logger = logging.getLogger(__name__)


def _job_with_order_lines():
    return (
        joinedload(DeliveryJob.order)
        .selectinload(Order.items)
        .joinedload(OrderItem.product)
        .joinedload(Product.vendor_profile)
    )


class AgencyDeliveryService(DeliveryJobService):
    """Operations performed by a DELIVERY_AGENCY user on their own jobs."""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_agency_for_user(
        self, user_id: uuid.UUID, require_active: bool = True
    ) -> DeliveryAgency:
        result = await self.db.execute(
            select(DeliveryAgency).where(DeliveryAgency.user_id == user_id)
        )
        agency = result.scalar_one_or_none()
        if agency is None:
            raise NotFoundException(MSG_AGENCY_PROFILE_NOT_FOUND)
        if require_active and not agency.is_active:
            raise ForbiddenException(MSG_AGENCY_INACTIVE)
        return agency

    async def _collect_cod_payment(
        self, order_id: uuid.UUID, paid_at: datetime, agency: DeliveryAgency
    ) -> Payment | None:
        """Cash on delivery is settled once the agency hands the order over."""
        result = await self.db.execute(
            select(Payment)
            .where(
                Payment.order_id == order_id,
                Payment.payment_method == PaymentMethod.COD,
                Payment.status == PaymentStatus.INITIATED,
            )
            .with_for_update()
        )
        payment = result.scalar_one_or_none()
        if payment is None:
            return None

        previous_status = payment.status
        payment.status = PaymentStatus.SUCCESS
        payment.paid_at = paid_at
        await self.db.flush()

        await self.audit.log_event(
            entity_type=AUDIT_ENTITY_PAYMENT,
            entity_id=payment.id,
            event=EVENT_PAYMENT_COD_COLLECTED,
            previous_status=previous_status,
            new_status=payment.status,
            actor_id=agency.id,
            actor_type=ActorType.AGENCY,
            metadata={"order_id": order_id},
        )
        return payment

    async def _apply_delivery(
        self, job: DeliveryJob, agency: DeliveryAgency, event: str, notes: str
    ) -> DeliveryJob:
        """Write a completed delivery. Runs inside ``atomic`` with the job locked."""
        order = await self._get_order_for_update(job.order_id)
        validate_order_transition(order.status, OrderStatus.DELIVERED, ActorType.AGENCY)

        now = datetime.now(UTC)
        previous_status = job.status

        job.status = DeliveryJobStatus.DELIVERED
        job.delivered_at = now

        order.status = OrderStatus.DELIVERED
        order.delivered_at = now
        await self.db.flush()

        if self.legacy_sync is not None:
            await self.legacy_sync.job_delivered(self.db, job.order_id, now)

        await self._collect_cod_payment(job.order_id, now, agency)

        await self.audit.log_job_event(
            job_id=job.id,
            event=event,
            previous_status=previous_status,
            new_status=job.status,
            actor_id=agency.id,
            actor_type=ActorType.AGENCY,
            actor_name=agency.name,
            notes=notes,
        )
        return job

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_profile(self, user_id: uuid.UUID) -> DeliveryAgency:
        return await self._get_agency_for_user(user_id, require_active=False)

    async def list_available_jobs(self, user_id: uuid.UUID) -> list[DeliveryJob]:
        """OPEN, unassigned jobs whose pickup city the caller's agency covers."""
        agency = await self._get_agency_for_user(user_id)
        covered = {normalize_city(c) for c in agency.cities_covered or []}
        covered.discard("")
        if not covered:
            return []

        result = await self.db.execute(
            select(DeliveryJob)
            .where(
                DeliveryJob.status == DeliveryJobStatus.OPEN,
                DeliveryJob.agency_id.is_(None),
            )
            .options(_job_with_order_lines())
            .order_by(DeliveryJob.created_at.desc())
        )
        jobs = result.unique().scalars().all()

        available = [job for job in jobs if normalize_city(job.pickup_city) in covered]
        logger.debug(
            "Agency %s: %d of %d open jobs in covered cities",
            agency.id,
            len(available),
            len(jobs),
        )
        return available

    async def list_my_jobs(self, user_id: uuid.UUID) -> list[DeliveryJob]:
        """Every job ever assigned to the caller's agency, active or finished."""
        agency = await self._get_agency_for_user(user_id, require_active=False)
        result = await self.db.execute(
            select(DeliveryJob)
            .where(DeliveryJob.agency_id == agency.id)
            .options(_job_with_order_lines())
            .order_by(DeliveryJob.created_at.desc())
        )
        return list(result.unique().scalars().all())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def accept_job(self, user_id: uuid.UUID, job_id: uuid.UUID) -> DeliveryJob:
        """Claim an OPEN job. A second agency racing for the same job gets a 409."""
        agency = await self._get_agency_for_user(user_id)

        async with atomic(self.db):
            job = await self._get_job_for_update(job_id)
            validate_job_acceptance(job.status, job.agency_id)

            covered = {normalize_city(c) for c in agency.cities_covered or []}
            if normalize_city(job.pickup_city) not in covered:
                raise ForbiddenException(f"Your agency does not cover {job.pickup_city}")

            await self._apply_assignment(
                job,
                agency,
                event=JOB_EVENT_ACCEPTED,
                actor_id=agency.id,
                actor_type=ActorType.AGENCY,
                actor_name=agency.name,
                notes=f"Job accepted by agency: {agency.name}",
            )

        logger.info(
            "Agency %s accepted job %s for order %s", agency.id, job_id, job.order_id
        )
        return job

    async def mark_delivered(self, user_id: uuid.UUID, job_id: uuid.UUID) -> DeliveryJob:
        agency = await self._get_agency_for_user(user_id)

        async with atomic(self.db):
            job = await self._get_job_for_update(job_id)
            validate_agency_owns_job(job.agency_id, agency.id)
            validate_job_transition(job.status, DeliveryJobStatus.DELIVERED, ActorType.AGENCY)

            await self._apply_delivery(
                job,
                agency,
                event=JOB_EVENT_DELIVERED,
                notes=f"Order delivered by agency: {agency.name}",
            )

        logger.info("Agency %s marked job %s as delivered", agency.name, job_id)
        return job

    async def update_status(
        self, user_id: uuid.UUID, job_id: uuid.UUID, new_status: DeliveryJobStatus
    ) -> DeliveryJob:
        """Generic status update; the agency graph only permits ACCEPTED -> DELIVERED."""
        agency = await self._get_agency_for_user(user_id)

        async with atomic(self.db):
            job = await self._get_job_for_update(job_id)
            validate_agency_owns_job(job.agency_id, agency.id)
            validate_job_transition(job.status, new_status, ActorType.AGENCY)

            # An owned job is ACCEPTED or terminal, so DELIVERED is the only target left
            await self._apply_delivery(
                job,
                agency,
                event=JOB_EVENT_STATUS_CHANGED,
                notes=f"Status changed from {job.status.value} to {new_status.value}",
            )

        logger.info("Agency %s moved job %s to %s", agency.id, job_id, new_status.value)
        return job
