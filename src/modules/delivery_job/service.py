"""Delivery job workflow service — admin assignment, cancellation and dashboard."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from src.database.transaction import atomic
from src.exceptions import BadRequestException, NotFoundException
from src.models.delivery_agency import DeliveryAgency
from src.models.delivery_job import DeliveryJob
from src.models.enums import ActorType, DeliveryJobStatus, OrderStatus
from src.models.order import Order
from src.models.order_item import OrderItem
from src.models.product import Product
from src.modules.delivery_job.constants import DEFAULT_PAGE_SIZE, MSG_ASSIGN_INACTIVE_AGENCY
from src.modules.workflow.audit import WorkflowAuditLogger
from src.modules.workflow.constants import (
    JOB_EVENT_ADMIN_ASSIGNED,
    JOB_EVENT_CANCELLED,
    STALE_JOB_THRESHOLD,
)
from src.modules.workflow.legacy_sync import LegacyDeliverySync, SqlLegacyDeliverySync
from src.modules.workflow.transitions import (
    validate_job_transition,
    validate_order_transition,
)

logger = logging.getLogger(__name__)

_default_legacy_sync = SqlLegacyDeliverySync()


class DeliveryJobService:
    def __init__(
        self,
        db: AsyncSession,
        legacy_sync: LegacyDeliverySync | None = _default_legacy_sync,
    ):
        self.db = db
        self.legacy_sync = legacy_sync
        self.audit = WorkflowAuditLogger(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_job_for_update(self, job_id: uuid.UUID) -> DeliveryJob:
        result = await self.db.execute(
            select(DeliveryJob).where(DeliveryJob.id == job_id).with_for_update()
        )
        job = result.scalar_one_or_none()
        if job is None:
            raise NotFoundException(f"Delivery job {job_id} not found")
        return job

    async def _get_order_for_update(self, order_id: uuid.UUID) -> Order:
        result = await self.db.execute(
            select(Order).where(Order.id == order_id).with_for_update()
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundException(f"Order {order_id} not found")
        return order

    async def _get_agency(self, agency_id: uuid.UUID) -> DeliveryAgency:
        result = await self.db.execute(
            select(DeliveryAgency).where(DeliveryAgency.id == agency_id)
        )
        agency = result.scalar_one_or_none()
        if agency is None:
            raise NotFoundException(f"Delivery agency {agency_id} not found")
        return agency

    async def _apply_assignment(
        self,
        job: DeliveryJob,
        agency: DeliveryAgency,
        *,
        event: str,
        actor_id: uuid.UUID | None,
        actor_type: ActorType,
        actor_name: str | None,
        notes: str,
        metadata: dict | None = None,
    ) -> DeliveryJob:
        """Write an accepted assignment: job, order, legacy row and log.

        Must run inside an ``atomic`` block with the job already locked.
        """
        order = await self._get_order_for_update(job.order_id)
        validate_order_transition(order.status, OrderStatus.IN_TRANSIT, actor_type)

        now = datetime.now(UTC)
        previous_status = job.status

        job.agency_id = agency.id
        job.status = DeliveryJobStatus.ACCEPTED
        job.accepted_at = now

        order.status = OrderStatus.IN_TRANSIT
        order.in_transit_at = now
        await self.db.flush()

        if self.legacy_sync is not None:
            await self.legacy_sync.job_assigned(self.db, job.order_id, agency.id)

        await self.audit.log_job_event(
            job_id=job.id,
            event=event,
            previous_status=previous_status,
            new_status=job.status,
            actor_id=actor_id,
            actor_type=actor_type,
            actor_name=actor_name,
            notes=notes,
            metadata=metadata,
        )
        return job

    # ------------------------------------------------------------------
    # List / Get
    # ------------------------------------------------------------------

    async def list_jobs(
        self,
        status: DeliveryJobStatus | None = None,
        city: str | None = None,
        agency_id: uuid.UUID | None = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[DeliveryJob], int]:
        """List jobs newest first. ``city`` matches either pickup or dropoff."""
        query = select(DeliveryJob).options(
            joinedload(DeliveryJob.order).joinedload(Order.customer),
            joinedload(DeliveryJob.agency),
        )
        count_query = select(func.count()).select_from(DeliveryJob)

        filters = []
        if status is not None:
            filters.append(DeliveryJob.status == status)
        if city:
            filters.append(
                or_(DeliveryJob.pickup_city == city, DeliveryJob.dropoff_city == city)
            )
        if agency_id is not None:
            filters.append(DeliveryJob.agency_id == agency_id)

        if filters:
            query = query.where(*filters)
            count_query = count_query.where(*filters)

        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = (
            query.order_by(DeliveryJob.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(query)
        items = list(result.scalars().all())

        return items, total

    async def get_job(self, job_id: uuid.UUID) -> DeliveryJob:
        """Job detail with order, customer, vendor, agency and full log history."""
        result = await self.db.execute(
            select(DeliveryJob)
            .where(DeliveryJob.id == job_id)
            .options(
                joinedload(DeliveryJob.order).joinedload(Order.customer),
                joinedload(DeliveryJob.order)
                .selectinload(Order.items)
                .joinedload(OrderItem.product)
                .joinedload(Product.vendor_profile),
                joinedload(DeliveryJob.agency),
                selectinload(DeliveryJob.logs),
            )
        )
        job = result.unique().scalar_one_or_none()
        if job is None:
            raise NotFoundException(f"Delivery job {job_id} not found")
        return job

    # ------------------------------------------------------------------
    # Admin transitions
    # ------------------------------------------------------------------

    async def assign_to_agency(
        self,
        job_id: uuid.UUID,
        agency_id: uuid.UUID,
        admin_id: uuid.UUID,
        admin_name: str | None = None,
    ) -> DeliveryJob:
        """Manually hand an OPEN job to an active agency."""
        async with atomic(self.db):
            job = await self._get_job_for_update(job_id)
            validate_job_transition(job.status, DeliveryJobStatus.ACCEPTED, ActorType.ADMIN)

            agency = await self._get_agency(agency_id)
            if not agency.is_active:
                raise BadRequestException(MSG_ASSIGN_INACTIVE_AGENCY)

            await self._apply_assignment(
                job,
                agency,
                event=JOB_EVENT_ADMIN_ASSIGNED,
                actor_id=admin_id,
                actor_type=ActorType.ADMIN,
                actor_name=admin_name,
                notes=f"Manually assigned to agency: {agency.name}",
                metadata={"agency_id": agency.id, "agency_name": agency.name},
            )

        logger.info(
            "Admin %s assigned job %s to agency %s", admin_id, job_id, agency.id
        )
        return job

    async def cancel_job(
        self,
        job_id: uuid.UUID,
        admin_id: uuid.UUID,
        reason: str | None = None,
        admin_name: str | None = None,
    ) -> DeliveryJob:
        """Cancel an OPEN or ACCEPTED job. The order itself is left untouched."""
        async with atomic(self.db):
            job = await self._get_job_for_update(job_id)
            validate_job_transition(job.status, DeliveryJobStatus.CANCELLED, ActorType.ADMIN)

            previous_status = job.status
            job.status = DeliveryJobStatus.CANCELLED
            job.cancelled_at = datetime.now(UTC)
            await self.db.flush()

            if self.legacy_sync is not None:
                await self.legacy_sync.job_cancelled(self.db, job.order_id)

            await self.audit.log_job_event(
                job_id=job.id,
                event=JOB_EVENT_CANCELLED,
                previous_status=previous_status,
                new_status=job.status,
                actor_id=admin_id,
                actor_type=ActorType.ADMIN,
                actor_name=admin_name,
                notes=reason or "Cancelled by admin",
            )

        logger.info("Admin %s cancelled job %s", admin_id, job_id)
        return job

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def get_stats(self, now: datetime | None = None) -> dict[str, int]:
        """Per-status counts, OPEN jobs older than the stale threshold, and the total."""
        now = now or datetime.now(UTC)

        result = await self.db.execute(
            select(DeliveryJob.status, func.count()).group_by(DeliveryJob.status)
        )
        counts = {status: count for status, count in result.all()}

        stale_result = await self.db.execute(
            select(func.count())
            .select_from(DeliveryJob)
            .where(
                DeliveryJob.status == DeliveryJobStatus.OPEN,
                DeliveryJob.created_at < now - STALE_JOB_THRESHOLD,
            )
        )

        stats = {
            "open": counts.get(DeliveryJobStatus.OPEN, 0),
            "accepted": counts.get(DeliveryJobStatus.ACCEPTED, 0),
            "delivered": counts.get(DeliveryJobStatus.DELIVERED, 0),
            "cancelled": counts.get(DeliveryJobStatus.CANCELLED, 0),
        }
        stats["stale_jobs"] = stale_result.scalar() or 0
        stats["total"] = (
            stats["open"] + stats["accepted"] + stats["delivered"] + stats["cancelled"]
        )
        return stats

    async def list_agencies_for_city(self, city: str) -> list[DeliveryAgency]:
        """Active agencies covering ``city``, for the assignment dropdown."""
        result = await self.db.execute(
            select(DeliveryAgency)
            .where(
                DeliveryAgency.is_active.is_(True),
                DeliveryAgency.cities_covered.any(city),
            )
            .order_by(DeliveryAgency.name)
        )
        return list(result.scalars().all())
