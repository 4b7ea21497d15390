"""Dispute workflow service — admin listing, resolution and rejection.

A dispute's status is never stored; it is derived from ``resolution`` on
every read via ``derive_dispute_status``.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from src.database.transaction import atomic
from src.exceptions import BadRequestException, NotFoundException
from src.models.dispute import Dispute
from src.models.enums import DisputeStatus
from src.models.order import Order
from src.models.order_item import OrderItem
from src.models.product import Product
from src.modules.dispute.constants import AUDIT_ENTITY_DISPUTE, MSG_DISPUTE_ALREADY_CLOSED
from src.modules.workflow.audit import WorkflowAuditLogger
from src.modules.workflow.constants import EVENT_DISPUTE_REJECTED, EVENT_DISPUTE_RESOLVED
from src.modules.workflow.status_mapper import (
    DEFAULT_RESOLUTION_NOTES,
    REJECTED_RESOLUTION,
    derive_dispute_status,
)

logger = logging.getLogger(__name__)


class DisputeService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = WorkflowAuditLogger(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_dispute_for_update(self, dispute_id: uuid.UUID) -> Dispute:
        result = await self.db.execute(
            select(Dispute).where(Dispute.id == dispute_id).with_for_update()
        )
        dispute = result.scalar_one_or_none()
        if dispute is None:
            raise NotFoundException(f"Dispute {dispute_id} not found")
        return dispute

    async def _close(
        self, dispute_id: uuid.UUID, resolution: str, event: str, actor_id: uuid.UUID | None
    ) -> tuple[Dispute, DisputeStatus]:
        async with atomic(self.db):
            dispute = await self._get_dispute_for_update(dispute_id)
            previous_status = derive_dispute_status(dispute.resolution)
            if previous_status != DisputeStatus.OPEN:
                raise BadRequestException(MSG_DISPUTE_ALREADY_CLOSED)

            dispute.resolution = resolution
            dispute.resolved_at = datetime.now(UTC)
            await self.db.flush()

            new_status = derive_dispute_status(dispute.resolution)
            await self.audit.log_event(
                entity_type=AUDIT_ENTITY_DISPUTE,
                entity_id=dispute.id,
                event=event,
                previous_status=previous_status,
                new_status=new_status,
                actor_id=actor_id,
                notes=resolution,
                metadata={"order_id": dispute.order_id},
            )

        logger.info("Dispute %s closed as %s", dispute_id, new_status.value)
        return dispute, new_status

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_disputes(
        self, status: DisputeStatus | None = None
    ) -> list[tuple[Dispute, DisputeStatus]]:
        """All disputes newest first, paired with their derived status.

        The status filter runs after derivation since there is no column to
        filter on.
        """
        result = await self.db.execute(
            select(Dispute)
            .options(
                joinedload(Dispute.order).joinedload(Order.customer),
                joinedload(Dispute.order)
                .selectinload(Order.items)
                .joinedload(OrderItem.product)
                .joinedload(Product.vendor_profile),
            )
            .order_by(Dispute.created_at.desc())
        )
        disputes = result.unique().scalars().all()

        rows = [(d, derive_dispute_status(d.resolution)) for d in disputes]
        if status is not None:
            rows = [row for row in rows if row[1] == status]
        return rows

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def resolve(
        self,
        dispute_id: uuid.UUID,
        notes: str | None = None,
        actor_id: uuid.UUID | None = None,
    ) -> tuple[Dispute, DisputeStatus]:
        """Close an OPEN dispute in the customer's favour."""
        # Whitespace-only notes would otherwise read as OPEN again
        resolution = notes.strip() if notes and notes.strip() else DEFAULT_RESOLUTION_NOTES
        if resolution == REJECTED_RESOLUTION:
            raise BadRequestException(
                f"Resolution notes cannot be '{REJECTED_RESOLUTION}'; use reject instead"
            )
        return await self._close(dispute_id, resolution, EVENT_DISPUTE_RESOLVED, actor_id)

    async def reject(
        self, dispute_id: uuid.UUID, actor_id: uuid.UUID | None = None
    ) -> tuple[Dispute, DisputeStatus]:
        return await self._close(
            dispute_id, REJECTED_RESOLUTION, EVENT_DISPUTE_REJECTED, actor_id
        )
