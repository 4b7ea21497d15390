"""Dual-write of DeliveryJob transitions into the legacy ``deliveries`` table.

The legacy table is being retired. Services only talk to the
``LegacyDeliverySync`` protocol, so dropping the table means passing
``legacy_sync=None`` and deleting this module; no transition logic changes.
The sync runs inside the caller's atomic block, after the core writes.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.delivery import Delivery
from src.models.enums import LegacyDeliveryStatus

logger = logging.getLogger(__name__)


class LegacyDeliverySync(Protocol):
    async def job_assigned(
        self, db: AsyncSession, order_id: uuid.UUID, agency_id: uuid.UUID
    ) -> bool: ...

    async def job_delivered(
        self, db: AsyncSession, order_id: uuid.UUID, delivered_at: datetime
    ) -> bool: ...

    async def job_cancelled(self, db: AsyncSession, order_id: uuid.UUID) -> bool: ...


class SqlLegacyDeliverySync:
    """Mirrors job state onto the order's ``Delivery`` row when one exists.

    Each method returns True if a legacy row was updated.
    """

    async def _get_delivery(self, db: AsyncSession, order_id: uuid.UUID) -> Delivery | None:
        result = await db.execute(
            select(Delivery).where(Delivery.order_id == order_id)
        )
        return result.scalar_one_or_none()

    async def job_assigned(
        self, db: AsyncSession, order_id: uuid.UUID, agency_id: uuid.UUID
    ) -> bool:
        delivery = await self._get_delivery(db, order_id)
        if delivery is None:
            return False
        delivery.delivery_agency_id = agency_id
        delivery.status = LegacyDeliveryStatus.ASSIGNED
        await db.flush()
        logger.debug("Legacy delivery %s synced to ASSIGNED", delivery.id)
        return True

    async def job_delivered(
        self, db: AsyncSession, order_id: uuid.UUID, delivered_at: datetime
    ) -> bool:
        delivery = await self._get_delivery(db, order_id)
        if delivery is None:
            return False
        delivery.status = LegacyDeliveryStatus.DELIVERED
        delivery.delivered_at = delivered_at
        await db.flush()
        logger.debug("Legacy delivery %s synced to DELIVERED", delivery.id)
        return True

    async def job_cancelled(self, db: AsyncSession, order_id: uuid.UUID) -> bool:
        delivery = await self._get_delivery(db, order_id)
        if delivery is None:
            return False
        delivery.status = LegacyDeliveryStatus.CANCELLED
        await db.flush()
        logger.debug("Legacy delivery %s synced to CANCELLED", delivery.id)
        return True
