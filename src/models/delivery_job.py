"""DeliveryJob model — one order's handoff to a delivery agency."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.enums import DeliveryJobStatus

if TYPE_CHECKING:
    from src.models.delivery_agency import DeliveryAgency
    from src.models.delivery_job_log import DeliveryJobLog
    from src.models.order import Order


class DeliveryJob(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "delivery_jobs"

    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    # Set iff status is ACCEPTED or DELIVERED (kept as-is on cancellation)
    agency_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("delivery_agencies.id", ondelete="SET NULL")
    )
    status: Mapped[DeliveryJobStatus] = mapped_column(
        nullable=False, server_default="OPEN"
    )

    pickup_address: Mapped[str] = mapped_column(Text, nullable=False)
    pickup_city: Mapped[str] = mapped_column(String(100), nullable=False)
    dropoff_address: Mapped[str] = mapped_column(Text, nullable=False)
    dropoff_city: Mapped[str] = mapped_column(String(100), nullable=False)
    fee: Mapped[Decimal | None] = mapped_column(Numeric(15, 2))

    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    order: Mapped[Order] = relationship("Order", lazy="noload")
    agency: Mapped[DeliveryAgency | None] = relationship("DeliveryAgency", lazy="noload")
    logs: Mapped[list[DeliveryJobLog]] = relationship(
        "DeliveryJobLog",
        back_populates="delivery_job",
        lazy="noload",
        order_by="DeliveryJobLog.created_at.desc()",
    )

    __table_args__ = (
        Index("ix_delivery_jobs_status", "status"),
        Index("ix_delivery_jobs_agency_id", "agency_id", postgresql_where="agency_id IS NOT NULL"),
        Index("ix_delivery_jobs_pickup_city", "pickup_city"),
        Index("ix_delivery_jobs_dropoff_city", "dropoff_city"),
    )
