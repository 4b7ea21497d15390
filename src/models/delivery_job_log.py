"""DeliveryJobLog model — append-only audit trail of delivery job transitions."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy import event as orm_event
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, UUIDPrimaryKeyMixin
from src.models.enums import ActorType, DeliveryJobStatus

if TYPE_CHECKING:
    from src.models.delivery_job import DeliveryJob


class DeliveryJobLog(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "delivery_job_logs"

    delivery_job_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("delivery_jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    event: Mapped[str] = mapped_column(String(50), nullable=False)
    previous_status: Mapped[DeliveryJobStatus | None] = mapped_column()
    new_status: Mapped[DeliveryJobStatus | None] = mapped_column()
    actor_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    actor_type: Mapped[ActorType] = mapped_column(nullable=False)
    actor_name: Mapped[str | None] = mapped_column(String(200))
    notes: Mapped[str | None] = mapped_column(Text)
    # JSON-serialized; ``metadata`` is reserved on declarative classes
    metadata_json: Mapped[str | None] = mapped_column("metadata", Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    delivery_job: Mapped[DeliveryJob] = relationship(
        "DeliveryJob", back_populates="logs", lazy="noload"
    )

    __table_args__ = (
        Index("ix_delivery_job_logs_delivery_job_id", "delivery_job_id"),
        Index("ix_delivery_job_logs_created_at", "created_at"),
    )


@orm_event.listens_for(DeliveryJobLog, "before_update")
@orm_event.listens_for(DeliveryJobLog, "before_delete")
def _refuse_log_mutation(mapper, connection, target) -> None:
    raise RuntimeError(f"DeliveryJobLog {target.id} is append-only")
