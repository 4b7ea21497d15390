from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text, func
from sqlalchemy import event as orm_event
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, UUIDPrimaryKeyMixin
from src.models.enums import ActorType


class WorkflowAuditEvent(UUIDPrimaryKeyMixin, Base):
    """Append-only audit row for payment, dispute and KYC transitions."""

    __tablename__ = "workflow_audit_events"

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    event: Mapped[str] = mapped_column(String(50), nullable=False)
    previous_status: Mapped[str | None] = mapped_column(String(50))
    new_status: Mapped[str | None] = mapped_column(String(50))
    actor_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    actor_type: Mapped[ActorType] = mapped_column(nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    metadata_json: Mapped[str | None] = mapped_column("metadata", Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_workflow_audit_events_entity", "entity_type", "entity_id"),
        Index("ix_workflow_audit_events_created_at", "created_at"),
    )


@orm_event.listens_for(WorkflowAuditEvent, "before_update")
@orm_event.listens_for(WorkflowAuditEvent, "before_delete")
def _refuse_audit_mutation(mapper, connection, target) -> None:
    raise RuntimeError(f"WorkflowAuditEvent {target.id} is append-only")
