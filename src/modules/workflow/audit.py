"""WorkflowAuditLogger — append-only audit records for every state change."""

from __future__ import annotations

import json
import uuid
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from src.models.audit import WorkflowAuditEvent
from src.models.delivery_job_log import DeliveryJobLog
from src.models.enums import ActorType, DeliveryJobStatus


def _serialize_metadata(metadata: dict | None) -> str | None:
    if not metadata:
        return None
    return json.dumps(metadata, default=str, sort_keys=True)


def _status_value(status: Enum | str | None) -> str | None:
    if status is None:
        return None
    return status.value if isinstance(status, Enum) else str(status)


class WorkflowAuditLogger:
    """Inserts audit rows in the caller's transaction. Never updates or deletes."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def log_job_event(
        self,
        job_id: uuid.UUID,
        event: str,
        previous_status: DeliveryJobStatus | None,
        new_status: DeliveryJobStatus | None,
        actor_id: uuid.UUID | None,
        actor_type: ActorType,
        actor_name: str | None = None,
        notes: str | None = None,
        metadata: dict | None = None,
    ) -> DeliveryJobLog:
        entry = DeliveryJobLog(
            delivery_job_id=job_id,
            event=event,
            previous_status=previous_status,
            new_status=new_status,
            actor_id=actor_id,
            actor_type=actor_type,
            actor_name=actor_name,
            notes=notes,
            metadata_json=_serialize_metadata(metadata),
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def log_event(
        self,
        entity_type: str,
        entity_id: uuid.UUID,
        event: str,
        previous_status: Enum | str | None,
        new_status: Enum | str | None,
        actor_id: uuid.UUID | None = None,
        actor_type: ActorType = ActorType.ADMIN,
        notes: str | None = None,
        metadata: dict | None = None,
    ) -> WorkflowAuditEvent:
        entry = WorkflowAuditEvent(
            entity_type=entity_type,
            entity_id=entity_id,
            event=event,
            previous_status=_status_value(previous_status),
            new_status=_status_value(new_status),
            actor_id=actor_id,
            actor_type=actor_type,
            notes=notes,
            metadata_json=_serialize_metadata(metadata),
        )
        self.db.add(entry)
        await self.db.flush()
        return entry
