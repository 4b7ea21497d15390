"""Pydantic v2 schemas for admin dispute endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from src.models.enums import DisputeStatus


class DisputeResponse(BaseModel):
    id: uuid.UUID
    order_id: uuid.UUID
    status: DisputeStatus
    reason: str
    description: str | None = None
    resolution: str | None = None
    resolved_at: datetime | None = None
    created_at: datetime


class DisputeListItem(DisputeResponse):
    customer_phone: str | None = None
    vendor_business_name: str | None = None


class ResolveDisputeRequest(BaseModel):
    notes: str | None = Field(None, max_length=2000)
