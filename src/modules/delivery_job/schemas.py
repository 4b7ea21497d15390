"""Pydantic v2 schemas for delivery job endpoints (admin and agency)."""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.enums import ActorType, DeliveryJobStatus, OrderStatus

# ---------------------------------------------------------------------------
# Nested summaries
# ---------------------------------------------------------------------------


class JobCustomerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str | None = None
    phone: str | None = None


class JobOrderSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    status: OrderStatus
    total_amount: Decimal
    delivery_fee: Decimal
    delivery_address: str
    delivery_phone: str
    vendor_name: str | None = None
    customer: JobCustomerSummary | None = None


class AgencySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    phone: str
    is_active: bool


class AgencyResponse(AgencySummary):
    email: str | None = None
    address: str | None = None
    cities_covered: list[str] = []


# ---------------------------------------------------------------------------
# Job + log
# ---------------------------------------------------------------------------


class DeliveryJobLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    event: str
    previous_status: DeliveryJobStatus | None = None
    new_status: DeliveryJobStatus | None = None
    actor_id: uuid.UUID | None = None
    actor_type: ActorType
    actor_name: str | None = None
    notes: str | None = None
    metadata: dict | None = Field(None, validation_alias="metadata_json")
    created_at: datetime

    @field_validator("metadata", mode="before")
    @classmethod
    def _parse_metadata(cls, value):
        if isinstance(value, str):
            return json.loads(value)
        return value


class DeliveryJobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_id: uuid.UUID
    agency_id: uuid.UUID | None = None
    status: DeliveryJobStatus
    pickup_address: str
    pickup_city: str
    dropoff_address: str
    dropoff_city: str
    fee: Decimal | None = None
    accepted_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime


class DeliveryJobListItem(DeliveryJobResponse):
    order: JobOrderSummary | None = None
    agency: AgencySummary | None = None


class DeliveryJobDetailResponse(DeliveryJobListItem):
    logs: list[DeliveryJobLogResponse] = []


class DeliveryJobListResponse(BaseModel):
    items: list[DeliveryJobListItem]
    total: int
    page: int
    page_size: int
    total_pages: int


class DeliveryJobStatsResponse(BaseModel):
    open: int
    accepted: int
    delivered: int
    cancelled: int
    stale_jobs: int
    total: int


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class AssignJobRequest(BaseModel):
    agency_id: uuid.UUID


class CancelJobRequest(BaseModel):
    reason: str | None = Field(None, max_length=1000)


class UpdateJobStatusRequest(BaseModel):
    status: DeliveryJobStatus
