"""Pydantic v2 schemas for the admin KYC review queue."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.enums import (
    KycDocumentType,
    KycStatus,
    UserRole,
    VendorApplicationStatus,
    VendorApplicationType,
)
from src.modules.workflow.status_mapper import SubmissionKind


class ApplicantSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    role: UserRole


class VendorApplicationSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    type: VendorApplicationType
    status: VendorApplicationStatus
    business_name: str | None = None
    business_address: str | None = None
    business_phone: str | None = None
    business_email: str | None = None
    full_name_on_id: str | None = None
    location: str | None = None
    phone_normalized: str | None = None
    user: ApplicantSummary | None = None


class SubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: SubmissionKind
    status: KycStatus
    document_type: KycDocumentType
    document_url: str
    created_at: datetime
    reviewed_at: datetime | None = None
    review_notes: str | None = None
    vendor_profile_id: uuid.UUID | None = None
    rider_profile_id: uuid.UUID | None = None
    vendor_application: VendorApplicationSummary | None = None


class RejectSubmissionRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)

    @field_validator("reason")
    @classmethod
    def _require_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Rejection reason must not be blank")
        return value
