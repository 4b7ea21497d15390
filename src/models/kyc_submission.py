"""KycSubmission model — identity documents reviewed by an admin."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.enums import KycDocumentType, KycStatus

if TYPE_CHECKING:
    from src.models.rider_profile import RiderProfile
    from src.models.vendor_profile import VendorProfile


class KycSubmission(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "kyc_submissions"

    vendor_profile_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("vendor_profiles.id", ondelete="CASCADE")
    )
    rider_profile_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("rider_profiles.id", ondelete="CASCADE")
    )
    document_type: Mapped[KycDocumentType] = mapped_column(nullable=False)
    document_url: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[KycStatus] = mapped_column(nullable=False, server_default="PENDING")

    # Review
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    review_notes: Mapped[str | None] = mapped_column(Text)
    reviewed_by_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL")
    )

    vendor_profile: Mapped[VendorProfile | None] = relationship("VendorProfile", lazy="noload")
    rider_profile: Mapped[RiderProfile | None] = relationship("RiderProfile", lazy="noload")

    __table_args__ = (
        Index("ix_kyc_submissions_status", "status"),
    )
