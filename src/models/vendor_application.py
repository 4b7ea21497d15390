"""VendorApplication model — newer vendor onboarding queue."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.enums import VendorApplicationStatus, VendorApplicationType

if TYPE_CHECKING:
    from src.models.user import User


class VendorApplication(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "vendor_applications"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[VendorApplicationType] = mapped_column(nullable=False)
    status: Mapped[VendorApplicationStatus] = mapped_column(
        nullable=False, server_default="DRAFT"
    )

    # Business applicants
    business_name: Mapped[str | None] = mapped_column(String(255))
    business_address: Mapped[str | None] = mapped_column(Text)
    business_phone: Mapped[str | None] = mapped_column(String(20))
    business_email: Mapped[str | None] = mapped_column(String(255))

    # Individual applicants
    full_name_on_id: Mapped[str | None] = mapped_column(String(255))
    location: Mapped[str | None] = mapped_column(String(255))
    phone_normalized: Mapped[str | None] = mapped_column(String(20))

    # Review
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    review_notes: Mapped[str | None] = mapped_column(Text)
    reviewed_by_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL")
    )

    user: Mapped[User] = relationship("User", foreign_keys=[user_id], lazy="noload")

    __table_args__ = (
        Index("ix_vendor_applications_status", "status"),
        Index("ix_vendor_applications_user_id", "user_id"),
    )
