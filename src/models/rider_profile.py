from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.enums import KycStatus


class RiderProfile(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "rider_profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    kyc_status: Mapped[KycStatus] = mapped_column(nullable=False, server_default="PENDING")
