"""Manual payment review rules."""

from __future__ import annotations

from src.models.enums import PaymentMethod, PaymentStatus

# Methods settled physically at delivery; never confirmed or failed by an admin
OFFLINE_PAYMENT_METHODS: frozenset[PaymentMethod] = frozenset({PaymentMethod.COD})

# The only status from which a manual confirm/fail is allowed
MANUAL_REVIEW_STATUS = PaymentStatus.INITIATED

AUDIT_ENTITY_PAYMENT = "payment"
