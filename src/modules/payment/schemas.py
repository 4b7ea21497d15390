"""Pydantic v2 schemas for the admin payment endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from src.models.enums import OrderStatus, PaymentMethod, PaymentStatus


class PaymentOrderSummary(BaseModel):
    id: uuid.UUID
    status: OrderStatus
    customer_phone: str | None = None


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_id: uuid.UUID
    amount: Decimal
    payment_method: PaymentMethod
    status: PaymentStatus
    transaction_id: str | None = None
    paid_at: datetime | None = None
    created_at: datetime


class PaymentListItem(PaymentResponse):
    order: PaymentOrderSummary | None = None


class PaymentTransitionResponse(BaseModel):
    """Payment and order state after a manual confirm/fail."""

    payment: PaymentResponse
    order: PaymentOrderSummary
