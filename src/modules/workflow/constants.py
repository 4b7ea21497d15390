"""Legal transition graphs for orders and delivery jobs, keyed by actor."""

from __future__ import annotations

from datetime import timedelta

from src.models.enums import ActorType, DeliveryJobStatus, OrderStatus

# actor -> current status -> allowed next statuses
JOB_TRANSITIONS: dict[ActorType, dict[DeliveryJobStatus, frozenset[DeliveryJobStatus]]] = {
    ActorType.AGENCY: {
        DeliveryJobStatus.OPEN: frozenset({DeliveryJobStatus.ACCEPTED}),
        DeliveryJobStatus.ACCEPTED: frozenset({DeliveryJobStatus.DELIVERED}),
        DeliveryJobStatus.DELIVERED: frozenset(),
        DeliveryJobStatus.CANCELLED: frozenset(),
    },
    ActorType.SYSTEM: {
        DeliveryJobStatus.OPEN: frozenset({DeliveryJobStatus.CANCELLED}),
        DeliveryJobStatus.ACCEPTED: frozenset({DeliveryJobStatus.CANCELLED}),
        DeliveryJobStatus.DELIVERED: frozenset(),
        DeliveryJobStatus.CANCELLED: frozenset(),
    },
    ActorType.ADMIN: {
        DeliveryJobStatus.OPEN: frozenset(
            {DeliveryJobStatus.ACCEPTED, DeliveryJobStatus.CANCELLED}
        ),
        DeliveryJobStatus.ACCEPTED: frozenset(
            {DeliveryJobStatus.DELIVERED, DeliveryJobStatus.CANCELLED}
        ),
        DeliveryJobStatus.DELIVERED: frozenset(),
        DeliveryJobStatus.CANCELLED: frozenset(),
    },
}

ORDER_TRANSITIONS: dict[ActorType, dict[OrderStatus, frozenset[OrderStatus]]] = {
    ActorType.VENDOR: {
        OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
        OrderStatus.CONFIRMED: frozenset({OrderStatus.IN_TRANSIT, OrderStatus.CANCELLED}),
        OrderStatus.IN_TRANSIT: frozenset(),  # delivery drives it from here
        OrderStatus.DELIVERED: frozenset(),  # customer confirms receipt
        OrderStatus.COMPLETED: frozenset(),
        OrderStatus.CANCELLED: frozenset(),
    },
    ActorType.CUSTOMER: {
        OrderStatus.PENDING: frozenset({OrderStatus.CANCELLED}),
        OrderStatus.CONFIRMED: frozenset({OrderStatus.CANCELLED}),
        OrderStatus.IN_TRANSIT: frozenset(),
        OrderStatus.DELIVERED: frozenset({OrderStatus.COMPLETED}),
        OrderStatus.COMPLETED: frozenset(),
        OrderStatus.CANCELLED: frozenset(),
    },
    ActorType.AGENCY: {
        OrderStatus.PENDING: frozenset(),
        OrderStatus.CONFIRMED: frozenset({OrderStatus.IN_TRANSIT}),
        OrderStatus.IN_TRANSIT: frozenset({OrderStatus.DELIVERED}),
        OrderStatus.DELIVERED: frozenset(),
        OrderStatus.COMPLETED: frozenset(),
        OrderStatus.CANCELLED: frozenset(),
    },
    ActorType.ADMIN: {
        OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
        OrderStatus.CONFIRMED: frozenset({OrderStatus.IN_TRANSIT, OrderStatus.CANCELLED}),
        OrderStatus.IN_TRANSIT: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
        OrderStatus.DELIVERED: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
        OrderStatus.COMPLETED: frozenset(),
        OrderStatus.CANCELLED: frozenset(),
    },
}

TERMINAL_JOB_STATUSES: frozenset[DeliveryJobStatus] = frozenset(
    {DeliveryJobStatus.DELIVERED, DeliveryJobStatus.CANCELLED}
)
TERMINAL_ORDER_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
)
CANCELLABLE_ORDER_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.PENDING, OrderStatus.CONFIRMED}
)

# Job statuses in which agency_id must be set
ASSIGNED_JOB_STATUSES: frozenset[DeliveryJobStatus] = frozenset(
    {DeliveryJobStatus.ACCEPTED, DeliveryJobStatus.DELIVERED}
)

# An OPEN job older than this is reported as stale
STALE_JOB_THRESHOLD = timedelta(minutes=30)

# Delivery job log events
JOB_EVENT_ADMIN_ASSIGNED = "ADMIN_ASSIGNED"
JOB_EVENT_ACCEPTED = "ACCEPTED"
JOB_EVENT_DELIVERED = "DELIVERED"
JOB_EVENT_STATUS_CHANGED = "STATUS_CHANGED"
JOB_EVENT_CANCELLED = "CANCELLED"

# Workflow audit events
EVENT_PAYMENT_CONFIRMED = "payment.confirmed"
EVENT_PAYMENT_FAILED = "payment.failed"
EVENT_PAYMENT_COD_COLLECTED = "payment.cod_collected"
EVENT_DISPUTE_RESOLVED = "dispute.resolved"
EVENT_DISPUTE_REJECTED = "dispute.rejected"
EVENT_KYC_APPROVED = "kyc.approved"
EVENT_KYC_REJECTED = "kyc.rejected"
EVENT_VENDOR_APPLICATION_APPROVED = "vendor_application.approved"
EVENT_VENDOR_APPLICATION_REJECTED = "vendor_application.rejected"
