"""Transition validation for orders and delivery jobs.

All checks read the graphs in ``constants`` and raise before any write
happens, so callers can validate first and mutate second.
"""

from __future__ import annotations

import uuid

from src.exceptions import ConflictException, ForbiddenException, InvalidTransitionException
from src.models.enums import ActorType, DeliveryJobStatus, OrderStatus
from src.modules.workflow.constants import (
    CANCELLABLE_ORDER_STATUSES,
    JOB_TRANSITIONS,
    ORDER_TRANSITIONS,
    TERMINAL_JOB_STATUSES,
    TERMINAL_ORDER_STATUSES,
)


def allowed_job_transitions(
    current: DeliveryJobStatus, actor: ActorType
) -> frozenset[DeliveryJobStatus]:
    return JOB_TRANSITIONS.get(actor, {}).get(current, frozenset())


def allowed_order_transitions(
    current: OrderStatus, actor: ActorType
) -> frozenset[OrderStatus]:
    return ORDER_TRANSITIONS.get(actor, {}).get(current, frozenset())


def validate_job_transition(
    current: DeliveryJobStatus, target: DeliveryJobStatus, actor: ActorType
) -> None:
    """Raise InvalidTransitionException unless ``actor`` may move a job ``current`` -> ``target``."""
    allowed = allowed_job_transitions(current, actor)
    if target not in allowed:
        raise InvalidTransitionException(
            f"Cannot transition job from {current.value} to {target.value}.",
            current_status=current.value,
            target_status=target.value,
            actor=actor.value,
            allowed=sorted(s.value for s in allowed),
        )


def validate_order_transition(
    current: OrderStatus, target: OrderStatus, actor: ActorType
) -> None:
    """Raise InvalidTransitionException unless ``actor`` may move an order ``current`` -> ``target``."""
    allowed = allowed_order_transitions(current, actor)
    if target not in allowed:
        raise InvalidTransitionException(
            f"Cannot transition order from {current.value} to {target.value}.",
            current_status=current.value,
            target_status=target.value,
            actor=actor.value,
            allowed=sorted(s.value for s in allowed),
        )


def validate_job_acceptance(
    status: DeliveryJobStatus, agency_id: uuid.UUID | None
) -> None:
    """An agency may only take a job that is OPEN and unassigned."""
    if status != DeliveryJobStatus.OPEN:
        raise InvalidTransitionException(
            f"Job is not available for acceptance. Current status: {status.value}.",
            current_status=status.value,
            target_status=DeliveryJobStatus.ACCEPTED.value,
            actor=ActorType.AGENCY.value,
        )
    if agency_id is not None:
        raise ConflictException("Job has already been assigned to another agency.")


def validate_agency_owns_job(
    job_agency_id: uuid.UUID | None, agency_id: uuid.UUID
) -> None:
    if job_agency_id != agency_id:
        raise ForbiddenException("You can only update jobs assigned to your agency.")


def is_terminal_job_status(status: DeliveryJobStatus) -> bool:
    return status in TERMINAL_JOB_STATUSES


def is_terminal_order_status(status: OrderStatus) -> bool:
    return status in TERMINAL_ORDER_STATUSES


def can_cancel_order(status: OrderStatus) -> bool:
    return status in CANCELLABLE_ORDER_STATUSES
