"""Derived statuses and tagged identifiers.

Two storage shortcuts are decoded here and nowhere else:

* ``Dispute.resolution`` is a nullable string that stands for the sum type
  Open | Resolved(notes) | Rejected.
* The admin KYC queue mixes ``KycSubmission`` and ``VendorApplication`` rows;
  on the wire, application ids carry a ``vendor-app-`` prefix.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass

from src.exceptions import ValidationException
from src.models.enums import DisputeStatus, KycStatus, VendorApplicationStatus

REJECTED_RESOLUTION = "REJECTED"
DEFAULT_RESOLUTION_NOTES = "Resolved by admin"

VENDOR_APPLICATION_PREFIX = "vendor-app-"

_VENDOR_APP_TO_KYC: dict[VendorApplicationStatus, KycStatus] = {
    VendorApplicationStatus.DRAFT: KycStatus.PENDING,
    VendorApplicationStatus.PENDING_KYC_REVIEW: KycStatus.PENDING,
    VendorApplicationStatus.PENDING_MANUAL_VERIFICATION: KycStatus.PENDING,
    VendorApplicationStatus.APPROVED: KycStatus.APPROVED,
    VendorApplicationStatus.REJECTED: KycStatus.REJECTED,
}

# Application statuses that belong in the review queue, per unified status
_REVIEWABLE_VENDOR_APP_STATUSES: dict[KycStatus, frozenset[VendorApplicationStatus]] = {
    KycStatus.PENDING: frozenset(
        {
            VendorApplicationStatus.PENDING_KYC_REVIEW,
            VendorApplicationStatus.PENDING_MANUAL_VERIFICATION,
        }
    ),
    KycStatus.APPROVED: frozenset({VendorApplicationStatus.APPROVED}),
    KycStatus.REJECTED: frozenset({VendorApplicationStatus.REJECTED}),
}


def derive_dispute_status(resolution: str | None) -> DisputeStatus:
    if not resolution:
        return DisputeStatus.OPEN
    if resolution == REJECTED_RESOLUTION:
        return DisputeStatus.REJECTED
    return DisputeStatus.RESOLVED


def map_vendor_application_status(status: VendorApplicationStatus) -> KycStatus:
    return _VENDOR_APP_TO_KYC.get(status, KycStatus.PENDING)


def vendor_application_statuses_for(
    kyc_status: KycStatus | None,
) -> frozenset[VendorApplicationStatus]:
    """Application statuses shown in the queue for a unified status filter (all when None)."""
    if kyc_status is None:
        return frozenset().union(*_REVIEWABLE_VENDOR_APP_STATUSES.values())
    return _REVIEWABLE_VENDOR_APP_STATUSES[kyc_status]


class SubmissionKind(str, enum.Enum):
    KYC_SUBMISSION = "KYC_SUBMISSION"
    VENDOR_APPLICATION = "VENDOR_APPLICATION"


@dataclass(frozen=True)
class SubmissionRef:
    """Which table an entry of the unified KYC queue lives in, plus its id."""

    kind: SubmissionKind
    id: uuid.UUID

    @classmethod
    def parse(cls, raw: str) -> SubmissionRef:
        kind = SubmissionKind.KYC_SUBMISSION
        value = raw
        if raw.startswith(VENDOR_APPLICATION_PREFIX):
            kind = SubmissionKind.VENDOR_APPLICATION
            value = raw[len(VENDOR_APPLICATION_PREFIX):]
        try:
            return cls(kind=kind, id=uuid.UUID(value))
        except ValueError as exc:
            raise ValidationException(f"Invalid submission id '{raw}'") from exc

    @classmethod
    def kyc_submission(cls, submission_id: uuid.UUID) -> SubmissionRef:
        return cls(kind=SubmissionKind.KYC_SUBMISSION, id=submission_id)

    @classmethod
    def vendor_application(cls, application_id: uuid.UUID) -> SubmissionRef:
        return cls(kind=SubmissionKind.VENDOR_APPLICATION, id=application_id)

    @property
    def wire_id(self) -> str:
        if self.kind == SubmissionKind.VENDOR_APPLICATION:
            return f"{VENDOR_APPLICATION_PREFIX}{self.id}"
        return str(self.id)
