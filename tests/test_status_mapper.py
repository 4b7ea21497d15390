"""Unit tests for derived statuses and tagged submission ids."""

from __future__ import annotations

import uuid

import pytest

from src.exceptions import ValidationException
from src.models.enums import DisputeStatus, KycStatus, VendorApplicationStatus
from src.modules.workflow.status_mapper import (
    SubmissionKind,
    SubmissionRef,
    derive_dispute_status,
    map_vendor_application_status,
    vendor_application_statuses_for,
)


class TestDeriveDisputeStatus:
    @pytest.mark.parametrize("resolution", [None, ""])
    def test_open(self, resolution) -> None:
        assert derive_dispute_status(resolution) == DisputeStatus.OPEN

    def test_rejected_sentinel(self) -> None:
        assert derive_dispute_status("REJECTED") == DisputeStatus.REJECTED

    @pytest.mark.parametrize(
        "resolution", ["Resolved by admin", "Refund issued", "rejected", "REJECTED "]
    )
    def test_anything_else_is_resolved(self, resolution) -> None:
        assert derive_dispute_status(resolution) == DisputeStatus.RESOLVED


class TestVendorApplicationStatusMap:
    @pytest.mark.parametrize(
        "status, expected",
        [
            (VendorApplicationStatus.DRAFT, KycStatus.PENDING),
            (VendorApplicationStatus.PENDING_KYC_REVIEW, KycStatus.PENDING),
            (VendorApplicationStatus.PENDING_MANUAL_VERIFICATION, KycStatus.PENDING),
            (VendorApplicationStatus.APPROVED, KycStatus.APPROVED),
            (VendorApplicationStatus.REJECTED, KycStatus.REJECTED),
        ],
    )
    def test_forward_map(self, status, expected) -> None:
        assert map_vendor_application_status(status) == expected

    def test_pending_filter_excludes_draft(self) -> None:
        statuses = vendor_application_statuses_for(KycStatus.PENDING)
        assert statuses == {
            VendorApplicationStatus.PENDING_KYC_REVIEW,
            VendorApplicationStatus.PENDING_MANUAL_VERIFICATION,
        }

    def test_no_filter_is_every_reviewable_status(self) -> None:
        statuses = vendor_application_statuses_for(None)
        assert VendorApplicationStatus.DRAFT not in statuses
        assert len(statuses) == 4

    @pytest.mark.parametrize("kyc_status", list(KycStatus))
    def test_inverse_is_consistent_with_forward_map(self, kyc_status) -> None:
        for status in vendor_application_statuses_for(kyc_status):
            assert map_vendor_application_status(status) == kyc_status


class TestSubmissionRef:
    def test_bare_uuid_is_kyc_submission(self) -> None:
        raw = uuid.uuid4()
        ref = SubmissionRef.parse(str(raw))
        assert ref.kind == SubmissionKind.KYC_SUBMISSION
        assert ref.id == raw
        assert ref.wire_id == str(raw)

    def test_prefixed_id_is_vendor_application(self) -> None:
        raw = uuid.uuid4()
        ref = SubmissionRef.parse(f"vendor-app-{raw}")
        assert ref.kind == SubmissionKind.VENDOR_APPLICATION
        assert ref.id == raw
        assert ref.wire_id == f"vendor-app-{raw}"

    def test_constructors_match_parse(self) -> None:
        raw = uuid.uuid4()
        assert SubmissionRef.vendor_application(raw) == SubmissionRef.parse(f"vendor-app-{raw}")
        assert SubmissionRef.kyc_submission(raw) == SubmissionRef.parse(str(raw))

    @pytest.mark.parametrize("raw", ["", "not-a-uuid", "vendor-app-", "vendor-app-123"])
    def test_malformed_ids_raise(self, raw) -> None:
        with pytest.raises(ValidationException, match="Invalid submission id"):
            SubmissionRef.parse(raw)
