"""KYC review service — one admin queue over KYC submissions and vendor applications.

Vendor applications travel on the wire as ``vendor-app-{id}``; every
approve/reject call is routed to the right table through ``SubmissionRef``.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from src.database.transaction import atomic
from src.exceptions import NotFoundException
from src.models.enums import (
    KycDocumentType,
    KycStatus,
    UserRole,
    VendorApplicationStatus,
)
from src.models.kyc_submission import KycSubmission
from src.models.rider_profile import RiderProfile
from src.models.user import User
from src.models.vendor_application import VendorApplication
from src.models.vendor_profile import VendorProfile
from src.modules.kyc.constants import (
    APPLICATION_DOCUMENT_TYPES,
    AUDIT_ENTITY_KYC_SUBMISSION,
    AUDIT_ENTITY_VENDOR_APPLICATION,
    DEFAULT_VENDOR_BUSINESS_NAME,
)
from src.modules.workflow.audit import WorkflowAuditLogger
from src.modules.workflow.constants import (
    EVENT_KYC_APPROVED,
    EVENT_KYC_REJECTED,
    EVENT_VENDOR_APPLICATION_APPROVED,
    EVENT_VENDOR_APPLICATION_REJECTED,
)
from src.modules.workflow.status_mapper import (
    SubmissionKind,
    SubmissionRef,
    map_vendor_application_status,
    vendor_application_statuses_for,
)

logger = logging.getLogger(__name__)


@dataclass
class SubmissionView:
    """One row of the unified review queue."""

    ref: SubmissionRef
    status: KycStatus
    document_type: KycDocumentType
    document_url: str
    created_at: datetime
    reviewed_at: datetime | None = None
    review_notes: str | None = None
    vendor_profile_id: uuid.UUID | None = None
    rider_profile_id: uuid.UUID | None = None
    vendor_application: VendorApplication | None = None

    @property
    def id(self) -> str:
        return self.ref.wire_id

    @classmethod
    def from_kyc_submission(cls, submission: KycSubmission) -> SubmissionView:
        return cls(
            ref=SubmissionRef.kyc_submission(submission.id),
            status=submission.status,
            document_type=submission.document_type,
            document_url=submission.document_url,
            created_at=submission.created_at,
            reviewed_at=submission.reviewed_at,
            review_notes=submission.review_notes,
            vendor_profile_id=submission.vendor_profile_id,
            rider_profile_id=submission.rider_profile_id,
        )

    @classmethod
    def from_vendor_application(cls, application: VendorApplication) -> SubmissionView:
        return cls(
            ref=SubmissionRef.vendor_application(application.id),
            status=map_vendor_application_status(application.status),
            document_type=APPLICATION_DOCUMENT_TYPES.get(
                application.type, KycDocumentType.ID_CARD
            ),
            document_url="",
            created_at=application.created_at,
            reviewed_at=application.reviewed_at,
            review_notes=application.review_notes,
            vendor_application=application,
        )


class KycReviewService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = WorkflowAuditLogger(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_submission_for_update(self, submission_id: uuid.UUID) -> KycSubmission:
        result = await self.db.execute(
            select(KycSubmission).where(KycSubmission.id == submission_id).with_for_update()
        )
        submission = result.scalar_one_or_none()
        if submission is None:
            raise NotFoundException(f"KYC submission {submission_id} not found")
        return submission

    async def _get_application_for_update(
        self, application_id: uuid.UUID
    ) -> VendorApplication:
        result = await self.db.execute(
            select(VendorApplication)
            .where(VendorApplication.id == application_id)
            .with_for_update()
        )
        application = result.scalar_one_or_none()
        if application is None:
            raise NotFoundException(f"Vendor application {application_id} not found")
        return application

    async def _cascade_profile_status(
        self, submission: KycSubmission, status: KycStatus
    ) -> None:
        if submission.vendor_profile_id is not None:
            await self.db.execute(
                update(VendorProfile)
                .where(VendorProfile.id == submission.vendor_profile_id)
                .values(kyc_status=status)
            )
        if submission.rider_profile_id is not None:
            await self.db.execute(
                update(RiderProfile)
                .where(RiderProfile.id == submission.rider_profile_id)
                .values(kyc_status=status)
            )

    async def _upsert_vendor_profile(self, application: VendorApplication) -> VendorProfile:
        business_name = (
            application.business_name
            or application.full_name_on_id
            or DEFAULT_VENDOR_BUSINESS_NAME
        )
        business_address = application.business_address or application.location or ""

        result = await self.db.execute(
            select(VendorProfile)
            .where(VendorProfile.user_id == application.user_id)
            .with_for_update()
        )
        profile = result.scalar_one_or_none()
        if profile is None:
            profile = VendorProfile(user_id=application.user_id)
            self.db.add(profile)
        profile.business_name = business_name
        profile.business_address = business_address
        profile.kyc_status = KycStatus.APPROVED
        return profile

    async def _promote_to_vendor(self, user_id: uuid.UUID) -> None:
        result = await self.db.execute(
            select(User).where(User.id == user_id).with_for_update()
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundException(f"User {user_id} not found")
        user.role = UserRole.VENDOR

    async def _review_submission(
        self,
        ref: SubmissionRef,
        status: KycStatus,
        reviewer_id: uuid.UUID | None,
        notes: str | None,
    ) -> SubmissionView:
        async with atomic(self.db):
            submission = await self._get_submission_for_update(ref.id)
            previous_status = submission.status

            submission.status = status
            submission.reviewed_at = datetime.now(UTC)
            submission.reviewed_by_id = reviewer_id
            if notes is not None:
                submission.review_notes = notes
            await self._cascade_profile_status(submission, status)
            await self.db.flush()

            await self.audit.log_event(
                entity_type=AUDIT_ENTITY_KYC_SUBMISSION,
                entity_id=submission.id,
                event=EVENT_KYC_APPROVED if status == KycStatus.APPROVED else EVENT_KYC_REJECTED,
                previous_status=previous_status,
                new_status=status,
                actor_id=reviewer_id,
                notes=notes,
                metadata={
                    "vendor_profile_id": submission.vendor_profile_id,
                    "rider_profile_id": submission.rider_profile_id,
                },
            )

        return SubmissionView.from_kyc_submission(submission)

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------

    async def list_submissions(self, status: KycStatus | None = None) -> list[SubmissionView]:
        """KYC submissions and reviewable vendor applications, newest first."""
        query = select(KycSubmission).order_by(KycSubmission.created_at.desc())
        if status is not None:
            query = query.where(KycSubmission.status == status)
        result = await self.db.execute(query)
        views = [SubmissionView.from_kyc_submission(s) for s in result.scalars().all()]

        app_result = await self.db.execute(
            select(VendorApplication)
            .where(VendorApplication.status.in_(vendor_application_statuses_for(status)))
            .options(joinedload(VendorApplication.user))
            .order_by(VendorApplication.created_at.desc())
        )
        views.extend(
            SubmissionView.from_vendor_application(a) for a in app_result.scalars().all()
        )

        views.sort(key=lambda v: v.created_at, reverse=True)
        return views

    # ------------------------------------------------------------------
    # Review actions
    # ------------------------------------------------------------------

    async def approve(
        self, submission_id: str, reviewer_id: uuid.UUID | None = None
    ) -> SubmissionView:
        ref = SubmissionRef.parse(submission_id)
        if ref.kind == SubmissionKind.VENDOR_APPLICATION:
            return await self._approve_vendor_application(ref, reviewer_id)

        view = await self._review_submission(ref, KycStatus.APPROVED, reviewer_id, notes=None)
        logger.info("KYC approval - Submission: %s, Reviewer: %s", ref.id, reviewer_id)
        return view

    async def reject(
        self, submission_id: str, reason: str, reviewer_id: uuid.UUID | None = None
    ) -> SubmissionView:
        ref = SubmissionRef.parse(submission_id)
        if ref.kind == SubmissionKind.VENDOR_APPLICATION:
            return await self._reject_vendor_application(ref, reason, reviewer_id)

        view = await self._review_submission(ref, KycStatus.REJECTED, reviewer_id, notes=reason)
        logger.info("KYC rejection - Submission: %s, Reason: %s", ref.id, reason)
        return view

    async def _approve_vendor_application(
        self, ref: SubmissionRef, reviewer_id: uuid.UUID | None
    ) -> SubmissionView:
        """Application APPROVED, VendorProfile upserted, user promoted: all or nothing."""
        async with atomic(self.db):
            application = await self._get_application_for_update(ref.id)
            previous_status = application.status

            application.status = VendorApplicationStatus.APPROVED
            application.reviewed_at = datetime.now(UTC)
            application.reviewed_by_id = reviewer_id
            profile = await self._upsert_vendor_profile(application)
            await self._promote_to_vendor(application.user_id)
            await self.db.flush()

            await self.audit.log_event(
                entity_type=AUDIT_ENTITY_VENDOR_APPLICATION,
                entity_id=application.id,
                event=EVENT_VENDOR_APPLICATION_APPROVED,
                previous_status=previous_status,
                new_status=application.status,
                actor_id=reviewer_id,
                metadata={"user_id": application.user_id, "vendor_profile_id": profile.id},
            )

        logger.info(
            "Vendor application approved - ID: %s, User: %s", ref.id, application.user_id
        )
        return SubmissionView.from_vendor_application(application)

    async def _reject_vendor_application(
        self, ref: SubmissionRef, reason: str, reviewer_id: uuid.UUID | None
    ) -> SubmissionView:
        async with atomic(self.db):
            application = await self._get_application_for_update(ref.id)
            previous_status = application.status

            application.status = VendorApplicationStatus.REJECTED
            application.reviewed_at = datetime.now(UTC)
            application.reviewed_by_id = reviewer_id
            application.review_notes = reason
            await self.db.flush()

            await self.audit.log_event(
                entity_type=AUDIT_ENTITY_VENDOR_APPLICATION,
                entity_id=application.id,
                event=EVENT_VENDOR_APPLICATION_REJECTED,
                previous_status=previous_status,
                new_status=application.status,
                actor_id=reviewer_id,
                notes=reason,
                metadata={"user_id": application.user_id},
            )

        logger.info("Vendor application rejection - ID: %s, Reason: %s", ref.id, reason)
        return SubmissionView.from_vendor_application(application)
