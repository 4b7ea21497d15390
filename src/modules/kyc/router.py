"""Admin KYC review router.

Ids are either a KYC submission uuid or ``vendor-app-{uuid}``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.session import get_db
from src.models.enums import KycStatus
from src.modules.identity.auth import AuthenticatedUser
from src.modules.identity.dependencies import require_admin
from src.modules.kyc.schemas import (
    RejectSubmissionRequest,
    SubmissionResponse,
    VendorApplicationSummary,
)
from src.modules.kyc.service import KycReviewService, SubmissionView

router = APIRouter(prefix="/admin/kyc/submissions", tags=["admin-kyc"])


def _response(view: SubmissionView) -> SubmissionResponse:
    return SubmissionResponse(
        id=view.id,
        kind=view.ref.kind,
        status=view.status,
        document_type=view.document_type,
        document_url=view.document_url,
        created_at=view.created_at,
        reviewed_at=view.reviewed_at,
        review_notes=view.review_notes,
        vendor_profile_id=view.vendor_profile_id,
        rider_profile_id=view.rider_profile_id,
        vendor_application=(
            VendorApplicationSummary.model_validate(view.vendor_application)
            if view.vendor_application is not None
            else None
        ),
    )


@router.get("", response_model=list[SubmissionResponse])
async def list_submissions(
    status: KycStatus | None = Query(None),
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Unified queue of KYC submissions and vendor applications, newest first."""
    svc = KycReviewService(db)
    views = await svc.list_submissions(status=status)
    return [_response(v) for v in views]


@router.patch("/{submission_id}/approve", response_model=SubmissionResponse)
async def approve_submission(
    submission_id: str,
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    svc = KycReviewService(db)
    view = await svc.approve(submission_id, reviewer_id=user.id)
    return _response(view)


@router.patch("/{submission_id}/reject", response_model=SubmissionResponse)
async def reject_submission(
    submission_id: str,
    body: RejectSubmissionRequest,
    user: AuthenticatedUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Reject with a reason; the reason is stored as review notes."""
    svc = KycReviewService(db)
    view = await svc.reject(submission_id, body.reason, reviewer_id=user.id)
    return _response(view)
