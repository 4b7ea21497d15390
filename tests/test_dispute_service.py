"""Unit tests for DisputeService (derived status, resolve, reject)."""

from __future__ import annotations

import uuid
from unittest.mock import MagicMock

import pytest

from src.exceptions import BadRequestException, NotFoundException
from src.models.audit import WorkflowAuditEvent
from src.models.enums import DisputeStatus
from src.modules.dispute.service import DisputeService


def _make_dispute(resolution: str | None = None):
    dispute = MagicMock()
    dispute.id = uuid.uuid4()
    dispute.order_id = uuid.uuid4()
    dispute.reason = "Item damaged"
    dispute.resolution = resolution
    dispute.resolved_at = None
    return dispute


def _result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _audit_rows(db) -> list[WorkflowAuditEvent]:
    return [
        call.args[0]
        for call in db.add.call_args_list
        if isinstance(call.args[0], WorkflowAuditEvent)
    ]


@pytest.mark.asyncio
async def test_resolve_open_dispute_with_default_notes(mock_db):
    dispute = _make_dispute()
    mock_db.execute.return_value = _result(dispute)
    admin_id = uuid.uuid4()

    svc = DisputeService(mock_db)
    updated, status = await svc.resolve(dispute.id, actor_id=admin_id)

    assert status == DisputeStatus.RESOLVED
    assert updated.resolution == "Resolved by admin"
    assert updated.resolved_at is not None

    audit = _audit_rows(mock_db)
    assert len(audit) == 1
    assert audit[0].event == "dispute.resolved"
    assert audit[0].previous_status == "OPEN"
    assert audit[0].new_status == "RESOLVED"
    assert audit[0].actor_id == admin_id


@pytest.mark.asyncio
async def test_resolve_keeps_admin_notes(mock_db):
    dispute = _make_dispute()
    mock_db.execute.return_value = _result(dispute)

    svc = DisputeService(mock_db)
    updated, _ = await svc.resolve(dispute.id, notes="  Refunded in cash  ")

    assert updated.resolution == "Refunded in cash"


@pytest.mark.asyncio
async def test_resolve_blank_notes_fall_back_to_default(mock_db):
    dispute = _make_dispute()
    mock_db.execute.return_value = _result(dispute)

    svc = DisputeService(mock_db)
    updated, status = await svc.resolve(dispute.id, notes="   ")

    assert updated.resolution == "Resolved by admin"
    assert status == DisputeStatus.RESOLVED


@pytest.mark.asyncio
async def test_resolve_notes_cannot_spell_rejected(mock_db):
    svc = DisputeService(mock_db)
    with pytest.raises(BadRequestException, match="use reject instead"):
        await svc.resolve(uuid.uuid4(), notes="REJECTED")

    mock_db.execute.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("resolution", ["Refund issued", "REJECTED"])
async def test_resolve_closed_dispute_fails(mock_db, resolution):
    dispute = _make_dispute(resolution=resolution)
    mock_db.execute.return_value = _result(dispute)

    svc = DisputeService(mock_db)
    with pytest.raises(BadRequestException, match="already resolved or rejected"):
        await svc.resolve(dispute.id, notes="Second try")

    assert dispute.resolution == resolution
    assert _audit_rows(mock_db) == []
    exit_args = mock_db.begin_nested.return_value.__aexit__.call_args.args
    assert exit_args[0] is BadRequestException


@pytest.mark.asyncio
async def test_reject_open_dispute(mock_db):
    dispute = _make_dispute()
    mock_db.execute.return_value = _result(dispute)

    svc = DisputeService(mock_db)
    updated, status = await svc.reject(dispute.id)

    assert status == DisputeStatus.REJECTED
    assert updated.resolution == "REJECTED"
    audit = _audit_rows(mock_db)
    assert audit[0].event == "dispute.rejected"
    assert audit[0].new_status == "REJECTED"


@pytest.mark.asyncio
async def test_reject_missing_dispute(mock_db):
    mock_db.execute.return_value = _result(None)
    dispute_id = uuid.uuid4()

    svc = DisputeService(mock_db)
    with pytest.raises(NotFoundException, match=f"Dispute {dispute_id} not found"):
        await svc.reject(dispute_id)


@pytest.mark.asyncio
async def test_list_filters_after_derivation(mock_db):
    open_dispute = _make_dispute()
    resolved = _make_dispute(resolution="Refund issued")
    rejected = _make_dispute(resolution="REJECTED")
    result = MagicMock()
    result.unique.return_value.scalars.return_value.all.return_value = [
        open_dispute,
        resolved,
        rejected,
    ]
    mock_db.execute.return_value = result

    svc = DisputeService(mock_db)
    rows = await svc.list_disputes(status=DisputeStatus.RESOLVED)
    assert rows == [(resolved, DisputeStatus.RESOLVED)]

    rows = await svc.list_disputes()
    assert [status for _, status in rows] == [
        DisputeStatus.OPEN,
        DisputeStatus.RESOLVED,
        DisputeStatus.REJECTED,
    ]
