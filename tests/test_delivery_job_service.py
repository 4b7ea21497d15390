"""Unit tests for DeliveryJobService (admin assignment, cancellation, dashboard)."""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.exceptions import BadRequestException, InvalidTransitionException, NotFoundException
from src.models.delivery_job_log import DeliveryJobLog
from src.models.enums import ActorType, DeliveryJobStatus, OrderStatus
from src.modules.delivery_job.service import DeliveryJobService
from src.modules.workflow.constants import ASSIGNED_JOB_STATUSES


def _make_job(
    status: DeliveryJobStatus = DeliveryJobStatus.OPEN,
    agency_id: uuid.UUID | None = None,
):
    job = MagicMock()
    job.id = uuid.uuid4()
    job.order_id = uuid.uuid4()
    job.agency_id = agency_id
    job.status = status
    job.pickup_city = "Douala"
    job.dropoff_city = "Douala"
    job.accepted_at = None
    job.delivered_at = None
    job.cancelled_at = None
    return job


def _make_agency(is_active: bool = True, name: str = "Rapid Express"):
    agency = MagicMock()
    agency.id = uuid.uuid4()
    agency.name = name
    agency.is_active = is_active
    agency.cities_covered = ["Douala", "Yaoundé"]
    return agency


def _make_order(order_id: uuid.UUID, status: OrderStatus = OrderStatus.CONFIRMED):
    order = MagicMock()
    order.id = order_id
    order.status = status
    order.in_transit_at = None
    return order


def _result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _job_logs(db) -> list[DeliveryJobLog]:
    return [
        call.args[0] for call in db.add.call_args_list if isinstance(call.args[0], DeliveryJobLog)
    ]


@pytest.fixture
def legacy_sync():
    return AsyncMock()


# ---------------------------------------------------------------------------
# assign_to_agency
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_assign_open_job_to_active_agency(mock_db, legacy_sync):
    """OPEN job + active agency: job, order, legacy row and log are all written."""
    job = _make_job()
    agency = _make_agency()
    order = _make_order(job.order_id)
    mock_db.execute.side_effect = [_result(job), _result(agency), _result(order)]
    admin_id = uuid.uuid4()

    svc = DeliveryJobService(mock_db, legacy_sync=legacy_sync)
    updated = await svc.assign_to_agency(job.id, agency.id, admin_id, admin_name="Admin")

    assert updated.status == DeliveryJobStatus.ACCEPTED
    assert updated.agency_id == agency.id
    assert updated.accepted_at is not None
    assert updated.status in ASSIGNED_JOB_STATUSES
    assert order.status == OrderStatus.IN_TRANSIT
    assert order.in_transit_at is not None
    legacy_sync.job_assigned.assert_awaited_once_with(mock_db, job.order_id, agency.id)

    logs = _job_logs(mock_db)
    assert len(logs) == 1
    log = logs[0]
    assert log.event == "ADMIN_ASSIGNED"
    assert log.previous_status == DeliveryJobStatus.OPEN
    assert log.new_status == DeliveryJobStatus.ACCEPTED
    assert log.actor_type == ActorType.ADMIN
    assert log.actor_id == admin_id
    assert log.notes == "Manually assigned to agency: Rapid Express"
    assert json.loads(log.metadata_json) == {
        "agency_id": str(agency.id),
        "agency_name": "Rapid Express",
    }


@pytest.mark.asyncio
async def test_assign_already_accepted_job(mock_db, legacy_sync):
    """A job that has already been taken cannot be reassigned."""
    job = _make_job(status=DeliveryJobStatus.ACCEPTED, agency_id=uuid.uuid4())
    original_agency = job.agency_id
    mock_db.execute.side_effect = [_result(job)]

    svc = DeliveryJobService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(InvalidTransitionException, match="from ACCEPTED to ACCEPTED"):
        await svc.assign_to_agency(job.id, uuid.uuid4(), uuid.uuid4())

    assert job.agency_id == original_agency
    assert mock_db.execute.call_count == 1
    legacy_sync.job_assigned.assert_not_awaited()
    assert _job_logs(mock_db) == []


@pytest.mark.asyncio
async def test_assign_to_inactive_agency(mock_db, legacy_sync):
    job = _make_job()
    agency = _make_agency(is_active=False)
    mock_db.execute.side_effect = [_result(job), _result(agency)]

    svc = DeliveryJobService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(BadRequestException, match="Cannot assign to inactive agency"):
        await svc.assign_to_agency(job.id, agency.id, uuid.uuid4())

    assert job.status == DeliveryJobStatus.OPEN
    assert job.agency_id is None


@pytest.mark.asyncio
async def test_assign_job_of_cancelled_order(mock_db, legacy_sync):
    """A failed payment cancels the order but leaves its job OPEN; assigning it must not revive the order."""
    job = _make_job()
    agency = _make_agency()
    order = _make_order(job.order_id, status=OrderStatus.CANCELLED)
    mock_db.execute.side_effect = [_result(job), _result(agency), _result(order)]

    svc = DeliveryJobService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(InvalidTransitionException, match="from CANCELLED to IN_TRANSIT"):
        await svc.assign_to_agency(job.id, agency.id, uuid.uuid4())

    assert order.status == OrderStatus.CANCELLED
    assert order.in_transit_at is None
    assert job.status == DeliveryJobStatus.OPEN
    assert job.agency_id is None
    assert job.accepted_at is None
    legacy_sync.job_assigned.assert_not_awaited()
    assert _job_logs(mock_db) == []
    exit_args = mock_db.begin_nested.return_value.__aexit__.call_args.args
    assert exit_args[0] is InvalidTransitionException


@pytest.mark.asyncio
async def test_assign_missing_job(mock_db, legacy_sync):
    mock_db.execute.side_effect = [_result(None)]
    job_id = uuid.uuid4()

    svc = DeliveryJobService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(NotFoundException, match=f"Delivery job {job_id} not found"):
        await svc.assign_to_agency(job_id, uuid.uuid4(), uuid.uuid4())


@pytest.mark.asyncio
async def test_assign_missing_agency(mock_db, legacy_sync):
    job = _make_job()
    mock_db.execute.side_effect = [_result(job), _result(None)]

    svc = DeliveryJobService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(NotFoundException, match="Delivery agency"):
        await svc.assign_to_agency(job.id, uuid.uuid4(), uuid.uuid4())


@pytest.mark.asyncio
async def test_assign_rolls_back_when_legacy_sync_fails(mock_db, legacy_sync):
    """A failure part-way through leaves no log row and exits the savepoint with the error."""
    job = _make_job()
    agency = _make_agency()
    order = _make_order(job.order_id)
    mock_db.execute.side_effect = [_result(job), _result(agency), _result(order)]
    legacy_sync.job_assigned.side_effect = RuntimeError("legacy table unavailable")

    svc = DeliveryJobService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(RuntimeError, match="legacy table unavailable"):
        await svc.assign_to_agency(job.id, agency.id, uuid.uuid4())

    assert _job_logs(mock_db) == []
    exit_args = mock_db.begin_nested.return_value.__aexit__.call_args.args
    assert exit_args[0] is RuntimeError


@pytest.mark.asyncio
async def test_assign_without_legacy_sync(mock_db):
    """Passing legacy_sync=None skips the mirror write entirely."""
    job = _make_job()
    agency = _make_agency()
    order = _make_order(job.order_id)
    mock_db.execute.side_effect = [_result(job), _result(agency), _result(order)]

    svc = DeliveryJobService(mock_db, legacy_sync=None)
    updated = await svc.assign_to_agency(job.id, agency.id, uuid.uuid4())

    assert updated.status == DeliveryJobStatus.ACCEPTED
    assert mock_db.execute.call_count == 3


@pytest.mark.asyncio
async def test_assign_opens_top_level_transaction_outside_request(mock_db, legacy_sync):
    """With no transaction in progress, atomic() begins one instead of a savepoint."""
    mock_db.in_transaction = MagicMock(return_value=False)
    mock_db.begin = MagicMock()
    job = _make_job()
    agency = _make_agency()
    order = _make_order(job.order_id)
    mock_db.execute.side_effect = [_result(job), _result(agency), _result(order)]

    svc = DeliveryJobService(mock_db, legacy_sync=legacy_sync)
    await svc.assign_to_agency(job.id, agency.id, uuid.uuid4())

    mock_db.begin.assert_called_once()
    mock_db.begin_nested.assert_not_called()


# ---------------------------------------------------------------------------
# cancel_job
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_cancel_open_job(mock_db, legacy_sync):
    job = _make_job()
    mock_db.execute.side_effect = [_result(job)]

    svc = DeliveryJobService(mock_db, legacy_sync=legacy_sync)
    updated = await svc.cancel_job(job.id, uuid.uuid4(), reason="Customer unreachable")

    assert updated.status == DeliveryJobStatus.CANCELLED
    assert updated.cancelled_at is not None
    legacy_sync.job_cancelled.assert_awaited_once_with(mock_db, job.order_id)
    logs = _job_logs(mock_db)
    assert [log.event for log in logs] == ["CANCELLED"]
    assert logs[0].notes == "Customer unreachable"


@pytest.mark.asyncio
async def test_cancel_accepted_job_keeps_agency(mock_db, legacy_sync):
    agency_id = uuid.uuid4()
    job = _make_job(status=DeliveryJobStatus.ACCEPTED, agency_id=agency_id)
    mock_db.execute.side_effect = [_result(job)]

    svc = DeliveryJobService(mock_db, legacy_sync=legacy_sync)
    updated = await svc.cancel_job(job.id, uuid.uuid4())

    assert updated.status == DeliveryJobStatus.CANCELLED
    assert updated.agency_id == agency_id


@pytest.mark.asyncio
async def test_cancel_delivered_job(mock_db, legacy_sync):
    job = _make_job(status=DeliveryJobStatus.DELIVERED, agency_id=uuid.uuid4())
    mock_db.execute.side_effect = [_result(job)]

    svc = DeliveryJobService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(InvalidTransitionException):
        await svc.cancel_job(job.id, uuid.uuid4())

    legacy_sync.job_cancelled.assert_not_awaited()


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_stats(mock_db):
    counts = MagicMock()
    counts.all.return_value = [
        (DeliveryJobStatus.OPEN, 4),
        (DeliveryJobStatus.ACCEPTED, 2),
        (DeliveryJobStatus.DELIVERED, 7),
    ]
    stale = MagicMock()
    stale.scalar.return_value = 1
    mock_db.execute.side_effect = [counts, stale]

    svc = DeliveryJobService(mock_db)
    stats = await svc.get_stats(now=datetime(2026, 10, 16, 12, 0, tzinfo=UTC))

    assert stats == {
        "open": 4,
        "accepted": 2,
        "delivered": 7,
        "cancelled": 0,
        "stale_jobs": 1,
        "total": 13,
    }


@pytest.mark.asyncio
async def test_get_stats_uses_thirty_minute_threshold(mock_db):
    counts = MagicMock()
    counts.all.return_value = []
    stale = MagicMock()
    stale.scalar.return_value = 0
    mock_db.execute.side_effect = [counts, stale]
    now = datetime(2026, 10, 16, 12, 0, tzinfo=UTC)

    svc = DeliveryJobService(mock_db)
    await svc.get_stats(now=now)

    stale_query = mock_db.execute.call_args_list[1].args[0]
    params = stale_query.compile().params
    assert now - timedelta(minutes=30) in params.values()


@pytest.mark.asyncio
async def test_list_jobs_paginates(mock_db):
    jobs = [_make_job(), _make_job()]
    count_result = MagicMock()
    count_result.scalar.return_value = 42
    list_result = MagicMock()
    list_result.scalars.return_value.all.return_value = jobs
    mock_db.execute.side_effect = [count_result, list_result]

    svc = DeliveryJobService(mock_db)
    items, total = await svc.list_jobs(city="Douala", page=3, page_size=10)

    assert items == jobs
    assert total == 42
    list_query = str(mock_db.execute.call_args_list[1].args[0])
    assert "delivery_jobs.pickup_city" in list_query
    assert "delivery_jobs.dropoff_city" in list_query
    assert "OR" in list_query


@pytest.mark.asyncio
async def test_get_job_not_found(mock_db):
    result = MagicMock()
    result.unique.return_value.scalar_one_or_none.return_value = None
    mock_db.execute.return_value = result

    svc = DeliveryJobService(mock_db)
    with pytest.raises(NotFoundException):
        await svc.get_job(uuid.uuid4())


@pytest.mark.asyncio
async def test_list_agencies_for_city(mock_db):
    agencies = [_make_agency()]
    result = MagicMock()
    result.scalars.return_value.all.return_value = agencies
    mock_db.execute.return_value = result

    svc = DeliveryJobService(mock_db)
    assert await svc.list_agencies_for_city("Douala") == agencies
