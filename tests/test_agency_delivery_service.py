"""Unit tests for AgencyDeliveryService (agency self-service flows)."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.exceptions import (
    ConflictException,
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
)
from src.models.audit import WorkflowAuditEvent
from src.models.delivery_job_log import DeliveryJobLog
from src.models.enums import (
    ActorType,
    DeliveryJobStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from src.modules.delivery_job.agency_service import AgencyDeliveryService
from src.modules.delivery_job.constants import normalize_city


def _make_agency(cities: list[str] | None = None, is_active: bool = True):
    agency = MagicMock()
    agency.id = uuid.uuid4()
    agency.user_id = uuid.uuid4()
    agency.name = "Rapid Express"
    agency.is_active = is_active
    agency.cities_covered = ["Douala"] if cities is None else cities
    return agency


def _make_job(
    status: DeliveryJobStatus = DeliveryJobStatus.OPEN,
    agency_id: uuid.UUID | None = None,
    pickup_city: str = "Douala",
):
    job = MagicMock()
    job.id = uuid.uuid4()
    job.order_id = uuid.uuid4()
    job.agency_id = agency_id
    job.status = status
    job.pickup_city = pickup_city
    job.accepted_at = None
    job.delivered_at = None
    return job


def _make_order(order_id: uuid.UUID, status: OrderStatus = OrderStatus.IN_TRANSIT):
    order = MagicMock()
    order.id = order_id
    order.status = status
    order.delivered_at = None
    return order


def _make_cod_payment(order_id: uuid.UUID):
    payment = MagicMock()
    payment.id = uuid.uuid4()
    payment.order_id = order_id
    payment.payment_method = PaymentMethod.COD
    payment.status = PaymentStatus.INITIATED
    payment.paid_at = None
    return payment


def _result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _list_result(values):
    result = MagicMock()
    result.unique.return_value.scalars.return_value.all.return_value = values
    return result


def _added(db, model) -> list:
    return [call.args[0] for call in db.add.call_args_list if isinstance(call.args[0], model)]


@pytest.fixture
def legacy_sync():
    return AsyncMock()


def test_normalize_city():
    assert normalize_city("  Douala ") == "douala"
    assert normalize_city("YAOUNDÉ") == "yaoundé"
    assert normalize_city(None) == ""


# ---------------------------------------------------------------------------
# Available jobs
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_available_jobs_match_normalized_pickup_city(mock_db):
    agency = _make_agency(cities=[" douala"])
    in_douala = _make_job(pickup_city="Douala ")
    in_yaounde = _make_job(pickup_city="Yaoundé")
    mock_db.execute.side_effect = [_result(agency), _list_result([in_douala, in_yaounde])]

    svc = AgencyDeliveryService(mock_db)
    jobs = await svc.list_available_jobs(agency.user_id)

    assert jobs == [in_douala]


@pytest.mark.asyncio
async def test_available_jobs_empty_when_no_cities(mock_db):
    agency = _make_agency(cities=[])
    mock_db.execute.side_effect = [_result(agency)]

    svc = AgencyDeliveryService(mock_db)
    assert await svc.list_available_jobs(agency.user_id) == []
    assert mock_db.execute.call_count == 1


@pytest.mark.asyncio
async def test_available_jobs_inactive_agency(mock_db):
    agency = _make_agency(is_active=False)
    mock_db.execute.side_effect = [_result(agency)]

    svc = AgencyDeliveryService(mock_db)
    with pytest.raises(ForbiddenException, match="not active"):
        await svc.list_available_jobs(agency.user_id)


@pytest.mark.asyncio
async def test_missing_agency_profile(mock_db):
    mock_db.execute.side_effect = [_result(None)]

    svc = AgencyDeliveryService(mock_db)
    with pytest.raises(NotFoundException, match="Delivery agency profile not found"):
        await svc.list_my_jobs(uuid.uuid4())


@pytest.mark.asyncio
async def test_my_jobs_for_inactive_agency(mock_db):
    """Deactivated agencies can still see their history."""
    agency = _make_agency(is_active=False)
    jobs = [_make_job(status=DeliveryJobStatus.DELIVERED, agency_id=agency.id)]
    mock_db.execute.side_effect = [_result(agency), _list_result(jobs)]

    svc = AgencyDeliveryService(mock_db)
    assert await svc.list_my_jobs(agency.user_id) == jobs


# ---------------------------------------------------------------------------
# accept_job
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_accept_open_job(mock_db, legacy_sync):
    agency = _make_agency()
    job = _make_job(pickup_city="douala")
    order = _make_order(job.order_id, status=OrderStatus.CONFIRMED)
    mock_db.execute.side_effect = [_result(agency), _result(job), _result(order)]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    updated = await svc.accept_job(agency.user_id, job.id)

    assert updated.status == DeliveryJobStatus.ACCEPTED
    assert updated.agency_id == agency.id
    assert order.status == OrderStatus.IN_TRANSIT
    legacy_sync.job_assigned.assert_awaited_once_with(mock_db, job.order_id, agency.id)

    logs = _added(mock_db, DeliveryJobLog)
    assert len(logs) == 1
    assert logs[0].event == "ACCEPTED"
    assert logs[0].actor_type == ActorType.AGENCY
    assert logs[0].actor_id == agency.id
    assert logs[0].actor_name == "Rapid Express"


@pytest.mark.asyncio
async def test_accept_job_of_cancelled_order(mock_db, legacy_sync):
    agency = _make_agency()
    job = _make_job()
    order = _make_order(job.order_id, status=OrderStatus.CANCELLED)
    mock_db.execute.side_effect = [_result(agency), _result(job), _result(order)]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(InvalidTransitionException, match="from CANCELLED to IN_TRANSIT"):
        await svc.accept_job(agency.user_id, job.id)

    assert order.status == OrderStatus.CANCELLED
    assert job.status == DeliveryJobStatus.OPEN
    assert job.agency_id is None
    assert job.accepted_at is None
    legacy_sync.job_assigned.assert_not_awaited()
    assert _added(mock_db, DeliveryJobLog) == []
    exit_args = mock_db.begin_nested.return_value.__aexit__.call_args.args
    assert exit_args[0] is InvalidTransitionException


@pytest.mark.asyncio
async def test_accept_job_taken_by_another_agency(mock_db, legacy_sync):
    """The loser of an acceptance race sees a 409, not a silent overwrite."""
    agency = _make_agency()
    winner = uuid.uuid4()
    job = _make_job(status=DeliveryJobStatus.OPEN, agency_id=winner)
    mock_db.execute.side_effect = [_result(agency), _result(job)]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(ConflictException):
        await svc.accept_job(agency.user_id, job.id)

    assert job.agency_id == winner
    legacy_sync.job_assigned.assert_not_awaited()


@pytest.mark.asyncio
async def test_accept_already_accepted_job(mock_db, legacy_sync):
    agency = _make_agency()
    job = _make_job(status=DeliveryJobStatus.ACCEPTED, agency_id=uuid.uuid4())
    mock_db.execute.side_effect = [_result(agency), _result(job)]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(InvalidTransitionException, match="not available for acceptance"):
        await svc.accept_job(agency.user_id, job.id)


@pytest.mark.asyncio
async def test_accept_job_in_uncovered_city(mock_db, legacy_sync):
    agency = _make_agency(cities=["Douala"])
    job = _make_job(pickup_city="Bafoussam")
    mock_db.execute.side_effect = [_result(agency), _result(job)]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(ForbiddenException, match="does not cover Bafoussam"):
        await svc.accept_job(agency.user_id, job.id)

    assert job.status == DeliveryJobStatus.OPEN


@pytest.mark.asyncio
async def test_accept_job_inactive_agency(mock_db, legacy_sync):
    agency = _make_agency(is_active=False)
    mock_db.execute.side_effect = [_result(agency)]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(ForbiddenException, match="Contact admin"):
        await svc.accept_job(agency.user_id, uuid.uuid4())

    mock_db.begin_nested.assert_not_called()


# ---------------------------------------------------------------------------
# mark_delivered / update_status
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_mark_delivered_collects_cod(mock_db, legacy_sync):
    """Delivering a COD order settles the payment in the same transaction."""
    agency = _make_agency()
    job = _make_job(status=DeliveryJobStatus.ACCEPTED, agency_id=agency.id)
    order = _make_order(job.order_id)
    payment = _make_cod_payment(job.order_id)
    mock_db.execute.side_effect = [
        _result(agency),
        _result(job),
        _result(order),
        _result(payment),
    ]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    updated = await svc.mark_delivered(agency.user_id, job.id)

    assert updated.status == DeliveryJobStatus.DELIVERED
    assert updated.delivered_at is not None
    assert order.status == OrderStatus.DELIVERED
    assert order.delivered_at == updated.delivered_at
    assert payment.status == PaymentStatus.SUCCESS
    assert payment.paid_at == updated.delivered_at
    legacy_sync.job_delivered.assert_awaited_once_with(
        mock_db, job.order_id, updated.delivered_at
    )

    audit = _added(mock_db, WorkflowAuditEvent)
    assert [a.event for a in audit] == ["payment.cod_collected"]
    assert audit[0].actor_type == ActorType.AGENCY
    logs = _added(mock_db, DeliveryJobLog)
    assert [log.event for log in logs] == ["DELIVERED"]
    assert logs[0].notes == "Order delivered by agency: Rapid Express"


@pytest.mark.asyncio
async def test_mark_delivered_without_cod_payment(mock_db, legacy_sync):
    agency = _make_agency()
    job = _make_job(status=DeliveryJobStatus.ACCEPTED, agency_id=agency.id)
    order = _make_order(job.order_id)
    mock_db.execute.side_effect = [
        _result(agency),
        _result(job),
        _result(order),
        _result(None),
    ]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    await svc.mark_delivered(agency.user_id, job.id)

    assert _added(mock_db, WorkflowAuditEvent) == []
    assert len(_added(mock_db, DeliveryJobLog)) == 1


@pytest.mark.asyncio
async def test_mark_delivered_someone_elses_job(mock_db, legacy_sync):
    agency = _make_agency()
    job = _make_job(status=DeliveryJobStatus.ACCEPTED, agency_id=uuid.uuid4())
    mock_db.execute.side_effect = [_result(agency), _result(job)]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(ForbiddenException, match="assigned to your agency"):
        await svc.mark_delivered(agency.user_id, job.id)

    assert job.status == DeliveryJobStatus.ACCEPTED


@pytest.mark.asyncio
async def test_mark_delivered_twice(mock_db, legacy_sync):
    agency = _make_agency()
    job = _make_job(status=DeliveryJobStatus.DELIVERED, agency_id=agency.id)
    mock_db.execute.side_effect = [_result(agency), _result(job)]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(InvalidTransitionException, match="from DELIVERED to DELIVERED"):
        await svc.mark_delivered(agency.user_id, job.id)

    legacy_sync.job_delivered.assert_not_awaited()


@pytest.mark.asyncio
async def test_mark_delivered_cancelled_order(mock_db, legacy_sync):
    agency = _make_agency()
    job = _make_job(status=DeliveryJobStatus.ACCEPTED, agency_id=agency.id)
    order = _make_order(job.order_id, status=OrderStatus.CANCELLED)
    mock_db.execute.side_effect = [_result(agency), _result(job), _result(order)]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(InvalidTransitionException, match="from CANCELLED to DELIVERED"):
        await svc.mark_delivered(agency.user_id, job.id)

    assert order.status == OrderStatus.CANCELLED
    assert order.delivered_at is None
    assert job.status == DeliveryJobStatus.ACCEPTED
    assert job.delivered_at is None
    legacy_sync.job_delivered.assert_not_awaited()
    assert _added(mock_db, DeliveryJobLog) == []
    assert _added(mock_db, WorkflowAuditEvent) == []
    exit_args = mock_db.begin_nested.return_value.__aexit__.call_args.args
    assert exit_args[0] is InvalidTransitionException


@pytest.mark.asyncio
async def test_update_status_cancelled_order(mock_db, legacy_sync):
    agency = _make_agency()
    job = _make_job(status=DeliveryJobStatus.ACCEPTED, agency_id=agency.id)
    order = _make_order(job.order_id, status=OrderStatus.CANCELLED)
    mock_db.execute.side_effect = [_result(agency), _result(job), _result(order)]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(InvalidTransitionException, match="from CANCELLED to DELIVERED"):
        await svc.update_status(agency.user_id, job.id, DeliveryJobStatus.DELIVERED)

    assert job.status == DeliveryJobStatus.ACCEPTED
    legacy_sync.job_delivered.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_status_to_delivered_logs_status_change(mock_db, legacy_sync):
    agency = _make_agency()
    job = _make_job(status=DeliveryJobStatus.ACCEPTED, agency_id=agency.id)
    order = _make_order(job.order_id)
    mock_db.execute.side_effect = [
        _result(agency),
        _result(job),
        _result(order),
        _result(None),
    ]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    updated = await svc.update_status(agency.user_id, job.id, DeliveryJobStatus.DELIVERED)

    assert updated.status == DeliveryJobStatus.DELIVERED
    assert order.status == OrderStatus.DELIVERED
    logs = _added(mock_db, DeliveryJobLog)
    assert [log.event for log in logs] == ["STATUS_CHANGED"]
    assert logs[0].notes == "Status changed from ACCEPTED to DELIVERED"


@pytest.mark.asyncio
async def test_update_status_agency_cannot_cancel(mock_db, legacy_sync):
    agency = _make_agency()
    job = _make_job(status=DeliveryJobStatus.ACCEPTED, agency_id=agency.id)
    mock_db.execute.side_effect = [_result(agency), _result(job)]

    svc = AgencyDeliveryService(mock_db, legacy_sync=legacy_sync)
    with pytest.raises(InvalidTransitionException):
        await svc.update_status(agency.user_id, job.id, DeliveryJobStatus.CANCELLED)
