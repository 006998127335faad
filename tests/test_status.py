"""
Tests for the request status state machine.
"""

from datetime import date, timedelta

import pytest

from registrar.core.errors import InvalidTransitionError, ValidationError
from registrar.core.rbac import AdminPrincipal, StaffPrincipal
from registrar.models.request import RequestStatus
from registrar.services.request_query import RequestQueryService
from registrar.services.status import TRANSITIONS, can_transition, normalize_status, parse_pickup_date
from registrar.utils.dates import utcnow


@pytest.fixture
def admin(admin_user):
    return AdminPrincipal(user_id=admin_user.id)


async def _reload(db, request):
    return await RequestQueryService.get_request(db, request.id)


@pytest.mark.asyncio
async def test_pending_to_ready_notifies_once_and_resave_does_not(
    db_session, make_request, status_service, admin, notifier
):
    """Request 42 moved to READY gets one email; re-saving READY adds history only."""
    request = await make_request(request_pk=42)

    await status_service.transition(db_session, request, "READY", admin)
    request = await _reload(db_session, request)
    await status_service.transition(db_session, request, 3, admin)
    request = await _reload(db_session, request)

    ready = notifier.of_kind("ready")
    assert len(ready) == 1
    email, name, reference, documents, pickup = ready[0]
    assert email == "juan.delacruz@school.edu"
    assert reference == request.reference_number
    assert documents == ["Transcript of Records"]
    assert pickup is None

    assert request.id == 42
    assert request.status == RequestStatus.READY
    assert [entry.notes for entry in request.tracking][1:] == [
        "Status changed from PENDING to READY_FOR_PICKUP",
        "Status re-saved as READY_FOR_PICKUP",
    ]


@pytest.mark.asyncio
async def test_full_lifecycle_stamps_completion(db_session, make_request, status_service, admin):
    request = await make_request()

    for target in ("PROCESSING", "READY_FOR_PICKUP", "released"):
        await status_service.transition(db_session, request, target, admin)
        request = await _reload(db_session, request)

    assert request.status == RequestStatus.RELEASED
    assert request.date_completed is not None
    assert [entry.status for entry in request.tracking] == [
        RequestStatus.PENDING,
        RequestStatus.PROCESSING,
        RequestStatus.READY,
        RequestStatus.RELEASED,
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("terminal", [RequestStatus.RELEASED, RequestStatus.DECLINE])
async def test_terminal_statuses_reject_every_move(
    db_session, make_request, status_service, admin, terminal
):
    request = await make_request(status=terminal)

    for target in RequestStatus:
        with pytest.raises(InvalidTransitionError):
            await status_service.transition(db_session, request, target, admin)

    request = await _reload(db_session, request)
    assert request.status == terminal
    assert len(request.tracking) == 1


@pytest.mark.asyncio
async def test_backward_move_is_rejected(db_session, make_request, status_service, admin):
    request = await make_request(status=RequestStatus.READY)

    with pytest.raises(InvalidTransitionError, match="Cannot change status from READY_FOR_PICKUP to PENDING"):
        await status_service.transition(db_session, request, "PENDING", admin)


@pytest.mark.asyncio
async def test_decline_allowed_from_any_open_status(
    db_session, make_request, status_service, admin, notifier
):
    for status in (RequestStatus.PENDING, RequestStatus.PROCESSING, RequestStatus.READY):
        request = await make_request(status=status)
        await status_service.transition(db_session, request, "declined", admin, notes="Incomplete clearance")
        request = await _reload(db_session, request)

        assert request.status == RequestStatus.DECLINE
        assert request.date_completed is None
        assert request.admin_notes == "Incomplete clearance"
        assert request.tracking[-1].notes.endswith(": Incomplete clearance")
    assert notifier.of_kind("ready") == []


@pytest.mark.asyncio
async def test_staff_actor_recorded_as_processor(
    db_session, departments, make_request, make_user, status_service
):
    department_id = departments["College of Nursing"]
    staff = await make_user("nursing_staff", department_ids=[department_id])
    request = await make_request(department_id=department_id)
    principal = StaffPrincipal(user_id=staff.id, department_ids=frozenset({department_id}))

    await status_service.transition(db_session, request, "PROCESSING", principal)
    request = await _reload(db_session, request)

    assert request.processed_by == staff.id
    assert request.tracking[-1].changed_by == staff.id


@pytest.mark.asyncio
async def test_admin_actor_does_not_take_over_processing(db_session, make_request, status_service, admin):
    request = await make_request()

    await status_service.transition(db_session, request, "PROCESSING", admin)
    request = await _reload(db_session, request)

    assert request.processed_by is None
    assert request.tracking[-1].changed_by == admin.user_id


@pytest.mark.asyncio
async def test_transition_can_schedule_pickup(db_session, make_request, status_service, admin, notifier):
    request = await make_request()
    pickup = (utcnow().date() + timedelta(days=3)).isoformat()

    await status_service.transition(db_session, request, "READY", admin, scheduled_pickup=pickup)
    request = await _reload(db_session, request)

    assert request.scheduled_pickup.isoformat() == pickup
    assert notifier.of_kind("ready")[0][4].isoformat() == pickup


@pytest.mark.asyncio
async def test_invalid_pickup_date_leaves_request_unchanged(db_session, make_request, status_service, admin):
    request = await make_request()

    with pytest.raises(ValidationError):
        await status_service.transition(db_session, request, "READY", admin, scheduled_pickup="03/15/2030")

    request = await _reload(db_session, request)
    assert request.status == RequestStatus.PENDING


@pytest.mark.asyncio
async def test_schedule_pickup_appends_history(db_session, make_request, status_service, admin):
    request = await make_request(status=RequestStatus.PROCESSING)
    pickup = (utcnow().date() + timedelta(days=1)).isoformat()

    await status_service.schedule_pickup(db_session, request, pickup, admin)
    request = await _reload(db_session, request)

    assert request.status == RequestStatus.PROCESSING
    assert request.scheduled_pickup.isoformat() == pickup
    assert request.tracking[-1].notes == f"Pickup scheduled for {pickup}"


@pytest.mark.asyncio
async def test_schedule_pickup_rejected_for_final_request(db_session, make_request, status_service, admin):
    request = await make_request(status=RequestStatus.RELEASED)

    with pytest.raises(InvalidTransitionError):
        await status_service.schedule_pickup(db_session, request, "2099-01-01", admin)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("READY", RequestStatus.READY),
        ("ready for pickup", RequestStatus.READY),
        ("Ready-For-Release", RequestStatus.READY),
        ("declined", RequestStatus.DECLINE),
        ("DECLINE", RequestStatus.DECLINE),
        ("4", RequestStatus.RELEASED),
        (2, RequestStatus.PROCESSING),
    ],
)
def test_normalize_status(value, expected):
    assert normalize_status(value) is expected


@pytest.mark.parametrize("value", ["SHIPPED", 9, "0", "", None])
def test_normalize_status_rejects_unknown(value):
    with pytest.raises(ValidationError):
        normalize_status(value)


def test_transition_table_only_moves_forward():
    order = list(RequestStatus)[:4]
    for current in RequestStatus:
        for target in RequestStatus:
            allowed = can_transition(current, target)
            if current.is_terminal:
                assert not allowed
            elif target == RequestStatus.DECLINE:
                assert allowed
            else:
                assert allowed == (order.index(target) >= order.index(current))
    assert set(TRANSITIONS) == set(RequestStatus)


def test_parse_pickup_date():
    today = date(2030, 6, 15)

    assert parse_pickup_date("2030-06-15", today=today) == today
    with pytest.raises(ValidationError, match="past"):
        parse_pickup_date("2030-06-14", today=today)
    with pytest.raises(ValidationError, match="YYYY-MM-DD"):
        parse_pickup_date("2030-6-15", today=today)
    with pytest.raises(ValidationError):
        parse_pickup_date("2030-02-30", today=today)
