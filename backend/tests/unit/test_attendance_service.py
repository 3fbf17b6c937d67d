"""Unit tests for the call-off workflow."""

import pytest

from careops.application.services import AttendanceService, RecordService
from careops.domain.entities import Role
from careops.domain.exceptions import UnauthorizedError, ValidationFailedError
from tests.fakes import InMemoryDocumentStore, make_actor


@pytest.fixture
def store() -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    store.seed("staff", "s-1", {"Name": "Sam", "Status": "Active"})
    return store


def attendance_for(store, role=Role.STAFF, *, active=True) -> AttendanceService:
    actor = make_actor(role, active=active, uid="caller")
    return AttendanceService(store, RecordService(store, lambda: actor), lambda: actor)


@pytest.mark.asyncio
async def test_empty_reason_rejected_before_any_write(store):
    with pytest.raises(ValidationFailedError):
        await attendance_for(store).log_call_off("   ", staff_id="s-1", staff_name="Sam")
    assert store.writes == []


@pytest.mark.asyncio
async def test_staff_call_off_logs_without_status_change(store):
    result = await attendance_for(store).log_call_off("Sick", staff_id="s-1", staff_name="Sam")

    event = store.raw("attendance", result.event_id)
    assert event["Type"] == "Call-Off"
    assert event["Reason"] == "Sick"
    assert event["Staff"] == "Sam"
    assert event["Date"] == "2024-03-01"
    assert event["createdBy"] == "caller"
    assert result.staff_marked_absent is False
    assert store.raw("staff", "s-1")["Status"] == "Active"


@pytest.mark.asyncio
async def test_elevated_call_off_marks_staff_absent(store):
    result = await attendance_for(store, Role.ADMIN).log_call_off("Car Trouble", staff_id="s-1", staff_name="Sam")
    assert result.staff_marked_absent is True
    assert store.raw("staff", "s-1")["Status"] == "Absent"
    assert store.raw("staff", "s-1")["updatedBy"] == "caller"


@pytest.mark.asyncio
async def test_missing_staff_name_is_unknown(store):
    result = await attendance_for(store).log_call_off("Other")
    assert store.raw("attendance", result.event_id)["Staff"] == "Unknown"


@pytest.mark.asyncio
async def test_failed_status_flip_keeps_the_event(store):
    result = await attendance_for(store, Role.DIRECTOR).log_call_off("Sick", staff_id="ghost", staff_name="Gus")

    assert result.staff_marked_absent is False
    assert result.status_error
    assert result.event_id in store.collections["attendance"]


@pytest.mark.asyncio
async def test_status_flip_can_be_retried(store):
    service = attendance_for(store, Role.ADMIN)
    store.failing.add("update")
    result = await service.log_call_off("Sick", staff_id="s-1", staff_name="Sam")
    assert result.status_error

    store.failing.clear()
    await service.mark_staff_absent("s-1")
    assert store.raw("staff", "s-1")["Status"] == "Absent"


@pytest.mark.asyncio
async def test_mark_absent_requires_elevated_role(store):
    with pytest.raises(UnauthorizedError):
        await attendance_for(store).mark_staff_absent("s-1")


@pytest.mark.asyncio
async def test_inactive_profile_cannot_call_off(store):
    with pytest.raises(UnauthorizedError):
        await attendance_for(store, active=False).log_call_off("Sick")


@pytest.mark.asyncio
async def test_recent_events_newest_first(store):
    service = attendance_for(store)
    first = await service.log_call_off("Sick", staff_name="A")
    store.advance(minutes=1)
    second = await service.log_call_off("Other", staff_name="B")
    store.advance(minutes=1)
    third = await service.log_call_off("No Show", staff_name="C")

    recent = await service.recent_events(limit=2)
    assert [e.id for e in recent] == [third.event_id, second.event_id]
    assert first.event_id not in [e.id for e in recent]
