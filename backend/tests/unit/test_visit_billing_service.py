"""Unit tests for the visit billing state machine."""

from datetime import timedelta

import pytest

from careops.application.services import ClientDirectory, RecordService, VisitBillingService
from careops.domain.entities import Role
from careops.domain.exceptions import UnauthorizedError, ValidationFailedError
from tests.fakes import InMemoryDocumentStore, make_actor


@pytest.fixture
def store() -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    store.seed("clients", "c-1", {"Name": "Ada", "Auth_Units_Total": 40, "Auth_Units_Remaining": 20})
    return store


def billing_for(store, role=Role.STAFF, *, active=True, attempts=3) -> VisitBillingService:
    actor = make_actor(role, active=active, uid="nurse-1")
    records = RecordService(store, lambda: actor)
    return VisitBillingService(
        store,
        records,
        ClientDirectory.from_records(records),
        lambda: actor,
        deduction_attempts=attempts,
    )


@pytest.mark.asyncio
async def test_check_in_stamps_server_time(store):
    service = billing_for(store)
    visit_id = await service.check_in({"Client_Id": "c-1", "Time_In": "1990-01-01", "Units_Billed": 99})

    visit = store.raw("evv", visit_id)
    assert visit["Time_In"] == store.clock.isoformat()
    assert visit["Status"] == "InProgress"
    assert "Units_Billed" not in visit
    assert visit["createdBy"] == "nurse-1"


@pytest.mark.asyncio
async def test_complete_visit_bills_and_deducts(store):
    service = billing_for(store)
    visit_id = await service.check_in({"Client_Id": "c-1", "Client": "Ada"})
    store.advance(minutes=47)

    result = await service.complete_visit(visit_id)

    assert result.billing.duration_minutes == 47
    assert result.billing.units_billed == 4
    assert result.units_remaining == 16
    assert result.deducted
    visit = store.raw("evv", visit_id)
    assert visit["Status"] == "Completed"
    assert visit["Units_Billed"] == 4
    assert visit["Duration_Minutes"] == 47
    assert visit["GPS_Status"] == "Verified"
    assert visit["Time_Out"] == store.clock.isoformat()
    assert store.raw("clients", "c-1")["Auth_Units_Remaining"] == 16


@pytest.mark.asyncio
async def test_missing_check_in_bills_fallback_hour(store):
    store.seed("evv", "v-1", {"Client_Id": "c-1", "Status": "InProgress"})
    result = await billing_for(store).complete_visit("v-1")
    assert result.billing.duration_minutes == 60
    assert result.billing.units_billed == 4
    assert result.billing.start_inferred
    assert store.raw("clients", "c-1")["Auth_Units_Remaining"] == 16


@pytest.mark.asyncio
async def test_balance_floors_at_zero(store):
    store.seed("clients", "c-2", {"Name": "Bea", "Auth_Units_Remaining": 2})
    store.seed("evv", "v-1", {
        "Client_Id": "c-2",
        "Status": "InProgress",
        "Time_In": (store.clock - timedelta(minutes=75)).isoformat(),
    })
    result = await billing_for(store).complete_visit("v-1")
    assert result.billing.units_billed == 5
    assert result.units_remaining == 0
    assert store.raw("clients", "c-2")["Auth_Units_Remaining"] == 0


@pytest.mark.asyncio
async def test_missing_remaining_starts_from_total(store):
    store.seed("clients", "c-3", {"Name": "Cy", "Auth_Units_Total": 10})
    store.seed("evv", "v-1", {"Client_Id": "c-3", "Status": "InProgress"})
    result = await billing_for(store).complete_visit("v-1")
    assert result.units_remaining == 6


@pytest.mark.asyncio
async def test_name_fallback_when_client_id_missing(store):
    store.seed("evv", "v-1", {"Client": "Ada", "Status": "InProgress"})
    result = await billing_for(store).complete_visit("v-1")
    assert result.client_id == "c-1"
    assert result.units_remaining == 16


@pytest.mark.asyncio
async def test_unresolvable_client_is_a_reconciliation_gap(store):
    store.seed("evv", "v-1", {"Client": "Nobody", "Status": "InProgress"})
    result = await billing_for(store).complete_visit("v-1")

    assert result.gap is not None
    assert result.gap.client_ref == "Nobody"
    assert result.gap.units_billed == 4
    assert store.raw("evv", "v-1")["Status"] == "Completed"
    assert store.raw("clients", "c-1")["Auth_Units_Remaining"] == 20


@pytest.mark.asyncio
async def test_ambiguous_client_name_is_a_gap(store):
    store.seed("clients", "c-9", {"Name": "Ada", "Auth_Units_Remaining": 5})
    store.seed("evv", "v-1", {"Client": "Ada", "Status": "InProgress"})
    result = await billing_for(store).complete_visit("v-1")
    assert result.gap is not None
    assert "2 clients" in result.gap.reason


@pytest.mark.asyncio
async def test_second_completion_is_rejected(store):
    store.seed("evv", "v-1", {"Client_Id": "c-1", "Status": "InProgress"})
    service = billing_for(store)
    await service.complete_visit("v-1")

    with pytest.raises(ValidationFailedError):
        await service.complete_visit("v-1")
    assert store.raw("clients", "c-1")["Auth_Units_Remaining"] == 16


@pytest.mark.asyncio
async def test_completed_visit_cannot_be_reopened_and_billed_again(store):
    service = billing_for(store)
    records = RecordService(store, lambda: make_actor(Role.STAFF, uid="nurse-1"))
    visit_id = await service.check_in({"Client_Id": "c-1"})
    store.advance(minutes=47)
    await service.complete_visit(visit_id)
    completed = dict(store.raw("evv", visit_id))

    await records.update_record("evv", visit_id, {"Status": "InProgress"})
    store.advance(minutes=47)
    with pytest.raises(ValidationFailedError):
        await service.complete_visit(visit_id)

    visit = store.raw("evv", visit_id)
    assert visit["Status"] == "Completed"
    assert visit["Duration_Minutes"] == completed["Duration_Minutes"] == 47
    assert visit["Units_Billed"] == completed["Units_Billed"] == 4
    assert visit["Time_Out"] == completed["Time_Out"]
    assert store.raw("clients", "c-1")["Auth_Units_Remaining"] == 16


@pytest.mark.asyncio
async def test_archived_visit_cannot_be_completed(store):
    store.seed("evv", "v-1", {"Client_Id": "c-1", "Status": "Archived"})
    with pytest.raises(ValidationFailedError):
        await billing_for(store).complete_visit("v-1")
    assert store.raw("evv", "v-1")["Status"] == "Archived"
    assert "Units_Billed" not in store.raw("evv", "v-1")
    assert store.raw("clients", "c-1")["Auth_Units_Remaining"] == 20


@pytest.mark.asyncio
async def test_concurrent_archive_loses_completion_guard(store):
    store.seed("evv", "v-1", {"Client_Id": "c-1", "Status": "InProgress"})

    def archive_elsewhere(collection, document_id):
        if collection == "evv":
            store.raw("evv", "v-1")["Status"] = "Archived"

    store.before_compare = archive_elsewhere
    with pytest.raises(ValidationFailedError):
        await billing_for(store).complete_visit("v-1")
    assert store.raw("clients", "c-1")["Auth_Units_Remaining"] == 20


@pytest.mark.asyncio
async def test_concurrent_completion_loses_guard(store):
    store.seed("evv", "v-1", {"Client_Id": "c-1", "Status": "InProgress"})

    def complete_elsewhere(collection, document_id):
        if collection == "evv":
            store.raw("evv", "v-1")["Status"] = "Completed"

    store.before_compare = complete_elsewhere
    with pytest.raises(ValidationFailedError):
        await billing_for(store).complete_visit("v-1")
    assert store.raw("clients", "c-1")["Auth_Units_Remaining"] == 20


@pytest.mark.asyncio
async def test_deduction_retries_on_concurrent_balance_change(store):
    store.seed("evv", "v-1", {"Client_Id": "c-1", "Status": "InProgress"})
    calls = {"clients": 0}

    def competing_writer(collection, document_id):
        if collection == "clients":
            calls["clients"] += 1
            if calls["clients"] == 1:
                store.raw("clients", "c-1")["Auth_Units_Remaining"] = 10

    store.before_compare = competing_writer
    result = await billing_for(store).complete_visit("v-1")

    assert calls["clients"] == 2
    assert result.units_remaining == 6
    assert store.raw("clients", "c-1")["Auth_Units_Remaining"] == 6


@pytest.mark.asyncio
async def test_unsettled_balance_becomes_gap(store):
    store.seed("evv", "v-1", {"Client_Id": "c-1", "Status": "InProgress"})

    def always_moving(collection, document_id):
        if collection == "clients":
            store.raw("clients", "c-1")["Auth_Units_Remaining"] -= 1

    store.before_compare = always_moving
    result = await billing_for(store, attempts=2).complete_visit("v-1")

    assert result.gap is not None
    assert result.client_id == "c-1"
    assert store.raw("evv", "v-1")["Status"] == "Completed"


@pytest.mark.asyncio
async def test_finance_role_can_complete_but_inactive_cannot(store):
    store.seed("evv", "v-1", {"Client_Id": "c-1", "Status": "InProgress"})
    await billing_for(store, Role.FINANCE).complete_visit("v-1")

    store.seed("evv", "v-2", {"Client_Id": "c-1", "Status": "InProgress"})
    with pytest.raises(UnauthorizedError):
        await billing_for(store, active=False).complete_visit("v-2")
