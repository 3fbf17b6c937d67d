"""Unit tests for the per-user console session."""

import pytest

from careops.application.services import ConsoleSession, GateState
from careops.config import Settings
from careops.domain.entities import Principal, Role
from careops.domain.exceptions import UnauthorizedError
from tests.fakes import InMemoryDocumentStore, eventually, seed_profile

SAM = Principal(id="sam", email="sam@example.org", display_name="Sam")


@pytest.fixture
def store() -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    store.seed("clients", "c-1", {"Name": "Ada", "Auth_Units_Remaining": 8})
    store.seed("staff", "s-1", {"Name": "Sam"})
    return store


def session_for(store) -> ConsoleSession:
    return ConsoleSession(store, Settings(core_categories=["clients", "staff", "evv"]))


@pytest.mark.asyncio
async def test_awaiting_activation_opens_no_feeds(store):
    session = session_for(store)
    state = await session.sign_in(SAM)

    assert state == GateState.AWAITING_ACTIVATION
    assert session.sync.subscribed == ()
    with pytest.raises(UnauthorizedError):
        await session.records.create_record("evv", {"Client": "Ada"})
    await session.sign_out()


@pytest.mark.asyncio
async def test_activation_starts_sync(store):
    session = session_for(store)
    await session.sign_in(SAM)

    await store.update("users", "sam", {"isActive": True, "role": "staff"})
    await eventually(lambda: session.state == GateState.ACTIVE)

    assert set(session.sync.subscribed) == {"clients", "staff", "evv"}
    await session.sync.wait_loaded("clients", timeout=1)
    assert session.dashboard().active_census == 1
    await session.sign_out()


@pytest.mark.asyncio
async def test_hidden_focus_falls_back_to_dashboard(store):
    seed_profile(store, "sam", Role.STAFF)
    session = session_for(store)
    await session.sign_in(SAM)

    module = session.focus_on("payroll")

    assert module.id == "dashboard"
    assert "payroll" not in session.sync.subscribed
    assert "payroll" not in [m.id for m in session.visible_modules()]
    await session.sign_out()


@pytest.mark.asyncio
async def test_focus_subscribes_focused_category(store):
    seed_profile(store, "fin", Role.FINANCE)
    session = session_for(store)
    await session.sign_in(Principal(id="fin"))

    session.focus_on("billing")

    assert session.focus == "billing"
    assert "billing" in session.sync.subscribed
    assert session.can_write("billing") is False
    await session.sign_out()


@pytest.mark.asyncio
async def test_visit_completion_uses_synced_clients(store):
    seed_profile(store, "sam", Role.STAFF)
    session = session_for(store)
    await session.sign_in(SAM)
    await session.sync.wait_loaded("clients", timeout=1)

    visit_id = await session.visits.check_in({"Client": "Ada"})
    store.advance(minutes=30)
    result = await session.visits.complete_visit(visit_id)

    assert result.units_remaining == 6
    await session.sign_out()


@pytest.mark.asyncio
async def test_sign_out_clears_everything(store):
    seed_profile(store, "sam", Role.ADMIN)
    session = session_for(store)
    await session.sign_in(SAM)
    session.focus_on("settings")
    await session.sync.wait_loaded("clients", timeout=1)

    await session.sign_out()

    assert session.state == GateState.SIGNED_OUT
    assert session.focus == "dashboard"
    assert session.sync.tables() == {}
    assert store.broadcaster.feed_count() == 0
