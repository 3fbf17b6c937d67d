"""Integration tests for the SQLAlchemy document store on in-memory SQLite."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from careops.application.interfaces import SERVER_TIMESTAMP
from careops.domain.exceptions import EntityNotFoundError, StoreUnavailableError
from careops.infrastructure.database import create_tables
from careops.infrastructure.store import SQLAlchemyDocumentStore
from tests.fakes import eventually

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class Clock:
    def __init__(self):
        self.now = T0

    def __call__(self) -> datetime:
        return self.now


async def make_store(tenant_id: str = "tenant-a", clock=None, engine=None):
    engine = engine or create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return SQLAlchemyDocumentStore(factory, tenant_id, clock=clock or Clock()), engine


@pytest.mark.asyncio
async def test_create_resolves_server_timestamp():
    clock = Clock()
    store, engine = await make_store(clock=clock)

    doc_id = await store.create("clients", {"Name": "Ada", "createdAt": SERVER_TIMESTAMP})
    doc = await store.get("clients", doc_id)

    assert doc.data == {"Name": "Ada", "createdAt": T0.isoformat()}
    await engine.dispose()


@pytest.mark.asyncio
async def test_update_merges_fields():
    store, engine = await make_store()
    doc_id = await store.create("staff", {"Name": "Sam", "Phone": "1"})
    await store.update("staff", doc_id, {"Phone": "2", "Role": "HHA"})

    doc = await store.get("staff", doc_id)
    assert doc.data == {"Name": "Sam", "Phone": "2", "Role": "HHA"}

    with pytest.raises(EntityNotFoundError):
        await store.update("staff", "missing", {"Phone": "3"})
    await engine.dispose()


@pytest.mark.asyncio
async def test_list_keeps_insertion_order():
    store, engine = await make_store()
    ids = [await store.create("evv", {"n": n}) for n in range(3)]
    listed = await store.list_documents("evv")
    assert [d.id for d in listed] == ids
    await engine.dispose()


@pytest.mark.asyncio
async def test_compare_and_update_respects_guard():
    store, engine = await make_store()
    doc_id = await store.create("evv", {"Status": "InProgress"})

    ok = await store.compare_and_update("evv", doc_id, lambda d: d["Status"] != "Completed", {"Status": "Completed"})
    again = await store.compare_and_update("evv", doc_id, lambda d: d["Status"] != "Completed", {"Status": "Completed"})

    assert ok is True
    assert again is False
    with pytest.raises(EntityNotFoundError):
        await store.compare_and_update("evv", "nope", lambda d: True, {})
    await engine.dispose()


@pytest.mark.asyncio
async def test_ensure_creates_then_only_fills_missing_fields():
    store, engine = await make_store()
    first = await store.ensure("users", "u-1", {"role": "pending", "isActive": False})
    await store.update("users", "u-1", {"role": "admin", "isActive": True})
    second = await store.ensure("users", "u-1", {"role": "pending", "isActive": False, "email": "a@b.c"})

    assert first.data == {"role": "pending", "isActive": False}
    assert second.data == {"role": "admin", "isActive": True, "email": "a@b.c"}
    await engine.dispose()


@pytest.mark.asyncio
async def test_tenants_are_isolated():
    store_a, engine = await make_store("tenant-a")
    store_b, _ = await make_store("tenant-b", engine=engine)

    doc_id = await store_a.create("clients", {"Name": "Ada"})

    assert await store_b.get("clients", doc_id) is None
    assert await store_b.list_documents("clients") == []
    await engine.dispose()


@pytest.mark.asyncio
async def test_subscribe_delivers_initial_and_later_snapshots():
    store, engine = await make_store()
    await store.create("clients", {"Name": "Ada"})

    snapshots = []
    feed = store.subscribe("clients")

    async def consume():
        async for snapshot in feed:
            snapshots.append([d.data["Name"] for d in snapshot])

    task = asyncio.create_task(consume())
    await eventually(lambda: snapshots == [["Ada"]])
    await store.create("clients", {"Name": "Grace"})
    await eventually(lambda: snapshots[-1] == ["Ada", "Grace"])

    feed.close()
    await asyncio.wait_for(task, timeout=1)
    assert store.broadcaster.feed_count() == 0
    await engine.dispose()


@pytest.mark.asyncio
async def test_document_subscription_sees_only_that_document():
    store, engine = await make_store()
    await store.ensure("users", "u-1", {"role": "pending"})
    await store.ensure("users", "u-2", {"role": "pending"})

    feed = store.subscribe("users", document_id="u-2")
    async for snapshot in feed:
        break

    assert [d.id for d in snapshot] == ["u-2"]
    feed.close()
    await engine.dispose()


@pytest.mark.asyncio
async def test_database_errors_surface_as_store_unavailable():
    store, engine = await make_store()
    async with engine.begin() as conn:
        await conn.execute(text("DROP TABLE documents"))

    with pytest.raises(StoreUnavailableError):
        await store.list_documents("clients")
    await engine.dispose()


@pytest.mark.asyncio
async def test_now_uses_clock():
    clock = Clock()
    store, engine = await make_store(clock=clock)
    clock.now = T0 + timedelta(hours=1)
    assert await store.now() == T0 + timedelta(hours=1)
    await engine.dispose()
