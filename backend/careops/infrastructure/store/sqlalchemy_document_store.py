"""Concrete DocumentStore backed by SQLAlchemy async sessions, with in-process change feeds."""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from careops.application.interfaces import ChangeFeed, Document, DocumentStore, ServerTimestamp
from careops.domain.exceptions import EntityNotFoundError, StoreUnavailableError
from careops.infrastructure.database.models import DocumentModel
from careops.infrastructure.store.change_feed import FeedBroadcaster, QueueChangeFeed

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SQLAlchemyDocumentStore(DocumentStore):
    """Implements the DocumentStore port on a single ``documents`` table.

    After every committed write the collection's full contents are pushed to
    its open change feeds. Guarded writes (``ensure``, ``compare_and_update``)
    are serialized in-process and take a row lock where the database supports it.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        tenant_id: str,
        *,
        broadcaster: FeedBroadcaster | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._tenant_id = tenant_id
        self._broadcaster = broadcaster or FeedBroadcaster()
        self._clock = clock
        self._write_lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()

    @property
    def tenant_id(self) -> str:
        return self._tenant_id

    @property
    def broadcaster(self) -> FeedBroadcaster:
        return self._broadcaster

    async def now(self) -> datetime:
        return self._clock()

    # ── Writes ───────────────────────────────────────────────────────

    async def create(self, collection: str, data: dict[str, Any]) -> str:
        document_id = str(uuid.uuid4())
        now = self._clock()
        async with self._session("create", collection) as session:
            session.add(
                DocumentModel(
                    tenant_id=self._tenant_id,
                    collection=collection,
                    id=document_id,
                    data=self._encode(data, now),
                    created_at=now,
                    updated_at=now,
                )
            )
            await session.commit()
        logger.debug("Created %s/%s", collection, document_id)
        await self._publish(collection)
        return document_id

    async def update(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        now = self._clock()
        async with self._session("update", collection) as session:
            model = await self._find(session, collection, document_id)
            if model is None:
                raise EntityNotFoundError(collection, document_id)
            model.data = {**model.data, **self._encode(data, now)}
            model.updated_at = now
            await session.commit()
        await self._publish(collection)

    async def compare_and_update(
        self,
        collection: str,
        document_id: str,
        guard: Callable[[dict[str, Any]], bool],
        data: dict[str, Any],
    ) -> bool:
        async with self._write_lock:
            now = self._clock()
            async with self._session("compare_and_update", collection) as session:
                model = await self._find(session, collection, document_id, for_update=True)
                if model is None:
                    raise EntityNotFoundError(collection, document_id)
                if not guard(dict(model.data)):
                    await session.rollback()
                    return False
                model.data = {**model.data, **self._encode(data, now)}
                model.updated_at = now
                await session.commit()
        await self._publish(collection)
        return True

    async def ensure(self, collection: str, document_id: str, defaults: dict[str, Any]) -> Document:
        async with self._write_lock:
            now = self._clock()
            encoded = self._encode(defaults, now)
            changed = False
            async with self._session("ensure", collection) as session:
                model = await self._find(session, collection, document_id, for_update=True)
                if model is None:
                    try:
                        model = DocumentModel(
                            tenant_id=self._tenant_id,
                            collection=collection,
                            id=document_id,
                            data=encoded,
                            created_at=now,
                            updated_at=now,
                        )
                        session.add(model)
                        await session.commit()
                        changed = True
                    except IntegrityError:
                        # Another writer created it first; merge into theirs instead.
                        await session.rollback()
                        model = await self._find(session, collection, document_id, for_update=True)
                        if model is None:
                            raise
                if not changed:
                    missing = {k: v for k, v in encoded.items() if k not in model.data}
                    if missing:
                        model.data = {**model.data, **missing}
                        model.updated_at = now
                        await session.commit()
                        changed = True
                result = Document(id=model.id, data=dict(model.data))
        if changed:
            await self._publish(collection)
        return result

    # ── Reads ────────────────────────────────────────────────────────

    async def get(self, collection: str, document_id: str) -> Document | None:
        async with self._session("get", collection) as session:
            model = await self._find(session, collection, document_id)
            return self._to_document(model) if model else None

    async def list_documents(self, collection: str) -> list[Document]:
        async with self._session("list", collection) as session:
            stmt = (
                select(DocumentModel)
                .where(DocumentModel.tenant_id == self._tenant_id)
                .where(DocumentModel.collection == collection)
                .order_by(DocumentModel.position)
            )
            result = await session.execute(stmt)
            return [self._to_document(row) for row in result.scalars().all()]

    # ── Change feeds ─────────────────────────────────────────────────

    def subscribe(self, collection: str, *, document_id: str | None = None) -> ChangeFeed:
        feed = self._broadcaster.open(collection, document_id)
        task = asyncio.get_running_loop().create_task(self._prime(feed))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return feed

    async def _prime(self, feed: QueueChangeFeed) -> None:
        """Deliver the initial snapshot to a freshly opened feed."""
        try:
            documents = await self.list_documents(feed.collection)
        except StoreUnavailableError as exc:
            self._broadcaster.fail(feed.collection, exc, only=feed)
            return
        self._broadcaster.publish(feed.collection, documents, only=feed)

    async def _publish(self, collection: str) -> None:
        if not self._broadcaster.has_feeds(collection):
            return
        try:
            documents = await self.list_documents(collection)
        except StoreUnavailableError as exc:
            self._broadcaster.fail(collection, exc)
            return
        self._broadcaster.publish(collection, documents)

    # ── Helpers ──────────────────────────────────────────────────────

    @asynccontextmanager
    async def _session(self, operation: str, collection: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("Store %s on '%s' failed: %s", operation, collection, exc)
            raise StoreUnavailableError(operation, collection, exc) from exc

    async def _find(
        self,
        session: AsyncSession,
        collection: str,
        document_id: str,
        *,
        for_update: bool = False,
    ) -> DocumentModel | None:
        stmt = (
            select(DocumentModel)
            .where(DocumentModel.tenant_id == self._tenant_id)
            .where(DocumentModel.collection == collection)
            .where(DocumentModel.id == document_id)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def _to_document(model: DocumentModel) -> Document:
        return Document(id=model.id, data=dict(model.data or {}))

    @staticmethod
    def _encode(data: dict[str, Any], now: datetime) -> dict[str, Any]:
        """Resolve server timestamps and make values JSON-serializable."""
        encoded: dict[str, Any] = {}
        for key, value in data.items():
            if isinstance(value, ServerTimestamp):
                value = now.isoformat()
            elif isinstance(value, (datetime, date)):
                value = value.isoformat()
            encoded[key] = value
        return encoded
