"""Realtime sync manager: keeps per-category tables fresh from live store feeds."""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from careops.application.interfaces import ChangeFeed, Document, DocumentStore
from careops.application.services.module_registry import is_category
from careops.domain.entities import Record
from careops.domain.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

ErrorObserver = Callable[[str, Exception], None]
ChangeObserver = Callable[[str, list[Record]], None]


@dataclass
class _Subscription:
    feed: ChangeFeed
    task: asyncio.Task


class RealtimeSyncManager:
    """Maintains ``category → records`` for the current watch set.

    The watch set is the fixed core categories plus the category in focus.
    Each category's table is replaced wholesale by every snapshot its feed
    delivers, so a table is either absent (not loaded yet) or the store's
    full contents as of the last notification. Categories are applied
    independently of one another.

    A feed failure ends that category's subscription, keeps its last good
    table and is reported to ``on_error``. The category is reopened on the
    next ``set_focus`` if it is still watched.
    """

    def __init__(
        self,
        store: DocumentStore,
        core_categories: Iterable[str],
        *,
        on_error: ErrorObserver | None = None,
        on_change: ChangeObserver | None = None,
    ) -> None:
        self._store = store
        self._core = tuple(dict.fromkeys(core_categories))
        self._on_error = on_error
        self._on_change = on_change
        self._focus: str | None = None
        self._subscriptions: dict[str, _Subscription] = {}
        self._tables: dict[str, list[Record]] = {}
        self._loaded: dict[str, asyncio.Event] = {}
        self._failures: dict[str, Exception] = {}

    # ── Watch set ────────────────────────────────────────────────────

    @property
    def focus(self) -> str | None:
        return self._focus

    @property
    def core_categories(self) -> tuple[str, ...]:
        return self._core

    @property
    def watch_set(self) -> tuple[str, ...]:
        categories = list(self._core)
        if self._focus and is_category(self._focus):
            categories.append(self._focus)
        return tuple(dict.fromkeys(categories))

    @property
    def subscribed(self) -> tuple[str, ...]:
        """Categories with a live subscription right now."""
        return tuple(self._subscriptions)

    @property
    def failures(self) -> dict[str, Exception]:
        return dict(self._failures)

    def set_focus(self, category: str | None) -> tuple[str, ...]:
        """Move focus and reconcile subscriptions with the new watch set.

        Released feeds are closed before this returns; new ones are only
        registered here and fill in asynchronously.
        """
        self._focus = category
        desired = self.watch_set

        for name in [c for c in self._subscriptions if c not in desired]:
            self._release(name)
            self._tables.pop(name, None)
            self._loaded.pop(name, None)

        for name in desired:
            if name not in self._subscriptions:
                self._open(name)

        logger.debug("Watch set now %s (focus=%s)", desired, category)
        return desired

    def close(self) -> None:
        """Release every subscription and clear every cached table."""
        for name in list(self._subscriptions):
            self._release(name)
        self._tables.clear()
        self._loaded.clear()
        self._failures.clear()
        self._focus = None
        logger.debug("Sync manager closed")

    # ── Read model ───────────────────────────────────────────────────

    def is_loaded(self, category: str) -> bool:
        return category in self._tables

    def records(self, category: str) -> list[Record]:
        """Current table for ``category`` (empty when not loaded)."""
        return list(self._tables.get(category, ()))

    def tables(self) -> dict[str, list[Record]]:
        return {name: list(rows) for name, rows in self._tables.items()}

    def find(self, category: str, record_id: str) -> Record | None:
        return next((r for r in self._tables.get(category, ()) if r.id == record_id), None)

    async def wait_loaded(self, category: str, timeout: float | None = None) -> list[Record]:
        """Wait until ``category`` has received its first snapshot."""
        event = self._loaded.setdefault(category, asyncio.Event())
        await asyncio.wait_for(event.wait(), timeout)
        return self.records(category)

    # ── Subscriptions ────────────────────────────────────────────────

    def _open(self, category: str) -> None:
        self._failures.pop(category, None)
        feed = self._store.subscribe(category)
        task = asyncio.get_running_loop().create_task(self._consume(category, feed))
        self._subscriptions[category] = _Subscription(feed=feed, task=task)
        logger.debug("Subscribed to '%s'", category)

    def _release(self, category: str) -> None:
        subscription = self._subscriptions.pop(category, None)
        if subscription is None:
            return
        subscription.feed.close()
        subscription.task.cancel()
        logger.debug("Released '%s'", category)

    async def _consume(self, category: str, feed: ChangeFeed) -> None:
        try:
            async for documents in feed:
                self._apply(category, feed, documents)
        except StoreUnavailableError as exc:
            self._fail(category, feed, exc)
        except Exception as exc:
            logger.exception("Unexpected error consuming feed for '%s'", category)
            feed.close()
            self._fail(category, feed, StoreUnavailableError("subscribe", category, exc))

    def _apply(self, category: str, feed: ChangeFeed, documents: list[Document]) -> None:
        if feed.closed:
            return
        rows = [Record(category=category, id=d.id, data=dict(d.data)) for d in documents]
        self._tables[category] = rows
        self._loaded.setdefault(category, asyncio.Event()).set()
        logger.debug("Snapshot for '%s': %d record(s)", category, len(rows))
        if self._on_change is not None:
            self._notify(self._on_change, category, rows)

    def _fail(self, category: str, feed: ChangeFeed, exc: Exception) -> None:
        current = self._subscriptions.get(category)
        if current is not None and current.feed is feed:
            del self._subscriptions[category]
        self._failures[category] = exc
        logger.error(
            "Feed for '%s' failed; keeping last snapshot (%d record(s)): %s",
            category,
            len(self._tables.get(category, ())),
            exc,
        )
        if self._on_error is not None:
            self._notify(self._on_error, category, exc)

    @staticmethod
    def _notify(observer: Callable, category: str, payload: object) -> None:
        try:
            observer(category, payload)
        except Exception:
            logger.exception("Sync observer failed for '%s'", category)
