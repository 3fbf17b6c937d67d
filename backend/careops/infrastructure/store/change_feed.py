"""Feed broadcaster: in-process fan-out of collection snapshots to open change feeds."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable

from careops.application.interfaces import ChangeFeed, Document
from careops.domain.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

_Item = list[Document] | StoreUnavailableError | None


class QueueChangeFeed(ChangeFeed):
    """Change feed backed by its own asyncio.Queue.

    Snapshots are pushed without blocking; the consumer drains them with
    ``async for``. ``close()`` detaches the feed from its broadcaster
    immediately and wakes the consumer so the iteration ends.
    """

    def __init__(
        self,
        collection: str,
        document_id: str | None,
        on_close: Callable[["QueueChangeFeed"], None],
    ) -> None:
        self.collection = collection
        self.document_id = document_id
        self._on_close = on_close
        self._queue: asyncio.Queue[_Item] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, documents: list[Document]) -> None:
        if self._closed:
            return
        if self.document_id is not None:
            documents = [d for d in documents if d.id == self.document_id]
        self._queue.put_nowait(documents)

    def fail(self, error: StoreUnavailableError) -> None:
        if not self._closed:
            self._queue.put_nowait(error)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._on_close(self)
        self._queue.put_nowait(None)

    async def __aiter__(self) -> AsyncIterator[list[Document]]:
        while True:
            item = await self._queue.get()
            if item is None:
                break
            if isinstance(item, StoreUnavailableError):
                self.close()
                raise item
            yield item


class FeedBroadcaster:
    """Keeps the open feeds per collection and pushes snapshots to them."""

    def __init__(self) -> None:
        self._feeds: dict[str, list[QueueChangeFeed]] = {}

    def open(self, collection: str, document_id: str | None = None) -> QueueChangeFeed:
        feed = QueueChangeFeed(collection, document_id, on_close=self._detach)
        self._feeds.setdefault(collection, []).append(feed)
        logger.debug("Feed opened on '%s' (%d open)", collection, self.feed_count(collection))
        return feed

    def has_feeds(self, collection: str) -> bool:
        return bool(self._feeds.get(collection))

    def publish(self, collection: str, documents: list[Document], *, only: QueueChangeFeed | None = None) -> None:
        """Push a full snapshot to every open feed on ``collection`` (or just ``only``)."""
        targets = [only] if only is not None else list(self._feeds.get(collection, ()))
        for feed in targets:
            feed.push(documents)

    def fail(self, collection: str, error: StoreUnavailableError, *, only: QueueChangeFeed | None = None) -> None:
        """Terminate feeds on ``collection`` with a store error."""
        targets = [only] if only is not None else list(self._feeds.get(collection, ()))
        for feed in targets:
            feed.fail(error)
        logger.warning("Feed failure on '%s' delivered to %d feed(s)", collection, len(targets))

    def shutdown(self) -> None:
        """Close every open feed."""
        for feeds in list(self._feeds.values()):
            for feed in list(feeds):
                feed.close()
        self._feeds.clear()

    def feed_count(self, collection: str | None = None) -> int:
        if collection is not None:
            return len(self._feeds.get(collection, ()))
        return sum(len(feeds) for feeds in self._feeds.values())

    def _detach(self, feed: QueueChangeFeed) -> None:
        feeds = self._feeds.get(feed.collection)
        if feeds and feed in feeds:
            feeds.remove(feed)
            if not feeds:
                del self._feeds[feed.collection]
