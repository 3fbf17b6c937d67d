"""Abstract document store interface (port): tenant-scoped collections of arbitrary documents."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


class ServerTimestamp:
    """Write-time directive: the store substitutes its own clock when persisting."""

    _instance: "ServerTimestamp | None" = None

    def __new__(cls) -> "ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = ServerTimestamp()


@dataclass
class Document:
    """A stored document as delivered by reads and change feeds."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


class ChangeFeed(ABC):
    """Handle on a live subscription.

    Iterating yields the full current contents of the watched collection (or
    single document) after every change. A store failure is raised from the
    iterator as StoreUnavailableError and ends the feed.
    """

    collection: str
    document_id: str | None = None

    @abstractmethod
    def close(self) -> None:
        """Release the subscription. Takes effect before returning."""
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[list[Document]]:
        ...


class DocumentStore(ABC):
    """Port for the realtime document store: implemented in the infrastructure layer.

    One instance is bound to one tenant; collections are never mixed across tenants.
    """

    @property
    @abstractmethod
    def tenant_id(self) -> str:
        ...

    @abstractmethod
    async def now(self) -> datetime:
        """Current server time (timezone-aware)."""
        ...

    @abstractmethod
    async def create(self, collection: str, data: dict[str, Any]) -> str:
        """Persist a new document and return its store-assigned id."""
        ...

    @abstractmethod
    async def update(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        """Merge ``data`` into an existing document. Raises EntityNotFoundError if absent."""
        ...

    @abstractmethod
    async def compare_and_update(
        self,
        collection: str,
        document_id: str,
        guard: Callable[[dict[str, Any]], bool],
        data: dict[str, Any],
    ) -> bool:
        """Merge ``data`` only if ``guard`` accepts the current contents, atomically.

        Returns False when the guard rejected the update. Raises EntityNotFoundError if absent.
        """
        ...

    @abstractmethod
    async def get(self, collection: str, document_id: str) -> Document | None:
        """Point read."""
        ...

    @abstractmethod
    async def list_documents(self, collection: str) -> list[Document]:
        """Full current contents of a collection, in insertion order."""
        ...

    @abstractmethod
    async def ensure(self, collection: str, document_id: str, defaults: dict[str, Any]) -> Document:
        """Create the document if absent; otherwise add only the missing default fields.

        Never overwrites a field that is already present.
        """
        ...

    @abstractmethod
    def subscribe(self, collection: str, *, document_id: str | None = None) -> ChangeFeed:
        """Register a change feed. Non-blocking; the first snapshot is pushed asynchronously."""
        ...
