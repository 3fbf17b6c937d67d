"""Client directory: resolves the client a visit bills against."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from careops.domain.entities import Record

ClientLoader = Callable[[], Awaitable[list[Record]]]


@dataclass(frozen=True)
class ClientMatch:
    client: Record | None
    reason: str | None = None


class ClientDirectory:
    """Looks clients up by ``Client_Id``, falling back to an exact name match.

    The name fallback serves visits recorded before ``Client_Id`` existed; it
    refuses to pick when several clients share the name.
    """

    def __init__(self, loader: ClientLoader):
        self._loader = loader

    @classmethod
    def from_sync(cls, sync) -> "ClientDirectory":
        """Directory over a RealtimeSyncManager's cached ``clients`` table."""

        async def load() -> list[Record]:
            return sync.records("clients")

        return cls(load)

    @classmethod
    def from_records(cls, records) -> "ClientDirectory":
        """Directory that reads the ``clients`` collection through a RecordService."""

        async def load() -> list[Record]:
            return await records.list_records("clients")

        return cls(load)

    async def resolve(self, visit: Record) -> ClientMatch:
        clients = await self._loader()

        client_id = visit.get("Client_Id")
        if client_id:
            by_id = {c.id: c for c in clients}
            if client_id in by_id:
                return ClientMatch(by_id[client_id])
            return ClientMatch(None, f"no client with id '{client_id}'")

        name = str(visit.get("Client") or "").strip()
        if not name:
            return ClientMatch(None, "visit has no client reference")

        matches = [c for c in clients if str(c.get("Name") or "").strip() == name]
        if len(matches) == 1:
            return ClientMatch(matches[0])
        if not matches:
            return ClientMatch(None, f"no client named '{name}'")
        return ClientMatch(None, f"{len(matches)} clients named '{name}'")
