"""Application service (use case) for generic record writes and reads."""

import logging
from collections.abc import Callable
from typing import Any

from careops.application.interfaces import SERVER_TIMESTAMP, DocumentStore
from careops.application.services import authorization_policy as policy
from careops.application.services.module_registry import is_category
from careops.domain.entities import (
    COMPLETION_FIELDS,
    Actor,
    Record,
    RecordStatus,
    parse_units,
    strip_provenance,
)
from careops.domain.exceptions import EntityNotFoundError, UnauthorizedError, ValidationFailedError

logger = logging.getLogger(__name__)

# Log categories: entries are appended and never edited or archived.
APPEND_ONLY_CATEGORIES = frozenset({"attendance"})

# Fields owned by the billing workflow; ordinary edits cannot touch them.
_WORKFLOW_OWNED: dict[str, tuple[str, ...]] = {
    "evv": ("Time_In", "Status", *COMPLETION_FIELDS),
    "clients": ("Auth_Units_Total", "Auth_Units_Remaining"),
}

# Reached only through archive_record / discharge_client, which stamp them.
_LIFECYCLE_STATUSES = {
    RecordStatus.ARCHIVED.value: "archive_record",
    RecordStatus.DISCHARGED.value: "discharge_client",
}

# Fields that must not be supplied when a record is created.
_UNSET_ON_CREATE: dict[str, tuple[str, ...]] = {
    "evv": COMPLETION_FIELDS,
}

ActorSource = Callable[[], Actor]


class RecordService:
    """Create/update/soft-delete over any category.

    Every mutation checks the authorization policy first, strips caller
    provenance and stamps its own from the acting principal and the store's
    clock. Depends on the DocumentStore port (DI).
    """

    def __init__(self, store: DocumentStore, actor: ActorSource):
        self._store = store
        self._actor = actor

    # ── Reads ────────────────────────────────────────────────────────

    async def list_records(self, category: str) -> list[Record]:
        self._require_category(category)
        policy.ensure_can_see(self._actor().profile, category)
        documents = await self._store.list_documents(category)
        return [Record(category=category, id=d.id, data=d.data) for d in documents]

    async def get_record(self, category: str, record_id: str) -> Record:
        self._require_category(category)
        policy.ensure_can_see(self._actor().profile, category)
        return await self._load(category, record_id)

    # ── Writes ───────────────────────────────────────────────────────

    async def create_record(self, category: str, fields: dict[str, Any]) -> str:
        actor = self._authorize_write(category)
        payload = strip_provenance(fields)
        self._reject_lifecycle_status(payload)
        for name in _UNSET_ON_CREATE.get(category, ()):
            payload.pop(name, None)
        if category == "clients":
            self._prepare_unit_bank(payload)

        payload["Status"] = payload.get("Status") or RecordStatus.ACTIVE.value
        payload["createdAt"] = SERVER_TIMESTAMP
        payload["createdBy"] = actor.uid

        record_id = await self._store.create(category, payload)
        logger.info("Created %s/%s by %s", category, record_id, actor.uid)
        return record_id

    async def update_record(self, category: str, record_id: str, fields: dict[str, Any]) -> None:
        actor = self._authorize_write(category)
        if category in APPEND_ONLY_CATEGORIES:
            raise ValidationFailedError("category", f"'{category}' entries cannot be edited")

        payload = strip_provenance(fields)
        self._reject_lifecycle_status(payload)
        dropped = [name for name in _WORKFLOW_OWNED.get(category, ()) if payload.pop(name, None) is not None]
        if dropped:
            logger.debug("Ignoring workflow-owned fields on %s/%s: %s", category, record_id, dropped)

        payload["updatedAt"] = SERVER_TIMESTAMP
        payload["updatedBy"] = actor.uid
        await self._store.update(category, record_id, payload)
        logger.info("Updated %s/%s by %s", category, record_id, actor.uid)

    async def append_entry(self, category: str, fields: dict[str, Any]) -> str:
        """Append a log-style entry (no default Status) with creation provenance."""
        actor = self._authorize_write(category)
        payload = strip_provenance(fields)
        payload["createdAt"] = SERVER_TIMESTAMP
        payload["createdBy"] = actor.uid
        return await self._store.create(category, payload)

    async def archive_record(self, category: str, record_id: str) -> None:
        self._require_category(category)
        actor = self._actor()
        if not policy.can_archive(actor.profile):
            raise UnauthorizedError("archive", category)
        if category in APPEND_ONLY_CATEGORIES:
            raise ValidationFailedError("category", f"'{category}' entries cannot be archived")

        record = await self._load(category, record_id)
        if record.status == RecordStatus.ARCHIVED.value:
            logger.debug("%s/%s already archived", category, record_id)
            return

        await self._store.update(
            category,
            record_id,
            {
                "Status": RecordStatus.ARCHIVED.value,
                "archivedAt": SERVER_TIMESTAMP,
                "archivedBy": actor.uid,
            },
        )
        logger.info("Archived %s/%s by %s", category, record_id, actor.uid)

    async def discharge_client(self, client_id: str) -> None:
        actor = self._actor()
        if not policy.can_discharge(actor.profile):
            raise UnauthorizedError("discharge", "clients")

        record = await self._load("clients", client_id)
        if record.status == RecordStatus.DISCHARGED.value:
            logger.debug("Client %s already discharged", client_id)
            return

        await self._store.update(
            "clients",
            client_id,
            {
                "Status": RecordStatus.DISCHARGED.value,
                "DischargedAt": SERVER_TIMESTAMP,
                "updatedAt": SERVER_TIMESTAMP,
                "updatedBy": actor.uid,
            },
        )
        logger.info("Discharged client %s by %s", client_id, actor.uid)

    # ── Workflow writes ──────────────────────────────────────────────
    #
    # Used by the billing and attendance workflows after they have made
    # their own authorization decision; these may touch workflow-owned fields.

    async def apply_workflow_update(
        self,
        category: str,
        record_id: str,
        fields: dict[str, Any],
        *,
        guard: Callable[[dict[str, Any]], bool] | None = None,
    ) -> bool:
        actor = self._actor()
        payload = strip_provenance(fields)
        payload["updatedAt"] = SERVER_TIMESTAMP
        payload["updatedBy"] = actor.uid
        if guard is None:
            await self._store.update(category, record_id, payload)
            return True
        return await self._store.compare_and_update(category, record_id, guard, payload)

    # ── Helpers ──────────────────────────────────────────────────────

    def _authorize_write(self, category: str) -> Actor:
        self._require_category(category)
        actor = self._actor()
        policy.ensure_can_write(actor.profile, category)
        return actor

    async def _load(self, category: str, record_id: str) -> Record:
        document = await self._store.get(category, record_id)
        if document is None:
            raise EntityNotFoundError(category, record_id)
        return Record(category=category, id=document.id, data=document.data)

    @staticmethod
    def _require_category(category: str) -> None:
        if not is_category(category):
            raise ValidationFailedError("category", f"unknown category '{category}'")

    @staticmethod
    def _reject_lifecycle_status(payload: dict[str, Any]) -> None:
        status = payload.get("Status")
        if isinstance(status, str) and status in _LIFECYCLE_STATUSES:
            raise ValidationFailedError("Status", f"'{status}' is only set through {_LIFECYCLE_STATUSES[status]}")

    @staticmethod
    def _prepare_unit_bank(payload: dict[str, Any]) -> None:
        for name in ("Auth_Units_Total", "Auth_Units_Remaining"):
            if name in payload and payload[name] not in (None, ""):
                units = parse_units(payload[name])
                if units is None or units < 0:
                    raise ValidationFailedError(name, "must be a non-negative integer")
                payload[name] = units
        if "Auth_Units_Remaining" not in payload and "Auth_Units_Total" in payload:
            payload["Auth_Units_Remaining"] = payload["Auth_Units_Total"]
