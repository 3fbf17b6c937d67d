"""Domain entity: a generic record belonging to one category."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class RecordStatus(str, Enum):
    """Conventional values of the free-form ``Status`` field."""

    ACTIVE = "Active"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    ARCHIVED = "Archived"
    DISCHARGED = "Discharged"
    ABSENT = "Absent"


# Stamped exclusively by the record service; never accepted from callers.
PROVENANCE_FIELDS = frozenset({
    "id",
    "createdAt",
    "createdBy",
    "updatedAt",
    "updatedBy",
    "archivedAt",
    "archivedBy",
    "DischargedAt",
})


def strip_provenance(data: dict[str, Any] | None) -> dict[str, Any]:
    """Return a copy of ``data`` without any provenance keys."""
    return {k: v for k, v in (data or {}).items() if k not in PROVENANCE_FIELDS}


def parse_timestamp(value: Any) -> datetime | None:
    """Interpret a stored timestamp (datetime or ISO-8601 string).

    Returns None for anything missing or malformed. Naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_units(value: Any) -> int | None:
    """Interpret a stored unit count; None when missing or not an integer."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


@dataclass
class Record:
    """A document from one category collection.

    ``data`` holds the field mapping exactly as stored, provenance included.
    """

    category: str
    id: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> str:
        return self.data.get("Status") or RecordStatus.ACTIVE.value

    @property
    def created_at(self) -> datetime | None:
        return parse_timestamp(self.data.get("createdAt"))

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, **self.data}
