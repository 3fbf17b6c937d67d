"""Domain entities for the attendance log."""

from dataclasses import dataclass
from datetime import date
from typing import Any

CALL_OFF = "Call-Off"

# Reasons offered by the call-off form; other non-empty reasons are accepted.
CALL_OFF_REASONS = ("Sick", "Family Emergency", "Car Trouble", "No Show", "Other")


@dataclass(frozen=True)
class AttendanceEvent:
    """Append-only attendance log entry."""

    staff: str
    reason: str
    day: date
    type: str = CALL_OFF
    note: str = ""
    staff_id: str | None = None

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "Staff": self.staff,
            "Type": self.type,
            "Reason": self.reason,
            "Note": self.note,
            "Date": self.day.isoformat(),
        }
        if self.staff_id:
            document["Staff_Id"] = self.staff_id
        return document


@dataclass(frozen=True)
class CallOffResult:
    """Outcome of a call-off: the durable log entry plus the best-effort status flip."""

    event_id: str
    staff_marked_absent: bool = False
    status_error: str | None = None
