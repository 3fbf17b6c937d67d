"""Domain entities for visit (EVV) billing."""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from careops.domain.entities.record import parse_timestamp

# Written once, by visit completion only.
COMPLETION_FIELDS = ("Time_Out", "Duration_Minutes", "Units_Billed")


@dataclass(frozen=True)
class VisitBilling:
    """Elapsed time and billable units for one visit."""

    start: datetime
    end: datetime
    duration_minutes: int
    units_billed: int
    start_inferred: bool = False

    @classmethod
    def compute(
        cls,
        time_in: Any,
        end: datetime,
        *,
        unit_minutes: int = 15,
        fallback_minutes: int = 60,
    ) -> "VisitBilling":
        """Bill the interval from ``time_in`` to ``end``.

        A missing or malformed check-in is billed as ``fallback_minutes``.
        Partial units always round up.
        """
        start = parse_timestamp(time_in)
        inferred = start is None
        if start is None:
            start = end - timedelta(minutes=fallback_minutes)

        minutes = max(0.0, (end - start).total_seconds() / 60)
        return cls(
            start=start,
            end=end,
            duration_minutes=math.floor(minutes + 0.5),
            units_billed=math.ceil(minutes / unit_minutes),
            start_inferred=inferred,
        )


@dataclass(frozen=True)
class ReconciliationGap:
    """A completed visit whose units could not be deducted from a client balance."""

    visit_id: str
    client_ref: str | None
    units_billed: int
    reason: str


@dataclass(frozen=True)
class VisitCompletion:
    """Outcome of completing a visit."""

    visit_id: str
    billing: VisitBilling
    client_id: str | None = None
    units_remaining: int | None = None
    gap: ReconciliationGap | None = None

    @property
    def deducted(self) -> bool:
        return self.gap is None and self.client_id is not None
