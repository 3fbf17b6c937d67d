"""Domain entity for the command-center summary."""

from collections.abc import Iterable
from dataclasses import dataclass

from careops.domain.entities.record import Record, RecordStatus, parse_units

_OUT_OF_CENSUS = (RecordStatus.DISCHARGED.value, RecordStatus.ARCHIVED.value)


@dataclass(frozen=True)
class DashboardSummary:
    active_census: int = 0
    on_shift: int = 0
    unbilled_units: int = 0
    staff_total: int = 0

    @classmethod
    def from_tables(
        cls,
        clients: Iterable[Record],
        staff: Iterable[Record],
        evv: Iterable[Record],
    ) -> "DashboardSummary":
        visits = list(evv)
        completed = [v for v in visits if v.get("Status") == RecordStatus.COMPLETED.value]
        return cls(
            active_census=sum(1 for c in clients if c.status not in _OUT_OF_CENSUS),
            on_shift=len(visits) - len(completed),
            unbilled_units=sum(
                parse_units(v.get("Units_Billed")) or 0
                for v in completed
                if not v.get("Billed")
            ),
            staff_total=sum(1 for _ in staff),
        )
