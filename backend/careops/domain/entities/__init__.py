from .profile import Profile, Role
from .principal import Actor, Principal
from .module import ModuleDescriptor, ModuleGroup
from .record import (
    PROVENANCE_FIELDS,
    Record,
    RecordStatus,
    parse_timestamp,
    parse_units,
    strip_provenance,
)
from .visit import COMPLETION_FIELDS, ReconciliationGap, VisitBilling, VisitCompletion
from .attendance import CALL_OFF, CALL_OFF_REASONS, AttendanceEvent, CallOffResult
from .dashboard import DashboardSummary

__all__ = [
    "Profile",
    "Role",
    "Actor",
    "Principal",
    "ModuleDescriptor",
    "ModuleGroup",
    "PROVENANCE_FIELDS",
    "Record",
    "RecordStatus",
    "parse_timestamp",
    "parse_units",
    "strip_provenance",
    "COMPLETION_FIELDS",
    "ReconciliationGap",
    "VisitBilling",
    "VisitCompletion",
    "CALL_OFF",
    "CALL_OFF_REASONS",
    "AttendanceEvent",
    "CallOffResult",
    "DashboardSummary",
]
