from . import module_registry
from . import authorization_policy
from .identity_gate import GateState, IdentityGate
from .sync_manager import RealtimeSyncManager
from .record_service import RecordService
from .client_directory import ClientDirectory, ClientMatch
from .visit_billing_service import VisitBillingService
from .attendance_service import AttendanceService
from .broadcast_service import BroadcastService
from .console_session import ConsoleSession

__all__ = [
    "module_registry",
    "authorization_policy",
    "GateState",
    "IdentityGate",
    "RealtimeSyncManager",
    "RecordService",
    "ClientDirectory",
    "ClientMatch",
    "VisitBillingService",
    "AttendanceService",
    "BroadcastService",
    "ConsoleSession",
]
