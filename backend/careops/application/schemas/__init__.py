from .record import RecordWrite, RecordCreatedResponse, RecordResponse
from .session import ProfileResponse, ModuleResponse
from .visit import VisitCheckInRequest, ReconciliationGapResponse, VisitCompletionResponse
from .attendance import CallOffRequest, CallOffResponse, BroadcastRequest, DashboardResponse

__all__ = [
    "RecordWrite",
    "RecordCreatedResponse",
    "RecordResponse",
    "ProfileResponse",
    "ModuleResponse",
    "VisitCheckInRequest",
    "ReconciliationGapResponse",
    "VisitCompletionResponse",
    "CallOffRequest",
    "CallOffResponse",
    "BroadcastRequest",
    "DashboardResponse",
]
