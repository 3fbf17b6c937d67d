"""Pydantic schemas for attendance, broadcast and dashboard endpoints."""

from pydantic import BaseModel


class CallOffRequest(BaseModel):
    """Reason is validated by the service so an empty value gets the domain error."""

    reason: str = ""
    note: str = ""
    staff_id: str | None = None
    staff_name: str | None = None


class CallOffResponse(BaseModel):
    event_id: str
    staff_marked_absent: bool
    status_error: str | None = None


class BroadcastRequest(BaseModel):
    message: str = ""
    audience: str = "All Field Staff"
    severity: str = "High"


class DashboardResponse(BaseModel):
    active_census: int
    on_shift: int
    unbilled_units: int
    staff_total: int
