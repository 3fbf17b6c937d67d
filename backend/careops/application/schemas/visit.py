"""Pydantic schemas for visit check-in and completion."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class VisitCheckInRequest(BaseModel):
    fields: dict[str, Any] = Field(
        ..., examples=[{"Client": "Ada Lovelace", "Client_Id": "c-1", "Staff": "Grace Hopper"}],
    )


class ReconciliationGapResponse(BaseModel):
    visit_id: str
    client_ref: str | None
    units_billed: int
    reason: str


class VisitCompletionResponse(BaseModel):
    visit_id: str
    time_in: datetime
    time_out: datetime
    duration_minutes: int
    units_billed: int
    check_in_inferred: bool
    client_id: str | None = None
    units_remaining: int | None = None
    reconciliation: ReconciliationGapResponse | None = None
