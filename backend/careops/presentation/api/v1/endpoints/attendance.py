"""Attendance endpoints: call-offs, the absent retry and the recent log."""

from fastapi import APIRouter, Depends, Query, status

from careops.application.schemas import CallOffRequest, CallOffResponse, RecordResponse
from careops.application.services import AttendanceService
from careops.config import get_settings
from careops.domain.entities import CALL_OFF_REASONS
from careops.infrastructure.dependencies import get_attendance_service
from careops.presentation.api.errors import DOMAIN_ERRORS, to_http_exception

router = APIRouter(prefix="/attendance", tags=["Attendance"])


@router.get("/reasons")
async def call_off_reasons() -> list[str]:
    """Reasons offered by the call-off form; any non-empty reason is accepted."""
    return list(CALL_OFF_REASONS)


@router.post("/call-offs", response_model=CallOffResponse, status_code=status.HTTP_201_CREATED)
async def log_call_off(
    body: CallOffRequest,
    service: AttendanceService = Depends(get_attendance_service),
) -> CallOffResponse:
    """Log a call-off.

    The event is always kept once written; a failed status flip is reported
    in ``status_error`` and can be retried through the absent endpoint.
    """
    try:
        result = await service.log_call_off(
            body.reason,
            note=body.note,
            staff_id=body.staff_id,
            staff_name=body.staff_name,
        )
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return CallOffResponse(
        event_id=result.event_id,
        staff_marked_absent=result.staff_marked_absent,
        status_error=result.status_error,
    )


@router.post("/staff/{staff_id}/absent", status_code=status.HTTP_204_NO_CONTENT)
async def mark_staff_absent(
    staff_id: str,
    service: AttendanceService = Depends(get_attendance_service),
) -> None:
    try:
        await service.mark_staff_absent(staff_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)


@router.get("/recent", response_model=list[RecordResponse])
async def recent_events(
    limit: int | None = Query(None, ge=1, le=200),
    service: AttendanceService = Depends(get_attendance_service),
) -> list[RecordResponse]:
    try:
        events = await service.recent_events(limit or get_settings().attendance_feed_limit)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return [RecordResponse(id=e.id, category=e.category, data=e.data) for e in events]
