"""Attendance / call-off workflow."""

from collections.abc import Callable
from datetime import datetime, timezone

from careops.application.interfaces import DocumentStore
from careops.application.services import authorization_policy as policy
from careops.application.services.record_service import RecordService
from careops.domain.entities import Actor, AttendanceEvent, CallOffResult, Record, RecordStatus
from careops.domain.exceptions import (
    EntityNotFoundError,
    StoreUnavailableError,
    UnauthorizedError,
    ValidationFailedError,
)
from careops.infrastructure.logging.colored_logger import WorkflowLogger, WorkflowStage

wlog = WorkflowLogger("AttendanceService")

ATTENDANCE_CATEGORY = "attendance"
STAFF_CATEGORY = "staff"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class AttendanceService:
    """Appends call-off events and, for elevated callers, marks the staff member absent.

    The log entry is the durable record. The status flip is a separate
    best-effort write; a failure is logged and reported in the result and
    can be retried with ``mark_staff_absent``.
    """

    def __init__(self, store: DocumentStore, records: RecordService, actor: Callable[[], Actor]):
        self._store = store
        self._records = records
        self._actor = actor

    async def log_call_off(
        self,
        reason: str,
        *,
        note: str = "",
        staff_id: str | None = None,
        staff_name: str | None = None,
    ) -> CallOffResult:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationFailedError("Reason", "a call-off reason is required")

        actor = self._actor()
        policy.ensure_can_write(actor.profile, ATTENDANCE_CATEGORY)

        today = (await self._store.now()).date()
        event = AttendanceEvent(
            staff=(staff_name or "").strip() or "Unknown",
            reason=reason,
            day=today,
            note=(note or "").strip(),
            staff_id=staff_id,
        )
        event_id = await self._records.append_entry(ATTENDANCE_CATEGORY, event.to_document())
        wlog.step_complete(WorkflowStage.CALL_OFF, "Call-off logged", staff=event.staff, reason=reason)

        if not staff_id or not actor.profile.is_elevated:
            return CallOffResult(event_id=event_id)

        try:
            await self.mark_staff_absent(staff_id)
        except (EntityNotFoundError, StoreUnavailableError) as exc:
            wlog.step_error(WorkflowStage.CALL_OFF, f"Could not mark staff {staff_id} absent", error=exc)
            return CallOffResult(event_id=event_id, status_error=str(exc))
        return CallOffResult(event_id=event_id, staff_marked_absent=True)

    async def mark_staff_absent(self, staff_id: str) -> None:
        """Flip a staff record's Status to Absent (elevated roles only)."""
        actor = self._actor()
        if not (actor.profile.is_active and actor.profile.is_elevated):
            raise UnauthorizedError("mark staff absent", STAFF_CATEGORY)
        await self._records.apply_workflow_update(
            STAFF_CATEGORY,
            staff_id,
            {"Status": RecordStatus.ABSENT.value},
        )
        wlog.detail("Staff marked absent", staff_id=staff_id)

    async def recent_events(self, limit: int = 20) -> list[Record]:
        """Newest attendance events first."""
        events = await self._records.list_records(ATTENDANCE_CATEGORY)
        events.sort(key=lambda e: e.created_at or _EPOCH, reverse=True)
        return events[:limit]
