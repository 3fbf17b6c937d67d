"""Broadcast alerts to field staff."""

from careops.application.services.record_service import RecordService
from careops.domain.exceptions import ValidationFailedError
from careops.infrastructure.logging.colored_logger import WorkflowLogger, WorkflowStage

wlog = WorkflowLogger("BroadcastService")

BROADCAST_CATEGORY = "broadcast"


class BroadcastService:
    def __init__(self, records: RecordService):
        self._records = records

    async def send(self, message: str, *, audience: str = "All Field Staff", severity: str = "High") -> str:
        message = (message or "").strip()
        if not message:
            raise ValidationFailedError("Message", "an alert message is required")
        alert_id = await self._records.append_entry(
            BROADCAST_CATEGORY,
            {"Message": message, "Audience": audience, "Severity": severity},
        )
        wlog.step_complete(WorkflowStage.BROADCAST, "Alert dispatched", audience=audience, severity=severity)
        return alert_id
