"""Visit billing state machine: completes EVV visits and deducts authorized units.

A visit moves ``InProgress → Completed`` exactly once. Completion writes the
billing fields to the visit, then deducts the billed units from the owning
client's balance as a second, separate write. When the client cannot be
resolved (or the deduction cannot be applied) the visit stays completed and
a ReconciliationGap is logged and returned instead of raised.
"""

from collections.abc import Callable
from typing import Any

from careops.application.interfaces import SERVER_TIMESTAMP, DocumentStore
from careops.application.services import authorization_policy as policy
from careops.application.services.client_directory import ClientDirectory
from careops.application.services.record_service import RecordService
from careops.domain.entities import (
    COMPLETION_FIELDS,
    Actor,
    ReconciliationGap,
    RecordStatus,
    VisitBilling,
    VisitCompletion,
    parse_units,
    strip_provenance,
)
from careops.domain.exceptions import EntityNotFoundError, StoreUnavailableError, ValidationFailedError
from careops.infrastructure.logging.colored_logger import WorkflowLogger, WorkflowStage

wlog = WorkflowLogger("VisitBillingService")

VISIT_CATEGORY = "evv"
CLIENT_CATEGORY = "clients"


def _in_progress(data: dict[str, Any]) -> bool:
    return data.get("Status") == RecordStatus.IN_PROGRESS.value


class VisitBillingService:
    """Check-in and completion of visits against client unit banks."""

    def __init__(
        self,
        store: DocumentStore,
        records: RecordService,
        clients: ClientDirectory,
        actor: Callable[[], Actor],
        *,
        unit_minutes: int = 15,
        fallback_minutes: int = 60,
        deduction_attempts: int = 3,
    ):
        self._store = store
        self._records = records
        self._clients = clients
        self._actor = actor
        self._unit_minutes = unit_minutes
        self._fallback_minutes = fallback_minutes
        self._deduction_attempts = max(1, deduction_attempts)

    async def check_in(self, fields: dict[str, Any]) -> str:
        """Open a visit stamped with the server's check-in time."""
        policy.ensure_can_write(self._actor().profile, VISIT_CATEGORY)
        payload = strip_provenance(fields)
        for name in ("Time_In", *COMPLETION_FIELDS):
            payload.pop(name, None)
        payload["Time_In"] = SERVER_TIMESTAMP
        payload["Status"] = RecordStatus.IN_PROGRESS.value

        visit_id = await self._records.create_record(VISIT_CATEGORY, payload)
        wlog.step_complete(WorkflowStage.CHECK_IN, "Visit opened", visit_id=visit_id, client=payload.get("Client"))
        return visit_id

    async def complete_visit(self, visit_id: str) -> VisitCompletion:
        actor = self._actor()
        policy.ensure_can_write(actor.profile, VISIT_CATEGORY)

        visit = await self._records.get_record(VISIT_CATEGORY, visit_id)
        if not _in_progress(visit.data):
            raise ValidationFailedError("Status", f"visit '{visit_id}' is {visit.status}, not InProgress")

        wlog.step_start(WorkflowStage.VISIT, "Completing visit", visit_id=visit_id, by=actor.uid)
        end = await self._store.now()
        billing = VisitBilling.compute(
            visit.get("Time_In"),
            end,
            unit_minutes=self._unit_minutes,
            fallback_minutes=self._fallback_minutes,
        )
        if billing.start_inferred:
            wlog.detail("No valid check-in time; billing the fallback duration", minutes=self._fallback_minutes)

        applied = await self._records.apply_workflow_update(
            VISIT_CATEGORY,
            visit_id,
            {
                "Time_Out": billing.end,
                "Duration_Minutes": billing.duration_minutes,
                "Units_Billed": billing.units_billed,
                "GPS_Status": "Verified",
                "Status": RecordStatus.COMPLETED.value,
            },
            guard=_in_progress,
        )
        if not applied:
            raise ValidationFailedError("Status", f"visit '{visit_id}' was completed concurrently")
        wlog.step_complete(
            WorkflowStage.VISIT,
            "Visit completed",
            minutes=billing.duration_minutes,
            units=billing.units_billed,
        )

        match = await self._clients.resolve(visit)
        if match.client is None:
            gap = self._gap(visit_id, visit, billing.units_billed, match.reason or "client not found")
            return VisitCompletion(visit_id=visit_id, billing=billing, gap=gap)

        client_id = match.client.id
        try:
            remaining = await self._deduct(client_id, billing.units_billed)
        except (EntityNotFoundError, StoreUnavailableError) as exc:
            wlog.step_error(WorkflowStage.DEDUCTION, "Unit deduction failed", error=exc)
            gap = self._gap(visit_id, visit, billing.units_billed, f"deduction failed: {exc}", client_id)
            return VisitCompletion(visit_id=visit_id, billing=billing, client_id=client_id, gap=gap)

        if remaining is None:
            gap = self._gap(visit_id, visit, billing.units_billed, "client balance kept changing", client_id)
            return VisitCompletion(visit_id=visit_id, billing=billing, client_id=client_id, gap=gap)

        return VisitCompletion(
            visit_id=visit_id,
            billing=billing,
            client_id=client_id,
            units_remaining=remaining,
        )

    async def _deduct(self, client_id: str, units: int) -> int | None:
        """Apply ``max(0, remaining - units)`` against the balance as last read.

        Retries when another writer changed the balance in between; returns
        None if it never settles.
        """
        for attempt in range(1, self._deduction_attempts + 1):
            document = await self._store.get(CLIENT_CATEGORY, client_id)
            if document is None:
                raise EntityNotFoundError(CLIENT_CATEGORY, client_id)

            observed = document.data.get("Auth_Units_Remaining")
            starting = parse_units(observed)
            if observed is None:
                starting = parse_units(document.data.get("Auth_Units_Total"))
            remaining = max(0, (starting or 0) - units)

            applied = await self._records.apply_workflow_update(
                CLIENT_CATEGORY,
                client_id,
                {"Auth_Units_Remaining": remaining},
                guard=lambda data, expected=observed: data.get("Auth_Units_Remaining") == expected,
            )
            if applied:
                wlog.step_complete(
                    WorkflowStage.DEDUCTION,
                    "Units deducted",
                    client_id=client_id,
                    units=units,
                    remaining=remaining,
                )
                return remaining
            wlog.detail("Client balance changed during deduction; retrying", attempt=attempt)
        return None

    @staticmethod
    def _gap(
        visit_id: str,
        visit: Any,
        units: int,
        reason: str,
        client_id: str | None = None,
    ) -> ReconciliationGap:
        gap = ReconciliationGap(
            visit_id=visit_id,
            client_ref=client_id or visit.get("Client_Id") or visit.get("Client"),
            units_billed=units,
            reason=reason,
        )
        wlog.step_warning(
            WorkflowStage.RECONCILE,
            "Units not deducted; reconciliation needed",
            visit_id=visit_id,
            client=gap.client_ref,
            units=units,
            reason=reason,
        )
        return gap
