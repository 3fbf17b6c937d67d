"""EVV visit check-in and completion endpoints."""

from fastapi import APIRouter, Depends, status

from careops.application.schemas import (
    ReconciliationGapResponse,
    RecordCreatedResponse,
    VisitCheckInRequest,
    VisitCompletionResponse,
)
from careops.application.services import VisitBillingService
from careops.domain.entities import VisitCompletion
from careops.infrastructure.dependencies import get_visit_billing_service
from careops.presentation.api.errors import DOMAIN_ERRORS, to_http_exception

router = APIRouter(prefix="/visits", tags=["Visits"])


def _to_response(completion: VisitCompletion) -> VisitCompletionResponse:
    gap = completion.gap
    return VisitCompletionResponse(
        visit_id=completion.visit_id,
        time_in=completion.billing.start,
        time_out=completion.billing.end,
        duration_minutes=completion.billing.duration_minutes,
        units_billed=completion.billing.units_billed,
        check_in_inferred=completion.billing.start_inferred,
        client_id=completion.client_id,
        units_remaining=completion.units_remaining,
        reconciliation=(
            ReconciliationGapResponse(
                visit_id=gap.visit_id,
                client_ref=gap.client_ref,
                units_billed=gap.units_billed,
                reason=gap.reason,
            )
            if gap
            else None
        ),
    )


@router.post("", response_model=RecordCreatedResponse, status_code=status.HTTP_201_CREATED)
async def check_in(
    body: VisitCheckInRequest,
    service: VisitBillingService = Depends(get_visit_billing_service),
) -> RecordCreatedResponse:
    """Open a visit stamped with the server's check-in time."""
    try:
        visit_id = await service.check_in(body.fields)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return RecordCreatedResponse(id=visit_id)


@router.post("/{visit_id}/complete", response_model=VisitCompletionResponse)
async def complete_visit(
    visit_id: str,
    service: VisitBillingService = Depends(get_visit_billing_service),
) -> VisitCompletionResponse:
    """Complete a visit and deduct its units from the client's authorization.

    A visit that completes but cannot be reconciled against a client comes
    back with a ``reconciliation`` entry instead of an error.
    """
    try:
        completion = await service.complete_visit(visit_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return _to_response(completion)
