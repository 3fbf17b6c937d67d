"""Command-center dashboard endpoint."""

from fastapi import APIRouter, Depends

from careops.application.schemas import DashboardResponse
from careops.application.services import RecordService
from careops.domain.entities import DashboardSummary
from careops.infrastructure.dependencies import get_record_service
from careops.presentation.api.errors import DOMAIN_ERRORS, to_http_exception

router = APIRouter(tags=["Dashboard"])


@router.get("/dashboard", response_model=DashboardResponse)
async def read_dashboard(
    service: RecordService = Depends(get_record_service),
) -> DashboardResponse:
    """Census, shift and unbilled-unit counters over the live tables."""
    try:
        summary = DashboardSummary.from_tables(
            await service.list_records("clients"),
            await service.list_records("staff"),
            await service.list_records("evv"),
        )
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return DashboardResponse(
        active_census=summary.active_census,
        on_shift=summary.on_shift,
        unbilled_units=summary.unbilled_units,
        staff_total=summary.staff_total,
    )
