"""Generic category record endpoints."""

from fastapi import APIRouter, Depends, status

from careops.application.schemas import RecordCreatedResponse, RecordResponse, RecordWrite
from careops.application.services import RecordService
from careops.domain.entities import Record
from careops.infrastructure.dependencies import get_record_service
from careops.presentation.api.errors import DOMAIN_ERRORS, to_http_exception

router = APIRouter(prefix="/records", tags=["Records"])


def _to_response(record: Record) -> RecordResponse:
    return RecordResponse(id=record.id, category=record.category, data=record.data)


@router.get("/{category}", response_model=list[RecordResponse])
async def list_records(
    category: str,
    service: RecordService = Depends(get_record_service),
) -> list[RecordResponse]:
    try:
        records = await service.list_records(category)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return [_to_response(r) for r in records]


@router.get("/{category}/{record_id}", response_model=RecordResponse)
async def get_record(
    category: str,
    record_id: str,
    service: RecordService = Depends(get_record_service),
) -> RecordResponse:
    try:
        record = await service.get_record(category, record_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return _to_response(record)


@router.post(
    "/{category}",
    response_model=RecordCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_record(
    category: str,
    body: RecordWrite,
    service: RecordService = Depends(get_record_service),
) -> RecordCreatedResponse:
    """Create a record; Status defaults to Active."""
    try:
        record_id = await service.create_record(category, body.fields)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return RecordCreatedResponse(id=record_id)


@router.patch("/{category}/{record_id}", response_model=RecordResponse)
async def update_record(
    category: str,
    record_id: str,
    body: RecordWrite,
    service: RecordService = Depends(get_record_service),
) -> RecordResponse:
    """Merge the given fields into the record and return the result."""
    try:
        await service.update_record(category, record_id, body.fields)
        record = await service.get_record(category, record_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return _to_response(record)


@router.post("/{category}/{record_id}/archive", status_code=status.HTTP_204_NO_CONTENT)
async def archive_record(
    category: str,
    record_id: str,
    service: RecordService = Depends(get_record_service),
) -> None:
    try:
        await service.archive_record(category, record_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)


@router.post("/clients/{client_id}/discharge", status_code=status.HTTP_204_NO_CONTENT)
async def discharge_client(
    client_id: str,
    service: RecordService = Depends(get_record_service),
) -> None:
    try:
        await service.discharge_client(client_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
