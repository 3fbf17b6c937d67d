"""Broadcast alert endpoint."""

from fastapi import APIRouter, Depends, status

from careops.application.schemas import BroadcastRequest, RecordCreatedResponse
from careops.application.services import BroadcastService
from careops.infrastructure.dependencies import get_broadcast_service
from careops.presentation.api.errors import DOMAIN_ERRORS, to_http_exception

router = APIRouter(prefix="/broadcasts", tags=["Broadcasts"])


@router.post("", response_model=RecordCreatedResponse, status_code=status.HTTP_201_CREATED)
async def send_broadcast(
    body: BroadcastRequest,
    service: BroadcastService = Depends(get_broadcast_service),
) -> RecordCreatedResponse:
    try:
        broadcast_id = await service.send(
            body.message, audience=body.audience, severity=body.severity,
        )
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e)
    return RecordCreatedResponse(id=broadcast_id)
