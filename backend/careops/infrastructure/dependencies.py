"""FastAPI dependency injection: wires infrastructure to application layer."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends, Header, HTTPException, status

from careops.application.interfaces import DocumentStore
from careops.application.services import (
    AttendanceService,
    BroadcastService,
    ClientDirectory,
    IdentityGate,
    RecordService,
    VisitBillingService,
)
from careops.config import get_settings
from careops.domain.entities import Actor, Principal
from careops.domain.exceptions import StoreUnavailableError
from careops.infrastructure.database.session import async_session_factory
from careops.infrastructure.store.sqlalchemy_document_store import SQLAlchemyDocumentStore


@lru_cache
def get_document_store() -> DocumentStore:
    """Process-wide store bound to the configured tenant."""
    settings = get_settings()
    return SQLAlchemyDocumentStore(async_session_factory, settings.tenant_id)


async def get_principal(
    x_principal_id: str | None = Header(None),
    x_principal_email: str | None = Header(None),
    x_principal_name: str | None = Header(None),
) -> Principal:
    """Principal asserted by the upstream credential gateway."""
    if not x_principal_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authenticated principal",
        )
    return Principal(
        id=x_principal_id,
        email=x_principal_email,
        display_name=x_principal_name or "",
    )


async def get_actor(
    principal: Principal = Depends(get_principal),
    store: DocumentStore = Depends(get_document_store),
) -> Actor:
    """Resolves (and on first sight creates) the principal's profile."""
    try:
        profile = await IdentityGate(store).resolve(principal)
    except StoreUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return Actor(principal=principal, profile=profile)


async def get_record_service(
    actor: Actor = Depends(get_actor),
    store: DocumentStore = Depends(get_document_store),
) -> AsyncGenerator[RecordService, None]:
    """Provides a RecordService acting as the request's principal."""
    yield RecordService(store, lambda: actor)


async def get_visit_billing_service(
    actor: Actor = Depends(get_actor),
    store: DocumentStore = Depends(get_document_store),
    records: RecordService = Depends(get_record_service),
) -> AsyncGenerator[VisitBillingService, None]:
    """Provides a VisitBillingService that resolves clients straight from the store."""
    settings = get_settings()
    yield VisitBillingService(
        store,
        records,
        ClientDirectory.from_records(records),
        lambda: actor,
        unit_minutes=settings.billing_unit_minutes,
        fallback_minutes=settings.missing_check_in_minutes,
        deduction_attempts=settings.deduction_attempts,
    )


async def get_attendance_service(
    actor: Actor = Depends(get_actor),
    store: DocumentStore = Depends(get_document_store),
    records: RecordService = Depends(get_record_service),
) -> AsyncGenerator[AttendanceService, None]:
    yield AttendanceService(store, records, lambda: actor)


async def get_broadcast_service(
    records: RecordService = Depends(get_record_service),
) -> AsyncGenerator[BroadcastService, None]:
    yield BroadcastService(records)
