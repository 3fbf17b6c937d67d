"""SSE feed of live category snapshots for one console connection."""

import asyncio
import json
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from careops.application.interfaces import DocumentStore
from careops.application.services import RealtimeSyncManager
from careops.application.services import authorization_policy as policy
from careops.application.services.module_registry import get_module
from careops.config import get_settings
from careops.domain.entities import Actor, Profile, Record
from careops.infrastructure.dependencies import get_actor, get_document_store

router = APIRouter(tags=["Feed"])


def _event(event_type: str, data: dict) -> str:
    return f"event: {event_type}\ndata: {json.dumps(data, default=str)}\n\n"


async def _stream(
    store: DocumentStore,
    profile: Profile,
    focus: str,
) -> AsyncGenerator[str, None]:
    """Relay sync snapshots for the categories the profile may see.

    Each connection owns its sync manager; it is closed when the client
    disconnects.
    """
    queue: asyncio.Queue[str] = asyncio.Queue()

    def on_change(category: str, records: list[Record]) -> None:
        if policy.can_see(profile, category):
            queue.put_nowait(_event("snapshot", {
                "category": category,
                "records": [r.to_dict() for r in records],
            }))

    def on_error(category: str, exc: Exception) -> None:
        queue.put_nowait(_event("feed_error", {"category": category, "error": str(exc)}))

    sync = RealtimeSyncManager(
        store,
        get_settings().core_categories,
        on_change=on_change,
        on_error=on_error,
    )
    try:
        watched = sync.set_focus(focus)
        yield _event("watching", {"focus": focus, "categories": list(watched)})
        while True:
            yield await queue.get()
    finally:
        sync.close()


@router.get("/feed")
async def category_feed(
    focus: str | None = Query(None, description="Module in focus"),
    actor: Actor = Depends(get_actor),
    store: DocumentStore = Depends(get_document_store),
) -> StreamingResponse:
    """Stream ``snapshot`` events for the core categories plus the focused one.

    Unknown or hidden modules fall back to the default module.
    """
    if not actor.profile.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Profile is awaiting activation",
        )
    module = get_module(focus)
    if not policy.can_see(actor.profile, module.id):
        module = get_module(get_settings().default_focus)

    return StreamingResponse(
        _stream(store, actor.profile, module.id),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
