"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from careops.config import Settings, get_settings
from careops.infrastructure.database import create_tables, engine
from careops.infrastructure.dependencies import get_document_store
from careops.infrastructure.logging.log_config import setup_logging
from careops.infrastructure.store import SQLAlchemyDocumentStore
from careops.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


def _close_live_feeds() -> None:
    store = get_document_store()
    if isinstance(store, SQLAlchemyDocumentStore):
        open_feeds = store.broadcaster.feed_count()
        store.broadcaster.shutdown()
        logger.info("Closed %d live feed(s)", open_feeds)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the document table on startup; end open SSE feeds on shutdown."""
    settings = get_settings()
    setup_logging(settings)
    await create_tables()
    logger.info("Console API up for tenant '%s' (%s)", settings.tenant_id, settings.app_env)

    yield

    _close_live_feeds()
    await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_title, version=settings.app_version, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("careops.main:app", host="0.0.0.0", port=8020, reload=True)
