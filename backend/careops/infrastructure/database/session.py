"""Async engine and session factory backing the document store."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from careops.config import get_settings
from careops.infrastructure.database.base import Base

# Plain URL prefix -> async driver prefix.
_ASYNC_DRIVERS = {
    "sqlite:///": "sqlite+aiosqlite:///",
    "postgresql://": "postgresql+asyncpg://",
}


def async_url(url: str) -> str:
    """Rewrite a plain database URL onto its async driver."""
    for prefix, replacement in _ASYNC_DRIVERS.items():
        if url.startswith(prefix):
            return replacement + url[len(prefix):]
    return url


def build_engine(url: str) -> AsyncEngine:
    return create_async_engine(async_url(url), future=True)


engine = build_engine(get_settings().database_url)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def create_tables(target: AsyncEngine | None = None) -> None:
    """Create every mapped table that does not exist yet."""
    from careops.infrastructure.database import models  # noqa: F401 (registers models)

    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
