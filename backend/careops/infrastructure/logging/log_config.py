"""Logging setup: one root handler plus per-area levels taken from Settings.

Each console area (SQL, HTTP server, live sync, billing workflows) can be
turned up or down on its own without touching the root level.

Usage:
    from careops.infrastructure.logging.log_config import setup_logging
    setup_logging()   # once, from the FastAPI lifespan
"""

import logging
import sys

from careops.config import Settings, get_settings

# Settings field -> logger names whose level it sets.
LEVEL_FIELDS: dict[str, tuple[str, ...]] = {
    "log_level_sql": ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite"),
    "log_level_uvicorn": ("uvicorn", "uvicorn.access", "uvicorn.error"),
    "log_level_sync": (
        "careops.application.services.sync_manager",
        "careops.application.services.identity_gate",
        "careops.infrastructure.store",
    ),
    "log_level_billing": (
        "VisitBillingService",
        "AttendanceService",
        "BroadcastService",
        "careops.application.services.record_service",
    ),
}

_FORMAT = "%(asctime)s %(levelname)-8s [%(tenant)s] %(name)s: %(message)s"


class TenantFilter(logging.Filter):
    """Tags every record with the tenant this process is bound to."""

    def __init__(self, tenant_id: str):
        super().__init__()
        self.tenant_id = tenant_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.tenant = self.tenant_id
        return True


def level_for(name: str) -> int:
    """Logging constant for a level name; unknown names mean INFO."""
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(settings: Settings | None = None) -> dict[str, int]:
    """Apply root and per-area levels; returns the level set on each named logger."""
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(level_for(settings.log_level))
    # uvicorn installs its own handlers; tests and scripts start with none.
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.addFilter(TenantFilter(settings.tenant_id))
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)

    applied: dict[str, int] = {}
    for field_name, logger_names in LEVEL_FIELDS.items():
        level = level_for(getattr(settings, field_name))
        for logger_name in logger_names:
            logging.getLogger(logger_name).setLevel(level)
            applied[logger_name] = level

    logging.getLogger(__name__).debug("Logging configured for tenant %s", settings.tenant_id)
    return applied
