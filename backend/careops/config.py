from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Care Operations Console API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    database_url: str = "sqlite:///./careops.db"
    cors_origins: list[str] = ["http://localhost:5173"]

    # Every collection access is scoped under this tenant for the process lifetime
    tenant_id: str = "help-homecare-prod"

    # Realtime sync: categories kept subscribed regardless of focus
    core_categories: list[str] = [
        "clients",
        "staff",
        "evv",
        "broadcast",
        "attendance",
        "scheduling",
    ]
    default_focus: str = "dashboard"

    # Visit billing policy
    billing_unit_minutes: int = 15
    missing_check_in_minutes: int = 60
    deduction_attempts: int = 3

    attendance_feed_limit: int = 20

    # Logging: per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine: SQL queries
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_sync: str = "INFO"             # Realtime feeds and the sync manager
    log_level_billing: str = "INFO"          # Visit billing and attendance workflows

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance: reads .env once."""
    return Settings()
