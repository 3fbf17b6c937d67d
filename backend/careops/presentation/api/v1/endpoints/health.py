"""Health check endpoint: no dependencies, always available."""

from fastapi import APIRouter

from careops.config import get_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict:
    settings = get_settings()
    return {
        "status": "healthy",
        "tenant": settings.tenant_id,
        "version": settings.app_version,
        "environment": settings.app_env,
    }
