"""V1 API router: aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from careops.presentation.api.v1.endpoints.health import router as health_router
from careops.presentation.api.v1.endpoints.session import router as session_router
from careops.presentation.api.v1.endpoints.records import router as records_router
from careops.presentation.api.v1.endpoints.visits import router as visits_router
from careops.presentation.api.v1.endpoints.attendance import router as attendance_router
from careops.presentation.api.v1.endpoints.broadcasts import router as broadcasts_router
from careops.presentation.api.v1.endpoints.dashboard import router as dashboard_router
from careops.presentation.api.v1.endpoints.feed import router as feed_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(session_router)
router.include_router(records_router)
router.include_router(visits_router)
router.include_router(attendance_router)
router.include_router(broadcasts_router)
router.include_router(dashboard_router)
router.include_router(feed_router)
