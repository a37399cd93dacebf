"""Route aggregation -- combines all API sub-routers into a single router."""

from fastapi import APIRouter

from visual_diff.api.diffs import router as diffs_router
from visual_diff.api.health import router as health_router
from visual_diff.api.status import router as status_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(diffs_router)
api_router.include_router(status_router)
