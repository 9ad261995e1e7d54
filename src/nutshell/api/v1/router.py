"""API v1 router aggregator."""

from fastapi import APIRouter

from nutshell.api.v1.preferences import router as preferences_router
from nutshell.api.v1.summaries import router as summaries_router

router = APIRouter(prefix="/api/v1")
router.include_router(summaries_router)
router.include_router(preferences_router)
