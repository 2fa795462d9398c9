"""API v1 router aggregation."""

from fastapi import APIRouter

from filmshare.api.v1.taste_match import router as taste_match_router
from filmshare.api.v1.matcher import router as matcher_router
from filmshare.api.v1.recommendations import router as recommendations_router

router = APIRouter(prefix="/api/v1")

router.include_router(taste_match_router)
router.include_router(matcher_router)
router.include_router(recommendations_router)
