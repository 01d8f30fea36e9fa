"""APIRouter registration for the Scorecard Service."""

from __future__ import annotations

from fastapi import APIRouter

from scorecard.routes.catalog import router as catalog_router
from scorecard.routes.scores import router as scores_router
from scorecard.routes.sessions import router as sessions_router

api_router = APIRouter()
api_router.include_router(catalog_router, tags=["Catalog"])
api_router.include_router(sessions_router, tags=["Flow"])
api_router.include_router(scores_router, tags=["Scores"])

__all__ = ["api_router"]
