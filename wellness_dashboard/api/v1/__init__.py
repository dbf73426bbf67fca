"""API v1 router configuration."""

from fastapi import APIRouter

from .health_checks import router as health_router
from .reports import router as reports_router

# Create the main API router
api_router = APIRouter()

api_router.include_router(reports_router, prefix="/wellness", tags=["wellness"])
api_router.include_router(health_router, tags=["health"])
