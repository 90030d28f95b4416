"""API routes for the MedInfo Service."""

from fastapi import APIRouter

from app.api.v1 import health, interactions, medicines, realtime, schedules

# Create main API router
api_router = APIRouter()

# Include all v1 routes
api_router.include_router(health.router, tags=["health"])
api_router.include_router(interactions.router, tags=["interactions"])
api_router.include_router(schedules.router, tags=["schedules"])
api_router.include_router(medicines.router, tags=["medicines"])

# Mounted at the application root, outside the versioned prefix
realtime_router = realtime.router

__all__ = ["api_router", "realtime_router"]
