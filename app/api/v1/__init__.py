"""API v1 routes."""

from app.api.v1 import health, interactions, medicines, realtime, schedules

__all__ = ["health", "interactions", "medicines", "realtime", "schedules"]
