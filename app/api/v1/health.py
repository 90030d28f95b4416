"""
Health check and monitoring endpoints.
"""

import time
from datetime import datetime, timezone

from fastapi import APIRouter
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from app.config import get_settings
from app.core.cache import get_cache_service
from app.db.session import check_db
from app.schemas.common import HealthResponse

router = APIRouter()

# Track startup time
_startup_time = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Check service health and backing store availability.

    No authentication required for health checks. The service is degraded
    when the database is unreachable; Redis is optional.
    """
    settings = get_settings()
    cache = await get_cache_service()
    database_ok = await run_in_threadpool(check_db)

    return HealthResponse(
        service=settings.APP_NAME,
        version=settings.APP_VERSION,
        status="healthy" if database_ok else "degraded",
        timestamp=datetime.now(timezone.utc),
        database=database_ok,
        redis=cache.is_connected,
        uptime_seconds=time.time() - _startup_time
    )


@router.get("/metrics")
async def prometheus_metrics():
    """
    Expose Prometheus metrics.

    No authentication for metrics endpoint.
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
