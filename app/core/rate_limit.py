"""
Rate limiting configuration using SlowAPI.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from app.config import get_settings


def _get_rate_limit_key(request: Request) -> str:
    """
    Get rate limit key based on user id, API key or IP address.

    This allows rate limiting per user when the gateway identified one.
    """
    user_id = request.headers.get("X-User-Id")
    if user_id:
        return f"user:{user_id}"

    api_key = request.headers.get("X-API-Key")
    if api_key:
        return f"api_key:{api_key[:8]}..."

    # Fall back to IP address
    return get_remote_address(request)


def get_rate_limit_string() -> str:
    """Get the rate limit string from settings."""
    settings = get_settings()
    return f"{settings.RATE_LIMIT_REQUESTS}/{settings.RATE_LIMIT_WINDOW} seconds"


limiter = Limiter(
    key_func=_get_rate_limit_key,
    enabled=get_settings().RATE_LIMIT_ENABLED,
    default_limits=[get_rate_limit_string()]
)
