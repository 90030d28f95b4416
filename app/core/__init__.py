"""Core modules for the MedInfo Service."""

from app.core.auth import get_current_user_id, verify_api_key
from app.core.cache import CacheService, get_cache_service
from app.core.errors import (
    AuthorizationError,
    ConflictError,
    DependencyError,
    DuplicateInteractionError,
    InsufficientInputError,
    InvalidPairError,
    MedInfoError,
    NotFoundError,
    ValidationError,
)
from app.core.logging import get_logger, setup_logging
from app.core.rate_limit import limiter, get_remote_address

__all__ = [
    "verify_api_key",
    "get_current_user_id",
    "CacheService",
    "get_cache_service",
    "MedInfoError",
    "ValidationError",
    "InvalidPairError",
    "InsufficientInputError",
    "NotFoundError",
    "AuthorizationError",
    "ConflictError",
    "DuplicateInteractionError",
    "DependencyError",
    "get_logger",
    "setup_logging",
    "limiter",
    "get_remote_address",
]
