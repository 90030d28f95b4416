"""
Common schemas used across multiple endpoints.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON and reading ORM objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    errors: Optional[list[Any]] = Field(None, description="Field-level validation errors")
    timestamp: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "InsufficientInputError",
                "message": "At least two medicines must be provided to check for interactions",
                "timestamp": "2024-01-15T10:30:00Z"
            }
        }
    )


class HealthResponse(BaseModel):
    """Health check response."""

    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(default_factory=_utcnow)
    database: bool = Field(default=False, description="Database reachability")
    redis: bool = Field(default=False, description="Redis connection status")
    uptime_seconds: float = Field(default=0, description="Service uptime")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "service": "MedInfo Service",
                "version": "1.0.0",
                "status": "healthy",
                "timestamp": "2024-01-15T10:30:00Z",
                "database": True,
                "redis": True,
                "uptime_seconds": 3600.5
            }
        }
    )
