"""
Domain exceptions and their HTTP translation.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.core.logging import get_logger
from app.schemas.common import ErrorResponse

logger = get_logger(__name__)


class MedInfoError(Exception):
    """Base class for errors raised by the service layer."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, errors: Optional[list[Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationError(MedInfoError):
    """Malformed or insufficient input, rejected before any write."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidPairError(ValidationError):
    """A medicine cannot interact with itself."""


class InsufficientInputError(ValidationError):
    """Fewer medicines than a combination check needs."""


class NotFoundError(MedInfoError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthorizationError(MedInfoError):
    """Caller does not own the resource."""

    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(MedInfoError):
    status_code = status.HTTP_409_CONFLICT


class DuplicateInteractionError(ConflictError):
    """The canonical medicine pair already has a stored interaction."""


class DependencyError(MedInfoError):
    """The persistence layer is unreachable or failed mid-operation."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(
    error: str,
    message: str,
    errors: Optional[list[Any]] = None
) -> dict[str, Any]:
    """Build the structured error payload shared by all handlers."""
    response = ErrorResponse(
        error=error,
        message=message,
        errors=jsonable_encoder(errors) if errors else None,
    )
    return response.model_dump(mode="json", exclude_none=True)


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers that render every failure as a structured body."""

    @app.exception_handler(MedInfoError)
    async def medinfo_error_handler(request: Request, exc: MedInfoError):
        if exc.status_code >= 500:
            logger.error(
                f"{type(exc).__name__}: {exc.message}",
                extra={"path": request.url.path, "method": request.method},
                exc_info=exc
            )
        else:
            logger.info(
                f"{type(exc).__name__}: {exc.message}",
                extra={"path": request.url.path, "method": request.method}
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(type(exc).__name__, exc.message, exc.errors)
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("ValidationError", "Invalid request data", exc.errors())
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body("HTTPException", str(exc.detail)),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Handle all unhandled exceptions.

        Returns sanitized error response without sensitive information.
        """
        logger.error(
            f"Unhandled exception: {type(exc).__name__}",
            extra={
                "path": request.url.path,
                "method": request.method
            },
            exc_info=exc
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("InternalServerError", "An unexpected error occurred")
        )
