"""Custom exceptions and exception handlers.

This module provides structured exception handling with:
- Custom exception classes for common error scenarios
- FastAPI exception handlers for consistent error responses
- Mapping of URL policy and ZAP failures onto HTTP status codes
- Structured error response models
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from zap_gateway.clients.zap.exceptions import ZapError
from zap_gateway.observability.logging import get_logger
from zap_gateway.services.scanning.exceptions import (
    ScanLimitExceededError,
    UrlPolicyError,
)


if TYPE_CHECKING:
    from fastapi import Request


logger = get_logger(__name__)

UPSTREAM_MESSAGE = "The scanning engine is unavailable or failed to process the request"


class ErrorDetail(BaseModel):
    """Structured error detail for validation errors."""

    code: str
    message: str
    field: str | None = None


class ErrorResponse(BaseModel):
    """Structured error response."""

    error: str
    message: str
    reason: str | None = None
    details: list[ErrorDetail] | None = None
    request_id: str | None = None


class AppError(Exception):
    """Base application exception.

    All HTTP-facing exceptions inherit from this class
    for consistent error handling.
    """

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        *,
        reason: str | None = None,
        details: list[ErrorDetail] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self.error = error
        self.message = message
        self.reason = reason
        self.details = details
        self.headers = headers
        super().__init__(message)


class UnauthorizedError(AppError):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Could not validate credentials",
        *,
        reason: str | None = None,
        challenge: str = "Bearer",
    ) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error="UNAUTHORIZED",
            message=message,
            reason=reason,
            headers={"WWW-Authenticate": challenge},
        )


class ForbiddenError(AppError):
    """Authenticated, but missing a required scope."""

    def __init__(self, message: str = "Insufficient scope") -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error="FORBIDDEN",
            message=message,
        )


class BadRequestError(AppError):
    """Bad request exception."""

    def __init__(self, message: str, *, reason: str | None = None) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="BAD_REQUEST",
            message=message,
            reason=reason,
        )


class ServiceUnavailableError(AppError):
    """A component needed for this request is not configured or reachable."""

    def __init__(self, message: str = "Service temporarily unavailable") -> None:
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error="SERVICE_UNAVAILABLE",
            message=message,
        )


def _get_request_id(request: Request) -> str | None:
    """Extract request ID from request state."""
    return getattr(request.state, "request_id", None)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with the FastAPI application."""

    @app.exception_handler(AppError)
    async def app_exception_handler(
        request: Request,
        exc: AppError,
    ) -> ORJSONResponse:
        """Handle custom application exceptions."""
        return ORJSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=exc.error,
                message=exc.message,
                reason=exc.reason,
                details=exc.details,
                request_id=_get_request_id(request),
            ).model_dump(exclude_none=True),
            headers=exc.headers,
        )

    @app.exception_handler(UrlPolicyError)
    async def url_policy_exception_handler(
        request: Request,
        exc: UrlPolicyError,
    ) -> ORJSONResponse:
        """Reject scan targets that fail the URL safety policy."""
        logger.warning(
            "Scan target rejected",
            error=exc.code,
            message=str(exc),
        )
        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(
                error=exc.code,
                message=str(exc),
                request_id=_get_request_id(request),
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(ScanLimitExceededError)
    async def scan_limit_exception_handler(
        request: Request,
        exc: ScanLimitExceededError,
    ) -> ORJSONResponse:
        """Refuse new scans while the concurrency cap is reached."""
        return ORJSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=ErrorResponse(
                error=exc.code,
                message=str(exc),
                request_id=_get_request_id(request),
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(ZapError)
    async def zap_exception_handler(
        request: Request,
        exc: ZapError,
    ) -> ORJSONResponse:
        """Hide upstream failure details behind a generic 503."""
        logger.opt(exception=exc).error("ZAP request failed", error=str(exc))
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=ErrorResponse(
                error="UPSTREAM_ERROR",
                message=UPSTREAM_MESSAGE,
                request_id=_get_request_id(request),
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> ORJSONResponse:
        """Handle Starlette HTTP exceptions."""
        return ORJSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error="HTTP_ERROR",
                message=str(exc.detail),
                request_id=_get_request_id(request),
            ).model_dump(exclude_none=True),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> ORJSONResponse:
        """Handle Pydantic validation errors."""
        details = [
            ErrorDetail(
                code="VALIDATION_ERROR",
                message=error["msg"],
                field=".".join(str(loc) for loc in error["loc"]),
            )
            for error in exc.errors()
        ]
        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ErrorResponse(
                error="VALIDATION_ERROR",
                message="Request validation failed",
                details=details,
                request_id=_get_request_id(request),
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> ORJSONResponse:
        """Handle unexpected exceptions."""
        logger.opt(exception=exc).error(
            "Unhandled exception",
            path=request.url.path,
        )
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="INTERNAL_SERVER_ERROR",
                message="An unexpected error occurred",
                request_id=_get_request_id(request),
            ).model_dump(exclude_none=True),
        )
