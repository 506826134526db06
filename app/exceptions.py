# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors should tell HOW to fix, not just WHAT failed.
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)


class UserServiceException(Exception):
    """
    Base exception for the user service.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "USER_SERVICE_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# User Exceptions
# =============================================================================

class EmailAlreadyExistsError(UserServiceException):
    """Raised when registering an e-mail that is already stored."""

    def __init__(self, email: str):
        super().__init__(
            message="Email already exists",
            code="EMAIL_ALREADY_EXISTS",
            status_code=409,
            suggestion="Register with a different e-mail address",
            details={"email": email}
        )


class UserOperationError(UserServiceException):
    """Raised when a user operation fails for an unexpected reason."""

    def __init__(self, operation: str):
        super().__init__(
            message=f"An unexpected error occurred during {operation}",
            code="USER_OPERATION_FAILED",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
        )


# =============================================================================
# Infrastructure Exceptions
# =============================================================================

class ServiceUnavailableError(UserServiceException):
    """Raised when a backing store (database, queue) cannot be reached."""

    def __init__(self, dependency: str):
        super().__init__(
            message=f"The {dependency} is temporarily unavailable",
            code="SERVICE_UNAVAILABLE",
            status_code=503,
            suggestion="Retry the request in a few moments",
            details={"dependency": dependency}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def user_service_exception_handler(
    request: Request,
    exc: UserServiceException
) -> JSONResponse:
    """
    Convert UserServiceException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors.

    Converts validation errors to user-friendly messages.
    """
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": errors,
        }
    )


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected exceptions and answer without leaking internals."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Answer 429 when a client exceeds the request limit.

    Must stay synchronous: SlowAPIMiddleware calls it without awaiting.
    """
    logger.warning(
        f"Rate limit exceeded for {get_remote_address(request)} "
        f"on {request.method} {request.url.path}: {exc.detail}"
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Rate limit exceeded: {exc.detail}",
            "code": "RATE_LIMITED",
            "suggestion": "Slow down and retry after a minute",
        }
    )


def status_code_for_exception(exc: BaseException) -> int:
    """
    Resolve the HTTP status the exception handlers will answer with.

    Used by the activity logger, which sees the exception before the
    handlers turn it into a response.
    """
    if isinstance(exc, UserServiceException):
        return exc.status_code
    if isinstance(exc, RequestValidationError):
        return 422
    # Starlette's HTTPException (FastAPI's subclasses it)
    status_code = getattr(exc, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    return 500
