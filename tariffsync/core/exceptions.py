"""Application exceptions and FastAPI exception handlers.

The same hierarchy serves the sync pipeline (where errors abort one pass and
are logged) and the HTTP API (where they render as RFC 7807 problems).
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from tariffsync.core.logging import get_logger
from tariffsync.core.problem_details import ProblemDetailResponse, problem_response

logger = get_logger(__name__)


# =============================================================================
# Exception Classes
# =============================================================================


class TariffSyncError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application error.

        Args:
            message: Human-readable error message.
            code: Machine-readable error code.
            status_code: HTTP status code.
            details: Additional error context.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    @property
    def title(self) -> str:
        """RFC 7807 title - short summary of problem type."""
        return self.code.replace("_", " ").title()


class NotFoundError(TariffSyncError):
    """Requested resource (tariff date, spreadsheet target) does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code="NOT_FOUND", status_code=404, details=details)


class ValidationError(TariffSyncError):
    """Data does not conform to the expected shape.

    Raised for provider payloads that fail schema validation; ``details``
    carries the individual violations under ``errors``.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message, code="VALIDATION_ERROR", status_code=422, details=details
        )


class BadRequestError(TariffSyncError):
    """Request parameters were rejected (by us or by the provider)."""

    def __init__(
        self,
        message: str = "Bad request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code="BAD_REQUEST", status_code=400, details=details)


class ConflictError(TariffSyncError):
    """Operation conflicts with existing state (e.g. duplicate target)."""

    def __init__(
        self,
        message: str = "Resource conflict",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code="CONFLICT", status_code=409, details=details)


class AuthError(TariffSyncError):
    """Tariff provider rejected our credentials."""

    def __init__(
        self,
        message: str = "Tariff provider rejected the API key",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message, code="PROVIDER_UNAUTHORIZED", status_code=502, details=details
        )


class RateLimitError(TariffSyncError):
    """Tariff provider is throttling us."""

    def __init__(
        self,
        message: str = "Tariff provider rate limit exceeded",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code="RATE_LIMITED", status_code=429, details=details)


class TransportError(TariffSyncError):
    """Any other network or HTTP failure talking to the provider."""

    def __init__(
        self,
        message: str = "Tariff provider request failed",
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if status_code is not None:
            details["upstream_status"] = status_code
        super().__init__(message=message, code="TRANSPORT_ERROR", status_code=502, details=details)
        self.upstream_status = status_code


class StoreError(TariffSyncError):
    """Database operation failed; the transaction was rolled back."""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code="STORE_ERROR", status_code=500, details=details)


# =============================================================================
# Exception Handlers (RFC 7807)
# =============================================================================


async def tariffsync_exception_handler(
    _request: Request,
    exc: TariffSyncError,
) -> ProblemDetailResponse:
    """Render TariffSyncError as a problem document."""
    logger.error(
        "app.error_handled",
        error=exc.message,
        error_type=type(exc).__name__,
        error_code=exc.code,
        status_code=exc.status_code,
        details=exc.details,
    )

    return problem_response(
        status=exc.status_code,
        title=exc.title,
        detail=exc.message,
        error_code=exc.code,
        errors=exc.details.get("errors"),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> ProblemDetailResponse:
    """Render request validation failures with per-field errors."""
    field_errors: list[dict[str, str]] = []
    for error in exc.errors():
        loc = error.get("loc", [])
        field_path = ".".join(str(part) for part in loc if part != "body")
        field_errors.append(
            {
                "field": field_path,
                "message": str(error.get("msg", "Validation failed")),
                "type": str(error.get("type", "unknown")),
            }
        )

    logger.warning(
        "app.validation_error",
        error_count=len(field_errors),
        path=str(request.url.path),
        fields=[e["field"] for e in field_errors],
    )

    return problem_response(
        status=422,
        title="Validation Error",
        detail=f"Request validation failed with {len(field_errors)} error(s).",
        error_code="VALIDATION_ERROR",
        errors=field_errors,
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> ProblemDetailResponse:
    """Render unexpected exceptions as a generic 500 problem."""
    logger.error(
        "app.unhandled_error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=str(request.url.path),
        exc_info=True,
    )

    return problem_response(
        status=500,
        title="Internal Server Error",
        detail="An unexpected error occurred.",
        error_code="INTERNAL_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.add_exception_handler(TariffSyncError, tariffsync_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
