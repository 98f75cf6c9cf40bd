"""RFC 7807 Problem Details for HTTP APIs.

Every error leaving the HTTP layer is rendered as ``application/problem+json``
so operators can tell a rejected provider key from a failed database write
without reading logs.

Reference: https://datatracker.ietf.org/doc/html/rfc7807
"""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from tariffsync.core.logging import request_id_ctx

# Relative URIs keep the error catalogue portable across deployments
ERROR_TYPE_BASE = "/errors"

ERROR_TYPES = {
    "NOT_FOUND": f"{ERROR_TYPE_BASE}/not-found",
    "VALIDATION_ERROR": f"{ERROR_TYPE_BASE}/validation",
    "BAD_REQUEST": f"{ERROR_TYPE_BASE}/bad-request",
    "CONFLICT": f"{ERROR_TYPE_BASE}/conflict",
    "PROVIDER_UNAUTHORIZED": f"{ERROR_TYPE_BASE}/provider-unauthorized",
    "RATE_LIMITED": f"{ERROR_TYPE_BASE}/rate-limited",
    "TRANSPORT_ERROR": f"{ERROR_TYPE_BASE}/transport",
    "STORE_ERROR": f"{ERROR_TYPE_BASE}/store",
    "SERVICE_UNAVAILABLE": f"{ERROR_TYPE_BASE}/service-unavailable",
    "INTERNAL_ERROR": f"{ERROR_TYPE_BASE}/internal",
}


class ProblemDetail(BaseModel):
    """RFC 7807 problem document.

    Attributes:
        type: URI identifying the error type.
        title: Short human-readable summary of the problem type.
        status: HTTP status code.
        detail: Explanation specific to this occurrence.
        instance: URI reference for this occurrence.
        errors: Field-level errors (extension, present for validation failures).
        code: Machine-readable error code (extension).
        request_id: Request correlation ID (extension).
    """

    model_config = ConfigDict(extra="allow")

    type: str = Field(default="about:blank", description="Problem type URI.")
    title: str = Field(..., description="Short summary of the problem type.")
    status: int = Field(..., ge=400, le=599, description="HTTP status code.")
    detail: str | None = Field(None, description="Occurrence-specific explanation.")
    instance: str | None = Field(None, description="Occurrence URI reference.")
    errors: list[dict[str, Any]] | None = Field(None, description="Field-level errors.")
    code: str | None = Field(None, description="Machine-readable error code.")
    request_id: str | None = Field(None, description="Request correlation ID.")


class ProblemDetailResponse(JSONResponse):
    """JSON response with RFC 7807 content type."""

    media_type = "application/problem+json"


def problem_response(
    status: int,
    title: str,
    detail: str | None = None,
    error_code: str = "INTERNAL_ERROR",
    errors: list[dict[str, Any]] | None = None,
) -> ProblemDetailResponse:
    """Build a problem+json response for the current request.

    Args:
        status: HTTP status code.
        title: Short problem summary.
        detail: Detailed explanation (optional).
        error_code: Internal error code used for the type URI lookup.
        errors: Field-level errors (optional).

    Returns:
        JSONResponse with problem+json content type.
    """
    request_id = request_id_ctx.get()
    problem = ProblemDetail(
        type=ERROR_TYPES.get(error_code, f"{ERROR_TYPE_BASE}/{error_code.lower()}"),
        title=title,
        status=status,
        detail=detail,
        instance=f"/requests/{request_id}" if request_id else None,
        errors=errors,
        code=error_code,
        request_id=request_id,
    )
    return ProblemDetailResponse(
        status_code=status,
        content=problem.model_dump(exclude_none=True),
    )
