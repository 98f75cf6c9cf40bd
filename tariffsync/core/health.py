"""Health check endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from tariffsync.core.database import get_db
from tariffsync.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal["ok", "degraded", "unhealthy"]
    database: Literal["connected", "disconnected"] | None = None
    sheets: Literal["initialized", "unavailable"] | None = None
    scheduler: Literal["running", "idle"] | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic liveness check.

    Returns:
        Health status response.
    """
    logger.debug("health.check_started")
    return HealthResponse(status="ok")


@router.get("/health/ready", response_model=HealthResponse)
async def readiness_check(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> HealthResponse:
    """Readiness check: database connectivity plus export and scheduler state.

    A reachable database with export unavailable reports "degraded": the
    service still syncs and serves tariffs, it just cannot publish them.

    Args:
        request: Incoming request (components live on app.state).
        db: Database session dependency.

    Returns:
        Health status with component states.
    """
    logger.debug("health.readiness_check_started")

    sheets_client = getattr(request.app.state, "sheets_client", None)
    scheduler = getattr(request.app.state, "scheduler", None)

    sheets = (
        "initialized"
        if sheets_client is not None and sheets_client.is_initialized()
        else "unavailable"
    )
    scheduler_state = "running" if scheduler is not None and scheduler.is_running else "idle"

    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(
            "health.database_disconnected",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return HealthResponse(
            status="unhealthy",
            database="disconnected",
            sheets=sheets,
            scheduler=scheduler_state,
        )

    logger.info("health.database_connected")
    return HealthResponse(
        status="ok" if sheets == "initialized" else "degraded",
        database="connected",
        sheets=sheets,
        scheduler=scheduler_state,
    )
