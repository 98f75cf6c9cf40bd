"""Pydantic schemas for the sync API."""

from datetime import date as date_type
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from tariffsync.features.export.schemas import ExportResult


class SchedulerState(str, Enum):
    """Scheduler lifecycle states.

    State transitions:
    - IDLE -> RUNNING via start() (after the first pass completes)
    - RUNNING -> IDLE via stop()
    """

    IDLE = "idle"
    RUNNING = "running"


class SchedulerStatus(BaseModel):
    """Scheduler state snapshot."""

    running: bool
    state: SchedulerState
    interval_hours: int = Field(..., ge=1)
    next_run_at: datetime | None = Field(
        None, description="Estimated as now + interval; only set while running"
    )


class SyncRunResponse(BaseModel):
    """Response body for POST /sync/run."""

    request_date: date_type
    warehouse_count: int = Field(..., ge=0, description="Warehouses stored for the date")
    export_results: list[ExportResult] = Field(default=[])
    exported: int = Field(..., ge=0, description="Spreadsheets updated")
    export_failed: int = Field(..., ge=0, description="Spreadsheets that failed")
    duration_ms: float = Field(..., ge=0)
