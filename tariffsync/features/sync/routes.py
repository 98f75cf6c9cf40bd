"""Sync API routes: manual pass and scheduler control."""

from datetime import date as date_type

from fastapi import APIRouter, Depends, Query, Request

from tariffsync.core.logging import get_logger
from tariffsync.features.sync.pipeline import SyncPipeline
from tariffsync.features.sync.scheduler import SyncScheduler
from tariffsync.features.sync.schemas import SchedulerStatus, SyncRunResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


def get_pipeline(request: Request) -> SyncPipeline:
    """Pipeline built at startup (see lifespan)."""
    pipeline: SyncPipeline = request.app.state.pipeline
    return pipeline


def get_scheduler(request: Request) -> SyncScheduler:
    """Scheduler built at startup (see lifespan)."""
    scheduler: SyncScheduler = request.app.state.scheduler
    return scheduler


@router.post(
    "/run",
    response_model=SyncRunResponse,
    summary="Run one sync pass now",
    description="""
Fetch the box tariffs for one date, replace the stored set for that date and
republish the latest set to every export target.

Fetch and store errors are returned as problem responses. Export failures are
reported per target in `export_results` and never fail the request.
""",
)
async def run_sync(
    request_date: date_type | None = Query(
        None, alias="date", description="Date to sync (default: today, UTC)"
    ),
    pipeline: SyncPipeline = Depends(get_pipeline),
) -> SyncRunResponse:
    """Run a pass outside the schedule."""
    logger.info("sync.run.request_received", request_date=request_date)

    result = await pipeline.run(request_date)

    logger.info(
        "sync.run.request_completed",
        request_date=result.request_date,
        warehouse_count=result.warehouse_count,
        exported=result.exported,
        export_failed=result.export_failed,
    )
    return SyncRunResponse(
        request_date=result.request_date,
        warehouse_count=result.warehouse_count,
        export_results=result.export_results,
        exported=result.exported,
        export_failed=result.export_failed,
        duration_ms=result.duration_ms,
    )


@router.get(
    "/scheduler",
    response_model=SchedulerStatus,
    summary="Scheduler status",
)
async def get_scheduler_status(
    scheduler: SyncScheduler = Depends(get_scheduler),
) -> SchedulerStatus:
    return scheduler.status()


@router.post(
    "/scheduler/start",
    response_model=SchedulerStatus,
    summary="Start the scheduler",
    description="Runs one pass immediately, then one per interval. No-op if already running.",
)
async def start_scheduler(
    scheduler: SyncScheduler = Depends(get_scheduler),
) -> SchedulerStatus:
    await scheduler.start()
    return scheduler.status()


@router.post(
    "/scheduler/stop",
    response_model=SchedulerStatus,
    summary="Stop the scheduler",
    description="Cancels future ticks; a pass already in flight finishes. No-op if idle.",
)
async def stop_scheduler(
    scheduler: SyncScheduler = Depends(get_scheduler),
) -> SchedulerStatus:
    scheduler.stop()
    return scheduler.status()
