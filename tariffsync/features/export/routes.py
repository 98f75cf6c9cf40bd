"""Export API routes: manual export run and export target management."""

import time

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from tariffsync.core.database import get_db
from tariffsync.core.logging import get_logger
from tariffsync.features.export.schemas import (
    ExportRunResponse,
    SpreadsheetCreate,
    SpreadsheetListResponse,
    SpreadsheetResponse,
)
from tariffsync.features.export.service import (
    ExportService,
    add_target,
    list_targets,
    remove_target,
)

logger = get_logger(__name__)

router = APIRouter(tags=["export"])


def get_export_service(request: Request) -> ExportService:
    """Export service built at startup (see lifespan)."""
    export_service: ExportService = request.app.state.export_service
    return export_service


@router.post(
    "/export/run",
    response_model=ExportRunResponse,
    summary="Export latest tariffs now",
    description="""
Republish the latest stored tariffs to every configured spreadsheet.

Targets are processed one at a time and fail independently. The response has
one result per target. An empty list means export is unavailable (Google
credentials not loaded) or nothing has been synced yet.
""",
)
async def run_export(
    db: AsyncSession = Depends(get_db),
    export_service: ExportService = Depends(get_export_service),
) -> ExportRunResponse:
    """Run one export pass outside the schedule."""
    start_time = time.perf_counter()
    logger.info("export.run.request_received")

    results = await export_service.export_latest(db)
    duration_ms = (time.perf_counter() - start_time) * 1000

    succeeded = sum(1 for r in results if r.success)
    logger.info(
        "export.run.request_completed",
        targets=len(results),
        succeeded=succeeded,
        duration_ms=round(duration_ms, 2),
    )
    return ExportRunResponse(
        results=results,
        total=len(results),
        succeeded=succeeded,
        failed=len(results) - succeeded,
        duration_ms=round(duration_ms, 2),
    )


@router.get(
    "/spreadsheets",
    response_model=SpreadsheetListResponse,
    summary="List export targets",
)
async def get_spreadsheets(
    db: AsyncSession = Depends(get_db),
) -> SpreadsheetListResponse:
    """List spreadsheets the tariffs are exported to."""
    targets = await list_targets(db)
    return SpreadsheetListResponse(
        spreadsheets=[SpreadsheetResponse.model_validate(t) for t in targets],
        total=len(targets),
    )


@router.post(
    "/spreadsheets",
    response_model=SpreadsheetResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add export target",
    description="Takes effect on the next export pass; no restart needed.",
)
async def create_spreadsheet(
    body: SpreadsheetCreate,
    db: AsyncSession = Depends(get_db),
) -> SpreadsheetResponse:
    """Register a spreadsheet as an export target.

    Raises:
        ConflictError: If the spreadsheet is already registered.
    """
    target = await add_target(db, body.spreadsheet_id)
    return SpreadsheetResponse.model_validate(target)


@router.delete(
    "/spreadsheets/{spreadsheet_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove export target",
)
async def delete_spreadsheet(
    spreadsheet_id: str,
    db: AsyncSession = Depends(get_db),
) -> None:
    """Unregister an export target.

    Raises:
        NotFoundError: If the spreadsheet is not registered.
    """
    await remove_target(db, spreadsheet_id)
