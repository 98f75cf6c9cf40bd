"""Tariff read API routes."""

from datetime import date as date_type

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tariffsync.core.config import get_settings
from tariffsync.core.database import get_db
from tariffsync.core.exceptions import BadRequestError, NotFoundError
from tariffsync.features.tariffs.schemas import TariffRangeResponse, TariffSetResponse
from tariffsync.features.tariffs.service import TariffService

router = APIRouter(prefix="/tariffs", tags=["tariffs"])


@router.get(
    "",
    response_model=TariffRangeResponse,
    summary="Tariffs for a date range",
    description="Stored tariffs for every synced date in [start, end], newest first.",
)
async def get_tariffs_for_range(
    start: date_type = Query(..., description="First date (inclusive)"),
    end: date_type = Query(..., description="Last date (inclusive)"),
    db: AsyncSession = Depends(get_db),
) -> TariffRangeResponse:
    """List stored tariffs for a date range.

    Raises:
        BadRequestError: If start is after end or the span is too long.
    """
    if start > end:
        raise BadRequestError(
            message=f"start ({start}) must not be after end ({end})",
            details={"start": start.isoformat(), "end": end.isoformat()},
        )
    max_days = get_settings().tariffs_max_range_days
    if (end - start).days + 1 > max_days:
        raise BadRequestError(
            message=f"Date range exceeds {max_days} days",
            details={"max_days": max_days},
        )

    items = await TariffService().for_range(db, start, end)
    return TariffRangeResponse(
        start=start,
        end=end,
        items=[item.to_response() for item in items],
        total=len(items),
    )


@router.get(
    "/latest",
    response_model=TariffSetResponse,
    summary="Latest stored tariffs",
)
async def get_latest_tariffs(
    db: AsyncSession = Depends(get_db),
) -> TariffSetResponse:
    """Get the most recently synced tariffs.

    Raises:
        NotFoundError: If nothing has been synced yet.
    """
    latest = await TariffService().latest(db)
    if latest is None:
        raise NotFoundError(message="No tariffs have been synced yet")
    return latest.to_response()


@router.get(
    "/{request_date}",
    response_model=TariffSetResponse,
    summary="Tariffs for one date",
)
async def get_tariffs_for_date(
    request_date: date_type,
    db: AsyncSession = Depends(get_db),
) -> TariffSetResponse:
    """Get stored tariffs for a specific date.

    Raises:
        NotFoundError: If that date was never synced.
    """
    tariff_set = await TariffService().for_date(db, request_date)
    if tariff_set is None:
        raise NotFoundError(
            message=f"No tariffs stored for {request_date.isoformat()}",
            details={"request_date": request_date.isoformat()},
        )
    return tariff_set.to_response()
