"""Tariff store: transactional reconciliation and read access.

CRITICAL: save() replaces a date's warehouse rows wholesale. The stored set
for a date always mirrors the latest fetch for that date, never a union of
historical fetches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as date_type
from typing import Any

from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from tariffsync.core.exceptions import StoreError
from tariffsync.core.logging import get_logger
from tariffsync.features.tariffs.models import TariffRequest, WarehouseTariff
from tariffsync.features.tariffs.schemas import (
    TariffSetResponse,
    TariffSnapshot,
    WarehouseTariffResponse,
)

logger = get_logger(__name__)


@dataclass
class TariffSet:
    """A stored request with its warehouses ordered by name."""

    request: TariffRequest
    warehouses: list[WarehouseTariff] = field(default_factory=list)

    def to_response(self) -> TariffSetResponse:
        """Convert to the API response schema."""
        return TariffSetResponse(
            request_date=self.request.request_date,
            next_boundary_date=self.request.next_boundary_date,
            max_boundary_date=self.request.max_boundary_date,
            warehouse_count=len(self.warehouses),
            warehouses=[WarehouseTariffResponse.model_validate(w) for w in self.warehouses],
        )


class TariffService:
    """Persists tariff snapshots and reads them back.

    All methods take the caller's session. save() owns the transaction
    boundary: it commits on success and rolls back on any failure.
    """

    async def save(self, db: AsyncSession, snapshot: TariffSnapshot) -> TariffRequest:
        """Reconcile a snapshot into the store atomically.

        Looks up the request row by date (update boundary dates, or insert),
        deletes every warehouse row of that request and bulk-inserts the
        snapshot's warehouses, then commits.

        Args:
            db: Async database session with no pending work.
            snapshot: Snapshot to persist.

        Returns:
            The reconciled TariffRequest.

        Raises:
            StoreError: If any step fails. Nothing is committed in that case.
        """
        request_date = snapshot.request_date

        try:
            result = await db.execute(
                select(TariffRequest).where(TariffRequest.request_date == request_date)
            )
            tariff_request = result.scalar_one_or_none()

            if tariff_request is not None:
                tariff_request.next_boundary_date = snapshot.next_boundary_date
                tariff_request.max_boundary_date = snapshot.max_boundary_date
                tariff_request.updated_at = func.now()
                created = False
            else:
                tariff_request = TariffRequest(
                    request_date=request_date,
                    next_boundary_date=snapshot.next_boundary_date,
                    max_boundary_date=snapshot.max_boundary_date,
                )
                db.add(tariff_request)
                created = True

            await db.flush()
            request_id = tariff_request.id

            deleted = await db.execute(
                delete(WarehouseTariff).where(WarehouseTariff.request_id == request_id)
            )

            rows: list[dict[str, Any]] = [
                {"request_id": request_id, **warehouse.model_dump()}
                for warehouse in snapshot.warehouses
            ]
            if rows:
                await db.execute(insert(WarehouseTariff), rows)

            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(
                "tariffs.save_failed",
                request_date=request_date.isoformat(),
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            raise StoreError(
                message=f"Failed to save tariffs for {request_date.isoformat()}: {e}",
                details={"request_date": request_date.isoformat(), "error": str(e)},
            ) from e

        logger.info(
            "tariffs.saved",
            request_date=request_date.isoformat(),
            request_id=request_id,
            created=created,
            warehouses_replaced=deleted.rowcount,
            warehouses_saved=len(rows),
        )
        return tariff_request

    async def latest(self, db: AsyncSession) -> TariffSet | None:
        """Get the most recent stored tariffs by request date.

        Returns:
            Latest TariffSet, or None if the store is empty.
        """
        result = await db.execute(
            select(TariffRequest).order_by(TariffRequest.request_date.desc()).limit(1)
        )
        tariff_request = result.scalar_one_or_none()
        if tariff_request is None:
            return None
        return TariffSet(tariff_request, await self._warehouses(db, tariff_request.id))

    async def for_date(self, db: AsyncSession, request_date: date_type) -> TariffSet | None:
        """Get stored tariffs for one date.

        Returns:
            TariffSet for the date, or None if that date was never synced.
        """
        result = await db.execute(
            select(TariffRequest).where(TariffRequest.request_date == request_date)
        )
        tariff_request = result.scalar_one_or_none()
        if tariff_request is None:
            return None
        return TariffSet(tariff_request, await self._warehouses(db, tariff_request.id))

    async def for_range(
        self,
        db: AsyncSession,
        start: date_type,
        end: date_type,
    ) -> list[TariffSet]:
        """Get stored tariffs for an inclusive date range, newest first.

        Args:
            db: Database session.
            start: First date (inclusive).
            end: Last date (inclusive).

        Returns:
            TariffSets ordered by request date descending.
        """
        result = await db.execute(
            select(TariffRequest)
            .where(TariffRequest.request_date.between(start, end))
            .order_by(TariffRequest.request_date.desc())
        )
        requests = list(result.scalars().all())
        if not requests:
            return []

        wh_result = await db.execute(
            select(WarehouseTariff)
            .where(WarehouseTariff.request_id.in_([r.id for r in requests]))
            .order_by(WarehouseTariff.warehouse_name)
        )
        by_request: dict[int, list[WarehouseTariff]] = {r.id: [] for r in requests}
        for warehouse in wh_result.scalars():
            by_request[warehouse.request_id].append(warehouse)

        logger.info(
            "tariffs.range_loaded",
            start=start.isoformat(),
            end=end.isoformat(),
            request_count=len(requests),
        )
        return [TariffSet(r, by_request[r.id]) for r in requests]

    async def has_data_for_date(self, db: AsyncSession, request_date: date_type) -> bool:
        """Check whether tariffs for a date have been stored."""
        result = await db.execute(
            select(func.count())
            .select_from(TariffRequest)
            .where(TariffRequest.request_date == request_date)
        )
        return result.scalar_one() > 0

    @staticmethod
    async def _warehouses(db: AsyncSession, request_id: int) -> list[WarehouseTariff]:
        result = await db.execute(
            select(WarehouseTariff)
            .where(WarehouseTariff.request_id == request_id)
            .order_by(WarehouseTariff.warehouse_name)
        )
        return list(result.scalars().all())
