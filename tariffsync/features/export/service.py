"""Export fan-out: republish the latest stored tariffs to every spreadsheet.

CRITICAL: export_latest() never raises. Targets are independent; a failure
on one is recorded in its ExportResult and the loop moves on.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tariffsync.core.exceptions import ConflictError, NotFoundError
from tariffsync.core.logging import get_logger
from tariffsync.features.export.models import Spreadsheet
from tariffsync.features.export.schemas import ExportResult, ExportRow
from tariffsync.features.export.sheets import SHEET_HEADERS
from tariffsync.features.tariffs.models import WarehouseTariff
from tariffsync.features.tariffs.service import TariffService

logger = get_logger(__name__)

NO_ACCESS_ERROR = "No access to spreadsheet"


@runtime_checkable
class SheetsClientProtocol(Protocol):
    """The subset of GoogleSheetsClient the export depends on."""

    def is_initialized(self) -> bool: ...

    async def check_access(self, spreadsheet_id: str) -> bool: ...

    async def ensure_sheet(self, spreadsheet_id: str) -> bool: ...

    async def clear(self, spreadsheet_id: str) -> None: ...

    async def write(self, spreadsheet_id: str, values: list[list[Any]]) -> int: ...

    async def format_header(self, spreadsheet_id: str) -> None: ...


def build_export_rows(
    warehouses: Sequence[WarehouseTariff],
    last_updated: datetime,
) -> list[ExportRow]:
    """Order warehouses for export and stamp them with one update time.

    Warehouses with a coefficient come first, ascending by coefficient
    (stable, so ties keep their incoming order). Warehouses without one
    follow in their incoming order, which is name-ascending from the store.

    Args:
        warehouses: Stored warehouse rows, ordered by name.
        last_updated: Timestamp captured once at the start of the pass.

    Returns:
        Export rows in sheet order.
    """
    with_coefficient = sorted(
        (w for w in warehouses if w.coefficient is not None),
        key=lambda w: w.coefficient,  # type: ignore[arg-type, return-value]
    )
    without_coefficient = [w for w in warehouses if w.coefficient is None]

    return [
        ExportRow(
            warehouse_name=w.warehouse_name,
            coefficient=w.coefficient,
            delivery_base=w.delivery_base,
            delivery_per_liter=w.delivery_per_liter,
            storage_base=w.storage_base,
            storage_per_liter=w.storage_per_liter,
            last_updated=last_updated,
        )
        for w in [*with_coefficient, *without_coefficient]
    ]


class ExportService:
    """Writes the latest tariff snapshot to all configured spreadsheets."""

    def __init__(
        self,
        sheets: SheetsClientProtocol,
        tariff_service: TariffService | None = None,
    ) -> None:
        self.sheets = sheets
        self.tariff_service = tariff_service or TariffService()

    async def export_latest(self, db: AsyncSession) -> list[ExportResult]:
        """Export the latest stored snapshot to every target, one at a time.

        Args:
            db: Database session used for reading tariffs and targets.

        Returns:
            One ExportResult per configured target, or an empty list when
            export is unavailable (no credentials, no data) or reading
            from the store failed.
        """
        start_time = time.perf_counter()
        results: list[ExportResult] = []

        try:
            if not self.sheets.is_initialized():
                logger.warning("export.skipped", reason="sheets_not_initialized")
                return results

            latest = await self.tariff_service.latest(db)
            if latest is None:
                logger.warning("export.skipped", reason="no_tariffs")
                return results

            last_updated = datetime.now(UTC)
            rows = build_export_rows(latest.warehouses, last_updated)
            targets = await list_targets(db)

            logger.info(
                "export.started",
                request_date=latest.request.request_date.isoformat(),
                row_count=len(rows),
                target_count=len(targets),
            )

            for target in targets:
                results.append(await self.export_to_spreadsheet(target.spreadsheet_id, rows))
        except Exception as e:
            logger.error(
                "export.failed",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return results

        logger.info(
            "export.completed",
            succeeded=sum(1 for r in results if r.success),
            failed=sum(1 for r in results if not r.success),
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return results

    async def export_to_spreadsheet(
        self,
        spreadsheet_id: str,
        rows: list[ExportRow],
    ) -> ExportResult:
        """Replace the export tab of one spreadsheet with the given rows.

        Args:
            spreadsheet_id: Target spreadsheet.
            rows: Ordered export rows (header is added here).

        Returns:
            Result for this target; failures are captured, not raised.
        """
        try:
            if not await self.sheets.check_access(spreadsheet_id):
                logger.error(
                    "export.target_failed",
                    spreadsheet_id=spreadsheet_id,
                    error=NO_ACCESS_ERROR,
                )
                return ExportResult(
                    spreadsheet_id=spreadsheet_id,
                    success=False,
                    error=NO_ACCESS_ERROR,
                )

            await self.sheets.ensure_sheet(spreadsheet_id)
            await self.sheets.clear(spreadsheet_id)
            updated_rows = await self.sheets.write(
                spreadsheet_id,
                [list(SHEET_HEADERS), *(row.to_values() for row in rows)],
            )
        except Exception as e:
            logger.error(
                "export.target_failed",
                spreadsheet_id=spreadsheet_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ExportResult(spreadsheet_id=spreadsheet_id, success=False, error=str(e))

        try:
            await self.sheets.format_header(spreadsheet_id)
        except Exception as e:
            logger.warning(
                "export.header_format_failed",
                spreadsheet_id=spreadsheet_id,
                error=str(e),
            )

        # Header row is not a data row
        rows_written = max(updated_rows - 1, 0)
        logger.info(
            "export.target_completed",
            spreadsheet_id=spreadsheet_id,
            rows_written=rows_written,
        )
        return ExportResult(
            spreadsheet_id=spreadsheet_id,
            success=True,
            rows_written=rows_written,
            timestamp=datetime.now(UTC),
        )


# =============================================================================
# Export targets
# =============================================================================


async def list_targets(db: AsyncSession) -> list[Spreadsheet]:
    """List configured export targets in insertion order."""
    result = await db.execute(select(Spreadsheet).order_by(Spreadsheet.id))
    targets = list(result.scalars().all())
    logger.debug("export.targets_listed", count=len(targets))
    return targets


async def add_target(db: AsyncSession, spreadsheet_id: str) -> Spreadsheet:
    """Register a spreadsheet as an export target.

    Raises:
        ConflictError: If the spreadsheet is already registered.
    """
    existing = await db.execute(
        select(Spreadsheet).where(Spreadsheet.spreadsheet_id == spreadsheet_id)
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(
            message=f"Spreadsheet {spreadsheet_id} is already an export target",
            details={"spreadsheet_id": spreadsheet_id},
        )

    target = Spreadsheet(spreadsheet_id=spreadsheet_id)
    db.add(target)
    await db.flush()
    logger.info("export.target_added", spreadsheet_id=spreadsheet_id)
    return target


async def remove_target(db: AsyncSession, spreadsheet_id: str) -> None:
    """Unregister an export target.

    Raises:
        NotFoundError: If the spreadsheet is not registered.
    """
    result = await db.execute(
        select(Spreadsheet).where(Spreadsheet.spreadsheet_id == spreadsheet_id)
    )
    target = result.scalar_one_or_none()
    if target is None:
        raise NotFoundError(
            message=f"Spreadsheet {spreadsheet_id} is not an export target",
            details={"spreadsheet_id": spreadsheet_id},
        )

    await db.delete(target)
    await db.flush()
    logger.info("export.target_removed", spreadsheet_id=spreadsheet_id)
