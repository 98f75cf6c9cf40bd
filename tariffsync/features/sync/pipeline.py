"""One sync pass: fetch -> save -> export.

The save and the export run in separate sessions. The export only starts
after the save has committed, and an export failure can never roll the
save back.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from datetime import date as date_type

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tariffsync.core.logging import get_logger, sync_pass_id_ctx
from tariffsync.features.export.schemas import ExportResult
from tariffsync.features.export.service import ExportService
from tariffsync.features.tariffs.client import WbTariffsClient
from tariffsync.features.tariffs.service import TariffService

logger = get_logger(__name__)


@dataclass
class SyncPassResult:
    """Outcome of one successful pass."""

    request_date: date_type
    warehouse_count: int
    export_results: list[ExportResult] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def exported(self) -> int:
        return sum(1 for r in self.export_results if r.success)

    @property
    def export_failed(self) -> int:
        return sum(1 for r in self.export_results if not r.success)


def new_pass_id() -> str:
    """Short correlation id for one pass."""
    return uuid.uuid4().hex[:12]


class SyncPipeline:
    """Runs fetch, save and export for one date.

    Passes are serialized by a lock, so a manual run and a scheduled run
    never interleave.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        client: WbTariffsClient,
        export_service: ExportService,
        tariff_service: TariffService | None = None,
    ) -> None:
        self.session_maker = session_maker
        self.client = client
        self.export_service = export_service
        self.tariff_service = tariff_service or TariffService()
        self._lock = asyncio.Lock()

    async def run(self, request_date: date_type | None = None) -> SyncPassResult:
        """Execute one pass.

        Args:
            request_date: Date to sync; defaults to today (UTC) when run() is
                called, even if the pass then waits behind another one.

        Returns:
            Pass summary.

        Raises:
            TariffSyncError: Fetch errors (ValidationError, AuthError,
                RateLimitError, BadRequestError, TransportError) or StoreError.
                Export failures never raise.
        """
        request_date = request_date or datetime.now(UTC).date()
        token = sync_pass_id_ctx.set(new_pass_id()) if sync_pass_id_ctx.get() is None else None
        try:
            async with self._lock:
                return await self._run(request_date)
        finally:
            if token is not None:
                sync_pass_id_ctx.reset(token)

    async def _run(self, request_date: date_type) -> SyncPassResult:
        start_time = time.perf_counter()
        logger.info("sync.pass_started", request_date=request_date.isoformat())

        snapshot = await self.client.fetch(request_date)

        async with self.session_maker() as db:
            await self.tariff_service.save(db, snapshot)

        async with self.session_maker() as db:
            export_results = await self.export_service.export_latest(db)

        result = SyncPassResult(
            request_date=request_date,
            warehouse_count=len(snapshot.warehouses),
            export_results=export_results,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )

        logger.info(
            "sync.pass_completed",
            request_date=request_date.isoformat(),
            warehouse_count=result.warehouse_count,
            exported=result.exported,
            export_failed=result.export_failed,
            duration_ms=result.duration_ms,
        )
        return result
