"""Tests for the sync pipeline."""

import asyncio
from datetime import UTC, date, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from tariffsync.core.exceptions import AuthError, StoreError
from tariffsync.core.logging import sync_pass_id_ctx
from tariffsync.features.sync import pipeline as pipeline_module
from tariffsync.features.sync.pipeline import SyncPipeline
from tariffsync.features.tariffs.service import TariffService


@pytest.fixture
def pipeline(session_maker, mock_client, mock_export_service) -> SyncPipeline:
    return SyncPipeline(
        session_maker=session_maker,
        client=mock_client,
        export_service=mock_export_service,
    )


class TestSyncPipeline:
    """Tests for SyncPipeline.run."""

    @pytest.mark.asyncio
    async def test_run_fetches_saves_and_exports(
        self, pipeline, session_maker, mock_client, mock_export_service
    ):
        """A pass stores the fetched snapshot and then exports."""
        result = await pipeline.run(date(2025, 7, 20))

        mock_client.fetch.assert_awaited_once_with(date(2025, 7, 20))
        mock_export_service.export_latest.assert_awaited_once()
        assert result.request_date == date(2025, 7, 20)
        assert result.warehouse_count == 1
        assert result.exported == 1
        assert result.export_failed == 0

        async with session_maker() as db:
            assert await TariffService().has_data_for_date(db, date(2025, 7, 20)) is True

    @pytest.mark.asyncio
    async def test_run_defaults_to_today_utc(self, pipeline, mock_client):
        await pipeline.run()

        mock_client.fetch.assert_awaited_once_with(datetime.now(UTC).date())

    @pytest.mark.asyncio
    async def test_fetch_error_skips_save_and_export(
        self, pipeline, session_maker, mock_client, mock_export_service
    ):
        """A failed fetch writes nothing and exports nothing."""
        mock_client.fetch.side_effect = AuthError()

        with pytest.raises(AuthError):
            await pipeline.run(date(2025, 7, 20))

        mock_export_service.export_latest.assert_not_called()
        async with session_maker() as db:
            assert await TariffService().latest(db) is None

    @pytest.mark.asyncio
    async def test_store_error_skips_export(self, pipeline, mock_export_service):
        """Export never runs on top of a failed save."""
        pipeline.tariff_service = AsyncMock()
        pipeline.tariff_service.save.side_effect = StoreError()

        with pytest.raises(StoreError):
            await pipeline.run(date(2025, 7, 20))

        mock_export_service.export_latest.assert_not_called()

    @pytest.mark.asyncio
    async def test_export_failure_keeps_saved_data(
        self, pipeline, session_maker, mock_export_service
    ):
        """Export runs after the save committed, so its failure cannot undo it."""
        mock_export_service.export_latest.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await pipeline.run(date(2025, 7, 20))

        async with session_maker() as db:
            assert await TariffService().has_data_for_date(db, date(2025, 7, 20)) is True

    @pytest.mark.asyncio
    async def test_passes_are_serialized(self, pipeline, mock_client, snapshot):
        """Concurrent runs never overlap."""
        active = 0
        max_active = 0

        async def slow_fetch(request_date):
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0.01)
            active -= 1
            return snapshot

        mock_client.fetch.side_effect = slow_fetch

        await asyncio.gather(pipeline.run(date(2025, 7, 20)), pipeline.run(date(2025, 7, 20)))

        assert max_active == 1
        assert mock_client.fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_default_date_is_taken_before_waiting(
        self, pipeline, mock_client, monkeypatch
    ):
        """A pass queued behind another keeps the date it was requested on."""
        clock = MagicMock()
        clock.now.return_value = datetime(2025, 7, 20, 23, 59, tzinfo=UTC)
        monkeypatch.setattr(pipeline_module, "datetime", clock)

        async with pipeline._lock:
            queued = asyncio.create_task(pipeline.run())
            await asyncio.sleep(0)
            clock.now.return_value = datetime(2025, 7, 21, 0, 1, tzinfo=UTC)

        await queued

        mock_client.fetch.assert_awaited_once_with(date(2025, 7, 20))

    @pytest.mark.asyncio
    async def test_run_binds_pass_id(self, pipeline, mock_client, snapshot):
        """Every pass runs with a sync pass id for log correlation."""
        seen: list[str | None] = []

        async def fetch(request_date):
            seen.append(sync_pass_id_ctx.get())
            return snapshot

        mock_client.fetch.side_effect = fetch

        await pipeline.run(date(2025, 7, 20))

        assert seen[0] is not None
        assert sync_pass_id_ctx.get() is None
