"""Feature-specific test fixtures for sync module."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from tariffsync.features.export.schemas import ExportResult
from tariffsync.features.sync.pipeline import SyncPassResult
from tariffsync.features.tariffs.schemas import TariffSnapshot, WarehouseTariffData


@pytest.fixture
def snapshot() -> TariffSnapshot:
    return TariffSnapshot(
        request_date=date(2025, 7, 20),
        warehouses=[WarehouseTariffData(warehouse_name="Коледино")],
    )


@pytest.fixture
def mock_client(snapshot) -> MagicMock:
    """Provider client double returning ``snapshot``."""
    client = MagicMock()
    client.fetch = AsyncMock(return_value=snapshot)
    return client


@pytest.fixture
def mock_export_service() -> MagicMock:
    """Export service double reporting one successful target."""
    export_service = MagicMock()
    export_service.export_latest = AsyncMock(
        return_value=[ExportResult(spreadsheet_id="sheet-1", success=True, rows_written=1)]
    )
    return export_service


@pytest.fixture
def mock_pipeline() -> MagicMock:
    """Pipeline double whose run() succeeds immediately."""
    pipeline = MagicMock()
    pipeline.run = AsyncMock(
        return_value=SyncPassResult(request_date=date(2025, 7, 20), warehouse_count=1)
    )
    return pipeline
