"""Feature-specific test fixtures for export module."""

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from tariffsync.features.export.sheets import GoogleSheetsClient
from tariffsync.features.tariffs.schemas import TariffSnapshot, WarehouseTariffData
from tariffsync.features.tariffs.service import TariffService


@pytest.fixture
def mock_sheets() -> MagicMock:
    """Initialized Sheets client double where every call succeeds."""
    sheets = MagicMock()
    sheets.is_initialized.return_value = True
    sheets.check_access = AsyncMock(return_value=True)
    sheets.ensure_sheet = AsyncMock(return_value=False)
    sheets.clear = AsyncMock(return_value=None)
    sheets.write = AsyncMock(return_value=5)
    sheets.format_header = AsyncMock(return_value=None)
    return sheets


@pytest.fixture
def coefficient_snapshot() -> TariffSnapshot:
    """Warehouses A..D with coefficients 150, none, 90, 120."""
    coefficients = {"A": "150", "B": None, "C": "90", "D": "120"}
    return TariffSnapshot(
        request_date=date(2025, 7, 20),
        warehouses=[
            WarehouseTariffData(
                warehouse_name=name,
                coefficient=Decimal(value) if value is not None else None,
                delivery_base=Decimal("48"),
            )
            for name, value in coefficients.items()
        ],
    )


@pytest.fixture
async def stored_snapshot(db_session, coefficient_snapshot) -> TariffSnapshot:
    """Persist the coefficient snapshot."""
    await TariffService().save(db_session, coefficient_snapshot)
    return coefficient_snapshot


@pytest.fixture
def sheets_client_factory() -> Callable[..., GoogleSheetsClient]:
    """Factory for Sheets clients with fake credentials and a MockTransport."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> GoogleSheetsClient:
        http_client = httpx.AsyncClient(
            base_url="https://sheets.test/v4/spreadsheets",
            transport=httpx.MockTransport(handler),
        )
        client = GoogleSheetsClient(
            credentials_file="unused.json",
            scopes=["https://www.googleapis.com/auth/spreadsheets"],
            http_client=http_client,
        )
        client._credentials = MagicMock(valid=True, token="test-token")
        return client

    return _make
