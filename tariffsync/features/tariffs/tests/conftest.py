"""Feature-specific test fixtures for tariffs module."""

from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import Any

import httpx
import pytest

from tariffsync.features.tariffs.client import WbTariffsClient
from tariffsync.features.tariffs.schemas import TariffSnapshot, WarehouseTariffData

BASE_URL = "https://wb.test"


def make_payload(
    warehouses: list[dict[str, Any]],
    dt_next_box: str = "",
    dt_till_max: str = "2025-07-31",
) -> dict[str, Any]:
    """Build a box tariffs payload in the provider's wire shape."""
    return {
        "response": {
            "data": {
                "dtNextBox": dt_next_box,
                "dtTillMax": dt_till_max,
                "warehouseList": warehouses,
            }
        }
    }


def make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    api_key: str | None = None,
) -> WbTariffsClient:
    """Provider client whose transport is answered by ``handler``."""
    http_client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return WbTariffsClient(base_url=BASE_URL, api_key=api_key, http_client=http_client)


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    """Two warehouses: one complete, one without a coefficient."""
    return make_payload(
        [
            {
                "warehouseName": "Коледино",
                "boxDeliveryAndStorageExpr": "160",
                "boxDeliveryBase": "48,0",
                "boxDeliveryLiter": "11,2",
                "boxStorageBase": "0,1",
                "boxStorageLiter": "0,1",
            },
            {
                "warehouseName": "Маркетплейс",
                "boxDeliveryAndStorageExpr": "-",
                "boxDeliveryBase": " 1 000,5 ",
                "boxDeliveryLiter": "",
                "boxStorageBase": "-",
                "boxStorageLiter": "-",
            },
        ]
    )


def make_snapshot(request_date: date, names: list[str], coefficient: str = "100") -> TariffSnapshot:
    """Snapshot with one warehouse per name, all sharing a coefficient."""
    return TariffSnapshot(
        request_date=request_date,
        next_boundary_date=None,
        max_boundary_date=date(2025, 7, 31),
        warehouses=[
            WarehouseTariffData(
                warehouse_name=name,
                coefficient=Decimal(coefficient),
                delivery_base=Decimal("48.00"),
                delivery_per_liter=Decimal("11.20"),
                storage_base=Decimal("0.10"),
                storage_per_liter=None,
            )
            for name in names
        ],
    )


@pytest.fixture
def payload_factory() -> Callable[..., dict[str, Any]]:
    """Factory for provider payloads."""
    return make_payload


@pytest.fixture
def client_factory() -> Callable[..., WbTariffsClient]:
    """Factory for provider clients backed by a MockTransport handler."""
    return make_client


@pytest.fixture
def snapshot_factory() -> Callable[..., TariffSnapshot]:
    """Factory for tariff snapshots."""
    return make_snapshot
