"""Pydantic schemas for tariff snapshots and the tariffs API."""

from datetime import date as date_type
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class WarehouseTariffData(BaseModel):
    """Normalized tariffs of one warehouse, as produced by the provider client.

    Numeric fields are None when the provider omitted them or sent a value
    that does not parse to a finite number.
    """

    warehouse_name: str = Field(..., min_length=1, max_length=255)
    coefficient: Decimal | None = None
    delivery_base: Decimal | None = None
    delivery_per_liter: Decimal | None = None
    storage_base: Decimal | None = None
    storage_per_liter: Decimal | None = None


class TariffSnapshot(BaseModel):
    """One fetch's worth of tariff data for a single date, before persistence."""

    request_date: date_type
    next_boundary_date: date_type | None = None
    max_boundary_date: date_type | None = None
    warehouses: list[WarehouseTariffData] = Field(default_factory=list)


# =============================================================================
# API responses
# =============================================================================


class WarehouseTariffResponse(BaseModel):
    """Stored warehouse tariff row."""

    model_config = ConfigDict(from_attributes=True)

    warehouse_name: str
    coefficient: Decimal | None
    delivery_base: Decimal | None
    delivery_per_liter: Decimal | None
    storage_base: Decimal | None
    storage_per_liter: Decimal | None


class TariffSetResponse(BaseModel):
    """Stored tariffs for one request date."""

    request_date: date_type
    next_boundary_date: date_type | None
    max_boundary_date: date_type | None
    warehouse_count: int = Field(..., ge=0)
    warehouses: list[WarehouseTariffResponse]


class TariffRangeResponse(BaseModel):
    """Stored tariffs for a date range, newest date first."""

    start: date_type
    end: date_type
    items: list[TariffSetResponse]
    total: int = Field(..., ge=0)
