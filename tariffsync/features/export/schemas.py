"""Pydantic schemas for spreadsheet export."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ExportRow(BaseModel):
    """One warehouse line of the exported sheet."""

    warehouse_name: str
    coefficient: Decimal | None = None
    delivery_base: Decimal | None = None
    delivery_per_liter: Decimal | None = None
    storage_base: Decimal | None = None
    storage_per_liter: Decimal | None = None
    last_updated: datetime

    def to_values(self) -> list[str | float]:
        """Render the row as sheet cell values in header order.

        Unknown numbers become empty cells rather than zeros.
        """
        numbers = [
            self.coefficient,
            self.delivery_base,
            self.delivery_per_liter,
            self.storage_base,
            self.storage_per_liter,
        ]
        return [
            self.warehouse_name,
            *("" if n is None else float(n) for n in numbers),
            self.last_updated.isoformat(),
        ]


class ExportResult(BaseModel):
    """Outcome of exporting one pass to one spreadsheet. Never persisted."""

    spreadsheet_id: str
    success: bool
    rows_written: int | None = None
    error: str | None = None
    timestamp: datetime | None = None


class ExportRunResponse(BaseModel):
    """Response body for POST /export/run."""

    results: list[ExportResult]
    total: int = Field(..., ge=0)
    succeeded: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    duration_ms: float = Field(..., ge=0)


class SpreadsheetCreate(BaseModel):
    """Request body for POST /spreadsheets."""

    spreadsheet_id: str = Field(
        ...,
        min_length=1,
        max_length=128,
        pattern=r"^[A-Za-z0-9_-]+$",
        description="Google spreadsheet ID (the part of the URL after /d/)",
    )


class SpreadsheetResponse(BaseModel):
    """Configured export target."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    spreadsheet_id: str


class SpreadsheetListResponse(BaseModel):
    """Response body for GET /spreadsheets."""

    spreadsheets: list[SpreadsheetResponse]
    total: int = Field(..., ge=0)
