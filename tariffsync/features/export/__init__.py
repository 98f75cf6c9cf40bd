"""Export feature: republish the latest tariffs to Google spreadsheets."""

from tariffsync.features.export.models import Spreadsheet
from tariffsync.features.export.routes import router
from tariffsync.features.export.schemas import ExportResult, ExportRow
from tariffsync.features.export.service import (
    ExportService,
    add_target,
    build_export_rows,
    list_targets,
    remove_target,
)
from tariffsync.features.export.sheets import (
    SHEET_HEADERS,
    SHEET_NAME,
    GoogleSheetsClient,
    SheetsError,
)

__all__ = [
    "SHEET_HEADERS",
    "SHEET_NAME",
    "ExportResult",
    "ExportRow",
    "ExportService",
    "GoogleSheetsClient",
    "SheetsError",
    "Spreadsheet",
    "add_target",
    "build_export_rows",
    "list_targets",
    "remove_target",
    "router",
]
