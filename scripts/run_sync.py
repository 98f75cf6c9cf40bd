#!/usr/bin/env python
"""Run one sync pass outside the API.

Usage:
    # Sync today (UTC)
    uv run python scripts/run_sync.py

    # Sync a specific date, skipping the Sheets export
    uv run python scripts/run_sync.py --date 2025-07-20 --no-export
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date

from tariffsync.core.config import get_settings
from tariffsync.core.database import get_engine, get_session_maker
from tariffsync.core.exceptions import TariffSyncError
from tariffsync.core.logging import configure_logging
from tariffsync.features.export.service import ExportService
from tariffsync.features.export.sheets import GoogleSheetsClient, SheetsError
from tariffsync.features.sync.pipeline import SyncPipeline
from tariffsync.features.tariffs.client import WbTariffsClient


def parse_date(date_str: str) -> date:
    """Parse date string in YYYY-MM-DD format.

    Raises:
        argparse.ArgumentTypeError: If date format is invalid.
    """
    try:
        return date.fromisoformat(date_str)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date format: {date_str}. Use YYYY-MM-DD") from e


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(description="Run one tariff sync pass")
    parser.add_argument(
        "--date",
        type=parse_date,
        default=None,
        help="Date to sync, YYYY-MM-DD (default: today, UTC)",
    )
    parser.add_argument(
        "--no-export",
        action="store_true",
        help="Fetch and store only; do not load Google credentials",
    )
    return parser


async def main() -> int:
    """Main entry point."""
    args = create_parser().parse_args()
    settings = get_settings()
    configure_logging()

    wb_client = WbTariffsClient.from_settings(settings)
    sheets_client = GoogleSheetsClient.from_settings(settings)
    if not args.no_export:
        try:
            await sheets_client.initialize()
        except SheetsError as e:
            print(f"[WARN] Export disabled: {e.message}")

    pipeline = SyncPipeline(
        session_maker=get_session_maker(),
        client=wb_client,
        export_service=ExportService(sheets_client),
    )

    try:
        result = await pipeline.run(args.date)
    except TariffSyncError as e:
        print(f"[FAIL] {e.code}: {e.message}")
        return 1
    finally:
        await wb_client.aclose()
        await sheets_client.aclose()
        await get_engine().dispose()

    print()
    print(f"Date:        {result.request_date.isoformat()}")
    print(f"Warehouses:  {result.warehouse_count}")
    print(f"Exported:    {result.exported}")
    print(f"Failed:      {result.export_failed}")
    print(f"Duration:    {result.duration_ms:.0f} ms")
    for export in result.export_results:
        if not export.success:
            print(f"  - {export.spreadsheet_id}: {export.error}")

    return 0 if result.export_failed == 0 else 2


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
