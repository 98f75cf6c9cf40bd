#!/usr/bin/env python
"""Manage spreadsheet export targets.

Usage:
    # Add targets (already registered ids are skipped)
    uv run python scripts/seed_spreadsheets.py 1iJxLzkQzD5HksfzNaFOHzY3hQDHxOSolmH31euhYFqE

    # Replace all targets with the given ones
    uv run python scripts/seed_spreadsheets.py --replace <id> [<id> ...]

    # Show configured targets
    uv run python scripts/seed_spreadsheets.py --list
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from sqlalchemy import delete

from tariffsync.core.database import get_engine, get_session_maker
from tariffsync.core.exceptions import ConflictError
from tariffsync.features.export.models import Spreadsheet
from tariffsync.features.export.schemas import SpreadsheetCreate
from tariffsync.features.export.service import add_target, list_targets


def spreadsheet_id(value: str) -> str:
    """Validate a spreadsheet id argument.

    Raises:
        argparse.ArgumentTypeError: If the id has characters Google never uses.
    """
    try:
        return SpreadsheetCreate(spreadsheet_id=value).spreadsheet_id
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid spreadsheet id: {value}") from e


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Register Google spreadsheets as tariff export targets",
    )
    parser.add_argument(
        "spreadsheet_ids",
        nargs="*",
        type=spreadsheet_id,
        metavar="SPREADSHEET_ID",
        help="Spreadsheet ids to register",
    )
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Remove all existing targets before adding",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print configured targets and exit",
    )
    return parser


async def seed(ids: list[str], replace: bool) -> int:
    """Add targets idempotently; returns the number of newly added ids."""
    added = 0
    async with get_session_maker()() as db:
        if replace:
            result = await db.execute(delete(Spreadsheet))
            print(f"Removed {result.rowcount} existing target(s)")

        for sid in ids:
            try:
                await add_target(db, sid)
            except ConflictError:
                print(f"  [SKIP] {sid} (already registered)")
                continue
            print(f"  [OK]   {sid}")
            added += 1

        await db.commit()
    return added


async def print_targets() -> None:
    async with get_session_maker()() as db:
        targets = await list_targets(db)
    print(f"{len(targets)} export target(s):")
    for target in targets:
        print(f"  - {target.spreadsheet_id}")


async def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.list and not args.spreadsheet_ids:
        parser.error("give at least one SPREADSHEET_ID, or --list")

    try:
        if args.spreadsheet_ids:
            added = await seed(args.spreadsheet_ids, args.replace)
            print(f"Added {added} target(s)")
        await print_targets()
    except Exception as e:
        print(f"[FAIL] {e}")
        return 1
    finally:
        await get_engine().dispose()

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
