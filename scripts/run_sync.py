"""Manual Google Sheets sync.

Runs a full sync of the configured workbook, a sync restricted to some
sheets, or the ingestion of one individually published document.

Usage:
    python scripts/run_sync.py
    python scripts/run_sync.py --sheet "Consolidado 2024" --sheet "Plantillas"
    python scripts/run_sync.py --single <spreadsheet id> --period 202410 \
        --dependency "JUZGADO FEDERAL N 1"
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add backend to path so we can import judstats modules
SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_DIR = SCRIPT_DIR.parent
BACKEND_DIR = PROJECT_DIR / "backend"
sys.path.insert(0, str(BACKEND_DIR))

from judstats.config import settings
from judstats.database import async_session_factory, init_db
from judstats.services.sync_service import SyncService
from judstats.sheets.client import SheetsClient


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync judicial statistics from Google Sheets")
    parser.add_argument(
        "--sheet", action="append", dest="sheets", metavar="NAME",
        help="only sync this sheet (repeatable); default is every valid sheet",
    )
    parser.add_argument("--single", metavar="SPREADSHEET_ID", help="sync one individual document")
    parser.add_argument("--period", help="YYYYMM period of the --single document")
    parser.add_argument("--dependency", help="dependency name of the --single document")
    parser.add_argument(
        "--workbook", default=settings.GOOGLE_SHEETS_SPREADSHEET_ID,
        help="main workbook id (default: GOOGLE_SHEETS_SPREADSHEET_ID)",
    )
    args = parser.parse_args(argv)
    if args.single and not (args.period and args.dependency):
        parser.error("--single requires --period and --dependency")
    return args


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL)
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print("Judicial Statistics Sync")
    print("=" * 60)
    print(f"Database: {settings.DATABASE_URL}")
    print()

    await init_db()
    client = SheetsClient.from_settings(settings)

    async with async_session_factory() as session:
        service = SyncService(client, session, args.workbook)

        if args.single:
            result = await service.sync_single_sheet(args.single, args.period, args.dependency)
            print(f"{result.message} ({result.source_id})")
            if result.error:
                print(f"  Error: {result.error}")
            return 0 if result.success else 1

        result = await service.run(args.sheets)

    print()
    print(f"  Processed: {result.processed}")
    print(f"  Inserted:  {result.inserted}")
    print(f"  Updated:   {result.updated}")
    print(f"  Skipped:   {result.skipped}")
    if result.errors:
        print(f"  Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"    - {error}")
    print("=" * 60)
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
