"""Parse a downloaded .xlsx export without touching Google or the database.

Useful to check what the parser makes of a workbook before a real sync.

Usage:
    python scripts/parse_local.py export.xlsx
    python scripts/parse_local.py export.xlsx --sheet "Consolidado 2024"
    python scripts/parse_local.py document.xlsx --document
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Add backend to path so we can import judstats modules
SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_DIR = SCRIPT_DIR.parent
BACKEND_DIR = PROJECT_DIR / "backend"
sys.path.insert(0, str(BACKEND_DIR))

from judstats.sheets.config import SheetLayout
from judstats.sheets.discovery import classify_header
from judstats.sheets.parser import (
    ColumnarRow,
    ReferenceRow,
    parse_columnar_rows,
    parse_detailed_document,
    parse_reference_rows,
)
from judstats.sheets.workbook_file import list_workbook_sheets, read_workbook_rows


def describe_document(rows: list[list]) -> None:
    totals = parse_detailed_document(rows)
    print(f"  Existentes:   {totals.existentes}")
    print(f"  Recibidos:    {totals.recibidos}")
    print(f"  Reingresados: {totals.reingresados}")
    if totals.used_fallback:
        print("  (numeric-guess fallback)")
    if totals.judge_name:
        print(f"  Juez:         {totals.judge_name}")
    if totals.secretary_name:
        print(f"  Secretario:   {totals.secretary_name}")
    if totals.statistic_date:
        print(f"  Fecha:        {totals.statistic_date.isoformat()}")
    if totals.categories:
        print("  Categories:")
        print(json.dumps(
            {name: c.to_dict() for name, c in totals.categories.items()},
            indent=2, ensure_ascii=False,
        ))


def describe_sheet(name: str, rows: list[list]) -> None:
    layout = classify_header(rows[0]) if rows else None
    print(f"Sheet {name!r}: {len(rows)} rows, layout={layout.value if layout else 'none'}")
    if layout is SheetLayout.REFERENCE:
        entries = parse_reference_rows(rows)
        for entry in entries:
            if isinstance(entry, ReferenceRow):
                print(f"  row {entry.row_number}: {entry.dependency_name} {entry.period} -> {entry.source_id}")
            else:
                print(f"  row {entry.row_number}: skipped ({entry.reason})")
    elif layout is SheetLayout.CONSOLIDATED:
        for entry in parse_columnar_rows(rows):
            if isinstance(entry, ColumnarRow):
                print(
                    f"  row {entry.row_number}: {entry.dependency_name} {entry.period} "
                    f"recibidos={entry.received} en_tramite={entry.in_progress}"
                )
            else:
                print(f"  row {entry.row_number}: skipped ({entry.reason})")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Parse a local statistics workbook export")
    parser.add_argument("file", type=Path)
    parser.add_argument("--sheet", help="only this sheet")
    parser.add_argument(
        "--document", action="store_true",
        help="treat the first sheet as an individual statistics document",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    if not args.file.exists():
        print(f"ERROR: file not found: {args.file}")
        return 1

    if args.document:
        print(f"Document {args.file.name}:")
        describe_document(read_workbook_rows(args.file, args.sheet))
        return 0

    names = [args.sheet] if args.sheet else list_workbook_sheets(args.file)
    for name in names:
        describe_sheet(name, read_workbook_rows(args.file, name))
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
