"""Read downloaded .xlsx exports of the statistics workbooks.

Gives the same raw rows the Sheets API returns as unformatted values, so
exported documents can be parsed offline with the same heuristics. Date
cells become serial day numbers, as the API renders them.
"""

from __future__ import annotations

import datetime
from pathlib import Path
from typing import Any

import openpyxl

_EXCEL_EPOCH = datetime.date(1899, 12, 30)


def _to_raw(value: Any) -> Any:
    """Cell value as the API's UNFORMATTED_VALUE would give it."""
    if value is None:
        return ""
    if isinstance(value, datetime.datetime):
        value = value.date()
    if isinstance(value, datetime.date):
        return (value - _EXCEL_EPOCH).days
    return value


def read_workbook_rows(
    file_path: str | Path,
    sheet_name: str | None = None,
    max_rows: int | None = None,
) -> list[list[Any]]:
    """Rows of one sheet (the first sheet by default).

    Trailing empty cells are dropped from every row, as the API does.
    """
    wb = openpyxl.load_workbook(str(file_path), data_only=True, read_only=True)
    try:
        if sheet_name is None:
            ws = wb.worksheets[0] if wb.worksheets else None
        elif sheet_name in wb.sheetnames:
            ws = wb[sheet_name]
        else:
            raise ValueError(
                f"Sheet '{sheet_name}' not found. Available: {wb.sheetnames}"
            )
        if ws is None:
            raise ValueError("Workbook has no sheets")

        rows: list[list[Any]] = []
        for row in ws.iter_rows(max_row=max_rows, values_only=True):
            values = [_to_raw(v) for v in row]
            while values and values[-1] == "":
                values.pop()
            rows.append(values)

        while rows and not rows[-1]:
            rows.pop()
        return rows
    finally:
        wb.close()


def list_workbook_sheets(file_path: str | Path) -> list[str]:
    wb = openpyxl.load_workbook(str(file_path), read_only=True)
    try:
        return list(wb.sheetnames)
    finally:
        wb.close()
