"""Find the sheets of a workbook that hold ingestible statistics."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from googleapiclient.errors import HttpError

from judstats.sheets.client import SheetsClient, quote_sheet_title
from judstats.sheets.config import (
    CONSOLIDATED_MARKERS,
    HEADER_PROBE_RANGE,
    REFERENCE_MARKERS,
    SheetLayout,
)
from judstats.sheets.errors import SheetsAuthError, SheetsError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SheetDescriptor:
    """A sheet that passed the header check."""

    id: str
    name: str
    row_count: int
    last_modified: datetime.datetime
    layout: SheetLayout


def header_tokens(row: Sequence[Any]) -> list[str]:
    return [str(cell).strip().lower() for cell in row if cell is not None]


def _covers(headers: list[str], marker: str) -> bool:
    return any(marker in h for h in headers)


def classify_header(row: Sequence[Any]) -> SheetLayout | None:
    """Which marker set a header row covers, if any.

    Matching is a case-insensitive substring test per header cell, so
    "Cantidad de Ingresos" covers "ingreso".
    """
    headers = header_tokens(row)
    if all(_covers(headers, m) for m in REFERENCE_MARKERS):
        return SheetLayout.REFERENCE
    if all(any(_covers(headers, m) for m in group) for group in CONSOLIDATED_MARKERS):
        return SheetLayout.CONSOLIDATED
    return None


async def probe_sheet(client: SheetsClient, workbook_id: str, title: str) -> SheetLayout | None:
    """Fetch only the header rows of a sheet and classify them.

    Probe failures (empty sheet, HTTP errors, exhausted quota) mean "not a
    data sheet"; rejected credentials still propagate.
    """
    try:
        rows = await client.get_values(
            workbook_id, f"{quote_sheet_title(title)}!{HEADER_PROBE_RANGE}"
        )
    except SheetsAuthError:
        raise
    except (HttpError, SheetsError) as e:
        logger.debug("Probe of sheet %r failed: %s", title, e)
        return None
    if not rows:
        return None
    return classify_header(rows[0])


async def list_valid_sheets(client: SheetsClient, workbook_id: str) -> list[SheetDescriptor]:
    """All sheets of the workbook whose headers match a supported layout."""
    properties = await client.list_sheet_properties(workbook_id)
    valid: list[SheetDescriptor] = []

    for props in properties:
        title = props.get("title")
        if not title:
            continue
        layout = await probe_sheet(client, workbook_id, title)
        if layout is None:
            logger.info("Sheet %r has no recognised layout, excluded", title)
            continue
        valid.append(SheetDescriptor(
            id=str(props.get("sheetId", "")),
            name=title,
            row_count=int(props.get("gridProperties", {}).get("rowCount", 0)),
            last_modified=datetime.datetime.now(datetime.timezone.utc),
            layout=layout,
        ))

    logger.info("Found %d valid sheets out of %d", len(valid), len(properties))
    return valid
