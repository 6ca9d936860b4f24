"""Fetch sheets through the rate-limited client and parse them.

Never writes to the spreadsheets.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from judstats.sheets.client import SheetsClient, quote_sheet_title
from judstats.sheets.config import DOCUMENT_RANGE, FULL_SHEET_RANGE, SheetLayout
from judstats.sheets.errors import SheetsAuthError, SheetsConfigError
from judstats.sheets.normalizer import period_to_date
from judstats.sheets.parser import (
    ParsedStatistic,
    ReferenceRow,
    SheetExtraction,
    StatisticMetadata,
    detect_layout,
    parse_columnar_sheet,
    parse_detailed_document,
    parse_reference_rows,
)

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 10


class SheetReader:
    """Reads workbook sheets and turns them into ParsedStatistic records."""

    def __init__(self, client: SheetsClient) -> None:
        self.client = client

    async def read_sheet(self, workbook_id: str, sheet_name: str) -> SheetExtraction:
        """Fetch one sheet of the main workbook and extract its statistics.

        Reference tables trigger one extra document fetch per data row.
        Structurally invalid sheets give an empty extraction. Rows that
        cannot become a record are counted in ``skipped``.
        """
        rows = await self.fetch_rows(workbook_id, sheet_name)
        return await self.parse_sheet(rows, sheet_name)

    async def fetch_rows(self, workbook_id: str, sheet_name: str) -> list[list[Any]]:
        return await self.client.get_values(
            workbook_id, f"{quote_sheet_title(sheet_name)}!{FULL_SHEET_RANGE}"
        )

    async def parse_sheet(self, rows: Sequence[Sequence[Any]], sheet_name: str) -> SheetExtraction:
        if not rows:
            logger.warning("No data found in sheet: %s", sheet_name)
            return SheetExtraction()
        if detect_layout(rows[0]) is SheetLayout.REFERENCE:
            logger.info("Processing %s as individual spreadsheet references", sheet_name)
            return await self._read_reference_table(rows, sheet_name)
        logger.info("Processing %s as consolidated data", sheet_name)
        return parse_columnar_sheet(rows, sheet_name)

    async def _read_reference_table(
        self, rows: Sequence[Sequence[Any]], sheet_name: str,
    ) -> SheetExtraction:
        entries = parse_reference_rows(rows)
        references = [e for e in entries if isinstance(e, ReferenceRow)]
        skipped = len(entries) - len(references)
        statistics: list[ParsedStatistic] = []
        failed = 0

        logger.info(
            "Processing %d individual spreadsheet references from %s (%d skipped)",
            len(references), sheet_name, skipped,
        )
        for i, ref in enumerate(references, start=1):
            try:
                parsed = await self.read_reference_document(
                    ref.source_id, ref.dependency_name, ref.period,
                )
            except (SheetsAuthError, SheetsConfigError):
                raise
            except Exception as e:
                logger.error(
                    "Error processing spreadsheet %s (row %d): %s",
                    ref.source_id, ref.row_number, e,
                )
                failed += 1
                parsed = None
            else:
                if parsed is None:
                    logger.warning("No data extracted from %s", ref.source_id)
                    failed += 1

            if parsed is not None:
                statistics.append(parsed)

            if i % PROGRESS_EVERY == 0 or i == len(references):
                logger.info(
                    "Progress: %d/%d - success: %d, failed: %d, skipped: %d",
                    i, len(references), len(statistics), failed, skipped,
                )

        logger.info(
            "Extracted %d statistics from individual spreadsheets of %s",
            len(statistics), sheet_name,
        )
        return SheetExtraction(statistics=statistics, skipped=skipped)

    async def read_reference_document(
        self,
        source_id: str,
        dependency_name: str,
        period: str,
    ) -> ParsedStatistic | None:
        """Parse the first sheet of an individually published workbook.

        Returns None when the workbook has no sheets or no data.
        """
        properties = await self.client.list_sheet_properties(source_id)
        if not properties:
            logger.warning("No sheets found in spreadsheet %s", source_id)
            return None

        first_title = properties[0].get("title") or "Sheet1"
        rows = await self.client.get_values(
            source_id, f"{quote_sheet_title(first_title)}!{DOCUMENT_RANGE}"
        )
        if not rows:
            logger.warning("No data found in %s/%s", source_id, first_title)
            return None

        totals = parse_detailed_document(rows)
        return ParsedStatistic(
            dependency_name=dependency_name,
            period=period,
            source_id=source_id,
            count_existentes=totals.existentes,
            count_recibidos=totals.recibidos,
            count_reingresados=totals.reingresados,
            category_breakdown=totals.categories,
            metadata=StatisticMetadata(
                source_label=f"Individual Spreadsheet - {source_id}",
                judge_name=totals.judge_name,
                secretary_name=totals.secretary_name,
            ),
            statistic_date=totals.statistic_date or period_to_date(period),
        )
