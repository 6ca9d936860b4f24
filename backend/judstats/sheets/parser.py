"""Layout detection and statistic extraction from raw sheet rows.

Everything here is pure: rows in, typed records out. Fetching referenced
workbooks is the reader's job.
"""

from __future__ import annotations

import datetime
import logging
import math
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from judstats.sheets.config import (
    CATEGORY_ASSIGNED_COL,
    CATEGORY_MIN_LABEL_LEN,
    CATEGORY_REENTERED_COL,
    DATE_MARKERS,
    DEPENDENCY_COLUMNS,
    EXCEL_SERIAL_MAX,
    EXCEL_SERIAL_MIN,
    EXISTING_MARKER,
    EXISTING_MIN_VALUE,
    FALLBACK_MAX_VALUE,
    IN_PROGRESS_COLUMNS,
    JUDGE_MARKERS,
    MONTH_COLUMNS,
    PERIOD_COLUMNS,
    RECEIVED_COLUMNS,
    RECEIVED_MARKER,
    REFERENCE_ID_MARKER,
    RESOLVED_COLUMNS,
    SECRETARY_MARKERS,
    SECTION_END_MARKER,
    SOURCE_ID_COLUMNS,
    TEMPLATE_COLUMNS,
    TEMPLATE_LABEL_MAX_LEN,
    TEMPLATE_LABELS,
    YEAR_COLUMNS,
    SheetLayout,
)
from judstats.sheets.normalizer import coerce_count, period_to_date

logger = logging.getLogger(__name__)

Row = Sequence[Any]

SOURCE_KIND = "google_sheets"

_MM_YYYY_RE = re.compile(r"^(\d{1,2})/(\d{4})$")
_YYYY_MM_RE = re.compile(r"^(\d{4})-(\d{1,2})$")
_YYYYMM_RE = re.compile(r"^(\d{4})(\d{2})$")
_DATE_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_JUDGE_RE = re.compile(r"juez:\s*(.+?)(?:\s*[-,;]?\s*secretari[oa]:.*)?$", re.IGNORECASE)
_SECRETARY_RE = re.compile(r"secretari[oa]:\s*(.+)$", re.IGNORECASE)

_EXCEL_EPOCH = datetime.date(1899, 12, 30)


# --- Records ---


@dataclass(frozen=True)
class CategoryCount:
    asignados: int = 0
    reingresados: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"asignados": self.asignados, "reingresados": self.reingresados}


@dataclass
class StatisticMetadata:
    source_kind: str = SOURCE_KIND
    source_label: str | None = None
    judge_name: str | None = None
    secretary_name: str | None = None
    resolved_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "source_kind": self.source_kind,
            "source_label": self.source_label,
            "judge_name": self.judge_name,
            "secretary_name": self.secretary_name,
            "resolved_count": self.resolved_count,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class ParsedStatistic:
    """One extracted statistic, not yet normalized or persisted."""

    dependency_name: str
    period: str
    source_id: str
    count_existentes: int = 0
    count_recibidos: int = 0
    count_reingresados: int = 0
    category_breakdown: dict[str, CategoryCount] = field(default_factory=dict)
    metadata: StatisticMetadata = field(default_factory=StatisticMetadata)
    statistic_date: datetime.date | None = None

    def breakdown_dict(self) -> dict[str, dict[str, int]]:
        return {name: c.to_dict() for name, c in self.category_breakdown.items()}


@dataclass(frozen=True)
class ReferenceRow:
    """A row of a reference table pointing at an individual workbook."""

    row_number: int
    template: str
    year: str
    month: str
    source_id: str

    @property
    def period(self) -> str:
        return build_period(self.year, self.month)

    @property
    def dependency_name(self) -> str:
        return infer_dependency_from_template(self.template)


@dataclass(frozen=True)
class ColumnarRow:
    """A row of a consolidated sheet: itself one statistic."""

    row_number: int
    dependency_name: str
    period: str
    received: int
    resolved: int | None
    in_progress: int

    def to_statistic(self, sheet_name: str) -> ParsedStatistic:
        return ParsedStatistic(
            dependency_name=self.dependency_name,
            period=self.period,
            source_id=sheet_name,
            count_existentes=self.in_progress,
            count_recibidos=self.received,
            count_reingresados=0,
            metadata=StatisticMetadata(
                source_label=f"Google Sheets - {sheet_name}",
                resolved_count=self.resolved,
            ),
            statistic_date=period_to_date(self.period),
        )


@dataclass(frozen=True)
class Unrecognized:
    """A row that could not be turned into a record (skipped, not an error)."""

    row_number: int
    reason: str


ParsedRow = ReferenceRow | ColumnarRow | Unrecognized


@dataclass
class SheetExtraction:
    """Statistics extracted from one sheet plus the rows that were skipped."""

    statistics: list[ParsedStatistic] = field(default_factory=list)
    skipped: int = 0


@dataclass
class DocumentTotals:
    """Figures read from one detailed statistics document."""

    existentes: int = 0
    recibidos: int = 0
    reingresados: int = 0
    categories: dict[str, CategoryCount] = field(default_factory=dict)
    judge_name: str | None = None
    secretary_name: str | None = None
    statistic_date: datetime.date | None = None
    used_fallback: bool = False


# --- Cell helpers ---


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def cell_text(value: Any) -> str:
    """Trimmed text of a cell; integral floats lose their ".0"."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _cell(row: Row, index: int | None) -> Any:
    if index is None or index >= len(row):
        return None
    return row[index]


def _first_number(row: Row, accept: Callable[[float], bool]) -> float | None:
    """First numeric cell after the label column that satisfies ``accept``."""
    for value in row[1:]:
        if _is_number(value) and accept(value):
            return value
    return None


def _loose_number(value: Any) -> float | None:
    """Numbers and numeric strings; everything else is None."""
    if _is_number(value):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


# --- Column resolution and layout ---


def normalize_headers(row: Row) -> list[str]:
    return [cell_text(h).lower() for h in row]


def resolve_column(headers: Sequence[str], candidates: Sequence[str]) -> int | None:
    """Index of the first header containing a candidate name.

    Candidates are tried in order, so earlier names take priority over a
    header that appears further left but matches a later candidate.
    """
    for name in candidates:
        needle = name.lower()
        for index, header in enumerate(headers):
            if needle in header:
                return index
    return None


def detect_layout(header_row: Row) -> SheetLayout:
    headers = normalize_headers(header_row)
    if any(REFERENCE_ID_MARKER in h for h in headers):
        return SheetLayout.REFERENCE
    return SheetLayout.CONSOLIDATED


# --- Reference tables ---


def infer_dependency_from_template(template: str) -> str:
    lowered = template.lower()
    for keyword, label in TEMPLATE_LABELS:
        if keyword in lowered:
            return label
    return template[:TEMPLATE_LABEL_MAX_LEN]


def build_period(year: Any, month: Any) -> str:
    """YYYY + zero-padded month, e.g. (2024, 2) -> "202402"."""
    return f"{cell_text(year)}{cell_text(month).zfill(2)}"


def parse_reference_rows(rows: Sequence[Row]) -> list[ParsedRow]:
    """Turn a reference table into ReferenceRow / Unrecognized entries."""
    if len(rows) < 2:
        logger.warning("Reference table has no data rows")
        return []

    headers = normalize_headers(rows[0])
    template_col = resolve_column(headers, TEMPLATE_COLUMNS)
    year_col = resolve_column(headers, YEAR_COLUMNS)
    month_col = resolve_column(headers, MONTH_COLUMNS)
    id_col = resolve_column(headers, SOURCE_ID_COLUMNS)
    if None in (template_col, year_col, month_col, id_col):
        logger.warning(
            "Reference table missing required columns (plantilla=%s anio=%s mes=%s id=%s)",
            template_col is not None, year_col is not None,
            month_col is not None, id_col is not None,
        )
        return []

    parsed: list[ParsedRow] = []
    for row_number, row in enumerate(rows[1:], start=2):
        row = row or []
        template = cell_text(_cell(row, template_col))
        year = cell_text(_cell(row, year_col))
        month = cell_text(_cell(row, month_col))
        source_id = cell_text(_cell(row, id_col))

        if not (template and year and month and source_id):
            parsed.append(Unrecognized(row_number, "missing required data"))
            continue
        parsed.append(ReferenceRow(row_number, template, year, month, source_id))
    return parsed


# --- Consolidated sheets ---


def period_from_cell(value: Any) -> str | None:
    """Read a period cell as YYYYMM.

    Tries MM/YYYY, YYYY-MM, YYYYMM, then an Excel serial date; the first
    pattern that matches wins.
    """
    text = cell_text(value)
    if not text:
        return None

    for pattern, year_group, month_group in (
        (_MM_YYYY_RE, 2, 1),
        (_YYYY_MM_RE, 1, 2),
        (_YYYYMM_RE, 1, 2),
    ):
        m = pattern.match(text)
        if m:
            year = int(m.group(year_group))
            month = int(m.group(month_group))
            if 1 <= month <= 12 and 1900 <= year <= 2100:
                return f"{year}{month:02d}"

    serial = _loose_number(value)
    if serial is not None and EXCEL_SERIAL_MIN < serial < EXCEL_SERIAL_MAX:
        day = _EXCEL_EPOCH + datetime.timedelta(days=int(serial))
        return f"{day.year}{day.month:02d}"
    return None


def parse_columnar_rows(rows: Sequence[Row]) -> list[ParsedRow]:
    """Turn a consolidated sheet into ColumnarRow / Unrecognized entries.

    Returns an empty list when the dependency, period or received column
    cannot be resolved.
    """
    if len(rows) < 2:
        logger.warning("Consolidated sheet has no data rows")
        return []

    headers = normalize_headers(rows[0])
    dependency_col = resolve_column(headers, DEPENDENCY_COLUMNS)
    period_col = resolve_column(headers, PERIOD_COLUMNS)
    received_col = resolve_column(headers, RECEIVED_COLUMNS)
    resolved_col = resolve_column(headers, RESOLVED_COLUMNS)
    in_progress_col = resolve_column(headers, IN_PROGRESS_COLUMNS)

    if None in (dependency_col, period_col, received_col):
        logger.warning(
            "Consolidated sheet missing essential columns (dependencia=%s periodo=%s ingresos=%s)",
            dependency_col is not None, period_col is not None, received_col is not None,
        )
        return []

    parsed: list[ParsedRow] = []
    for row_number, row in enumerate(rows[1:], start=2):
        row = row or []
        dependency = cell_text(_cell(row, dependency_col))
        period_value = _cell(row, period_col)
        received_value = _cell(row, received_col)

        if not dependency or not cell_text(period_value) or not cell_text(received_value):
            parsed.append(Unrecognized(row_number, "empty dependency, period or ingresos"))
            continue

        period = period_from_cell(period_value)
        if period is None:
            logger.warning("Invalid period format in row %d: %r", row_number, period_value)
            parsed.append(Unrecognized(row_number, f"invalid period {period_value!r}"))
            continue

        parsed.append(ColumnarRow(
            row_number=row_number,
            dependency_name=dependency,
            period=period,
            received=coerce_count(received_value),
            resolved=coerce_count(_cell(row, resolved_col)) if resolved_col is not None else None,
            in_progress=coerce_count(_cell(row, in_progress_col)),
        ))
    return parsed


def parse_columnar_sheet(rows: Sequence[Row], sheet_name: str) -> SheetExtraction:
    extraction = SheetExtraction()
    for entry in parse_columnar_rows(rows):
        if isinstance(entry, ColumnarRow):
            extraction.statistics.append(entry.to_statistic(sheet_name))
        else:
            extraction.skipped += 1
    logger.info(
        "Extracted %d statistics from sheet %s (%d rows skipped)",
        len(extraction.statistics), sheet_name, extraction.skipped,
    )
    return extraction


# --- Detailed single documents ---


def _scan_officials(totals: DocumentTotals, row: Row) -> None:
    for value in row:
        if not isinstance(value, str):
            continue
        lowered = value.lower()
        if totals.judge_name is None and any(m in lowered for m in JUDGE_MARKERS):
            m = _JUDGE_RE.search(value)
            if m and m.group(1).strip():
                totals.judge_name = m.group(1).strip()
        if totals.secretary_name is None and any(m in lowered for m in SECRETARY_MARKERS):
            m = _SECRETARY_RE.search(value)
            if m and m.group(1).strip():
                totals.secretary_name = m.group(1).strip()


def _scan_date(totals: DocumentTotals, first: str, row: Row) -> None:
    if totals.statistic_date is not None:
        return
    if not any(marker in first.upper() for marker in DATE_MARKERS):
        return
    text = " ".join(cell_text(v) for v in row)
    m = _DATE_RE.search(text)
    if not m:
        return
    try:
        totals.statistic_date = datetime.date(int(m.group(3)), int(m.group(2)), int(m.group(1)))
    except ValueError:
        logger.debug("Ignoring impossible statistic date in %r", text)


def parse_detailed_document(rows: Sequence[Row]) -> DocumentTotals:
    """Scan a statistics document for its section markers.

    "I. EXPEDIENTES EXISTENTES" gives the existing-case total (first number
    above 1000 in that row or the next). "II. EXPEDIENTES RECIBIDOS" gives the
    received total (a larger number in the following row wins) and opens the
    category section: rows with a label longer than five characters carry
    assigned / re-entered counts in columns F and G, until a "III." row.

    When neither total is found the numeric-guess fallback is used.
    """
    totals = DocumentTotals()
    existing_found = False
    received_found = False
    in_detail = False

    for i, row in enumerate(rows):
        row = row or []
        first = cell_text(row[0]) if row else ""
        _scan_officials(totals, row)
        _scan_date(totals, first, row)

        if EXISTING_MARKER in first and not existing_found:
            value = _first_number(row, lambda n: n > EXISTING_MIN_VALUE)
            if value is None and i + 1 < len(rows):
                value = _first_number(rows[i + 1] or [], lambda n: n > EXISTING_MIN_VALUE)
            if value is not None:
                totals.existentes = coerce_count(value)
                existing_found = True
                logger.debug("Found EXISTENTES %s near row %d", value, i + 1)
            continue

        if RECEIVED_MARKER in first and not received_found:
            value = _first_number(row, lambda n: n > 0)
            received = value or 0
            # Split layouts put the real total one row below
            if i + 1 < len(rows):
                larger = _first_number(rows[i + 1] or [], lambda n: n > received)
                if larger is not None:
                    logger.debug("Found larger RECIBIDOS %s at row %d", larger, i + 2)
                    received = larger
            if received > 0:
                totals.recibidos = coerce_count(received)
                received_found = True
            in_detail = True
            continue

        if in_detail:
            if SECTION_END_MARKER in first:
                in_detail = False
                continue
            if len(first) > CATEGORY_MIN_LABEL_LEN:
                assigned = _cell(row, CATEGORY_ASSIGNED_COL)
                reentered = _cell(row, CATEGORY_REENTERED_COL)
                count = CategoryCount(
                    asignados=coerce_count(assigned) if _is_number(assigned) else 0,
                    reingresados=coerce_count(reentered) if _is_number(reentered) else 0,
                )
                if count.asignados > 0 or count.reingresados > 0:
                    totals.categories[first] = count

    if totals.existentes == 0 and totals.recibidos == 0:
        logger.info("No structured data found, using numeric-guess fallback")
        return guess_totals(rows, totals)

    logger.debug(
        "Parsed document: existentes=%d recibidos=%d categories=%d",
        totals.existentes, totals.recibidos, len(totals.categories),
    )
    return totals


def guess_totals(rows: Sequence[Row], base: DocumentTotals | None = None) -> DocumentTotals:
    """Legacy fallback for documents without section markers.

    The first three positive numbers below 10,000, in row-major order, become
    recibidos, existentes and reingresados. Data-dependent and unverified;
    kept because older documents rely on it.
    """
    found: list[int] = []
    for row in rows:
        for value in row or []:
            number = _loose_number(value)
            if number is not None and 0 < number < FALLBACK_MAX_VALUE:
                found.append(coerce_count(number))
                if len(found) == 3:
                    break
        if len(found) == 3:
            break
    found += [0] * (3 - len(found))

    return DocumentTotals(
        recibidos=found[0],
        existentes=found[1],
        reingresados=found[2],
        categories={},
        judge_name=base.judge_name if base else None,
        secretary_name=base.secretary_name if base else None,
        statistic_date=base.statistic_date if base else None,
        used_fallback=True,
    )
