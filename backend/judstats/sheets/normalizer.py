"""Canonical forms for periods, dependency names and counts."""

from __future__ import annotations

import datetime
import math
import re
from typing import Any, Final

PERIOD_RE: Final = re.compile(r"[0-9]{4}[0-9]{2}")
MIN_PERIOD_YEAR: Final[int] = 2005
MAX_PERIOD_YEAR: Final[int] = 2099

# Ordered: the first keyword found in the name decides the type
DEPENDENCY_TYPES: Final[tuple[tuple[str, str], ...]] = (
    ("CÁMARA FEDERAL", "CÁMARA FEDERAL"),
    ("CAMARA FEDERAL", "CÁMARA FEDERAL"),
    ("JUZGADO FEDERAL", "JUZGADO FEDERAL"),
    ("TRIBUNAL", "TRIBUNAL"),
    ("CORTE", "CORTE"),
    ("SECRETARÍA", "SECRETARÍA"),
    ("SECRETARIA", "SECRETARÍA"),
)
DEFAULT_DEPENDENCY_TYPE: Final[str] = "OTRO"


def normalize_period(value: str) -> str | None:
    """Validate a YYYYMM period string.

    Returns the period unchanged when it is six ASCII digits with a year in
    2005-2099 and a month in 1-12, otherwise None. No trimming is done.
    """
    if not isinstance(value, str) or not PERIOD_RE.fullmatch(value):
        return None
    year = int(value[:4])
    month = int(value[4:])
    if not MIN_PERIOD_YEAR <= year <= MAX_PERIOD_YEAR:
        return None
    if not 1 <= month <= 12:
        return None
    return value


def period_to_date(period: str) -> datetime.date | None:
    """First day of a valid period, None for invalid periods."""
    if normalize_period(period) is None:
        return None
    return datetime.date(int(period[:4]), int(period[4:]), 1)


def normalize_dependency_name(name: str) -> str:
    """Trim, collapse internal whitespace and uppercase. Idempotent."""
    return " ".join(name.split()).upper()


def infer_dependency_type(name: str) -> str:
    upper = name.upper()
    for keyword, dependency_type in DEPENDENCY_TYPES:
        if keyword in upper:
            return dependency_type
    return DEFAULT_DEPENDENCY_TYPE


def coerce_count(value: Any) -> int:
    """Defensively turn a cell value into a non-negative int.

    Non-numeric, missing and non-finite values give 0; otherwise the integer
    part of the absolute value.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0
    try:
        number = float(value)
    except (ValueError, TypeError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(abs(number))
