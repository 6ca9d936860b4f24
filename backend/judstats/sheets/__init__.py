"""Spreadsheet ingestion engine.

Provides the rate-limited Sheets client, sheet discovery, layout detection
and parsing of statistics documents.
"""

from judstats.sheets.client import SheetsClient
from judstats.sheets.config import SheetLayout
from judstats.sheets.discovery import SheetDescriptor, classify_header, list_valid_sheets
from judstats.sheets.errors import (
    QuotaExhaustedError,
    RecordValidationError,
    SheetsAuthError,
    SheetsConfigError,
    SheetsError,
)
from judstats.sheets.parser import ParsedStatistic
from judstats.sheets.rate_limiter import RateLimiter
from judstats.sheets.reader import SheetReader

__all__ = [
    "ParsedStatistic",
    "QuotaExhaustedError",
    "RateLimiter",
    "RecordValidationError",
    "SheetDescriptor",
    "SheetLayout",
    "SheetReader",
    "SheetsAuthError",
    "SheetsClient",
    "SheetsConfigError",
    "SheetsError",
    "classify_header",
    "list_valid_sheets",
]
