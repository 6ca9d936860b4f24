"""Exceptions raised by the spreadsheet ingestion engine."""


class SheetsError(Exception):
    """Base class for spreadsheet ingestion errors."""


class SheetsConfigError(SheetsError):
    """No usable Google Sheets credentials or workbook id are configured.

    Fatal: a sync run aborts without producing a result.
    """


class SheetsAuthError(SheetsError):
    """The API rejected our credentials (HTTP 401). Fatal."""


class QuotaExhaustedError(SheetsError):
    """A request kept hitting the quota after every retry attempt."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Quota still exceeded after {attempts} attempts")
        self.attempts = attempts


class RecordValidationError(SheetsError):
    """A parsed record has an invalid period or dependency name.

    The record is skipped and counted, not reported as an error.
    """
