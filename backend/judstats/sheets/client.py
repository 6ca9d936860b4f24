"""Rate-limited Google Sheets API v4 client.

Every outbound call goes through ``SheetsClient.execute`` which paces
requests with a RateLimiter and retries quota errors with backoff. The
blocking google-api-python-client calls run in a worker thread so the event
loop is never blocked.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from judstats.config import Settings
from judstats.sheets.errors import QuotaExhaustedError, SheetsAuthError, SheetsConfigError
from judstats.sheets.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
QUOTA_REASONS = (b"rateLimitExceeded", b"RESOURCE_EXHAUSTED", b"userRateLimitExceeded")


def is_quota_error(exc: BaseException) -> bool:
    """True for HTTP 429, or a 403 whose body names a rate-limit reason."""
    if not isinstance(exc, HttpError):
        return False
    status = getattr(exc.resp, "status", None)
    if status == 429:
        return True
    if status == 403:
        content = exc.content or b""
        return any(reason in content for reason in QUOTA_REASONS)
    return False


def quote_sheet_title(title: str) -> str:
    """Quote a sheet title for A1 notation ('It''s' style escaping)."""
    return "'" + title.replace("'", "''") + "'"


class SheetsClient:
    """Read-only access to spreadsheets, paced by a RateLimiter."""

    def __init__(
        self,
        api_key: str = "",
        client_email: str = "",
        private_key: str = "",
        credentials_file: str = "",
        rate_limiter: RateLimiter | None = None,
        max_attempts: int = 6,
        service: Any | None = None,
    ) -> None:
        self.api_key = api_key
        self.client_email = client_email
        self.private_key = private_key
        self.credentials_file = credentials_file
        self.rate_limiter = rate_limiter or RateLimiter()
        self.max_attempts = max(1, max_attempts)
        self._service = service

    @classmethod
    def from_settings(cls, settings: Settings, service: Any | None = None) -> "SheetsClient":
        limiter = RateLimiter(
            max_requests_per_window=settings.SHEETS_MAX_REQUESTS_PER_MINUTE,
            base_delay=settings.SHEETS_BASE_DELAY_SECONDS,
            max_delay=settings.SHEETS_MAX_DELAY_SECONDS,
        )
        return cls(
            api_key=settings.GOOGLE_SHEETS_API_KEY,
            client_email=settings.GOOGLE_SHEETS_CLIENT_EMAIL,
            private_key=settings.GOOGLE_SHEETS_PRIVATE_KEY,
            credentials_file=settings.GOOGLE_SHEETS_CREDENTIALS_FILE,
            rate_limiter=limiter,
            max_attempts=settings.SHEETS_MAX_ATTEMPTS,
            service=service,
        )

    # --- Availability ---

    def is_available(self) -> bool:
        return self._service is not None or bool(
            self.api_key
            or self.credentials_file
            or (self.client_email and self.private_key)
        )

    def ensure_available(self) -> None:
        """Raise SheetsConfigError when no credentials are configured."""
        if not self.is_available():
            raise SheetsConfigError(
                "Google Sheets credentials not configured: set GOOGLE_SHEETS_API_KEY, "
                "GOOGLE_SHEETS_CREDENTIALS_FILE or GOOGLE_SHEETS_CLIENT_EMAIL + "
                "GOOGLE_SHEETS_PRIVATE_KEY"
            )

    def _get_service(self) -> Any:
        if self._service is not None:
            return self._service

        self.ensure_available()
        if self.api_key:
            self._service = build(
                "sheets", "v4", developerKey=self.api_key, cache_discovery=False,
            )
            logger.info("Google Sheets service initialized with API key")
            return self._service

        if self.credentials_file:
            credentials = service_account.Credentials.from_service_account_file(
                self.credentials_file, scopes=SCOPES,
            )
        else:
            credentials = service_account.Credentials.from_service_account_info(
                {
                    "type": "service_account",
                    "client_email": self.client_email,
                    "private_key": self.private_key,
                    "token_uri": TOKEN_URI,
                },
                scopes=SCOPES,
            )
        self._service = build(
            "sheets", "v4", credentials=credentials, cache_discovery=False,
        )
        logger.info("Google Sheets service initialized with service account")
        return self._service

    # --- Core request loop ---

    async def execute(self, request_fn: Callable[[], T]) -> T:
        """Run a blocking API call under rate limiting.

        Quota errors are retried (same request) up to ``max_attempts`` times
        with exponential backoff; 401 raises SheetsAuthError; anything else
        propagates on the first failure.
        """
        limiter = self.rate_limiter
        last_error: HttpError | None = None
        for attempt in range(1, self.max_attempts + 1):
            await limiter.before_request()
            try:
                result = await asyncio.to_thread(request_fn)
            except HttpError as exc:
                if is_quota_error(exc):
                    last_error = exc
                    delay = limiter.on_quota_error()
                    if attempt == self.max_attempts:
                        break
                    await limiter.sleep(delay)
                    logger.info("Retrying request after quota backoff (attempt %d)", attempt + 1)
                    continue
                if getattr(exc.resp, "status", None) == 401:
                    raise SheetsAuthError(f"Google Sheets rejected credentials: {exc}") from exc
                raise
            limiter.on_success()
            return result

        logger.error("Quota still exceeded after %d attempts, giving up", self.max_attempts)
        raise QuotaExhaustedError(self.max_attempts) from last_error

    # --- API operations ---

    async def get_workbook(self, workbook_id: str) -> dict:
        """Workbook metadata: ``{"sheets": [{"properties": {...}}, ...]}``."""
        service = self._get_service()
        return await self.execute(
            lambda: service.spreadsheets().get(spreadsheetId=workbook_id).execute()
        )

    async def list_sheet_properties(self, workbook_id: str) -> list[dict]:
        metadata = await self.get_workbook(workbook_id)
        return [
            sheet["properties"]
            for sheet in metadata.get("sheets", [])
            if sheet.get("properties")
        ]

    async def get_values(self, workbook_id: str, range_expression: str) -> list[list[Any]]:
        """Raw, unformatted cell values of a range. Missing rows come back empty."""
        service = self._get_service()
        response = await self.execute(
            lambda: service.spreadsheets()
            .values()
            .get(
                spreadsheetId=workbook_id,
                range=range_expression,
                valueRenderOption="UNFORMATTED_VALUE",
                dateTimeRenderOption="FORMATTED_STRING",
            )
            .execute()
        )
        return response.get("values", [])

    async def test_connection(self, workbook_id: str) -> bool:
        if not self.is_available():
            return False
        try:
            await self.get_workbook(workbook_id)
        except Exception as e:
            logger.error("Google Sheets connection test failed: %s", e)
            return False
        return True
