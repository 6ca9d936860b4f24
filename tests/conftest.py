"""Shared fixtures for judstats tests.

Provides:
- An in-memory fake of the googleapiclient Sheets service
- A SQLite database file in tmp_path with all tables created
- A SheetsClient whose rate limiter never really sleeps
"""

from __future__ import annotations

import asyncio
from typing import Any

import httplib2
import pytest
from googleapiclient.errors import HttpError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import judstats.models  # noqa: F401 - register tables
from judstats.models.base import Base
from judstats.sheets.client import SheetsClient
from judstats.sheets.rate_limiter import RateLimiter

MAIN_WORKBOOK = "main-workbook"

# Row limits of the fixed ranges the client asks for
_RANGE_LIMITS = {"A1:Z2": 2, "A1:Z200": 200}


def make_http_error(status: int, content: bytes = b"") -> HttpError:
    return HttpError(httplib2.Response({"status": status}), content)


class _Request:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class _Values:
    def __init__(self, service: FakeSheetsService) -> None:
        self._service = service

    def get(self, spreadsheetId: str, range: str, **kwargs: Any) -> _Request:
        return _Request(lambda: self._service.values(spreadsheetId, range))


class _Spreadsheets:
    def __init__(self, service: FakeSheetsService) -> None:
        self._service = service

    def get(self, spreadsheetId: str) -> _Request:
        return _Request(lambda: self._service.metadata(spreadsheetId))

    def values(self) -> _Values:
        return _Values(self._service)


class FakeSheetsService:
    """Stands in for ``build("sheets", "v4")``.

    ``workbooks`` maps a spreadsheet id to ``{sheet title: rows}``. Errors
    queued with ``fail_next`` are raised by the next calls, in order.
    """

    def __init__(self, workbooks: dict[str, dict[str, list[list[Any]]]] | None = None) -> None:
        self.workbooks = workbooks or {}
        self.calls: list[tuple[str, ...]] = []
        self._failures: list[Exception] = []

    def spreadsheets(self) -> _Spreadsheets:
        return _Spreadsheets(self)

    def fail_next(self, *errors: Exception) -> None:
        self._failures.extend(errors)

    def _maybe_fail(self) -> None:
        if self._failures:
            raise self._failures.pop(0)

    def metadata(self, workbook_id: str) -> dict:
        self.calls.append(("get", workbook_id))
        self._maybe_fail()
        if workbook_id not in self.workbooks:
            raise make_http_error(404)
        return {
            "sheets": [
                {
                    "properties": {
                        "sheetId": index,
                        "title": title,
                        "gridProperties": {"rowCount": len(rows)},
                    }
                }
                for index, (title, rows) in enumerate(self.workbooks[workbook_id].items())
            ]
        }

    def values(self, workbook_id: str, range_expression: str) -> dict:
        self.calls.append(("values", workbook_id, range_expression))
        self._maybe_fail()
        quoted, _, a1 = range_expression.rpartition("!")
        title = quoted[1:-1].replace("''", "'")
        sheets = self.workbooks.get(workbook_id)
        if sheets is None:
            raise make_http_error(404)
        if title not in sheets:
            raise make_http_error(400, b"Unable to parse range")
        rows = sheets[title]
        limit = _RANGE_LIMITS.get(a1)
        if limit is not None:
            rows = rows[:limit]
        if not rows:
            return {"range": range_expression}
        return {"range": range_expression, "values": [list(r) for r in rows]}


class RecordingSleep:
    """Async sleep replacement that only records the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_service() -> FakeSheetsService:
    return FakeSheetsService()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def sheets_client(fake_service, recording_sleep) -> SheetsClient:
    limiter = RateLimiter(sleep=recording_sleep)
    return SheetsClient(rate_limiter=limiter, max_attempts=6, service=fake_service)


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'judstats-test.db'}"


@pytest.fixture
def session_factory(db_url):
    """Session factory bound to a fresh database with every table created.

    NullPool keeps no connection between ``asyncio.run`` calls, so the same
    factory can be used from several event loops.
    """
    engine = create_async_engine(db_url, poolclass=NullPool)

    async def create() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create())
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def run_in_session(session_factory):
    """Run ``fn(session)`` to completion in its own event loop."""

    def runner(fn):
        async def main():
            async with session_factory() as session:
                return await fn(session)

        return asyncio.run(main())

    return runner
