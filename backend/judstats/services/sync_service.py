"""Sync orchestration: discovery -> fetch -> parse -> reconcile.

Strictly sequential; the only suspension points are the rate limiter's
waits inside the Sheets client.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from judstats.models.dependency import Dependency
from judstats.models.statistic import Statistic
from judstats.models.sync_log import SyncLog, SyncStatus, SyncTrigger
from judstats.services import statistic_store
from judstats.services.reconciliation_service import reconcile
from judstats.sheets.client import SheetsClient
from judstats.sheets.discovery import list_valid_sheets
from judstats.sheets.errors import (
    RecordValidationError,
    SheetsAuthError,
    SheetsConfigError,
)
from judstats.sheets.normalizer import normalize_dependency_name, normalize_period
from judstats.sheets.parser import ParsedStatistic
from judstats.sheets.reader import SheetReader

logger = logging.getLogger(__name__)

# Errors stored on the SyncLog row; the run result keeps all of them
LOGGED_ERRORS = 10


class SyncState(str, enum.Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    FETCHING = "fetching"
    PARSING = "parsing"
    RECONCILING = "reconciling"
    AGGREGATING = "aggregating"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"


@dataclass
class SyncRunResult:
    """Counts and error messages of one orchestrator run."""

    processed: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SingleSheetResult:
    success: bool
    message: str
    source_id: str
    inserted: int = 0
    error: str | None = None


class SyncService:
    """Drives a full or single-document sync against one database session."""

    def __init__(
        self,
        client: SheetsClient,
        db: AsyncSession,
        workbook_id: str,
        reader: SheetReader | None = None,
    ) -> None:
        self.client = client
        self.db = db
        self.workbook_id = workbook_id
        self.reader = reader or SheetReader(client)
        self.state = SyncState.IDLE

    def _ensure_configured(self) -> None:
        self.client.ensure_available()
        if not self.workbook_id:
            raise SheetsConfigError("GOOGLE_SHEETS_SPREADSHEET_ID is not configured")

    async def run(self, sheet_names: Sequence[str] | None = None) -> SyncRunResult:
        """Sync the given sheets, or every valid sheet of the workbook.

        Per-sheet and per-record failures are collected into ``errors``;
        configuration and credential errors abort the run.
        """
        self._ensure_configured()

        if sheet_names is None:
            self.state = SyncState.DISCOVERING
            logger.info("Discovering sheets of workbook %s", self.workbook_id)
            descriptors = await list_valid_sheets(self.client, self.workbook_id)
            sheet_names = [d.name for d in descriptors]
            logger.info("Found %d sheets to process", len(sheet_names))

        self.client.rate_limiter.reset()
        result = SyncRunResult()

        for sheet_name in sheet_names:
            self.state = SyncState.FETCHING
            logger.info("Processing sheet: %s", sheet_name)
            try:
                rows = await self.reader.fetch_rows(self.workbook_id, sheet_name)
                self.state = SyncState.PARSING
                extraction = await self.reader.parse_sheet(rows, sheet_name)
            except (SheetsAuthError, SheetsConfigError):
                raise
            except Exception as e:
                logger.error("Error processing sheet %s: %s", sheet_name, e)
                result.errors.append(f"Error processing sheet {sheet_name}: {e}")
                continue

            statistics = extraction.statistics
            result.processed += len(statistics)
            result.skipped += extraction.skipped
            logger.info("Reconciling %d records from %s", len(statistics), sheet_name)
            self.state = SyncState.RECONCILING
            for parsed in statistics:
                await self._reconcile_one(parsed, result)

        self.state = SyncState.AGGREGATING
        await self._log_run(SyncTrigger.FULL, result)
        self.state = (
            SyncState.COMPLETED_WITH_ERRORS if result.errors else SyncState.COMPLETED
        )
        logger.info(
            "Sync finished: %d processed, %d inserted, %d updated, %d skipped, %d errors",
            result.processed, result.inserted, result.updated,
            result.skipped, len(result.errors),
        )
        return result

    async def _reconcile_one(self, parsed: ParsedStatistic, result: SyncRunResult) -> None:
        """Reconcile and commit one record; failures never stop the run."""
        try:
            outcome = await reconcile(self.db, parsed)
            await self.db.commit()
        except RecordValidationError as e:
            await self.db.rollback()
            logger.warning("Skipping record from %s: %s", parsed.source_id, e)
            result.skipped += 1
            return
        except Exception as e:
            await self.db.rollback()
            logger.error("Error saving %s: %s", parsed.dependency_name, e)
            result.errors.append(f"Error saving {parsed.dependency_name}: {e}")
            return

        if outcome.inserted:
            result.inserted += 1
        else:
            result.updated += 1

    async def _log_run(self, trigger: SyncTrigger, result: SyncRunResult) -> SyncLog:
        if not result.errors:
            status = SyncStatus.SUCCESS
        elif result.inserted or result.updated:
            status = SyncStatus.PARTIAL
        else:
            status = SyncStatus.FAILED
        error_message = "\n".join(result.errors[:LOGGED_ERRORS])[:1000] or None

        log = SyncLog(
            trigger=trigger,
            status=status,
            processed=result.processed,
            inserted=result.inserted,
            updated=result.updated,
            skipped=result.skipped,
            error_count=len(result.errors),
            error_message=error_message,
        )
        self.db.add(log)
        await self.db.commit()
        return log

    async def is_already_reconciled(self, dependency_name: str, period: str) -> bool:
        name = normalize_dependency_name(dependency_name)
        result = await self.db.execute(
            select(Statistic.id)
            .join(Dependency, Statistic.dependency_id == Dependency.id)
            .where(Dependency.name == name, Statistic.period == period)
        )
        return result.first() is not None

    async def sync_single_sheet(
        self,
        source_id: str,
        period: str,
        dependency_name: str,
    ) -> SingleSheetResult:
        """Ingest one individually published workbook out of band."""
        if normalize_period(period) is None:
            return SingleSheetResult(
                success=False,
                message="Period must be YYYYMM with a year in 2005-2099 (e.g. 202410)",
                source_id=source_id,
            )

        if await self.is_already_reconciled(dependency_name, period):
            logger.info("Sheet %s is already synced for %s %s", source_id, dependency_name, period)
            return SingleSheetResult(
                success=False,
                message="This sheet is already synced",
                source_id=source_id,
            )

        try:
            self.client.ensure_available()
            parsed = await self.reader.read_reference_document(source_id, dependency_name, period)
            if parsed is None:
                raise ValueError(f"No data could be extracted from sheet {source_id}")
            outcome = await reconcile(self.db, parsed)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error("Error syncing sheet %s: %s", source_id, e)
            return SingleSheetResult(
                success=False,
                message="Error syncing sheet",
                source_id=source_id,
                error=str(e),
            )

        await self._log_run(
            SyncTrigger.SINGLE,
            SyncRunResult(
                processed=1,
                inserted=int(outcome.inserted),
                updated=int(not outcome.inserted),
            ),
        )
        logger.info("Sheet %s synced", source_id)
        return SingleSheetResult(
            success=True,
            message="Sheet synced",
            source_id=source_id,
            inserted=int(outcome.inserted),
        )

    async def is_sheet_already_synced(self, source_id: str) -> bool:
        return await statistic_store.count_statistics_for_source(self.db, source_id) > 0

    async def test_connection(self) -> bool:
        if not self.workbook_id:
            return False
        return await self.client.test_connection(self.workbook_id)
