"""Sync router - trigger Google Sheets ingestion and inspect its history."""

from __future__ import annotations

import dataclasses
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from judstats.config import settings
from judstats.database import get_db
from judstats.models.sync_log import SyncLog
from judstats.schemas.common import ApiResponse
from judstats.schemas.sync import (
    ConnectionResponse,
    SheetStatusResponse,
    SingleSheetSyncRequest,
    SingleSheetSyncResponse,
    SyncLogResponse,
    SyncRunRequest,
    SyncRunResponse,
)
from judstats.services.sync_service import SyncService
from judstats.sheets.client import SheetsClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


def get_sync_service(db: AsyncSession = Depends(get_db)) -> SyncService:
    client = SheetsClient.from_settings(settings)
    return SyncService(client, db, settings.GOOGLE_SHEETS_SPREADSHEET_ID)


# --- Runs ---

@router.post("/run")
async def run_sync(
    body: SyncRunRequest | None = None,
    service: SyncService = Depends(get_sync_service),
) -> ApiResponse[SyncRunResponse]:
    """Run a full sync, or restrict it to the given sheet names."""
    sheet_names = body.sheet_names if body else None
    try:
        result = await service.run(sheet_names)
    except Exception as e:
        logger.error("Sync aborted: %s", e)
        return ApiResponse.fail(f"Sync failed: {e}")

    return ApiResponse.ok(
        SyncRunResponse(**dataclasses.asdict(result)),
        meta={"state": service.state.value},
    )


@router.post("/sheet")
async def sync_single_sheet(
    body: SingleSheetSyncRequest,
    service: SyncService = Depends(get_sync_service),
) -> ApiResponse[SingleSheetSyncResponse]:
    result = await service.sync_single_sheet(
        body.source_id, body.period, body.dependency_name,
    )
    if not result.success:
        return ApiResponse.fail(result.error or result.message, meta={"source_id": result.source_id})
    return ApiResponse.ok(SingleSheetSyncResponse.model_validate(result))


@router.get("/sheet/{source_id}/status")
async def get_sheet_status(
    source_id: str,
    service: SyncService = Depends(get_sync_service),
) -> ApiResponse[SheetStatusResponse]:
    synced = await service.is_sheet_already_synced(source_id)
    return ApiResponse.ok(SheetStatusResponse(source_id=source_id, synced=synced))


@router.get("/connection")
async def check_connection(
    service: SyncService = Depends(get_sync_service),
) -> ApiResponse[ConnectionResponse]:
    connected = await service.test_connection()
    return ApiResponse.ok(
        ConnectionResponse(connected=connected, workbook_id=service.workbook_id)
    )


# --- History ---

@router.get("/history")
async def get_sync_history(
    limit: int = Query(default=50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[list[SyncLogResponse]]:
    result = await db.execute(
        select(SyncLog).order_by(SyncLog.created_at.desc(), SyncLog.id.desc()).limit(limit)
    )
    logs = result.scalars().all()
    return ApiResponse.ok([SyncLogResponse.model_validate(log) for log in logs])
