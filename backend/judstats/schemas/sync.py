from datetime import datetime

from pydantic import BaseModel, Field

from judstats.models.sync_log import SyncStatus, SyncTrigger


class SyncRunRequest(BaseModel):
    # None means "discover every valid sheet"
    sheet_names: list[str] | None = None


class SyncRunResponse(BaseModel):
    processed: int
    inserted: int
    updated: int
    skipped: int
    errors: list[str]


class SingleSheetSyncRequest(BaseModel):
    source_id: str = Field(..., min_length=1, max_length=200)
    period: str = Field(..., pattern=r"^\d{6}$", description="YYYYMM")
    dependency_name: str = Field(..., min_length=1, max_length=500)


class SingleSheetSyncResponse(BaseModel):
    success: bool
    message: str
    source_id: str
    inserted: int = 0
    error: str | None = None

    model_config = {"from_attributes": True}


class SheetStatusResponse(BaseModel):
    source_id: str
    synced: bool


class ConnectionResponse(BaseModel):
    connected: bool
    workbook_id: str


class SyncLogResponse(BaseModel):
    id: int
    trigger: SyncTrigger
    status: SyncStatus
    processed: int
    inserted: int
    updated: int
    skipped: int
    error_count: int
    error_message: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
