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

__all__ = [
    "ApiResponse",
    "ConnectionResponse",
    "SheetStatusResponse",
    "SingleSheetSyncRequest",
    "SingleSheetSyncResponse",
    "SyncLogResponse",
    "SyncRunRequest",
    "SyncRunResponse",
]
