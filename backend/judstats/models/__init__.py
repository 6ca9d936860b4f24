from judstats.models.dependency import Dependency
from judstats.models.statistic import Statistic
from judstats.models.sync_log import SyncLog

__all__ = [
    "Dependency",
    "Statistic",
    "SyncLog",
]
