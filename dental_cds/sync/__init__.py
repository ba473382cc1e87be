"""Reference data synchronization and data-quality status."""

from .events import StatusChannel, Subscription
from .models import CATEGORIES, CategoryQuality, DataQualityReport, SyncError, SyncState, SyncStatus
from .orchestrator import CACHE_KEY, STATUS_KEY, SyncOrchestrator, generate_version

__all__ = [
    "CACHE_KEY",
    "CATEGORIES",
    "CategoryQuality",
    "DataQualityReport",
    "STATUS_KEY",
    "StatusChannel",
    "Subscription",
    "SyncError",
    "SyncOrchestrator",
    "SyncState",
    "SyncStatus",
    "generate_version",
]
