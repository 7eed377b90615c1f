"""Parts catalog sync package."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from partsync.config import CATEGORY_PATHS, STORE_PATH, UPDATE_INTERVAL_MS
from partsync.errors import FetchError, PersistenceError, SyncError, UpdateInProgressError
from partsync.fetcher import CatalogFetcher
from partsync.merger import merge_catalog
from partsync.models import Notification, Part, ScrapedRecord, UpdateResult
from partsync.scheduler import UpdateScheduler
from partsync.storage import CatalogRepository, MemoryStore, SqliteStore
from partsync.updater import PartsUpdater

__all__ = [
    # Version
    "__version__",
    # Config
    "CATEGORY_PATHS",
    "STORE_PATH",
    "UPDATE_INTERVAL_MS",
    # Errors
    "SyncError",
    "FetchError",
    "PersistenceError",
    "UpdateInProgressError",
    # Models
    "Part",
    "ScrapedRecord",
    "UpdateResult",
    "Notification",
    # Core components
    "CatalogFetcher",
    "CatalogRepository",
    "MemoryStore",
    "SqliteStore",
    "merge_catalog",
    "PartsUpdater",
    "UpdateScheduler",
]
