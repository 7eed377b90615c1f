"""Exceptions raised by the sync pipeline."""

from typing import Optional

__all__ = [
    "SyncError",
    "FetchError",
    "PersistenceError",
    "UpdateInProgressError",
]


class SyncError(Exception):
    """Base class for parts sync errors."""
    pass


class FetchError(SyncError):
    """Raised when a category cannot be fetched or its payload is malformed."""

    def __init__(self, message: str, category: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.category = category
        self.status_code = status_code


class PersistenceError(SyncError):
    """Raised when the backing store cannot be read or written."""
    pass


class UpdateInProgressError(SyncError):
    """Raised when an update is requested while another one is still running."""
    pass
