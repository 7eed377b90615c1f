"""Key-value storage backends and the catalog repository built on them."""

import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Generator, List, Optional

from partsync.config import (
    CATALOG_KEY,
    LAST_UPDATE_KEY,
    MAX_NOTIFICATIONS,
    NOTIFICATIONS_KEY,
    STORE_PATH,
)
from partsync.errors import PersistenceError
from partsync.logging_config import get_logger
from partsync.models import Notification, Part, parse_iso, to_iso

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "SqliteStore",
    "CatalogRepository",
]

logger = get_logger("storage")


class KeyValueStore(ABC):
    """Synchronous get/set/remove over string keys."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass


class MemoryStore(KeyValueStore):
    """In-process store, used by tests and throwaway runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class SqliteStore(KeyValueStore):
    """SQLite-backed store with a single ``kv_store`` table."""

    def __init__(self, db_path: str = STORE_PATH):
        self.db_path = db_path
        self._initialized = False

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections."""
        try:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
        except (OSError, sqlite3.Error) as e:
            raise PersistenceError(f"Cannot open store {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            if not self._initialized:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                conn.commit()
                self._initialized = True
            yield conn
        except sqlite3.Error as e:
            raise PersistenceError(f"Store operation failed on {self.db_path}: {e}") from e
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute("""
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP
            """, (key, value))
            conn.commit()

    def remove(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()


class CatalogRepository:
    """Reads and writes the catalog, the last-sync timestamp and notifications.

    Every write is a full overwrite; the lock makes this the single
    write-serialization point for the process.
    """

    def __init__(self, store: KeyValueStore, max_notifications: int = MAX_NOTIFICATIONS):
        self.store = store
        self.max_notifications = max_notifications
        self._lock = threading.RLock()

    # ---------- catalog ----------

    def load_catalog(self) -> List[Part]:
        """Return the stored catalog, or [] if nothing is stored or it cannot be parsed."""
        raw = self.store.get(CATALOG_KEY)
        if not raw:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            return [Part.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Stored catalog is unreadable, starting from empty: {e}")
            return []

    def save_catalog(self, parts: List[Part]) -> None:
        payload = json.dumps([p.to_dict() for p in parts], ensure_ascii=False)
        with self._lock:
            self.store.set(CATALOG_KEY, payload)
        logger.debug(f"Saved catalog with {len(parts)} parts")

    # ---------- last update ----------

    def load_last_update(self) -> Optional[datetime]:
        raw = self.store.get(LAST_UPDATE_KEY)
        if not raw:
            return None
        try:
            return parse_iso(raw)
        except ValueError:
            logger.warning(f"Ignoring unparsable last-update timestamp: {raw!r}")
            return None

    def save_last_update(self, ts: datetime) -> None:
        with self._lock:
            self.store.set(LAST_UPDATE_KEY, to_iso(ts))

    # ---------- notifications ----------

    def load_notifications(self) -> List[Notification]:
        raw = self.store.get(NOTIFICATIONS_KEY)
        if not raw:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                return []
            return [Notification.from_dict(item) for item in data if isinstance(item, dict)]
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Stored notifications are unreadable: {e}")
            return []

    def save_notifications(self, notifications: List[Notification]) -> None:
        kept = notifications[: self.max_notifications]
        with self._lock:
            self.store.set(NOTIFICATIONS_KEY, json.dumps([n.to_dict() for n in kept], ensure_ascii=False))

    def push_notification(self, notification: Notification) -> List[Notification]:
        """Prepend a notification, dropping the oldest beyond the cap."""
        with self._lock:
            notifications = [notification] + self.load_notifications()
            self.save_notifications(notifications)
            return notifications[: self.max_notifications]

    def clear_notifications(self) -> None:
        with self._lock:
            self.store.remove(NOTIFICATIONS_KEY)
