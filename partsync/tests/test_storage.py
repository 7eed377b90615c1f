"""Tests for the key-value stores and the catalog repository."""

import sqlite3
from datetime import datetime, timezone

import pytest

from partsync.config import CATALOG_KEY, LAST_UPDATE_KEY, NOTIFICATIONS_KEY
from partsync.errors import PersistenceError
from partsync.models import Notification, Part, Specification
from partsync.storage import CatalogRepository, MemoryStore, SqliteStore


def _notification(n: int) -> Notification:
    return Notification(timestamp=f"2024-01-{n:02d}T00:00:00.000Z", message=f"update {n}")


class TestSqliteStore:
    @pytest.fixture
    def sqlite_store(self, tmp_path):
        return SqliteStore(str(tmp_path / "nested" / "store.db"))

    def test_missing_key_returns_none(self, sqlite_store):
        assert sqlite_store.get("nope") is None

    def test_set_get_overwrite(self, sqlite_store):
        sqlite_store.set("k", "v1")
        sqlite_store.set("k", "v2")
        assert sqlite_store.get("k") == "v2"

    def test_remove(self, sqlite_store):
        sqlite_store.set("k", "v")
        sqlite_store.remove("k")
        sqlite_store.remove("k")
        assert sqlite_store.get("k") is None

    def test_values_survive_a_new_instance(self, sqlite_store):
        sqlite_store.set("k", "persisted")
        assert SqliteStore(sqlite_store.db_path).get("k") == "persisted"

    def test_creates_kv_table(self, sqlite_store):
        sqlite_store.get("k")
        conn = sqlite3.connect(sqlite_store.db_path)
        try:
            row = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='kv_store'"
            ).fetchone()
        finally:
            conn.close()
        assert row is not None

    def test_unopenable_path_raises_persistence_error(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        store = SqliteStore(str(blocker / "store.db"))

        with pytest.raises(PersistenceError):
            store.set("k", "v")


class TestCatalogRepositoryCatalog:
    def test_empty_store_yields_empty_catalog(self, repository):
        assert repository.load_catalog() == []

    def test_roundtrip_preserves_fields(self, repository):
        part = Part(
            id="p1",
            sku="1120-0001",
            name="Bracket",
            category="structure",
            description="Pattern bracket",
            specifications=[Specification("Material", ["Aluminum"])],
            image_url="bracket.jpg",
        )
        repository.save_catalog([part])
        assert repository.load_catalog() == [part]

    def test_stored_json_uses_camel_case_image_url(self, store, repository):
        repository.save_catalog([Part("p1", "S", "n", "c", "d", [], "img.jpg")])
        assert '"imageUrl": "img.jpg"' in store.get(CATALOG_KEY)

    @pytest.mark.parametrize("raw", ["not json", '{"sku": "A"}', '[{"name": "no id"}]'])
    def test_unparsable_catalog_falls_back_to_empty(self, raw):
        repository = CatalogRepository(MemoryStore({CATALOG_KEY: raw}))
        assert repository.load_catalog() == []


class TestCatalogRepositoryLastUpdate:
    def test_missing_timestamp(self, repository):
        assert repository.load_last_update() is None

    def test_roundtrip(self, store, repository):
        ts = datetime(2024, 3, 5, 8, 30, 15, 123000, tzinfo=timezone.utc)
        repository.save_last_update(ts)

        assert store.get(LAST_UPDATE_KEY) == "2024-03-05T08:30:15.123Z"
        assert repository.load_last_update() == ts

    def test_unparsable_timestamp_is_ignored(self):
        repository = CatalogRepository(MemoryStore({LAST_UPDATE_KEY: "yesterday"}))
        assert repository.load_last_update() is None


class TestCatalogRepositoryNotifications:
    def test_push_prepends(self, repository):
        repository.push_notification(_notification(1))
        repository.push_notification(_notification(2))

        assert [n.message for n in repository.load_notifications()] == ["update 2", "update 1"]

    def test_cap_keeps_most_recent(self, repository):
        for n in range(1, 13):
            repository.push_notification(_notification(n))

        messages = [n.message for n in repository.load_notifications()]
        assert len(messages) == 10
        assert messages[0] == "update 12"
        assert messages[-1] == "update 3"

    def test_custom_cap(self, store):
        repository = CatalogRepository(store, max_notifications=2)
        for n in range(1, 4):
            returned = repository.push_notification(_notification(n))
        assert [n.message for n in returned] == ["update 3", "update 2"]

    def test_clear(self, store, repository):
        repository.push_notification(_notification(1))
        repository.clear_notifications()

        assert store.get(NOTIFICATIONS_KEY) is None
        assert repository.load_notifications() == []

    @pytest.mark.parametrize("raw", ["{broken", '[{"message": "x", "errors": 5}]'])
    def test_unparsable_notifications_yield_empty(self, raw):
        repository = CatalogRepository(MemoryStore({NOTIFICATIONS_KEY: raw}))
        assert repository.load_notifications() == []

    def test_push_recovers_from_corrupt_notifications(self):
        repository = CatalogRepository(MemoryStore({NOTIFICATIONS_KEY: '[{"message": "x", "errors": 5}]'}))

        repository.push_notification(_notification(1))

        assert [n.message for n in repository.load_notifications()] == ["update 1"]
