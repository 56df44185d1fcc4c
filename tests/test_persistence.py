"""Tests for collection stores."""
from pathlib import Path

import pytest

from exifloader.core.models import StoredEntry
from exifloader.persistence.store import (
    MemoryEntryStore,
    SQLiteEntryStore,
    create_entry_store,
)


def entry(entry_id: str, digest: str = "d1", **data) -> StoredEntry:
    data.setdefault("fileName", f"{entry_id}.jpg")
    return StoredEntry(id=entry_id, data=data, digest=digest, file_path=f"img/{entry_id}.jpg")


class StoreContract:
    """Behaviour shared by every store implementation."""

    def test_get_missing(self, store):
        assert store.get("missing") is None

    def test_set_and_get(self, store):
        assert store.set(entry("a", Make="Canon", FNumber=2.8)) is True

        retrieved = store.get("a")
        assert retrieved is not None
        assert retrieved.data == {"fileName": "a.jpg", "Make": "Canon", "FNumber": 2.8}
        assert retrieved.digest == "d1"
        assert retrieved.file_path == "img/a.jpg"

    def test_same_digest_not_rewritten(self, store):
        assert store.set(entry("a", digest="same")) is True
        assert store.set(entry("a", digest="same", Make="Other")) is False
        assert "Make" not in store.get("a").data

    def test_new_digest_replaces(self, store):
        store.set(entry("a", digest="d1", Make="Canon"))
        assert store.set(entry("a", digest="d2", Make="Nikon")) is True
        assert store.get("a").data["Make"] == "Nikon"

    def test_delete(self, store):
        store.set(entry("a"))
        assert store.delete("a") is True
        assert store.get("a") is None
        assert store.delete("a") is False

    def test_entries_and_keys_sorted(self, store):
        for entry_id in ("b", "a", "c/d"):
            store.set(entry(entry_id))
        assert store.keys() == ["a", "b", "c/d"]
        assert [e.id for e in store.entries()] == ["a", "b", "c/d"]
        assert store.count() == 3
        assert len(store) == 3

    def test_clear(self, store):
        store.set(entry("a"))
        store.set(entry("b"))
        store.clear()
        assert store.keys() == []

    def test_unicode_and_nested_values(self, store):
        store.set(entry("a", Artist="Zoë", rawExif={"GPSPosition": [1.5, None]}))
        data = store.get("a").data
        assert data["Artist"] == "Zoë"
        assert data["rawExif"] == {"GPSPosition": [1.5, None]}


class TestMemoryEntryStore(StoreContract):
    """Tests for the in-memory store."""

    @pytest.fixture
    def store(self):
        return MemoryEntryStore()


class TestSQLiteEntryStore(StoreContract):
    """Tests for the SQLite store."""

    @pytest.fixture
    def db_path(self, tmp_path: Path) -> Path:
        return tmp_path / "data" / "exif.db"

    @pytest.fixture
    def store(self, db_path: Path):
        store = SQLiteEntryStore(db_path)
        yield store
        store.close()

    def test_create_database(self, db_path):
        """Database file and parent directory are created."""
        store = SQLiteEntryStore(db_path)
        assert db_path.exists()
        store.close()

    def test_persists_across_connections(self, db_path):
        with SQLiteEntryStore(db_path) as store:
            store.set(entry("a", Make="Canon"))
        with SQLiteEntryStore(db_path) as store:
            assert store.get("a").data["Make"] == "Canon"

    def test_collections_isolated(self, db_path):
        with SQLiteEntryStore(db_path, "images") as images, \
                SQLiteEntryStore(db_path, "photos") as photos:
            images.set(entry("a"))
            assert photos.get("a") is None
            assert photos.count() == 0
            assert images.collection == "images"

    def test_close_idempotent(self, db_path):
        store = SQLiteEntryStore(db_path)
        store.close()
        store.close()


class TestCreateEntryStore:
    """Tests for the store factory."""

    def test_memory_without_path(self):
        assert isinstance(create_entry_store(), MemoryEntryStore)

    def test_sqlite_with_path(self, tmp_path):
        store = create_entry_store(tmp_path / "exif.db", "photos")
        try:
            assert isinstance(store, SQLiteEntryStore)
            assert store.collection == "photos"
        finally:
            store.close()
