"""Collection stores for image entries."""
from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Iterator, Optional

from ..core.models import StoredEntry


class MemoryEntryStore:
    """Dict-backed store. Last write wins per id."""

    def __init__(self) -> None:
        self._entries: dict[str, StoredEntry] = {}

    def get(self, entry_id: str) -> Optional[StoredEntry]:
        return self._entries.get(entry_id)

    def set(self, entry: StoredEntry) -> bool:
        existing = self._entries.get(entry.id)
        if existing is not None and entry.digest and existing.digest == entry.digest:
            return False
        self._entries[entry.id] = entry
        return True

    def delete(self, entry_id: str) -> bool:
        return self._entries.pop(entry_id, None) is not None

    def entries(self) -> Iterator[StoredEntry]:
        for entry_id in sorted(self._entries):
            yield self._entries[entry_id]

    def keys(self) -> list[str]:
        return sorted(self._entries)

    def count(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def close(self) -> None:
        pass

    def __len__(self) -> int:
        return len(self._entries)

    def __enter__(self) -> "MemoryEntryStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class SQLiteEntryStore:
    """SQLite implementation of the collection store.

    One table holds the entries of every collection; each row carries the
    record as JSON plus its digest and the file path relative to the
    project root.
    """

    def __init__(self, db_path: Path, collection: str = "images"):
        """Initialize store with database path.

        Args:
            db_path: Path to SQLite database file.
            collection: Collection name entries are scoped to.
        """
        self._db_path = db_path
        self._collection = collection
        self._conn: Optional[sqlite3.Connection] = None
        self._init_database()

    @property
    def collection(self) -> str:
        return self._collection

    def _init_database(self) -> None:
        """Create tables if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.row_factory = sqlite3.Row

        cursor = self._conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS entries (
                collection TEXT NOT NULL,
                id TEXT NOT NULL,
                data TEXT NOT NULL,
                digest TEXT,
                file_path TEXT,
                created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (collection, id)
            )
        """)
        self._conn.commit()

    def get(self, entry_id: str) -> Optional[StoredEntry]:
        """Get entry by id."""
        assert self._conn is not None
        cursor = self._conn.cursor()
        cursor.execute(
            "SELECT * FROM entries WHERE collection = ? AND id = ?",
            (self._collection, entry_id),
        )
        row = cursor.fetchone()
        return self._row_to_entry(row) if row else None

    def set(self, entry: StoredEntry) -> bool:
        """Insert or update an entry.

        Returns:
            False if the stored digest already matches (nothing written).
        """
        assert self._conn is not None
        existing = self.get(entry.id)
        if existing is not None and entry.digest and existing.digest == entry.digest:
            return False

        cursor = self._conn.cursor()
        cursor.execute("""
            INSERT INTO entries (collection, id, data, digest, file_path, updated_at)
            VALUES (?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(collection, id) DO UPDATE SET
                data = excluded.data,
                digest = excluded.digest,
                file_path = excluded.file_path,
                updated_at = CURRENT_TIMESTAMP
        """, (
            self._collection,
            entry.id,
            json.dumps(entry.data, ensure_ascii=False),
            entry.digest,
            entry.file_path,
        ))
        self._conn.commit()
        return True

    def delete(self, entry_id: str) -> bool:
        """Delete an entry by id."""
        assert self._conn is not None
        cursor = self._conn.cursor()
        cursor.execute(
            "DELETE FROM entries WHERE collection = ? AND id = ?",
            (self._collection, entry_id),
        )
        self._conn.commit()
        return cursor.rowcount > 0

    def entries(self) -> Iterator[StoredEntry]:
        """Iterate over all entries of the collection in id order."""
        assert self._conn is not None
        cursor = self._conn.cursor()
        cursor.execute(
            "SELECT * FROM entries WHERE collection = ? ORDER BY id",
            (self._collection,),
        )
        for row in cursor.fetchall():
            yield self._row_to_entry(row)

    def keys(self) -> list[str]:
        """All entry ids of the collection."""
        assert self._conn is not None
        cursor = self._conn.cursor()
        cursor.execute(
            "SELECT id FROM entries WHERE collection = ? ORDER BY id",
            (self._collection,),
        )
        return [row[0] for row in cursor.fetchall()]

    def count(self) -> int:
        """Count entries in the collection."""
        assert self._conn is not None
        cursor = self._conn.cursor()
        cursor.execute(
            "SELECT COUNT(*) FROM entries WHERE collection = ?",
            (self._collection,),
        )
        return cursor.fetchone()[0]

    def clear(self) -> None:
        """Remove every entry of the collection."""
        assert self._conn is not None
        self._conn.execute(
            "DELETE FROM entries WHERE collection = ?", (self._collection,)
        )
        self._conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def _row_to_entry(self, row: sqlite3.Row) -> StoredEntry:
        """Convert database row to StoredEntry."""
        return StoredEntry(
            id=row["id"],
            data=json.loads(row["data"]),
            digest=row["digest"] or "",
            file_path=row["file_path"] or "",
        )

    def __len__(self) -> int:
        return self.count()

    def __enter__(self) -> "SQLiteEntryStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def create_entry_store(
    db_path: Optional[Path] = None,
    collection: str = "images",
) -> MemoryEntryStore | SQLiteEntryStore:
    """SQLite store when a database path is given, else in-memory."""
    if db_path is None:
        return MemoryEntryStore()
    return SQLiteEntryStore(db_path, collection)
