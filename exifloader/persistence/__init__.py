"""Persistence layer - collection stores."""
from .store import MemoryEntryStore, SQLiteEntryStore, create_entry_store

__all__ = ["MemoryEntryStore", "SQLiteEntryStore", "create_entry_store"]
