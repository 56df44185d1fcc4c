"""Protocol definitions (interfaces) for dependency injection."""
from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Any, Iterator, Optional, Protocol

from .models import StoredEntry


class TagReader(Protocol):
    """Interface for reading metadata tags from a file.

    Implementations:
    - ExifToolReader: persistent exiftool process (full tag coverage)
    - PillowTagReader: Pillow EXIF decoding (no external binary)
    """

    @abstractmethod
    async def read(self, path: Path) -> dict[str, Any]:
        """Read all tags as a name -> value mapping.

        Raises:
            ExifReadError: The file could not be parsed.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Reader name for logging."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release external resources."""
        ...


class EntryStore(Protocol):
    """Interface for the collection store, keyed by entry id."""

    @abstractmethod
    def get(self, entry_id: str) -> Optional[StoredEntry]:
        """Get an entry, or None."""
        ...

    @abstractmethod
    def set(self, entry: StoredEntry) -> bool:
        """Insert or update an entry.

        Returns False when an entry with the same digest is already stored.
        """
        ...

    @abstractmethod
    def delete(self, entry_id: str) -> bool:
        """Delete an entry. Returns True if one was removed."""
        ...

    @abstractmethod
    def entries(self) -> Iterator[StoredEntry]:
        """Iterate over all entries in id order."""
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        """All entry ids."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release resources."""
        ...


class ProgressReporter(Protocol):
    """Interface for progress reporting."""

    @abstractmethod
    def start_phase(self, name: str, total: int) -> None:
        """Start a new processing phase."""
        ...

    @abstractmethod
    def advance_phase(self, amount: int = 1) -> None:
        """Advance the current phase by an amount."""
        ...

    @abstractmethod
    def end_phase(self) -> None:
        """Complete current phase."""
        ...

    @abstractmethod
    def info(self, message: str) -> None:
        """Log an info message."""
        ...

    @abstractmethod
    def warning(self, message: str) -> None:
        """Log a warning message."""
        ...

    @abstractmethod
    def error(self, message: str) -> None:
        """Log an error message."""
        ...

    @abstractmethod
    def debug(self, message: str) -> None:
        """Log a debug message."""
        ...
