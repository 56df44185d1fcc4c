"""Domain models - selection variant, stored entries and run results."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional, Union


Scalar = Union[str, int, float, bool]
SerializableValue = Union[Scalar, list[Scalar], None]


@dataclass(frozen=True, slots=True)
class Selection:
    """Which tags to copy into an output record.

    Either every tag (``Selection.all()``) or an explicit, possibly empty,
    set of tag names (``Selection.explicit(...)``). An empty explicit
    selection copies nothing beyond the base fields.
    """
    is_all: bool = False
    tags: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def all(cls) -> "Selection":
        return cls(is_all=True)

    @classmethod
    def explicit(cls, tags: Iterable[str]) -> "Selection":
        return cls(is_all=False, tags=frozenset(tags))

    def __post_init__(self) -> None:
        if self.is_all and self.tags:
            raise ValueError("An all-tags selection cannot carry explicit tags")

    def __contains__(self, tag: object) -> bool:
        return self.is_all or tag in self.tags

    def __len__(self) -> int:
        return len(self.tags)


@dataclass(slots=True)
class StoredEntry:
    """A record in the collection store."""
    id: str
    data: dict[str, Any]
    digest: str = ""
    file_path: str = ""

    @property
    def mtime(self) -> Optional[str]:
        return self.data.get("mtime")

    @property
    def src_path(self) -> str:
        return self.data.get("srcPath") or ""


class ProcessingAction(Enum):
    """What happened to a file."""
    STORED = "stored"
    UNCHANGED = "unchanged"  # store already held the same digest
    SKIPPED = "skipped"      # mtime identical, not re-read
    REMOVED = "removed"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ProcessingResult:
    """Result of processing a single file."""
    path: Path
    action: ProcessingAction
    entry_id: Optional[str] = None
    read_failed: bool = False
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.action != ProcessingAction.ERROR


@dataclass(slots=True)
class LoadStats:
    """Mutable statistics for a load run."""
    discovered: int = 0
    processed: int = 0
    stored: int = 0
    unchanged: int = 0
    skipped: int = 0
    removed: int = 0
    errors: int = 0
    read_failures: int = 0
    elapsed_seconds: float = 0.0

    def record(self, result: ProcessingResult) -> None:
        """Record a processing result."""
        self.processed += 1
        if result.read_failed:
            self.read_failures += 1
        match result.action:
            case ProcessingAction.STORED:
                self.stored += 1
            case ProcessingAction.UNCHANGED:
                self.unchanged += 1
            case ProcessingAction.SKIPPED:
                self.skipped += 1
            case ProcessingAction.REMOVED:
                self.removed += 1
            case ProcessingAction.ERROR:
                self.errors += 1

    def summary(self) -> dict[str, int]:
        return {
            "discovered": self.discovered,
            "processed": self.processed,
            "stored": self.stored,
            "unchanged": self.unchanged,
            "skipped": self.skipped,
            "removed": self.removed,
            "errors": self.errors,
            "read_failures": self.read_failures,
        }


@dataclass(frozen=True, slots=True)
class ImageAsset:
    """Image binary reference attached to an entry for display."""
    src: Path
    width: int
    height: int
    format: str


@dataclass(frozen=True, slots=True)
class ImportedEntry:
    """A stored entry with its image asset (None when not importable)."""
    id: str
    collection: str
    data: dict[str, Any]
    image: Optional[ImageAsset] = None
