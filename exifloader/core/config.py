"""Configuration dataclasses with validation."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional

from .models import Selection
from .presets import build_exclusion_set, resolve_selection


DEFAULT_PATTERN = "**/*"
DEFAULT_BASE = "src/content/images"


class IdMode(Enum):
    """How entry ids are derived from relative paths."""
    STRIP_EXTENSION = "strip"  # photos/a.jpg -> photos/a
    KEEP_EXTENSION = "keep"    # photos/a.jpg -> photos/a.jpg


class ReaderBackend(Enum):
    """Which tag reader to use."""
    AUTO = "auto"          # exiftool if on PATH, else Pillow
    EXIFTOOL = "exiftool"
    PILLOW = "pillow"


def _as_tuple(value: Optional[str | Iterable[str]]) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True, slots=True)
class ImagesDir:
    """Where to look for images: glob pattern(s) under a base directory."""
    pattern: tuple[str, ...] = (DEFAULT_PATTERN,)
    base: Path = Path(DEFAULT_BASE)

    def __post_init__(self) -> None:
        patterns = _as_tuple(self.pattern)
        if not patterns:
            raise ValueError("At least one glob pattern is required")
        if any(not p.strip() for p in patterns):
            raise ValueError("Glob patterns must not be empty")
        object.__setattr__(self, "pattern", patterns)
        object.__setattr__(self, "base", Path(self.base))

    @classmethod
    def from_dict(cls, data: dict) -> "ImagesDir":
        return cls(
            pattern=_as_tuple(data.get("pattern", DEFAULT_PATTERN)),
            base=Path(data.get("base", DEFAULT_BASE)),
        )


@dataclass(frozen=True, slots=True)
class LoaderConfig:
    """Main configuration for the loader.

    All fields are validated on construction. Presets that are not known
    are kept as given and ignored when the selection is resolved.
    """
    # Project root; relative paths (base, db) are resolved against it
    root: Path = field(default_factory=Path.cwd)
    images_dir: ImagesDir = field(default_factory=ImagesDir)

    # Tag selection
    presets: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    exclude_tags: tuple[str, ...] = ()
    extract_all: bool = False
    include_raw_exif: bool = False

    # Storage
    collection: str = "images"
    id_mode: IdMode = IdMode.STRIP_EXTENSION
    db_path: Optional[Path] = None

    # Tag reading
    reader: ReaderBackend = ReaderBackend.AUTO

    def __post_init__(self) -> None:
        """Validate configuration."""
        object.__setattr__(self, "root", Path(os.path.abspath(Path(self.root).expanduser())))
        object.__setattr__(self, "presets", _as_tuple(self.presets))
        object.__setattr__(self, "tags", _as_tuple(self.tags))
        object.__setattr__(self, "exclude_tags", _as_tuple(self.exclude_tags))

        if not self.collection:
            raise ValueError("Collection name must not be empty")

        if isinstance(self.id_mode, str):
            object.__setattr__(self, "id_mode", IdMode(self.id_mode))
        if isinstance(self.reader, str):
            object.__setattr__(self, "reader", ReaderBackend(self.reader))

        if self.db_path is not None:
            db_path = Path(self.db_path)
            if not db_path.is_absolute():
                db_path = self.root / db_path
            object.__setattr__(self, "db_path", db_path)

    @property
    def base_path(self) -> Path:
        """Absolute images directory."""
        return Path(os.path.abspath(self.root / self.images_dir.base))

    @property
    def src_root(self) -> Path:
        """Directory whose images can be imported for display."""
        return self.root / "src"

    @property
    def patterns(self) -> tuple[str, ...]:
        return self.images_dir.pattern

    @property
    def selection(self) -> Selection:
        if self.extract_all:
            return Selection.all()
        return Selection.explicit(resolve_selection(self.presets, self.tags))

    @property
    def exclusion(self) -> frozenset[str]:
        return build_exclusion_set(self.exclude_tags)

    @classmethod
    def from_dict(cls, data: dict[str, Any], root: Optional[Path] = None) -> "LoaderConfig":
        """Build a config from loader options.

        Accepts both the camelCase option names (``imagesDir``,
        ``excludeTags``, ``extractAll``, ``includeRawExif``) and the
        snake_case field names.
        """
        def pick(camel: str, snake: str, default: Any) -> Any:
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        images_dir = pick("imagesDir", "images_dir", None)
        kwargs: dict[str, Any] = {
            "images_dir": ImagesDir.from_dict(images_dir) if images_dir else ImagesDir(),
            "presets": _as_tuple(data.get("presets")),
            "tags": _as_tuple(data.get("tags")),
            "exclude_tags": _as_tuple(pick("excludeTags", "exclude_tags", None)),
            "extract_all": bool(pick("extractAll", "extract_all", False)),
            "include_raw_exif": bool(pick("includeRawExif", "include_raw_exif", False)),
        }
        if "collection" in data:
            kwargs["collection"] = data["collection"]
        id_mode = pick("idMode", "id_mode", None)
        if id_mode is not None:
            kwargs["id_mode"] = IdMode(id_mode)
        reader = data.get("reader")
        if reader is not None:
            kwargs["reader"] = ReaderBackend(reader)
        db_path = pick("dbPath", "db_path", None)
        if db_path is not None:
            kwargs["db_path"] = Path(db_path)
        if root is not None:
            kwargs["root"] = root
        elif "root" in data:
            kwargs["root"] = Path(data["root"])
        return cls(**kwargs)

    def with_overrides(self, **kwargs: Any) -> "LoaderConfig":
        """Create a new config with some values overridden."""
        unknown = set(kwargs) - {f.name for f in fields(self)}
        if unknown:
            raise ValueError(f"Unknown config fields: {', '.join(sorted(unknown))}")
        return replace(self, **kwargs)
