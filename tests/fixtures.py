"""Shared test helpers: image files with EXIF, fake readers and clocks.

Images are generated with Pillow so tests do not depend on checked-in
binaries. Tag ids are the standard TIFF/EXIF ids.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from PIL import Image

from exifloader.engines.errors import ExifReadError


MAKE = 0x010F
MODEL = 0x0110
SOFTWARE = 0x0131
DATETIME = 0x0132
ARTIST = 0x013B

# 2024-01-15T10:30:45.500Z
FIXED_MTIME = 1705314645.5
FIXED_MTIME_ISO = "2024-01-15T10:30:45.500Z"


def make_jpeg(
    path: Path,
    size: tuple[int, int] = (64, 48),
    tags: Optional[dict[int, Any]] = None,
    mtime: Optional[float] = None,
    color: str = "red",
) -> Path:
    """Write a JPEG with top-level EXIF tags and an optional fixed mtime."""
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", size, color=color)
    exif = Image.Exif()
    for tag_id, value in (tags or {}).items():
        exif[tag_id] = value
    img.save(path, "JPEG", exif=exif.tobytes())
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def make_png(path: Path, size: tuple[int, int] = (32, 32)) -> Path:
    """Write a PNG without EXIF."""
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color="blue").save(path, "PNG")
    return path


@dataclass
class FakeTagReader:
    """In-memory TagReader returning canned tags per file name.

    Files not listed get ``default``. Names in ``fail`` raise
    ExifReadError; names in ``crash`` raise RuntimeError.
    """
    tags_by_name: dict[str, dict[str, Any]] = field(default_factory=dict)
    default: dict[str, Any] = field(default_factory=dict)
    fail: set[str] = field(default_factory=set)
    crash: set[str] = field(default_factory=set)
    calls: list[Path] = field(default_factory=list)
    closed: bool = False

    @property
    def name(self) -> str:
        return "fake"

    async def read(self, path: Path) -> dict[str, Any]:
        self.calls.append(Path(path))
        name = Path(path).name
        if name in self.fail:
            raise ExifReadError(f"cannot read {name}")
        if name in self.crash:
            raise RuntimeError(f"reader crashed on {name}")
        return dict(self.tags_by_name.get(name, self.default))

    def close(self) -> None:
        self.closed = True
