"""Pillow-backed tag reader, used when exiftool is not installed."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from PIL import Image, ExifTags, UnidentifiedImageError

from .errors import ExifReadError
from .values import convert_date_tags


# Sub-IFDs merged into the flat tag mapping
_SUB_IFDS = (
    (ExifTags.IFD.Exif, ExifTags.TAGS),
    (ExifTags.IFD.GPSInfo, ExifTags.GPSTAGS),
)

# Pointer tags that only reference sub-IFDs
_POINTER_TAGS = {"ExifOffset", "GPSInfo"}


def _decode(value: Any) -> Any:
    if isinstance(value, bytes):
        text = value.rstrip(b"\x00")
        try:
            return text.decode("utf-8")
        except UnicodeDecodeError:
            return value
    if isinstance(value, str):
        return value.rstrip("\x00").strip()
    return value


class PillowTagReader:
    """Reads EXIF tags with Pillow.

    Tag names follow Pillow's EXIF tables (``Make``, ``FNumber``,
    ``DateTimeOriginal``, ``GPSLatitude``, ...). ``ImageWidth`` and
    ``ImageHeight`` always reflect the decoded image size. Values keep
    Pillow's types (IFDRational, tuples); the serializer normalizes them.
    """

    @property
    def name(self) -> str:
        return "pillow"

    def read_sync(self, path: Path) -> dict[str, Any]:
        """Blocking read of all EXIF tags in a file.

        Raises:
            ExifReadError: Pillow could not open the file.
        """
        try:
            with Image.open(path) as img:
                tags: dict[str, Any] = {}
                exif = img.getexif()
                for tag_id, value in exif.items():
                    name = ExifTags.TAGS.get(tag_id, str(tag_id))
                    if name in _POINTER_TAGS:
                        continue
                    tags[name] = _decode(value)
                for ifd, names in _SUB_IFDS:
                    for tag_id, value in exif.get_ifd(ifd).items():
                        tags[names.get(tag_id, str(tag_id))] = _decode(value)
                tags["ImageWidth"], tags["ImageHeight"] = img.size
                if img.format:
                    tags["FileType"] = img.format
                    tags["MIMEType"] = Image.MIME.get(img.format)
                return convert_date_tags(tags)
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ExifReadError(f"Pillow could not read {path}: {e}") from e

    async def read(self, path: Path) -> dict[str, Any]:
        return await asyncio.to_thread(self.read_sync, path)

    def close(self) -> None:
        pass
