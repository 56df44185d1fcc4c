"""Tag reader engines."""
from __future__ import annotations

import logging

from ..core.config import ReaderBackend
from .errors import ExifReadError
from .exiftool import ExifToolDaemon, ExifToolReader, exiftool_available
from .pillow import PillowTagReader
from .values import ExifDateTime

logger = logging.getLogger(__name__)


def create_tag_reader(
    backend: ReaderBackend = ReaderBackend.AUTO,
) -> ExifToolReader | PillowTagReader:
    """Factory function to create the appropriate tag reader.

    Args:
        backend: Which reader to use. AUTO picks exiftool when the binary
            is on PATH and falls back to Pillow otherwise.

    Returns:
        A TagReader implementation.
    """
    if backend == ReaderBackend.PILLOW:
        return PillowTagReader()

    if backend == ReaderBackend.EXIFTOOL:
        return ExifToolReader()

    if exiftool_available():
        return ExifToolReader()
    logger.info("exiftool not found, reading tags with Pillow")
    return PillowTagReader()


__all__ = [
    "ExifReadError",
    "ExifDateTime",
    "ExifToolDaemon",
    "ExifToolReader",
    "PillowTagReader",
    "create_tag_reader",
    "exiftool_available",
]
