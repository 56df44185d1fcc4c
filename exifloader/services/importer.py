"""Re-attach image files to stored entries for display."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from PIL import Image, UnidentifiedImageError

from ..core.models import ImageAsset, ImportedEntry, StoredEntry


logger = logging.getLogger(__name__)


class ImporterError(Exception):
    """None of the requested entries can be imported."""


def resolve_image_path(src_path: str, src_root: Path) -> Path:
    """Absolute image path for a stored ``srcPath``.

    A leading ``/`` means the path is relative to the project root
    (the parent of ``src``); anything else is relative to ``src``.
    """
    if src_path.startswith("/"):
        return src_root.parent / src_path.lstrip("/")
    return src_root / src_path


def load_image_asset(path: Path) -> Optional[ImageAsset]:
    """Open an image with Pillow and describe it, or None on failure."""
    if not path.is_file():
        logger.warning(f"No image found for: {path}")
        return None
    try:
        with Image.open(path) as img:
            return ImageAsset(
                src=path,
                width=img.width,
                height=img.height,
                format=(img.format or path.suffix.lstrip(".")).lower(),
            )
    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Failed to import image: {path}: {e}")
        return None


def import_images(
    entries: Iterable[StoredEntry],
    src_root: Path,
    collection: str = "images",
) -> list[ImportedEntry]:
    """Attach image assets to entries that live under ``src_root``.

    Args:
        entries: Stored entries, typically from ``store.entries()``.
        src_root: The project's ``src`` directory.
        collection: Collection name reported on each result.

    Returns:
        One ImportedEntry per input entry, in order. ``image`` is None for
        entries that cannot be imported.

    Raises:
        ImporterError: No entry has a ``srcPath`` at all, including when
            ``entries`` is empty.
    """
    entries = list(entries)
    missing = [entry for entry in entries if not entry.src_path]
    if len(missing) == len(entries):
        raise ImporterError(
            f"The importer only works for images under {src_root}."
        )
    if missing:
        logger.warning(f"{len(missing)} entries missing srcPath")

    results = []
    for entry in entries:
        image = None
        if entry.src_path:
            image = load_image_asset(resolve_image_path(entry.src_path, src_root))
        else:
            logger.warning(f"Entry missing srcPath: {entry.id}")
        results.append(ImportedEntry(
            id=entry.id,
            collection=collection,
            data=entry.data,
            image=image,
        ))
    return results
