"""Building output records from raw tags, and change detection."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from .models import Selection, StoredEntry
from .serialize import to_serializable


FILE_SIZE_TAG = "FileSize"
RAW_EXIF_FIELD = "rawExif"


def build_image_data(
    tags: Mapping[str, Any],
    file_name: str,
    mtime: str,
    file_size: int,
    selection: Selection,
    exclude: frozenset[str] | set[str],
    include_raw_exif: bool = False,
) -> dict[str, Any]:
    """Project raw tags onto an output record.

    Exclusions always win over the selection. ``FileSize`` comes from the
    filesystem stat, never from the tag reader. ``rawExif`` holds every
    non-null raw tag and ignores the exclusion set.

    Args:
        tags: Raw tag name -> value mapping from a reader.
        file_name: Base name of the file (no directories).
        mtime: ISO-8601 modification time string.
        file_size: Size in bytes from stat.
        selection: Tags to copy (all, or an explicit set).
        exclude: Tag names never copied into the curated fields.
        include_raw_exif: Also embed the unfiltered tags under ``rawExif``.

    Returns:
        Plain JSON-friendly dict.
    """
    data: dict[str, Any] = {
        "fileName": file_name,
        "mtime": mtime,
    }

    if selection.is_all:
        for tag_name, tag_value in tags.items():
            if tag_value is not None and tag_name not in exclude:
                data[tag_name] = to_serializable(tag_value)
        if FILE_SIZE_TAG not in exclude:
            data[FILE_SIZE_TAG] = file_size
    elif selection.tags:
        for tag_name in sorted(selection.tags):
            if tag_name in exclude:
                continue
            tag_value = tags.get(tag_name)
            if tag_value is not None:
                data[tag_name] = to_serializable(tag_value)
        if FILE_SIZE_TAG in selection.tags and FILE_SIZE_TAG not in exclude:
            data[FILE_SIZE_TAG] = file_size

    if include_raw_exif:
        data[RAW_EXIF_FIELD] = {
            tag_name: to_serializable(tag_value)
            for tag_name, tag_value in tags.items()
            if tag_value is not None
        }

    return data


def should_skip(stored: Optional[StoredEntry], current_mtime: str) -> bool:
    """True when a stored entry exists with exactly the same mtime string."""
    if stored is None:
        return False
    return stored.data.get("mtime") == current_mtime
