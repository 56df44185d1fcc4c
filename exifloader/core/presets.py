"""Tag presets and selection resolution."""
from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping


class ExifPreset(Enum):
    """Named bundles of tags grouped by theme."""
    BASIC = "basic"
    CAMERA = "camera"
    EXPOSURE = "exposure"
    DATETIME = "datetime"
    LOCATION = "location"
    TECHNICAL = "technical"
    METADATA = "metadata"


# Tags that may leak filesystem information; always removed from output
FILESYSTEM_LEAKY_TAGS: frozenset[str] = frozenset({
    "Directory",
    "FileName",
    "FileModifyDate",
    "FileAccessDate",
    "FileInodeChangeDate",
    "FilePermissions",
    "FileType",
    "FileTypeExtension",
    "MIMEType",
    "ExifToolVersion",
    "SourceFile",
})

EXIF_PRESET_MAPPINGS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "basic": ("FileSize", "ImageWidth", "ImageHeight"),
    "camera": (
        "Make",
        "Model",
        "LensModel",
        "Lens",
        "LensID",
        "LensInfo",
        "LensSerialNumber",
        "SerialNumber",
        "BodySerialNumber",
        "CameraSerialNumber",
        "LensMake",
        "MaxAperture",
        "MinFocalLength",
        "MaxFocalLength",
    ),
    "exposure": (
        "ISO",
        "FNumber",
        "ExposureTime",
        "ShutterSpeed",
        "FocalLength",
        "FocalLengthIn35mmFormat",
        "Flash",
        "WhiteBalance",
        "ExposureMode",
        "MeteringMode",
    ),
    "datetime": ("DateTimeOriginal", "CreateDate", "DateTime"),
    "location": (
        "GPSLatitude",
        "GPSLongitude",
        "GPSAltitude",
        "Country",
        "State",
        "City",
        "Location",
        "Sub-location",
        "GPSAreaInformation",
        "Country-PrimaryLocationCode",
        "Province-State",
    ),
    "technical": (
        "ColorSpace",
        "Orientation",
        "Software",
        "SceneType",
        "SceneCaptureType",
    ),
    "metadata": (
        "Artist",
        "Copyright",
        "ImageDescription",
        "Keywords",
        "Title",
        "Subject",
    ),
})


def preset_tags(preset: str | ExifPreset) -> tuple[str, ...]:
    """Get the tags of a preset, or an empty tuple for unknown ids."""
    key = preset.value if isinstance(preset, ExifPreset) else preset
    return EXIF_PRESET_MAPPINGS.get(key, ())


def resolve_selection(
    presets: Iterable[str | ExifPreset] = (),
    tags: Iterable[str] = (),
) -> frozenset[str]:
    """Compute the tags to extract from presets and explicit tag names.

    Unknown presets are ignored. With no presets and no tags the result
    is an empty set, which is not the same as extracting everything.

    Args:
        presets: Preset ids (strings or ExifPreset members).
        tags: Explicit tag names.

    Returns:
        Union of every preset's tags and the explicit tags.
    """
    selected: set[str] = set()
    for preset in presets:
        selected.update(preset_tags(preset))
    selected.update(tags)
    return frozenset(selected)


def build_exclusion_set(exclude_tags: Iterable[str] = ()) -> frozenset[str]:
    """Built-in filesystem tags plus user exclusions."""
    return FILESYSTEM_LEAKY_TAGS | frozenset(exclude_tags)
