"""Core domain models, selection logic and protocols."""
from .protocols import (
    TagReader,
    EntryStore,
    ProgressReporter,
)
from .models import (
    Selection,
    StoredEntry,
    ProcessingAction,
    ProcessingResult,
    LoadStats,
    ImageAsset,
    ImportedEntry,
)
from .presets import (
    ExifPreset,
    EXIF_PRESET_MAPPINGS,
    FILESYSTEM_LEAKY_TAGS,
    resolve_selection,
    build_exclusion_set,
)
from .serialize import to_serializable, to_iso_utc
from .projection import build_image_data, should_skip
from .digest import generate_digest
from .config import LoaderConfig, ImagesDir, IdMode, ReaderBackend

__all__ = [
    # Protocols
    "TagReader",
    "EntryStore",
    "ProgressReporter",
    # Models
    "Selection",
    "StoredEntry",
    "ProcessingAction",
    "ProcessingResult",
    "LoadStats",
    "ImageAsset",
    "ImportedEntry",
    # Presets
    "ExifPreset",
    "EXIF_PRESET_MAPPINGS",
    "FILESYSTEM_LEAKY_TAGS",
    "resolve_selection",
    "build_exclusion_set",
    # Record building
    "to_serializable",
    "to_iso_utc",
    "build_image_data",
    "should_skip",
    "generate_digest",
    # Config
    "LoaderConfig",
    "ImagesDir",
    "IdMode",
    "ReaderBackend",
]
