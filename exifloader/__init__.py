"""Image EXIF metadata loader.

Reads tags from image files, projects them onto a selected set of fields
and keeps one JSON-safe record per image in a collection store.
"""

__version__ = "1.0.0"

# Core exports
from .core.config import LoaderConfig, ImagesDir, IdMode, ReaderBackend
from .core.models import Selection, StoredEntry, LoadStats, ProcessingResult
from .core.presets import ExifPreset, EXIF_PRESET_MAPPINGS, resolve_selection
from .core.projection import build_image_data
from .core.serialize import to_serializable
from .core.protocols import TagReader, EntryStore, ProgressReporter

# Engine exports
from .engines import ExifReadError, ExifToolReader, PillowTagReader, create_tag_reader

# Service exports
from .services.loader import ExifLoader
from .services.watcher import DirectoryWatcher, watch
from .services.importer import ImporterError, import_images

# Persistence exports
from .persistence.store import MemoryEntryStore, SQLiteEntryStore, create_entry_store

# Logging exports
from .logging.rich_logger import RichProgressReporter, configure_logging

__all__ = [
    # Core
    "LoaderConfig",
    "ImagesDir",
    "IdMode",
    "ReaderBackend",
    "Selection",
    "StoredEntry",
    "LoadStats",
    "ProcessingResult",
    "ExifPreset",
    "EXIF_PRESET_MAPPINGS",
    "resolve_selection",
    "build_image_data",
    "to_serializable",
    "TagReader",
    "EntryStore",
    "ProgressReporter",
    # Engines
    "ExifReadError",
    "ExifToolReader",
    "PillowTagReader",
    "create_tag_reader",
    # Services
    "ExifLoader",
    "DirectoryWatcher",
    "watch",
    "ImporterError",
    "import_images",
    # Persistence
    "MemoryEntryStore",
    "SQLiteEntryStore",
    "create_entry_store",
    # Logging
    "RichProgressReporter",
    "configure_logging",
]
