"""Service layer - discovery, loading, watching and importing."""
from .discovery import FileDiscovery, PatternMatcher, discover_files, expand_braces
from .loader import ExifLoader, format_mtime
from .importer import ImporterError, import_images, load_image_asset
from .watcher import DirectoryWatcher, watch

__all__ = [
    "FileDiscovery",
    "PatternMatcher",
    "discover_files",
    "expand_braces",
    "ExifLoader",
    "format_mtime",
    "ImporterError",
    "import_images",
    "load_image_asset",
    "DirectoryWatcher",
    "watch",
]
