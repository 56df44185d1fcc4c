"""EXIF collection loader.

Scans the images directory, reads tags for each matching file and stores
one record per image:

    stat -> mtime check -> read tags -> build record -> digest -> store

Files are processed one at a time in discovery order. A failure only
affects the file that caused it; the batch always continues.
"""
from __future__ import annotations

import asyncio
import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Optional

from ..core.config import IdMode, LoaderConfig
from ..core.digest import generate_digest
from ..core.models import (
    LoadStats,
    ProcessingAction,
    ProcessingResult,
    StoredEntry,
)
from ..core.projection import build_image_data, should_skip
from ..core.protocols import EntryStore, ProgressReporter, TagReader
from ..core.serialize import to_iso_utc
from ..engines.errors import ExifReadError
from .discovery import FileDiscovery


logger = logging.getLogger(__name__)


def format_mtime(st_mtime: float) -> str:
    """ISO-8601 UTC string for a stat mtime, millisecond precision."""
    return to_iso_utc(datetime.fromtimestamp(st_mtime, tz=timezone.utc))


def _relative_posix(path: Path, start: Path) -> str:
    return Path(os.path.relpath(path, start)).as_posix()


class ExifLoader:
    """Loads image metadata into a collection store.

    Usage:
        config = LoaderConfig(root=project, presets=("camera",))
        with create_tag_reader(config.reader) as reader:
            loader = ExifLoader(config, MemoryEntryStore(), reader)
            stats = asyncio.run(loader.load())
    """

    def __init__(
        self,
        config: LoaderConfig,
        store: EntryStore,
        reader: TagReader,
        progress: Optional[ProgressReporter] = None,
    ):
        """Initialize the loader.

        Args:
            config: Loader configuration.
            store: Collection store entries are written to.
            reader: Tag reader used for every file.
            progress: Optional progress reporter for the initial batch.
        """
        self._config = config
        self._store = store
        self._reader = reader
        self._progress = progress

        self._selection = config.selection
        self._exclusion = config.exclusion
        self._base = config.base_path
        self._root = config.root
        self._src_root = Path(os.path.abspath(config.src_root))
        self._discovery = FileDiscovery(config.patterns)

    @property
    def config(self) -> LoaderConfig:
        return self._config

    @property
    def store(self) -> EntryStore:
        return self._store

    @property
    def base_path(self) -> Path:
        return self._base

    # --- Paths and ids ---

    def relative_path(self, path: Path) -> str:
        """Path relative to the images directory, ``/`` separated."""
        return _relative_posix(Path(os.path.abspath(path)), self._base)

    def entry_id(self, rel_path: str) -> str:
        """Store id for a path relative to the images directory."""
        if self._config.id_mode == IdMode.KEEP_EXTENSION:
            return rel_path
        return str(PurePosixPath(rel_path).with_suffix(""))

    def src_path_for(self, path: Path) -> str:
        """Path relative to ``<root>/src``, or "" when outside it.

        Only images under ``src`` can be imported for display.
        """
        abs_path = Path(os.path.abspath(path))
        if not abs_path.is_relative_to(self._src_root):
            return ""
        return _relative_posix(abs_path, self._src_root)

    def matches(self, path: Path | str) -> bool:
        """Check whether a changed path is inside the base and matches."""
        abs_path = Path(os.path.abspath(path))
        if abs_path == self._base:
            return False
        if not abs_path.is_relative_to(self._base):
            return False
        return self._discovery.matcher.matches(self.relative_path(abs_path))

    # --- Processing ---

    async def load(self) -> LoadStats:
        """Process every matching file once, sequentially.

        Returns:
            Statistics for the run.
        """
        stats = LoadStats()
        started = time.monotonic()
        patterns = ", ".join(self._config.patterns)
        logger.info(f"Loading images with EXIF data from {patterns} (base: {self._base})")

        try:
            files = await asyncio.to_thread(self._discovery.discover, self._base)
        except OSError as e:
            logger.error(f"Error globbing files: {e}")
            stats.elapsed_seconds = time.monotonic() - started
            return stats

        stats.discovered = len(files)
        if not files:
            logger.warning("\n".join([
                "No images found for exif loader.",
                f"  base: {self._base}",
                f"  pattern(s): {patterns}",
                'Make sure imagesDir.base is relative to your project root (e.g. "src/content/images")',
                'and pattern matches your files (e.g. "**/*" or "**/*.{jpg,jpeg,png}").',
            ]))

        if self._progress:
            self._progress.start_phase("Reading EXIF", len(files))
        try:
            for rel in files:
                result = await self.process_image(self._base / rel)
                stats.record(result)
                if self._progress:
                    self._progress.advance_phase()
        finally:
            if self._progress:
                self._progress.end_phase()

        stats.elapsed_seconds = time.monotonic() - started
        return stats

    async def process_image(self, path: Path) -> ProcessingResult:
        """Read, project and store a single image.

        Args:
            path: Image path (absolute, or relative to the working directory).

        Returns:
            What happened to the file. Never raises.
        """
        abs_path = Path(os.path.abspath(path))
        rel = self.relative_path(abs_path)
        entry_id = self.entry_id(rel)

        try:
            st = await asyncio.to_thread(abs_path.stat)
            mtime = format_mtime(st.st_mtime)

            if should_skip(self._store.get(entry_id), mtime):
                return ProcessingResult(abs_path, ProcessingAction.SKIPPED, entry_id)

            logger.info(f"Processing file: {rel}")

            read_failed = False
            try:
                tags = await self._reader.read(abs_path)
            except ExifReadError as e:
                logger.warning(f"EXIF read failed for {rel}: {e}")
                tags = {}
                read_failed = True

            data = build_image_data(
                tags,
                PurePosixPath(rel).name,
                mtime,
                st.st_size,
                self._selection,
                self._exclusion,
                self._config.include_raw_exif,
            )
            data["srcPath"] = self.src_path_for(abs_path)

            entry = StoredEntry(
                id=entry_id,
                data=data,
                digest=generate_digest(data),
                file_path=_relative_posix(abs_path, self._root),
            )
            if self._store.set(entry):
                width = data.get("ImageWidth") or "?"
                height = data.get("ImageHeight") or "?"
                logger.info(f"Processed {rel} ({width}x{height})")
                action = ProcessingAction.STORED
            else:
                logger.debug(f"Skipped {rel} (no changes)")
                action = ProcessingAction.UNCHANGED
            return ProcessingResult(abs_path, action, entry_id, read_failed=read_failed)

        except Exception as e:
            logger.error(f"Failed to process image {abs_path}: {e}")
            return ProcessingResult(
                abs_path, ProcessingAction.ERROR, entry_id, error=str(e)
            )

    # --- Watch reactions ---

    async def on_add_or_change(self, path: Path | str) -> Optional[ProcessingResult]:
        """React to a created or modified file."""
        if not self.matches(path):
            return None
        logger.info(f"File updated: {path}")
        return await self.process_image(Path(path))

    def on_unlink(self, path: Path | str) -> Optional[ProcessingResult]:
        """React to a deleted file by removing its entry."""
        if not self.matches(path):
            return None
        entry_id = self.entry_id(self.relative_path(Path(path)))
        self._store.delete(entry_id)
        logger.info(f"File removed: {path}")
        return ProcessingResult(Path(path), ProcessingAction.REMOVED, entry_id)
