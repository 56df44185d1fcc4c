"""Filesystem watching - keeps the store current while running."""
from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Future
from typing import Any, Coroutine, Optional

from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
    FileSystemMovedEvent,
)
from watchdog.observers import Observer

from ..core.models import LoadStats
from .loader import ExifLoader


logger = logging.getLogger(__name__)


def _as_str(path: Any) -> str:
    return path.decode() if isinstance(path, bytes) else str(path)


class LoaderEventHandler(FileSystemEventHandler):
    """Forwards watchdog events to the loader on an asyncio loop.

    Events arrive on the observer thread; reactions run on the loop.
    """

    def __init__(self, loader: ExifLoader, loop: asyncio.AbstractEventLoop):
        super().__init__()
        self._loader = loader
        self._loop = loop

    def _submit(self, coro: Coroutine[Any, Any, Any]) -> Future:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        future.add_done_callback(self._report)
        return future

    @staticmethod
    def _report(future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Watch reaction failed: {error}")

    async def _unlink(self, path: str) -> None:
        self._loader.on_unlink(path)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._submit(self._loader.on_add_or_change(_as_str(event.src_path)))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._submit(self._loader.on_add_or_change(_as_str(event.src_path)))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._submit(self._unlink(_as_str(event.src_path)))

    def on_moved(self, event: FileSystemMovedEvent) -> None:
        if event.is_directory:
            return
        self._submit(self._unlink(_as_str(event.src_path)))
        self._submit(self._loader.on_add_or_change(_as_str(event.dest_path)))


class DirectoryWatcher:
    """Watches the loader's base directory recursively.

    Usage:
        with DirectoryWatcher(loader, asyncio.get_running_loop()):
            await stop_event.wait()
    """

    def __init__(self, loader: ExifLoader, loop: asyncio.AbstractEventLoop):
        self._loader = loader
        self._handler = LoaderEventHandler(loader, loop)
        self._observer: Optional[Observer] = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()

    def start(self) -> None:
        if self._observer is not None:
            return
        base = self._loader.base_path
        self._observer = Observer()
        self._observer.schedule(self._handler, str(base), recursive=True)
        self._observer.start()
        logger.info(f"Watching: {base}")

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None
        logger.info("File watcher stopped")

    def __enter__(self) -> "DirectoryWatcher":
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()


async def watch(loader: ExifLoader, stop_event: Optional[asyncio.Event] = None) -> LoadStats:
    """Run the initial load, then react to changes until stopped.

    Args:
        loader: Configured loader.
        stop_event: Set it to stop watching; waits forever when omitted.

    Returns:
        Statistics of the initial load.
    """
    stats = await loader.load()
    stop_event = stop_event or asyncio.Event()
    with DirectoryWatcher(loader, asyncio.get_running_loop()):
        await stop_event.wait()
    return stats
