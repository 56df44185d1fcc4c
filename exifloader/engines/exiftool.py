"""ExifTool-backed tag reader.

Keeps one exiftool process alive in ``-stay_open`` mode and asks it for
JSON output per file. This is much faster than spawning a process per
image and gives the full exiftool tag vocabulary (Make, LensID,
GPSLatitude, FileModifyDate, ...).
"""
from __future__ import annotations

import asyncio
import atexit
import json
import logging
import shutil
import subprocess
import threading
from pathlib import Path
from typing import Any, Optional

from .errors import ExifReadError
from .values import convert_date_tags


logger = logging.getLogger(__name__)

READY_MARKER = "{ready}"


def exiftool_available() -> bool:
    """Check if the exiftool binary is on PATH."""
    return shutil.which("exiftool") is not None


class ExifToolDaemon:
    """Persistent ExifTool process that handles requests via stdin/stdout.

    Uses exiftool's -stay_open mode. Requests are serialized with a lock
    so the daemon can be shared by worker threads.
    """

    def __init__(self, executable: str = "exiftool"):
        """Start the ExifTool daemon process."""
        self._executable = executable
        self._process: Optional[subprocess.Popen] = None
        self._lock = threading.Lock()
        self._start()

    def _start(self) -> None:
        """Start the exiftool process."""
        try:
            self._process = subprocess.Popen(
                [self._executable, "-stay_open", "True", "-@", "-"],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                bufsize=1,  # Line buffered
            )
        except FileNotFoundError:
            logger.warning("exiftool not found on PATH")
            self._process = None

    @property
    def is_alive(self) -> bool:
        """Check if the daemon process is running."""
        return self._process is not None and self._process.poll() is None

    def execute(self, *args: str) -> str:
        """Run one exiftool command and return its stdout.

        Raises:
            ExifReadError: The daemon is not running or the pipe broke.
        """
        if not self.is_alive:
            raise ExifReadError("exiftool daemon is not running")

        assert self._process is not None
        with self._lock:
            try:
                cmd = "\n".join(args) + "\n-execute\n"
                self._process.stdin.write(cmd)
                self._process.stdin.flush()

                # Read response until {ready}
                output_lines = []
                while True:
                    line = self._process.stdout.readline()
                    if not line:
                        raise ExifReadError("exiftool daemon exited unexpectedly")
                    if line.strip() == READY_MARKER:
                        break
                    output_lines.append(line)
            except (BrokenPipeError, OSError) as e:
                raise ExifReadError(f"exiftool pipe error: {e}") from e
        return "".join(output_lines)

    def read_json(self, path: Path) -> dict[str, Any]:
        """Read every tag of a file as a dict.

        Raises:
            ExifReadError: No metadata could be read.
        """
        output = self.execute("-json", "-charset", "filename=utf8", str(path))
        if not output.strip():
            raise ExifReadError(f"exiftool returned no metadata for {path}")
        try:
            parsed = json.loads(output)
        except json.JSONDecodeError as e:
            raise ExifReadError(f"Malformed exiftool output for {path}: {e}") from e
        if not parsed or not isinstance(parsed[0], dict):
            raise ExifReadError(f"exiftool returned no metadata for {path}")
        return parsed[0]

    def close(self) -> None:
        """Shutdown the daemon gracefully."""
        if self._process is None:
            return

        try:
            if self._process.poll() is None:
                try:
                    self._process.stdin.write("-stay_open\nFalse\n")
                    self._process.stdin.flush()
                    self._process.wait(timeout=2)
                except (BrokenPipeError, OSError, subprocess.TimeoutExpired):
                    pass
        finally:
            if self._process.poll() is None:
                self._process.kill()
                self._process.wait(timeout=1)
            self._process = None

    def __enter__(self) -> "ExifToolDaemon":
        return self

    def __exit__(self, *args) -> None:
        self.close()


class ExifToolReader:
    """Async tag reader on top of a shared ExifToolDaemon.

    The daemon is started lazily on first read and shut down on close()
    or at interpreter exit.
    """

    def __init__(self, executable: str = "exiftool"):
        self._executable = executable
        self._daemon: Optional[ExifToolDaemon] = None
        self._daemon_lock = threading.Lock()
        atexit.register(self.close)

    @property
    def name(self) -> str:
        return "exiftool"

    @property
    def daemon(self) -> ExifToolDaemon:
        with self._daemon_lock:
            if self._daemon is None or not self._daemon.is_alive:
                self._daemon = ExifToolDaemon(self._executable)
            return self._daemon

    def read_sync(self, path: Path) -> dict[str, Any]:
        """Blocking read, with date strings wrapped as ExifDateTime."""
        return convert_date_tags(self.daemon.read_json(path))

    async def read(self, path: Path) -> dict[str, Any]:
        return await asyncio.to_thread(self.read_sync, path)

    def close(self) -> None:
        with self._daemon_lock:
            if self._daemon is not None:
                self._daemon.close()
                self._daemon = None
                logger.debug("exiftool daemon shut down")

    def __enter__(self) -> "ExifToolReader":
        return self

    def __exit__(self, *args) -> None:
        self.close()
