"""Rich-based logging setup and progress reporters."""
from __future__ import annotations

import json
import logging
import sys
import time
from collections import deque
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from ..core.models import LoadStats, StoredEntry


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route stdlib logging through Rich on stderr.

    Args:
        verbose: Show debug messages.
        quiet: Only show errors.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing, RichHandler):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    # The observer thread is chatty at debug level
    logging.getLogger("watchdog").setLevel(max(level, logging.INFO))


class FilesPerSecondColumn(ProgressColumn):
    """Renders files per second as a rolling average."""

    def __init__(self, window_size: int = 10):
        super().__init__()
        self._samples: deque[tuple[float, int]] = deque(maxlen=window_size)
        self._last_completed = 0
        self._start_time: Optional[float] = None

    def render(self, task: Task) -> Text:
        """Render the speed column."""
        completed = int(task.completed)
        now = time.time()

        if self._start_time is None:
            self._start_time = now
            self._last_completed = completed
            return Text("-- f/s", style="magenta")

        if completed > self._last_completed:
            self._samples.append((now, completed))
            self._last_completed = completed

        if len(self._samples) >= 2:
            oldest_time, oldest_completed = self._samples[0]
            newest_time, newest_completed = self._samples[-1]
            if newest_time > oldest_time:
                speed = (newest_completed - oldest_completed) / (newest_time - oldest_time)
                return Text(f"{speed:.1f} f/s", style="magenta")

        elapsed = now - self._start_time
        if elapsed > 0 and completed > 0:
            return Text(f"{completed / elapsed:.1f} f/s", style="magenta")

        return Text("-- f/s", style="magenta")


class RichProgressReporter:
    """Progress reporter using Rich for terminal output.

    Implements the ProgressReporter protocol.
    """

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
    ):
        """Initialize the reporter.

        Args:
            verbose: Enable verbose output.
            quiet: Suppress all non-essential output.
            console: Console to write to (stderr by default).
        """
        self._console = console or Console(stderr=True)
        self._verbose = verbose
        self._quiet = quiet
        self._progress: Optional[Progress] = None
        self._current_task_id: Optional[TaskID] = None
        self._phase_name = ""

    @property
    def console(self) -> Console:
        return self._console

    # --- Phase Management ---

    def start_phase(self, name: str, total: int) -> None:
        """Start a new processing phase with a progress bar."""
        self._phase_name = name
        if self._quiet or total == 0:
            return

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("[cyan]•"),
            FilesPerSecondColumn(),
            TextColumn("[cyan]•"),
            TimeElapsedColumn(),
            TextColumn("[cyan]•"),
            TimeRemainingColumn(),
            console=self._console,
            transient=False,
        )
        self._progress.start()
        self._current_task_id = self._progress.add_task(name, total=total)

    def advance_phase(self, amount: int = 1) -> None:
        """Advance the current phase by amount."""
        if self._progress and self._current_task_id is not None:
            self._progress.advance(self._current_task_id, amount)

    def end_phase(self) -> None:
        """End the current phase."""
        if self._progress:
            self._progress.stop()
            self._progress = None
            self._current_task_id = None

    # --- Logging Methods ---

    def info(self, message: str) -> None:
        if not self._quiet:
            self._console.print(f"[blue]ℹ[/blue] {message}")

    def success(self, message: str) -> None:
        if not self._quiet:
            self._console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[red]✗[/red] {message}", style="red")

    def debug(self, message: str) -> None:
        """Log a debug message (only in verbose mode)."""
        if self._verbose:
            self._console.print(f"[dim]  {message}[/dim]")

    # --- Specialized Output ---

    def print_header(self, title: str) -> None:
        """Print a styled header."""
        if self._quiet:
            return
        self._console.print(Panel(Text(title, style="bold cyan"), border_style="cyan"))

    def print_config(self, config_items: dict[str, Any]) -> None:
        """Print configuration as a table."""
        if self._quiet:
            return

        table = Table(title="Configuration", show_header=True, header_style="bold")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="white")
        for key, value in config_items.items():
            table.add_row(key, str(value))
        self._console.print(table)

    def print_stats(self, stats: LoadStats) -> None:
        """Print load statistics."""
        if self._quiet:
            return

        table = Table(title="Load Complete", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Count", style="green", justify="right")

        table.add_row("Files Found", str(stats.discovered))
        table.add_row("Entries Stored", str(stats.stored))
        table.add_row("Unchanged", str(stats.unchanged))
        table.add_row("Skipped (mtime)", str(stats.skipped))
        table.add_row("Errors", str(stats.errors))
        if stats.read_failures > 0:
            table.add_row("EXIF Read Failures", str(stats.read_failures))

        if stats.elapsed_seconds > 0:
            rate = stats.processed / stats.elapsed_seconds
            table.add_row("", "")
            table.add_row("Time Elapsed", f"{stats.elapsed_seconds:.1f}s")
            table.add_row("Processing Rate", f"{rate:.1f} files/sec")

        self._console.print(table)

    def print_record(self, entry: StoredEntry) -> None:
        """Print a stored record as highlighted JSON."""
        self._console.print(f"[bold cyan]{entry.id}[/bold cyan] [dim]{entry.digest[:12]}[/dim]")
        body = json.dumps(entry.data, indent=2, ensure_ascii=False, default=str)
        self._console.print(Syntax(body, "json", theme="ansi_dark", word_wrap=True))

    def print_entries(self, entries: list[StoredEntry]) -> None:
        """Print a table of stored entries."""
        table = Table(title=f"Entries ({len(entries)})", show_header=True, header_style="bold")
        table.add_column("ID", style="cyan")
        table.add_column("File", style="white")
        table.add_column("Modified", style="dim")
        for entry in entries:
            table.add_row(entry.id, str(entry.data.get("fileName", "")), entry.mtime or "")
        self._console.print(table)

    # --- Context Managers ---

    def __enter__(self) -> "RichProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        self.end_phase()


class QuietProgressReporter:
    """Minimal progress reporter that only shows problems."""

    def start_phase(self, name: str, total: int) -> None:
        pass

    def advance_phase(self, amount: int = 1) -> None:
        pass

    def end_phase(self) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        print(f"WARNING: {message}", file=sys.stderr)

    def error(self, message: str) -> None:
        print(f"ERROR: {message}", file=sys.stderr)

    def debug(self, message: str) -> None:
        pass

    def print_header(self, title: str) -> None:
        pass

    def print_config(self, config_items: dict[str, Any]) -> None:
        pass

    def print_stats(self, stats: LoadStats) -> None:
        pass

    def print_record(self, entry: StoredEntry) -> None:
        # Records are the output itself, so they print even when quiet
        print(json.dumps(entry.data, indent=2, ensure_ascii=False, default=str))

    def print_entries(self, entries: list[StoredEntry]) -> None:
        for entry in entries:
            print(entry.id)

    def __enter__(self) -> "QuietProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        pass
