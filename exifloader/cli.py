"""CLI with subcommands: load, show, list, presets."""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from .core.config import (
    DEFAULT_PATTERN,
    IdMode,
    ImagesDir,
    LoaderConfig,
    ReaderBackend,
)
from .core.presets import EXIF_PRESET_MAPPINGS, FILESYSTEM_LEAKY_TAGS
from .logging.rich_logger import (
    QuietProgressReporter,
    RichProgressReporter,
    configure_logging,
)


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="exifloader",
        description="Load image EXIF metadata into a queryable collection.",
    )

    # Global options
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ============ LOAD command ============
    load_parser = subparsers.add_parser(
        "load",
        help="Read EXIF tags from images and store one record per image",
    )
    load_parser.add_argument(
        "base",
        type=Path,
        help="Images directory, relative to the project root",
    )
    load_parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Project root (default: current directory)",
    )
    load_parser.add_argument(
        "-p", "--pattern",
        dest="patterns",
        action="append",
        default=None,
        help=f"Glob pattern relative to BASE, repeatable (default: {DEFAULT_PATTERN})",
    )
    load_parser.add_argument(
        "--preset",
        dest="presets",
        action="append",
        default=[],
        choices=list(EXIF_PRESET_MAPPINGS),
        help="Tag preset to include, repeatable",
    )
    load_parser.add_argument(
        "-t", "--tag",
        dest="tags",
        action="append",
        default=[],
        help="Additional tag to include, repeatable",
    )
    load_parser.add_argument(
        "-x", "--exclude",
        dest="exclude_tags",
        action="append",
        default=[],
        help="Tag to exclude, repeatable",
    )
    load_parser.add_argument(
        "--extract-all",
        action="store_true",
        help="Store every tag the reader returns",
    )
    load_parser.add_argument(
        "--include-raw",
        action="store_true",
        help="Also store the full tag map under rawExif",
    )
    load_parser.add_argument(
        "--keep-extension",
        action="store_true",
        help="Keep the file extension in entry ids",
    )
    load_parser.add_argument(
        "--reader",
        choices=[backend.value for backend in ReaderBackend],
        default=ReaderBackend.AUTO.value,
        help="Tag reader (default: auto)",
    )
    load_parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="SQLite database path (default: in-memory, nothing is kept)",
    )
    load_parser.add_argument(
        "--collection",
        default="images",
        help="Collection name (default: images)",
    )
    load_parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep running and update entries when files change",
    )

    # ============ SHOW command ============
    show_parser = subparsers.add_parser(
        "show",
        help="Print one stored record as JSON",
    )
    show_parser.add_argument("id", help="Entry id")
    show_parser.add_argument("--db", type=Path, required=True, help="SQLite database path")
    show_parser.add_argument("--collection", default="images", help="Collection name")

    # ============ LIST command ============
    list_parser = subparsers.add_parser(
        "list",
        help="List stored entries",
    )
    list_parser.add_argument("--db", type=Path, required=True, help="SQLite database path")
    list_parser.add_argument("--collection", default="images", help="Collection name")

    # ============ PRESETS command ============
    subparsers.add_parser(
        "presets",
        help="Show the tags included by each preset",
    )

    return parser


def build_config(args: argparse.Namespace) -> LoaderConfig:
    """Build a LoaderConfig from parsed ``load`` arguments."""
    images_dir = ImagesDir(
        pattern=tuple(args.patterns) if args.patterns else (DEFAULT_PATTERN,),
        base=args.base,
    )
    kwargs = dict(
        images_dir=images_dir,
        presets=tuple(args.presets),
        tags=tuple(args.tags),
        exclude_tags=tuple(args.exclude_tags),
        extract_all=args.extract_all,
        include_raw_exif=args.include_raw,
        collection=args.collection,
        id_mode=IdMode.KEEP_EXTENSION if args.keep_extension else IdMode.STRIP_EXTENSION,
        db_path=args.db,
        reader=ReaderBackend(args.reader),
    )
    if args.root is not None:
        kwargs["root"] = args.root
    return LoaderConfig(**kwargs)


# ============ Command Handlers ============

def cmd_load(args: argparse.Namespace, reporter) -> int:
    """Handle the load command."""
    from .engines import create_tag_reader
    from .persistence.store import create_entry_store
    from .services.loader import ExifLoader
    from .services.watcher import watch

    config = build_config(args)
    selection = config.selection

    reporter.print_header("exifloader load")
    reporter.print_config({
        "Images Directory": str(config.base_path),
        "Patterns": ", ".join(config.patterns),
        "Tags": "all" if selection.is_all else (", ".join(sorted(selection.tags)) or "(none)"),
        "Excluded": ", ".join(sorted(config.exclusion)),
        "Raw EXIF": config.include_raw_exif,
        "Reader": config.reader.value,
        "Database": str(config.db_path) if config.db_path else "(memory)",
        "Collection": config.collection,
    })

    store = create_entry_store(config.db_path, config.collection)
    reader = create_tag_reader(config.reader)
    try:
        loader = ExifLoader(config, store, reader, progress=reporter)
        if args.watch:
            reporter.info("Watching for changes, press Ctrl+C to stop")
            stats = asyncio.run(watch(loader))
        else:
            stats = asyncio.run(loader.load())
        reporter.print_stats(stats)
        return 0 if stats.errors == 0 else 1
    finally:
        reader.close()
        store.close()


def cmd_show(args: argparse.Namespace, reporter) -> int:
    """Handle the show command."""
    from .persistence.store import SQLiteEntryStore

    if not args.db.exists():
        reporter.error(f"Database not found: {args.db}")
        return 1

    with SQLiteEntryStore(args.db, args.collection) as store:
        entry = store.get(args.id)
        if entry is None:
            reporter.error(f"No entry with id: {args.id}")
            return 1
        reporter.print_record(entry)
        return 0


def cmd_list(args: argparse.Namespace, reporter) -> int:
    """Handle the list command."""
    from .persistence.store import SQLiteEntryStore

    if not args.db.exists():
        reporter.error(f"Database not found: {args.db}")
        return 1

    with SQLiteEntryStore(args.db, args.collection) as store:
        reporter.print_entries(list(store.entries()))
        return 0


def cmd_presets(args: argparse.Namespace, reporter) -> int:
    """Handle the presets command."""
    table = Table(title="Tag Presets", show_header=True, header_style="bold")
    table.add_column("Preset", style="cyan")
    table.add_column("Tags", style="white")
    for name, tags in EXIF_PRESET_MAPPINGS.items():
        table.add_row(name, ", ".join(tags))
    table.add_row("[dim]excluded by default[/dim]", ", ".join(sorted(FILESYSTEM_LEAKY_TAGS)))
    Console().print(table)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    verbose = getattr(args, "verbose", False)
    quiet = getattr(args, "quiet", False)
    configure_logging(verbose=verbose, quiet=quiet)

    if quiet:
        reporter = QuietProgressReporter()
    else:
        reporter = RichProgressReporter(verbose=verbose)

    # No command specified - show help
    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "load":
            return cmd_load(args, reporter)
        elif args.command == "show":
            return cmd_show(args, reporter)
        elif args.command == "list":
            return cmd_list(args, reporter)
        elif args.command == "presets":
            return cmd_presets(args, reporter)
        else:
            reporter.error(f"Unknown command: {args.command}")
            return 1

    except KeyboardInterrupt:
        # Clean exit on Ctrl+C - no stack trace
        return 130
    except Exception as e:
        reporter.error(f"Error: {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
