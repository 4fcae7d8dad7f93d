"""Command-line interface for pollwatch.

Usage:
    pollwatch --watch src --watch "tests/**/*.py" --ignore src/generated -e py -e toml

Prints one line per detected change until interrupted. Command-line values
override configuration files and environment variables.

Exit status:
    0  interrupted by the user
    1  a watch root could not be scanned
    2  a watch or ignore pattern is malformed
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from pollwatch import __version__
from pollwatch.config import Config, load_config
from pollwatch.errors import PathResolutionError, ScanError
from pollwatch.logging import get_logger, setup_logging
from pollwatch.watching import Watcher

log = get_logger("cli")

EXIT_OK = 0
EXIT_SCAN_ERROR = 1
EXIT_RESOLUTION_ERROR = 2


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pollwatch",
        description="Report source files changed since startup, polling the filesystem",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=None,
        help="Increase verbosity (can be repeated, up to -vv)",
    )
    parser.add_argument(
        "-w", "--watch",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Path or glob to watch (repeatable, default: .)",
    )
    parser.add_argument(
        "-i", "--ignore",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Path or glob to ignore (repeatable)",
    )
    parser.add_argument(
        "-e", "--extensions",
        action="append",
        default=[],
        metavar="EXT",
        help="File extension to consider, without the dot (repeatable, default: py)",
    )
    parser.add_argument(
        "-p", "--poll-interval",
        type=int,
        default=None,
        metavar="MS",
        help="Milliseconds between scans (default: 500)",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path("."),
        help="Directory holding .pollwatch/config.yaml (default: current directory)",
    )
    return parser


def apply_args(config: Config, args: argparse.Namespace) -> Config:
    """Overlay command-line values on a loaded config."""
    watch = config.watch
    if args.watch:
        watch = replace(watch, watch_items=list(args.watch))
    if args.ignore:
        watch = replace(watch, ignore_items=list(args.ignore))
    if args.extensions:
        watch = replace(watch, extensions=list(args.extensions))
    if args.poll_interval is not None:
        watch = replace(watch, poll_interval=args.poll_interval)

    logging_config = config.logging
    if args.verbose is not None:
        # -v maps to verbose level 3, -vv to 4
        logging_config = replace(logging_config, verbose=min(args.verbose + 2, 4))

    return replace(config, watch=watch, logging=logging_config)


async def run(watcher: Watcher, console: Console) -> int:
    """Print changes until the watcher stops; return the exit status."""
    task = asyncio.create_task(watcher.watch())

    async def report_error() -> ScanError | None:
        async for error in watcher.errors:
            return error
        return None

    error_task = asyncio.create_task(report_error())
    try:
        async for path in watcher.events:
            console.print(f"[green]changed[/green] {escape(path)}")
        error = await error_task
    finally:
        watcher.stop()
        error_task.cancel()
        await asyncio.gather(task, error_task, return_exceptions=True)

    if error is not None:
        console.print(f"[red]error[/red] {escape(str(error))}")
        return EXIT_SCAN_ERROR
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Run the pollwatch command."""
    args = create_parser().parse_args(argv)

    # Load config before logging so we can use config.logging settings
    config = apply_args(load_config(project_root=args.project_root), args)
    setup_logging(config.logging)

    console = Console(highlight=False, soft_wrap=True)

    try:
        watcher = Watcher.from_config(config.watch)
    except PathResolutionError as e:
        console.print(f"[red]error[/red] {escape(str(e))}")
        return EXIT_RESOLUTION_ERROR

    console.print(
        f"watching {escape(', '.join(sorted(watcher.watch_paths)))} "
        f"for {', '.join(sorted(watcher.extensions))}"
    )

    try:
        return asyncio.run(run(watcher, console))
    except KeyboardInterrupt:
        log.debug("Interrupted")
        return EXIT_OK
