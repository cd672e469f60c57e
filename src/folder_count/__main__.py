"""Application entry point and CLI for folder-count.

This module implements the command-line surface: argument parsing,
configuration loading, logging setup, and the three commands:
- describe: print the decoration of one or more paths
- list: print the sorted, filtered listing of a directory
- watch: keep printing refreshed decorations as a tree changes
"""

from __future__ import annotations

import argparse
import asyncio
import os
import signal
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import NoReturn

from folder_count.core.aggregation import AggregationEngine
from folder_count.core.config import (
    ConfigurationError,
    EnvironmentVariableError,
    MainConfig,
    load_main_config,
)
from folder_count.core.decorations import decorate
from folder_count.core.inspector import WorkspaceInspector
from folder_count.core.listing import DirectoryListing, ListingError, ListingRow, SortKey
from folder_count.types.aliases import AggregationResult
from folder_count.utils.logging import configure_logging, get_logger

__all__ = ["main"]

DEFAULT_CONFIG_PATH: Path = Path("folder-count.yaml")

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_RUNTIME_ERROR = 1

NO_RESULT = "(no result)"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="folder-count",
        description="Show live file counts and sizes for directory trees",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  folder-count describe src README.md
  folder-count list . --sort size --desc
  folder-count list ~/projects --search api
  folder-count --config folder-count.yaml watch ~/projects
        """,
    )

    _ = parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH} if present)",
        metavar="PATH",
    )
    _ = parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override log level from configuration",
        metavar="LEVEL",
    )
    _ = parser.add_argument(
        "--no-syslog",
        action="store_true",
        help="Disable syslog integration even if enabled in configuration",
    )

    commands = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    describe_parser = commands.add_parser("describe", help="Print size and counts for paths")
    _ = describe_parser.add_argument("paths", nargs="+", type=Path, metavar="PATH")
    _ = describe_parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Also print the full tooltip text",
    )

    list_parser = commands.add_parser("list", help="List a directory with sizes and dates")
    _ = list_parser.add_argument("path", nargs="?", type=Path, default=None, metavar="PATH")
    _ = list_parser.add_argument(
        "--sort",
        choices=[key.value for key in SortKey],
        default=None,
        help="Sort column (default: from configuration)",
    )
    _ = list_parser.add_argument("--desc", action="store_true", help="Sort descending")
    _ = list_parser.add_argument("--search", default="", help="Case-insensitive name filter")

    watch_parser = commands.add_parser("watch", help="Print updates as a tree changes")
    _ = watch_parser.add_argument("root", nargs="?", type=Path, default=None, metavar="ROOT")
    _ = watch_parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Polling interval in seconds (overrides configuration)",
        metavar="SECONDS",
    )

    return parser


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Arguments without the program name (default: sys.argv)

    Returns:
        Parsed arguments namespace
    """
    return build_parser().parse_args(argv)


def load_config(config_path: Path | None) -> MainConfig:
    """Load configuration, falling back to defaults when no file is used.

    An explicitly given path must exist. Without one, the default path is
    used when present.

    Raises:
        ConfigurationError: If the configuration is missing or invalid
    """
    if config_path is not None:
        return load_main_config(config_path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_main_config(DEFAULT_CONFIG_PATH)
    return MainConfig()


def format_result_line(path: Path, result: AggregationResult | None, *, verbose: bool = False) -> str:
    """Render one path and its decoration as a line of text."""
    if result is None:
        return f"{path}  {NO_RESULT}"
    decoration = decorate(result)
    badge = f"  [{decoration.badge}]" if decoration.badge is not None else ""
    line = f"{path}{badge}{decoration.label}"
    if verbose:
        tooltip = "\n".join(f"    {part}" for part in decoration.tooltip.splitlines())
        line = f"{line}\n{tooltip}"
    return line


def format_listing(current: Path, rows: Sequence[ListingRow]) -> str:
    """Render listing rows as an aligned table."""
    names = [f"{row.name}/" if row.is_dir else row.name for row in rows]
    name_width = max([len("Name"), *(len(name) for name in names)])
    lines = [str(current), f"{'Name':<{name_width}}  {'Size':>10}  {'Created':<19}  {'Modified':<19}"]
    for name, row in zip(names, rows, strict=True):
        lines.append(
            f"{name:<{name_width}}  {row.display_size:>10}  {row.display_created:<19}  {row.display_modified:<19}"
        )
    return "\n".join(lines)


def _build_engine(config: MainConfig) -> AggregationEngine:
    return AggregationEngine(
        policy=config.traversal.to_policy(),
        max_concurrency=config.traversal.max_concurrency,
    )


async def run_describe(config: MainConfig, paths: Sequence[Path], *, verbose: bool = False) -> int:
    engine = _build_engine(config)
    for path in paths:
        result = await engine.describe(Path(os.path.abspath(path)))
        print(format_result_line(path, result, verbose=verbose))
    return EXIT_SUCCESS


async def run_list(
    config: MainConfig,
    path: Path | None,
    *,
    sort: str | None,
    descending: bool,
    search: str,
) -> int:
    root = path or config.root or Path.cwd()
    listing = DirectoryListing(
        _build_engine(config),
        root,
        sort_key=SortKey(sort or config.listing.sort_key),
        descending=descending or config.listing.descending,
    )
    listing.set_search(search)
    try:
        rows = await listing.rows()
    except ListingError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    print(format_listing(listing.current, rows))
    return EXIT_SUCCESS


async def run_watch(config: MainConfig, root: Path | None, *, interval: float | None) -> int:
    logger = get_logger(__name__)
    if interval is not None:
        config = config.model_copy(update={"watch": config.watch.model_copy(update={"poll_interval": interval})})

    inspector = WorkspaceInspector(config, root or config.root or Path.cwd())
    print(format_result_line(inspector.root, await inspector.describe(inspector.root)))
    sys.stdout.flush()

    def on_update(path: Path, result: AggregationResult | None) -> None:
        print(format_result_line(path, result))
        sys.stdout.flush()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, inspector.request_shutdown)

    try:
        await inspector.start(on_update)
    except Exception as exc:
        logger.exception("Inspector failed during execution", extra={"error": str(exc)})
        raise
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            _ = loop.remove_signal_handler(sig)
    return EXIT_SUCCESS


async def async_main(args: argparse.Namespace) -> int:
    """Load configuration, set up logging and run the selected command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Process exit code

    Raises:
        ConfigurationError: If configuration is invalid
    """
    config_path: Path | None = args.config  # pyright: ignore[reportAny]  # argparse boundary
    log_level: str | None = args.log_level  # pyright: ignore[reportAny]  # argparse boundary
    no_syslog: bool = args.no_syslog  # pyright: ignore[reportAny]  # argparse boundary
    command: str = args.command  # pyright: ignore[reportAny]  # argparse boundary

    config = load_config(config_path)
    if log_level is not None:
        config.application.log_level = log_level

    configure_logging(
        log_level=config.application.log_level,
        enable_syslog=config.application.syslog_enabled and not no_syslog,
        enable_console=True,
    )
    get_logger(__name__).debug("Running command", extra={"command": command})

    match command:
        case "describe":
            return await run_describe(config, args.paths, verbose=args.verbose)  # pyright: ignore[reportAny]
        case "list":
            return await run_list(
                config,
                args.path,  # pyright: ignore[reportAny]
                sort=args.sort,  # pyright: ignore[reportAny]
                descending=args.desc,  # pyright: ignore[reportAny]
                search=args.search,  # pyright: ignore[reportAny]
            )
        case "watch":
            return await run_watch(config, args.root, interval=args.interval)  # pyright: ignore[reportAny]
        case _:
            msg = f"Unknown command: {command}"
            raise ValueError(msg)


def main(argv: Sequence[str] | None = None) -> NoReturn:
    """Main entry point for folder-count.

    Exit Codes:
        0: Success
        1: Configuration error or runtime error
        2: Invalid command-line usage
    """
    args = parse_arguments(argv)

    try:
        exit_code = asyncio.run(async_main(args))
    except ConfigurationError as exc:
        print(f"Configuration error:\n{exc}", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)
    except EnvironmentVariableError as exc:
        print(f"Environment variable error:\n{exc}", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)
    except KeyboardInterrupt:
        sys.exit(EXIT_SUCCESS)
    except Exception as exc:
        print(f"Fatal error: {exc}", file=sys.stderr)
        sys.exit(EXIT_RUNTIME_ERROR)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
