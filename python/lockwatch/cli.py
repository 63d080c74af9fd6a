"""
Command line entry point for the lockwatch service.

Usage:
    lockwatch --path /incoming --debounce 10 --max-retries 3

Or via environment variables:
    LOCKWATCH_PATH=/incoming LOCKWATCH_MAX_RETRIES=5 lockwatch
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from lockwatch import __version__
from lockwatch.config import WatchSettings
from lockwatch.lifecycle import run_service
from lockwatch.logging_config import setup_logging
from lockwatch.watcher.core import IDENTITY_MODES

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lockwatch",
        description="Watch a directory and report new files once their writer lets go of them",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--path",
        type=Path,
        default=None,
        help="Directory to watch (or LOCKWATCH_PATH env var)",
    )
    parser.add_argument(
        "--debounce",
        dest="debounce_seconds",
        type=float,
        default=None,
        help="Seconds to wait before each lock check (default: 10)",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=None,
        help="Retries after the first locked check before giving up (default: 3)",
    )
    parser.add_argument(
        "--recursive",
        action="store_true",
        default=None,
        help="Also watch subdirectories",
    )
    parser.add_argument(
        "--identity",
        dest="identity_mode",
        choices=IDENTITY_MODES,
        default=None,
        help="Coalesce events by full path (default) or by file name",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        default=None,
        help="Gitignore-style pattern to skip (can be repeated)",
    )
    parser.add_argument(
        "--heartbeat",
        dest="heartbeat_interval",
        type=float,
        default=None,
        help="Seconds between liveness log lines (default: 300)",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for log files (default: ./.lockwatch/logs)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Log to file only, not to stderr",
    )
    return parser


def settings_from_args(
    args: argparse.Namespace, environ=None
) -> WatchSettings:
    """Merge parsed arguments over LOCKWATCH_* environment settings."""
    return WatchSettings.from_env(
        environ,
        watch_path=args.path,
        debounce_seconds=args.debounce_seconds,
        max_retries=args.max_retries,
        recursive=args.recursive,
        identity_mode=args.identity_mode,
        ignore_patterns=tuple(args.ignore) if args.ignore else None,
        heartbeat_interval=args.heartbeat_interval,
        log_dir=args.log_dir,
        log_level=args.log_level.upper() if args.log_level else None,
        console=False if args.quiet else None,
    )


async def _serve(settings: WatchSettings) -> None:
    """Run the service until SIGINT/SIGTERM."""
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows: fall back to KeyboardInterrupt in main()
            pass

    await run_service(settings, stop_event=stop_event)


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = settings_from_args(args)
    except ValueError as e:
        parser.print_usage(sys.stderr)
        sys.stderr.write(f"lockwatch: error: {e}\n")
        return EXIT_CONFIG_ERROR

    try:
        setup_logging(log_dir=settings.log_dir, level=settings.log_level, console=settings.console)
    except ValueError as e:
        sys.stderr.write(f"lockwatch: error: {e}\n")
        return EXIT_CONFIG_ERROR

    try:
        asyncio.run(_serve(settings))
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"❌ Cannot watch {settings.watch_path}: {e}")
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        logger.info("🛑 Interrupted, shutting down")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
