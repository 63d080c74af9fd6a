"""
Core directory watching implementation.

This module provides the DirectoryWatcher class that monitors a directory
with Python's watchdog library and feeds newly created files into a
DebounceRetryScheduler.
"""

import asyncio
import logging
from pathlib import Path
from typing import Iterable, Optional

from lockwatch.ignore_patterns import IGNORE_FILE_NAME, build_ignore_spec, load_ignore_file, should_ignore
from lockwatch.watcher.debouncer import DebounceRetryScheduler
from lockwatch.watcher.types import FileEvent

logger = logging.getLogger(__name__)

IDENTITY_MODES = ("path", "name")


class DirectoryWatcher:
    """
    Watch a directory and schedule every new file for a lock check.

    Constructor Args:
    -----------------
    watch_path: Directory to watch
    scheduler: Scheduler that receives notify() / cancel() calls
    recursive: Also watch subdirectories (default: False)
    identity_mode: "path" keys entries by full path, "name" by file name
        (only safe for flat directories with unique names)
    ignore_patterns: Extra gitignore-style patterns to exclude; patterns in
        a .lockwatchignore file inside watch_path are added as well

    Example Usage:
    --------------
    >>> scheduler = DebounceRetryScheduler(on_safe=move_file, on_failed=alert)
    >>> watcher = DirectoryWatcher(Path("/incoming"), scheduler)
    >>> watcher.start()
    >>> # ... watcher runs in background ...
    >>> watcher.stop()
    >>> scheduler.close()
    """

    def __init__(
        self,
        watch_path: Path,
        scheduler: DebounceRetryScheduler,
        recursive: bool = False,
        identity_mode: str = "path",
        ignore_patterns: Optional[Iterable[str]] = None,
    ) -> None:
        """
        Initialize directory watcher (not started yet).

        Raises:
        -------
        FileNotFoundError: If watch_path doesn't exist
        ValueError: If watch_path is not a directory or identity_mode unknown
        """
        # Validate watch path exists and is directory
        if not watch_path.exists():
            raise FileNotFoundError(f"Watch path does not exist: {watch_path}")
        if not watch_path.is_dir():
            raise ValueError(f"Watch path is not a directory: {watch_path}")
        if identity_mode not in IDENTITY_MODES:
            raise ValueError(
                f"identity_mode must be one of {', '.join(IDENTITY_MODES)}, got {identity_mode!r}"
            )

        self._watch_path = watch_path.resolve()
        self._scheduler = scheduler
        self._recursive = recursive
        self._identity_mode = identity_mode
        patterns = list(ignore_patterns or [])
        patterns.extend(load_ignore_file(self._watch_path / IGNORE_FILE_NAME))
        self._ignore_spec = build_ignore_spec(patterns)

        self._observer = None
        self._event_handler = None

    @property
    def watch_path(self) -> Path:
        return self._watch_path

    @property
    def scheduler(self) -> DebounceRetryScheduler:
        return self._scheduler

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._scheduler.loop

    def start(self) -> None:
        """
        Start watching the directory.

        Raises:
        -------
        RuntimeError: If already running
        """
        from watchdog.observers import Observer
        from lockwatch.watcher.handlers import FileWatcherEventHandler

        if self.is_running():
            raise RuntimeError("DirectoryWatcher is already running")

        logger.info(
            f"Starting watcher for {self._watch_path} "
            f"(recursive={self._recursive}, identity={self._identity_mode})"
        )

        self._event_handler = FileWatcherEventHandler(watcher=self)
        self._observer = Observer()
        self._observer.schedule(
            self._event_handler,
            str(self._watch_path),
            recursive=self._recursive,
        )
        self._observer.start()

    def stop(self) -> None:
        """Stop watching. Safe to call when not running."""
        if self._observer is not None:
            logger.info(f"Stopping watcher for {self._watch_path}")
            self._observer.stop()
            self._observer.join()
            self._observer = None
            self._event_handler = None

    def is_running(self) -> bool:
        """Check if watcher is currently active."""
        if self._observer is not None:
            return self._observer.is_alive()
        return False

    def identity_for(self, file_path: Path) -> str:
        """Key used to coalesce events for a file."""
        if self._identity_mode == "name":
            return file_path.name
        return str(file_path.absolute())

    async def handle_event(self, event_type: FileEvent, file_path: Path) -> None:
        """
        Route a file event to the scheduler.

        Called on the scheduler's loop by FileWatcherEventHandler.

        Routing:
        --------
        - CREATED → scheduler.notify (duplicates coalesce there)
        - DELETED → scheduler.cancel (no callback for files that vanish)
        - MODIFIED / MOVED → ignored (moves arrive already split)
        """
        if should_ignore(file_path, self._watch_path, self._ignore_spec):
            logger.debug(f"Ignoring {event_type.value} event for {file_path}")
            return

        identity = self.identity_for(file_path)
        if event_type == FileEvent.CREATED:
            logger.info(f"New file detected: {file_path}")
            self._scheduler.notify(identity, file_path)
        elif event_type == FileEvent.DELETED:
            if self._scheduler.cancel(identity):
                logger.info(f"File removed before settling: {file_path}")
