"""
Internal event handlers for watchdog file system monitoring.

This module provides the low-level event handler that interfaces with
the watchdog library to dispatch file system events to the watcher.
"""

import asyncio
import logging
import os
from pathlib import Path

from lockwatch.watcher.types import FileEvent

logger = logging.getLogger(__name__)


class FileWatcherEventHandler:
    """
    Internal event handler for watchdog.

    Receives raw events on watchdog's observer thread and hands them over to
    the DirectoryWatcher on its event loop. Moves are split into DELETED for
    the source and CREATED for the destination.
    """

    def __init__(self, watcher: "DirectoryWatcher") -> None:  # noqa: F821
        """
        Initialize event handler.

        Args:
        -----
        watcher: DirectoryWatcher instance to route events to
        """
        self.watcher = watcher

    def dispatch(self, event) -> None:
        """Dispatch file system events to watcher."""
        from watchdog.events import (
            FileCreatedEvent,
            FileDeletedEvent,
            FileMovedEvent,
        )

        # Ignore directory events
        if event.is_directory:
            return

        if isinstance(event, FileCreatedEvent):
            self._submit(FileEvent.CREATED, event.src_path)
        elif isinstance(event, FileDeletedEvent):
            self._submit(FileEvent.DELETED, event.src_path)
        elif isinstance(event, FileMovedEvent):
            # Handle moves as delete + create
            self._submit(FileEvent.DELETED, event.src_path)
            self._submit(FileEvent.CREATED, event.dest_path)

    def _submit(self, event_type: FileEvent, raw_path) -> None:
        """Schedule async event handling on the watcher's loop."""
        loop = self.watcher.loop
        if loop.is_closed():
            logger.debug(f"Event loop closed, dropping {event_type.value} event")
            return
        asyncio.run_coroutine_threadsafe(
            self.watcher.handle_event(event_type, Path(os.fsdecode(raw_path))), loop
        )
