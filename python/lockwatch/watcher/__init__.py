"""
Directory watching with debounced, lock-aware settlement of new files.

A producer that creates a file usually keeps writing to it for a while.
This package holds every new file back until the producer has released it,
then hands it to the host exactly once.

Typical usage:
--------------
    from pathlib import Path
    from lockwatch.watcher import DebounceRetryScheduler, DirectoryWatcher

    async def upload(identity, path):
        await client.put(path)

    def alert(identity, path, retry_count):
        logger.warning(f"{path} still locked after {retry_count} retries")

    scheduler = DebounceRetryScheduler(
        on_safe=upload,
        on_failed=alert,
        debounce_seconds=10,
        max_retries=3,
    )
    watcher = DirectoryWatcher(Path("/incoming"), scheduler)
    watcher.start()
    # ... watcher runs in background ...
    watcher.stop()
    scheduler.close()

OUTCOMES SUMMARY
================

Every scheduled file ends in exactly one of:

1. SAFE: probe acquired an exclusive lock → on_safe(identity, path)
2. FAILED: locked on max_retries + 1 consecutive probes
   → on_failed(identity, path, retry_count) with retry_count == max_retries + 1
3. FAULT: probe raised (any exception, e.g. an OSError unrelated to
   locking), or the file vanished
   → on_fault(identity, path, error), or on_failed if no on_fault was given
4. CANCELLED: file deleted, cancel() or close() → no callback

ERROR CONDITIONS SUMMARY
========================

1. WATCH PATH ERRORS:
   - Path doesn't exist → FileNotFoundError on DirectoryWatcher()
   - Path is a file → ValueError on DirectoryWatcher()

2. PROBE ERRORS:
   - File locked → retried, never reported as an error
   - Permission denied / path too long / device error → FAULT
   - File deleted before its deadline → CANCELLED (watcher sees DELETED)
   - File deleted between event and probe → FAULT (FileNotFoundError)
   - Custom probe raises anything else → FAULT with that exception

3. CALLBACK ERRORS:
   - Host callback raises → logged, scheduler keeps running

4. LIFECYCLE ERRORS:
   - Scheduler built with no running loop and no loop= → RuntimeError
   - start() called twice → RuntimeError
   - stop() before start() → no-op
   - notify() after close() → ignored
"""

from lockwatch.watcher.core import DirectoryWatcher
from lockwatch.watcher.debouncer import (
    DEFAULT_DEBOUNCE_SECONDS,
    DEFAULT_MAX_RETRIES,
    DebounceRetryScheduler,
)
from lockwatch.watcher.handlers import FileWatcherEventHandler
from lockwatch.watcher.probe import is_file_locked, probe_lock
from lockwatch.watcher.types import FileEvent, LockState, PendingEntry

__all__ = [
    "DEFAULT_DEBOUNCE_SECONDS",
    "DEFAULT_MAX_RETRIES",
    "DebounceRetryScheduler",
    "DirectoryWatcher",
    "FileEvent",
    "FileWatcherEventHandler",
    "LockState",
    "PendingEntry",
    "is_file_locked",
    "probe_lock",
]
