"""
Debounce and retry scheduling for newly created files.

This module provides the DebounceRetryScheduler class that holds each new
file back until its producer has released it, probing with a fixed delay
and a bounded number of retries.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional, Union

from lockwatch.watcher.probe import probe_lock
from lockwatch.watcher.types import LockState, PendingEntry

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 10
DEFAULT_MAX_RETRIES = 3


class DebounceRetryScheduler:
    """
    Per-file expiring entries with lock probing on expiry.

    Behavior:
    ---------
    1. notify() creates an entry (retry 0) or refreshes its deadline
    2. When the deadline passes, the file is probed in a worker thread
    3. Unlocked → on_safe, entry removed
    4. Locked → retry_count += 1 and re-armed, or on_failed once
       retry_count exceeds max_retries (max_retries + 1 probes in total)

    Example:
    --------
    debounce_seconds=10, max_retries=3, file locked until t=35
    notify("a.txt")          at t=0   → deadline t=10
    probe locked             at t=10  → retry 1, deadline t=20
    probe locked             at t=20  → retry 2, deadline t=30
    probe locked             at t=30  → retry 3, deadline t=40
    probe unlocked           at t=40  → on_safe("a.txt", path)

    Concurrency:
    ------------
    All state is owned by one asyncio loop. Every (re-)arm cancels the
    previous timer and bumps the entry generation; timers and probe results
    carrying an older generation are discarded.
    """

    def __init__(
        self,
        on_safe: Callable[[str, Path], Any],
        on_failed: Callable[[str, Path, int], Any],
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        on_retry: Optional[Callable[[str, Path, int], Any]] = None,
        on_fault: Optional[Callable[[str, Path, Exception], Any]] = None,
        probe: Callable[[Path], LockState] = probe_lock,
        clock: Optional[Callable[[], float]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        """
        Initialize scheduler.

        Args:
        -----
        on_safe: Called as on_safe(identity, path) when a file is unlocked
        on_failed: Called as on_failed(identity, path, retry_count) when
            retries are exhausted (also for probe faults without on_fault)
        debounce_seconds: Delay before each probe (default: 10)
        max_retries: Retries after the first locked probe (default: 3)
        on_retry: Optional, called as on_retry(identity, path, retry_count)
            each time a locked file is re-armed
        on_fault: Optional, called as on_fault(identity, path, error) when
            the probe raises instead of returning a LockState
        probe: Lock probe, runs in a worker thread (default: probe_lock)
        clock: Time source for entry deadlines (default: time.monotonic)
        loop: Event loop that owns timers and state

        Raises:
        -------
        ValueError: If debounce_seconds or max_retries invalid
        TypeError: If a callback is not callable
        RuntimeError: If no loop is given and none is running
        """
        if debounce_seconds <= 0:
            raise ValueError("debounce_seconds must be greater than 0")
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        for name, callback in (("on_safe", on_safe), ("on_failed", on_failed)):
            if not callable(callback):
                raise TypeError(f"{name} must be callable")

        self._debounce_seconds = debounce_seconds
        self._max_retries = max_retries
        self._on_safe = on_safe
        self._on_failed = on_failed
        self._on_retry = on_retry
        self._on_fault = on_fault
        self._probe = probe
        self._clock = clock or time.monotonic

        # Timers and probe tasks need a loop that is actually running
        if loop:
            self._loop = loop
        else:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError:
                raise RuntimeError(
                    "DebounceRetryScheduler needs an event loop: create it inside a "
                    "coroutine or pass loop="
                ) from None

        # identity -> entry, and identity -> armed timer for that entry
        self._pending: dict[str, PendingEntry] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}

        # Expiry tasks currently probing (cancelled on close)
        self._tasks: set[asyncio.Task] = set()

        self._closed = False

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def debounce_seconds(self) -> float:
        return self._debounce_seconds

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def armed_timer_count(self) -> int:
        return len(self._timers)

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, identity: object) -> bool:
        return identity in self._pending

    def get_entry(self, identity: str) -> Optional[PendingEntry]:
        """Return the pending entry for identity, or None."""
        return self._pending.get(identity)

    def pending_identities(self) -> list[str]:
        return list(self._pending)

    def notify(self, identity: str, path: Union[str, Path]) -> None:
        """
        Record a creation event and (re-)arm the debounce timer.

        Must be called on the scheduler's loop; use notify_threadsafe()
        from other threads.

        Coalescing Rules:
        -----------------
        - Unknown identity → new entry, retry_count 0
        - Pending identity → deadline refreshed, retry_count unchanged,
          the first path seen is kept
        """
        if self._closed:
            logger.debug(f"Scheduler closed, ignoring notification for {identity}")
            return

        entry = self._pending.get(identity)
        if entry is None:
            entry = PendingEntry(identity=identity, path=Path(path))
            self._pending[identity] = entry
            logger.debug(f"Tracking new file {identity}")
        else:
            if Path(path) != entry.path:
                logger.debug(
                    f"Coalescing {path} into pending entry {identity} ({entry.path})"
                )
            logger.debug(f"Refreshing deadline for {identity} (retry {entry.retry_count})")

        self._arm(entry)

    def notify_threadsafe(self, identity: str, path: Union[str, Path]) -> None:
        """Schedule notify() on the scheduler's loop from any thread."""
        self._loop.call_soon_threadsafe(self.notify, identity, path)

    def cancel(self, identity: str) -> bool:
        """
        Drop a pending entry without firing any callback.

        Returns:
        --------
        bool: True if an entry was removed
        """
        entry = self._pending.get(identity)
        if entry is None:
            return False
        self._remove(entry)
        logger.debug(f"Cancelled pending entry {identity}")
        return True

    def close(self) -> None:
        """
        Cancel every timer and in-flight probe and drop all entries.

        No callback fires after close(). Probe threads already running
        finish on their own; their results are discarded. Safe to call
        more than once.
        """
        if self._closed:
            return
        self._closed = True

        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

        for task in self._tasks:
            task.cancel()
        self._tasks.clear()

        if self._pending:
            logger.info(f"Discarding {len(self._pending)} pending file(s) on shutdown")
        self._pending.clear()

    async def on_expiry(self, identity: str, generation: Optional[int] = None) -> None:
        """
        Handle an expired entry: probe it and settle or re-arm it.

        Args:
        -----
        identity: Entry to expire
        generation: Arming this expiry belongs to. None means "whatever is
            current", for callers that expire an entry directly.

        Absent entries and stale generations are a no-op.
        """
        entry = self._pending.get(identity)
        if entry is None:
            return
        if generation is None:
            generation = entry.generation
        elif entry.generation != generation:
            logger.debug(f"Ignoring stale expiry for {identity}")
            return

        # This arming's timer has fired (or is being pre-empted)
        handle = self._timers.pop(identity, None)
        if handle is not None:
            handle.cancel()

        if entry.retry_count > self._max_retries:
            await self._finish_failed(entry)
            return

        try:
            state = await asyncio.to_thread(self._probe, entry.path)
        except Exception as e:
            if self._is_current(entry, generation):
                await self._finish_fault(entry, e)
            return

        if not self._is_current(entry, generation):
            logger.debug(f"Discarding probe result for {identity}: entry changed while probing")
            return

        if state is LockState.UNLOCKED:
            self._remove(entry)
            logger.info(f"File settled: {entry.path} (after {entry.retry_count} retries)")
            await self._emit(self._on_safe, entry.identity, entry.path)
        elif state is LockState.VANISHED:
            await self._finish_fault(
                entry, FileNotFoundError(f"File disappeared before settling: {entry.path}")
            )
        else:
            entry.retry_count += 1
            if entry.retry_count > self._max_retries:
                await self._finish_failed(entry)
                return
            logger.debug(
                f"File still locked: {entry.path} (retry {entry.retry_count}/{self._max_retries})"
            )
            self._arm(entry)
            if self._on_retry:
                await self._emit(self._on_retry, entry.identity, entry.path, entry.retry_count)

    def _arm(self, entry: PendingEntry) -> None:
        """Refresh the deadline and replace the entry's timer."""
        assert self._pending.get(entry.identity) is entry, "arming an entry that is not pending"

        entry.generation += 1
        entry.deadline = self._clock() + self._debounce_seconds

        # Cancel existing timer and start new one
        previous = self._timers.pop(entry.identity, None)
        if previous is not None:
            previous.cancel()

        self._timers[entry.identity] = self._loop.call_later(
            self._debounce_seconds, self._on_timer, entry.identity, entry.generation
        )

    def _on_timer(self, identity: str, generation: int) -> None:
        """Timer callback: run the expiry as a tracked task."""
        if self._closed:
            return
        task = self._loop.create_task(self.on_expiry(identity, generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _is_current(self, entry: PendingEntry, generation: int) -> bool:
        return (
            not self._closed
            and self._pending.get(entry.identity) is entry
            and entry.generation == generation
        )

    def _remove(self, entry: PendingEntry) -> None:
        removed = self._pending.pop(entry.identity, None)
        assert removed is entry, "pending map out of sync with entry"
        handle = self._timers.pop(entry.identity, None)
        if handle is not None:
            handle.cancel()

    async def _finish_failed(self, entry: PendingEntry) -> None:
        self._remove(entry)
        logger.warning(
            f"Giving up on {entry.path}: still locked after {entry.retry_count} retries"
        )
        await self._emit(self._on_failed, entry.identity, entry.path, entry.retry_count)

    async def _finish_fault(self, entry: PendingEntry, error: Exception) -> None:
        self._remove(entry)
        logger.error(f"Lock probe failed for {entry.path}: {error}", exc_info=error)
        if self._on_fault:
            await self._emit(self._on_fault, entry.identity, entry.path, error)
        else:
            await self._emit(self._on_failed, entry.identity, entry.path, entry.retry_count)

    async def _emit(self, callback: Callable[..., Any], *args: Any) -> None:
        """Invoke a host callback (sync or async), logging its errors."""
        try:
            result = callback(*args)
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            # Log error but don't raise (keep scheduling)
            logger.error(f"Error in {getattr(callback, '__name__', 'callback')}: {e}", exc_info=True)
