"""
lockwatch service lifecycle - startup, heartbeat, and shutdown.

Handles:
1. Building the scheduler and directory watcher from WatchSettings
2. Periodic heartbeat that reports directory-watch liveness
3. Graceful shutdown (stop watching, cancel pending timers)
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

from lockwatch.config import WatchSettings
from lockwatch.watcher import DebounceRetryScheduler, DirectoryWatcher

logger = logging.getLogger(__name__)


def log_safe_file(identity: str, path: Path) -> None:
    """Default on_safe action: report the file."""
    logger.info(f"✅ Now is a safe(ish) time to complete actions on file: {path.name}")


def log_failed_file(identity: str, path: Path, retry_count: int) -> None:
    """Default on_failed action: report the file."""
    logger.warning(f"⚠️  Gave up on file after {retry_count} retries: {path.name}")


class Heartbeat:
    """
    Liveness ticker for the directory watch.

    Every interval the tick counter is incremented and a status line is
    logged. ``ticks`` only grows while the watch loop is alive, so hosts can
    compare two readings to detect a stalled service.
    """

    def __init__(
        self,
        interval: float,
        scheduler: DebounceRetryScheduler,
        watcher: Optional[DirectoryWatcher] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be greater than 0")
        self._interval = interval
        self._scheduler = scheduler
        self._watcher = watcher
        self._ticks = 0

    @property
    def ticks(self) -> int:
        return self._ticks

    def tick(self) -> int:
        """Record one heartbeat and log the watch status."""
        self._ticks += 1
        if self._watcher is not None and not self._watcher.is_running():
            logger.warning(f"Watcher for {self._watcher.watch_path} is not running")
        logger.info(
            f"Worker running at: {datetime.now().astimezone().isoformat(timespec='seconds')} "
            f"(tick {self._ticks}, {len(self._scheduler)} pending)"
        )
        return self._ticks

    async def run(self) -> None:
        """Tick every interval until cancelled."""
        while True:
            await asyncio.sleep(self._interval)
            self.tick()


async def run_service(
    settings: WatchSettings,
    on_safe: Optional[Callable[[str, Path], Any]] = None,
    on_failed: Optional[Callable[[str, Path, int], Any]] = None,
    stop_event: Optional[asyncio.Event] = None,
) -> None:
    """
    Watch settings.watch_path until stop_event is set.

    Args:
        settings: Service settings
        on_safe: Downstream action for settled files (default: log it)
        on_failed: Action for files that never settled (default: log it)
        stop_event: Set to shut down (default: run until cancelled)

    Raises:
        FileNotFoundError / ValueError: If the watch path is unusable
    """
    stop_event = stop_event or asyncio.Event()

    logger.info("🚀 Service starting")
    scheduler = DebounceRetryScheduler(
        on_safe=on_safe or log_safe_file,
        on_failed=on_failed or log_failed_file,
        debounce_seconds=settings.debounce_seconds,
        max_retries=settings.max_retries,
    )
    watcher = DirectoryWatcher(
        settings.watch_path,
        scheduler,
        recursive=settings.recursive,
        identity_mode=settings.identity_mode,
        ignore_patterns=settings.ignore_patterns,
    )
    heartbeat = Heartbeat(settings.heartbeat_interval, scheduler, watcher)

    watcher.start()
    heartbeat_task = asyncio.create_task(heartbeat.run())
    logger.info(
        f"📁 Watching {watcher.watch_path} "
        f"(debounce {settings.debounce_seconds}s, max retries {settings.max_retries})"
    )
    logger.info(
        f"Identity by {settings.identity_mode}, recursive={settings.recursive}, "
        f"extra ignores: {', '.join(settings.ignore_patterns) or 'none'}, "
        f"heartbeat every {settings.heartbeat_interval}s"
    )

    try:
        await stop_event.wait()
    finally:
        logger.info("🛑 Service stopping")
        watcher.stop()
        heartbeat_task.cancel()
        try:
            await heartbeat_task
        except asyncio.CancelledError:
            pass
        scheduler.close()
        logger.info("Service stopped")
