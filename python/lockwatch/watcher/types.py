"""
Watcher type definitions.

This module defines the core types shared by the watcher components:
- FileEvent enum: Event types delivered by the directory watcher
- LockState enum: Outcome of probing a file for an exclusive lock
- PendingEntry: One file waiting for a safe-to-process decision
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class FileEvent(Enum):
    """File system event types routed to the scheduler."""

    CREATED = "created"  # New file appeared in the watched directory
    MODIFIED = "modified"  # Existing file content changed (not acted on)
    DELETED = "deleted"  # File removed before it settled
    MOVED = "moved"  # File renamed or moved (treat as delete + create)


class LockState(Enum):
    """Result of a lock probe."""

    UNLOCKED = "unlocked"  # Exclusive lock acquired and released
    LOCKED = "locked"  # Another handle holds the file
    VANISHED = "vanished"  # File no longer exists


@dataclass
class PendingEntry:
    """
    A file awaiting a safe-to-process determination.

    Only the scheduler mutates entries. ``generation`` is bumped every time
    the entry is (re-)armed so that a timer or probe result belonging to an
    older arming can be recognised and discarded.
    """

    identity: str
    path: Path
    retry_count: int = 0
    deadline: float = 0.0
    generation: int = 0

