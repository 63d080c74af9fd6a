"""
Exclusive-lock probing for files that may still be written.

A file is considered settled once this process can open it for read/write
and take a non-blocking exclusive lock on it. The handle is released
immediately on every exit path.

Platform notes:
- POSIX: ``fcntl.flock`` (advisory). Producers that never take a lock are
  invisible to the probe.
- Windows: a sharing or lock violation while opening counts as locked,
  then ``msvcrt.locking`` is tried on the first byte.
"""

import errno
import logging
import os
import sys
from pathlib import Path
from typing import Union

from lockwatch.watcher.types import LockState

logger = logging.getLogger(__name__)

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl

# errno values a non-blocking lock attempt reports for "held by someone else"
_LOCK_CONFLICT_ERRNOS = {errno.EACCES, errno.EAGAIN, errno.EWOULDBLOCK}

# ERROR_SHARING_VIOLATION, ERROR_LOCK_VIOLATION
_WINDOWS_LOCK_CONFLICTS = {32, 33}


def _is_lock_conflict(exc: OSError) -> bool:
    """Check whether an OSError means "another handle holds the file"."""
    if getattr(exc, "winerror", None) in _WINDOWS_LOCK_CONFLICTS:
        return True
    return isinstance(exc, BlockingIOError) or exc.errno in _LOCK_CONFLICT_ERRNOS


def _try_lock(fd: int) -> bool:
    """Take and release an exclusive lock. Returns False on conflict."""
    try:
        if sys.platform == "win32":
            msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)
            msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
        else:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            fcntl.flock(fd, fcntl.LOCK_UN)
    except OSError as e:
        if _is_lock_conflict(e):
            return False
        raise
    return True


def probe_lock(path: Union[str, Path]) -> LockState:
    """
    Probe a file for an exclusive lock.

    Args:
        path: File to probe

    Returns:
        LockState.UNLOCKED if the lock could be taken,
        LockState.LOCKED if another handle holds the file,
        LockState.VANISHED if the file no longer exists

    Raises:
        OSError: For failures unrelated to locking (permission denied,
                 name too long, path is a directory, device errors)
    """
    try:
        fd = os.open(os.fspath(path), os.O_RDWR)
    except FileNotFoundError:
        return LockState.VANISHED
    except OSError as e:
        if _is_lock_conflict(e) and sys.platform == "win32":
            return LockState.LOCKED
        raise

    try:
        if _try_lock(fd):
            return LockState.UNLOCKED
        return LockState.LOCKED
    finally:
        os.close(fd)


def is_file_locked(path: Union[str, Path]) -> bool:
    """
    Check whether a file is currently held by another writer.

    A file that no longer exists is reported as not locked: there is
    nothing left to protect. Use probe_lock() to tell the two apart.

    Raises:
        OSError: For failures unrelated to locking
    """
    state = probe_lock(path)
    if state is LockState.VANISHED:
        logger.debug(f"Lock probe: {path} no longer exists")
    return state is LockState.LOCKED
