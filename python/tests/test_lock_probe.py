"""
Tests for the exclusive-lock probe against real files.

Writers are simulated with fcntl.flock, so these tests are POSIX only.
"""

import errno
import os
import sys
from unittest.mock import patch

import pytest

from lockwatch.watcher import LockState, is_file_locked, probe_lock

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses fcntl.flock writers")


# ============================================================================
# LOCK STATE TESTS
# ============================================================================


def test_probe_unlocked_file(sample_file):
    """Test: A file nobody holds is UNLOCKED."""
    assert probe_lock(sample_file) is LockState.UNLOCKED
    assert is_file_locked(sample_file) is False


def test_probe_file_held_by_writer(sample_file, hold_lock):
    """Test: A file with an exclusive lock held elsewhere is LOCKED."""
    hold_lock(sample_file)

    assert probe_lock(sample_file) is LockState.LOCKED
    assert is_file_locked(sample_file) is True


def test_probe_after_writer_releases(sample_file, hold_lock):
    """Test: Closing the writer's handle makes the file UNLOCKED again."""
    handle = hold_lock(sample_file)
    assert is_file_locked(sample_file)

    handle.close()

    assert not is_file_locked(sample_file)


def test_probe_accepts_string_path(sample_file):
    """Test: Plain string paths work."""
    assert probe_lock(str(sample_file)) is LockState.UNLOCKED


def test_probe_releases_its_own_lock(sample_file):
    """Test: The probe never leaves the file locked behind it."""
    import fcntl

    probe_lock(sample_file)

    with open(sample_file, "a") as handle:
        # Would raise BlockingIOError if the probe still held a lock
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)


def test_probe_empty_file(temp_workspace):
    """Test: Empty files (0 bytes) can be probed."""
    empty = temp_workspace / "empty.bin"
    empty.touch()

    assert probe_lock(empty) is LockState.UNLOCKED


# ============================================================================
# MISSING FILE AND FAULT TESTS
# ============================================================================


def test_probe_missing_file_is_vanished(temp_workspace):
    """Test: A missing file is VANISHED, and 'not locked' for is_file_locked."""
    missing = temp_workspace / "gone.txt"

    assert probe_lock(missing) is LockState.VANISHED
    assert is_file_locked(missing) is False


def test_probe_directory_raises(temp_workspace):
    """Test: Probing a directory surfaces the OSError."""
    with pytest.raises(OSError):
        probe_lock(temp_workspace)


@pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root ignores file modes")
def test_probe_permission_denied_raises(sample_file):
    """Test: A read-only file raises PermissionError instead of looking locked."""
    sample_file.chmod(0o444)
    try:
        with pytest.raises(PermissionError):
            probe_lock(sample_file)
    finally:
        sample_file.chmod(0o644)


def test_probe_unexpected_lock_error_propagates(sample_file):
    """Test: flock errors other than a conflict are not mapped to LOCKED."""
    with patch("lockwatch.watcher.probe.fcntl.flock", side_effect=OSError(errno.ENOLCK, "No locks available")):
        with pytest.raises(OSError) as exc_info:
            probe_lock(sample_file)

    assert exc_info.value.errno == errno.ENOLCK


def test_probe_conflict_error_maps_to_locked(sample_file):
    """Test: A BlockingIOError from flock means LOCKED."""
    with patch(
        "lockwatch.watcher.probe.fcntl.flock",
        side_effect=BlockingIOError(errno.EWOULDBLOCK, "Resource temporarily unavailable"),
    ):
        assert probe_lock(sample_file) is LockState.LOCKED
