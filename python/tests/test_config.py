"""
Tests for WatchSettings: defaults, environment parsing, and validation.
"""

from pathlib import Path

import pytest

from lockwatch.config import DEFAULT_HEARTBEAT_SECONDS, WatchSettings


def test_settings_defaults():
    """Test: Only the watch path is required; the rest has defaults."""
    settings = WatchSettings(watch_path=Path("/incoming"))

    assert settings.debounce_seconds == 10
    assert settings.max_retries == 3
    assert settings.recursive is False
    assert settings.identity_mode == "path"
    assert settings.ignore_patterns == ()
    assert settings.heartbeat_interval == DEFAULT_HEARTBEAT_SECONDS
    assert settings.log_level == "INFO"
    assert settings.console is True


@pytest.mark.parametrize(
    "kwargs",
    [
        {"debounce_seconds": 0},
        {"debounce_seconds": -5},
        {"max_retries": -1},
        {"heartbeat_interval": 0},
        {"identity_mode": "inode"},
    ],
)
def test_settings_validation(kwargs):
    """Test: Invalid values raise ValueError on construction."""
    with pytest.raises(ValueError):
        WatchSettings(watch_path=Path("/incoming"), **kwargs)


def test_from_env_reads_all_variables(tmp_path):
    """Test: Every LOCKWATCH_* variable is parsed into settings."""
    environ = {
        "LOCKWATCH_PATH": str(tmp_path),
        "LOCKWATCH_DEBOUNCE_SECONDS": "2.5",
        "LOCKWATCH_MAX_RETRIES": "7",
        "LOCKWATCH_RECURSIVE": "yes",
        "LOCKWATCH_IDENTITY": "Name",
        "LOCKWATCH_IGNORE": "*.log, *.bak ,",
        "LOCKWATCH_HEARTBEAT_SECONDS": "60",
        "LOCKWATCH_LOG_DIR": str(tmp_path / "logs"),
        "LOCKWATCH_LOG_LEVEL": "debug",
    }

    settings = WatchSettings.from_env(environ)

    assert settings.watch_path == tmp_path
    assert settings.debounce_seconds == 2.5
    assert settings.max_retries == 7
    assert settings.recursive is True
    assert settings.identity_mode == "name"
    assert settings.ignore_patterns == ("*.log", "*.bak")
    assert settings.heartbeat_interval == 60
    assert settings.log_dir == tmp_path / "logs"
    assert settings.log_level == "DEBUG"


def test_from_env_overrides_win():
    """Test: Explicit overrides beat the environment; None overrides are skipped."""
    environ = {"LOCKWATCH_PATH": "/from/env", "LOCKWATCH_MAX_RETRIES": "7"}

    settings = WatchSettings.from_env(environ, watch_path=Path("/from/cli"), max_retries=None)

    assert settings.watch_path == Path("/from/cli")
    assert settings.max_retries == 7


def test_from_env_requires_path():
    """Test: No LOCKWATCH_PATH and no override → ValueError."""
    with pytest.raises(ValueError, match="LOCKWATCH_PATH"):
        WatchSettings.from_env({})


def test_from_env_rejects_bad_number():
    """Test: Non-numeric values name the offending variable."""
    environ = {"LOCKWATCH_PATH": "/incoming", "LOCKWATCH_MAX_RETRIES": "lots"}

    with pytest.raises(ValueError, match="LOCKWATCH_MAX_RETRIES"):
        WatchSettings.from_env(environ)


def test_from_env_rejects_bad_boolean():
    """Test: Unknown boolean spellings are rejected."""
    environ = {"LOCKWATCH_PATH": "/incoming", "LOCKWATCH_RECURSIVE": "maybe"}

    with pytest.raises(ValueError, match="LOCKWATCH_RECURSIVE"):
        WatchSettings.from_env(environ)


def test_from_env_uses_os_environ(clean_env, tmp_path):
    """Test: Without an explicit mapping, os.environ is read."""
    clean_env.setenv("LOCKWATCH_PATH", str(tmp_path))
    clean_env.setenv("LOCKWATCH_RECURSIVE", "0")

    settings = WatchSettings.from_env()

    assert settings.watch_path == tmp_path
    assert settings.recursive is False
