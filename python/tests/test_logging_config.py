"""
Tests for setup_logging: handlers, file output, and de-duplication.
"""

import logging
import logging.handlers
import sys

import pytest

from lockwatch.logging_config import get_logger, setup_logging


def _file_handlers(logger):
    return [h for h in logger.handlers if isinstance(h, logging.handlers.TimedRotatingFileHandler)]


def _console_handlers(logger):
    return [
        h for h in logger.handlers
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr
    ]


def test_setup_logging_writes_daily_file(tmp_path):
    """Test: Logs go to lockwatch-YYYY-MM-DD.log in the given directory."""
    logger = setup_logging(log_dir=tmp_path, console=False)
    logger.info("hello from test")

    log_files = list(tmp_path.glob("lockwatch-*.log"))
    assert len(log_files) == 1
    assert "hello from test" in log_files[0].read_text(encoding="utf-8")


def test_setup_logging_child_loggers_reach_file(tmp_path):
    """Test: Module loggers under lockwatch.* are captured."""
    setup_logging(log_dir=tmp_path, console=False)
    logging.getLogger("lockwatch.watcher.debouncer").warning("child message")

    log_file = next(tmp_path.glob("lockwatch-*.log"))
    assert "child message" in log_file.read_text(encoding="utf-8")


def test_setup_logging_is_idempotent(tmp_path):
    """Test: Calling setup_logging twice doesn't duplicate handlers."""
    logger = setup_logging(log_dir=tmp_path)
    setup_logging(log_dir=tmp_path)

    assert len(_file_handlers(logger)) == 1
    assert len(_console_handlers(logger)) == 1


def test_setup_logging_console_optional(tmp_path):
    """Test: console=False leaves stderr alone; a later console=True adds it."""
    logger = setup_logging(log_dir=tmp_path, console=False)
    assert _console_handlers(logger) == []

    setup_logging(log_dir=tmp_path, console=True)
    assert len(_console_handlers(logger)) == 1
    assert len(_file_handlers(logger)) == 1


def test_setup_logging_level_by_name(tmp_path):
    """Test: Levels can be given by name."""
    logger = setup_logging(log_dir=tmp_path, level="debug", console=False)
    assert logger.level == logging.DEBUG


def test_setup_logging_unknown_level(tmp_path):
    """Test: Unknown level names raise ValueError."""
    with pytest.raises(ValueError, match="LOUD"):
        setup_logging(log_dir=tmp_path, level="loud")


def test_setup_logging_creates_directory(tmp_path):
    """Test: Missing log directories are created."""
    log_dir = tmp_path / "nested" / "logs"
    setup_logging(log_dir=log_dir, console=False)
    assert log_dir.is_dir()


def test_get_logger_default_name():
    assert get_logger().name == "lockwatch"
    assert get_logger("lockwatch.cli").name == "lockwatch.cli"


def test_setup_logging_announces_log_file_once(tmp_path):
    """Test: The log file location is recorded once, not on every call."""
    setup_logging(log_dir=tmp_path, console=False)
    setup_logging(log_dir=tmp_path, console=False)
    logging.getLogger("lockwatch").info("after second setup")

    text = next(tmp_path.glob("lockwatch-*.log")).read_text(encoding="utf-8")
    assert "after second setup" in text
    assert text.count("Logging to ") == 1
