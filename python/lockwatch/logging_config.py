"""
Logging configuration for lockwatch.

Records go to .lockwatch/logs/lockwatch-YYYY-MM-DD.log (rotated at midnight)
and, unless console=False, to stderr. Every module logs through a child of
the "lockwatch" logger, so one setup_logging() call covers the whole service.
"""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "lockwatch"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SettlementLogHandler(logging.handlers.TimedRotatingFileHandler):
    """Daily log file that is flushed after every record.

    Settled and abandoned files are reported one line at a time, and
    operators tail the file to see them as they happen.
    """

    def emit(self, record: logging.LogRecord) -> None:
        super().emit(record)
        self.flush()


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    name = level.upper()
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {name}")
    return value


def setup_logging(
    log_dir: Optional[Path] = None,
    level: Union[int, str] = logging.INFO,
    backup_count: int = 30,
    console: bool = True,
) -> logging.Logger:
    """
    Attach the lockwatch file (and console) handlers.

    Args:
        log_dir: Directory for log files (default: ./.lockwatch/logs)
        level: Logging level, as int or name such as "debug"
        backup_count: Daily files to keep
        console: Also log to stderr

    Returns:
        The "lockwatch" logger

    Raises:
        ValueError: If level is an unknown name

    Repeated calls never stack handlers; a later console=True call adds the
    console handler if it is missing.
    """
    level = _resolve_level(level)
    log_dir = log_dir or Path.cwd() / ".lockwatch" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if not any(isinstance(h, SettlementLogHandler) for h in logger.handlers):
        log_file = log_dir / f"lockwatch-{datetime.now().strftime('%Y-%m-%d')}.log"
        file_handler = SettlementLogHandler(
            log_file,
            when="midnight",
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.info(
            f"Logging to {log_file} at {logging.getLevelName(level)} "
            f"(keeping {backup_count} days)"
        )

    has_console = any(
        isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr
        for h in logger.handlers
    )
    if console and not has_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Logger under the lockwatch hierarchy."""
    return logging.getLogger(name)
