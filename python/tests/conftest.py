"""
Pytest configuration and fixtures for lockwatch tests.

Specialized fixtures are organized in the fixtures/ directory:
- fixtures.watcher: Scheduler, probe and DirectoryWatcher fixtures
"""

import logging

import pytest

# Load fixture modules
pytest_plugins = [
    "tests.fixtures.watcher",
]


@pytest.fixture(autouse=True)
def reset_lockwatch_logger():
    """
    Remove handlers added by setup_logging() after each test.

    setup_logging() configures the shared "lockwatch" logger, so handlers
    would otherwise leak between tests (and keep log files open).
    """
    yield
    logger = logging.getLogger("lockwatch")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove LOCKWATCH_* variables inherited from the shell."""
    import os

    for name in list(os.environ):
        if name.startswith("LOCKWATCH_"):
            monkeypatch.delenv(name)
    return monkeypatch
