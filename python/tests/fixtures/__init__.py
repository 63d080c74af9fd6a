"""
Pytest fixtures for lockwatch tests.

Fixtures are organized by test category:
- watcher.py: Scheduler, lock probe and DirectoryWatcher fixtures
"""
