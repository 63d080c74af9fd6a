"""
Gitignore-style filtering of files that should never be scheduled.

Uses pathspec library for GitIgnore-compliant pattern matching.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from pathspec import PathSpec

logger = logging.getLogger(__name__)

IGNORE_FILE_NAME = ".lockwatchignore"

# Editor swap files, partial downloads and other short-lived temp files.
# These are created and removed by their producers and never settle.
DEFAULT_IGNORES = [
    "*.tmp",
    "*.tmp.*",
    "*~",
    "*.swp",
    "*.swo",
    ".#*",
    "*.part",
    "*.partial",
    "*.crdownload",
    "*.download",
    ".DS_Store",
    "Thumbs.db",
]


def build_ignore_spec(
    patterns: Optional[Iterable[str]] = None, include_defaults: bool = True
) -> PathSpec:
    """
    Combine default ignores with user patterns.

    Args:
        patterns: Extra gitignore-style patterns (blank lines and
                  comments are skipped)
        include_defaults: Whether to include DEFAULT_IGNORES

    Returns:
        PathSpec object for matching files against patterns
    """
    lines = DEFAULT_IGNORES.copy() if include_defaults else []
    if patterns:
        lines.extend(
            p.strip() for p in patterns if p.strip() and not p.strip().startswith("#")
        )
    return PathSpec.from_lines("gitwildmatch", lines)


def load_ignore_file(path: Path) -> list[str]:
    """
    Read patterns from an ignore file (e.g. ``.lockwatchignore``).

    Returns an empty list if the file is missing or unreadable.
    """
    if not path.exists():
        return []
    try:
        return path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        # If the ignore file is unreadable, just use defaults
        logger.warning(f"Could not read {path}: {e}")
        return []


def should_ignore(file_path: Path, root: Path, spec: PathSpec) -> bool:
    """
    Check if a file should be kept away from the scheduler.

    Args:
        file_path: Absolute path of the file
        root: Watched directory the patterns are relative to
        spec: PathSpec from build_ignore_spec()

    Returns:
        True if the file matches an ignore pattern
    """
    try:
        rel_path = file_path.relative_to(root)
    except ValueError:
        # Outside the watched directory
        return True
    return spec.match_file(rel_path.as_posix())
