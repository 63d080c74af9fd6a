"""
Runtime settings for the lockwatch service.

Settings come from LOCKWATCH_* environment variables; CLI arguments
override them (see lockwatch.cli).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from lockwatch.watcher.core import IDENTITY_MODES
from lockwatch.watcher.debouncer import DEFAULT_DEBOUNCE_SECONDS, DEFAULT_MAX_RETRIES

ENV_PREFIX = "LOCKWATCH_"
DEFAULT_HEARTBEAT_SECONDS = 300

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class WatchSettings:
    """Everything the host needs to watch one directory."""

    watch_path: Path
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    recursive: bool = False
    identity_mode: str = "path"
    ignore_patterns: tuple[str, ...] = field(default_factory=tuple)
    heartbeat_interval: float = DEFAULT_HEARTBEAT_SECONDS
    log_dir: Optional[Path] = None
    log_level: str = "INFO"
    console: bool = True

    def __post_init__(self):
        if self.debounce_seconds <= 0:
            raise ValueError("debounce_seconds must be greater than 0")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.heartbeat_interval <= 0:
            raise ValueError("heartbeat_interval must be greater than 0")
        if self.identity_mode not in IDENTITY_MODES:
            raise ValueError(
                f"identity_mode must be one of {', '.join(IDENTITY_MODES)}, got {self.identity_mode!r}"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "WatchSettings":
        """
        Build settings from LOCKWATCH_* variables.

        Args:
            environ: Mapping to read (default: os.environ)
            **overrides: Values that win over the environment; None is skipped

        Raises:
            ValueError: If a value can't be parsed or the watch path is missing
        """
        env = os.environ if environ is None else environ
        values: dict = {}

        if _get(env, "PATH"):
            values["watch_path"] = Path(_get(env, "PATH")).expanduser()
        if _get(env, "DEBOUNCE_SECONDS"):
            values["debounce_seconds"] = _parse_number(env, "DEBOUNCE_SECONDS", float)
        if _get(env, "MAX_RETRIES"):
            values["max_retries"] = _parse_number(env, "MAX_RETRIES", int)
        if _get(env, "RECURSIVE") is not None:
            values["recursive"] = _parse_bool(env, "RECURSIVE")
        if _get(env, "IDENTITY"):
            values["identity_mode"] = _get(env, "IDENTITY").strip().lower()
        if _get(env, "IGNORE"):
            values["ignore_patterns"] = tuple(
                p.strip() for p in _get(env, "IGNORE").split(",") if p.strip()
            )
        if _get(env, "HEARTBEAT_SECONDS"):
            values["heartbeat_interval"] = _parse_number(env, "HEARTBEAT_SECONDS", float)
        if _get(env, "LOG_DIR"):
            values["log_dir"] = Path(_get(env, "LOG_DIR")).expanduser()
        if _get(env, "LOG_LEVEL"):
            values["log_level"] = _get(env, "LOG_LEVEL").strip().upper()

        values.update({k: v for k, v in overrides.items() if v is not None})

        if "watch_path" not in values:
            raise ValueError(f"No directory to watch: set {ENV_PREFIX}PATH or pass --path")
        values["watch_path"] = Path(values["watch_path"])
        return cls(**values)


def _get(env: Mapping[str, str], name: str) -> Optional[str]:
    return env.get(ENV_PREFIX + name)


def _parse_number(env: Mapping[str, str], name: str, kind):
    raw = _get(env, name)
    try:
        return kind(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from None


def _parse_bool(env: Mapping[str, str], name: str) -> bool:
    raw = _get(env, name).strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")
