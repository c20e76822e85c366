"""
Configuration loading and validation.

Settings come from built-in defaults, an optional YAML file and the command
line (in increasing precedence). ``build_watch_config`` turns the merged
mapping into the immutable ``WatchConfig`` used for the process lifetime.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

import yaml

from ..errors import ConfigError
from ..matching import compile_pattern
from .logger import logger


DEFAULTS: Dict[str, Any] = {
    "retries": 3,
    "retry_delay": 5.0,
    "backoff": 1.0,
    "polling": False,
    "log_level": "INFO",
    "log_file": None,
}

KNOWN_KEYS = {"file", "pattern", "webhook", *DEFAULTS}

CONFIG_PATH: Optional[str] = os.environ.get("TAILHOOK_CONFIG_PATH")


@dataclass(frozen=True)
class WatchConfig:
    """Validated settings for one watch session."""

    target_path: str
    pattern: re.Pattern
    webhook_url: str
    max_retries: int = 3
    retry_delay: float = 5.0
    backoff: float = 1.0
    polling: bool = False
    directory: str = field(init=False)
    file_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "directory", os.path.dirname(os.path.abspath(self.target_path)))
        object.__setattr__(self, "file_name", os.path.basename(self.target_path))


def load_config(path: Optional[str]) -> Dict[str, Any]:
    """Read a YAML mapping from ``path``; an empty or absent path yields ``{}``."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as exc:
        raise ConfigError(f"config file not found: {path}") from exc
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    for key in sorted(set(data) - KNOWN_KEYS):
        logger.warning("Ignoring unknown config key {!r} in {}", key, path)
    return {k: v for k, v in data.items() if k in KNOWN_KEYS}


def merge_settings(file_values: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Layer defaults, file values and non-None overrides."""
    merged: Dict[str, Any] = dict(DEFAULTS)
    merged.update(file_values)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return merged


def _number(settings: Mapping[str, Any], key: str, kind: type) -> Any:
    value = settings[key]
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number, got {value!r}")
    if kind is int and isinstance(value, float) and not value.is_integer():
        raise ConfigError(f"{key} must be a whole number, got {value!r}")
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number, got {value!r}") from exc


def _flag(settings: Mapping[str, Any], key: str) -> bool:
    value = settings.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


def build_watch_config(settings: Mapping[str, Any]) -> WatchConfig:
    """Validate merged settings and build a ``WatchConfig``."""
    missing = [k for k in ("file", "pattern", "webhook") if not settings.get(k)]
    if missing:
        raise ConfigError("missing required setting(s): " + ", ".join(missing))

    url = str(settings["webhook"])
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"webhook must be an http(s) URL, got {url!r}")

    retries = _number(settings, "retries", int)
    delay = _number(settings, "retry_delay", float)
    backoff = _number(settings, "backoff", float)
    if retries < 0:
        raise ConfigError("retries must be >= 0")
    if delay < 0:
        raise ConfigError("retry_delay must be >= 0")
    if backoff < 1:
        raise ConfigError("backoff must be >= 1")

    return WatchConfig(
        target_path=str(settings["file"]),
        pattern=compile_pattern(str(settings["pattern"])),
        webhook_url=url,
        max_retries=retries,
        retry_delay=delay,
        backoff=backoff,
        polling=_flag(settings, "polling"),
    )


__all__ = [
    "WatchConfig",
    "load_config",
    "merge_settings",
    "build_watch_config",
    "CONFIG_PATH",
    "DEFAULTS",
]
