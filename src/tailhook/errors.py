from __future__ import annotations


class TailhookError(Exception):
    """Base class for all tailhook errors."""


class ConfigError(TailhookError):
    """Invalid or incomplete configuration."""


class WatchInitError(TailhookError):
    """The directory holding the target file cannot be monitored."""


class OpenError(TailhookError):
    """The target file cannot be opened."""


class ReadError(TailhookError):
    """Reading newly appended bytes failed."""


class LineTooLongError(TailhookError):
    """A line grew past the maximum size before a terminator was seen."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"line exceeds {limit} bytes ({size} buffered), discarded")


__all__ = [
    "TailhookError",
    "ConfigError",
    "WatchInitError",
    "OpenError",
    "ReadError",
    "LineTooLongError",
]
