"""Tail a log file and post matching lines to a webhook."""

__version__ = "0.1.0"
