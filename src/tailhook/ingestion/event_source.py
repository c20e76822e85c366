"""
Filesystem event source built on watchdog.

The watchdog observer runs in its own thread and pushes events into a queue;
``next()`` blocks on that queue so the caller sees a plain, lazily produced
sequence of ``FSEvent`` values. ``close()`` may be called from any thread and
wakes a pending ``next()`` with the ``CLOSED`` sentinel.
"""

from __future__ import annotations

import enum
import os
import queue
import threading
from dataclasses import dataclass
from typing import Iterator, Union

from watchdog.events import (
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from ..errors import WatchInitError
from ..utils.logger import logger


class EventKind(enum.Enum):
    MODIFY = "modify"
    CREATE = "create"


@dataclass(frozen=True)
class FSEvent:
    kind: EventKind
    name: str


class _Closed:
    def __repr__(self) -> str:
        return "CLOSED"


CLOSED = _Closed()


class EventSource:
    """Blocking source of directory events.

    Implementations yield ``FSEvent`` from ``next()`` and return ``CLOSED``
    once ``close()`` has been called.
    """

    def next(self) -> Union[FSEvent, _Closed]:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def __iter__(self) -> Iterator[FSEvent]:
        while True:
            event = self.next()
            if event is CLOSED:
                return
            yield event  # type: ignore[misc]


class _QueueingHandler(FileSystemEventHandler):
    """Translate watchdog callbacks into ``FSEvent`` values on a queue."""

    def __init__(self, q: "queue.Queue[object]") -> None:
        super().__init__()
        self._queue = q

    def on_modified(self, event: FileSystemEvent) -> None:  # type: ignore[override]
        if isinstance(event, FileModifiedEvent) and not event.is_directory:
            self._queue.put(FSEvent(EventKind.MODIFY, _name(event.src_path)))

    def on_created(self, event: FileSystemEvent) -> None:  # type: ignore[override]
        if isinstance(event, FileCreatedEvent) and not event.is_directory:
            self._queue.put(FSEvent(EventKind.CREATE, _name(event.src_path)))

    def on_moved(self, event: FileSystemEvent) -> None:  # type: ignore[override]
        # A file renamed into place replaces the target just like a create.
        if isinstance(event, FileMovedEvent) and not event.is_directory:
            self._queue.put(FSEvent(EventKind.CREATE, _name(event.dest_path)))


def _name(path: Union[str, bytes]) -> str:
    if isinstance(path, bytes):
        path = os.fsdecode(path)
    return os.path.basename(path)


class WatchdogEventSource(EventSource):
    """Watch one directory (non-recursively) for modified and created files."""

    def __init__(self, directory: str, polling: bool = False) -> None:
        if not os.path.isdir(directory):
            raise WatchInitError(f"cannot watch {directory}: not a directory")
        self.directory = directory
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._observer = PollingObserver() if polling else Observer()
        self._observer.daemon = True
        try:
            self._observer.schedule(_QueueingHandler(self._queue), directory, recursive=False)
            self._observer.start()
        except OSError as exc:
            raise WatchInitError(f"cannot watch {directory}: {exc}") from exc
        logger.debug("Watching directory {} with {}", directory, type(self._observer).__name__)

    def next(self) -> Union[FSEvent, _Closed]:
        if self._closed:
            return CLOSED
        item = self._queue.get()
        if item is CLOSED or self._closed:
            return CLOSED
        return item  # type: ignore[return-value]

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._queue.put(CLOSED)
        self._observer.stop()
        if self._observer.is_alive() and self._observer is not threading.current_thread():
            self._observer.join(timeout=5)
        logger.debug("Stopped watching {}", self.directory)


__all__ = [
    "EventKind",
    "FSEvent",
    "CLOSED",
    "EventSource",
    "WatchdogEventSource",
]
