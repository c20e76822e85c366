"""
Main event loop: filesystem events in, webhook posts out.

All file reads, line assembly, matching and delivery happen sequentially on
the thread calling ``Orchestrator.run``. The only other actor is the signal
listener, which closes the event source to wake the blocked loop.
"""

from __future__ import annotations

import enum
import signal
import threading
from typing import Callable, Iterable, Optional

from .delivery.webhook import WebhookClient
from .errors import LineTooLongError, ReadError
from .ingestion.event_source import CLOSED, EventKind, EventSource, FSEvent
from .ingestion.line_assembler import LineAssembler
from .ingestion.tail_cursor import TailCursor
from .matching import Matcher
from .utils.logger import logger


class State(enum.Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"


class SignalSubscription:
    """Route SIGINT/SIGTERM to a cancel callback run on a listener thread.

    The handler itself only sets an event, so it never contends for locks
    the interrupted main thread may hold. Previous handlers are restored on
    ``close()``.
    """

    def __init__(
        self,
        on_signal: Callable[[], None],
        signals: Iterable[int] = (signal.SIGINT, signal.SIGTERM),
    ) -> None:
        self._on_signal = on_signal
        self._signals = tuple(signals)
        self._fired = threading.Event()
        self._signum: Optional[int] = None
        self._stopped = False
        self._previous: dict = {}
        self._listener = threading.Thread(target=self._listen, name="tailhook-signals", daemon=True)

    def _handle(self, signum, frame) -> None:
        self._signum = signum
        self._fired.set()

    def _listen(self) -> None:
        self._fired.wait()
        if not self._stopped:
            logger.info("Received {}, shutting down", signal.Signals(self._signum).name)
            self._on_signal()

    def start(self) -> "SignalSubscription":
        for sig in self._signals:
            self._previous[sig] = signal.signal(sig, self._handle)
        self._listener.start()
        return self

    def close(self) -> None:
        for sig, handler in self._previous.items():
            signal.signal(sig, handler)
        self._previous.clear()
        self._stopped = not self._fired.is_set()
        self._fired.set()

    def __enter__(self) -> "SignalSubscription":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.close()


class Orchestrator:
    def __init__(
        self,
        file_name: str,
        events: EventSource,
        cursor: TailCursor,
        matcher: Matcher,
        client: WebhookClient,
        assembler: Optional[LineAssembler] = None,
    ) -> None:
        self.file_name = file_name
        self.events = events
        self.cursor = cursor
        self.matcher = matcher
        self.client = client
        self.assembler = assembler or LineAssembler()
        self.state = State.RUNNING

    def shutdown(self) -> None:
        """Request a clean stop. Safe to call from any thread."""
        if self.state is State.RUNNING:
            self.state = State.SHUTTING_DOWN
        self.events.close()

    def run(self) -> None:
        try:
            while self.state is State.RUNNING:
                event = self.events.next()
                if event is CLOSED:
                    break
                self.handle(event)  # type: ignore[arg-type]
        finally:
            self.events.close()
            self.cursor.close()
            self.state = State.TERMINATED
            logger.info("Stopped watching {}", self.cursor.path)

    def handle(self, event: FSEvent) -> None:
        if event.name != self.file_name:
            return
        if event.kind is EventKind.MODIFY:
            self._on_modify()
        elif event.kind is EventKind.CREATE:
            self._on_create()

    def _on_modify(self) -> None:
        if not self.cursor.is_open:
            # reopen failed during rotation
            self.cursor.reopen()
            return
        while self.state is State.RUNNING:
            rewinds = self.cursor.truncations
            try:
                chunk = self.cursor.read_new_bytes()
            except ReadError as exc:
                logger.warning("Read error on {}: {}", self.cursor.path, exc)
                return
            if self.cursor.truncations != rewinds:
                # leftover partial line belongs to the old contents
                self.assembler.reset()
            if not chunk:
                return
            self._process(chunk)

    def _process(self, chunk: bytes) -> None:
        pending = chunk
        while True:
            try:
                for line in self.assembler.feed(pending):
                    record = self.matcher.match(line)
                    if record is not None:
                        self.client.deliver(record)
                return
            except LineTooLongError as exc:
                logger.warning("Skipping over-long line in {}: {}", self.cursor.path, exc)
                pending = b""

    def _on_create(self) -> None:
        self.assembler.reset()
        self.cursor.rotate()


__all__ = ["Orchestrator", "State", "SignalSubscription"]
