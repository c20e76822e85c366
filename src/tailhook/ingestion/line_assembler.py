"""
Reassemble complete lines from arbitrarily split byte chunks.
"""

from __future__ import annotations

from typing import Iterator

from ..errors import LineTooLongError


MAX_LINE_SIZE = 1024 * 1024


class LineAssembler:
    """Buffer raw bytes and hand out newline-terminated lines in order.

    Bytes after the last terminator are carried over to the next ``feed``.
    When the carried-over line grows past ``max_line_size`` it is dropped,
    the remainder of that line (up to its terminator) is skipped, and the
    iterator raises ``LineTooLongError``. Calling ``feed(b"")`` afterwards
    resumes with whatever complete lines are still buffered.
    """

    def __init__(self, max_line_size: int = MAX_LINE_SIZE, encoding: str = "utf-8") -> None:
        self.max_line_size = max_line_size
        self.encoding = encoding
        self._buf = bytearray()
        self._discarding = False

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet forming a complete line."""
        return len(self._buf)

    def feed(self, data: bytes) -> Iterator[str]:
        self._buf += data
        return self._lines()

    def _lines(self) -> Iterator[str]:
        while True:
            idx = self._buf.find(b"\n")
            if idx == -1:
                if self._discarding:
                    self._buf.clear()
                elif len(self._buf) > self.max_line_size:
                    size = len(self._buf)
                    self._buf.clear()
                    self._discarding = True
                    raise LineTooLongError(size, self.max_line_size)
                return
            raw = bytes(self._buf[:idx])
            del self._buf[: idx + 1]
            if self._discarding:
                self._discarding = False
                continue
            if len(raw) > self.max_line_size:
                raise LineTooLongError(len(raw), self.max_line_size)
            if raw.endswith(b"\r"):
                raw = raw[:-1]
            yield raw.decode(self.encoding, errors="replace")

    def reset(self) -> None:
        """Drop any carried-over partial line."""
        self._buf.clear()
        self._discarding = False


__all__ = ["LineAssembler", "MAX_LINE_SIZE"]
