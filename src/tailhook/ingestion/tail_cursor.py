"""
Read position tracking for the tailed file.

The cursor owns at most one open binary handle. It starts at end-of-file so
historical content is never replayed, and ``rotate()`` swaps the handle for
a fresh one on the same path after a short grace interval.
"""

from __future__ import annotations

import io
import os
import time
from typing import Callable, Optional

from ..errors import OpenError, ReadError
from ..utils.logger import logger


CHUNK_SIZE = 64 * 1024
ROTATION_GRACE = 0.1


class TailCursor:
    def __init__(
        self,
        path: str,
        chunk_size: int = CHUNK_SIZE,
        grace: float = ROTATION_GRACE,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.path = path
        self.chunk_size = chunk_size
        self.grace = grace
        self._sleep = sleep
        self._fh: Optional[io.BufferedReader] = None
        self.truncations = 0

    @classmethod
    def open(cls, path: str, **kwargs) -> "TailCursor":
        """Open ``path`` positioned at its current end, raising ``OpenError`` on failure."""
        cursor = cls(path, **kwargs)
        cursor._fh = cursor._open_at_end()
        return cursor

    @property
    def is_open(self) -> bool:
        return self._fh is not None

    @property
    def position(self) -> int:
        return self._fh.tell() if self._fh is not None else 0

    def _open_at_end(self) -> io.BufferedReader:
        try:
            fh = open(self.path, "rb")
        except OSError as exc:
            raise OpenError(f"cannot open {self.path}: {exc}") from exc
        fh.seek(0, os.SEEK_END)
        logger.debug("Opened {} at offset {}", self.path, fh.tell())
        return fh  # type: ignore[return-value]

    def read_new_bytes(self) -> bytes:
        """Return up to ``chunk_size`` bytes appended since the last read.

        Returns ``b""`` when nothing is new or no handle is open. A file that
        shrank below the current offset was truncated in place and is read
        again from the beginning, and ``truncations`` is incremented.
        """
        if self._fh is None:
            return b""
        try:
            size = os.fstat(self._fh.fileno()).st_size
            if size < self._fh.tell():
                logger.info("File truncated: {} (size {} < offset {}), rewinding", self.path, size, self._fh.tell())
                self._fh.seek(0)
                self.truncations += 1
            return self._fh.read(self.chunk_size) or b""
        except OSError as exc:
            raise ReadError(f"cannot read {self.path}: {exc}") from exc

    def reopen(self) -> bool:
        """Try to open the path again at its end. Returns whether a handle is now open."""
        self.close()
        try:
            self._fh = self._open_at_end()
        except OpenError as exc:
            logger.warning("Reopen of {} failed: {}", self.path, exc)
            return False
        return True

    def rotate(self) -> bool:
        """Close the current handle, wait for the writer, and reopen by path.

        Bytes written to the old file after this point are not read. If the
        replacement is not there yet the cursor stays closed; a later event
        will retry.
        """
        self.close()
        self._sleep(self.grace)
        reopened = self.reopen()
        if reopened:
            logger.info("Rotation detected, reopened {}", self.path)
        return reopened

    def close(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            finally:
                self._fh = None

    def __enter__(self) -> "TailCursor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = ["TailCursor", "CHUNK_SIZE", "ROTATION_GRACE"]
