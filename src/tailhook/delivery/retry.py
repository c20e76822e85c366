"""Retry policy for webhook delivery."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Iterator


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retries with fixed or exponential spacing.

    ``max_retries`` counts additional attempts after the first one. The wait
    before retry ``n`` (1-based) is ``delay * backoff ** (n - 1)``, so with
    ``backoff >= 1`` consecutive attempts are never closer than ``delay``.
    """

    max_retries: int = 3
    delay: float = 5.0
    backoff: float = 1.0
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")
        if self.backoff < 1:
            raise ValueError("backoff must be >= 1")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, retry: int) -> float:
        return self.delay * self.backoff ** (retry - 1)

    def delays(self) -> Iterator[float]:
        for retry in range(1, self.max_retries + 1):
            yield self.delay_for(retry)


__all__ = ["RetryPolicy"]
