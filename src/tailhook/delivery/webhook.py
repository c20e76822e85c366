"""
Webhook delivery of match records.

Each record is posted as ``{"hostname": ..., "line": ...}``. Network errors
and 5xx responses are retried according to a ``RetryPolicy``; anything else
counts as delivered. Failures are logged and never raised to the caller.
"""

from __future__ import annotations

from typing import Optional

import httpx

from ..matching import MatchRecord
from ..utils.logger import logger
from .retry import RetryPolicy


HEADERS = {"Content-Type": "application/json"}


def is_retryable_status(status_code: int) -> bool:
    return 500 <= status_code <= 599


class WebhookClient:
    def __init__(
        self,
        url: str,
        policy: Optional[RetryPolicy] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.url = url
        self.policy = policy or RetryPolicy()
        self._client = client or httpx.Client()
        self._owns_client = client is None

    def _attempt(self, record: MatchRecord) -> Optional[str]:
        """POST once. Returns a failure reason when the attempt should be retried."""
        try:
            resp = self._client.post(self.url, json=record.to_payload(), headers=HEADERS)
        except httpx.HTTPError as exc:
            return f"{type(exc).__name__}: {exc}"
        if is_retryable_status(resp.status_code):
            return f"HTTP {resp.status_code}"
        if resp.status_code >= 400:
            logger.warning("Webhook {} rejected match with HTTP {}, not retrying", self.url, resp.status_code)
        return None

    def deliver(self, record: MatchRecord) -> bool:
        """Send ``record``, retrying transient failures. Returns whether it was delivered."""
        delays = self.policy.delays()
        attempt = 1
        while True:
            reason = self._attempt(record)
            if reason is None:
                logger.debug("Delivered match to {} on attempt {}", self.url, attempt)
                return True
            wait = next(delays, None)
            if wait is None:
                logger.error(
                    "Webhook delivery to {} failed after {} attempt(s): {} (line: {!r})",
                    self.url,
                    attempt,
                    reason,
                    record.line,
                )
                return False
            logger.warning(
                "Webhook attempt {}/{} to {} failed: {}; retrying in {:.2f}s",
                attempt,
                self.policy.max_attempts,
                self.url,
                reason,
                wait,
            )
            self.policy.sleep(wait)
            attempt += 1

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "WebhookClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = ["WebhookClient", "is_retryable_status", "HEADERS"]
