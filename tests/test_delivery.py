from __future__ import annotations

import json

import httpx
import pytest

from tailhook.delivery.retry import RetryPolicy
from tailhook.delivery.webhook import WebhookClient
from tailhook.matching import MatchRecord


URL = "http://hooks.test/alert"
RECORD = MatchRecord(hostname="web-1", line="2024 ERROR disk full")


def make_client(responses, max_retries=3, delay=5.0, backoff=1.0):
    """Client whose transport replays ``responses`` (status codes or exceptions)."""
    requests, sleeps = [], []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        outcome = responses.pop(0) if responses else 200
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome)

    policy = RetryPolicy(max_retries=max_retries, delay=delay, backoff=backoff, sleep=sleeps.append)
    client = WebhookClient(URL, policy, client=httpx.Client(transport=httpx.MockTransport(handler)))
    return client, requests, sleeps


def test_posts_json_payload():
    client, requests, sleeps = make_client([200])
    assert client.deliver(RECORD) is True
    assert len(requests) == 1
    req = requests[0]
    assert req.method == "POST"
    assert str(req.url) == URL
    assert req.headers["content-type"] == "application/json"
    assert json.loads(req.content) == {"hostname": "web-1", "line": "2024 ERROR disk full"}
    assert sleeps == []


def test_server_errors_then_success():
    client, requests, sleeps = make_client([500, 500, 200], max_retries=3, delay=5.0)
    assert client.deliver(RECORD) is True
    assert len(requests) == 3
    assert sleeps == [5.0, 5.0]


def test_sustained_failure_gives_up_without_raising():
    client, requests, sleeps = make_client([503] * 10, max_retries=3, delay=1.5)
    assert client.deliver(RECORD) is False
    assert len(requests) == 4
    assert len(sleeps) == 3
    assert all(s >= 1.5 for s in sleeps)


def test_network_errors_are_retried():
    err = httpx.ConnectError("connection refused")
    client, requests, sleeps = make_client([err, err, 200], max_retries=2, delay=0.5)
    assert client.deliver(RECORD) is True
    assert len(requests) == 3
    assert sleeps == [0.5, 0.5]


def test_zero_retries_means_single_attempt():
    client, requests, sleeps = make_client([500], max_retries=0)
    assert client.deliver(RECORD) is False
    assert len(requests) == 1
    assert sleeps == []


def test_client_errors_are_not_retried():
    client, requests, sleeps = make_client([404, 200])
    assert client.deliver(RECORD) is True
    assert len(requests) == 1


def test_exponential_backoff_never_below_delay():
    client, requests, sleeps = make_client([500] * 4, max_retries=3, delay=1.0, backoff=2.0)
    client.deliver(RECORD)
    assert sleeps == [1.0, 2.0, 4.0]


def test_policy_validation():
    with pytest.raises(ValueError):
        RetryPolicy(max_retries=-1)
    with pytest.raises(ValueError):
        RetryPolicy(backoff=0.5)
    assert list(RetryPolicy(max_retries=2, delay=3.0).delays()) == [3.0, 3.0]
    assert RetryPolicy(max_retries=2).max_attempts == 3
