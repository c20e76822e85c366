from __future__ import annotations

import re

import pytest

from tailhook.errors import ConfigError
from tailhook.matching import Matcher, MatchRecord, compile_pattern


def test_search_is_unanchored():
    m = Matcher("ERROR", hostname="h")
    assert m.matches("2024 ERROR disk full")
    assert not m.matches("no match here")


def test_anchors_in_pattern_are_honoured():
    m = Matcher(re.compile(r"^ERROR"), hostname="h")
    assert m.matches("ERROR at start")
    assert not m.matches("late ERROR")


def test_matches_is_pure():
    m = Matcher(r"fail(ed|ure)", hostname="h")
    results = {m.matches("login failed for bob") for _ in range(50)}
    assert results == {True}


def test_match_builds_record():
    m = Matcher("ERROR", hostname="web-1")
    assert m.match("x ERROR y") == MatchRecord(hostname="web-1", line="x ERROR y")
    assert m.match("ok") is None
    assert MatchRecord("web-1", "l").to_payload() == {"hostname": "web-1", "line": "l"}


def test_hostname_defaults_to_machine_name(monkeypatch):
    monkeypatch.setattr("socket.gethostname", lambda: "box")
    assert Matcher("x").hostname == "box"


def test_invalid_pattern():
    with pytest.raises(ConfigError):
        compile_pattern("([unclosed")
