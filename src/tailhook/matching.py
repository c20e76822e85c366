"""Pattern matching of assembled lines."""

from __future__ import annotations

import re
import socket
from dataclasses import asdict, dataclass
from typing import Dict, Optional, Union

from .errors import ConfigError


@dataclass(frozen=True)
class MatchRecord:
    """A matched line together with the host it was seen on."""

    hostname: str
    line: str

    def to_payload(self) -> Dict[str, str]:
        return asdict(self)


def compile_pattern(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"invalid pattern {pattern!r}: {exc}") from exc


class Matcher:
    """Unanchored regular-expression search over single lines."""

    def __init__(self, pattern: Union[str, re.Pattern], hostname: Optional[str] = None) -> None:
        self.pattern = compile_pattern(pattern) if isinstance(pattern, str) else pattern
        self.hostname = hostname if hostname is not None else socket.gethostname()

    def matches(self, line: str) -> bool:
        return self.pattern.search(line) is not None

    def match(self, line: str) -> Optional[MatchRecord]:
        if self.matches(line):
            return MatchRecord(hostname=self.hostname, line=line)
        return None


__all__ = ["MatchRecord", "Matcher", "compile_pattern"]
