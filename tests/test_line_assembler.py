from __future__ import annotations

import pytest

from tailhook.errors import LineTooLongError
from tailhook.ingestion.line_assembler import LineAssembler


def collect(asm: LineAssembler, chunks):
    """Feed chunks, continuing past over-long lines; returns (lines, error_count)."""
    lines, errors = [], 0
    for chunk in chunks:
        pending = chunk
        while True:
            try:
                lines.extend(asm.feed(pending))
                break
            except LineTooLongError:
                errors += 1
                pending = b""
    return lines, errors


def split_every(data: bytes, size: int):
    return [data[i : i + size] for i in range(0, len(data), size)]


def test_complete_lines_and_carry_over():
    asm = LineAssembler()
    assert list(asm.feed(b"first\nsec")) == ["first"]
    assert asm.pending == 3
    assert list(asm.feed(b"ond\nthird")) == ["second"]
    assert list(asm.feed(b"")) == []
    assert list(asm.feed(b"\n")) == ["third"]
    assert asm.pending == 0


def test_strips_carriage_return_and_keeps_empty_lines():
    asm = LineAssembler()
    assert list(asm.feed(b"a\r\n\nb\n")) == ["a", "", "b"]


def test_invalid_utf8_is_replaced():
    asm = LineAssembler()
    assert list(asm.feed(b"bad \xff byte\n")) == ["bad � byte"]


def test_multibyte_character_split_across_chunks():
    data = "température élevée\n".encode("utf-8")
    lines, _ = collect(LineAssembler(), split_every(data, 1))
    assert lines == ["température élevée"]


def test_chunking_does_not_change_output():
    data = b"2024 ERROR disk full\nno match here\r\n\nlast line\ntrailing"
    expected, _ = collect(LineAssembler(), [data])
    assert expected == ["2024 ERROR disk full", "no match here", "", "last line"]
    for size in range(1, len(data) + 1):
        assert collect(LineAssembler(), split_every(data, size))[0] == expected
    for cut in range(len(data) + 1):
        assert collect(LineAssembler(), [data[:cut], data[cut:]])[0] == expected


def test_over_long_line_is_dropped_without_corrupting_next():
    data = b"short\n" + b"x" * 20 + b"\nafter\n"
    whole = collect(LineAssembler(max_line_size=8), [data])
    assert whole == (["short", "after"], 1)
    for size in range(1, 12):
        assert collect(LineAssembler(max_line_size=8), split_every(data, size)) == whole


def test_over_long_partial_raises_before_terminator():
    asm = LineAssembler(max_line_size=4)
    with pytest.raises(LineTooLongError) as info:
        list(asm.feed(b"abcdefgh"))
    assert info.value.limit == 4
    assert asm.pending == 0
    # rest of the dropped line is skipped up to its terminator
    assert list(asm.feed(b"ij\nok\n")) == ["ok"]


def test_lines_after_over_long_line_in_same_chunk_are_kept():
    asm = LineAssembler(max_line_size=4)
    it = asm.feed(b"toolongline\nfine\n")
    with pytest.raises(LineTooLongError):
        list(it)
    assert list(asm.feed(b"")) == ["fine"]


def test_reset_drops_partial_line():
    asm = LineAssembler()
    list(asm.feed(b"half"))
    asm.reset()
    assert list(asm.feed(b" line\n")) == [" line"]
