from __future__ import annotations

"""
Unit tests for the History Log Stream Parser.

Verifies:
1. Ordering of emitted events and timestamp attribution.
2. Skipping of blank lines, bytes and text input.
3. FormatError on unrecognised lines, with no callback for them.
4. Immediate propagation of callback failures.
5. Cancellation checks.
"""

import threading
from typing import List, Tuple

import pytest

from restoremtime.core.log.parser import iter_log, parse_log
from restoremtime.domain.change_models import Action, Change
from restoremtime.domain.errors import CancelledError, FormatError


def collect(lines) -> List[Tuple[int, Change]]:
    seen: List[Tuple[int, Change]] = []
    parse_log(lines, lambda t, ch: seen.append((t, ch)))
    return seen


def test_events_follow_stream_order() -> None:
    stream = "100\n:100644 100644 aaa bbb A\tfile1\n200\n:100644 100644 bbb ccc M\tfile1\n"

    seen = collect(stream.splitlines(keepends=True))

    assert seen == [
        (100, Change(Action.ADD, "file1")),
        (200, Change(Action.MODIFY, "file1")),
    ]


def test_sample_stream(sample_log_lines: List[bytes]) -> None:
    events = list(iter_log(sample_log_lines))

    assert [t for t, _ in events] == [100, 100, 200, 200, 300]
    assert events[3][1] == Change(Action.RENAME, "docs/README.md", "README")


def test_parse_log_returns_event_count(sample_log_lines: List[bytes]) -> None:
    assert parse_log(sample_log_lines, lambda t, ch: None) == 5


def test_blank_and_crlf_lines_are_skipped() -> None:
    lines = [b"\n", b"42\r\n", b"\r\n", b":100644 100644 a b A\tx\r\n"]
    assert list(iter_log(lines)) == [(42, Change(Action.ADD, "x"))]


def test_unknown_action_stops_before_callback() -> None:
    lines = [
        "100",
        ":100644 100644 aaa bbb A\tok",
        ":100644 100644 aaa bbb Z\tfile1",
        ":100644 100644 aaa bbb A\tnever",
    ]
    seen = []

    with pytest.raises(FormatError) as exc:
        parse_log(lines, lambda t, ch: seen.append(ch.to))

    assert exc.value.line == ":100644 100644 aaa bbb Z\tfile1"
    assert seen == ["ok"]


@pytest.mark.parametrize("line", ["not a timestamp", "12a", "-5", "commit abc"])
def test_unrecognised_line_shape(line: str) -> None:
    with pytest.raises(FormatError) as exc:
        list(iter_log(["100", line]))
    assert repr(line) in str(exc.value)


def test_change_before_any_timestamp_is_rejected() -> None:
    with pytest.raises(FormatError):
        list(iter_log([":100644 100644 aaa bbb A\tfile"]))


def test_callback_failure_propagates_immediately() -> None:
    calls = []

    def boom(t: int, ch: Change) -> None:
        calls.append(ch)
        raise RuntimeError("stop")

    with pytest.raises(RuntimeError, match="stop"):
        parse_log(["1", ":1 2 3 4 A\ta", ":1 2 3 4 A\tb"], boom)

    assert len(calls) == 1


def test_cancellation_is_checked_per_line() -> None:
    cancel = threading.Event()
    events = iter_log(["1", ":1 2 3 4 A\ta", ":1 2 3 4 A\tb"], cancel)

    assert next(events)[1].to == "a"
    cancel.set()
    with pytest.raises(CancelledError):
        next(events)


def test_cancelled_before_start_emits_nothing() -> None:
    cancel = threading.Event()
    cancel.set()
    seen = []
    with pytest.raises(CancelledError):
        parse_log(["1", ":1 2 3 4 A\ta"], lambda t, ch: seen.append(ch), cancel)
    assert seen == []


def test_non_utf8_bytes_survive_as_surrogates() -> None:
    events = list(iter_log([b"1\n", b":1 2 3 4 A\tna\xefve\n"]))
    path = events[0][1].to
    assert path.encode("utf-8", errors="surrogateescape") == b"na\xefve"
