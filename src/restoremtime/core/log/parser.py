from __future__ import annotations

"""
History Log Stream Parser.

Consumes the output of `git log --raw --pretty=%at --reverse` line by line.
Timestamp lines set the current time; change lines are decoded and paired
with the latest timestamp seen before them; blank lines are separators.

Two equivalent surfaces are offered: a lazy generator (`iter_log`) for
pull-style consumption, and a callback driver (`parse_log`).
"""

import logging
import threading
from typing import Callable, Iterable, Iterator, Optional, Tuple, Union

from restoremtime.core.log.decoder import decode_raw_line
from restoremtime.domain.change_models import Change
from restoremtime.domain.errors import CancelledError, FormatError

logger = logging.getLogger(__name__)

RawLine = Union[bytes, str]
TimedChange = Tuple[int, Change]

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def iter_log(
        lines: Iterable[RawLine],
        cancel: Optional[threading.Event] = None,
) -> Iterator[TimedChange]:
    """
    Lazily decode a history stream into ordered (timestamp, change) pairs.

    The generator is finite and cannot be restarted. It stops at the first
    malformed line by raising, so nothing after a bad line is ever yielded.

    Args:
        lines: Raw lines, bytes or text, with or without line terminators.
        cancel: Optional signal checked once per line.

    Yields:
        Tuple[int, Change]: Seconds since the epoch and the decoded change.

    Raises:
        FormatError: On any line that is neither blank, a timestamp, nor a
            change line, and on a change line preceding every timestamp.
        CancelledError: If the cancellation signal is set.
    """
    current: Optional[int] = None
    markers = 0
    events = 0

    for raw in lines:
        if cancel is not None and cancel.is_set():
            logger.debug(f"Cancellation observed after {events} events.")
            raise CancelledError("history parsing cancelled")

        line = _to_text(raw).rstrip("\r\n")
        if not line:
            continue

        if line.startswith(":"):
            change = decode_raw_line(line)
            if current is None:
                raise FormatError(f"change line precedes any timestamp: {line!r}", line)
            events += 1
            yield current, change
        elif line.isascii() and line.isdigit():
            current = int(line)
            markers += 1
        else:
            raise FormatError(f"unrecognised line, expected timestamp, received {line!r}", line)

    logger.debug(f"History stream exhausted: {markers} commits, {events} events.")


def parse_log(
        lines: Iterable[RawLine],
        callback: Callable[[int, Change], None],
        cancel: Optional[threading.Event] = None,
) -> int:
    """
    Decode a history stream, handing each event to a callback in order.

    A failure raised by the callback propagates immediately and ends parsing.

    Args:
        lines: Raw lines, bytes or text.
        callback: Invoked as callback(timestamp, change) for every event.
        cancel: Optional signal checked once per line.

    Returns:
        int: Number of events delivered.
    """
    count = 0
    events = iter_log(lines, cancel)
    try:
        for timestamp, change in events:
            callback(timestamp, change)
            count += 1
    finally:
        events.close()
    return count

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _to_text(raw: RawLine) -> str:
    """Decode a raw line, keeping undecodable bytes as surrogates."""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="surrogateescape")
    return raw
