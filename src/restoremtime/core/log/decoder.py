from __future__ import annotations

"""
Raw Change Line Decoder.

Turns one line of `git log --raw` output into a typed Change record.

Line shape:

    :<mode> <mode> <sha> <sha> <status>\t<path>
    :<mode> <mode> <sha> <sha> R<score>\t<from>\t<to>

Paths that git had to C-quote are unquoted back to their raw form.
"""

import logging
from typing import List

from restoremtime.domain.change_models import Action, Change
from restoremtime.domain.errors import FormatError

logger = logging.getLogger(__name__)

METADATA_FIELDS = 5

_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
}

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def decode_raw_line(line: str) -> Change:
    """
    Decode a raw change line.

    Args:
        line: A line starting with ':' without its trailing newline.

    Returns:
        Change: The decoded change.

    Raises:
        FormatError: If the metadata prefix is not exactly five fields, the
            action code is unrecognised, or the number of path fields does
            not fit the action.
    """
    parts = line.split("\t")
    metadata = parts[0][1:].split(" ") if parts[0].startswith(":") else []
    if len(metadata) != METADATA_FIELDS:
        raise FormatError(f"unhandled line format: {line!r}", line)

    action = parse_action(metadata[4], line)
    paths = [unquote_path(p, line) for p in parts[1:]]

    if len(paths) == 1 and action is not Action.RENAME:
        return Change(action=action, to=paths[0])
    if len(paths) == 2 and action is Action.RENAME:
        return Change(action=action, to=paths[1], from_=paths[0])

    raise FormatError(
        f"unhandled line format: {len(paths)} path field(s) for {action.name}: {line!r}",
        line,
    )


def parse_action(code: str, line: str = "") -> Action:
    """
    Map a status code to an Action.

    Renames carry a similarity score suffix (e.g. 'R087') which is ignored.
    """
    if code == "A":
        return Action.ADD
    if code == "D":
        return Action.DELETE
    if code == "M":
        return Action.MODIFY
    if code.startswith("R"):
        return Action.RENAME
    raise FormatError(f"unrecognised action {code!r} in line {line!r}", line)


def unquote_path(path: str, line: str = "") -> str:
    """
    Undo git's C-style quoting of a path.

    Unquoted paths are returned unchanged. Octal escapes denote raw bytes and
    are decoded as UTF-8 with surrogateescape so undecodable names survive.
    """
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path

    body = path[1:-1]
    chunks: List[str] = []
    pending = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\":
            _flush_bytes(pending, chunks)
            chunks.append(ch)
            i += 1
            continue

        nxt = body[i + 1: i + 2]
        if nxt in _ESCAPES:
            _flush_bytes(pending, chunks)
            chunks.append(_ESCAPES[nxt])
            i += 2
        elif len(body[i + 1: i + 4]) == 3 and all(c in "01234567" for c in body[i + 1: i + 4]):
            pending.append(int(body[i + 1: i + 4], 8) & 0xFF)
            i += 4
        else:
            raise FormatError(f"invalid escape in quoted path {path!r}: {line!r}", line)

    _flush_bytes(pending, chunks)
    return "".join(chunks)

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _flush_bytes(pending: bytearray, chunks: List[str]) -> None:
    """Decode accumulated octal-escaped bytes into a text chunk."""
    if pending:
        chunks.append(pending.decode("utf-8", errors="surrogateescape"))
        pending.clear()
