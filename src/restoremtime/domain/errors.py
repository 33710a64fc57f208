from __future__ import annotations

"""
Error Taxonomy.

Every failure raised by the restore workflow derives from RestoreMtimeError.
None of them are retried: a single misapplied history event desynchronizes
every path resolved after it, so the run is aborted as a whole.
"""

from typing import Optional


class RestoreMtimeError(Exception):
    """Base class for all restore-mtime failures."""


# -----------------------------------------------------------------------------
# HISTORY DECODING
# -----------------------------------------------------------------------------

class FormatError(RestoreMtimeError):
    """
    A history line could not be decoded.

    Attributes:
        line: The offending raw line, verbatim.
    """

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class CancelledError(RestoreMtimeError):
    """The cancellation signal was observed while reading history."""


# -----------------------------------------------------------------------------
# VIRTUAL TREE
# -----------------------------------------------------------------------------

class TreeError(RestoreMtimeError):
    """
    A tree operation could not be applied.

    Attributes:
        path: The path the failing operation targeted.
    """

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class NotFoundError(TreeError):
    """The event references a path absent from the current tree."""


class AlreadyExistsError(TreeError):
    """A create targets a path that already exists."""


class NotDirectoryError(TreeError):
    """A path segment expected to be a directory is a file."""


class InvalidPathError(TreeError):
    """The path is empty, absolute, or holds empty or relative segments."""


# -----------------------------------------------------------------------------
# EXTERNAL COLLABORATORS
# -----------------------------------------------------------------------------

class ExternalToolError(RestoreMtimeError):
    """
    The history-producing process is missing or failed.

    Attributes:
        returncode: Exit status of the process, if it ran at all.
        stderr: Diagnostic output captured from the process.
    """

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class SinkError(RestoreMtimeError):
    """
    The real filesystem rejected a timestamp write.

    Attributes:
        path: Filesystem path whose timestamps could not be set.
    """

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path
