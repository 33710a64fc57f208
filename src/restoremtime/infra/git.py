from __future__ import annotations

"""
Git History Producer.

Wraps the external `git` binary. The history is exported oldest-first along
the first-parent chain only, so merge commits never reorder events: that
restriction is enforced here, before the parser ever sees a line.

Output is streamed line by line rather than buffered.
"""

import logging
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from typing import IO, Iterator, List

from restoremtime.domain.errors import ExternalToolError

logger = logging.getLogger(__name__)

DEFAULT_GIT = "git"

# -----------------------------------------------------------------------------
# COMMAND CONSTRUCTION
# -----------------------------------------------------------------------------

def build_log_command(
        git_binary: str = DEFAULT_GIT,
        ref: str = "HEAD",
        rename_limit: int = 10000,
        detect_renames: bool = True,
) -> List[str]:
    """
    Build the argv for the history export.

    Args:
        git_binary: Resolved path or name of the git executable.
        ref: Revision whose ancestry is exported.
        rename_limit: Upper bound for git's rename detection matrix.
        detect_renames: If False, renames surface as a delete plus an add.

    Returns:
        List[str]: Command line arguments.
    """
    cmd = [
        git_binary,
        "-c", f"diff.renameLimit={rename_limit}",
        "-c", "core.quotePath=false",
        "log",
        "--raw",
        "--first-parent",
        "--pretty=%at",
        "--reverse",
        "--no-abbrev",
        "--no-color",
    ]
    cmd.append("--find-renames" if detect_renames else "--no-renames")
    cmd.extend([ref, "--"])
    return cmd


def resolve_git(git_binary: str = DEFAULT_GIT) -> str:
    """
    Locate the git executable.

    Raises:
        ExternalToolError: If the binary cannot be found.
    """
    found = shutil.which(git_binary)
    if not found:
        raise ExternalToolError(f"failed to find git binary: {git_binary!r}")
    return found

# -----------------------------------------------------------------------------
# REPOSITORY QUERIES
# -----------------------------------------------------------------------------

def run_git(args: List[str], cwd: str, git_binary: str = DEFAULT_GIT) -> str:
    """
    Run a short git command and return its stripped stdout.

    Raises:
        ExternalToolError: If git is missing or exits non-zero.
    """
    cmd = [resolve_git(git_binary), *args]
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        completed = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True, check=False)
    except OSError as e:
        raise ExternalToolError(f"failed to run git: {e}") from e

    if completed.returncode != 0:
        stderr = completed.stderr.strip()
        raise ExternalToolError(
            f"git {' '.join(args)} failed ({completed.returncode}): {stderr or 'no output'}",
            returncode=completed.returncode,
            stderr=stderr,
        )
    return completed.stdout.strip()


def find_repo_root(path: str, git_binary: str = DEFAULT_GIT) -> str:
    """Return the top-level directory of the work tree containing `path`."""
    return run_git(["rev-parse", "--show-toplevel"], cwd=path, git_binary=git_binary)


def is_shallow(path: str, git_binary: str = DEFAULT_GIT) -> bool:
    """Whether the repository at `path` is a shallow clone."""
    return run_git(["rev-parse", "--is-shallow-repository"], cwd=path, git_binary=git_binary) == "true"

# -----------------------------------------------------------------------------
# HISTORY STREAM
# -----------------------------------------------------------------------------

@contextmanager
def open_history(
        repo_path: str,
        *,
        git_binary: str = DEFAULT_GIT,
        ref: str = "HEAD",
        rename_limit: int = 10000,
        detect_renames: bool = True,
) -> Iterator[IO[bytes]]:
    """
    Stream the first-parent raw history of `ref`, oldest commit first.

    Yields the process's stdout as a binary line iterator. When the block
    completes normally the exit status is checked; when it is left early
    (an error or cancellation downstream) the process is killed.

    Raises:
        ExternalToolError: If git is missing or the export fails.
    """
    cmd = build_log_command(resolve_git(git_binary), ref, rename_limit, detect_renames)
    logger.debug(f"Running: {' '.join(cmd)}")

    stderr_file = tempfile.TemporaryFile()
    try:
        proc = subprocess.Popen(cmd, cwd=repo_path, stdout=subprocess.PIPE, stderr=stderr_file)
    except OSError as e:
        stderr_file.close()
        raise ExternalToolError(f"failed to start git: {e}") from e

    completed = False
    try:
        yield proc.stdout
        completed = True
    finally:
        if not completed and proc.poll() is None:
            proc.kill()
        proc.stdout.close()
        returncode = proc.wait()
        stderr = _drain(stderr_file)

    if returncode != 0:
        raise ExternalToolError(
            f"git log failed ({returncode}): {stderr or 'no output'}",
            returncode=returncode,
            stderr=stderr,
        )

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _drain(stream: IO[bytes]) -> str:
    """Read and close a spooled stream, returning its decoded, stripped content."""
    with stream:
        stream.seek(0)
        return stream.read().decode("utf-8", errors="replace").strip()
