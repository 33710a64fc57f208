from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Provides path resolution helpers and the apply sink that writes resolved
modification times onto real files. The sink never creates or deletes
entries: every path it is given must already exist on disk.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from restoremtime.domain.errors import SinkError

if TYPE_CHECKING:
    from restoremtime.core.tree.vtree import VirtualTree

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# GLOBAL CONSTANTS
# -----------------------------------------------------------------------------

APP_DIR_NAME = "RestoreMtime"
UNIX_APP_DIR_NAME = ".restoremtime"

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def get_user_data_dir() -> str:
    """
    Resolve the standard OS-specific directory for persistent application data.

    Standards:
    - Windows: %LOCALAPPDATA%/RestoreMtime
    - Linux/Mac: ~/.restoremtime

    Returns:
        str: Absolute path to the application data directory.
    """
    path = ""

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if base:
            path = os.path.join(base, APP_DIR_NAME)

    if not path:
        path = os.path.join(os.path.expanduser("~"), UNIX_APP_DIR_NAME)

    return os.path.abspath(path)


def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Normalize a directory path string into an absolute filesystem path.

    Handles environment variable expansion and user home shortcuts. Reverts
    to fallback if the input is empty.

    Args:
        path: Raw input path string.
        fallback: Default path to use when the input is empty.

    Returns:
        str: Normalized absolute path.
    """
    p = (path or "").strip()
    if not p:
        p = fallback
    return os.path.abspath(os.path.expandvars(os.path.expanduser(p)))


def to_fs_path(root: str, tree_path: str) -> str:
    """Join a '/'-separated repository path onto a host filesystem root."""
    return os.path.join(root, *tree_path.split("/"))

# -----------------------------------------------------------------------------
# APPLY SINK
# -----------------------------------------------------------------------------

def set_mtime(path: str, mtime: int, atime: float) -> None:
    """
    Set one entry's access and modification times.

    Symbolic links get their own times set rather than their target's,
    where the platform supports it.

    Raises:
        SinkError: If the filesystem rejects the write.
    """
    follow = os.utime not in os.supports_follow_symlinks
    try:
        os.utime(path, (atime, mtime), follow_symlinks=follow)
    except OSError as e:
        raise SinkError(f"failed to set mtime on {path!r}: {e}", path) from e


def apply_mtimes(
        tree: "VirtualTree",
        root: str,
        *,
        workers: int = 1,
        dry_run: bool = False,
) -> int:
    """
    Write every resolved modification time from the tree to disk.

    Access times are set to the moment the apply phase starts. Paths are
    disjoint, so writes may run in parallel; the first failure aborts.

    Args:
        tree: The final, frozen tree.
        root: Filesystem directory the tree paths are relative to.
        workers: Number of parallel writer threads.
        dry_run: Count the paths without writing anything.

    Returns:
        int: Number of paths updated (or that would be updated).

    Raises:
        SinkError: On the first rejected write.
    """
    entries = [(to_fs_path(root, path), node.mtime) for node, path in tree.iter_nodes()]

    if dry_run:
        logger.info(f"Dry run: {len(entries)} paths would be updated.")
        return len(entries)

    atime = time.time()
    if workers <= 1:
        for path, mtime in entries:
            set_mtime(path, mtime, atime)
    else:
        _apply_parallel(entries, atime, workers)

    logger.debug(f"Timestamps written under {root}")
    return len(entries)

# -----------------------------------------------------------------------------
# PRIVATE HELPERS
# -----------------------------------------------------------------------------

def _apply_parallel(entries: Iterable[Tuple[str, int]], atime: float, workers: int) -> None:
    """Fan timestamp writes out over a thread pool, re-raising the first failure."""
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="restoremtime-sink") as pool:
        futures = [pool.submit(set_mtime, path, mtime, atime) for path, mtime in entries]
        try:
            for future in futures:
                future.result()
        except SinkError:
            for future in futures:
                future.cancel()
            raise
