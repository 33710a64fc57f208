from __future__ import annotations

"""
In-Memory Virtual Tree.

A small filesystem model for history replay:
- it stores no file content, only names and modification times;
- every operation is given its timestamp up front;
- missing directories are created when a file is created beneath them;
- empty directories cannot exist, mirroring git, which tracks files only.

Directory times are never set directly. They are derived from the file
events below them, so a directory ends up with the time of the most recent
event that touched anything it contains.

The tree holds no parent pointers. Operations that must walk back upwards
collect the ancestors while descending and iterate that list in reverse.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from restoremtime.domain.errors import (
    AlreadyExistsError,
    InvalidPathError,
    NotDirectoryError,
    NotFoundError,
    TreeError,
)

logger = logging.getLogger(__name__)

SEPARATOR = "/"

# -----------------------------------------------------------------------------
# STRUCTURAL COMPONENTS
# -----------------------------------------------------------------------------

@dataclass
class Node:
    """
    A file or directory entry.

    Attributes:
        name: Entry name within its parent (empty for the root).
        mtime: Seconds since the epoch.
        children: Entries by name; None for files.
    """
    name: str
    mtime: int = 0
    children: Optional[Dict[str, "Node"]] = None

    @property
    def is_dir(self) -> bool:
        return self.children is not None

    @classmethod
    def directory(cls, name: str, mtime: int = 0) -> "Node":
        return cls(name=name, mtime=mtime, children={})

    @classmethod
    def file(cls, name: str, mtime: int) -> "Node":
        return cls(name=name, mtime=mtime)

# -----------------------------------------------------------------------------
# TREE
# -----------------------------------------------------------------------------

class VirtualTree:
    """
    Mutable tree of Nodes under an always-present, unnamed root directory.

    A tree has a single owner for its lifetime and performs no locking.
    """

    def __init__(self) -> None:
        self.root = Node.directory("")
        self._size = 0

    def __len__(self) -> int:
        """Number of nodes, excluding the root."""
        return self._size

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create(self, path: str, mtime: int) -> Node:
        """
        Create a file, creating any missing ancestor directories.

        Every ancestor up to the root, new or existing, takes `mtime`.

        Raises:
            AlreadyExistsError: If the final segment already exists.
            NotDirectoryError: If an existing ancestor segment is a file.
        """
        *dir_parts, name = split_path(path)

        ancestors = [self.root]
        for depth, part in enumerate(dir_parts):
            parent = ancestors[-1]
            node = parent.children.get(part)
            if node is None:
                node = Node.directory(part, mtime)
                parent.children[part] = node
                self._size += 1
            elif not node.is_dir:
                raise NotDirectoryError(
                    f"cannot create {path!r}: {join_path(dir_parts[:depth + 1])!r} is not a directory",
                    path,
                )
            ancestors.append(node)

        parent = ancestors[-1]
        if name in parent.children:
            raise AlreadyExistsError(f"cannot create {path!r}: path already exists", path)

        leaf = Node.file(name, mtime)
        parent.children[name] = leaf
        self._size += 1

        for ancestor in ancestors:
            ancestor.mtime = mtime
        return leaf

    def touch(self, path: str, mtime: int) -> Node:
        """
        Set the modification time of an existing node. Ancestors are untouched.

        Raises:
            NotFoundError: If nothing exists at `path`.
        """
        node = self.get(path)
        node.mtime = mtime
        return node

    def remove(self, path: str, mtime: int) -> None:
        """
        Delete a file and prune every ancestor directory left empty.

        The immediate parent takes `mtime`; each pruned directory passes the
        update on to its own parent. Pruning stops at the first ancestor that
        still holds entries, or at the root.

        Raises:
            NotFoundError: If no file exists at `path`.
            TreeError: If `path` names a directory.
        """
        ancestors, name = self._descend(path)
        parent = ancestors[-1]

        node = parent.children.get(name)
        if node is None:
            raise NotFoundError(f"cannot remove {path!r}: no such path", path)
        if node.is_dir:
            raise TreeError(f"cannot remove {path!r}: is a directory", path)

        del parent.children[name]
        self._size -= 1
        parent.mtime = mtime

        for i in range(len(ancestors) - 1, 0, -1):
            directory = ancestors[i]
            if directory.children:
                break
            above = ancestors[i - 1]
            del above.children[directory.name]
            self._size -= 1
            above.mtime = mtime

    def rename(self, from_path: str, to_path: str, mtime: int) -> Node:
        """
        Move a file, keeping its own modification time.

        The destination is created with the source's last mtime; `mtime`
        only drives the directory updates on the removal side.

        Raises:
            NotFoundError: If `from_path` is absent.
            AlreadyExistsError: If `to_path` already exists.
        """
        source = self.get(from_path)
        if source.is_dir:
            raise TreeError(f"cannot rename {from_path!r}: is a directory", from_path)
        moved = self.create(to_path, source.mtime)
        self.remove(from_path, mtime)
        return moved

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get(self, path: str) -> Node:
        """
        Return the node at `path`.

        Raises:
            NotFoundError: If any segment is missing or traverses a file.
        """
        node = self.root
        for part in split_path(path):
            if not node.is_dir or part not in node.children:
                raise NotFoundError(f"no such path: {path!r}", path)
            node = node.children[part]
        return node

    def exists(self, path: str) -> bool:
        try:
            self.get(path)
        except NotFoundError:
            return False
        return True

    def mtime_of(self, path: str) -> int:
        return self.get(path).mtime

    def walk(self, callback: Callable[[Node, str], None]) -> None:
        """
        Visit every non-root node depth-first as callback(node, full_path).

        Sibling order is unspecified. The first exception raised by the
        callback stops the walk and propagates.
        """
        for node, path in self.iter_nodes():
            callback(node, path)

    def iter_nodes(self) -> Iterator[Tuple[Node, str]]:
        """Generator form of walk: yields (node, full_path) depth-first."""
        stack: List[Tuple[Node, str]] = [(self.root, "")]
        while stack:
            directory, prefix = stack.pop()
            for child in directory.children.values():
                child_path = f"{prefix}{SEPARATOR}{child.name}" if prefix else child.name
                yield child, child_path
                if child.is_dir:
                    stack.append((child, child_path))

    def items(self) -> List[Tuple[str, int]]:
        """All (path, mtime) pairs sorted by path."""
        return sorted((path, node.mtime) for node, path in self.iter_nodes())

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _descend(self, path: str) -> Tuple[List[Node], str]:
        """Collect the directory chain leading to the last segment of `path`."""
        *dir_parts, name = split_path(path)
        ancestors = [self.root]
        for part in dir_parts:
            node = ancestors[-1].children.get(part)
            if node is None or not node.is_dir:
                raise NotFoundError(f"no such path: {path!r}", path)
            ancestors.append(node)
        return ancestors, name

# -----------------------------------------------------------------------------
# PATH HELPERS
# -----------------------------------------------------------------------------

def split_path(path: str) -> List[str]:
    """
    Split a repository-relative path into its segments.

    Raises:
        InvalidPathError: If the path is empty, absolute, or has empty,
            '.' or '..' segments.
    """
    if not path or path.startswith(SEPARATOR):
        raise InvalidPathError(f"invalid path: {path!r}", path)
    parts = path.split(SEPARATOR)
    for part in parts:
        if part in ("", ".", ".."):
            raise InvalidPathError(f"invalid path: {path!r}", path)
    return parts


def join_path(parts: List[str]) -> str:
    return SEPARATOR.join(parts)
