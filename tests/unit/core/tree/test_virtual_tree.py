from __future__ import annotations

"""
Unit tests for the In-Memory Virtual Tree.

Verifies:
1. Lazy ancestor creation and directory mtime propagation on create.
2. touch without ancestor propagation.
3. remove with bottom-up pruning of empty directories.
4. rename preserving the source mtime.
5. Failure modes of every operation.
"""

from typing import Dict

import pytest

from restoremtime.core.tree.vtree import Node, VirtualTree, split_path
from restoremtime.domain.errors import (
    AlreadyExistsError,
    InvalidPathError,
    NotDirectoryError,
    NotFoundError,
    TreeError,
)


def snapshot(tree: VirtualTree) -> Dict[str, int]:
    return dict(tree.items())


def assert_no_empty_dirs(tree: VirtualTree) -> None:
    for node, path in tree.iter_nodes():
        if node.is_dir:
            assert node.children, f"empty directory left behind: {path}"


# -----------------------------------------------------------------------------
# create
# -----------------------------------------------------------------------------

def test_create_builds_missing_ancestors() -> None:
    tree = VirtualTree()
    tree.create("a/b/c.txt", 10)

    assert snapshot(tree) == {"a": 10, "a/b": 10, "a/b/c.txt": 10}
    assert tree.get("a/b").is_dir
    assert not tree.get("a/b/c.txt").is_dir
    assert tree.root.mtime == 10
    assert len(tree) == 3


def test_create_bumps_existing_ancestors() -> None:
    tree = VirtualTree()
    tree.create("a/b", 1)
    tree.create("a/c", 2)

    assert tree.mtime_of("a") == 2
    assert tree.mtime_of("a/b") == 1


def test_create_bumps_every_ancestor_up_to_root() -> None:
    tree = VirtualTree()
    tree.create("x/y/one", 1)
    tree.create("x/z/two", 5)

    assert tree.mtime_of("x") == 5
    assert tree.mtime_of("x/y") == 1
    assert tree.mtime_of("x/z") == 5


def test_create_existing_path_fails() -> None:
    tree = VirtualTree()
    tree.create("a/b", 1)

    with pytest.raises(AlreadyExistsError):
        tree.create("a/b", 2)
    with pytest.raises(AlreadyExistsError):
        tree.create("a", 2)
    assert tree.mtime_of("a/b") == 1


def test_create_under_file_fails_without_residue() -> None:
    tree = VirtualTree()
    tree.create("a/file", 1)

    with pytest.raises(NotDirectoryError):
        tree.create("a/file/child/x", 2)

    assert snapshot(tree) == {"a": 1, "a/file": 1}


@pytest.mark.parametrize("path", ["", "/abs", "a//b", "a/./b", "../x", "trailing/"])
def test_invalid_paths_are_rejected(path: str) -> None:
    with pytest.raises(InvalidPathError):
        VirtualTree().create(path, 1)


# -----------------------------------------------------------------------------
# touch
# -----------------------------------------------------------------------------

def test_touch_does_not_propagate() -> None:
    tree = VirtualTree()
    tree.create("a/b", 1)
    tree.touch("a/b", 9)

    assert tree.mtime_of("a/b") == 9
    assert tree.mtime_of("a") == 1


def test_touch_missing_path_fails() -> None:
    tree = VirtualTree()
    tree.create("a/b", 1)

    with pytest.raises(NotFoundError):
        tree.touch("a/c", 2)
    with pytest.raises(NotFoundError):
        tree.touch("a/b/deeper", 2)


# -----------------------------------------------------------------------------
# remove
# -----------------------------------------------------------------------------

def test_remove_prunes_empty_ancestors() -> None:
    tree = VirtualTree()
    tree.create("x/y", 1)
    tree.remove("x/y", 2)

    assert not tree.exists("x")
    assert not tree.exists("x/y")
    assert len(tree) == 0
    assert tree.root.mtime == 2


def test_remove_stops_at_first_non_empty_ancestor() -> None:
    tree = VirtualTree()
    tree.create("a/keep", 1)
    tree.create("a/b/c/gone", 2)
    tree.remove("a/b/c/gone", 7)

    assert snapshot(tree) == {"a": 7, "a/keep": 1}
    assert tree.root.mtime == 2
    assert_no_empty_dirs(tree)


def test_remove_updates_parent_only_when_it_survives() -> None:
    tree = VirtualTree()
    tree.create("d/one", 1)
    tree.create("d/two", 2)
    tree.remove("d/one", 5)

    assert tree.mtime_of("d") == 5
    assert tree.root.mtime == 2


def test_remove_missing_path_fails() -> None:
    tree = VirtualTree()
    tree.create("a/b", 1)

    with pytest.raises(NotFoundError):
        tree.remove("a/c", 2)
    with pytest.raises(NotFoundError):
        tree.remove("z/b", 2)
    with pytest.raises(NotFoundError):
        tree.remove("a/b/c", 2)


def test_remove_directory_is_rejected() -> None:
    tree = VirtualTree()
    tree.create("a/b", 1)
    with pytest.raises(TreeError):
        tree.remove("a", 2)


def test_create_remove_create_leaves_no_residue() -> None:
    tree = VirtualTree()
    tree.create("p/q", 1)
    tree.remove("p/q", 2)
    tree.create("p/q", 3)

    assert snapshot(tree) == {"p": 3, "p/q": 3}


# -----------------------------------------------------------------------------
# rename
# -----------------------------------------------------------------------------

def test_rename_keeps_source_mtime() -> None:
    tree = VirtualTree()
    tree.create("a", 1)
    tree.rename("a", "b", 2)

    assert not tree.exists("a")
    assert tree.mtime_of("b") == 1
    assert tree.root.mtime == 2


def test_rename_across_directories() -> None:
    tree = VirtualTree()
    tree.create("old/keep", 1)
    tree.create("old/moved", 3)
    tree.rename("old/moved", "new/sub/moved", 8)

    assert tree.mtime_of("new/sub/moved") == 3
    assert tree.mtime_of("new") == 3
    assert tree.mtime_of("old") == 8
    assert tree.mtime_of("old/keep") == 1


def test_rename_out_of_directory_prunes_it() -> None:
    tree = VirtualTree()
    tree.create("src/only", 4)
    tree.rename("src/only", "only", 6)

    assert snapshot(tree) == {"only": 4}
    assert tree.root.mtime == 6


def test_rename_failures_leave_tree_unchanged() -> None:
    tree = VirtualTree()
    tree.create("a", 1)
    tree.create("b", 2)

    with pytest.raises(NotFoundError):
        tree.rename("missing", "c", 3)
    with pytest.raises(AlreadyExistsError):
        tree.rename("a", "b", 3)

    assert snapshot(tree) == {"a": 1, "b": 2}


# -----------------------------------------------------------------------------
# walk
# -----------------------------------------------------------------------------

def test_walk_visits_every_node_with_full_path() -> None:
    tree = VirtualTree()
    tree.create("a/b/c", 1)
    tree.create("a/d", 2)
    tree.create("e", 3)

    visited = {}
    tree.walk(lambda node, path: visited.__setitem__(path, node.mtime))

    assert visited == {"a": 2, "a/b": 1, "a/b/c": 1, "a/d": 2, "e": 3}


def test_walk_stops_on_callback_error() -> None:
    tree = VirtualTree()
    tree.create("a", 1)
    tree.create("b", 1)
    calls = []

    def fail(node: Node, path: str) -> None:
        calls.append(path)
        raise OSError("denied")

    with pytest.raises(OSError):
        tree.walk(fail)
    assert len(calls) == 1


def test_split_path() -> None:
    assert split_path("a/b/c") == ["a", "b", "c"]
    assert split_path("single") == ["single"]


# -----------------------------------------------------------------------------
# mixed histories
# -----------------------------------------------------------------------------

def test_mixed_sequence_leaves_no_empty_directories() -> None:
    tree = VirtualTree()
    tree.create("src/pkg/core/a.py", 1)
    tree.create("src/pkg/core/b.py", 2)
    tree.create("src/pkg/util/c.py", 3)
    tree.create("docs/guide/intro.md", 4)
    tree.create("README", 5)

    tree.rename("src/pkg/core/a.py", "lib/a.py", 6)
    tree.touch("src/pkg/core/b.py", 7)
    tree.rename("src/pkg/core/b.py", "src/pkg/util/b.py", 8)
    tree.remove("docs/guide/intro.md", 9)
    tree.create("docs/index.md", 10)
    tree.rename("src/pkg/util/c.py", "src/c.py", 11)
    tree.remove("src/pkg/util/b.py", 12)
    assert_no_empty_dirs(tree)

    assert snapshot(tree) == {
        "README": 5,
        "docs": 10,
        "docs/index.md": 10,
        "lib": 1,
        "lib/a.py": 1,
        "src": 12,
        "src/c.py": 3,
    }
