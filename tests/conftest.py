from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. Shared fixtures: a sample history stream and a throw-away git repository.
"""

import os
import subprocess
import sys
from pathlib import Path
from typing import Callable, Dict, List

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def sample_log_lines() -> List[bytes]:
    """
    Raw history for three commits, oldest first, as git prints it.

    100: add src/a.py and README
    200: modify src/a.py, rename README -> docs/README.md
    300: delete src/a.py
    """
    text = (
        "100\n"
        "\n"
        ":000000 100644 0000000 1111111 A\tREADME\n"
        ":000000 100644 0000000 2222222 A\tsrc/a.py\n"
        "200\n"
        "\n"
        ":100644 100644 2222222 3333333 M\tsrc/a.py\n"
        ":100644 100644 1111111 1111111 R100\tREADME\tdocs/README.md\n"
        "300\n"
        "\n"
        ":100644 000000 3333333 0000000 D\tsrc/a.py\n"
    )
    return [line.encode("utf-8") + b"\n" for line in text.splitlines()]


def _git(repo: Path, *args: str, when: int = 0) -> str:
    env = os.environ.copy()
    env.update({
        "GIT_AUTHOR_NAME": "Test",
        "GIT_AUTHOR_EMAIL": "test@example.com",
        "GIT_COMMITTER_NAME": "Test",
        "GIT_COMMITTER_EMAIL": "test@example.com",
        "GIT_CONFIG_NOSYSTEM": "1",
        "HOME": str(repo),
    })
    if when:
        env["GIT_AUTHOR_DATE"] = f"@{when} +0000"
        env["GIT_COMMITTER_DATE"] = f"@{when} +0000"
    completed = subprocess.run(
        ["git", *args], cwd=repo, env=env, capture_output=True, text=True, check=True
    )
    return completed.stdout


@pytest.fixture
def git_repo(tmp_path: Path) -> Callable[[int, Dict[str, str], List[str]], None]:
    """
    Provide a fresh repository and a helper committing changes at a fixed time.

    The helper takes (timestamp, files_to_write, paths_to_delete). The
    repository path is available as the helper's `path` attribute.
    """
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "config", "commit.gpgsign", "false")

    def commit(when: int, write: Dict[str, str], delete: List[str] = ()) -> None:
        for rel, content in write.items():
            target = repo / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        for rel in delete:
            _git(repo, "rm", "-q", rel)
        _git(repo, "add", "-A")
        _git(repo, "commit", "-q", "-m", f"commit at {when}", when=when)

    def move(when: int, src: str, dst: str) -> None:
        (repo / dst).parent.mkdir(parents=True, exist_ok=True)
        _git(repo, "mv", src, dst)
        _git(repo, "commit", "-q", "-m", f"move at {when}", when=when)

    commit.path = repo
    commit.move = move
    return commit
