from __future__ import annotations

"""
Pipeline Domain Data Models.

Defines the result structure and factory functions used to communicate the
outcome of a restore run between the engine and the CLI.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# -----------------------------------------------------------------------------
# CORE DATA MODELS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class RestoreResult:
    """
    Unified result object of a complete restore run.

    Attributes:
        ok: Flag indicating success or failure.
        error: Descriptive message in case of failure.
        error_type: Class name of the failure, empty on success.
        repo_path: Repository root whose files were updated.
        ref: Revision whose first-parent history was replayed.
        dry_run: Whether timestamp writes were skipped.
        events: Number of history events replayed.
        updated: Number of paths whose timestamps were set.
        summary: Technical execution summary and statistics.
    """
    ok: bool
    error: str
    error_type: str

    repo_path: str
    ref: str
    dry_run: bool

    events: int = 0
    updated: int = 0

    summary: Dict[str, Any] = field(default_factory=dict)

# -----------------------------------------------------------------------------
# FACTORY FUNCTIONS
# -----------------------------------------------------------------------------

def create_error_result(
        error: BaseException,
        cfg: Dict[str, Any],
        repo_path: str,
        events: int = 0,
        summary_extra: Optional[Dict[str, Any]] = None
) -> RestoreResult:
    """
    Create a failed restore result instance.

    Args:
        error: The exception that aborted the run.
        cfg: The configuration used during the failed run.
        repo_path: The repository directory targeted.
        events: Events replayed before the failure.
        summary_extra: Additional metadata for the summary payload.

    Returns:
        RestoreResult: An immutable error result object.
    """
    return RestoreResult(
        ok=False,
        error=str(error),
        error_type=type(error).__name__,
        repo_path=repo_path,
        ref=cfg.get("ref", ""),
        dry_run=cfg.get("dry_run", False),
        events=events,
        summary=summary_extra or {},
    )


def create_success_result(
        cfg: Dict[str, Any],
        repo_path: str,
        events: int,
        updated: int,
        summary_extra: Optional[Dict[str, Any]] = None
) -> RestoreResult:
    """
    Create a successful restore result instance.

    Args:
        cfg: Final configuration used during execution.
        repo_path: Normalized repository root.
        events: Number of history events replayed.
        updated: Number of paths whose timestamps were set.
        summary_extra: Final execution metrics.

    Returns:
        RestoreResult: An immutable success result object.
    """
    return RestoreResult(
        ok=True,
        error="",
        error_type="",
        repo_path=repo_path,
        ref=cfg.get("ref", ""),
        dry_run=cfg.get("dry_run", False),
        events=events,
        updated=updated,
        summary=summary_extra or {},
    )
