from __future__ import annotations

"""
Core restore pipeline.

Coordinates one complete run:
1. Validates configuration and resolves the repository root.
2. Streams the first-parent history out of git.
3. Replays every event into a fresh virtual tree.
4. Writes the resolved modification times onto the work tree.

The run is all-or-nothing: any failure ends it with an error result.
"""

import logging
import threading
import time
from typing import Any, Dict, Optional

from restoremtime.core.log.parser import parse_log
from restoremtime.core.pipeline.validator import validate_config
from restoremtime.core.replay import ReplayDriver
from restoremtime.domain.errors import ExternalToolError, RestoreMtimeError
from restoremtime.domain.pipeline_models import (
    RestoreResult,
    create_error_result,
    create_success_result,
)
from restoremtime.infra.fs import apply_mtimes, normalize_path
from restoremtime.infra.git import find_repo_root, is_shallow, open_history

logger = logging.getLogger(__name__)

# Paths listed in a dry-run summary.
DRY_RUN_PREVIEW_LIMIT = 50


def run_restore(
        config: Optional[Dict[str, Any]],
        *,
        cancel: Optional[threading.Event] = None,
) -> RestoreResult:
    """
    Execute the full restore workflow.

    Args:
        config: The configuration dictionary (raw or partial).
        cancel: Optional signal that stops history parsing when set. A
            configured timeout sets it automatically.

    Returns:
        RestoreResult: Object containing status, counts and summary.
    """
    logger.info("Restore started.")
    started = time.monotonic()

    cfg, warnings = validate_config(config, strict=False)
    for warning in warnings:
        logger.warning(f"Configuration Warning: {warning}")

    repo_path = normalize_path(cfg["repo_path"], ".")
    driver = ReplayDriver()

    if cancel is None:
        cancel = threading.Event()
    timer = _start_timeout(cfg["timeout"], cancel)

    try:
        repo_root = find_repo_root(repo_path, cfg["git_binary"])
        logger.info(f"Repository root: {repo_root}")

        if not cfg["allow_shallow"] and is_shallow(repo_root, cfg["git_binary"]):
            raise ExternalToolError(
                f"{repo_root} is a shallow clone; its history is incomplete "
                "(fetch the full history or set allow_shallow)"
            )

        with open_history(
                repo_root,
                git_binary=cfg["git_binary"],
                ref=cfg["ref"],
                rename_limit=cfg["rename_limit"],
                detect_renames=cfg["detect_renames"],
        ) as stream:
            parse_log(stream, driver, cancel)
        driver.log_summary()

        updated = apply_mtimes(
            driver.tree,
            repo_root,
            workers=cfg["workers"],
            dry_run=cfg["dry_run"],
        )
    except RestoreMtimeError as e:
        logger.error(f"Restore aborted: {e}")
        return create_error_result(
            e, cfg, repo_path,
            events=driver.events,
            summary_extra={"elapsed_seconds": round(time.monotonic() - started, 3)},
        )
    finally:
        if timer is not None:
            timer.cancel()

    summary: Dict[str, Any] = {
        "paths": len(driver.tree),
        "elapsed_seconds": round(time.monotonic() - started, 3),
    }
    if cfg["dry_run"]:
        summary["preview"] = dict(driver.tree.items()[:DRY_RUN_PREVIEW_LIMIT])

    logger.info(f"{updated} mtimes {'would be ' if cfg['dry_run'] else ''}updated")
    return create_success_result(cfg, repo_root, driver.events, updated, summary_extra=summary)


def _start_timeout(seconds: int, cancel: threading.Event) -> Optional[threading.Timer]:
    """Arm a timer that sets the cancel signal after `seconds` (0 disables it)."""
    if seconds <= 0:
        return None
    timer = threading.Timer(seconds, cancel.set)
    timer.daemon = True
    timer.start()
    return timer
