from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates the CLI lifecycle: logging bootstrap, configuration layering
(defaults, persisted file, command-line overrides), the restore run and
result rendering.
"""

import json
import os
import sys
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from restoremtime.core.pipeline.engine import run_restore
from restoremtime.core.pipeline.validator import validate_config
from restoremtime.domain.config import get_default_config, load_config, save_config
from restoremtime.domain.pipeline_models import RestoreResult
from restoremtime.infra.logging import LoggingConfig, configure_logging, get_logger
from restoremtime.interface.cli import args as cli_args

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the CLI workflow.

    Args:
        argv: Command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code.
    """
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    # 1. Configuration hierarchy
    base_conf = get_default_config() if args.use_defaults else load_config()
    raw_conf = _merge_config(base_conf, cli_args.args_to_overrides(args))
    clean_conf, warnings = validate_config(raw_conf, strict=False)

    # 2. Logging bootstrap
    configure_logging(
        LoggingConfig(
            level=clean_conf["log_level"],
            console=True,
            log_file=clean_conf["log_file"] or None,
        ),
        force=True,
    )
    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    # The repository is chosen per invocation, never persisted.
    if args.save_config:
        save_config({k: v for k, v in clean_conf.items() if k != "repo_path"})

    if args.dump_config:
        print(json.dumps(clean_conf, ensure_ascii=False, indent=2))
        return EXIT_OK

    # 3. Pre-flight input verification
    repo_path = clean_conf["repo_path"]
    if not os.path.isdir(repo_path):
        msg = f"Repository path does not exist or is not a directory: {repo_path}"
        logger.error(msg)
        print(f"ERROR: {msg}", file=sys.stderr)
        return EXIT_USAGE

    # 4. Restore
    try:
        result = run_restore(clean_conf)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
        print("Interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED

    # 5. Output rendering
    if args.json_output:
        print(json.dumps(asdict(result), ensure_ascii=False, indent=2))
    else:
        _print_human_summary(result)

    if result.ok:
        return EXIT_OK
    if result.error_type == "CancelledError":
        return EXIT_INTERRUPTED
    return EXIT_FAILURE

# -----------------------------------------------------------------------------
# CONFIGURATION MERGING
# -----------------------------------------------------------------------------

def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow-merge the non-None overrides for keys the base already knows.

    Args:
        base: The primary configuration dictionary.
        overrides: New values to inject.

    Returns:
        Dict[str, Any]: The merged configuration.
    """
    out = dict(base)
    for k, v in overrides.items():
        if k in out and v is not None:
            out[k] = v
    return out

# -----------------------------------------------------------------------------
# VIEW RENDERING (HUMAN READABLE)
# -----------------------------------------------------------------------------

def _print_human_summary(result: RestoreResult) -> None:
    """Render a RestoreResult as a short terminal report."""
    if not result.ok:
        print(f"ERROR: {result.error}", file=sys.stderr)
        return

    if result.dry_run:
        print(f"Dry run: {result.updated} mtimes would be updated")
        for path, mtime in result.summary.get("preview", {}).items():
            print(f"  {mtime}  {path}")
        return

    print(f"{result.updated} mtimes updated")

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
