from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line schema and translates the parsed namespace into
configuration overrides understood by the restore engine.
"""

import argparse
from typing import Any, Dict

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the restore-mtime CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="restore-mtime",
        description=(
            "Restore file and directory modification times in a git work tree "
            "by replaying its first-parent history."
        ),
    )

    # --- Repository Selection ---
    p.add_argument(
        "-C", "--repo",
        dest="repo_path",
        default=None,
        help="Path inside the git work tree (default: current directory).",
    )
    p.add_argument(
        "--ref",
        default=None,
        help="Revision whose history is replayed (default: HEAD).",
    )
    p.add_argument(
        "--git",
        dest="git_binary",
        default=None,
        help="git executable to run.",
    )

    # --- History Export ---
    p.add_argument(
        "--rename-limit",
        type=int,
        default=None,
        help="Upper bound for git rename detection (default: 10000).",
    )
    p.add_argument(
        "--no-renames",
        action="store_true",
        help="Disable rename detection; renames replay as delete plus add.",
    )
    p.add_argument(
        "--allow-shallow",
        action="store_true",
        help="Replay a shallow clone's truncated history anyway.",
    )

    # --- Apply Phase ---
    p.add_argument(
        "-j", "--workers",
        type=int,
        default=None,
        help="Parallel threads writing timestamps (default: 1).",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Replay history but do not touch any file.",
    )
    p.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Abort history reading after this many seconds (0: never).",
    )

    # --- Configuration and Diagnostic Tools ---
    p.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Also write logs to this rotating file.",
    )
    p.add_argument(
        "--use-defaults",
        action="store_true",
        help="Ignore the persisted configuration file.",
    )
    p.add_argument(
        "--save-config",
        action="store_true",
        help="Persist the effective configuration as the new defaults.",
    )
    p.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the effective configuration as JSON and exit.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )

    # --- Format Selection ---
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print the run result as JSON.",
    )

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into a configuration dictionary.

    Options left unset map to None and are skipped when merging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Dict[str, Any]: Configuration overrides subset.
    """
    overrides: Dict[str, Any] = {
        "repo_path": args.repo_path,
        "ref": args.ref,
        "git_binary": args.git_binary,
        "rename_limit": args.rename_limit,
        "workers": args.workers,
        "timeout": args.timeout,
        "log_file": args.log_file,
    }

    if args.no_renames:
        overrides["detect_renames"] = False
    if args.allow_shallow:
        overrides["allow_shallow"] = True
    if args.dry_run:
        overrides["dry_run"] = True
    if args.debug:
        overrides["log_level"] = "DEBUG"

    return overrides
