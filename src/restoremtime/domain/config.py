from __future__ import annotations

"""
Configuration Domain Management.

Handles the default runtime configuration and its optional persisted
counterpart (a JSON file in the user data directory). Values loaded from
disk are merged over the defaults so new keys always exist.
"""

import json
import logging
import os
from typing import Any, Dict

from restoremtime.infra.fs import get_user_data_dir

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Constants & Defaults
# -----------------------------------------------------------------------------
CONFIG_FILE_NAME = "config.json"
DEFAULT_REF = "HEAD"
DEFAULT_RENAME_LIMIT = 10000


def get_config_file() -> str:
    """Resolve the absolute path of the persisted configuration file."""
    return os.path.join(get_user_data_dir(), CONFIG_FILE_NAME)


# -----------------------------------------------------------------------------
# Configuration Models (Dict-based)
# -----------------------------------------------------------------------------
def get_default_config() -> Dict[str, Any]:
    """
    Generate the default runtime configuration.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # Repository
        "repo_path": os.getcwd(),
        "ref": DEFAULT_REF,
        "git_binary": "git",

        # History export
        "rename_limit": DEFAULT_RENAME_LIMIT,
        "detect_renames": True,
        "allow_shallow": False,

        # Apply phase
        "workers": 1,
        "dry_run": False,
        "timeout": 0,

        # Diagnostics
        "log_level": "INFO",
        "log_file": "",
    }


# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def load_config() -> Dict[str, Any]:
    """
    Load the persisted configuration merged over the defaults.

    A missing or unreadable file is not an error: the defaults are returned.

    Returns:
        Dict[str, Any]: The merged configuration.
    """
    config = get_default_config()
    config_file = get_config_file()

    if not os.path.exists(config_file):
        logger.debug("Config file not found. Returning defaults.")
        return config

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load config: {e}. Using defaults.")
        return config

    if not isinstance(data, dict):
        logger.warning("Corrupted config file. Using defaults.")
        return config

    unknown = sorted(set(data) - set(config))
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

    config.update({k: v for k, v in data.items() if k in config})
    return config


def save_config(config: Dict[str, Any]) -> None:
    """
    Persist the provided configuration to disk.

    Args:
        config: The configuration dictionary to save.
    """
    config_file = get_config_file()
    try:
        os.makedirs(os.path.dirname(config_file), exist_ok=True)
        with open(config_file, "w", encoding="utf-8") as f:
            json.dump(config, f, ensure_ascii=False, indent=4)
        logger.debug(f"Configuration saved to {config_file}")
    except OSError as e:
        logger.error(f"Failed to save configuration: {e}")
