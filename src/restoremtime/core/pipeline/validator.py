from __future__ import annotations

"""
Configuration Validation Service.

Gatekeeper between untrusted configuration sources (persisted JSON, CLI
overrides) and the restore engine. Coerces types, fills missing keys with
defaults and reports every correction as a warning, or raises in strict mode.
"""

import logging
from typing import Any, Dict, List, Tuple

from restoremtime.domain.config import get_default_config
from restoremtime.infra.logging.config import is_known_level

logger = logging.getLogger(__name__)

STRING_FIELDS = ["repo_path", "ref", "git_binary", "log_level", "log_file"]
BOOL_FIELDS = ["detect_renames", "allow_shallow", "dry_run"]
INT_FIELDS = {
    # field: minimum accepted value
    "rename_limit": 0,
    "workers": 1,
    "timeout": 0,
}
# Empty strings are meaningful for these (feature off).
OPTIONAL_STRING_FIELDS = {"log_file"}


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_config(
        config: Any,
        *,
        strict: bool = False,
) -> Tuple[Dict[str, Any], List[str]]:
    """
    Validate and normalize a configuration dictionary.

    Args:
        config: Raw configuration data.
        strict: Raise on invalid values instead of falling back to defaults.

    Returns:
        Tuple[Dict[str, Any], List[str]]: The normalized configuration and
        the list of warnings produced while normalizing it.

    Raises:
        TypeError: In strict mode, on a value of the wrong type.
        ValueError: In strict mode, on a value outside its accepted range.
    """
    warnings: List[str] = []
    defaults = get_default_config()

    if not isinstance(config, dict):
        msg = f"Invalid config type: expected dict, received {type(config).__name__}."
        if strict:
            raise TypeError(msg)
        warnings.append(f"{msg} Using defaults.")
        logger.warning(msg)
        return defaults, warnings

    merged: Dict[str, Any] = dict(defaults)
    merged.update({k: v for k, v in config.items() if k in defaults})

    for field in STRING_FIELDS:
        merged[field] = _as_str(merged.get(field), defaults[field], field, warnings, strict)

    for field in BOOL_FIELDS:
        merged[field] = _as_bool(merged.get(field), defaults[field], field, warnings, strict)

    for field, minimum in INT_FIELDS.items():
        merged[field] = _as_int(merged.get(field), defaults[field], minimum, field, warnings, strict)

    if not is_known_level(merged["log_level"]):
        _reject(f"Invalid field 'log_level': unknown level {merged['log_level']!r}.",
                ValueError, warnings, strict)
        merged["log_level"] = defaults["log_level"]
    merged["log_level"] = merged["log_level"].upper()

    return merged, warnings


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: TYPE COERCION
# -----------------------------------------------------------------------------

def _reject(msg: str, exc_type: type, warnings: List[str], strict: bool) -> None:
    if strict:
        raise exc_type(msg)
    warnings.append(f"{msg} Using fallback.")


def _as_str(value: Any, fallback: str, field: str, warnings: List[str], strict: bool) -> str:
    """Strings are stripped; blank values fall back unless blank is meaningful."""
    if value is None:
        return fallback
    if isinstance(value, str):
        v = value.strip()
        if v or field in OPTIONAL_STRING_FIELDS:
            return v
        return fallback

    _reject(f"Invalid field '{field}': expected str, received {type(value).__name__}.",
            TypeError, warnings, strict)
    return fallback


def _as_bool(value: Any, fallback: bool, field: str, warnings: List[str], strict: bool) -> bool:
    """Accept real booleans and the usual textual spellings."""
    if value is None:
        return fallback
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in ("1", "true", "yes", "on"):
            return True
        if v in ("0", "false", "no", "off"):
            return False

    _reject(f"Invalid field '{field}': expected bool, received {value!r}.",
            TypeError, warnings, strict)
    return fallback


def _as_int(
        value: Any,
        fallback: int,
        minimum: int,
        field: str,
        warnings: List[str],
        strict: bool,
) -> int:
    """Accept ints and digit strings no lower than `minimum`."""
    if value is None:
        return fallback

    number = None
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            number = None

    if number is None:
        _reject(f"Invalid field '{field}': expected int, received {value!r}.",
                TypeError, warnings, strict)
        return fallback

    if number < minimum:
        _reject(f"Invalid field '{field}': {number} is below the minimum of {minimum}.",
                ValueError, warnings, strict)
        return fallback
    return number
