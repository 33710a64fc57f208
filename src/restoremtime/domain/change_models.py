from __future__ import annotations

"""
History Change Data Models.

Defines the closed set of path-level actions reported by the history log and
the immutable record describing one change.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

# -----------------------------------------------------------------------------
# ACTIONS
# -----------------------------------------------------------------------------

class Action(Enum):
    """Path-level action carried by a raw change line."""
    ADD = "A"
    DELETE = "D"
    MODIFY = "M"
    RENAME = "R"

# -----------------------------------------------------------------------------
# CHANGE RECORD
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Change:
    """
    A single path-level change.

    Attributes:
        action: What happened to the path.
        to: Destination path (the only path for add/delete/modify).
        from_: Source path, set for renames only.
    """
    action: Action
    to: str
    from_: Optional[str] = None

    def __str__(self) -> str:
        if self.action is Action.RENAME:
            return f"{self.action.name} {self.from_} -> {self.to}"
        return f"{self.action.name} {self.to}"
