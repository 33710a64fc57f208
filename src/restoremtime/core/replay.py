from __future__ import annotations

"""
History Replay Driver.

Applies ordered (timestamp, change) events to a VirtualTree. Replay is
strictly sequential: each event is interpreted against the state left by
every event before it, so the first failure aborts the whole run.
"""

import logging
from typing import Iterable, Optional

from restoremtime.core.log.parser import TimedChange
from restoremtime.core.tree.vtree import VirtualTree
from restoremtime.domain.change_models import Action, Change
from restoremtime.domain.errors import RestoreMtimeError

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# DISPATCH
# -----------------------------------------------------------------------------

def apply_change(tree: VirtualTree, timestamp: int, change: Change) -> None:
    """
    Dispatch a single change to the matching tree operation.

    Raises:
        TreeError: Propagated unchanged from the tree.
        ValueError: If the change carries an action outside the closed set.
    """
    if change.action is Action.ADD:
        tree.create(change.to, timestamp)
    elif change.action is Action.MODIFY:
        tree.touch(change.to, timestamp)
    elif change.action is Action.DELETE:
        tree.remove(change.to, timestamp)
    elif change.action is Action.RENAME:
        if change.from_ is None:
            raise ValueError(f"rename without a source path: {change}")
        tree.rename(change.from_, change.to, timestamp)
    else:
        raise ValueError(f"unsupported action: {change.action!r}")

# -----------------------------------------------------------------------------
# DRIVER
# -----------------------------------------------------------------------------

class ReplayDriver:
    """
    Sole owner of a VirtualTree for the duration of one run.

    Instances are callable with (timestamp, change), so they can be handed
    directly to parse_log as its callback.
    """

    def __init__(self, tree: Optional[VirtualTree] = None):
        self.tree = tree if tree is not None else VirtualTree()
        self.events = 0

    def __call__(self, timestamp: int, change: Change) -> None:
        try:
            apply_change(self.tree, timestamp, change)
        except RestoreMtimeError:
            logger.error(f"Replay failed at event #{self.events + 1} ({change}) @ {timestamp}")
            raise
        self.events += 1

    def replay(self, events: Iterable[TimedChange]) -> VirtualTree:
        """Apply every event in order and return the tree."""
        for timestamp, change in events:
            self(timestamp, change)
        self.log_summary()
        return self.tree

    def log_summary(self) -> None:
        logger.info(f"Replayed {self.events} history events; {len(self.tree)} paths tracked.")


def replay_log(
        events: Iterable[TimedChange],
        tree: Optional[VirtualTree] = None,
) -> VirtualTree:
    """
    Replay ordered events into a tree (a fresh one unless given).

    Args:
        events: Ordered (timestamp, change) pairs, e.g. from iter_log.
        tree: Tree to mutate.

    Returns:
        VirtualTree: The tree after the last event.
    """
    return ReplayDriver(tree).replay(events)
