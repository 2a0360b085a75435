"""
Engine Core - Pure view-state reconciliation.

The engine is the part that:
1. Holds the tagged view state (Authoring, Presenting, Following)
2. Turns local actions into a new state plus outbound writes
3. Applies change-feed snapshots with the live-gated mirror policy

Nothing in here touches the network.
"""

from .state import (
    Card,
    SessionSnapshot,
    ViewMode,
    ViewState,
    Authoring,
    Deck,
    Presenting,
    Following,
    filter_cards,
)
from .action import Action, ActionType, ActionPayload, ActionResult, Direction, OutboundWrite, WriteKind
from .reducer import Reducer, apply_action

__all__ = [
    "Card",
    "SessionSnapshot",
    "ViewMode",
    "ViewState",
    "Authoring",
    "Deck",
    "Presenting",
    "Following",
    "filter_cards",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "Direction",
    "OutboundWrite",
    "WriteKind",
    "Reducer",
    "apply_action",
]
