"""
Action System - Actions, payloads, outbound writes and results.

Actions represent:
1. Local user actions (advance, flip, toggle live, add card, drafts)
2. Store responses (session created, session loaded)
3. Remote updates (a snapshot delivered by the change feed)

All state changes flow through actions. The reducer answers each one
with a new state plus the writes that should be sent to the record store.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .state import Card, SessionSnapshot


class ActionType(Enum):
    """Types of actions in the system."""
    # Authoring
    ADD_DRAFT = "add_draft"
    EDIT_DRAFT = "edit_draft"
    CREATE_SESSION = "create_session"

    # Store responses
    SESSION_CREATED = "session_created"
    SESSION_LOADED = "session_loaded"

    # Local navigation and edits
    ADVANCE = "advance"
    FLIP = "flip"
    TOGGLE_LIVE = "toggle_live"
    ADD_CARD = "add_card"
    TAKE_CONTROL = "take_control"

    # Change feed
    REMOTE_UPDATE = "remote_update"


class Direction(Enum):
    """Navigation direction, valued as the index delta."""
    NEXT = 1
    PREVIOUS = -1


class WriteKind(Enum):
    INSERT = "insert"
    UPDATE = "update"


@dataclass(frozen=True)
class OutboundWrite:
    """
    A write the reducer wants sent to the record store.

    Fields use the store's column names. The reveal flag never appears here.
    """
    kind: WriteKind
    fields: dict[str, Any]
    session_id: str | None = None

    @classmethod
    def insert(cls, cards: tuple[Card, ...]) -> OutboundWrite:
        return cls(
            kind=WriteKind.INSERT,
            fields={
                "cards": [card.to_dict() for card in cards],
                "current_index": 0,
                "is_live": False,
            },
        )

    @classmethod
    def update(cls, session_id: str, **fields: Any) -> OutboundWrite:
        return cls(kind=WriteKind.UPDATE, fields=fields, session_id=session_id)


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    Validation happens in the reducer.
    """
    direction: Direction | None = None
    card: Card | None = None
    cards: tuple[Card, ...] | None = None
    index: int | None = None
    front: str | None = None
    back: str | None = None
    snapshot: SessionSnapshot | None = None


@dataclass
class Action:
    """
    A complete action to be applied to a view state.
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def add_draft(cls) -> Action:
        return cls(action_type=ActionType.ADD_DRAFT)

    @classmethod
    def edit_draft(cls, index: int, front: str | None = None, back: str | None = None) -> Action:
        return cls(
            action_type=ActionType.EDIT_DRAFT,
            payload=ActionPayload(index=index, front=front, back=back),
        )

    @classmethod
    def create_session(cls, cards=None) -> Action:
        """Factory for create. Without cards, the current drafts are used."""
        return cls(
            action_type=ActionType.CREATE_SESSION,
            payload=ActionPayload(
                cards=tuple(Card.from_dict(c) for c in cards) if cards is not None else None,
            ),
        )

    @classmethod
    def session_created(cls, snapshot: SessionSnapshot) -> Action:
        return cls(
            action_type=ActionType.SESSION_CREATED,
            payload=ActionPayload(snapshot=snapshot),
        )

    @classmethod
    def session_loaded(cls, snapshot: SessionSnapshot) -> Action:
        return cls(
            action_type=ActionType.SESSION_LOADED,
            payload=ActionPayload(snapshot=snapshot),
        )

    @classmethod
    def advance(cls, direction: Direction = Direction.NEXT) -> Action:
        return cls(
            action_type=ActionType.ADVANCE,
            payload=ActionPayload(direction=direction),
        )

    @classmethod
    def flip(cls) -> Action:
        return cls(action_type=ActionType.FLIP)

    @classmethod
    def toggle_live(cls) -> Action:
        return cls(action_type=ActionType.TOGGLE_LIVE)

    @classmethod
    def add_card(cls, front: str, back: str) -> Action:
        return cls(
            action_type=ActionType.ADD_CARD,
            payload=ActionPayload(card=Card(front=front, back=back)),
        )

    @classmethod
    def take_control(cls) -> Action:
        return cls(action_type=ActionType.TAKE_CONTROL)

    @classmethod
    def remote_update(cls, snapshot: SessionSnapshot) -> Action:
        return cls(
            action_type=ActionType.REMOTE_UPDATE,
            payload=ActionPayload(snapshot=snapshot),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action succeeded
    - New state (if succeeded)
    - Errors (if failed)
    - Writes to send to the record store
    """
    success: bool
    new_state: Any | None = None  # ViewState
    error: str | None = None
    error_code: str | None = None

    writes: list[OutboundWrite] = field(default_factory=list)
    state_changes: list[str] = field(default_factory=list)  # Human-readable changes

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        writes: list[OutboundWrite] | None = None,
        changes: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            writes=writes or [],
            state_changes=changes or [],
        )
