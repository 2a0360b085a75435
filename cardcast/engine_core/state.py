"""
View State - Cards, session snapshots, and the tagged local view state.

Design principles:
- Immutable: every state and snapshot is a frozen dataclass
- Tagged: a view is exactly one of Authoring, Presenting, Following
- Illegal combinations are unrepresentable: the reveal flag only exists
  once a card is on screen, so Authoring has no show_back at all
- Index safety: current_index is re-derived modulo len(cards) on every
  construction, so it can never point past the end
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from ..errors import ValidationError


RECORD_FIELDS = frozenset({"cards", "current_index", "is_live"})


class ViewMode(Enum):
    """Which side of a session this view is on."""
    AUTHORING = "authoring"  # No session yet, editing drafts
    PRESENTING = "presenting"  # Created or controls the session
    FOLLOWING = "following"  # Opened a share link


@dataclass(frozen=True)
class Card:
    """A front/back pair. Order within a deck is display order."""
    front: str
    back: str

    @property
    def is_blank(self) -> bool:
        """A card is blank if either side has no visible text."""
        return not self.front.strip() or not self.back.strip()

    def to_dict(self) -> dict[str, str]:
        return {"front": self.front, "back": self.back}

    @classmethod
    def from_dict(cls, data: Any) -> Card:
        if isinstance(data, Card):
            return data
        if not isinstance(data, dict):
            raise ValidationError(f"Card must be an object, got {type(data).__name__}")
        front = data.get("front", "")
        back = data.get("back", "")
        if not isinstance(front, str) or not isinstance(back, str):
            raise ValidationError("Card front and back must be text")
        return cls(front=front, back=back)


def filter_cards(cards) -> tuple[Card, ...]:
    """Keep only cards with text on both sides, preserving order."""
    return tuple(
        card for card in (Card.from_dict(c) for c in cards)
        if not card.is_blank
    )


@dataclass(frozen=True)
class SessionSnapshot:
    """
    Complete copy of a session record at a point in time.

    The change feed always delivers whole snapshots, never diffs.
    """
    session_id: str
    cards: tuple[Card, ...]
    current_index: int = 0
    is_live: bool = False

    def __post_init__(self):
        if not self.cards:
            raise ValidationError("A session must hold at least one card")
        object.__setattr__(self, "cards", tuple(self.cards))
        object.__setattr__(self, "current_index", self.current_index % len(self.cards))

    def to_record(self) -> dict[str, Any]:
        """Serialize using the record store's column names."""
        return {
            "id": self.session_id,
            "cards": [card.to_dict() for card in self.cards],
            "current_index": self.current_index,
            "is_live": self.is_live,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> SessionSnapshot:
        """Parse a record store row."""
        try:
            session_id = record["id"]
        except KeyError:
            raise ValidationError("Session record has no id")
        return cls(
            session_id=str(session_id),
            cards=tuple(Card.from_dict(c) for c in record.get("cards", [])),
            current_index=int(record.get("current_index", 0)),
            is_live=bool(record.get("is_live", False)),
        )

    def with_fields(self, fields: dict[str, Any]) -> SessionSnapshot:
        """
        Apply a partial update, last write wins on every named field.

        Raises ValidationError on unknown fields or bad values.
        """
        unknown = set(fields) - RECORD_FIELDS
        if unknown:
            raise ValidationError(f"Unknown session fields: {sorted(unknown)}")

        cards = self.cards
        if "cards" in fields:
            cards = tuple(Card.from_dict(c) for c in fields["cards"])

        current_index = self.current_index
        if "current_index" in fields:
            if isinstance(fields["current_index"], bool) or not isinstance(fields["current_index"], int):
                raise ValidationError("current_index must be an integer")
            current_index = fields["current_index"]

        is_live = self.is_live
        if "is_live" in fields:
            if not isinstance(fields["is_live"], bool):
                raise ValidationError("is_live must be a boolean")
            is_live = fields["is_live"]

        return SessionSnapshot(
            session_id=self.session_id,
            cards=cards,
            current_index=current_index,
            is_live=is_live,
        )


# =============================================================================
# Tagged view state
# =============================================================================

@dataclass(frozen=True)
class Authoring:
    """
    No session exists yet. The user is filling in draft rows.

    Drafts may be blank; they are filtered when the session is created.
    """
    drafts: tuple[Card, ...] = field(default_factory=lambda: (Card("", ""),))

    mode = ViewMode.AUTHORING

    @property
    def session_id(self) -> None:
        return None

    def with_drafts(self, drafts) -> Authoring:
        return Authoring(drafts=tuple(drafts))


@dataclass(frozen=True)
class Deck:
    """
    Shared shape of the two session-backed states.

    Not used directly; see Presenting and Following.
    """
    session_id: str
    cards: tuple[Card, ...]
    current_index: int = 0
    is_live: bool = False
    show_back: bool = False

    def __post_init__(self):
        if not self.cards:
            raise ValidationError("A deck must hold at least one card")
        object.__setattr__(self, "cards", tuple(self.cards))
        object.__setattr__(self, "current_index", self.current_index % len(self.cards))

    @property
    def current_card(self) -> Card:
        return self.cards[self.current_index]

    @property
    def visible_text(self) -> str:
        """Text on the side of the current card that is face up."""
        card = self.current_card
        return card.back if self.show_back else card.front

    @property
    def position(self) -> str:
        return f"Card {self.current_index + 1} of {len(self.cards)}"

    def _copy_with(self, **kwargs) -> Deck:
        """Create a copy with some fields replaced."""
        return type(self)(
            session_id=kwargs.get("session_id", self.session_id),
            cards=kwargs.get("cards", self.cards),
            current_index=kwargs.get("current_index", self.current_index),
            is_live=kwargs.get("is_live", self.is_live),
            show_back=kwargs.get("show_back", self.show_back),
        )

    def with_index(self, index: int) -> Deck:
        """Move to a card. Any change of index hides the back."""
        index = index % len(self.cards)
        if index == self.current_index:
            return self
        return self._copy_with(current_index=index, show_back=False)

    def with_cards(self, cards, index: int | None = None) -> Deck:
        """Replace the card set and re-derive the index against its length."""
        cards = tuple(cards)
        if not cards:
            raise ValidationError("A deck must hold at least one card")
        target = self.current_index if index is None else index
        target = target % len(cards)
        show_back = self.show_back if target == self.current_index else False
        return self._copy_with(cards=cards, current_index=target, show_back=show_back)

    def flipped(self) -> Deck:
        return self._copy_with(show_back=not self.show_back)

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> Deck:
        return cls(
            session_id=snapshot.session_id,
            cards=snapshot.cards,
            current_index=snapshot.current_index,
            is_live=snapshot.is_live,
        )


@dataclass(frozen=True)
class Presenting(Deck):
    """This view created or controls the session. Navigation is broadcast while live."""
    mode = ViewMode.PRESENTING


@dataclass(frozen=True)
class Following(Deck):
    """This view opened a share link. Navigation is never broadcast."""
    mode = ViewMode.FOLLOWING


ViewState = Union[Authoring, Presenting, Following]
