"""
Session Store - Record store and change feed for session records.

One logical table: {id, cards, current_index, is_live}.

The store supports:
- Point lookup by id
- Insert, returning the new id
- Partial update by id (last write wins per field, no versioning)
- A change feed: "tell me about every update to this id"

Change-feed rules:
- Every delivery is the complete post-update record, never a diff
- Only updates notify; inserts do not
- Subscribers are called in subscription order
- unsubscribe() removes a listener exactly once; later calls do nothing
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable
import logging
import uuid

from ..engine_core.state import Card, SessionSnapshot
from ..errors import SessionNotFoundError, SessionWriteError, ValidationError

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[SessionSnapshot], None]


class RecordStore(ABC):
    """Point lookup, insert and partial update of session records."""

    @abstractmethod
    async def get(self, session_id: str) -> SessionSnapshot:
        """Return the record, or raise SessionNotFoundError."""

    @abstractmethod
    async def insert(self, fields: dict[str, Any]) -> SessionSnapshot:
        """Insert a record and return it with its assigned id."""

    @abstractmethod
    async def update(self, session_id: str, fields: dict[str, Any]) -> SessionSnapshot:
        """Overwrite the named fields and return the new record."""


class ChangeFeed(ABC):
    """Update notifications scoped to one session record."""

    @abstractmethod
    def subscribe(self, session_id: str, callback: SnapshotCallback) -> Subscription:
        """Call callback with the full record after every update."""

    @abstractmethod
    def _remove(self, subscription: Subscription) -> None:
        """Drop a subscription. Called once, by Subscription.unsubscribe."""


class Subscription:
    """
    Handle for one live change-feed listener.

    Must be torn down by whoever opened it.
    """

    def __init__(self, feed: ChangeFeed, session_id: str, callback: SnapshotCallback):
        self._feed = feed
        self.session_id = session_id
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._feed._remove(self)

    def deliver(self, snapshot: SessionSnapshot) -> None:
        if self.active:
            self.callback(snapshot)

    def __repr__(self) -> str:
        state = "active" if self.active else "closed"
        return f"<Subscription {self.session_id} {state}>"


class SessionStore(RecordStore, ChangeFeed):
    """
    In-process record store with a change feed.

    Records live in memory for the life of the process.
    There is no delete; a session lives as long as its share link.
    """

    def __init__(self):
        self._records: dict[str, SessionSnapshot] = {}
        self._subscriptions: dict[str, list[Subscription]] = {}

    # =========================================================================
    # Record store
    # =========================================================================

    async def get(self, session_id: str) -> SessionSnapshot:
        snapshot = self._records.get(session_id)
        if snapshot is None:
            raise SessionNotFoundError(session_id)
        return snapshot

    async def insert(self, fields: dict[str, Any]) -> SessionSnapshot:
        cards = tuple(Card.from_dict(c) for c in fields.get("cards", []))
        if not cards:
            raise ValidationError("A session must hold at least one card")

        session_id = uuid.uuid4().hex
        snapshot = SessionSnapshot(
            session_id=session_id,
            cards=cards,
        ).with_fields({k: v for k, v in fields.items() if k != "cards"})
        self._records[session_id] = snapshot

        logger.info("Created session %s with %d card(s)", session_id, len(cards))
        return snapshot

    async def update(self, session_id: str, fields: dict[str, Any]) -> SessionSnapshot:
        current = self._records.get(session_id)
        if current is None:
            raise SessionWriteError(f"Cannot update missing session {session_id}")

        snapshot = current.with_fields(fields)
        self._records[session_id] = snapshot
        logger.debug("Updated session %s: %s", session_id, sorted(fields))

        self._notify(snapshot)
        return snapshot

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._records

    # =========================================================================
    # Change feed
    # =========================================================================

    def subscribe(self, session_id: str, callback: SnapshotCallback) -> Subscription:
        subscription = Subscription(self, session_id, callback)
        self._subscriptions.setdefault(session_id, []).append(subscription)
        logger.debug("Subscribed to session %s", session_id)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        listeners = self._subscriptions.get(subscription.session_id, [])
        if subscription in listeners:
            listeners.remove(subscription)
        if not listeners:
            self._subscriptions.pop(subscription.session_id, None)
        logger.debug("Unsubscribed from session %s", subscription.session_id)

    def listener_count(self, session_id: str) -> int:
        return len(self._subscriptions.get(session_id, []))

    def _notify(self, snapshot: SessionSnapshot) -> None:
        # Copy: a callback may unsubscribe while we iterate
        for subscription in list(self._subscriptions.get(snapshot.session_id, [])):
            subscription.deliver(snapshot)
