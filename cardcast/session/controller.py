"""
Session Controller - Drives the reconciler for one view.

The controller:
1. Reads the address for a session id and loads it once
2. Keeps exactly one change-feed subscription for the known session id
3. Runs every local action and inbound snapshot through the reducer
4. Sends the reducer's writes to the record store

Local changes are optimistic: state is updated before any write is sent,
and a failed write is logged, never retried and never rolled back.
Because writes and snapshots carry no sequence number, an inbound
snapshot can land after a newer local change and move the view back.
Last write wins.
"""

from __future__ import annotations
from typing import Any
import logging

from ..engine_core.action import Action, ActionResult, Direction, OutboundWrite, WriteKind
from ..engine_core.reducer import Reducer
from ..engine_core.state import Authoring, SessionSnapshot, ViewState
from ..errors import CardcastError, StoreError, ValidationError
from .link import Address, ShareLink
from .store import ChangeFeed, RecordStore, Subscription

logger = logging.getLogger(__name__)


class SessionController:
    """
    One view's reconciler loop.

    Usage:
        store = SessionStore()
        controller = SessionController(store, address=Address("http://host/?session=abc"))
        await controller.start()          # load from link, subscribe

        await controller.advance(Direction.NEXT)
        await controller.toggle_live()

        controller.close()                # tear down the subscription
    """

    def __init__(
        self,
        store: RecordStore,
        feed: ChangeFeed | None = None,
        address: Address | None = None,
        share_link: ShareLink | None = None,
    ):
        self.store = store
        if feed is None and isinstance(store, ChangeFeed):
            feed = store
        self.feed = feed
        self.address = address or Address("http://localhost:8000/")
        self.share_link = share_link or ShareLink()
        self.reducer = Reducer()
        self.state: ViewState = Authoring()
        self._subscription: Subscription | None = None
        self._closed = False

    @property
    def session_id(self) -> str | None:
        return self.state.session_id

    @property
    def subscription(self) -> Subscription | None:
        return self._subscription

    def dispatch(self, action: Action) -> ActionResult:
        """Run an action through the reducer and keep the new state."""
        result = self.reducer.apply(self.state, action)
        if result.success:
            self.state = result.new_state
            for change in result.state_changes:
                logger.debug("%s: %s", action.action_type.value, change)
        else:
            logger.info("Rejected %s: %s", action.action_type.value, result.error)
        return result

    # =========================================================================
    # Loading and creating
    # =========================================================================

    async def start(self) -> SessionSnapshot | None:
        """Load the session named in the address, if there is one."""
        session_id = self.address.session_id
        if not session_id:
            return None
        return await self.load_from_link(session_id)

    async def load_from_link(self, session_id: str) -> SessionSnapshot | None:
        """
        Fetch a session once and follow it.

        An id that does not resolve leaves the view authoring. No retry.
        """
        try:
            snapshot = await self.store.get(session_id)
        except StoreError as e:
            logger.info("Could not load session %s: %s", session_id, e)
            return None

        result = self.dispatch(Action.session_loaded(snapshot))
        if not result.success:
            return None
        self._resubscribe()
        return snapshot

    async def create_session(self, cards=None) -> str | None:
        """
        Publish the drafts (or the given cards) as a new session.

        Returns the new id, or None if nothing valid was left to publish
        or the store rejected the insert.
        """
        try:
            action = Action.create_session(cards)
        except ValidationError as e:
            logger.info("Rejected create_session: %s", e)
            return None

        result = self.dispatch(action)
        if not result.success:
            return None

        insert = result.writes[0]
        try:
            snapshot = await self.store.insert(insert.fields)
        except CardcastError as e:
            logger.warning("Could not create session: %s", e)
            return None

        self.dispatch(Action.session_created(snapshot))
        self.address = self.address.with_session(snapshot.session_id)
        self._resubscribe()
        return snapshot.session_id

    # =========================================================================
    # Local actions
    # =========================================================================

    def add_draft(self) -> ActionResult:
        return self.dispatch(Action.add_draft())

    def edit_draft(self, index: int, front: str | None = None, back: str | None = None) -> ActionResult:
        return self.dispatch(Action.edit_draft(index, front=front, back=back))

    def flip(self) -> ActionResult:
        return self.dispatch(Action.flip())

    def take_control(self) -> ActionResult:
        return self.dispatch(Action.take_control())

    async def advance(self, direction: Direction = Direction.NEXT) -> ActionResult:
        return await self._run(Action.advance(direction))

    async def toggle_live(self) -> ActionResult:
        return await self._run(Action.toggle_live())

    async def add_card(self, front: str, back: str) -> ActionResult:
        return await self._run(Action.add_card(front, back))

    async def copy_link(self) -> None:
        await self.share_link.copy(self.address)

    # =========================================================================
    # Change feed
    # =========================================================================

    def on_remote_update(self, snapshot: SessionSnapshot) -> ActionResult:
        """Apply a snapshot delivered by the change feed."""
        return self.dispatch(Action.remote_update(snapshot))

    def close(self) -> None:
        """Tear down the subscription and any pending timers."""
        if self._closed:
            return
        self._closed = True
        self._drop_subscription()
        self.share_link.close()

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _run(self, action: Action) -> ActionResult:
        result = self.dispatch(action)
        if result.success:
            await self._send(result.writes)
        return result

    async def _send(self, writes: list[OutboundWrite]) -> None:
        for write in writes:
            if write.kind != WriteKind.UPDATE:
                continue
            try:
                await self.store.update(write.session_id, write.fields)
            except CardcastError as e:
                logger.warning(
                    "Write to session %s failed (%s): %s",
                    write.session_id, ", ".join(sorted(write.fields)), e,
                )

    def _resubscribe(self) -> None:
        """Keep exactly one subscription, for the current session id."""
        session_id = self.session_id
        current = self._subscription
        if current is not None and current.active and current.session_id == session_id:
            return

        self._drop_subscription()
        if session_id and self.feed is not None and not self._closed:
            self._subscription = self.feed.subscribe(session_id, self._on_snapshot)

    def _drop_subscription(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_snapshot(self, snapshot: SessionSnapshot) -> None:
        self.on_remote_update(snapshot)

    def describe(self) -> dict[str, Any]:
        """Plain summary of the view, for logging and the CLI."""
        state = self.state
        summary: dict[str, Any] = {"mode": state.mode.value, "address": str(self.address)}
        if not isinstance(state, Authoring):
            summary.update(
                session_id=state.session_id,
                position=state.position,
                is_live=state.is_live,
                text=state.visible_text,
            )
        else:
            summary["drafts"] = len(state.drafts)
        return summary
