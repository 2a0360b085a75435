"""
Reducer - Applies actions to view state.

The reducer is the single point of state change for a view.
All changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> (new_state, outbound writes)
- Validates before applying
- Returns ActionResult with success/failure, never raises
- Knows nothing about the network; writes are data, sent by the caller

Remote updates use the live-gated mirror policy:
- is_live is always adopted from the snapshot
- cards and current_index are adopted only when the snapshot is live
- a non-live snapshot freezes navigation in place

Local optimistic writes and inbound snapshots are not sequenced.
Whichever reaches the view last wins.
"""

from __future__ import annotations
from dataclasses import dataclass

from .state import Authoring, Card, Deck, Presenting, Following, ViewState, filter_cards
from .action import Action, ActionType, ActionResult, OutboundWrite


@dataclass
class Reducer:
    """
    Reducer applies actions to view state.

    Stateless - all state is in the ViewState.
    """

    def apply(self, state: ViewState, action: Action) -> ActionResult:
        """
        Apply an action to the view state.

        Returns ActionResult with new state or error.
        """
        validation_error = self._validate_action(state, action)
        if validation_error:
            return ActionResult.failure(validation_error, error_code="INVALID_ACTION")

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code="NO_HANDLER",
            )

        return handler(state, action)

    def _validate_action(self, state: ViewState, action: Action) -> str | None:
        """
        Check the action is allowed in the current mode.

        Returns error message if invalid, None if valid.
        """
        authoring_actions = {
            ActionType.ADD_DRAFT,
            ActionType.EDIT_DRAFT,
            ActionType.CREATE_SESSION,
            ActionType.SESSION_CREATED,
            ActionType.SESSION_LOADED,
        }
        if isinstance(state, Authoring):
            if action.action_type not in authoring_actions:
                return "No session - only authoring actions allowed"
            return None

        if action.action_type == ActionType.CREATE_SESSION:
            return "Session already exists"
        if action.action_type in authoring_actions:
            return "Drafts can only be edited before a session exists"

        if action.action_type == ActionType.TOGGLE_LIVE and isinstance(state, Following):
            return "Only the presenter can toggle live"

        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.ADD_DRAFT: self._handle_add_draft,
            ActionType.EDIT_DRAFT: self._handle_edit_draft,
            ActionType.CREATE_SESSION: self._handle_create_session,
            ActionType.SESSION_CREATED: self._handle_session_created,
            ActionType.SESSION_LOADED: self._handle_session_loaded,
            ActionType.ADVANCE: self._handle_advance,
            ActionType.FLIP: self._handle_flip,
            ActionType.TOGGLE_LIVE: self._handle_toggle_live,
            ActionType.ADD_CARD: self._handle_add_card,
            ActionType.TAKE_CONTROL: self._handle_take_control,
            ActionType.REMOTE_UPDATE: self._handle_remote_update,
        }
        return handlers.get(action_type)

    # =========================================================================
    # Authoring
    # =========================================================================

    def _handle_add_draft(self, state: Authoring, action: Action) -> ActionResult:
        drafts = state.drafts + (Card("", ""),)
        return ActionResult.success_with_state(
            state.with_drafts(drafts),
            changes=[f"Added draft row {len(drafts)}"],
        )

    def _handle_edit_draft(self, state: Authoring, action: Action) -> ActionResult:
        index = action.payload.index
        if index is None or not 0 <= index < len(state.drafts):
            return ActionResult.failure(f"No draft row at {index}", error_code="INVALID_INDEX")

        draft = state.drafts[index]
        edited = Card(
            front=action.payload.front if action.payload.front is not None else draft.front,
            back=action.payload.back if action.payload.back is not None else draft.back,
        )
        drafts = state.drafts[:index] + (edited,) + state.drafts[index + 1:]
        return ActionResult.success_with_state(state.with_drafts(drafts))

    def _handle_create_session(self, state: Authoring, action: Action) -> ActionResult:
        """
        Filter out blank cards and ask the store for an insert.

        The view stays in Authoring until the store returns an id.
        """
        source = action.payload.cards if action.payload.cards is not None else state.drafts
        cards = filter_cards(source)
        if not cards:
            return ActionResult.failure(
                "Add at least one card with a front and a back",
                error_code="VALIDATION_ERROR",
            )

        dropped = len(source) - len(cards)
        changes = [f"Creating session with {len(cards)} card(s)"]
        if dropped:
            changes.append(f"Skipped {dropped} blank card(s)")
        return ActionResult.success_with_state(
            state,
            writes=[OutboundWrite.insert(cards)],
            changes=changes,
        )

    def _handle_session_created(self, state: Authoring, action: Action) -> ActionResult:
        snapshot = action.payload.snapshot
        if snapshot is None:
            return ActionResult.failure("Missing snapshot", error_code="INVALID_ACTION")
        return ActionResult.success_with_state(
            Presenting.from_snapshot(snapshot),
            changes=[f"Presenting session {snapshot.session_id}"],
        )

    def _handle_session_loaded(self, state: Authoring, action: Action) -> ActionResult:
        snapshot = action.payload.snapshot
        if snapshot is None:
            return ActionResult.failure("Missing snapshot", error_code="INVALID_ACTION")
        return ActionResult.success_with_state(
            Following.from_snapshot(snapshot),
            changes=[f"Following session {snapshot.session_id}"],
        )

    # =========================================================================
    # Navigation and edits
    # =========================================================================

    def _handle_advance(self, state: Deck, action: Action) -> ActionResult:
        """
        Move one card forward or back, wrapping around.

        Applied locally straight away. Broadcast only while presenting live.
        """
        direction = action.payload.direction
        if direction is None:
            return ActionResult.failure("Missing direction", error_code="INVALID_ACTION")

        new_state = state.with_index(state.current_index + direction.value)
        # A single-card deck keeps its index but still turns face down
        new_state = new_state._copy_with(show_back=False)
        writes = []
        if isinstance(state, Presenting) and state.is_live:
            writes.append(OutboundWrite.update(
                state.session_id, current_index=new_state.current_index,
            ))
        return ActionResult.success_with_state(
            new_state,
            writes=writes,
            changes=[new_state.position],
        )

    def _handle_flip(self, state: Deck, action: Action) -> ActionResult:
        # Local presentation only, never written
        return ActionResult.success_with_state(state.flipped())

    def _handle_toggle_live(self, state: Presenting, action: Action) -> ActionResult:
        """
        Flip the live flag.

        Enabling also writes the current index so followers snap to the
        card the presenter is on, not to whatever the record last held.
        """
        is_live = not state.is_live
        new_state = state._copy_with(is_live=is_live)
        if is_live:
            write = OutboundWrite.update(
                state.session_id, is_live=True, current_index=state.current_index,
            )
        else:
            write = OutboundWrite.update(state.session_id, is_live=False)
        return ActionResult.success_with_state(
            new_state,
            writes=[write],
            changes=["Live" if is_live else "Live off"],
        )

    def _handle_add_card(self, state: Deck, action: Action) -> ActionResult:
        """Append a card. Card-set edits are always shared, live or not."""
        card = action.payload.card
        if card is None or card.is_blank:
            return ActionResult.failure(
                "A card needs both a front and a back",
                error_code="VALIDATION_ERROR",
            )

        new_state = state.with_cards(state.cards + (card,))
        return ActionResult.success_with_state(
            new_state,
            writes=[OutboundWrite.update(
                state.session_id,
                cards=[c.to_dict() for c in new_state.cards],
            )],
            changes=[f"Added card {len(new_state.cards)}"],
        )

    def _handle_take_control(self, state: Deck, action: Action) -> ActionResult:
        if isinstance(state, Presenting):
            return ActionResult.success_with_state(state)
        return ActionResult.success_with_state(
            Presenting(
                session_id=state.session_id,
                cards=state.cards,
                current_index=state.current_index,
                is_live=state.is_live,
                show_back=state.show_back,
            ),
            changes=[f"Presenting session {state.session_id}"],
        )

    # =========================================================================
    # Change feed
    # =========================================================================

    def _handle_remote_update(self, state: Deck, action: Action) -> ActionResult:
        """Apply an inbound snapshot using the live-gated mirror policy."""
        snapshot = action.payload.snapshot
        if snapshot is None:
            return ActionResult.failure("Missing snapshot", error_code="INVALID_ACTION")
        if snapshot.session_id != state.session_id:
            return ActionResult.failure(
                f"Snapshot for {snapshot.session_id} delivered to {state.session_id}",
                error_code="WRONG_SESSION",
            )

        if not snapshot.is_live:
            # Freeze in place; the reveal flag is left alone
            return ActionResult.success_with_state(
                state._copy_with(is_live=False),
            )

        new_state = state.with_cards(snapshot.cards, index=snapshot.current_index)
        new_state = new_state._copy_with(is_live=True)
        return ActionResult.success_with_state(
            new_state,
            changes=[new_state.position],
        )


def apply_action(state: ViewState, action: Action) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    return Reducer().apply(state, action)
