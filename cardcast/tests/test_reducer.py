"""
Tests for the reducer (view-state transitions).

Tests:
- Navigation arithmetic and reveal reset
- Live-gated remote updates
- Creating sessions and adding cards
- Mode restrictions
"""

import pytest

from ..engine_core.state import Authoring, Card, Presenting, Following
from ..engine_core.action import Action, Direction, WriteKind
from ..engine_core.reducer import apply_action


class TestAdvance:
    """Tests for local navigation."""

    @pytest.mark.parametrize("length", [1, 2, 3, 7])
    def test_next_and_previous_wrap(self, length):
        """next gives (i+1) mod n, previous gives (i-1+n) mod n."""
        cards = tuple(Card(f"f{i}", f"b{i}") for i in range(length))
        for i in range(length):
            state = Presenting(session_id="s1", cards=cards, current_index=i)

            forward = apply_action(state, Action.advance(Direction.NEXT))
            backward = apply_action(state, Action.advance(Direction.PREVIOUS))

            assert forward.new_state.current_index == (i + 1) % length
            assert backward.new_state.current_index == (i - 1 + length) % length

    def test_advance_hides_back(self, presenting):
        """Moving to another card always turns it face down."""
        state = presenting.flipped()
        assert state.show_back

        result = apply_action(state, Action.advance(Direction.NEXT))

        assert result.success
        assert result.new_state.show_back is False

    def test_single_card_advance_hides_back(self):
        state = Presenting(session_id="s1", cards=(Card("a", "1"),), show_back=True)

        result = apply_action(state, Action.advance(Direction.NEXT))

        assert result.new_state.current_index == 0
        assert result.new_state.show_back is False

    def test_live_presenter_writes_index(self, live_presenting):
        result = apply_action(live_presenting, Action.advance(Direction.NEXT))

        assert len(result.writes) == 1
        write = result.writes[0]
        assert write.kind == WriteKind.UPDATE
        assert write.session_id == "s1"
        assert write.fields == {"current_index": 1}

    def test_not_live_presenter_does_not_write(self, presenting):
        result = apply_action(presenting, Action.advance(Direction.NEXT))

        assert result.success
        assert result.new_state.current_index == 1
        assert result.writes == []

    def test_follower_navigates_without_writing(self, following):
        live_follower = following._copy_with(is_live=True)

        result = apply_action(live_follower, Action.advance(Direction.NEXT))

        assert result.new_state.current_index == 2
        assert result.writes == []

    def test_advance_while_authoring_fails(self):
        result = apply_action(Authoring(), Action.advance(Direction.NEXT))

        assert not result.success
        assert result.error_code == "INVALID_ACTION"


class TestFlip:

    def test_flip_is_local(self, presenting):
        result = apply_action(presenting, Action.flip())

        assert result.new_state.show_back is True
        assert result.new_state.visible_text == "hello"
        assert result.writes == []

    def test_flip_twice(self, presenting):
        state = apply_action(presenting, Action.flip()).new_state
        state = apply_action(state, Action.flip()).new_state
        assert state.show_back is False


class TestRemoteUpdate:
    """Tests for the live-gated mirror policy."""

    def test_live_snapshot_adopts_index(self, following, make_snapshot):
        result = apply_action(following, Action.remote_update(make_snapshot(current_index=2)))

        assert result.success
        assert result.new_state.current_index == 2
        assert result.new_state.is_live is True
        assert result.new_state.show_back is False

    def test_live_snapshot_adopts_cards(self, following, make_snapshot):
        cards = following.cards + (Card("casa", "house"),)

        result = apply_action(following, Action.remote_update(make_snapshot(current_index=3, cards=cards)))

        assert result.new_state.cards == cards
        assert result.new_state.current_card == Card("casa", "house")

    def test_non_live_snapshot_freezes(self, following, make_snapshot):
        """A non-live snapshot changes neither index, cards nor reveal flag."""
        live = following._copy_with(is_live=True)
        snapshot = make_snapshot(current_index=0, is_live=False, cards=(Card("x", "y"),))

        result = apply_action(live, Action.remote_update(snapshot))

        state = result.new_state
        assert state.is_live is False
        assert state.current_index == 1
        assert state.cards == following.cards
        assert state.show_back is True

    def test_same_index_keeps_reveal(self, following, make_snapshot):
        result = apply_action(following, Action.remote_update(make_snapshot(current_index=1)))

        assert result.new_state.show_back is True

    def test_shrunk_cards_rederive_index(self, make_snapshot):
        state = Following(session_id="s1", cards=(Card("a", "1"), Card("b", "2")), current_index=1)
        cards = (Card("a", "1"),)

        result = apply_action(state, Action.remote_update(make_snapshot(current_index=0, cards=cards)))

        assert result.new_state.current_index == 0
        assert result.new_state.current_card == Card("a", "1")

    def test_remote_update_never_writes(self, live_presenting, make_snapshot):
        result = apply_action(live_presenting, Action.remote_update(make_snapshot(current_index=2)))

        assert result.writes == []

    def test_wrong_session_is_rejected(self, following, make_snapshot):
        result = apply_action(following, Action.remote_update(make_snapshot(session_id="other")))

        assert not result.success
        assert result.error_code == "WRONG_SESSION"


class TestCreateSession:

    def test_filters_blank_drafts(self):
        state = Authoring(drafts=(Card("a", "1"), Card("", "2"), Card("c", "  ")))

        result = apply_action(state, Action.create_session())

        assert result.success
        assert isinstance(result.new_state, Authoring)
        assert len(result.writes) == 1
        write = result.writes[0]
        assert write.kind == WriteKind.INSERT
        assert write.fields == {
            "cards": [{"front": "a", "back": "1"}],
            "current_index": 0,
            "is_live": False,
        }

    def test_empty_after_filter_is_rejected(self):
        result = apply_action(Authoring(), Action.create_session())

        assert not result.success
        assert result.error_code == "VALIDATION_ERROR"
        assert result.writes == []

    def test_explicit_cards_override_drafts(self):
        result = apply_action(Authoring(), Action.create_session([{"front": "q", "back": "a"}]))

        assert result.writes[0].fields["cards"] == [{"front": "q", "back": "a"}]

    def test_create_twice_is_rejected(self, presenting):
        result = apply_action(presenting, Action.create_session([{"front": "q", "back": "a"}]))

        assert not result.success
        assert "already exists" in result.error

    def test_session_created_presents(self, make_snapshot):
        result = apply_action(Authoring(), Action.session_created(make_snapshot(is_live=False)))

        assert isinstance(result.new_state, Presenting)
        assert result.new_state.session_id == "s1"
        assert result.new_state.show_back is False

    def test_session_loaded_follows(self, make_snapshot):
        result = apply_action(Authoring(), Action.session_loaded(make_snapshot(current_index=2)))

        assert isinstance(result.new_state, Following)
        assert result.new_state.current_index == 2


class TestDrafts:

    def test_add_and_edit_draft(self):
        state = apply_action(Authoring(), Action.add_draft()).new_state
        state = apply_action(state, Action.edit_draft(1, front="uno")).new_state
        state = apply_action(state, Action.edit_draft(1, back="one")).new_state

        assert state.drafts == (Card("", ""), Card("uno", "one"))

    def test_edit_missing_row_fails(self):
        result = apply_action(Authoring(), Action.edit_draft(5, front="x"))

        assert not result.success
        assert result.error_code == "INVALID_INDEX"

    def test_drafts_locked_after_create(self, presenting):
        result = apply_action(presenting, Action.add_draft())

        assert not result.success


class TestAddCard:

    def test_appends_and_writes_cards(self, presenting):
        result = apply_action(presenting, Action.add_card("casa", "house"))

        assert result.success
        assert len(result.new_state.cards) == 4
        assert result.new_state.current_index == 0
        assert result.writes[0].fields == {
            "cards": [c.to_dict() for c in result.new_state.cards],
        }

    def test_writes_even_when_not_live(self, presenting):
        assert presenting.is_live is False

        result = apply_action(presenting, Action.add_card("casa", "house"))

        assert len(result.writes) == 1

    def test_follower_can_add(self, following):
        result = apply_action(following, Action.add_card("casa", "house"))

        assert result.success
        assert len(result.writes) == 1

    @pytest.mark.parametrize("front,back", [("", "house"), ("casa", ""), ("  ", "house")])
    def test_blank_card_is_rejected(self, presenting, front, back):
        result = apply_action(presenting, Action.add_card(front, back))

        assert not result.success
        assert result.error_code == "VALIDATION_ERROR"
        assert result.writes == []


class TestToggleLive:

    def test_enable_snaps_followers_to_current_card(self, presenting):
        state = presenting.with_index(2)

        result = apply_action(state, Action.toggle_live())

        assert result.new_state.is_live is True
        assert result.writes[0].fields == {"is_live": True, "current_index": 2}

    def test_disable_writes_only_flag(self, live_presenting):
        result = apply_action(live_presenting, Action.toggle_live())

        assert result.new_state.is_live is False
        assert result.writes[0].fields == {"is_live": False}

    def test_follower_cannot_toggle(self, following):
        result = apply_action(following, Action.toggle_live())

        assert not result.success

    def test_take_control_then_toggle(self, following):
        state = apply_action(following, Action.take_control()).new_state
        assert isinstance(state, Presenting)

        result = apply_action(state, Action.toggle_live())
        assert result.success


class TestRevealNeverWritten:

    def test_no_write_mentions_show_back(self, live_presenting, make_snapshot):
        state = live_presenting.flipped()
        actions = [
            Action.advance(Direction.NEXT),
            Action.toggle_live(),
            Action.add_card("casa", "house"),
            Action.flip(),
            Action.remote_update(make_snapshot(current_index=1)),
        ]
        for action in actions:
            result = apply_action(state, action)
            for write in result.writes:
                assert "show_back" not in write.fields
