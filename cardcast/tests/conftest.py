"""
Pytest fixtures for Cardcast tests.
"""

import logging

import pytest

from ..engine_core.state import Card, Presenting, Following, SessionSnapshot
from ..errors import SessionWriteError
from ..session import SessionStore


class RecordingStore(SessionStore):
    """SessionStore that records every update and can be told to reject them."""

    def __init__(self):
        super().__init__()
        self.updates: list[tuple[str, dict]] = []
        self.fail_updates = False

    async def update(self, session_id, fields):
        self.updates.append((session_id, dict(fields)))
        if self.fail_updates:
            raise SessionWriteError("store unavailable")
        return await super().update(session_id, fields)


@pytest.fixture(autouse=True)
def reset_cardcast_logger():
    """Drop handlers installed by setup_logging so they don't outlive capture."""
    yield
    logger = logging.getLogger("cardcast")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def three_cards() -> tuple[Card, ...]:
    return (
        Card("hola", "hello"),
        Card("gato", "cat"),
        Card("perro", "dog"),
    )


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def presenting(three_cards) -> Presenting:
    """A presenter on card 0 with live mode off."""
    return Presenting(session_id="s1", cards=three_cards)


@pytest.fixture
def live_presenting(presenting) -> Presenting:
    return presenting._copy_with(is_live=True)


@pytest.fixture
def following(three_cards) -> Following:
    """A follower on card 1, back face showing."""
    return Following(session_id="s1", cards=three_cards, current_index=1, show_back=True)


@pytest.fixture
def make_snapshot(three_cards):
    def _make(current_index=0, is_live=True, cards=None, session_id="s1"):
        return SessionSnapshot(
            session_id=session_id,
            cards=cards if cards is not None else three_cards,
            current_index=current_index,
            is_live=is_live,
        )
    return _make
