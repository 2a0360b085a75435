"""
Error taxonomy.

- not-found: a session id does not resolve. Callers degrade to authoring.
- write-failure: an outbound update was rejected. Logged, never retried.
- validation-failure: blank cards, an empty deck, or creating twice.
  Blocked before any request is made.
"""


class CardcastError(Exception):
    """Base class for all cardcast errors."""


class ValidationError(CardcastError):
    """Input rejected before it reaches the record store."""


class StoreError(CardcastError):
    """The record store could not serve a request."""


class SessionNotFoundError(StoreError):
    """No session record exists for the given id."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id


class SessionWriteError(StoreError):
    """An insert or update was rejected by the record store."""
