"""
API Service - Business logic layer between the API and the record store.

The service:
1. Translates API requests to store calls
2. Applies the same card filtering a view applies before publishing
3. Formats records as responses

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    CreateSessionRequest,
    UpdateSessionRequest,
    SessionResponse,
    ErrorResponse,
    ErrorCode,
)
from ..engine_core.state import filter_cards
from ..errors import SessionNotFoundError, ValidationError
from ..session import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Session record API.

    Usage:
        service = APIService()

        created = await service.create_session(CreateSessionRequest(cards=[...]))
        record = await service.get_session(created.id)
        record = await service.update_session(created.id, UpdateSessionRequest(is_live=True))
    """
    store: SessionStore = field(default_factory=SessionStore)

    async def create_session(self, request: CreateSessionRequest) -> SessionResponse | ErrorResponse:
        """
        Insert a new session with the non-blank cards, not live, at card 0.
        """
        cards = filter_cards(card.model_dump() for card in request.cards)
        if not cards:
            return ErrorResponse(
                error="Add at least one card with a front and a back",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        snapshot = await self.store.insert({
            "cards": [card.to_dict() for card in cards],
            "current_index": 0,
            "is_live": False,
        })
        return SessionResponse.from_snapshot(snapshot)

    async def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        """
        Point lookup.
        """
        try:
            snapshot = await self.store.get(session_id)
        except SessionNotFoundError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.SESSION_NOT_FOUND)
        return SessionResponse.from_snapshot(snapshot)

    async def update_session(
        self,
        session_id: str,
        request: UpdateSessionRequest,
    ) -> SessionResponse | ErrorResponse:
        """
        Overwrite the fields set on the request and notify subscribers.
        """
        if session_id not in self.store:
            return ErrorResponse(
                error=f"Session {session_id} not found",
                error_code=ErrorCode.SESSION_NOT_FOUND,
            )

        fields = request.to_fields()
        if "cards" in fields:
            if any(not card["front"].strip() or not card["back"].strip() for card in fields["cards"]):
                return ErrorResponse(
                    error="Every card needs a front and a back",
                    error_code=ErrorCode.VALIDATION_ERROR,
                )

        try:
            snapshot = await self.store.update(session_id, fields)
        except ValidationError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.VALIDATION_ERROR)
        return SessionResponse.from_snapshot(snapshot)
