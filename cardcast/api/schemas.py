"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between browser views and the record
store. Column names match the stored record: id, cards, current_index,
is_live. The reveal flag is view-local and has no field here.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist
- VALIDATION_ERROR: Blank cards, empty deck, or bad field values
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.state import SessionSnapshot


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class FeedMessageType(str, Enum):
    """Change-feed WebSocket message types."""
    # Client -> Server
    PING = "ping"

    # Server -> Client
    SNAPSHOT = "snapshot"
    PONG = "pong"
    ERROR = "error"


# =============================================================================
# Shared Models
# =============================================================================

class CardModel(BaseModel):
    """One front/back pair."""
    front: str
    back: str

    model_config = {"from_attributes": True}


# =============================================================================
# Requests
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Publish a deck. Cards with a blank side are dropped."""
    cards: list[CardModel] = Field(default_factory=list)


class UpdateSessionRequest(BaseModel):
    """
    Partial update. Only the fields that are set are written.

    Every write overwrites its fields unconditionally (last write wins).
    """
    cards: Optional[list[CardModel]] = None
    current_index: Optional[int] = Field(None, ge=0)
    is_live: Optional[bool] = None

    model_config = {"extra": "forbid"}

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


# =============================================================================
# Responses
# =============================================================================

class SessionResponse(BaseModel):
    """A complete session record."""
    id: str
    cards: list[CardModel]
    current_index: int = 0
    is_live: bool = False

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> "SessionResponse":
        return cls(**snapshot.to_record())


class ErrorResponse(BaseModel):
    """Error body returned with 4xx/5xx status codes."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class FeedMessage(BaseModel):
    """One message on the change-feed WebSocket."""
    type: FeedMessageType
    payload: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str = "healthy"
    service: str = "cardcast"
    version: str = "0.1.0"
