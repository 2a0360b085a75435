"""
API Module - Session records for browser views.

Exposes the record store via REST and its change feed via WebSocket.
A view:
1. Creates a session from its drafts
2. Reads a session by the id in its share link
3. Writes navigation, live flag and card-set edits
4. Subscribes to snapshots of the session it shows

No accounts; anyone holding a session id can read and write it.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    UpdateSessionRequest,
    # Responses
    SessionResponse,
    ErrorResponse,
    HealthResponse,
    FeedMessage,
    # Shared
    CardModel,
    ErrorCode,
    FeedMessageType,
)
from .service import APIService
from .client import HttpSessionStore
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "UpdateSessionRequest",
    # Responses
    "SessionResponse",
    "ErrorResponse",
    "HealthResponse",
    "FeedMessage",
    # Shared
    "CardModel",
    "ErrorCode",
    "FeedMessageType",
    # Service
    "APIService",
    "HttpSessionStore",
    "create_app",
]
