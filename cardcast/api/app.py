"""
FastAPI Application - Session records over REST, changes over WebSocket.

Endpoints:
    POST   /api/v1/sessions          Create a session (insert, returns id)
    GET    /api/v1/sessions/{id}     Get a session record
    PATCH  /api/v1/sessions/{id}     Partial update (last write wins)
    WS     /api/v1/sessions/{id}/ws  Change feed for one session

Change feed:
    On connect the current record is sent as a snapshot message, then one
    snapshot after every update to that record. Clients may send
    {"type": "ping"} and receive {"type": "pong"}.

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union
import asyncio
import json
import logging

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..engine_core.state import SessionSnapshot
from ..logging_config import setup_logging
from .service import APIService
from .schemas import (
    CreateSessionRequest,
    UpdateSessionRequest,
    SessionResponse,
    ErrorResponse,
    ErrorCode,
    FeedMessage,
    FeedMessageType,
    HealthResponse,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.SESSION_NOT_FOUND: 404,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INTERNAL_ERROR: 500,
}


def create_app(service: Optional[APIService] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Cardcast API",
        description="""
Flashcard sessions with live presenter sync.

A presenter publishes a deck, turns live mode on and moves between cards.
Followers open the share link and subscribe to the session's change feed.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `VALIDATION_ERROR` | Blank cards, empty deck or bad field values |
| `INTERNAL_ERROR` | Unexpected server failure |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService()
    app.state.service = api_service
    app.state.settings = settings

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Render an ErrorResponse with the status its code maps to."""
        return JSONResponse(
            status_code=ERROR_STATUS.get(error.error_code, 400),
            content=error.model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        """Anything the service did not turn into an ErrorResponse is a 500."""
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return make_error_response(ErrorResponse(
            error="Internal server error",
            error_code=ErrorCode.INTERNAL_ERROR,
        ))

    def snapshot_message(snapshot: SessionSnapshot) -> dict:
        return FeedMessage(
            type=FeedMessageType.SNAPSHOT,
            payload=SessionResponse.from_snapshot(snapshot).model_dump(),
        ).model_dump(mode="json")

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={400: {"model": ErrorResponse, "description": "No card with both sides filled"}},
        tags=["Sessions"],
        summary="Create a session",
    )
    async def create_session(body: CreateSessionRequest) -> Union[SessionResponse, JSONResponse]:
        """
        Publish a deck. Blank cards are dropped; the session starts
        at card 0 with live mode off.
        """
        response = await api_service.create_session(body)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get a session",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        response = await api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    @app.patch(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Invalid field values"},
            404: {"model": ErrorResponse, "description": "Session not found"},
        },
        tags=["Sessions"],
        summary="Update session fields",
    )
    async def update_session(
        session_id: str,
        body: UpdateSessionRequest,
    ) -> Union[SessionResponse, JSONResponse]:
        """
        Overwrite any of `cards`, `current_index`, `is_live`.

        Subscribers to the change feed receive the full updated record.
        """
        response = await api_service.update_session(session_id, body)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    # =========================================================================
    # Change Feed
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def change_feed(websocket: WebSocket, session_id: str):
        """
        Stream snapshots of one session.

        Messages from server:
        - snapshot: the full record, on connect and after every update
        - pong: reply to ping
        - error: unknown session or bad message

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        response = await api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            await websocket.send_json(FeedMessage(
                type=FeedMessageType.ERROR,
                payload=response.model_dump(mode="json"),
            ).model_dump(mode="json"))
            await websocket.close(code=1008)
            return

        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        subscription = api_service.store.subscribe(
            session_id,
            lambda snapshot: loop.call_soon_threadsafe(queue.put_nowait, snapshot),
        )

        async def pump():
            while True:
                snapshot = await queue.get()
                await websocket.send_json(snapshot_message(snapshot))

        async def listen():
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": FeedMessageType.ERROR.value,
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue
                if isinstance(message, dict) and message.get("type") == FeedMessageType.PING.value:
                    await websocket.send_json({"type": FeedMessageType.PONG.value})

        tasks = []
        try:
            await websocket.send_json(FeedMessage(
                type=FeedMessageType.SNAPSHOT,
                payload=response.model_dump(),
            ).model_dump(mode="json"))

            tasks = [asyncio.create_task(pump()), asyncio.create_task(listen())]
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                error = task.exception()
                if error is not None and not isinstance(error, WebSocketDisconnect):
                    logger.warning("Change feed for %s closed: %s", session_id, error)
        except WebSocketDisconnect:
            pass
        finally:
            for task in tasks:
                task.cancel()
            subscription.unsubscribe()

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(version=__version__)

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Cardcast API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app
