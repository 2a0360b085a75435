"""
HTTP record store - a RecordStore and ChangeFeed backed by the Cardcast API.

Lets a SessionController run against a remote server instead of an
in-process SessionStore. Records go over REST; each subscription holds
one WebSocket on /api/v1/sessions/{id}/ws and hands every snapshot
message to its callback. Closing the subscription closes the socket.
"""

from __future__ import annotations
from typing import Any
import asyncio
import logging

import httpx
from httpx_ws import HTTPXWSException, WebSocketDisconnect, aconnect_ws

from ..engine_core.state import SessionSnapshot
from ..errors import SessionNotFoundError, SessionWriteError, StoreError, ValidationError
from ..session.store import ChangeFeed, RecordStore, SnapshotCallback, Subscription
from .schemas import FeedMessageType

logger = logging.getLogger(__name__)

SESSIONS_PATH = "/api/v1/sessions"


class HttpSessionStore(RecordStore, ChangeFeed):
    """
    Usage:
        store = HttpSessionStore("http://localhost:8000")
        controller = SessionController(store, address=Address(url))
        await controller.start()
        ...
        controller.close()
        await store.aclose()
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._feeds: dict[Subscription, asyncio.Task] = {}
        self._closing: set[asyncio.Task] = set()

    # =========================================================================
    # Record store
    # =========================================================================

    async def get(self, session_id: str) -> SessionSnapshot:
        try:
            response = await self._client.get(f"{SESSIONS_PATH}/{session_id}")
        except httpx.HTTPError as e:
            raise StoreError(f"Lookup of {session_id} failed: {e}") from e
        if response.status_code == 404:
            raise SessionNotFoundError(session_id)
        return self._parse(response, StoreError)

    async def insert(self, fields: dict[str, Any]) -> SessionSnapshot:
        try:
            response = await self._client.post(SESSIONS_PATH, json={"cards": fields.get("cards", [])})
        except httpx.HTTPError as e:
            raise SessionWriteError(f"Insert failed: {e}") from e
        if response.status_code == 400:
            raise ValidationError(self._error_message(response))
        # The API always creates at card 0 with live off
        return self._parse(response, SessionWriteError)

    async def update(self, session_id: str, fields: dict[str, Any]) -> SessionSnapshot:
        try:
            response = await self._client.patch(f"{SESSIONS_PATH}/{session_id}", json=fields)
        except httpx.HTTPError as e:
            raise SessionWriteError(f"Update of {session_id} failed: {e}") from e
        return self._parse(response, SessionWriteError)

    # =========================================================================
    # Change feed
    # =========================================================================

    def subscribe(self, session_id: str, callback: SnapshotCallback) -> Subscription:
        """Open the session's WebSocket. Must be called from a running loop."""
        subscription = Subscription(self, session_id, callback)
        self._feeds[subscription] = asyncio.create_task(self._listen(subscription))
        logger.debug("Opening change feed for session %s", session_id)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        task = self._feeds.pop(subscription, None)
        if task is not None and not task.done():
            task.cancel()
            self._closing.add(task)
            task.add_done_callback(self._closing.discard)
        logger.debug("Closed change feed for session %s", subscription.session_id)

    @property
    def open_feeds(self) -> int:
        return len(self._feeds)

    async def _listen(self, subscription: Subscription) -> None:
        session_id = subscription.session_id
        try:
            async with aconnect_ws(f"{SESSIONS_PATH}/{session_id}/ws", self._client) as ws:
                while subscription.active:
                    self._handle_message(subscription, await ws.receive_json())
        except WebSocketDisconnect as e:
            logger.info("Change feed for %s closed by server (code %s)", session_id, e.code)
        except (HTTPXWSException, httpx.HTTPError) as e:
            logger.warning("Change feed for %s failed: %s", session_id, e)

    def _handle_message(self, subscription: Subscription, message: Any) -> None:
        if not isinstance(message, dict):
            return
        kind = message.get("type")
        if kind == FeedMessageType.SNAPSHOT.value:
            try:
                snapshot = SessionSnapshot.from_record(message.get("payload") or {})
            except ValidationError as e:
                logger.warning("Dropped malformed snapshot for %s: %s", subscription.session_id, e)
                return
            subscription.deliver(snapshot)
        elif kind == FeedMessageType.ERROR.value:
            logger.warning("Change feed for %s reported: %s", subscription.session_id, message.get("payload"))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def aclose(self) -> None:
        """Close every open feed, wait for the sockets to shut, then the client."""
        for subscription in list(self._feeds):
            subscription.unsubscribe()
        if self._closing:
            await asyncio.gather(*list(self._closing), return_exceptions=True)
        if self._owns_client:
            await self._client.aclose()

    def _parse(self, response: httpx.Response, error_class: type[StoreError]) -> SessionSnapshot:
        if response.status_code >= 400:
            raise error_class(
                f"{response.request.method} {response.request.url.path} returned "
                f"{response.status_code}: {self._error_message(response)}"
            )
        return SessionSnapshot.from_record(response.json())

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict):
            return str(body.get("error") or body.get("detail") or body)
        return str(body)
