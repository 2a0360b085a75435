"""
Share links - the address that carries a session id, and copying it.

The address is read once at startup for a `session` query parameter and
rewritten in place after a session is created. Copying the address shows
a transient "copied" indicator that clears itself after a fixed delay.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit
import asyncio
import logging

logger = logging.getLogger(__name__)

SESSION_PARAM = "session"


@dataclass(frozen=True)
class Address:
    """The visible address of a view."""
    url: str

    @property
    def session_id(self) -> str | None:
        """The `session` query parameter, if present and non-empty."""
        values = parse_qs(urlsplit(self.url).query).get(SESSION_PARAM)
        if not values or not values[0]:
            return None
        return values[0]

    def with_session(self, session_id: str) -> Address:
        """Rewrite the address to carry a session id, keeping origin and path."""
        parts = urlsplit(self.url)
        query = urlencode({SESSION_PARAM: session_id})
        return Address(urlunsplit((parts.scheme, parts.netloc, parts.path or "/", query, "")))

    def __str__(self) -> str:
        return self.url


class Clipboard(ABC):
    """Somewhere text can be copied to."""

    @abstractmethod
    def write_text(self, text: str) -> None:
        ...


class MemoryClipboard(Clipboard):
    """Keeps the last copied text. Used when no system clipboard is wired in."""

    def __init__(self):
        self.text: str | None = None

    def write_text(self, text: str) -> None:
        self.text = text


class ShareLink:
    """
    Copies an address and raises `copied` for `reset_after` seconds.

    A second copy while the indicator is up restarts the timer.
    """

    def __init__(self, clipboard: Clipboard | None = None, reset_after: float = 2.0):
        self.clipboard = clipboard or MemoryClipboard()
        self.reset_after = reset_after
        self.copied = False
        self._reset_handle: asyncio.TimerHandle | None = None

    async def copy(self, address: Address | str) -> None:
        self.clipboard.write_text(str(address))
        self.copied = True
        logger.debug("Copied share link %s", address)

        self._cancel_reset()
        loop = asyncio.get_running_loop()
        self._reset_handle = loop.call_later(self.reset_after, self._reset)

    def close(self) -> None:
        self._cancel_reset()

    def _reset(self) -> None:
        self.copied = False
        self._reset_handle = None

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None
