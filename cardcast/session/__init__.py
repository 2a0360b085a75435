"""
Session Module - Shared session records and the views that follow them.

A session is one published deck:
- Created once, from the drafts of an authoring view
- Addressed by an opaque id carried in the share link
- Mutated in place for the life of the link; never deleted

A view is one SessionController:
- Presents (creates, toggles live, navigates) or follows (mirrors)
- Holds exactly one change-feed subscription while it knows a session id
- Tears that subscription down when it is closed
"""

from .store import RecordStore, ChangeFeed, Subscription, SessionStore
from .link import Address, Clipboard, MemoryClipboard, ShareLink
from .controller import SessionController

__all__ = [
    "RecordStore",
    "ChangeFeed",
    "Subscription",
    "SessionStore",
    "Address",
    "Clipboard",
    "MemoryClipboard",
    "ShareLink",
    "SessionController",
]
