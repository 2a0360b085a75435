"""
Cardcast - Flashcard decks with live presenter sync.

Authors write front/back cards, publish them as a shareable session,
and present them live. Followers who open the share link see the
presenter's current card as it changes.

- engine_core: pure view-state reconciliation
- session: record store, change feed and the per-view controller
- api: REST and WebSocket access to session records
"""

__version__ = "0.1.0"
