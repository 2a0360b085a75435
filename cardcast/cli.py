"""
Cardcast CLI - Command-line interface.

Usage:
    cardcast serve [--host H] [--port P]   Run the API server
    cardcast check <cards.json>            Show which cards a session would keep
    cardcast demo <cards.json>             Walk a presenter and a follower through a session
"""

import argparse
import asyncio
import json
import sys

from .config import Settings
from .logging_config import setup_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Cardcast - Flashcard decks with live presenter sync",
        prog="cardcast",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port")

    check_parser = subparsers.add_parser("check", help="Validate a card file")
    check_parser.add_argument("cards_file", help="JSON list of {front, back}")

    demo_parser = subparsers.add_parser("demo", help="Run a local presenter/follower demo")
    demo_parser.add_argument("cards_file", help="JSON list of {front, back}")

    args = parser.parse_args(argv)
    settings = Settings.from_env()
    setup_logging(settings.log_level)

    if args.command == "serve":
        cmd_serve(args, settings)
    elif args.command == "check":
        cmd_check(args)
    elif args.command == "demo":
        asyncio.run(cmd_demo(args, settings))
    else:
        parser.print_help()
        sys.exit(1)


def load_cards(path: str) -> list:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        print(f"Error: File not found: {path}")
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: {path} is not valid JSON: {e}")
        sys.exit(1)

    if not isinstance(data, list):
        print("Error: card file must hold a JSON list")
        sys.exit(1)
    return data


def make_controller(store, address, settings: Settings):
    """A view controller whose share link uses the configured reset delay."""
    from .session import SessionController, ShareLink

    return SessionController(
        store,
        address=address,
        share_link=ShareLink(reset_after=settings.copy_reset_seconds),
    )


def cmd_serve(args, settings: Settings):
    """Run the API under uvicorn."""
    import uvicorn
    from .api import create_app

    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port)


def cmd_check(args):
    """Report which cards would survive publishing."""
    from .engine_core import filter_cards
    from .errors import ValidationError

    raw = load_cards(args.cards_file)
    try:
        cards = filter_cards(raw)
    except ValidationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Cards: {len(cards)} of {len(raw)} usable")
    for i, card in enumerate(cards, 1):
        print(f"  {i}. {card.front} / {card.back}")

    if not cards:
        print("\nNo card has both a front and a back - a session cannot be created")
        sys.exit(1)


async def cmd_demo(args, settings: Settings):
    """Create a session in memory, follow it, and step through it live."""
    from .engine_core import Direction
    from .session import Address, SessionStore

    store = SessionStore()
    presenter = make_controller(store, Address(settings.base_url), settings)

    session_id = await presenter.create_session(load_cards(args.cards_file))
    if session_id is None:
        print("Error: no card has both a front and a back")
        sys.exit(1)
    print(f"Session created: {presenter.address}")
    await presenter.copy_link()
    print(f"Link copied: {presenter.share_link.clipboard.text}")

    follower = make_controller(store, presenter.address, settings)
    await follower.start()

    await presenter.toggle_live()
    for _ in range(len(presenter.state.cards)):
        print(f"presenter {presenter.describe()}")
        print(f"follower  {follower.describe()}")
        await presenter.advance(Direction.NEXT)

    follower.close()
    presenter.close()


if __name__ == "__main__":
    main()
