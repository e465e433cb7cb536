"""CLI entry point for asking calendar questions from a terminal.

Useful for trying the pipeline without the frontend. For production, use the
FastAPI server (src/server.py).

Usage:
    uv run python -m src.main --token ya29....            # interactive
    uv run python -m src.main --token ya29.... --debug    # shows API calls
    GOOGLE_ACCESS_TOKEN=ya29.... uv run python -m src.main
"""

from __future__ import annotations

import argparse
import logging
import os

from dotenv import load_dotenv

from src.agent import create_calendar_agent
from src.assistant.classifier import IntentClassifier
from src.assistant.synthesizer import ResponseSynthesizer
from src.calendar_query.executor import CalendarQueryExecutor
from src.errors import AuthError, CalendarGatewayError
from src.services.google_calendar import GoogleCalendarClient

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool = False) -> None:
    """Set up logging: WARNING by default, DEBUG when --debug is passed."""
    root_level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=root_level,
        format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
    )

    if not debug:
        # Silence chatty HTTP loggers even if root is WARNING
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger("src").setLevel(logging.DEBUG if debug else logging.INFO)


def main():
    """Run the interactive question loop."""
    load_dotenv()
    parser = argparse.ArgumentParser(description="Ask questions about your Google Calendar")
    parser.add_argument(
        "--token",
        default=os.getenv("GOOGLE_ACCESS_TOKEN"),
        help="Google OAuth access token (defaults to $GOOGLE_ACCESS_TOKEN)",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    args = parser.parse_args()

    _configure_logging(debug=args.debug)

    if not args.token:
        parser.error("an access token is required (--token or GOOGLE_ACCESS_TOKEN)")

    print("\n" + "=" * 60)
    print("  Calendar Gateway - CLI")
    print("=" * 60)
    print("  Ask about your schedule and press Enter.")
    print("  Type 'quit' to exit.")
    print("=" * 60 + "\n")

    calendar_client = GoogleCalendarClient()
    agent = create_calendar_agent(
        IntentClassifier(),
        CalendarQueryExecutor(calendar_client),
        ResponseSynthesizer(),
    )

    try:
        while True:
            try:
                question = input("You: ").strip()
            except (KeyboardInterrupt, EOFError):
                print("\n\nGoodbye!")
                break

            if not question:
                continue

            if question.lower() in ("exit", "quit", "q"):
                print("\nGoodbye!")
                break

            try:
                result = agent.invoke({"query": question, "access_token": args.token})
                print(f"\nAssistant: {result['response']}\n")
            except AuthError:
                print("\nAssistant: Your access token was rejected. Please sign in again.\n")
                break
            except CalendarGatewayError as e:
                logger.debug("Query failed", exc_info=True)
                print(f"\nAssistant: Sorry, something went wrong: {e}\n")
    finally:
        calendar_client.close()


if __name__ == "__main__":
    main()
