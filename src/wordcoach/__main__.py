"""Command line entry point."""
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from wordcoach.app import WordCoach
from wordcoach.config import ensure_directories
from wordcoach.logging_config import setup_logging
from wordcoach.models.session_models import QuizMode

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wordcoach", description="Learn vocabulary with spaced repetition")
    commands = parser.add_subparsers(dest="command", required=True)

    add = commands.add_parser("add", help="add words to the library")
    add.add_argument("terms", nargs="+")

    study = commands.add_parser("study", help="review the words that are due")
    study.add_argument("--mode", choices=[mode.value for mode in QuizMode], default=QuizMode.FLASHCARDS.value)
    study.add_argument("--limit", type=int, default=None)

    commands.add_parser("stats", help="show learning progress")
    commands.add_parser("categorize", help="fill in missing grammatical categories")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run a wordcoach command."""
    args = build_parser().parse_args(argv)

    ensure_directories()
    setup_logging("Starting wordcoach ...")

    app = WordCoach()
    app.start()
    try:
        if args.command == "add":
            report = app.add_words(args.terms)
            return 1 if report.errors else 0
        if args.command == "study":
            asyncio.run(app.study(args.mode, args.limit))
        elif args.command == "stats":
            app.stats()
        elif args.command == "categorize":
            updated = app.words.fill_missing_categories()
            print(f"Updated {updated} words")
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        app.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
