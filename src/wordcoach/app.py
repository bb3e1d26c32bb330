"""Main application wiring."""
import logging
from typing import Callable, Iterable, Optional, Union

from sqlalchemy.orm import Session

from wordcoach.config import settings
from wordcoach.exceptions import NoWordsDueError
from wordcoach.models.base import init_db, SessionLocal
from wordcoach.models.session_models import QuizMode, SessionSummary
from wordcoach.monitoring import start_monitoring
from wordcoach.services.content_generator import get_content_generator
from wordcoach.services.quiz_modes import get_quiz_mode
from wordcoach.services.scheduler import ProgressStats, progress_stats
from wordcoach.services.session_manager import SessionManager, utc_now
from wordcoach.services.speech_service import SpeechService
from wordcoach.services.word_service import AddWordsReport, WordService
from wordcoach.services.word_store import WordStore


class WordCoach:
    """Owns the database session and the services built on it."""

    def __init__(
        self,
        db: Optional[Session] = None,
        generator=None,
        speech: Optional[SpeechService] = None,
        ask: Callable[[str], str] = input,
        say: Callable[[str], None] = print,
    ):
        """Initialize the application; collaborators default to the configured ones."""
        self.db = db
        self._generator = generator
        self.speech = speech
        self.ask = ask
        self.say = say
        self.store: Optional[WordStore] = None
        self.sessions: Optional[SessionManager] = None
        self.running = False
        self.logger = logging.getLogger(__name__)

    def start(self) -> None:
        """Open the database and build the services."""
        if self.running:
            return

        if self.db is None:
            init_db()
            self.db = SessionLocal()
            self.logger.info("Database initialized")

        if settings.monitoring.port:
            start_monitoring(settings.monitoring.port)
            self.logger.info(f"Metrics exported on port {settings.monitoring.port}")

        self.store = WordStore(self.db)
        self.sessions = SessionManager(self.store)
        if self.speech is None:
            self.speech = SpeechService()
        self.running = True

    def stop(self) -> None:
        """Close the database session."""
        if not self.running:
            return
        if self.db:
            self.db.close()
            self.logger.info("Database session closed")
        self.running = False

    @property
    def words(self) -> WordService:
        if self._generator is None:
            self._generator = get_content_generator(settings)
        return WordService(self.store, self._generator)

    def add_words(self, terms: Iterable[str]) -> AddWordsReport:
        """Add new words to the library."""
        report = self.words.add_words(terms)
        for card in report.added:
            self.say(f"+ {card.term}: {card.translation} ({card.category or '?'})")
        for term in report.skipped:
            self.say(f"= {term} is already in your library")
        for term, error in report.errors.items():
            self.say(f"! {term}: {error}")
        return report

    def stats(self) -> ProgressStats:
        """Show progress over the whole library."""
        stats = progress_stats(self.store.list_all(), utc_now())
        self.say(
            f"{stats.total} words, {stats.due} due, {stats.studied} studied, "
            f"{stats.mastered} mastered, accuracy {stats.accuracy}%"
        )
        levels = ", ".join(f"L{level}: {count}" for level, count in sorted(stats.by_level.items()))
        self.say(levels)
        return stats

    async def study(
        self,
        mode: Union[QuizMode, str] = QuizMode.FLASHCARDS,
        limit: Optional[int] = None,
    ) -> Optional[SessionSummary]:
        """Run a study session in the terminal."""
        all_cards = self.store.list_all()
        try:
            cards = self.sessions.start(all_cards, limit, mode)
        except NoWordsDueError as e:
            self.say(str(e))
            return None

        quiz = get_quiz_mode(mode, pool=all_cards, speech=self.speech)
        while self.sessions.is_active():
            card = self.sessions.current_card()
            progress = self.sessions.progress()
            prompt = quiz.present(card)

            self.say(f"\n[{progress.current}/{progress.total}] {prompt.question}")
            for index, option in enumerate(prompt.options, start=1):
                self.say(f"  {index}. {option}")
            if prompt.additional_data.get("audio"):
                self.say(f"  (audio: {prompt.additional_data['audio']})")

            answer = self.ask("> ").strip()
            if prompt.options and answer.isdigit():
                answer = int(answer) - 1
            elif quiz.type is QuizMode.FLASHCARDS:
                self.say(f"  {card.translation}: {card.definition}\n  e.g. {card.example}")
                answer = self.ask("Did you know it? [y/n] ").strip()

            try:
                correct = quiz.check_answer(prompt, answer)
            except ValueError as e:
                self.say(str(e))
                continue

            result = await self.sessions.submit_answer(correct, str(answer))
            self.say("Correct!" if correct else f"Incorrect, it was: {prompt.expected}")
            if result.error:
                self.say(f"(progress not saved: {result.error})")
            self.sessions.advance()

        summary = self.sessions.end()
        self.say(
            f"\nSession complete! {summary.correct}/{summary.total_words} correct "
            f"({summary.accuracy}%) in {summary.duration_seconds}s"
        )
        return summary
