"""Study session management."""
import inspect
import logging
from datetime import datetime, UTC
from typing import Any, Callable, Iterable, List, Optional, Protocol, Union

from wordcoach import monitoring
from wordcoach.config import settings
from wordcoach.exceptions import NoWordsDueError, PersistenceError, SessionStateError
from wordcoach.models.card import CardRecord
from wordcoach.models.session_models import (
    AnswerResult,
    QuizMode,
    SessionProgress,
    SessionResult,
    SessionState,
    SessionSummary,
)
from wordcoach.services.scheduler import apply_outcome, percent, select_due_cards

logger = logging.getLogger(__name__)


class CardWriter(Protocol):
    """The part of the word store a session writes to."""

    def update(self, card_id: int, **fields: Any) -> CardRecord:
        ...


def utc_now() -> datetime:
    return datetime.now(UTC)


class SessionManager:
    """Run one study session at a time over a snapshot of due cards.

    The session moves IDLE -> ACTIVE on start(), ACTIVE -> COMPLETE once
    advance() steps past the last card, and back to IDLE on end().
    """

    def __init__(
        self,
        store: CardWriter,
        clock: Callable[[], datetime] = utc_now,
        session_size: Optional[int] = None,
    ):
        """Initialize the manager with the store that persists answers."""
        self.store = store
        self.clock = clock
        self.session_size = settings.learning.session_size if session_size is None else session_size
        self._reset()

    def _reset(self) -> None:
        self.state = SessionState.IDLE
        self.cards: List[CardRecord] = []
        self.position = 0
        self.results: List[SessionResult] = []
        self.mode: Optional[QuizMode] = None
        self.started_at: Optional[datetime] = None
        self._writing = False

    def start(
        self,
        all_cards: Iterable[CardRecord],
        limit: Optional[int] = None,
        mode: Union[QuizMode, str] = QuizMode.FLASHCARDS,
    ) -> List[CardRecord]:
        """Start a session over the cards that are due now."""
        if self.state is not SessionState.IDLE:
            raise SessionStateError("A study session is already running")

        mode = QuizMode(mode)
        now = self.clock()
        due = select_due_cards(all_cards, now, self.session_size if limit is None else limit)
        if not due:
            logger.info("No words due for review")
            raise NoWordsDueError()

        self.cards = list(due)
        self.position = 0
        self.results = []
        self.mode = mode
        self.started_at = now
        self.state = SessionState.ACTIVE

        monitoring.study_sessions.labels(mode=mode.value).inc()
        logger.info(f"Started {mode.value} session with {len(self.cards)} words")
        return list(self.cards)

    def current_card(self) -> Optional[CardRecord]:
        """Get the card being presented, if any."""
        if self.state is not SessionState.ACTIVE:
            return None
        return self.cards[self.position]

    async def submit_answer(self, correct: bool, user_answer: Optional[str] = None) -> AnswerResult:
        """Record the learner's answer for the current card and persist it.

        A failed write is returned in AnswerResult.error; the answer is logged
        and the session can continue either way.
        """
        if self.state is not SessionState.ACTIVE:
            raise SessionStateError("No active study session")
        if self._writing:
            raise SessionStateError("An answer is already being saved")

        card = self.cards[self.position]
        now = self.clock()
        updated = apply_outcome(card, correct, now)

        error = None
        self._writing = True
        try:
            if card.id is None:
                raise PersistenceError(f"Word '{card.term}' has not been stored yet")
            await self._persist(card.id, updated)
        except PersistenceError as e:
            error = e
            logger.error(f"Error updating word {card.id} ({card.term}): {e}")
        except Exception as e:
            error = PersistenceError(f"Could not save word '{card.term}': {e}")
            monitoring.db_errors.labels(operation_type="update").inc()
            logger.error(f"Error updating word {card.id} ({card.term}): {e}")
        finally:
            self._writing = False

        result = SessionResult(
            card_id=card.id,
            term=card.term,
            correct=correct,
            user_answer=user_answer,
            timestamp=now,
        )
        self.results.append(result)
        self.cards[self.position] = updated

        monitoring.answers_submitted.labels(mode=self.mode.value, correct=str(correct).lower()).inc()
        logger.debug(f"Answer for {card.term}: correct={correct}, level {card.level} -> {updated.level}")
        return AnswerResult(card=updated, result=result, error=error)

    async def _persist(self, card_id: int, card: CardRecord) -> None:
        saved = self.store.update(card_id, **card.progress_fields())
        if inspect.isawaitable(saved):
            await saved

    def advance(self) -> bool:
        """Move to the next card; False once the session has run out of cards."""
        if self.state is not SessionState.ACTIVE:
            return False
        self.position += 1
        if self.position >= len(self.cards):
            self.position = len(self.cards)
            self.state = SessionState.COMPLETE
            return False
        return True

    def skip(self) -> bool:
        """Move on without answering the current card."""
        return self.advance()

    def is_last_card(self) -> bool:
        """Check whether the current card is the final one."""
        return self.state is SessionState.ACTIVE and self.position == len(self.cards) - 1

    def is_active(self) -> bool:
        """Check whether there is a card to present."""
        return self.state is SessionState.ACTIVE

    def progress(self) -> Optional[SessionProgress]:
        """Get the learner's position within the session."""
        if self.state is SessionState.IDLE:
            return None
        total = len(self.cards)
        current = min(self.position + 1, total)
        return SessionProgress(
            current=current,
            total=total,
            percentage=percent(current, total),
            answered=len(self.results),
            correct=sum(1 for r in self.results if r.correct),
        )

    def end(self) -> SessionSummary:
        """Finish the session and summarize it."""
        if self.state is SessionState.IDLE:
            raise SessionStateError("No study session to end")

        answered = len(self.results)
        correct = sum(1 for r in self.results if r.correct)
        duration = (self.clock() - self.started_at).total_seconds()

        summary = SessionSummary(
            total_words=len(self.cards),
            answered=answered,
            correct=correct,
            incorrect=answered - correct,
            accuracy=percent(correct, answered),
            duration_seconds=max(int(duration + 0.5), 0),
            mode=self.mode,
            results=list(self.results),
        )

        monitoring.session_duration.labels(mode=self.mode.value).observe(max(duration, 0))
        logger.info(
            f"Finished {self.mode.value} session: {correct}/{summary.total_words} correct "
            f"({summary.accuracy}%) in {summary.duration_seconds}s"
        )
        self._reset()
        return summary
