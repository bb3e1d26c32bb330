"""Models for study-session data structures."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from wordcoach.exceptions import PersistenceError
from wordcoach.models.card import CardRecord


class QuizMode(Enum):
    """Available quiz modes."""
    FLASHCARDS = "flashcards"  # Reveal and self-assess
    MULTIPLE_CHOICE = "multiple_choice"  # Pick the translation or definition
    WRITE_TRANSLATION = "write_translation"  # Type the translation
    LISTEN_WRITE = "listen_write"  # Hear the term, type it


class SessionState(Enum):
    """Lifecycle of a study session."""
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SessionResult:
    """One presentation's outcome."""
    card_id: Optional[int]
    term: str
    correct: bool
    user_answer: Optional[str]
    timestamp: datetime


@dataclass
class AnswerResult:
    """What submit_answer hands back to the caller."""
    card: CardRecord
    result: SessionResult
    error: Optional[PersistenceError] = None

    @property
    def persisted(self) -> bool:
        return self.error is None


@dataclass
class SessionProgress:
    """Position of the learner within the running session."""
    current: int
    total: int
    percentage: int
    answered: int
    correct: int


@dataclass
class SessionSummary:
    """Terminal artifact of a study session."""
    total_words: int
    answered: int
    correct: int
    incorrect: int
    accuracy: int
    duration_seconds: int
    mode: QuizMode
    results: List[SessionResult] = field(default_factory=list)


@dataclass
class QuizPrompt:
    """A card prepared for presentation by a quiz mode."""
    mode: QuizMode
    card: CardRecord
    question: str
    expected: str
    options: List[str] = field(default_factory=list)
    expects_text: bool = False
    additional_data: Dict[str, Any] = field(default_factory=dict)
