"""Quiz modes for presenting cards during a study session."""
import logging
import random
import unicodedata
import re
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence, Union, final

from wordcoach.config import settings
from wordcoach.exceptions import UnsupportedError
from wordcoach.models.card import CardRecord
from wordcoach.models.session_models import QuizMode, QuizPrompt
from wordcoach.services.speech_service import SpeechService

logger = logging.getLogger(__name__)

YES_ANSWERS = frozenset({"y", "yes", "1", "true", "remember"})
NO_ANSWERS = frozenset({"n", "no", "0", "false", "dont know", "study more"})

Answer = Union[str, bool, int, None]


def get_all_subclasses(cls):
    """Get all subclasses of a class."""
    all_subclasses = []
    for subclass in cls.__subclasses__():
        all_subclasses.append(subclass)
        all_subclasses.extend(get_all_subclasses(subclass))
    return all_subclasses


def normalize_text(text: str) -> str:
    """Lower-case, trim, strip accents and punctuation."""
    text = unicodedata.normalize("NFD", (text or "").lower().strip())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^\w\s]", "", text)
    return " ".join(text.split())


class BaseQuizMode(ABC):
    """Base class for all quiz modes."""

    type: QuizMode

    @abstractmethod
    def _create_prompt(self, card: CardRecord) -> QuizPrompt:
        """Build the prompt shown for a card. Must be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def check_answer(self, prompt: QuizPrompt, answer: Answer) -> bool:
        """Decide whether an answer to a prompt is correct."""
        raise NotImplementedError("Subclasses must implement this method")

    @final
    def present(self, card: CardRecord) -> QuizPrompt:
        """Prepare a card for presentation."""
        prompt = self._create_prompt(card)
        logger.debug(f"{self.type.value}: presenting card {card.id} ({card.term})")
        return prompt

    @final
    def get_mode_name(self) -> str:
        """Get the QuizMode value for this mode."""
        return self.type.value


class FlashcardsMode(BaseQuizMode):
    """Show the term, reveal the meaning, let the learner grade themselves."""
    type = QuizMode.FLASHCARDS

    def _create_prompt(self, card: CardRecord) -> QuizPrompt:
        return QuizPrompt(
            mode=self.type,
            card=card,
            question=f"Do you know this word?\n\n{card.term}",
            expected=card.translation,
            additional_data={
                "definition": card.definition,
                "example": card.example,
                "category": card.category,
            },
        )

    def check_answer(self, prompt: QuizPrompt, answer: Answer) -> bool:
        if isinstance(answer, bool):
            return answer
        normalized = normalize_text(str(answer or ""))
        if normalized in YES_ANSWERS:
            return True
        if normalized in NO_ANSWERS or not normalized:
            return False
        raise ValueError(f"Flashcard answers are yes or no, got {answer!r}")


class MultipleChoiceMode(BaseQuizMode):
    """Pick the translation or the definition among distractors."""
    type = QuizMode.MULTIPLE_CHOICE

    def __init__(
        self,
        pool: Iterable[CardRecord],
        option_count: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        self.pool = list(pool)
        self.option_count = (
            settings.learning.multiple_choice_options if option_count is None else option_count
        )
        self.rng = rng or random.Random()

    def _create_prompt(self, card: CardRecord) -> QuizPrompt:
        field = self.rng.choice(("translation", "definition"))
        correct = getattr(card, field)

        # Distractors come from the other cards, without repeats of the answer
        candidates = []
        for other in self.pool:
            value = getattr(other, field)
            if other.term == card.term or not value or value == correct or value in candidates:
                continue
            candidates.append(value)
        distractors = self.rng.sample(candidates, min(len(candidates), max(self.option_count - 1, 0)))

        options = [correct] + distractors
        self.rng.shuffle(options)

        label = "translation" if field == "translation" else "meaning"
        return QuizPrompt(
            mode=self.type,
            card=card,
            question=f"Choose the correct {label} for:\n\n{card.term}",
            expected=correct,
            options=options,
            additional_data={"field": field},
        )

    def check_answer(self, prompt: QuizPrompt, answer: Answer) -> bool:
        if isinstance(answer, int) and not isinstance(answer, bool):
            # Allow picking by index
            if not 0 <= answer < len(prompt.options):
                return False
            answer = prompt.options[answer]
        return answer == prompt.expected


class WriteTranslationMode(BaseQuizMode):
    """Type the translation of the shown term."""
    type = QuizMode.WRITE_TRANSLATION

    def __init__(self, min_partial_match_length: Optional[int] = None):
        self.min_partial_match_length = (
            settings.learning.min_partial_match_length
            if min_partial_match_length is None
            else min_partial_match_length
        )

    def _create_prompt(self, card: CardRecord) -> QuizPrompt:
        return QuizPrompt(
            mode=self.type,
            card=card,
            question=f"Write the translation of:\n\n{card.term}\n\n{card.definition}",
            expected=card.translation,
            expects_text=True,
        )

    def check_answer(self, prompt: QuizPrompt, answer: Answer) -> bool:
        given = normalize_text(str(answer or ""))
        expected = normalize_text(prompt.expected)
        if not given or not expected:
            return False
        if given == expected:
            return True
        # Partial matches count only when the shorter side is long enough
        shorter = min(given, expected, key=len)
        if len(shorter) < self.min_partial_match_length:
            return False
        return given in expected or expected in given


class ListenWriteMode(BaseQuizMode):
    """Hear the term and type it."""
    type = QuizMode.LISTEN_WRITE

    def __init__(self, speech: Optional[SpeechService] = None):
        self.speech = speech

    def _create_prompt(self, card: CardRecord) -> QuizPrompt:
        audio = None
        if self.speech is not None:
            try:
                audio = self.speech.speak(card.term)
            except UnsupportedError as e:
                logger.warning(f"No pronunciation for {card.term}: {e}")
        return QuizPrompt(
            mode=self.type,
            card=card,
            question="Listen and write the word you hear",
            expected=card.term,
            expects_text=True,
            additional_data={"audio": audio, "hint": card.translation},
        )

    def check_answer(self, prompt: QuizPrompt, answer: Answer) -> bool:
        # Spacing is not audible, so "icecream" matches "ice cream"
        given = normalize_text(str(answer or "")).replace(" ", "")
        return bool(given) and given == normalize_text(prompt.expected).replace(" ", "")


def get_quiz_mode(
    mode: Union[QuizMode, str],
    pool: Sequence[CardRecord] = (),
    speech: Optional[SpeechService] = None,
) -> BaseQuizMode:
    """Create the quiz mode implementation for a mode tag."""
    mode = QuizMode(mode)
    if mode is QuizMode.MULTIPLE_CHOICE:
        return MultipleChoiceMode(pool)
    if mode is QuizMode.LISTEN_WRITE:
        return ListenWriteMode(speech)
    for mode_class in get_all_subclasses(BaseQuizMode):
        if mode_class.type is mode:
            return mode_class()
    raise ValueError(f"Unknown quiz mode: {mode}")


def available_modes() -> List[QuizMode]:
    """List the quiz modes that have an implementation."""
    return [mode_class.type for mode_class in get_all_subclasses(BaseQuizMode)]
