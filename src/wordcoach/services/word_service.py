"""Service for adding words to the library."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from wordcoach import monitoring
from wordcoach.exceptions import DuplicateError, GenerationError, PersistenceError
from wordcoach.models.card import CardRecord
from wordcoach.services.content_generator import WordContent
from wordcoach.services.word_store import WordStore

logger = logging.getLogger(__name__)


class Enricher(Protocol):
    """Anything that can generate content for a new word."""

    def generate(self, word: str) -> WordContent:
        ...

    def generate_category(self, word: str) -> Optional[str]:
        ...


@dataclass
class AddWordsReport:
    """Outcome of adding several words at once."""
    added: List[CardRecord] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)


class WordService:
    """Create enriched card records and store them."""

    def __init__(
        self,
        store: WordStore,
        generator: Enricher,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the service with its store and enrichment service."""
        self.store = store
        self.generator = generator
        self.clock = clock or (lambda: datetime.now(UTC))

    def add_word(self, term: str) -> CardRecord:
        """Generate content for a new term and store it."""
        term = (term or "").strip().lower()
        if not term:
            raise ValueError("Word cannot be empty")

        # Check if word already exists
        if self.store.exists(term):
            monitoring.duplicate_words.inc()
            logger.info(f"Word already in library: {term}")
            raise DuplicateError(term)

        content = self.generator.generate(term)
        card = CardRecord.new(
            term=term,
            translation=content.translation,
            definition=content.definition,
            example=content.example,
            category=content.category,
            now=self.clock(),
        )
        try:
            stored = self.store.insert(card)
        except DuplicateError:
            monitoring.duplicate_words.inc()
            raise

        monitoring.words_added.inc()
        logger.info(f"Added word {stored.id}: {stored.term} -> {stored.translation}")
        return stored

    def add_words(self, terms: Iterable[str]) -> AddWordsReport:
        """Add several terms, collecting failures instead of stopping."""
        report = AddWordsReport()
        seen = set()
        for term in terms:
            normalized = (term or "").strip().lower()
            if not normalized:
                continue
            if normalized in seen:
                report.skipped.append(normalized)
                continue
            seen.add(normalized)
            try:
                report.added.append(self.add_word(normalized))
            except DuplicateError:
                report.skipped.append(normalized)
            except (GenerationError, PersistenceError) as e:
                logger.warning(f"Could not add word {normalized}: {e}")
                report.errors[normalized] = str(e)
        logger.info(
            f"Added {len(report.added)} words, skipped {len(report.skipped)}, failed {len(report.errors)}"
        )
        return report

    def fill_missing_categories(self) -> int:
        """Look up the grammatical category of words that have none."""
        updated = 0
        for card in self.store.missing_category():
            try:
                category = self.generator.generate_category(card.term)
            except GenerationError as e:
                logger.warning(f"Could not get category for {card.term}: {e}")
                continue
            if not category:
                continue
            self.store.update(card.id, category=category)
            updated += 1
        logger.info(f"Filled in categories for {updated} words")
        return updated
