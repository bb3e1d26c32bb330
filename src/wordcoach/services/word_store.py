"""Word store: durable storage of card records."""
import logging
from typing import List, Optional, Union

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from wordcoach import monitoring
from wordcoach.exceptions import DuplicateError, PersistenceError
from wordcoach.models.card import CardRecord, PERSISTED_NAMES
from wordcoach.models.models import Word

logger = logging.getLogger(__name__)

# Fields a caller may change through update(); id and created_at are store-owned
UPDATABLE_FIELDS = frozenset(PERSISTED_NAMES) - {"id", "created_at"}


class WordStore:
    """SQLAlchemy-backed store for card records."""

    def __init__(self, db: Session):
        """Initialize the store with a database session."""
        self.db = db

    def _get_row(self, card_id: int) -> Optional[Word]:
        return self.db.query(Word).filter(Word.id == card_id).first()

    def _rollback(self, operation: str, error: Exception) -> None:
        self.db.rollback()
        monitoring.db_errors.labels(operation_type=operation).inc()
        logger.error(f"Word store {operation} failed: {error}")

    def list_all(self) -> List[CardRecord]:
        """Get every record, most recently added first."""
        rows = self.db.query(Word).order_by(Word.created_at.desc(), Word.id.desc()).all()
        return [CardRecord.from_row(row) for row in rows]

    def get(self, card_id: int) -> Optional[CardRecord]:
        """Get a record by its ID."""
        row = self._get_row(card_id)
        return CardRecord.from_row(row) if row else None

    def exists(self, term: str) -> bool:
        """Check whether a term is already stored (case-insensitive)."""
        normalized = term.strip().lower()
        return (
            self.db.query(Word.id)
            .filter(func.lower(Word.term) == normalized)
            .first()
        ) is not None

    def insert(self, card: CardRecord) -> CardRecord:
        """Store a new record and return it with its assigned ID."""
        if self.exists(card.term):
            raise DuplicateError(card.term)

        values = {name: getattr(card, name) for name in UPDATABLE_FIELDS}
        row = Word(**values)
        if card.created_at is not None:
            row.created_at = card.created_at
        try:
            self.db.add(row)
            self.db.commit()
        except IntegrityError as e:
            # Another writer stored the same term between the check and the insert
            self._rollback("insert", e)
            raise DuplicateError(card.term) from e
        except SQLAlchemyError as e:
            self._rollback("insert", e)
            raise PersistenceError(f"Could not save '{card.term}': {e}") from e

        self.db.refresh(row)
        logger.info(f"Stored word {row.id}: {row.term}")
        return CardRecord.from_row(row)

    def update(self, card_id: int, **fields) -> CardRecord:
        """Update some fields of a record and return the stored result."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown word fields: {', '.join(sorted(unknown))}")

        try:
            row = self._get_row(card_id)
            if row is None:
                raise PersistenceError(f"Word {card_id} not found")
            for key, value in fields.items():
                setattr(row, key, value)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self._rollback("update", e)
            raise PersistenceError(f"Could not update word {card_id}: {e}") from e

        logger.debug(f"Updated word {card_id}: {sorted(fields)}")
        return CardRecord.from_row(row)

    def delete(self, card_id: int) -> None:
        """Delete a record."""
        try:
            row = self._get_row(card_id)
            if row is None:
                raise PersistenceError(f"Word {card_id} not found")
            self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError as e:
            self._rollback("delete", e)
            raise PersistenceError(f"Could not delete word {card_id}: {e}") from e
        logger.info(f"Deleted word {card_id}")

    def count(self) -> int:
        """Get the number of stored records."""
        return self.db.query(Word).count()

    def search(self, query: str) -> List[CardRecord]:
        """Search records by term or translation."""
        pattern = f"%{query.strip()}%"
        rows = (
            self.db.query(Word)
            .filter(
                or_(
                    Word.term.ilike(pattern),
                    Word.translation.ilike(pattern),
                )
            )
            .order_by(Word.created_at.desc(), Word.id.desc())
            .all()
        )
        return [CardRecord.from_row(row) for row in rows]

    def filter_by_category(self, category: Optional[str]) -> List[CardRecord]:
        """Get records of one grammatical category ("all" or None for every record)."""
        query = self.db.query(Word)
        if category and category != "all":
            query = query.filter(Word.category == category)
        rows = query.order_by(Word.created_at.desc(), Word.id.desc()).all()
        return [CardRecord.from_row(row) for row in rows]

    def filter_by_level(self, level: Union[int, str, None]) -> List[CardRecord]:
        """Get records at one mastery level ("all" or None for every record)."""
        query = self.db.query(Word)
        if level is not None and level != "all":
            query = query.filter(Word.level == int(level))
        rows = query.order_by(Word.created_at.desc(), Word.id.desc()).all()
        return [CardRecord.from_row(row) for row in rows]

    def missing_category(self) -> List[CardRecord]:
        """Get records that have no grammatical category yet."""
        rows = (
            self.db.query(Word)
            .filter(or_(Word.category.is_(None), Word.category == ""))
            .order_by(Word.id)
            .all()
        )
        return [CardRecord.from_row(row) for row in rows]
