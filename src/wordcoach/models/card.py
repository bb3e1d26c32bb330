"""Card record: the learning state of one vocabulary term."""
from dataclasses import dataclass, asdict
from datetime import datetime, UTC
from typing import Any, Dict, Optional

# Persisted field names, keyed by attribute name
PERSISTED_NAMES = {
    "id": "id",
    "term": "term",
    "translation": "translation",
    "definition": "definition",
    "example": "example",
    "category": "category",
    "level": "level",
    "times_studied": "timesStudied",
    "times_correct": "timesCorrect",
    "last_studied_at": "lastStudiedAt",
    "next_review_at": "nextReviewAt",
    "created_at": "createdAt",
}

# Fields rewritten by the scheduler after each presentation
PROGRESS_FIELDS = ("level", "times_studied", "times_correct", "last_studied_at", "next_review_at")

_DATETIME_FIELDS = ("last_studied_at", "next_review_at", "created_at")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return value as a timezone-aware UTC datetime.

    SQLite drops tzinfo on the way back, so naive values are taken as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True)
class CardRecord:
    """Immutable snapshot of a word's learning state."""
    term: str
    translation: str = ""
    definition: str = ""
    example: str = ""
    category: Optional[str] = None
    level: int = 0
    times_studied: int = 0
    times_correct: int = 0
    last_studied_at: Optional[datetime] = None
    next_review_at: Optional[datetime] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def new(
        cls,
        term: str,
        translation: str,
        definition: str,
        example: str,
        category: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "CardRecord":
        """Create a never-studied record that is due immediately."""
        now = now or datetime.now(UTC)
        return cls(
            term=term.strip().lower(),
            translation=translation,
            definition=definition,
            example=example,
            category=category,
            level=0,
            times_studied=0,
            times_correct=0,
            last_studied_at=None,
            next_review_at=now,
            created_at=now,
        )

    @classmethod
    def from_row(cls, row: Any) -> "CardRecord":
        """Build a record from an ORM row (or any object with the same attributes)."""
        values = {name: getattr(row, name) for name in PERSISTED_NAMES}
        for name in _DATETIME_FIELDS:
            values[name] = as_utc(values[name])
        return cls(**values)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CardRecord":
        """Build a record from a dict keyed by persisted field names."""
        values = {}
        for name, persisted in PERSISTED_NAMES.items():
            if persisted in data:
                values[name] = data[persisted]
        for name in _DATETIME_FIELDS:
            value = values.get(name)
            if isinstance(value, str):
                value = datetime.fromisoformat(value)
            values[name] = as_utc(value)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using persisted field names and ISO timestamps."""
        data = {}
        for name, value in asdict(self).items():
            if isinstance(value, datetime):
                value = value.isoformat()
            data[PERSISTED_NAMES[name]] = value
        return data

    def progress_fields(self) -> Dict[str, Any]:
        """Fields the scheduler changes, ready for WordStore.update()."""
        return {name: getattr(self, name) for name in PROGRESS_FIELDS}
