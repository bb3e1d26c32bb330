"""Database models for wordcoach."""
from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, Integer, String, Text

from wordcoach.models.base import Base


class TimestampMixin:
    """Mixin for adding created_at and updated_at timestamps."""

    created_at = Column("createdAt", DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at = Column(
        "updatedAt",
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


class Word(Base, TimestampMixin):
    """A vocabulary term and its learning state.

    Column names are the persisted field names shared with other clients of
    the same table, so attributes are snake_case but columns keep their
    camelCase spelling.
    """

    __tablename__ = "words"

    id = Column(Integer, primary_key=True)
    term = Column(String, unique=True, nullable=False, index=True)
    translation = Column(String, nullable=False, default="")
    definition = Column(Text, nullable=False, default="")
    example = Column(Text, nullable=False, default="")
    category = Column(String, nullable=True)
    level = Column(Integer, nullable=False, default=0)
    times_studied = Column("timesStudied", Integer, nullable=False, default=0)
    times_correct = Column("timesCorrect", Integer, nullable=False, default=0)
    last_studied_at = Column("lastStudiedAt", DateTime(timezone=True), nullable=True)
    next_review_at = Column(
        "nextReviewAt", DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    def __repr__(self) -> str:
        return f"<Word id={self.id} term={self.term!r} level={self.level}>"
