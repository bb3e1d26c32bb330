"""Spaced-repetition scheduling.

Every card carries a mastery level from 0 (new) to 5 (mastered). A correct
answer moves it up one level, a wrong answer down one, and the next review
is scheduled a fixed number of days ahead depending on the new level.

All functions here are pure: they take the current time explicitly and
return new records instead of mutating their input.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, UTC
from typing import Dict, Iterable, List

from wordcoach.models.card import CardRecord

MIN_LEVEL = 0
MAX_LEVEL = 5

# Days until the next review, by mastery level
REVIEW_INTERVALS = {
    0: 1,
    1: 3,
    2: 7,
    3: 14,
    4: 30,
    5: 90,
}
DEFAULT_INTERVAL = 1

# Never-studied cards sort before studied ones of the same level
_NEVER = datetime.min.replace(tzinfo=UTC)


@dataclass
class ProgressStats:
    """Aggregate progress over a word collection."""
    total: int = 0
    due: int = 0
    by_level: Dict[int, int] = field(
        default_factory=lambda: {level: 0 for level in range(MIN_LEVEL, MAX_LEVEL + 1)}
    )
    studied: int = 0
    accuracy: int = 0

    @property
    def mastered(self) -> int:
        return self.by_level.get(MAX_LEVEL, 0)


def percent(part: int, whole: int) -> int:
    """Integer percentage rounded half up; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return int(part * 100 / whole + 0.5)


def is_due(card: CardRecord, now: datetime) -> bool:
    """Check whether a card should be reviewed at the given time."""
    return card.next_review_at is None or card.next_review_at <= now


def review_interval(level: int) -> int:
    """Get the number of days between reviews for a level."""
    return REVIEW_INTERVALS.get(level, DEFAULT_INTERVAL)


def next_review_date(level: int, now: datetime) -> datetime:
    """Calculate the next review date for a level.

    Whole days are added so the time of day is the same as ``now``.
    """
    return now + timedelta(days=review_interval(level))


def next_level(level: int, correct: bool) -> int:
    """Move one step up or down the mastery scale."""
    if correct:
        return min(level + 1, MAX_LEVEL)
    return max(level - 1, MIN_LEVEL)


def apply_outcome(card: CardRecord, correct: bool, now: datetime) -> CardRecord:
    """Return the card's state after one presentation."""
    level = next_level(card.level, correct)
    return replace(
        card,
        level=level,
        times_studied=card.times_studied + 1,
        times_correct=card.times_correct + (1 if correct else 0),
        last_studied_at=now,
        next_review_at=next_review_date(level, now),
    )


def _review_order(card: CardRecord):
    return card.level, card.last_studied_at or _NEVER


def select_due_cards(cards: Iterable[CardRecord], now: datetime, limit: int = 10) -> List[CardRecord]:
    """Pick the cards to study, hardest and longest-unseen first."""
    due = [card for card in cards if is_due(card, now)]
    due.sort(key=_review_order)
    return due[:max(limit, 0)]


def progress_stats(cards: Iterable[CardRecord], now: datetime) -> ProgressStats:
    """Compute progress statistics for a collection of cards."""
    stats = ProgressStats()
    attempts = 0
    correct = 0

    for card in cards:
        stats.total += 1
        stats.by_level[card.level] = stats.by_level.get(card.level, 0) + 1
        if is_due(card, now):
            stats.due += 1
        if card.times_studied > 0:
            stats.studied += 1
        attempts += card.times_studied
        correct += card.times_correct

    stats.accuracy = percent(correct, attempts)
    return stats
