"""Tests for the study session manager."""
import asyncio
from datetime import datetime, timedelta
from typing import List
from unittest.mock import AsyncMock, Mock

import pytest

from wordcoach.exceptions import NoWordsDueError, PersistenceError, SessionStateError
from wordcoach.models.card import CardRecord
from wordcoach.models.session_models import QuizMode, SessionState
from wordcoach.services.session_manager import SessionManager
from wordcoach.services.word_store import WordStore


class Clock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def tick(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture
def clock(now: datetime) -> Clock:
    return Clock(now)


@pytest.fixture
def mock_store() -> Mock:
    """Create a store that accepts every write."""
    store = Mock()
    store.update.side_effect = lambda card_id, **fields: None
    return store


@pytest.fixture
def manager(mock_store: Mock, clock: Clock) -> SessionManager:
    """Create a session manager over the mock store."""
    return SessionManager(mock_store, clock=clock, session_size=10)


@pytest.fixture
def due_cards(make_card) -> List[CardRecord]:
    return [make_card(id=i, level=i % 3) for i in range(1, 6)]


def test_start_with_nothing_due(manager: SessionManager, make_card, now: datetime) -> None:
    """Test that starting without due words fails and stays idle."""
    cards = [make_card(id=1, next_review_at=now + timedelta(days=1))]
    with pytest.raises(NoWordsDueError):
        manager.start(cards)

    assert manager.state is SessionState.IDLE
    assert manager.current_card() is None
    assert manager.progress() is None


def test_start_with_empty_library(manager: SessionManager) -> None:
    """Test that an empty library has nothing to review."""
    with pytest.raises(NoWordsDueError):
        manager.start([])
    assert manager.state is SessionState.IDLE


def test_start(manager: SessionManager, due_cards: List[CardRecord], now: datetime) -> None:
    """Test starting a session over the due cards."""
    selected = manager.start(due_cards, limit=3, mode="multiple_choice")

    assert manager.state is SessionState.ACTIVE
    assert manager.mode is QuizMode.MULTIPLE_CHOICE
    assert manager.started_at == now
    assert len(selected) == 3
    assert [card.level for card in selected] == [0, 1, 1]
    assert manager.current_card() == selected[0]
    assert manager.results == []


def test_start_twice(manager: SessionManager, due_cards: List[CardRecord]) -> None:
    """Test that only one session runs at a time."""
    manager.start(due_cards)
    with pytest.raises(SessionStateError):
        manager.start(due_cards)


def test_start_uses_default_session_size(mock_store: Mock, clock: Clock, make_card) -> None:
    """Test that the configured session size caps the due set."""
    manager = SessionManager(mock_store, clock=clock, session_size=2)
    selected = manager.start([make_card(id=i) for i in range(5)])
    assert len(selected) == 2


def test_snapshot_is_fixed(manager: SessionManager, due_cards: List[CardRecord], make_card) -> None:
    """Test that later changes to the caller's list do not leak into the session."""
    manager.start(due_cards)
    due_cards.append(make_card(id=99))
    due_cards.pop(0)

    assert len(manager.cards) == 5
    assert all(card.id != 99 for card in manager.cards)


@pytest.mark.asyncio
async def test_submit_answer_outside_session(manager: SessionManager) -> None:
    """Test that answers need an active session."""
    with pytest.raises(SessionStateError):
        await manager.submit_answer(True)


@pytest.mark.asyncio
async def test_submit_answer(manager: SessionManager, mock_store: Mock, make_card, now: datetime) -> None:
    """Test that an answer is scheduled, persisted and logged."""
    card = make_card(id=4, level=0)
    manager.start([card])

    answer = await manager.submit_answer(True, "hola")

    assert answer.persisted
    assert answer.card.level == 1
    assert answer.card.next_review_at == now + timedelta(days=3)
    mock_store.update.assert_called_once_with(
        4,
        level=1,
        times_studied=1,
        times_correct=1,
        last_studied_at=now,
        next_review_at=now + timedelta(days=3),
    )
    assert answer.result.card_id == 4
    assert answer.result.correct is True
    assert answer.result.user_answer == "hola"
    assert answer.result.timestamp == now
    assert manager.results == [answer.result]
    assert manager.current_card() == answer.card


@pytest.mark.asyncio
async def test_submit_answer_awaits_async_store(make_card, clock: Clock) -> None:
    """Test that an async store write is awaited."""
    store = Mock()
    store.update = AsyncMock(return_value=None)
    manager = SessionManager(store, clock=clock)
    manager.start([make_card(id=1)])

    answer = await manager.submit_answer(False)

    assert answer.persisted
    store.update.assert_awaited_once()


@pytest.mark.asyncio
async def test_submit_answer_persistence_failure(
    manager: SessionManager, mock_store: Mock, make_card
) -> None:
    """Test that a failed write is reported but the session goes on."""
    mock_store.update.side_effect = PersistenceError("database is locked")
    manager.start([make_card(id=1), make_card(id=2)])

    answer = await manager.submit_answer(True)

    assert not answer.persisted
    assert isinstance(answer.error, PersistenceError)
    assert answer.card.level == 1
    assert len(manager.results) == 1
    assert manager.advance() is True
    assert manager.current_card().id == 2


@pytest.mark.asyncio
async def test_submit_answer_for_unsaved_card(manager: SessionManager, mock_store: Mock, make_card) -> None:
    """Test that a card without an ID cannot be persisted."""
    manager.start([make_card(id=None)])

    answer = await manager.submit_answer(True)

    assert isinstance(answer.error, PersistenceError)
    mock_store.update.assert_not_called()
    assert len(manager.results) == 1


def test_advance_and_last_card(manager: SessionManager, make_card) -> None:
    """Test moving through the session."""
    manager.start([make_card(id=1), make_card(id=2)])

    assert manager.is_last_card() is False
    assert manager.advance() is True
    assert manager.is_last_card() is True
    assert manager.advance() is False
    assert manager.state is SessionState.COMPLETE
    assert manager.current_card() is None
    assert manager.is_last_card() is False
    assert manager.advance() is False


def test_skip(manager: SessionManager, make_card) -> None:
    """Test that skipping moves on without logging an answer."""
    manager.start([make_card(id=1), make_card(id=2)])
    assert manager.skip() is True
    assert manager.results == []
    assert manager.current_card().id == 2


@pytest.mark.asyncio
async def test_progress(manager: SessionManager, make_card) -> None:
    """Test the progress report while studying."""
    manager.start([make_card(id=i) for i in range(1, 5)])
    await manager.submit_answer(True)
    manager.advance()
    await manager.submit_answer(False)

    progress = manager.progress()
    assert progress.current == 2
    assert progress.total == 4
    assert progress.percentage == 50
    assert progress.answered == 2
    assert progress.correct == 1


def test_end_without_session(manager: SessionManager) -> None:
    """Test that there is nothing to end while idle."""
    with pytest.raises(SessionStateError):
        manager.end()


@pytest.mark.asyncio
async def test_full_session_round_trip(
    manager: SessionManager, due_cards: List[CardRecord], clock: Clock
) -> None:
    """Test answering every card and ending the session."""
    manager.start(due_cards, mode=QuizMode.WRITE_TRANSLATION)
    outcomes = [True, False, True, True, False]

    for correct in outcomes:
        await manager.submit_answer(correct)
        clock.tick(12)
        manager.advance()
    assert manager.state is SessionState.COMPLETE

    summary = manager.end()

    assert summary.total_words == 5
    assert summary.answered == summary.total_words
    assert summary.correct == 3
    assert summary.incorrect == 2
    assert summary.correct + summary.incorrect == summary.answered
    assert summary.accuracy == 60
    assert summary.duration_seconds == 60
    assert summary.mode is QuizMode.WRITE_TRANSLATION
    assert [r.correct for r in summary.results] == outcomes
    assert manager.state is SessionState.IDLE
    assert manager.cards == []


def test_end_with_no_answers(manager: SessionManager, make_card) -> None:
    """Test ending a session early."""
    manager.start([make_card(id=1)])
    summary = manager.end()

    assert summary.answered == 0
    assert summary.accuracy == 0
    assert summary.results == []
    assert manager.state is SessionState.IDLE


@pytest.mark.asyncio
async def test_session_with_word_store(store: WordStore, clock: Clock, now: datetime) -> None:
    """Test that answers are written to the database."""
    first = store.insert(CardRecord.new("apple", "manzana", "a fruit", "I ate an apple.", "noun", now=now))
    second = store.insert(CardRecord.new("run", "correr", "move fast", "I run daily.", "verb", now=now))
    manager = SessionManager(store, clock=clock)

    manager.start(store.list_all())
    while manager.is_active():
        await manager.submit_answer(manager.current_card().term == "apple")
        manager.advance()
    manager.end()

    apple = store.get(first.id)
    run = store.get(second.id)
    assert apple.level == 1
    assert apple.times_studied == 1
    assert apple.times_correct == 1
    assert apple.next_review_at == now + timedelta(days=3)
    assert run.level == 0
    assert run.times_correct == 0
    assert run.next_review_at == now + timedelta(days=1)
    assert run.last_studied_at == now


def test_start_with_zero_limit(manager: SessionManager, due_cards: List[CardRecord]) -> None:
    """Test that a zero limit selects nothing instead of the default size."""
    with pytest.raises(NoWordsDueError):
        manager.start(due_cards, limit=0)
    assert manager.state is SessionState.IDLE


def test_zero_session_size_is_kept(mock_store: Mock, clock: Clock, due_cards: List[CardRecord]) -> None:
    """Test that an explicit session size of zero is not replaced by the setting."""
    manager = SessionManager(mock_store, clock=clock, session_size=0)
    assert manager.session_size == 0
    with pytest.raises(NoWordsDueError):
        manager.start(due_cards)


@pytest.mark.asyncio
async def test_submit_answer_while_saving(make_card, clock: Clock) -> None:
    """Test that a second answer is refused while the first is still being saved."""
    release = asyncio.Event()
    saving = asyncio.Event()

    async def update(card_id, **fields):
        saving.set()
        await release.wait()

    store = Mock()
    store.update = update
    manager = SessionManager(store, clock=clock)
    manager.start([make_card(id=1), make_card(id=2)])

    first = asyncio.create_task(manager.submit_answer(True))
    await saving.wait()
    with pytest.raises(SessionStateError):
        await manager.submit_answer(False)

    release.set()
    answer = await first
    assert answer.persisted
    assert len(manager.results) == 1

    # The guard is released once the write finishes
    manager.advance()
    assert (await manager.submit_answer(False)).persisted


@pytest.mark.asyncio
async def test_submit_answer_unexpected_store_error(make_card, clock: Clock) -> None:
    """Test that any store failure is reported as a persistence error and still logged."""
    store = Mock()
    store.update = AsyncMock(side_effect=ConnectionError("connection reset"))
    manager = SessionManager(store, clock=clock)
    manager.start([make_card(id=1)])

    answer = await manager.submit_answer(True)

    assert isinstance(answer.error, PersistenceError)
    assert "connection reset" in str(answer.error)
    assert len(manager.results) == 1
    assert manager.current_card().level == 1
