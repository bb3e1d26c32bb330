"""Test configuration."""
import itertools
import os
import tempfile
from datetime import datetime, UTC
from pathlib import Path
from typing import Callable, Generator

import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="wordcoach-test-"))
os.environ.setdefault("CONTENT_PROVIDER", "wordnet")

# Load test environment variables
test_env_path = Path(__file__).parents[3] / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from faker import Faker
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wordcoach.config import ensure_directories
from wordcoach.models.base import Base, init_db
from wordcoach.models.card import CardRecord
from wordcoach.services.word_store import WordStore

fake = Faker()


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment before each test."""
    ensure_directories()
    yield


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Create an in-memory database shared by every connection of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db: Session) -> WordStore:
    """Create a word store instance."""
    return WordStore(db)


@pytest.fixture
def now() -> datetime:
    """A fixed point in time."""
    return datetime(2024, 3, 10, 15, 30, tzinfo=UTC)


@pytest.fixture
def make_card() -> Callable[..., CardRecord]:
    """Build card records with fake content."""
    counter = itertools.count(1)

    def _make_card(**overrides) -> CardRecord:
        values = {
            "term": f"{fake.word()}{next(counter)}",
            "translation": fake.word(),
            "definition": fake.sentence(),
            "example": fake.sentence(),
            "category": "noun",
        }
        values.update(overrides)
        return CardRecord(**values)

    return _make_card
