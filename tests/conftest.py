"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings  # noqa: E402
from flashdeck.core.cards import BasicCard, Choice, ClozeCard, ExplainCard, MultipleChoiceCard  # noqa: E402
from flashdeck.core.models import MemoryState, Rating, Review  # noqa: E402
from flashdeck.db.database import Database  # noqa: E402
from flashdeck.db.store import SqlStore  # noqa: E402
from flashdeck.study.study_service import Collaborators, StudyService  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (in-memory SQLite database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """A fixed, timezone-aware reference time (mid-afternoon UTC)."""
    return datetime(2024, 5, 10, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    """Settings with a fixed quiz seed and an in-memory database."""
    return Settings(database_url="sqlite://", quiz_seed=7, log_file=None)


@pytest.fixture
def sample_cards():
    """A small geography deck covering every card type."""
    return [
        BasicCard(id="fr", deck_id="geo", front="Capital of France?", back="Paris", position=0),
        BasicCard(id="de", deck_id="geo", front="Capital of Germany?", back="Berlin", position=1),
        ClozeCard(id="it", deck_id="geo", front="The capital of Italy is ___", back="Rome", position=2),
        MultipleChoiceCard(
            id="es",
            deck_id="geo",
            front="Capital of Spain?",
            choices=(Choice("Madrid", True), Choice("Barcelona"), Choice("Seville")),
            explanation="Madrid has been the capital since 1561.",
            position=3,
        ),
        ExplainCard(
            id="au",
            deck_id="geo",
            front="Why is Canberra the capital of Australia?",
            explanation="A compromise between Sydney and Melbourne",
            position=4,
        ),
        BasicCard(id="jp", deck_id="geo", front="Capital of Japan?", back="Tokyo", position=5),
        BasicCard(id="pt", deck_id="geo", front="Capital of Portugal?", back="Lisbon", position=6),
        BasicCard(id="at", deck_id="geo", front="Capital of Austria?", back="Vienna", position=7),
    ]


@pytest.fixture
def database():
    """Fresh in-memory SQLite database with tables created."""
    db = Database("sqlite://", echo=False)
    db.init_db()
    yield db
    db.dispose()


@pytest.fixture
def store(database):
    """Empty SQL store."""
    return SqlStore(database)


@pytest.fixture
def loaded_store(store, sample_cards):
    """SQL store holding the sample deck."""
    store.add_cards(sample_cards)
    return store


@pytest.fixture
def service(loaded_store, settings):
    """Study service over the sample deck with seeded randomness."""
    return StudyService(Collaborators.from_store(loaded_store), settings=settings, rng=random.Random(7))


@pytest.fixture
def make_state(loaded_store):
    """Write a memory state (and its review) for a card directly to the store."""

    def _make(card_id, due_at, learner_id="alice", deck_id="geo", stability=3.0, difficulty=5.0):
        reviewed_at = due_at - timedelta(days=3)
        state = MemoryState(
            learner_id=learner_id,
            card_id=card_id,
            stability=stability,
            difficulty=difficulty,
            interval_days=3,
            due_at=due_at,
            reviewed_at=reviewed_at,
        )
        review = Review(
            learner_id=learner_id,
            card_id=card_id,
            deck_id=deck_id,
            rating=Rating.GOOD,
            scheduled_for=None,
            reviewed_at=reviewed_at,
            interval_days=3,
            stability=stability,
            difficulty=difficulty,
        )
        return loaded_store.save_review(state, review, None)

    return _make
