"""
Repository protocols consumed by the review engine.

The engine never talks to a database directly; it reads and writes through
these narrow interfaces. ``flashdeck.db.store.SqlStore`` implements all of
them.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from flashdeck.core.cards import Card
from flashdeck.core.models import DeckScore, MemoryState, Review, StudySession


class CardStore(Protocol):
    """Read access to cards by id and by deck."""

    def get_card(self, card_id: str) -> Card | None: ...

    def deck_exists(self, deck_id: str) -> bool: ...

    def list_deck_cards(self, deck_id: str, limit: int | None = None) -> list[Card]:
        """Cards of a deck in deck order (position, then id)."""
        ...


class MemoryStateStore(Protocol):
    """Current memory state keyed by (learner, card)."""

    def get_state(self, learner_id: str, card_id: str) -> MemoryState | None: ...

    def list_deck_states(self, learner_id: str, deck_id: str) -> list[MemoryState]: ...

    def list_due_states(
        self, learner_id: str, deck_id: str, now: datetime, limit: int
    ) -> list[MemoryState]:
        """States due at ``now``, earliest due first."""
        ...

    def save_review(self, state: MemoryState, review: Review, expected_version: int | None) -> MemoryState:
        """
        Replace the memory state and append the review in one transaction.

        ``expected_version`` is the version that was read (None when no state
        existed). Raises ConflictError when the stored version has moved on.
        When the review belongs to a session, its time spent is added to the
        session in the same transaction. Returns the state with its new version.
        """
        ...


class ReviewStore(Protocol):
    """Append-only review log."""

    def list_reviews(
        self,
        learner_id: str | None = None,
        *,
        deck_id: str | None = None,
        card_id: str | None = None,
        session_id: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[Review]:
        """Reviews matching every given filter, most recent first."""
        ...

    def count_reviews(
        self,
        learner_id: str,
        *,
        deck_id: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> int: ...

    def count_distinct_cards(
        self,
        learner_id: str,
        deck_id: str | None = None,
        *,
        session_id: str | None = None,
    ) -> int: ...


class SessionStore(Protocol):
    """Study session create/read/update."""

    def create_session(self, learner_id: str, deck_id: str, started_at: datetime) -> StudySession: ...

    def get_session(self, session_id: str) -> StudySession | None: ...

    def update_session(self, session: StudySession) -> StudySession: ...

    def count_sessions(self, learner_id: str, deck_id: str) -> int: ...

    def last_session(self, learner_id: str, deck_id: str) -> StudySession | None: ...


class DeckScoreStore(Protocol):
    """Persisted deck score windows."""

    def save_deck_scores(self, scores: Sequence[DeckScore]) -> None: ...

    def list_deck_scores(self, learner_id: str, deck_id: str) -> list[DeckScore]: ...
