"""
Integration Tests for the SQL store (in-memory SQLite).
"""

from dataclasses import replace
from datetime import timedelta

import pytest

from flashdeck.core.cards import MultipleChoiceCard
from flashdeck.core.errors import ConflictError, InternalError
from flashdeck.core.models import DeckScore, MemoryState, Rating, Review, ScoreWindow

pytestmark = pytest.mark.integration


class TestCards:
    def test_round_trip_all_types(self, loaded_store, sample_cards):
        for card in sample_cards:
            assert loaded_store.get_card(card.id) == card

    def test_deck_order(self, loaded_store):
        ids = [card.id for card in loaded_store.list_deck_cards("geo", limit=3)]
        assert ids == ["fr", "de", "it"]

    def test_choices_stored_as_json(self, loaded_store):
        card = loaded_store.get_card("es")

        assert isinstance(card, MultipleChoiceCard)
        assert card.correct_choice.text == "Madrid"

    def test_add_cards_replaces(self, loaded_store, sample_cards):
        loaded_store.add_cards([replace(sample_cards[0], back="Paris, France")])

        assert loaded_store.get_card("fr").back == "Paris, France"
        assert len(loaded_store.list_deck_cards("geo")) == len(sample_cards)

    def test_unknown(self, loaded_store):
        assert loaded_store.get_card("nope") is None
        assert loaded_store.deck_exists("nope") is False
        assert loaded_store.deck_exists("geo") is True


class TestReviews:
    def test_filters(self, loaded_store, make_state, now):
        make_state("fr", now - timedelta(days=1))
        make_state("de", now - timedelta(days=2))
        make_state("fr", now, learner_id="bob")

        assert loaded_store.count_reviews("alice") == 2
        assert loaded_store.count_reviews("alice", since=now - timedelta(days=4)) == 1
        assert loaded_store.count_distinct_cards("alice", "geo") == 2
        assert [r.card_id for r in loaded_store.list_reviews("alice")] == ["fr", "de"]
        assert len(loaded_store.list_reviews(card_id="fr")) == 2

    def test_due_states(self, loaded_store, make_state, now):
        make_state("fr", now - timedelta(days=1))
        make_state("de", now + timedelta(days=1))

        due = loaded_store.list_due_states("alice", "geo", now, limit=10)

        assert [state.card_id for state in due] == ["fr"]
        assert due[0].due_at == now - timedelta(days=1)
        assert len(loaded_store.list_deck_states("alice", "geo")) == 2


def session_review(card_id, session_id, seconds, when):
    state = MemoryState(
        learner_id="alice", card_id=card_id, stability=2.4, difficulty=5.0,
        interval_days=2, due_at=when + timedelta(days=2), reviewed_at=when,
    )
    review = Review(
        learner_id="alice", card_id=card_id, deck_id="geo", rating=Rating.GOOD,
        scheduled_for=None, reviewed_at=when, interval_days=2, stability=2.4,
        difficulty=5.0, session_id=session_id, time_spent_seconds=seconds,
    )
    return state, review


class TestSessionReviews:
    """Reviews saved inside a session update it in the same transaction."""

    def test_time_spent_accumulates(self, loaded_store, now):
        session = loaded_store.create_session("alice", "geo", now)
        stale = loaded_store.get_session(session.id)

        loaded_store.save_review(*session_review("fr", session.id, 5, now), None)
        loaded_store.save_review(*session_review("de", session.id, 10, now), None)

        assert loaded_store.get_session(session.id).seconds_active == 15
        assert stale.seconds_active == 0

    def test_conflict_leaves_session_untouched(self, loaded_store, now):
        session = loaded_store.create_session("alice", "geo", now)
        loaded_store.save_review(*session_review("fr", session.id, 5, now), None)

        with pytest.raises(ConflictError):
            loaded_store.save_review(*session_review("fr", session.id, 8, now), None)

        assert loaded_store.get_session(session.id).seconds_active == 5
        assert loaded_store.count_reviews("alice") == 1

    def test_distinct_cards_per_session(self, loaded_store, now):
        session = loaded_store.create_session("alice", "geo", now)
        state, review = session_review("fr", session.id, 0, now)
        saved = loaded_store.save_review(state, review, None)
        loaded_store.save_review(saved, review, saved.version)
        loaded_store.save_review(*session_review("de", None, 0, now), None)

        assert loaded_store.count_distinct_cards("alice", session_id=session.id) == 1
        assert loaded_store.count_distinct_cards("alice", "geo") == 2


class TestSessionsAndScores:
    def test_session_lifecycle(self, loaded_store, now):
        session = loaded_store.create_session("alice", "geo", now)
        session.seconds_active = 30
        session.ended_at = now + timedelta(minutes=1)
        loaded_store.update_session(session)

        stored = loaded_store.get_session(session.id)
        assert stored.seconds_active == 30
        assert stored.ended_at == now + timedelta(minutes=1)
        assert loaded_store.count_sessions("alice", "geo") == 1
        assert loaded_store.last_session("alice", "geo").id == session.id

    def test_update_missing_session(self, loaded_store, now):
        session = loaded_store.create_session("alice", "geo", now)
        session.id = "gone"

        with pytest.raises(InternalError):
            loaded_store.update_session(session)

    def test_deck_scores_upsert(self, loaded_store, now):
        score = DeckScore("alice", "geo", ScoreWindow.D30, 80.0, 4.5, 1, 10, now)
        loaded_store.save_deck_scores([score])
        score.accuracy_pct = 90.0
        loaded_store.save_deck_scores([score])

        scores = loaded_store.list_deck_scores("alice", "geo")
        assert len(scores) == 1
        assert scores[0].accuracy_pct == 90.0
        assert scores[0].window is ScoreWindow.D30
