"""
Unit tests for the review scheduler.

Tests interval inversion, clamping, relearn handling and the state
produced by a review.
"""

from datetime import datetime, timedelta, timezone

import pytest

from flashdeck.core.models import MemoryState, Rating
from flashdeck.scheduling.memory_model import MemoryEstimate
from flashdeck.scheduling.scheduler import ReviewScheduler, SchedulerConfig

NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def estimate(stability: float, is_lapse: bool = False) -> MemoryEstimate:
    return MemoryEstimate(stability=stability, difficulty=5.0, retrievability=0.9, is_lapse=is_lapse)


def existing_state(stability: float, interval_days: int, days_ago: int = 0) -> MemoryState:
    reviewed_at = NOW - timedelta(days=days_ago or interval_days)
    return MemoryState(
        learner_id="alice",
        card_id="c1",
        stability=stability,
        difficulty=5.0,
        interval_days=interval_days,
        due_at=reviewed_at + timedelta(days=interval_days),
        reviewed_at=reviewed_at,
        reps=3,
        lapses=0,
        version=4,
    )


@pytest.fixture
def scheduler():
    return ReviewScheduler()


class TestSchedule:
    """Test stability to interval conversion."""

    def test_interval_equals_stability_at_ninety_percent(self, scheduler):
        assert scheduler.schedule(estimate(12.0)) == 12

    def test_lower_target_gives_longer_interval(self, scheduler):
        """R = 0.9^(t/S) reaches 0.8 at t = S * ln(0.8) / ln(0.9)."""
        assert scheduler.schedule(estimate(10.0), target_retrievability=0.8) == 21

    def test_minimum_one_day(self, scheduler):
        assert scheduler.schedule(estimate(0.1)) == 1

    def test_maximum_interval(self, scheduler):
        assert scheduler.schedule(estimate(1e9)) == 36500

    def test_custom_maximum(self):
        scheduler = ReviewScheduler(config=SchedulerConfig(max_interval_days=365))
        assert scheduler.schedule(estimate(5000.0)) == 365

    def test_lapse_uses_relearn_interval(self, scheduler):
        assert scheduler.schedule(estimate(500.0, is_lapse=True)) == 1


class TestReview:
    """Test full review application."""

    def test_first_review_state(self, scheduler):
        result = scheduler.review("alice", "c1", None, Rating.GOOD, NOW)

        assert result.state.reps == 1
        assert result.state.lapses == 0
        assert result.state.version == 0
        assert result.scheduled_for is None
        assert result.due_at == NOW + timedelta(days=result.interval_days)

    def test_easy_first_review_much_longer_than_hard(self, scheduler):
        easy = scheduler.review("alice", "c1", None, Rating.EASY, NOW)
        hard = scheduler.review("alice", "c1", None, Rating.HARD, NOW)

        assert easy.interval_days >= 3 * hard.interval_days

    @pytest.mark.parametrize("stability", [2.0, 40.0, 900.0, 20000.0])
    def test_lapse_always_one_day(self, scheduler, stability):
        """A just-lapsed card comes back tomorrow whatever its stability was."""
        state = existing_state(stability, interval_days=max(1, int(stability)))
        result = scheduler.review("alice", "c1", state, Rating.AGAIN, NOW)

        assert result.interval_days == 1
        assert result.due_at == NOW + timedelta(days=1)
        assert result.state.lapses == 1

    @pytest.mark.parametrize("interval", [1, 3, 30, 400])
    def test_fail_never_lengthens_interval(self, scheduler, interval):
        state = existing_state(float(interval), interval)
        result = scheduler.review("alice", "c1", state, Rating.AGAIN, NOW)

        assert result.interval_days <= interval

    @pytest.mark.parametrize("rating", [Rating.HARD, Rating.GOOD, Rating.EASY])
    @pytest.mark.parametrize("days_ago", [1, 5, 60])
    def test_pass_stays_above_relearn_floor(self, scheduler, rating, days_ago):
        state = existing_state(5.0, 5, days_ago=days_ago)
        result = scheduler.review("alice", "c1", state, rating, NOW)

        assert result.interval_days >= scheduler.config.relearn_interval_days

    def test_review_carries_history(self, scheduler):
        state = existing_state(8.0, 8)
        result = scheduler.review("alice", "c1", state, Rating.GOOD, NOW)

        assert result.state.reps == 4
        assert result.state.version == 4
        assert result.scheduled_for == state.due_at
        assert result.state.reviewed_at == NOW

    def test_naive_timestamp_treated_as_utc(self, scheduler):
        naive = NOW.replace(tzinfo=None)
        result = scheduler.review("alice", "c1", None, Rating.GOOD, naive)

        assert result.state.reviewed_at == NOW
