"""
Unit tests for the memory model.

Covers first-review baselines, lapses, recall growth and the
stability/difficulty bounds.
"""

import math
from datetime import datetime, timezone

import pytest

from flashdeck.core.models import MemoryState, Rating
from flashdeck.scheduling.memory_model import MemoryModel, MemoryModelConfig, retrievability

REVIEWED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_state(stability: float, difficulty: float) -> MemoryState:
    return MemoryState(
        learner_id="alice",
        card_id="c1",
        stability=stability,
        difficulty=difficulty,
        interval_days=1,
        due_at=REVIEWED,
        reviewed_at=REVIEWED,
    )


@pytest.fixture
def model():
    return MemoryModel()


class TestRetrievability:
    """Test the forgetting curve."""

    def test_full_recall_at_zero_elapsed(self):
        assert retrievability(0, 5.0) == 1.0

    def test_ninety_percent_at_stability(self):
        """Stability is the number of days until recall drops to 90%."""
        assert retrievability(12.0, 12.0) == pytest.approx(0.9)

    def test_decreases_with_time(self):
        assert retrievability(1, 10) > retrievability(10, 10) > retrievability(100, 10)

    def test_zero_stability_gives_zero(self):
        assert retrievability(1, 0) == 0.0


class TestFirstReview:
    """Test cold-start baselines."""

    def test_stability_ordered_by_rating(self, model):
        """Stronger first ratings start with more stability."""
        values = [model.update(None, rating, 0).stability for rating in Rating]
        assert values == sorted(values)
        assert values[0] < values[-1]

    def test_failed_first_review_is_hard(self, model):
        again = model.update(None, Rating.AGAIN, 0)
        easy = model.update(None, Rating.EASY, 0)

        assert again.difficulty > easy.difficulty
        assert again.stability < easy.stability

    def test_first_again_is_lapse(self, model):
        assert model.update(None, Rating.AGAIN, 0).is_lapse is True
        assert model.update(None, Rating.GOOD, 0).is_lapse is False


class TestLapse:
    """Test "again" on an existing memory."""

    def test_stability_drops(self, model):
        state = make_state(stability=10.0, difficulty=5.0)
        result = model.update(state, Rating.AGAIN, 10)

        assert result.stability < state.stability
        assert result.is_lapse

    def test_harder_cards_lose_more(self, model):
        easy_card = model.update(make_state(20.0, 2.0), Rating.AGAIN, 20)
        hard_card = model.update(make_state(20.0, 9.0), Rating.AGAIN, 20)

        assert hard_card.stability < easy_card.stability

    def test_difficulty_rises(self, model):
        state = make_state(stability=10.0, difficulty=5.0)
        assert model.update(state, Rating.AGAIN, 10).difficulty > 5.0

    def test_floors_and_ceilings(self, model):
        """Repeated lapses hit the minimum stability and maximum difficulty, no further."""
        cfg = model.config
        state = make_state(stability=cfg.min_stability, difficulty=cfg.max_difficulty)
        result = model.update(state, Rating.AGAIN, 1)

        assert result.stability == cfg.min_stability
        assert result.difficulty == cfg.max_difficulty


class TestRecall:
    """Test successful reviews."""

    def test_success_never_lowers_stability(self, model):
        state = make_state(stability=10.0, difficulty=5.0)
        for rating in (Rating.HARD, Rating.GOOD, Rating.EASY):
            for elapsed in (0, 0.5, 5, 10, 50, 500):
                assert model.update(state, rating, elapsed).stability >= state.stability

    def test_growth_ordered_by_rating(self, model):
        state = make_state(stability=10.0, difficulty=5.0)
        hard = model.update(state, Rating.HARD, 10).stability
        good = model.update(state, Rating.GOOD, 10).stability
        easy = model.update(state, Rating.EASY, 10).stability

        assert hard < good < easy

    def test_difficulty_slows_growth(self, model):
        easy_card = model.update(make_state(10.0, 2.0), Rating.GOOD, 10)
        hard_card = model.update(make_state(10.0, 9.0), Rating.GOOD, 10)

        assert easy_card.stability > hard_card.stability

    def test_growth_peaks_at_ideal_timing(self, model):
        """Reviewing far ahead of or far behind schedule gains less."""
        state = make_state(stability=10.0, difficulty=5.0)
        early = model.update(state, Rating.GOOD, 1).stability
        on_time = model.update(state, Rating.GOOD, 10).stability
        late = model.update(state, Rating.GOOD, 100).stability

        assert on_time > early
        assert on_time > late

    def test_same_day_review_gains_nothing(self, model):
        state = make_state(stability=10.0, difficulty=5.0)
        assert model.update(state, Rating.EASY, 0).stability == pytest.approx(10.0)

    def test_difficulty_drifts_with_rating(self, model):
        state = make_state(stability=10.0, difficulty=5.0)

        assert model.update(state, Rating.HARD, 10).difficulty > 5.0
        assert model.update(state, Rating.EASY, 10).difficulty < 5.0
        assert model.update(state, Rating.GOOD, 10).difficulty == pytest.approx(5.0)

    def test_good_reverts_toward_equilibrium(self, model):
        high = model.update(make_state(10.0, 9.0), Rating.GOOD, 10)
        assert 5.0 < high.difficulty < 9.0


class TestBounds:
    """Outputs stay finite and inside the documented bounds."""

    @pytest.mark.parametrize("stability", [0.1, 1.0, 30.0, 1000.0, 36500.0])
    @pytest.mark.parametrize("difficulty", [1.0, 5.0, 10.0])
    @pytest.mark.parametrize("elapsed", [0, 0.01, 3, 365, 1e6])
    @pytest.mark.parametrize("rating", list(Rating))
    def test_update_within_bounds(self, model, stability, difficulty, elapsed, rating):
        cfg = model.config
        result = model.update(make_state(stability, difficulty), rating, elapsed)

        assert math.isfinite(result.stability)
        assert result.stability > 0
        assert cfg.min_stability <= result.stability <= cfg.max_stability
        assert cfg.min_difficulty <= result.difficulty <= cfg.max_difficulty

    def test_corrupt_stored_values_are_clamped(self, model):
        cfg = model.config
        for stability, difficulty in [(float("inf"), 50.0), (float("nan"), float("nan")), (-3.0, -1.0)]:
            result = model.update(make_state(stability, difficulty), Rating.GOOD, 5)
            assert cfg.min_stability <= result.stability <= cfg.max_stability
            assert cfg.min_difficulty <= result.difficulty <= cfg.max_difficulty

    def test_custom_config(self):
        config = MemoryModelConfig(max_stability=50.0)
        model = MemoryModel(config)
        result = model.update(make_state(40.0, 1.0), Rating.EASY, 40)

        assert result.stability == 50.0
