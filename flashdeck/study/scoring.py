"""
Score Aggregator - weighted success rates and letter grades.

Weights: easy 1.0, good 1.0, hard 0.7, again 0.0. Sums are exact
(Decimal) so band edges such as 0.95 or 0.50 compare correctly.

Letter bands, lower edge inclusive:
    A+ .95  A .90  A- .85  B+ .80  B .75  B- .70
    C+ .65  C .60  C- .55  D+ .50  D .45  D- .40  F below

Also computes the d7/d30/d90 deck score windows and per-card difficulty
labels from the review log.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from flashdeck.core.models import DeckScore, Rating, Review, ScoreWindow, as_utc

DEFAULT_WEIGHTS: dict[Rating, Decimal] = {
    Rating.EASY: Decimal("1.0"),
    Rating.GOOD: Decimal("1.0"),
    Rating.HARD: Decimal("0.7"),
    Rating.AGAIN: Decimal("0.0"),
}

DEFAULT_BANDS: tuple[tuple[Decimal, str], ...] = (
    (Decimal("0.95"), "A+"),
    (Decimal("0.90"), "A"),
    (Decimal("0.85"), "A-"),
    (Decimal("0.80"), "B+"),
    (Decimal("0.75"), "B"),
    (Decimal("0.70"), "B-"),
    (Decimal("0.65"), "C+"),
    (Decimal("0.60"), "C"),
    (Decimal("0.55"), "C-"),
    (Decimal("0.50"), "D+"),
    (Decimal("0.45"), "D"),
    (Decimal("0.40"), "D-"),
)

FAILING_GRADE = "F"

# Ordered worst to best, for comparing letters
GRADE_ORDER = [FAILING_GRADE] + [label for _, label in reversed(DEFAULT_BANDS)]


@dataclass
class GradeConfig:
    """Weights, bands and minimum sample sizes."""

    weights: dict[Rating, Decimal] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    bands: tuple[tuple[Decimal, str], ...] = DEFAULT_BANDS
    session_minimum: int = 1
    deck_minimum: int = 10
    deck_recent_reviews: int = 30

    @classmethod
    def from_settings(cls, settings) -> GradeConfig:
        return cls(
            session_minimum=settings.session_minimum_reviews,
            deck_minimum=settings.deck_minimum_reviews,
            deck_recent_reviews=settings.deck_recent_reviews,
        )


@dataclass(frozen=True)
class GradeResult:
    """A weighted success rate with its letter grade."""

    success_rate: float
    letter_grade: str
    count: int


class ScoreAggregator:
    """Turns ratings into a success rate and letter grade."""

    def __init__(self, config: GradeConfig | None = None):
        self.config = config or GradeConfig()

    def success_rate(self, ratings: Sequence[Rating]) -> Decimal | None:
        if not ratings:
            return None
        total = sum((self.config.weights[rating] for rating in ratings), Decimal(0))
        return total / len(ratings)

    def letter_for(self, rate: Decimal | float) -> str:
        """Letter grade for a rate; the first band whose edge is reached wins."""
        rate = Decimal(str(rate)) if isinstance(rate, float) else rate
        for edge, label in self.config.bands:
            if rate >= edge:
                return label
        return FAILING_GRADE

    def grade(self, ratings: Iterable[Rating], minimum_count: int = 1) -> GradeResult | None:
        """
        Grade a set of ratings.

        Returns:
            GradeResult, or None when fewer than ``minimum_count`` ratings
        """
        ratings = list(ratings)
        if not ratings or len(ratings) < minimum_count:
            return None
        rate = self.success_rate(ratings)
        return GradeResult(
            success_rate=float(rate),
            letter_grade=self.letter_for(rate),
            count=len(ratings),
        )

    def grade_session(self, ratings: Iterable[Rating]) -> GradeResult | None:
        return self.grade(ratings, self.config.session_minimum)

    def grade_deck(self, ratings: Iterable[Rating]) -> GradeResult | None:
        return self.grade(ratings, self.config.deck_minimum)


# =============================================================================
# Deck Score Windows
# =============================================================================


def compute_deck_scores(
    learner_id: str,
    deck_id: str,
    reviews: Sequence[Review],
    now: datetime,
) -> list[DeckScore]:
    """
    Recompute every window from the review log.

    accuracy_pct is the share of good/easy reviews (0-100), stability_avg the
    mean post-review stability, lapses the number of "again" ratings. A window
    with no reviews scores zero across the board.
    """
    now = as_utc(now)
    scores = []
    for window in ScoreWindow:
        since = now - timedelta(days=window.days)
        in_window = [r for r in reviews if since <= as_utc(r.reviewed_at) <= now]
        count = len(in_window)
        successes = sum(1 for r in in_window if r.rating.is_success)
        scores.append(DeckScore(
            learner_id=learner_id,
            deck_id=deck_id,
            window=window,
            accuracy_pct=round(successes / count * 100, 2) if count else 0.0,
            stability_avg=round(sum(r.stability for r in in_window) / count, 4) if count else 0.0,
            lapses=sum(1 for r in in_window if r.rating.is_lapse),
            review_count=count,
            updated_at=now,
        ))
    return scores


def best_window(scores: Sequence[DeckScore]) -> DeckScore | None:
    """Window with the highest accuracy among windows that have reviews."""
    reviewed = [score for score in scores if score.review_count > 0]
    if not reviewed:
        return None
    return max(reviewed, key=lambda score: score.accuracy_pct)


# =============================================================================
# Card Difficulty Labels
# =============================================================================

CARD_RECENT_REVIEWS = 5


@dataclass(frozen=True)
class CardPerformance:
    """Recent success of one card."""

    card_id: str
    label: str  # easy | medium | hard | unreviewed
    success_rate: float | None
    review_count: int


def card_label(success_rate: float | None) -> str:
    if success_rate is None:
        return "unreviewed"
    if success_rate >= 0.8:
        return "easy"
    if success_rate >= 0.5:
        return "medium"
    return "hard"


def card_performance(card_ids: Sequence[str], reviews: Sequence[Review]) -> list[CardPerformance]:
    """
    Label each card from its most recent reviews.

    ``reviews`` must be ordered most recent first; only the first
    CARD_RECENT_REVIEWS per card count.
    """
    recent: dict[str, list[Review]] = defaultdict(list)
    for review in reviews:
        bucket = recent[review.card_id]
        if len(bucket) < CARD_RECENT_REVIEWS:
            bucket.append(review)

    results = []
    for card_id in card_ids:
        bucket = recent.get(card_id, [])
        rate = sum(1 for r in bucket if r.rating.is_success) / len(bucket) if bucket else None
        results.append(CardPerformance(
            card_id=card_id,
            label=card_label(rate),
            success_rate=rate,
            review_count=len(bucket),
        ))
    return results
