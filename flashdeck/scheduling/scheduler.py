"""
Review Scheduler - turns a memory estimate into the next due date.

Interval inversion of the forgetting curve R(t) = 0.9 ** (t / S):

    interval = S * ln(target) / ln(0.9)

rounded to whole days and clamped to [1, max_interval_days]. A lapse skips
the formula and uses the short relearn interval.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger

from flashdeck.core.models import MemoryState, Rating, as_utc
from flashdeck.scheduling.memory_model import CURVE_BASE, MemoryEstimate, MemoryModel


@dataclass
class SchedulerConfig:
    """Interval targets and limits."""

    desired_retention: float = 0.9
    max_interval_days: int = 36500
    relearn_interval_days: int = 1

    @classmethod
    def from_settings(cls, settings) -> SchedulerConfig:
        return cls(
            desired_retention=settings.desired_retention,
            max_interval_days=settings.max_interval_days,
            relearn_interval_days=settings.relearn_interval_days,
        )


@dataclass(frozen=True)
class ScheduledReview:
    """Everything a review produces: the replacement state and its estimate."""

    state: MemoryState
    estimate: MemoryEstimate
    scheduled_for: datetime | None  # due date the review was scheduled for

    @property
    def interval_days(self) -> int:
        return self.state.interval_days

    @property
    def due_at(self) -> datetime:
        return self.state.due_at


class ReviewScheduler:
    """
    Computes intervals and next memory states.

    Owns the cold-start path: a card with no memory state is treated as a
    first review by the model.
    """

    def __init__(self, model: MemoryModel | None = None, config: SchedulerConfig | None = None):
        self.model = model or MemoryModel()
        self.config = config or SchedulerConfig()

    def schedule(self, estimate: MemoryEstimate, target_retrievability: float | None = None) -> int:
        """Whole days until retrievability decays to the target."""
        if estimate.is_lapse:
            return self.config.relearn_interval_days

        target = target_retrievability or self.config.desired_retention
        raw = estimate.stability * math.log(target) / math.log(CURVE_BASE)
        if not math.isfinite(raw):
            return self.config.max_interval_days
        return max(1, min(self.config.max_interval_days, round(raw)))

    def review(
        self,
        learner_id: str,
        card_id: str,
        state: MemoryState | None,
        rating: Rating,
        reviewed_at: datetime,
    ) -> ScheduledReview:
        """
        Apply one review and build the replacement memory state.

        The returned state keeps the caller's version; the store bumps it on
        write.
        """
        reviewed_at = as_utc(reviewed_at)
        elapsed = state.elapsed_days(reviewed_at) if state else 0.0
        estimate = self.model.update(state, rating, elapsed)
        interval = self.schedule(estimate)

        new_state = MemoryState(
            learner_id=learner_id,
            card_id=card_id,
            stability=estimate.stability,
            difficulty=estimate.difficulty,
            interval_days=interval,
            due_at=reviewed_at + timedelta(days=interval),
            reviewed_at=reviewed_at,
            reps=(state.reps if state else 0) + 1,
            lapses=(state.lapses if state else 0) + (1 if rating.is_lapse and state else 0),
            version=state.version if state else 0,
        )

        logger.debug(
            f"Scheduled {card_id} for {learner_id}: rating={rating.value} "
            f"S={estimate.stability:.2f} D={estimate.difficulty:.2f} interval={interval}d"
        )

        return ScheduledReview(
            state=new_state,
            estimate=estimate,
            scheduled_for=state.due_at if state else None,
        )
