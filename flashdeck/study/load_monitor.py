"""
Load Monitor - advisory warnings about daily review volume.

Two checks, first match wins:
1. Spike: today's count is above the floor and above ratio x the trailing
   7-day daily average
2. Ceiling: today's count reached the absolute ceiling

Nothing is throttled; the warning only informs the learner.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from loguru import logger

from flashdeck.core.models import as_utc, utcnow
from flashdeck.core.ports import ReviewStore


class LoadLevel(Enum):
    """Severity of a load warning."""

    ELEVATED = "elevated"  # well above the learner's usual volume
    HIGH = "high"  # above the absolute ceiling


@dataclass
class LoadWarning:
    """A detected review-volume warning."""

    level: LoadLevel
    message: str
    today_count: int
    trailing_average: float
    threshold: float


@dataclass
class LoadConfig:
    """Thresholds for load warnings."""

    floor: int = 50
    ceiling: int = 100
    ratio: float = 1.5
    trailing_days: int = 7

    @classmethod
    def from_settings(cls, settings) -> LoadConfig:
        return cls(
            floor=settings.load_floor,
            ceiling=settings.load_ceiling,
            ratio=settings.load_ratio,
        )


class LoadMonitor:
    """Inspects recent review counts for a learner and deck."""

    def __init__(self, reviews: ReviewStore, config: LoadConfig | None = None):
        self.reviews = reviews
        self.config = config or LoadConfig()

    def check_load(
        self,
        learner_id: str,
        deck_id: str,
        now: datetime | None = None,
    ) -> LoadWarning | None:
        """
        Check today's review volume.

        Returns:
            LoadWarning, or None when volume looks normal
        """
        now = as_utc(now or utcnow())
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        window_start = now - timedelta(days=self.config.trailing_days)

        today = self.reviews.count_reviews(learner_id, deck_id=deck_id, since=start_of_day, until=now)
        recent = self.reviews.count_reviews(learner_id, deck_id=deck_id, since=window_start, until=now)
        average = recent / self.config.trailing_days

        warning = self._check_spike(today, average) or self._check_ceiling(today, average)
        if warning:
            logger.warning(f"Load warning for {learner_id} in {deck_id}: {warning.level.value} ({today} today)")
        return warning

    def _check_spike(self, today: int, average: float) -> LoadWarning | None:
        threshold = average * self.config.ratio
        if today > self.config.floor and today > threshold:
            return LoadWarning(
                level=LoadLevel.ELEVATED,
                message=(
                    f"You have {today} cards to review today, which is higher than your usual "
                    f"average of {round(average)}. Consider spreading them out or taking breaks."
                ),
                today_count=today,
                trailing_average=average,
                threshold=threshold,
            )
        return None

    def _check_ceiling(self, today: int, average: float) -> LoadWarning | None:
        if today >= self.config.ceiling:
            return LoadWarning(
                level=LoadLevel.HIGH,
                message=(
                    f"You have {today} cards to review today. "
                    "Consider taking regular breaks to maintain focus."
                ),
                today_count=today,
                trailing_average=average,
                threshold=float(self.config.ceiling),
            )
        return None
