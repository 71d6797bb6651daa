"""
Review engine records.

MemoryState is the current modeled memory of one card for one learner and is
replaced on each review. Review is the append-only history. StudySession and
DeckScore hold session bookkeeping and periodically recomputed deck windows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from flashdeck.core.errors import ValidationError


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Rating(str, Enum):
    """The four ordinal review grades."""
    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @property
    def grade(self) -> int:
        """1 (again) through 4 (easy)."""
        return _GRADES[self]

    @property
    def is_lapse(self) -> bool:
        return self is Rating.AGAIN

    @property
    def is_success(self) -> bool:
        """Counted as correct for accuracy windows (good or easy)."""
        return self in (Rating.GOOD, Rating.EASY)

    @classmethod
    def parse(cls, value: str | Rating) -> Rating:
        """Parse a rating, raising ValidationError for unknown values."""
        if isinstance(value, Rating):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(r.value for r in cls)
            raise ValidationError(
                f"Invalid rating '{value}'. Expected one of: {allowed}",
                {"rating": str(value)},
            ) from None


_GRADES = {Rating.AGAIN: 1, Rating.HARD: 2, Rating.GOOD: 3, Rating.EASY: 4}


class ScoreWindow(str, Enum):
    """Deck score windows."""
    D7 = "d7"
    D30 = "d30"
    D90 = "d90"

    @property
    def days(self) -> int:
        return int(self.value[1:])


# =============================================================================
# Records
# =============================================================================


@dataclass
class MemoryState:
    """Current memory of one card for one learner."""

    learner_id: str
    card_id: str
    stability: float
    difficulty: float
    interval_days: int
    due_at: datetime
    reviewed_at: datetime
    reps: int = 1
    lapses: int = 0
    version: int = 0

    def is_due(self, now: datetime | None = None) -> bool:
        return as_utc(self.due_at) <= as_utc(now or utcnow())

    def days_overdue(self, now: datetime | None = None) -> float:
        delta = as_utc(now or utcnow()) - as_utc(self.due_at)
        return max(0.0, delta.total_seconds() / 86400)

    def elapsed_days(self, now: datetime) -> float:
        """Fractional days since the last review, never negative."""
        delta = as_utc(now) - as_utc(self.reviewed_at)
        return max(0.0, delta.total_seconds() / 86400)


@dataclass
class Review:
    """One append-only review log entry."""

    learner_id: str
    card_id: str
    deck_id: str
    rating: Rating
    scheduled_for: datetime | None
    reviewed_at: datetime
    interval_days: int
    stability: float
    difficulty: float
    session_id: str | None = None
    time_spent_seconds: int = 0
    id: int | None = None


@dataclass
class StudySession:
    """A learner's study session on one deck."""

    id: str
    learner_id: str
    deck_id: str
    started_at: datetime
    ended_at: datetime | None = None
    seconds_active: int = 0

    @property
    def is_open(self) -> bool:
        return self.ended_at is None


@dataclass
class DeckScore:
    """Accuracy, stability and lapse summary for one deck window."""

    learner_id: str
    deck_id: str
    window: ScoreWindow
    accuracy_pct: float
    stability_avg: float
    lapses: int
    review_count: int = 0
    updated_at: datetime = field(default_factory=utcnow)
