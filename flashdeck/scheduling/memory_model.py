"""
Memory Model - stability/difficulty updates for a single review.

Forgetting curve:
    R(t) = 0.9 ** (t / S)

so stability S is the number of days until recall probability decays to
90%. Difficulty lives on a 1 (easy) to 10 (hard) scale and resists stability
growth.

Update rules:
- First review: per-rating baseline stability and difficulty
- Lapse ("again"): stability shrinks in proportion to itself and to
  difficulty, difficulty rises
- Success: stability grows by a factor that increases with rating strength,
  falls with difficulty, and peaks when the review happens at the ideal time
  (retrievability-weighted). Difficulty drifts with the rating and reverts
  toward an equilibrium.

The model is a pure function: no clock, no I/O.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from flashdeck.core.models import MemoryState, Rating

# Retrievability at t == S by definition of stability
CURVE_BASE = 0.9


def retrievability(elapsed_days: float, stability: float) -> float:
    """Recall probability after ``elapsed_days`` for a given stability."""
    if stability <= 0:
        return 0.0
    return math.pow(CURVE_BASE, max(0.0, elapsed_days) / stability)


@dataclass
class MemoryModelConfig:
    """Model constants and bounds."""

    # First-review baselines
    initial_stability: dict[Rating, float] = field(default_factory=lambda: {
        Rating.AGAIN: 0.4,
        Rating.HARD: 0.6,
        Rating.GOOD: 2.4,
        Rating.EASY: 5.8,
    })
    initial_difficulty: dict[Rating, float] = field(default_factory=lambda: {
        Rating.AGAIN: 8.0,
        Rating.HARD: 6.5,
        Rating.GOOD: 5.0,
        Rating.EASY: 3.0,
    })

    # Success growth
    growth_scale: float = 3.0
    rating_gain: dict[Rating, float] = field(default_factory=lambda: {
        Rating.HARD: 0.4,
        Rating.GOOD: 1.0,
        Rating.EASY: 1.6,
    })

    # Lapse
    lapse_factor: float = 0.3
    lapse_difficulty_alpha: float = 0.15
    lapse_difficulty_step: float = 1.2

    # Difficulty drift
    difficulty_step: float = 0.6
    difficulty_equilibrium: float = 5.0
    mean_reversion: float = 0.05

    # Bounds
    min_stability: float = 0.1
    max_stability: float = 36500.0
    min_difficulty: float = 1.0
    max_difficulty: float = 10.0


@dataclass(frozen=True)
class MemoryEstimate:
    """Model output for one review."""

    stability: float
    difficulty: float
    retrievability: float  # recall probability at the moment of review
    is_lapse: bool


class MemoryModel:
    """Maps (previous state, rating, elapsed days) to a new memory estimate."""

    def __init__(self, config: MemoryModelConfig | None = None):
        self.config = config or MemoryModelConfig()

    def update(
        self,
        state: MemoryState | None,
        rating: Rating,
        elapsed_days: float,
    ) -> MemoryEstimate:
        """
        Compute the post-review stability and difficulty.

        Args:
            state: Current memory state, or None for a first-ever review
            rating: Learner's rating
            elapsed_days: Days since the last review (ignored on first review)

        Returns:
            MemoryEstimate with clamped, finite values
        """
        cfg = self.config

        if state is None:
            return MemoryEstimate(
                stability=self._clamp_stability(cfg.initial_stability[rating]),
                difficulty=self._clamp_difficulty(cfg.initial_difficulty[rating]),
                retrievability=0.0,
                is_lapse=rating.is_lapse,
            )

        s = self._clamp_stability(state.stability)
        d = self._clamp_difficulty(state.difficulty)
        r = retrievability(elapsed_days, s)

        if rating.is_lapse:
            new_s = self._forget_stability(s, d)
            new_d = d + cfg.lapse_difficulty_step
        else:
            new_s = self._recall_stability(s, d, r, rating)
            new_d = self._drift_difficulty(d, rating)

        return MemoryEstimate(
            stability=self._clamp_stability(new_s),
            difficulty=self._clamp_difficulty(new_d),
            retrievability=r,
            is_lapse=rating.is_lapse,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _forget_stability(self, s: float, d: float) -> float:
        """Stability after a lapse; never above the pre-lapse value."""
        cfg = self.config
        penalty = 1 + cfg.lapse_difficulty_alpha * (d - cfg.min_difficulty)
        return min(s, s * cfg.lapse_factor / penalty)

    def _recall_stability(self, s: float, d: float, r: float, rating: Rating) -> float:
        """Stability after a successful recall; never below the current value."""
        cfg = self.config
        ease = (cfg.max_difficulty + 1 - d) / cfg.max_difficulty
        growth = cfg.growth_scale * cfg.rating_gain[rating] * ease * self._timing_weight(r)
        return s * (1 + max(0.0, growth))

    @staticmethod
    def _timing_weight(r: float) -> float:
        """
        1.0 when reviewed exactly at R == 0.9, less on either side.

        Early reviews are weighted by how much was forgotten (1 - R), late
        reviews by how much was still retained (R).
        """
        if r >= CURVE_BASE:
            return (1 - r) / (1 - CURVE_BASE)
        return r / CURVE_BASE

    def _drift_difficulty(self, d: float, rating: Rating) -> float:
        cfg = self.config
        nudged = d + cfg.difficulty_step * (Rating.GOOD.grade - rating.grade)
        return cfg.mean_reversion * cfg.difficulty_equilibrium + (1 - cfg.mean_reversion) * nudged

    def _clamp_stability(self, s: float) -> float:
        if not math.isfinite(s):
            s = self.config.max_stability if s > 0 else self.config.min_stability
        return min(self.config.max_stability, max(self.config.min_stability, s))

    def _clamp_difficulty(self, d: float) -> float:
        if not math.isfinite(d):
            d = self.config.difficulty_equilibrium
        return min(self.config.max_difficulty, max(self.config.min_difficulty, d))
