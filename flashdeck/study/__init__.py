"""
Study module: load monitoring, grading and the study service facade.
"""

from flashdeck.study.load_monitor import LoadConfig, LoadLevel, LoadMonitor, LoadWarning
from flashdeck.study.scoring import (
    CardPerformance,
    GradeConfig,
    GradeResult,
    ScoreAggregator,
    best_window,
    card_performance,
    compute_deck_scores,
)
from flashdeck.study.study_service import (
    Collaborators,
    DeckPerformance,
    QueueResult,
    QueueStats,
    ReviewOutcome,
    SessionPerformance,
    StudyService,
)

__all__ = [
    # Load
    "LoadMonitor",
    "LoadConfig",
    "LoadLevel",
    "LoadWarning",
    # Scoring
    "ScoreAggregator",
    "GradeConfig",
    "GradeResult",
    "CardPerformance",
    "best_window",
    "card_performance",
    "compute_deck_scores",
    # Service
    "StudyService",
    "Collaborators",
    "ReviewOutcome",
    "QueueResult",
    "QueueStats",
    "SessionPerformance",
    "DeckPerformance",
]
