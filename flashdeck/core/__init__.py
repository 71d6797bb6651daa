"""
Core types shared by every layer: card variants, records, repository
protocols and the error taxonomy.
"""

from flashdeck.core.cards import (
    BasicCard,
    Card,
    CardType,
    Choice,
    ClozeCard,
    ExplainCard,
    MultipleChoiceCard,
    card_from_dict,
    card_to_dict,
)
from flashdeck.core.errors import (
    ConflictError,
    FlashdeckError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from flashdeck.core.models import (
    DeckScore,
    MemoryState,
    Rating,
    Review,
    ScoreWindow,
    StudySession,
    utcnow,
)

__all__ = [
    # Cards
    "Card",
    "CardType",
    "Choice",
    "BasicCard",
    "ClozeCard",
    "MultipleChoiceCard",
    "ExplainCard",
    "card_from_dict",
    "card_to_dict",
    # Records
    "Rating",
    "MemoryState",
    "Review",
    "StudySession",
    "DeckScore",
    "ScoreWindow",
    "utcnow",
    # Errors
    "FlashdeckError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "InternalError",
]
