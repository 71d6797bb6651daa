"""
Card variants.

A card is one of four immutable variants, each carrying only the fields that
make sense for its type:

- BasicCard: plain front/back
- ClozeCard: front with a blank, back holds the missing text
- MultipleChoiceCard: front plus an authored, ordered choice list
- ExplainCard: front plus a free-text explanation

Every variant can produce its canonical answer, the authoritative
correct-answer text used for grading and distractor sampling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from flashdeck.core.errors import ValidationError


class CardType(str, Enum):
    """Supported card types."""
    BASIC = "basic"
    CLOZE = "cloze"
    MULTIPLE_CHOICE = "multiple_choice"
    EXPLAIN = "explain"


@dataclass(frozen=True)
class Choice:
    """One authored option of a multiple-choice card."""

    text: str
    is_correct: bool = False


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


# =============================================================================
# Card Variants
# =============================================================================


@dataclass(frozen=True)
class BasicCard:
    """Plain front/back card."""

    card_type: ClassVar[CardType] = CardType.BASIC

    id: str
    deck_id: str
    front: str
    back: str | None = None
    notes: str | None = None
    mnemonic: str | None = None
    position: int = 0

    @property
    def explanation(self) -> str | None:
        return None

    @property
    def canonical_answer(self) -> str | None:
        return _clean(self.back)


@dataclass(frozen=True)
class ClozeCard:
    """Fill-in card; ``back`` holds the deleted text."""

    card_type: ClassVar[CardType] = CardType.CLOZE

    id: str
    deck_id: str
    front: str
    back: str | None = None
    notes: str | None = None
    mnemonic: str | None = None
    position: int = 0

    @property
    def explanation(self) -> str | None:
        return None

    @property
    def canonical_answer(self) -> str | None:
        return _clean(self.back)


@dataclass(frozen=True)
class MultipleChoiceCard:
    """Card with an authored choice list."""

    card_type: ClassVar[CardType] = CardType.MULTIPLE_CHOICE

    id: str
    deck_id: str
    front: str
    choices: tuple[Choice, ...] = field(default_factory=tuple)
    back: str | None = None
    explanation: str | None = None
    notes: str | None = None
    mnemonic: str | None = None
    position: int = 0

    @property
    def correct_choice(self) -> Choice | None:
        return next((choice for choice in self.choices if choice.is_correct), None)

    @property
    def canonical_answer(self) -> str | None:
        answer = _clean(self.back) or _clean(self.explanation)
        if answer:
            return answer
        correct = self.correct_choice
        return _clean(correct.text) if correct else None


@dataclass(frozen=True)
class ExplainCard:
    """Card answered by a free-text explanation."""

    card_type: ClassVar[CardType] = CardType.EXPLAIN

    id: str
    deck_id: str
    front: str
    explanation: str | None = None
    notes: str | None = None
    mnemonic: str | None = None
    position: int = 0

    @property
    def back(self) -> str | None:
        return None

    @property
    def canonical_answer(self) -> str | None:
        return _clean(self.explanation)


Card = Union[BasicCard, ClozeCard, MultipleChoiceCard, ExplainCard]

CARD_CLASSES: dict[CardType, type] = {
    CardType.BASIC: BasicCard,
    CardType.CLOZE: ClozeCard,
    CardType.MULTIPLE_CHOICE: MultipleChoiceCard,
    CardType.EXPLAIN: ExplainCard,
}


# =============================================================================
# Serialization
# =============================================================================


def card_from_dict(data: dict[str, Any], deck_id: str | None = None) -> Card:
    """
    Build a card variant from a plain dictionary.

    Accepts the JSON deck format used by ``flashdeck import-deck``:
    ``{"id", "type", "front", "back", "choices": [{"text", "is_correct"}],
    "explanation", "notes", "mnemonic", "position"}``. Fields that do not
    belong to the variant are ignored.
    """
    raw_type = str(data.get("type", CardType.BASIC.value)).lower()
    try:
        card_type = CardType(raw_type)
    except ValueError:
        raise ValidationError(f"Unknown card type: {raw_type}") from None

    card_id = data.get("id")
    owner = data.get("deck_id", deck_id)
    front = data.get("front")
    if not card_id or not owner or not front:
        raise ValidationError("Card requires id, deck_id and front", {"card": data.get("id")})

    common = {
        "id": str(card_id),
        "deck_id": str(owner),
        "front": front,
        "notes": data.get("notes"),
        "mnemonic": data.get("mnemonic"),
        "position": int(data.get("position", 0)),
    }

    if card_type is CardType.MULTIPLE_CHOICE:
        choices = tuple(
            Choice(text=str(item.get("text", "")), is_correct=bool(item.get("is_correct", False)))
            for item in data.get("choices") or []
        )
        return MultipleChoiceCard(
            choices=choices,
            back=data.get("back"),
            explanation=data.get("explanation"),
            **common,
        )
    if card_type is CardType.EXPLAIN:
        return ExplainCard(explanation=data.get("explanation") or data.get("back"), **common)
    return CARD_CLASSES[card_type](back=data.get("back"), **common)


def card_to_dict(card: Card) -> dict[str, Any]:
    """Inverse of :func:`card_from_dict`."""
    data: dict[str, Any] = {
        "id": card.id,
        "deck_id": card.deck_id,
        "type": card.card_type.value,
        "front": card.front,
        "back": card.back,
        "explanation": card.explanation,
        "notes": card.notes,
        "mnemonic": card.mnemonic,
        "position": card.position,
    }
    if isinstance(card, MultipleChoiceCard):
        data["choices"] = [{"text": c.text, "is_correct": c.is_correct} for c in card.choices]
    return data
