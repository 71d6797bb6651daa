"""
Quiz Item Synthesizer - renders a card as a graded question.

Each card has a preferred shape:
- multiple_choice cards -> multiple choice
- cloze and explain cards -> fill in the blank
- basic cards -> fill in the blank or true/false, picked at random

When the preferred shape lacks content the synthesizer tries the remaining
shapes in a fixed order. A card that fits no shape is left out of the quiz
(``synthesize`` returns None); that is expected, not an error.

All randomness goes through one injected ``random.Random`` so quizzes are
reproducible under a fixed seed.
"""

from __future__ import annotations

import random
import re
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from loguru import logger

from flashdeck.core.cards import Card, CardType, MultipleChoiceCard
from flashdeck.quiz.items import (
    FillBlankItem,
    MultipleChoiceItem,
    QuizChoice,
    QuizItem,
    QuizShape,
    TrueFalseItem,
)

# Shapes tried after the preferred one fails, in order
FALLBACK_ORDER: dict[QuizShape, tuple[QuizShape, ...]] = {
    QuizShape.MULTIPLE_CHOICE: (QuizShape.MULTIPLE_CHOICE, QuizShape.FILL_BLANK, QuizShape.TRUE_FALSE),
    QuizShape.FILL_BLANK: (QuizShape.FILL_BLANK, QuizShape.MULTIPLE_CHOICE, QuizShape.TRUE_FALSE),
    QuizShape.TRUE_FALSE: (QuizShape.TRUE_FALSE, QuizShape.MULTIPLE_CHOICE, QuizShape.FILL_BLANK),
}

PREFERRED_SHAPE: dict[CardType, QuizShape] = {
    CardType.MULTIPLE_CHOICE: QuizShape.MULTIPLE_CHOICE,
    CardType.CLOZE: QuizShape.FILL_BLANK,
    CardType.EXPLAIN: QuizShape.FILL_BLANK,
}

_ANSWER_SPLIT = re.compile(r"[;,]")


@dataclass
class QuizConfig:
    """Synthesis knobs."""

    true_probability: float = 0.5
    max_distractors: int = 3
    min_distractors: int = 2
    min_authored_choices: int = 2

    @classmethod
    def from_settings(cls, settings) -> QuizConfig:
        return cls(
            true_probability=settings.quiz_true_probability,
            max_distractors=settings.quiz_max_distractors,
        )


def acceptable_answers(answer: str) -> list[str]:
    """
    Answer plus its comma/semicolon-separated parts, lowercased.

    >>> acceptable_answers("Paris, France")
    ['paris, france', 'paris', 'france']
    """
    normalized = answer.strip().lower()
    result = [normalized]
    for part in _ANSWER_SPLIT.split(normalized):
        part = part.strip()
        if part and part not in result:
            result.append(part)
    return result


class QuizItemSynthesizer:
    """Turns cards into multiple-choice, fill-blank or true/false items."""

    def __init__(self, config: QuizConfig | None = None, rng: random.Random | None = None):
        self.config = config or QuizConfig()
        self.rng = rng or random.Random()
        self._builders: dict[QuizShape, Callable[[Card, Sequence[Card]], QuizItem | None]] = {
            QuizShape.MULTIPLE_CHOICE: self.build_multiple_choice,
            QuizShape.FILL_BLANK: self.build_fill_blank,
            QuizShape.TRUE_FALSE: self.build_true_false,
        }

    def preferred_shape(self, card: Card) -> QuizShape:
        shape = PREFERRED_SHAPE.get(card.card_type)
        if shape is not None:
            return shape
        return QuizShape.FILL_BLANK if self.rng.random() < 0.5 else QuizShape.TRUE_FALSE

    def synthesize(self, card: Card, siblings: Sequence[Card]) -> QuizItem | None:
        """
        Render one card, falling back through the other shapes.

        Args:
            card: Card to render
            siblings: Cards of the same deck (may include ``card`` itself)

        Returns:
            A quiz item, or None when no shape has enough content
        """
        preferred = self.preferred_shape(card)
        for shape in FALLBACK_ORDER[preferred]:
            item = self._builders[shape](card, siblings)
            if item is not None:
                if shape is not preferred:
                    logger.debug(f"Card {card.id}: {preferred.value} unavailable, using {shape.value}")
                return item

        logger.debug(f"Card {card.id} skipped: not enough content for any quiz shape")
        return None

    def synthesize_many(self, cards: Sequence[Card], siblings: Sequence[Card]) -> list[QuizItem]:
        """Render every card that fits a shape, preserving order."""
        items = []
        for card in cards:
            item = self.synthesize(card, siblings)
            if item is not None:
                items.append(item)
        return items

    # =========================================================================
    # Shape builders
    # =========================================================================

    def build_multiple_choice(self, card: Card, siblings: Sequence[Card]) -> MultipleChoiceItem | None:
        if isinstance(card, MultipleChoiceCard) and self._has_usable_choices(card):
            choices = [
                QuizChoice(id=f"{card.id}-choice-{index}", text=choice.text)
                for index, choice in enumerate(card.choices)
            ]
            correct_index = next(i for i, choice in enumerate(card.choices) if choice.is_correct)
            return MultipleChoiceItem(
                correct_choice_id=choices[correct_index].id,
                choices=choices,
                **self._common(card, QuizShape.MULTIPLE_CHOICE),
            )

        answer = card.canonical_answer
        if not answer:
            return None

        distractors = self._distractors(card, siblings)[: self.config.max_distractors]
        if len(distractors) < self.config.min_distractors:
            return None

        correct = QuizChoice(id=f"{card.id}-choice-correct", text=answer)
        choices = [correct] + [
            QuizChoice(id=f"{card.id}-choice-d-{index}", text=text)
            for index, text in enumerate(distractors)
        ]
        self.rng.shuffle(choices)
        return MultipleChoiceItem(
            correct_choice_id=correct.id,
            choices=choices,
            **self._common(card, QuizShape.MULTIPLE_CHOICE),
        )

    def build_fill_blank(self, card: Card, siblings: Sequence[Card]) -> FillBlankItem | None:
        answer = card.canonical_answer
        if not answer:
            return None
        return FillBlankItem(
            answer=answer,
            acceptable_answers=acceptable_answers(answer),
            **self._common(card, QuizShape.FILL_BLANK),
        )

    def build_true_false(self, card: Card, siblings: Sequence[Card]) -> TrueFalseItem | None:
        answer = card.canonical_answer
        if not answer:
            return None

        statement = answer
        is_true = True
        pool = self._distractors(card, siblings)
        if pool and self.rng.random() >= self.config.true_probability:
            statement = self.rng.choice(pool)
            is_true = False

        return TrueFalseItem(
            statement=statement,
            is_true=is_true,
            correct_statement=answer,
            **self._common(card, QuizShape.TRUE_FALSE),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _has_usable_choices(self, card: MultipleChoiceCard) -> bool:
        return (
            len(card.choices) >= self.config.min_authored_choices
            and sum(1 for choice in card.choices if choice.is_correct) == 1
        )

    def _distractors(self, card: Card, siblings: Sequence[Card]) -> list[str]:
        """Other cards' answers, unique case-insensitively, shuffled."""
        answer = card.canonical_answer or ""
        seen = {answer.lower()}
        pool = []
        for sibling in siblings:
            if sibling.id == card.id:
                continue
            candidate = sibling.canonical_answer
            if not candidate or candidate.lower() in seen:
                continue
            seen.add(candidate.lower())
            pool.append(candidate)
        self.rng.shuffle(pool)
        return pool

    def _common(self, card: Card, shape: QuizShape) -> dict:
        item_id = uuid.UUID(int=self.rng.getrandbits(128), version=4)
        return {
            "id": f"{card.id}-{shape.value}-{item_id.hex[:12]}",
            "card_id": card.id,
            "deck_id": card.deck_id,
            "prompt": card.front,
            "explanation": card.explanation,
            "notes": card.notes,
            "mnemonic": card.mnemonic,
        }
