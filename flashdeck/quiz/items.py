"""
Quiz item models.

Quiz items are derived, non-persisted views over a card. They are pydantic
models so the web layer can serialize them directly; ``QuizItem`` is a
discriminated union on ``type``.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator


class QuizShape(str, Enum):
    """Question shapes a card can be rendered as."""
    MULTIPLE_CHOICE = "multiple_choice"
    FILL_BLANK = "fill_blank"
    TRUE_FALSE = "true_false"


class QuizChoice(BaseModel):
    """One displayed option of a multiple-choice item."""

    id: str
    text: str


class QuizItemBase(BaseModel):
    """Fields shared by every quiz item."""

    id: str
    card_id: str
    deck_id: str
    prompt: str
    explanation: str | None = None
    notes: str | None = None
    mnemonic: str | None = None


class MultipleChoiceItem(QuizItemBase):
    """Pick the correct choice."""

    type: Literal["multiple_choice"] = "multiple_choice"
    choices: list[QuizChoice] = Field(min_length=2)
    correct_choice_id: str

    @model_validator(mode="after")
    def _one_correct_choice(self) -> MultipleChoiceItem:
        matches = sum(1 for choice in self.choices if choice.id == self.correct_choice_id)
        if matches != 1:
            raise ValueError("exactly one choice must match correct_choice_id")
        return self


class FillBlankItem(QuizItemBase):
    """Type the answer; graded against acceptable_answers."""

    type: Literal["fill_blank"] = "fill_blank"
    answer: str
    acceptable_answers: list[str] = Field(min_length=1)


class TrueFalseItem(QuizItemBase):
    """Judge whether the statement answers the prompt."""

    type: Literal["true_false"] = "true_false"
    statement: str
    is_true: bool
    correct_statement: str


QuizItem = Annotated[
    Union[MultipleChoiceItem, FillBlankItem, TrueFalseItem],
    Field(discriminator="type"),
]
