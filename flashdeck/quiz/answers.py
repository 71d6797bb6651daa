"""
Answer checking for quiz items.

- multiple_choice: selected choice id must equal the correct choice id
- fill_blank: trimmed, lowercased input must exactly equal one of the
  acceptable answers (no fuzzy matching)
- true_false: the learner's verdict must equal ``is_true``

A correct answer is recorded as a "good" review, a wrong one as "again".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from flashdeck.core.errors import ValidationError
from flashdeck.core.models import Rating
from flashdeck.quiz.items import FillBlankItem, MultipleChoiceItem, QuizItem, TrueFalseItem

_TRUE_WORDS = {"true", "t", "yes", "y", "1"}
_FALSE_WORDS = {"false", "f", "no", "n", "0"}


@dataclass
class AnswerResult:
    """Result of checking an answer."""
    correct: bool
    user_answer: str
    correct_answer: str
    explanation: str | None = None

    @property
    def rating(self) -> Rating:
        return Rating.GOOD if self.correct else Rating.AGAIN


def normalize_input(value: str) -> str:
    return value.strip().lower()


def _parse_verdict(answer: Any) -> bool:
    if isinstance(answer, bool):
        return answer
    word = normalize_input(str(answer))
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValidationError(f"Expected true or false, got '{answer}'", {"answer": str(answer)})


def check_answer(item: QuizItem, answer: Any) -> AnswerResult:
    """Grade a learner's answer to a quiz item."""
    if isinstance(item, MultipleChoiceItem):
        selected = str(answer)
        correct_text = next(c.text for c in item.choices if c.id == item.correct_choice_id)
        return AnswerResult(
            correct=selected == item.correct_choice_id,
            user_answer=selected,
            correct_answer=correct_text,
            explanation=item.explanation,
        )

    if isinstance(item, FillBlankItem):
        typed = normalize_input(str(answer))
        return AnswerResult(
            correct=typed in item.acceptable_answers,
            user_answer=str(answer),
            correct_answer=item.answer,
            explanation=item.explanation,
        )

    if isinstance(item, TrueFalseItem):
        verdict = _parse_verdict(answer)
        return AnswerResult(
            correct=verdict == item.is_true,
            user_answer="true" if verdict else "false",
            correct_answer=item.correct_statement,
            explanation=item.explanation,
        )

    raise ValidationError(f"Unsupported quiz item: {type(item).__name__}")
