"""
Quiz mode: item models, synthesis from cards and answer checking.
"""

from flashdeck.quiz.answers import AnswerResult, check_answer
from flashdeck.quiz.items import (
    FillBlankItem,
    MultipleChoiceItem,
    QuizChoice,
    QuizItem,
    QuizShape,
    TrueFalseItem,
)
from flashdeck.quiz.synthesizer import QuizConfig, QuizItemSynthesizer, acceptable_answers

__all__ = [
    # Items
    "QuizItem",
    "QuizShape",
    "QuizChoice",
    "MultipleChoiceItem",
    "FillBlankItem",
    "TrueFalseItem",
    # Synthesis
    "QuizItemSynthesizer",
    "QuizConfig",
    "acceptable_answers",
    # Answers
    "AnswerResult",
    "check_answer",
]
