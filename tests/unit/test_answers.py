"""
Unit tests for quiz answer checking.
"""

import pytest

from flashdeck.core.errors import ValidationError
from flashdeck.core.models import Rating
from flashdeck.quiz.answers import check_answer
from flashdeck.quiz.items import FillBlankItem, MultipleChoiceItem, QuizChoice, TrueFalseItem

COMMON = {"card_id": "c1", "deck_id": "geo", "prompt": "Capital of France?"}


@pytest.fixture
def mc_item():
    return MultipleChoiceItem(
        id="c1-multiple_choice-abc",
        choices=[
            QuizChoice(id="c1-choice-0", text="Lyon"),
            QuizChoice(id="c1-choice-1", text="Paris"),
        ],
        correct_choice_id="c1-choice-1",
        explanation="Paris since 987.",
        **COMMON,
    )


@pytest.fixture
def fill_item():
    return FillBlankItem(
        id="c1-fill_blank-abc",
        answer="Paris, France",
        acceptable_answers=["paris, france", "paris", "france"],
        **COMMON,
    )


@pytest.fixture
def tf_item():
    return TrueFalseItem(
        id="c1-true_false-abc",
        statement="Lyon",
        is_true=False,
        correct_statement="Paris",
        **COMMON,
    )


class TestMultipleChoice:
    def test_correct_choice(self, mc_item):
        result = check_answer(mc_item, "c1-choice-1")

        assert result.correct
        assert result.rating is Rating.GOOD
        assert result.correct_answer == "Paris"
        assert result.explanation == "Paris since 987."

    def test_wrong_choice(self, mc_item):
        result = check_answer(mc_item, "c1-choice-0")

        assert not result.correct
        assert result.rating is Rating.AGAIN

    def test_choice_text_is_not_an_id(self, mc_item):
        assert not check_answer(mc_item, "Paris").correct


class TestFillBlank:
    @pytest.mark.parametrize("typed", ["paris", "  PARIS ", "France", "paris, france"])
    def test_accepted(self, fill_item, typed):
        assert check_answer(fill_item, typed).correct

    @pytest.mark.parametrize("typed", ["pari", "paris france", ""])
    def test_no_fuzzy_matching(self, fill_item, typed):
        result = check_answer(fill_item, typed)

        assert not result.correct
        assert result.correct_answer == "Paris, France"


class TestTrueFalse:
    @pytest.mark.parametrize("verdict", [False, "false", "F", " no ", "n", "0"])
    def test_false_verdicts(self, tf_item, verdict):
        result = check_answer(tf_item, verdict)

        assert result.correct
        assert result.user_answer == "false"
        assert result.correct_answer == "Paris"

    @pytest.mark.parametrize("verdict", [True, "true", "YES", "y", "1"])
    def test_true_verdicts(self, tf_item, verdict):
        assert not check_answer(tf_item, verdict).correct

    def test_unparseable_verdict(self, tf_item):
        with pytest.raises(ValidationError):
            check_answer(tf_item, "maybe")


class TestItemModels:
    def test_mc_requires_matching_correct_id(self):
        with pytest.raises(ValueError):
            MultipleChoiceItem(
                id="x",
                choices=[QuizChoice(id="a", text="A"), QuizChoice(id="b", text="B")],
                correct_choice_id="zzz",
                **COMMON,
            )

    def test_mc_requires_two_choices(self):
        with pytest.raises(ValueError):
            MultipleChoiceItem(
                id="x",
                choices=[QuizChoice(id="a", text="A")],
                correct_choice_id="a",
                **COMMON,
            )

    def test_serializes_type_tag(self, tf_item):
        assert tf_item.model_dump()["type"] == "true_false"
