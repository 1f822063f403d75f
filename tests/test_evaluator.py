"""AnswerEvaluator tests — validation rules and visibility predicates."""

from datetime import date

import pytest

from legal_intake.errors import ValidationError
from legal_intake.evaluator import AnswerEvaluator, is_empty
from legal_intake.models.question import (
    ChoiceQuestion,
    DateQuestion,
    FreeTextQuestion,
    MultiChoiceQuestion,
    NumberQuestion,
)


@pytest.fixture
def ev():
    return AnswerEvaluator()


class TestIsEmpty:
    @pytest.mark.parametrize("value", [None, "", "   ", [], {}])
    def test_empty(self, value):
        assert is_empty(value)

    @pytest.mark.parametrize("value", [0, "x", ["a"], False])
    def test_not_empty(self, value):
        assert not is_empty(value)


class TestRequired:
    def test_required_empty_rejected(self, ev):
        q = FreeTextQuestion(id="t", text="T")
        with pytest.raises(ValidationError) as info:
            ev.validate(q, "  ")
        assert info.value.question_id == "t"
        assert "required" in info.value.reason

    def test_optional_empty_stored_as_none(self, ev):
        q = FreeTextQuestion(id="t", text="T", validation={"required": False})
        assert ev.validate(q, "") is None, "Skipped optional answers are stored as None"


class TestChoice:
    def test_valid_option(self, ev):
        q = ChoiceQuestion(id="c", text="C", options=["Oui", "Non"])
        assert ev.validate(q, " Oui ") == "Oui"

    def test_unknown_option(self, ev):
        q = ChoiceQuestion(id="c", text="C", options=["Oui", "Non"])
        with pytest.raises(ValidationError, match="not one of"):
            ev.validate(q, "Peut-être")

    def test_non_string(self, ev):
        q = ChoiceQuestion(id="c", text="C", options=["Oui", "Non"])
        with pytest.raises(ValidationError):
            ev.validate(q, 1)


class TestMultiChoice:
    def test_dedup_and_bare_string(self, ev):
        q = MultiChoiceQuestion(id="m", text="M", options=["A", "B"])
        assert ev.validate(q, ["A", "A", "B"]) == ["A", "B"]
        assert ev.validate(q, "B") == ["B"]

    def test_count_bounds(self, ev):
        q = MultiChoiceQuestion(id="m", text="M", options=["A", "B", "C"], validation={"max": 2})
        with pytest.raises(ValidationError, match="at most 2"):
            ev.validate(q, ["A", "B", "C"])

    def test_unknown_item(self, ev):
        q = MultiChoiceQuestion(id="m", text="M", options=["A"])
        with pytest.raises(ValidationError):
            ev.validate(q, ["A", "Z"])


class TestNumber:
    def test_bounds(self, ev):
        q = NumberQuestion(id="urgency", text="U", validation={"min": 1, "max": 10})
        assert ev.validate(q, 8) == 8
        with pytest.raises(ValidationError, match="<= 10"):
            ev.validate(q, 11)
        with pytest.raises(ValidationError, match=">= 1"):
            ev.validate(q, 0)

    def test_numeric_string_and_comma(self, ev):
        q = NumberQuestion(id="n", text="N")
        assert ev.validate(q, "12,5") == 12.5
        assert ev.validate(q, "7") == 7, "Integral values should come back as int"

    def test_bool_rejected(self, ev):
        q = NumberQuestion(id="n", text="N")
        with pytest.raises(ValidationError, match="bool"):
            ev.validate(q, True)

    def test_garbage_rejected(self, ev):
        q = NumberQuestion(id="n", text="N")
        with pytest.raises(ValidationError, match="not a number"):
            ev.validate(q, "beaucoup")


class TestDate:
    def test_iso(self, ev):
        q = DateQuestion(id="d", text="D")
        assert ev.validate(q, "2026-03-01") == "2026-03-01"
        assert ev.validate(q, date(2026, 3, 1)) == "2026-03-01"

    def test_invalid(self, ev):
        q = DateQuestion(id="d", text="D")
        with pytest.raises(ValidationError, match="YYYY-MM-DD"):
            ev.validate(q, "01/03/2026")


class TestText:
    def test_length(self, ev):
        q = FreeTextQuestion(id="situation", text="S", validation={"min": 10, "max": 20})
        assert ev.validate(q, "  assez long ici ") == "assez long ici"
        with pytest.raises(ValidationError, match="at least 10"):
            ev.validate(q, "court")
        with pytest.raises(ValidationError, match="at most 20"):
            ev.validate(q, "x" * 21)

    def test_pattern(self, ev):
        q = FreeTextQuestion(id="zip", text="Z", validation={"pattern": r"^\d{5}$"})
        assert ev.validate(q, "69001") == "69001"
        with pytest.raises(ValidationError, match="pattern"):
            ev.validate(q, "69 001")


class TestVisibility:
    q = ChoiceQuestion(
        id="contractExist", text="C", options=["Oui"],
        visibility={"depends_on": "opponentType", "value": ["Employeur", "Bailleur"]},
    )

    def test_hidden_while_dependency_unanswered(self, ev):
        assert not ev.is_visible(self.q, {})
        assert not ev.is_visible(self.q, {"opponentType": None})

    def test_visible_on_accepted_value(self, ev):
        assert ev.is_visible(self.q, {"opponentType": "Employeur"})

    def test_hidden_on_other_value(self, ev):
        assert not ev.is_visible(self.q, {"opponentType": "Administration"})

    def test_list_answer_matches_on_overlap(self, ev):
        assert ev.is_visible(self.q, {"opponentType": ["Autre", "Bailleur"]})

    def test_no_predicate_always_visible(self, ev):
        assert ev.is_visible(FreeTextQuestion(id="x", text="X"), {})
