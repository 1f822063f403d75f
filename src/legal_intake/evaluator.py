"""AnswerEvaluator — visibility predicates and answer validation.

Two questions are asked of every catalog entry while an intake advances:

  - **is it visible?** a question carrying ``visibility`` is shown only once
    its dependency has been answered with one of the accepted values
  - **is this answer acceptable?** the value must match the question type
    and satisfy its ``validation`` rule

:meth:`AnswerEvaluator.validate` returns the normalised value to store or
raises :class:`~legal_intake.errors.ValidationError` naming the violated rule.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any

from legal_intake.errors import ValidationError
from legal_intake.models.question import (
    ChoiceQuestion,
    DateQuestion,
    FreeTextQuestion,
    MultiChoiceQuestion,
    NumberQuestion,
    Question,
)

logger = logging.getLogger(__name__)


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


class AnswerEvaluator:
    """Stateless evaluator shared by the flow controller and the extractor."""

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def is_visible(self, question: Question, answers: dict[str, Any]) -> bool:
        """Evaluate ``question.visibility`` against the current answers.

        An unanswered (or empty) dependency keeps the question hidden.  For a
        multi-choice dependency any overlap with the accepted values counts.
        """
        vis = question.visibility
        if vis is None:
            return True
        answer = answers.get(vis.depends_on)
        if is_empty(answer):
            return False
        accepted = vis.accepted()
        if isinstance(answer, list):
            return any(a in accepted for a in answer)
        return answer in accepted

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, question: Question, value: Any) -> Any:
        """Check ``value`` against the question type and rule.

        Returns the value to store (stripped text, number, list, ISO date
        string).  An empty answer to an optional question is stored as
        ``None`` so the question counts as answered (skipped).

        Raises:
            ValidationError: with the violated rule as ``reason``.
        """
        if is_empty(value):
            if question.required:
                raise ValidationError("An answer is required", question.id)
            return None

        if isinstance(question, ChoiceQuestion):
            return self._validate_choice(question, value)
        if isinstance(question, MultiChoiceQuestion):
            return self._validate_multi_choice(question, value)
        if isinstance(question, NumberQuestion):
            return self._validate_number(question, value)
        if isinstance(question, DateQuestion):
            return self._validate_date(question, value)
        if isinstance(question, FreeTextQuestion):
            return self._validate_text(question, value)

        logger.warning("validate() called with unknown question type: %s", type(question).__name__)
        raise ValidationError(f"Unsupported question type for {question.id}", question.id)

    # ------------------------------------------------------------------
    # Type-specific validators
    # ------------------------------------------------------------------

    def _validate_choice(self, q: ChoiceQuestion, value: Any) -> str:
        if not isinstance(value, str):
            raise ValidationError(
                f"Expected one option as a string, got {type(value).__name__}", q.id
            )
        value = value.strip()
        if value not in q.options:
            raise ValidationError(f"'{value}' is not one of {q.options}", q.id)
        return value

    def _validate_multi_choice(self, q: MultiChoiceQuestion, value: Any) -> list[str]:
        # A bare string is accepted as a one-element selection
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            raise ValidationError(
                f"Expected a list of options, got {type(value).__name__}", q.id
            )
        selected: list[str] = []
        for item in value:
            if not isinstance(item, str) or item.strip() not in q.options:
                raise ValidationError(f"'{item}' is not one of {q.options}", q.id)
            if item.strip() not in selected:
                selected.append(item.strip())

        rule = q.validation
        if rule.min is not None and len(selected) < rule.min:
            raise ValidationError(f"Select at least {int(rule.min)} options", q.id)
        if rule.max is not None and len(selected) > rule.max:
            raise ValidationError(f"Select at most {int(rule.max)} options", q.id)
        return selected

    def _validate_number(self, q: NumberQuestion, value: Any) -> int | float:
        # bool is a subclass of int in Python, so reject it explicitly
        if isinstance(value, bool):
            raise ValidationError("Expected a number, got bool", q.id)
        if isinstance(value, str):
            try:
                value = float(value.strip().replace(",", "."))
            except ValueError:
                raise ValidationError(f"'{value}' is not a number", q.id) from None
        if not isinstance(value, (int, float)):
            raise ValidationError(f"Expected a number, got {type(value).__name__}", q.id)
        if isinstance(value, float) and value.is_integer():
            value = int(value)

        rule = q.validation
        if rule.min is not None and value < rule.min:
            raise ValidationError(f"Must be >= {rule.min:g}, got {value}", q.id)
        if rule.max is not None and value > rule.max:
            raise ValidationError(f"Must be <= {rule.max:g}, got {value}", q.id)
        return value

    def _validate_date(self, q: DateQuestion, value: Any) -> str:
        if isinstance(value, date):
            return value.isoformat()
        if not isinstance(value, str):
            raise ValidationError(
                f"Expected a date string (YYYY-MM-DD), got {type(value).__name__}", q.id
            )
        try:
            parsed = date.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(
                f"Invalid date format: '{value}'. Expected YYYY-MM-DD", q.id
            ) from None
        return parsed.isoformat()

    def _validate_text(self, q: FreeTextQuestion, value: Any) -> str:
        if not isinstance(value, str):
            raise ValidationError(f"Expected text, got {type(value).__name__}", q.id)
        text = value.strip()
        rule = q.validation
        if rule.min is not None and len(text) < rule.min:
            raise ValidationError(
                f"Must be at least {int(rule.min)} characters, got {len(text)}", q.id
            )
        if rule.max is not None and len(text) > rule.max:
            raise ValidationError(
                f"Must be at most {int(rule.max)} characters, got {len(text)}", q.id
            )
        if rule.pattern is not None and not re.search(rule.pattern, text):
            raise ValidationError(f"Does not match pattern {rule.pattern}", q.id)
        return text
