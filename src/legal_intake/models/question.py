"""Question models for the intake catalog.

Each question type maps to a specific UI component and answer shape:

    - choice: pick exactly one of ``options`` (answer: str)
    - multi_choice: pick one or more of ``options`` (answer: list[str])
    - free_text: open-ended text input (answer: str)
    - number: numeric input, optionally bounded (answer: int | float)
    - date: ISO calendar date (answer: "YYYY-MM-DD")

Any question may carry a ``visibility`` predicate (shown only once another
question has been answered with one of the required values) and a
``validation`` rule.

The discriminated ``Question`` union uses ``type`` as its discriminator so
YAML entries deserialise directly into the right class.
"""

from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Visibility(BaseModel):
    """Show the owning question only if ``depends_on`` holds ``value``.

    ``value`` is either a single accepted value or a list of accepted
    values.  A dependency that is still unanswered keeps the question hidden.
    """

    depends_on: str
    value: Union[str, int, float, bool, List[Any]]

    def accepted(self) -> list[Any]:
        return list(self.value) if isinstance(self.value, list) else [self.value]


class ValidationRule(BaseModel):
    """Answer constraints.

    ``min``/``max`` bound the value for numbers, the text length for
    free text, and the selection count for multi-choice questions.
    """

    required: bool = True
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None

    @model_validator(mode="after")
    def _chk(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("validation.min must be <= validation.max")
        return self


class BaseQuestion(BaseModel):
    """Fields shared by all question types."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    help: Optional[str] = None
    visibility: Optional[Visibility] = None
    validation: ValidationRule = Field(default_factory=ValidationRule)

    @property
    def required(self) -> bool:
        return self.validation.required


class ChoiceQuestion(BaseQuestion):
    """Pick exactly one option."""

    type: Literal["choice"] = "choice"
    options: List[str]

    @model_validator(mode="after")
    def _chk_options(self):
        if not self.options:
            raise ValueError(f"choice question {self.id} needs options")
        return self


class MultiChoiceQuestion(BaseQuestion):
    """Pick one or more options."""

    type: Literal["multi_choice"] = "multi_choice"
    options: List[str]

    @model_validator(mode="after")
    def _chk_options(self):
        if not self.options:
            raise ValueError(f"multi_choice question {self.id} needs options")
        return self


class FreeTextQuestion(BaseQuestion):
    """Open-ended text input."""

    type: Literal["free_text"] = "free_text"


class NumberQuestion(BaseQuestion):
    """Numeric input; bounds come from ``validation.min``/``validation.max``."""

    type: Literal["number"] = "number"


class DateQuestion(BaseQuestion):
    """ISO date input."""

    type: Literal["date"] = "date"


Question = Annotated[
    Union[
        ChoiceQuestion,
        MultiChoiceQuestion,
        FreeTextQuestion,
        NumberQuestion,
        DateQuestion,
    ],
    Field(discriminator="type"),
]

# Maps type string → Pydantic class for dynamic deserialization from YAML.
question_mapper = {
    "choice": ChoiceQuestion,
    "multi_choice": MultiChoiceQuestion,
    "free_text": FreeTextQuestion,
    "number": NumberQuestion,
    "date": DateQuestion,
}
