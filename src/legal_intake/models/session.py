"""Session and step models — the contract between the flow controller and callers.

``IntakeSession`` is the mutable answer bag owned by one conversation.  It is
stored through the :class:`~legal_intake.interfaces.SessionStore` interface
and is intentionally decoupled from the ORM model in ``legal_intake_db``.

``IntakeStep`` is what the flow controller returns after every call: the
next question to show (or ``None`` once intake is complete) plus progress.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IntakeSession(BaseModel):
    """One in-progress intake's accumulated answers.

    Every key of ``answers`` is a catalog question id; values are shaped by
    the question type (str, list[str], number, ISO date string).
    """

    session_id: str
    answers: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def has_answer(self, qid: str) -> bool:
        """True if ``qid`` has an entry, even an explicitly skipped (empty) one."""
        return qid in self.answers

    def touch(self) -> None:
        self.updated_at = _utcnow()


class QuestionPayload(BaseModel):
    """Flattened question for API consumers.

    Strips visibility and validation internals down to what a UI needs
    to render the question.
    """

    id: str
    text: str
    type: str
    options: list[str] | None = None
    help: str | None = None
    required: bool = True
    # {min, max, pattern} when the question declares bounds
    constraints: dict | None = None


class Progress(BaseModel):
    """Answered vs. total currently-visible questions."""

    answered: int
    total: int


class IntakeStep(BaseModel):
    """Flow controller step: the next question to ask, or completion."""

    session_id: str
    next_question: QuestionPayload | None = None
    progress: Progress
    answers: dict[str, Any] = Field(default_factory=dict)
    is_complete: bool = False
    # Question ids filled by the freeform extractor during this call
    filled: list[str] | None = None
