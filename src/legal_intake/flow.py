"""FlowController — advances an intake session through the question catalog.

The pure part of the flow works on an in-hand :class:`IntakeSession`:

  - :meth:`next_question` — first visible question without an answer entry
  - :meth:`record_answer` — validate one answer and store it
  - :meth:`is_complete` / :meth:`progress`

The async part wraps those around a :class:`SessionStore`:

  - :meth:`start` — explicit session creation (the normal entry point)
  - :meth:`answer` — load (or, as a logged fallback, create), record, save
  - :meth:`get_step` / :meth:`delete` — raise ``SessionNotFound`` on unknown ids

Session policy: sessions are created by :meth:`start`.  Write operations
(:meth:`answer`, and the freeform route via :meth:`load_or_create`)
auto-create a missing session so a client that lost its server-side state
can continue; reads, deletes and finalisation never auto-create.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from legal_intake.catalog import QuestionCatalog
from legal_intake.errors import SessionNotFound, ValidationError
from legal_intake.evaluator import AnswerEvaluator
from legal_intake.interfaces import SessionStore
from legal_intake.models.question import (
    ChoiceQuestion,
    DateQuestion,
    MultiChoiceQuestion,
    NumberQuestion,
    Question,
)
from legal_intake.models.session import (
    IntakeSession,
    IntakeStep,
    Progress,
    QuestionPayload,
)

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return uuid.uuid4().hex


class FlowController:
    """Question/answer state machine over a catalog and a session store.

    Args:
        catalog: a loaded :class:`QuestionCatalog`
        store: where sessions live between requests
        evaluator: visibility/validation rules (shared default if omitted)
    """

    def __init__(
        self,
        catalog: QuestionCatalog,
        store: SessionStore,
        evaluator: AnswerEvaluator | None = None,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._evaluator = evaluator or AnswerEvaluator()

    @property
    def catalog(self) -> QuestionCatalog:
        return self._catalog

    @property
    def store(self) -> SessionStore:
        return self._store

    # ==================================================================
    # Pure flow
    # ==================================================================

    def is_visible(self, question: Question, answers: dict[str, Any]) -> bool:
        """Visibility including the dependency chain.

        A question whose dependency is itself hidden stays hidden, even if a
        stale answer for the dependency is still stored.
        """
        current = question
        while current.visibility is not None:
            if not self._evaluator.is_visible(current, answers):
                return False
            current = self._catalog.get(current.visibility.depends_on)
        return True

    def visible_questions(self, session: IntakeSession) -> list[Question]:
        return [q for q in self._catalog if self.is_visible(q, session.answers)]

    def next_question(self, session: IntakeSession) -> Question | None:
        """First question in catalog order that is visible and unanswered."""
        for q in self._catalog:
            if session.has_answer(q.id):
                continue
            if self.is_visible(q, session.answers):
                return q
        return None

    def is_complete(self, session: IntakeSession) -> bool:
        return self.next_question(session) is None

    def progress(self, session: IntakeSession) -> Progress:
        visible = self.visible_questions(session)
        answered = sum(1 for q in visible if session.has_answer(q.id))
        return Progress(answered=answered, total=len(visible))

    def record_answer(self, session: IntakeSession, qid: str, value: Any) -> IntakeSession:
        """Validate and store one direct answer (overwrites a previous one).

        Raises:
            ValidationError: unknown ``qid`` or a violated validation rule.
        """
        if qid not in self._catalog:
            raise ValidationError(f"Unknown question: {qid}", qid)
        question = self._catalog.get(qid)
        session.answers[qid] = self._evaluator.validate(question, value)
        session.touch()
        return session

    def build_step(self, session: IntakeSession, filled: list[str] | None = None) -> IntakeStep:
        nxt = self.next_question(session)
        return IntakeStep(
            session_id=session.session_id,
            next_question=self.question_to_payload(nxt) if nxt is not None else None,
            progress=self.progress(session),
            answers=dict(session.answers),
            is_complete=nxt is None,
            filled=filled,
        )

    # ==================================================================
    # Store-backed operations
    # ==================================================================

    async def start(self, session_id: str | None = None) -> IntakeStep:
        """Create a session (or return the existing one for a reused id)."""
        sid = session_id or new_session_id()
        session = await self._store.get(sid)
        if session is None:
            session = IntakeSession(session_id=sid)
            await self._store.put(session)
            logger.info("Started intake session: session_id=%s", sid)
        return self.build_step(session)

    async def load(self, session_id: str) -> IntakeSession:
        session = await self._store.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    async def load_or_create(self, session_id: str) -> IntakeSession:
        """Load a session, creating an empty one if the id is unknown."""
        session = await self._store.get(session_id)
        if session is None:
            logger.warning(
                "Session %s not found on write; creating it (client state lost?)",
                session_id,
            )
            session = IntakeSession(session_id=session_id)
        return session

    async def save(self, session: IntakeSession) -> None:
        await self._store.put(session)

    async def get_step(self, session_id: str) -> IntakeStep:
        """Read-only: current answers, next question and progress."""
        return self.build_step(await self.load(session_id))

    async def answer(self, session_id: str, qid: str, value: Any) -> IntakeStep:
        """Record one answer and return the next step."""
        session = await self.load_or_create(session_id)
        self.record_answer(session, qid, value)
        await self._store.put(session)
        step = self.build_step(session)
        logger.debug(
            "Answer recorded: session_id=%s qid=%s progress=%d/%d",
            session_id, qid, step.progress.answered, step.progress.total,
        )
        return step

    async def delete(self, session_id: str) -> None:
        if not await self._store.delete(session_id):
            raise SessionNotFound(session_id)
        logger.info("Deleted intake session: session_id=%s", session_id)

    # ==================================================================
    # Payloads
    # ==================================================================

    @staticmethod
    def question_to_payload(question: Question) -> QuestionPayload:
        """Convert a typed Question model to a flat QuestionPayload for the API."""
        payload = QuestionPayload(
            id=question.id,
            text=question.text,
            type=question.type,
            help=question.help,
            required=question.required,
        )
        if isinstance(question, (ChoiceQuestion, MultiChoiceQuestion)):
            payload.options = list(question.options)

        rule = question.validation
        constraints = {
            k: v
            for k, v in (("min", rule.min), ("max", rule.max), ("pattern", rule.pattern))
            if v is not None
        }
        if isinstance(question, DateQuestion):
            constraints["format"] = "YYYY-MM-DD"
        elif isinstance(question, NumberQuestion):
            constraints.setdefault("step", 1)
        payload.constraints = constraints or None
        return payload
