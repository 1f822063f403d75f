"""FreeformExtractor — best-effort enrichment of a session from free text.

Two passes run in order on each message:

  1. **deterministic**: for every catalog keyword found in the lower-cased
     message, the mapped question receives the raw message as a coarse
     answer
  2. **model-assisted**: only if the deadline budget still has margin, the
     extraction provider is asked for a small fixed-shape object and each
     field that validates against its catalog question is stored

Both passes are first-write-wins: they only fill questions that have no
entry yet, never overwriting a direct answer or an earlier pass.  Nothing
here raises to the caller; a failed or skipped pass just fills nothing.
"""

from __future__ import annotations

import logging
from typing import Any

from legal_intake.budget import DeadlineBudget
from legal_intake.catalog import QuestionCatalog
from legal_intake.constants import EXTRACTION_PASS_BUDGET_MS
from legal_intake.errors import ValidationError
from legal_intake.evaluator import AnswerEvaluator, is_empty
from legal_intake.models.advisor import ExtractedFields
from legal_intake.models.result import Success
from legal_intake.models.session import IntakeSession
from legal_intake.providers.base import Provider
from legal_intake.providers.chat import ExtractionRequest
from legal_intake.providers.gateway import ProviderGateway

logger = logging.getLogger(__name__)

# ExtractedFields attribute → catalog question id
FIELD_MAP: dict[str, str] = {
    "city": "city",
    "urgency": "urgency",
    "budget": "budget",
    "amount": "amount",
    "category": "category",
}


class FreeformExtractor:
    """Fills unanswered session fields from one free-text message.

    Args:
        catalog: loaded catalog (supplies the keyword map and validation)
        gateway: gateway used for the model-assisted pass
        provider: extraction provider; ``None`` disables the model pass
        pass_budget_ms: margin the budget must have before the model pass
    """

    def __init__(
        self,
        catalog: QuestionCatalog,
        gateway: ProviderGateway | None = None,
        provider: Provider | None = None,
        *,
        evaluator: AnswerEvaluator | None = None,
        pass_budget_ms: int = EXTRACTION_PASS_BUDGET_MS,
    ) -> None:
        self._catalog = catalog
        self._gateway = gateway or ProviderGateway()
        self._provider = provider
        self._evaluator = evaluator or AnswerEvaluator()
        self._pass_budget_ms = pass_budget_ms

    async def extract(
        self,
        session: IntakeSession,
        message: str,
        budget: DeadlineBudget | None = None,
    ) -> list[str]:
        """Run both passes; return the question ids that were filled."""
        if is_empty(message):
            return []
        filled = self.deterministic_pass(session, message)
        try:
            filled += await self.model_pass(session, message, budget or DeadlineBudget())
        except Exception:
            logger.warning(
                "Model-assisted extraction failed for session_id=%s; keeping keyword pass only",
                session.session_id, exc_info=True,
            )
        if filled:
            session.touch()
        return filled

    def deterministic_pass(self, session: IntakeSession, message: str) -> list[str]:
        """Keyword → question capture of the raw message."""
        lower = message.lower()
        filled: list[str] = []
        for keyword, qid in self._catalog.keywords.items():
            if keyword in lower and not session.has_answer(qid):
                session.answers[qid] = message
                filled.append(qid)
        if filled:
            logger.debug("Keyword pass filled %s for session_id=%s", filled, session.session_id)
        return filled

    async def model_pass(
        self, session: IntakeSession, message: str, budget: DeadlineBudget
    ) -> list[str]:
        """Provider-assisted extraction, skipped without enough margin."""
        if self._provider is None:
            return []
        if not budget.has_margin(self._pass_budget_ms):
            logger.info(
                "Skipping model extraction: %dms left, need %dms",
                budget.remaining(), self._pass_budget_ms,
            )
            return []

        result = await self._gateway.call(
            self._provider, ExtractionRequest(message=message), budget.remaining(),
        )
        if not isinstance(result, Success):
            logger.info("Model extraction produced nothing: %s", result.tag)
            return []

        fields: ExtractedFields = result.payload
        filled: list[str] = []
        for attr, qid in FIELD_MAP.items():
            value: Any = getattr(fields, attr, None)
            if value is None or qid not in self._catalog or session.has_answer(qid):
                continue
            try:
                session.answers[qid] = self._evaluator.validate(self._catalog.get(qid), value)
            except ValidationError as exc:
                logger.debug("Discarding extracted %s=%r: %s", qid, value, exc.reason)
                continue
            filled.append(qid)
        return filled
