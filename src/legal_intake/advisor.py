"""AdvisorLoop — capped classify / validate / repair loop.

Each round asks the advisor provider for an :class:`AdvisorOutput`.  A reply
that fails validation gets one repair attempt (the provider is shown its own
output and the schema).  While the validated reply carries a
``followup_question`` the loop continues with the follow-up answer supplied
in ``context`` (``followup_answer``, default ``"continue"``), but never more
than ``max_iterations`` rounds and never past the deadline budget.

On exhaustion the best validated reply is returned (``capped=True`` if it
still asks a follow-up); if nothing ever validated, a fixed triage reply is
returned with ``fallback=True``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from legal_intake.budget import DeadlineBudget
from legal_intake.constants import (
    ADVISOR_CALL_BUDGET_MS,
    ADVISOR_MAX_ITERATIONS,
    ANALYSIS_WINDOW_MS,
)
from legal_intake.errors import ValidationError
from legal_intake.models.advisor import AdvisorAction, AdvisorOutput, AdvisorReply
from legal_intake.models.result import Failure, FailureKind, Success
from legal_intake.providers.base import Provider
from legal_intake.providers.chat import AdvisorRequest, RepairRequest
from legal_intake.providers.gateway import ProviderGateway

logger = logging.getLogger(__name__)

FALLBACK_OUTPUT = AdvisorOutput(
    thought="No validated advisor output; routing to guided intake.",
    followup_question=None,
    action=AdvisorAction(type="triage"),
    reply_text=(
        "Je ne peux pas analyser votre demande pour le moment. "
        "Décrivez votre situation pour démarrer un diagnostic guidé."
    ),
)


class AdvisorLoop:
    """Runs the advisor provider until a reply needs no follow-up.

    Args:
        gateway: bounded provider invoker
        provider: advisor provider (``None`` = not configured, always fallback)
        max_iterations: hard cap on planning rounds
        call_budget_ms: margin required before starting any provider call
    """

    def __init__(
        self,
        gateway: ProviderGateway,
        provider: Provider | None = None,
        *,
        max_iterations: int = ADVISOR_MAX_ITERATIONS,
        call_budget_ms: int = ADVISOR_CALL_BUDGET_MS,
        window_ms: int = ANALYSIS_WINDOW_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        self._gateway = gateway
        self._provider = provider
        self._max_iterations = max_iterations
        self._call_budget_ms = call_budget_ms
        self._window_ms = window_ms
        self._clock = clock

    async def run(
        self,
        query: str,
        context: dict[str, Any] | None = None,
        budget: DeadlineBudget | None = None,
    ) -> AdvisorReply:
        """Classify ``query``; see module docstring for loop semantics.

        Raises:
            ValidationError: ``query`` is empty.
        """
        if not query or not query.strip():
            raise ValidationError("Query must not be empty", "query")
        context = dict(context or {})
        budget = budget or DeadlineBudget(self._window_ms, clock=self._clock)

        if self._provider is None:
            logger.info("Advisor provider not configured; returning fallback reply")
            return AdvisorReply(output=FALLBACK_OUTPUT, iterations=0, fallback=True)

        followup_answer = str(context.pop("followup_answer", None) or "continue")
        history: list[dict[str, str]] = []
        best: AdvisorOutput | None = None
        iterations = 0
        current = query.strip()

        while iterations < self._max_iterations:
            if not budget.has_margin(self._call_budget_ms):
                logger.info("Advisor loop stopped on budget after %d rounds", iterations)
                break
            iterations += 1
            output = await self._plan(current, context, history, budget)
            if output is None:
                break
            best = output
            if not output.followup_question:
                return AdvisorReply(output=output, iterations=iterations)
            history.append({"question": output.followup_question, "answer": followup_answer})
            current = followup_answer

        if best is None:
            logger.warning("Advisor produced no valid output in %d rounds; using fallback", iterations)
            return AdvisorReply(output=FALLBACK_OUTPUT, iterations=iterations, fallback=True)

        capped = bool(best.followup_question)
        if capped:
            logger.warning(
                "Advisor loop capped after %d rounds with follow-up still pending", iterations,
            )
        return AdvisorReply(output=best, iterations=iterations, capped=capped)

    async def _plan(
        self,
        query: str,
        context: dict[str, Any],
        history: list[dict[str, str]],
        budget: DeadlineBudget,
    ) -> AdvisorOutput | None:
        """One planning call plus at most one repair call."""
        result = await self._gateway.call(
            self._provider,
            AdvisorRequest(query=query, context=context, history=list(history)),
            budget.remaining(),
        )
        if isinstance(result, Success):
            return result.payload

        if (
            isinstance(result, Failure)
            and result.kind == FailureKind.MALFORMED_OUTPUT
            and result.raw
            and budget.has_margin(self._call_budget_ms)
        ):
            repaired = await self._gateway.call(
                self._provider, RepairRequest(raw_output=result.raw), budget.remaining(),
            )
            if isinstance(repaired, Success):
                logger.info("Advisor output repaired")
                return repaired.payload
            logger.warning("Advisor repair failed: %s", repaired.tag)
        return None
