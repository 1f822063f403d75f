"""AnalysisOrchestrator — deadline-aware audit + lookup with degradation.

One pass per request, no retries at this layer::

    validate input ──► audit (if margin) ──► coalesce ──► template title
                                                     └──► lookup (if location,
                                                          specialty and margin)

Everything after coalescing only enriches an already valid ``Analysis``.
Provider trouble is absorbed: the response is still a 200-style result,
flagged ``partial`` when the audit did not succeed, the lookup failed or was
skipped for lack of time, or the deadline passed.  The only exception this
class raises is :class:`~legal_intake.errors.IncompleteIntake` for caller
input that is too thin to analyse.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from legal_intake.budget import DeadlineBudget
from legal_intake.coalescer import ResultCoalescer
from legal_intake.constants import (
    ANALYSIS_WINDOW_MS,
    AUDIT_CALL_BUDGET_MS,
    BUDGET_GUARD_MS,
    LOCATION_QID,
    LOOKUP_CALL_BUDGET_MS,
    MIN_PROBLEM_LENGTH,
    MIN_SITUATION_LENGTH,
    SITUATION_QID,
)
from legal_intake.errors import IncompleteIntake
from legal_intake.interfaces import TemplateLookup
from legal_intake.models.analysis import (
    AnalysisRequest,
    AnalysisResult,
    DirectoryEntry,
    RecommendedTemplate,
)
from legal_intake.models.result import Failure, FailureKind, Skipped, Success
from legal_intake.models.session import IntakeSession
from legal_intake.providers.base import Provider
from legal_intake.providers.chat import AuditRequest, LookupRequest
from legal_intake.providers.gateway import ProviderGateway

logger = logging.getLogger(__name__)


class AnalysisOrchestrator:
    """Sequences provider calls against a :class:`DeadlineBudget`.

    Args:
        gateway: bounded provider invoker
        audit_provider: structured diagnostic provider (``None`` = not configured)
        lookup_provider: directory provider (``None`` = not configured)
        coalescer: audit + defaults merger
        templates: optional template index for titling the recommendation
        clock: monotonic clock for budgets created by this orchestrator
    """

    def __init__(
        self,
        gateway: ProviderGateway,
        audit_provider: Provider | None = None,
        lookup_provider: Provider | None = None,
        *,
        coalescer: ResultCoalescer | None = None,
        templates: TemplateLookup | None = None,
        clock: Callable[[], float] = time.monotonic,
        window_ms: int = ANALYSIS_WINDOW_MS,
        guard_ms: int = BUDGET_GUARD_MS,
        audit_call_budget_ms: int = AUDIT_CALL_BUDGET_MS,
        lookup_call_budget_ms: int = LOOKUP_CALL_BUDGET_MS,
        min_problem_length: int = MIN_PROBLEM_LENGTH,
    ) -> None:
        self._gateway = gateway
        self._audit = audit_provider
        self._lookup = lookup_provider
        self._coalescer = coalescer or ResultCoalescer()
        self._templates = templates
        self._clock = clock
        self._window_ms = window_ms
        self._guard_ms = guard_ms
        self._audit_call_budget_ms = audit_call_budget_ms
        self._lookup_call_budget_ms = lookup_call_budget_ms
        self._min_problem_length = min_problem_length

    def new_budget(self) -> DeadlineBudget:
        return DeadlineBudget(self._window_ms, guard_ms=self._guard_ms, clock=self._clock)

    # ==================================================================
    # Entry points
    # ==================================================================

    async def analyze(
        self, request: AnalysisRequest, budget: DeadlineBudget | None = None
    ) -> AnalysisResult:
        """Analyse a direct free-text problem description.

        Raises:
            IncompleteIntake: ``problem`` is shorter than the minimum length.
        """
        problem = (request.problem or "").strip()
        if len(problem) < self._min_problem_length:
            raise IncompleteIntake(
                f"Problem description must be at least {self._min_problem_length} "
                f"characters, got {len(problem)}",
                "problem",
            )
        return await self._run(problem, request.location, dict(request.answers), budget)

    async def finalize_session(
        self, session: IntakeSession, budget: DeadlineBudget | None = None
    ) -> AnalysisResult:
        """Analyse the answers collected by an intake session.

        Raises:
            IncompleteIntake: the situation answer is missing or too short.
        """
        situation = session.answers.get(SITUATION_QID)
        situation = situation.strip() if isinstance(situation, str) else ""
        if len(situation) < MIN_SITUATION_LENGTH:
            raise IncompleteIntake(
                f"Situation must be at least {MIN_SITUATION_LENGTH} characters "
                "before the intake can be analysed",
                SITUATION_QID,
            )
        location = session.answers.get(LOCATION_QID)
        return await self._run(
            situation,
            location if isinstance(location, str) else None,
            dict(session.answers),
            budget,
        )

    # ==================================================================
    # Pipeline
    # ==================================================================

    async def _run(
        self,
        problem: str,
        location: str | None,
        answers: dict[str, Any],
        budget: DeadlineBudget | None,
    ) -> AnalysisResult:
        budget = budget or self.new_budget()
        answers.setdefault(SITUATION_QID, problem)
        location = (location or "").strip() or None
        sources: dict[str, str] = {}

        # --- audit ---
        audit_result = await self._call_audit(problem, location, answers, budget)
        sources["audit"] = audit_result.tag
        partial = not isinstance(audit_result, Success)

        # --- baseline; always valid from here on ---
        analysis = self._coalescer.coalesce(audit_result, answers)

        # --- enrichment: template title ---
        recommended_template = None
        if analysis.recommended_template_id and self._templates is not None:
            if budget.expired():
                partial = True
            else:
                recommended_template = await self._resolve_template(
                    analysis.recommended_template_id, analysis.category,
                )

        # --- enrichment: directory lookup ---
        directory: list[DirectoryEntry] = []
        if location is None:
            sources["lookup"] = "skipped:no_location"
        elif not analysis.recommended_specialty:
            sources["lookup"] = "skipped:no_specialty"
        elif self._lookup is None:
            sources["lookup"] = f"failure:{FailureKind.NOT_CONFIGURED.value}"
        elif not budget.has_margin(self._lookup_call_budget_ms):
            logger.info(
                "Skipping lookup: %dms left, need %dms",
                budget.remaining(), self._lookup_call_budget_ms,
            )
            sources["lookup"] = Skipped(reason="no_time").tag
            partial = True
        else:
            lookup_result = await self._gateway.call(
                self._lookup,
                LookupRequest(location=location, specialty=analysis.recommended_specialty),
                budget.remaining(),
            )
            sources["lookup"] = lookup_result.tag
            if isinstance(lookup_result, Success):
                directory = list(lookup_result.payload)
            elif lookup_result.kind != FailureKind.NOT_CONFIGURED:
                partial = True

        if budget.expired():
            partial = True

        elapsed_ms = max(0, budget.window_ms - budget.remaining())
        logger.info(
            "Analysis done: category=%s urgency=%d partial=%s sources=%s elapsed=%dms",
            analysis.category, analysis.urgency, partial, sources, elapsed_ms,
        )
        return AnalysisResult(
            analysis=analysis,
            recommended_template=recommended_template,
            directory=directory,
            partial=partial,
            sources=sources,
            elapsed_ms=elapsed_ms,
        )

    async def _call_audit(
        self,
        problem: str,
        location: str | None,
        answers: dict[str, Any],
        budget: DeadlineBudget,
    ) -> Success | Failure | Skipped:
        if self._audit is None:
            return Failure(kind=FailureKind.NOT_CONFIGURED, detail="no audit provider")
        if not budget.has_margin(self._audit_call_budget_ms):
            logger.warning(
                "Skipping audit: %dms left, need %dms",
                budget.remaining(), self._audit_call_budget_ms,
            )
            return Skipped(reason="no_time")
        return await self._gateway.call(
            self._audit,
            AuditRequest(problem=problem, answers=answers, location=location),
            budget.remaining(),
        )

    async def _resolve_template(self, template_id: str, category: str) -> RecommendedTemplate | None:
        try:
            template = await self._templates.get_template(template_id)
        except Exception:
            logger.warning("Template lookup failed for id=%s", template_id, exc_info=True)
            return None
        if template is None:
            logger.info("Recommended template %s is not in the template index", template_id)
            return None
        return RecommendedTemplate(
            id=template_id,
            name=template.get("title") or template_id,
            reason=f"Ce modèle correspond à votre situation ({category})",
        )
