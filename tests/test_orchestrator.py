"""AnalysisOrchestrator tests — happy path, degradation and deadline respect.

Providers are ``FakeProvider`` instances; budgets run on a ``FakeClock``
that the fake audit provider advances to simulate slow upstreams.
"""

import asyncio
import json

import httpx
import pytest

from legal_intake.errors import IncompleteIntake
from legal_intake.flow import FlowController
from legal_intake.models.analysis import AnalysisRequest, DirectoryEntry
from legal_intake.models.result import Parsed
from legal_intake.models.session import IntakeSession
from legal_intake.orchestrator import AnalysisOrchestrator
from legal_intake.providers.gateway import ProviderGateway

from conftest import AUDIT_REPLY, FULL_ANSWERS, LOOKUP_REPLY, PROBLEM, FakeProvider, as_json


def parse_directory(raw: str) -> Parsed:
    return Parsed(value=[DirectoryEntry(**e) for e in json.loads(raw)["lawyers"]])


@pytest.fixture
def make_orchestrator(clock, coalescer, templates):
    def _make(audit=None, lookup=None, **kwargs):
        return AnalysisOrchestrator(
            ProviderGateway(clock),
            audit,
            lookup,
            coalescer=coalescer,
            templates=templates,
            clock=clock,
            **kwargs,
        )
    return _make


def audit_provider(reply, **kwargs):
    return FakeProvider([reply], name="audit", **kwargs)


def lookup_provider(reply=None, **kwargs):
    return FakeProvider([reply or as_json(LOOKUP_REPLY)], name="lookup", parser=parse_directory, **kwargs)


# =====================================================================
# Happy path
# =====================================================================


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_full_enrichment(self, make_orchestrator):
        audit = audit_provider(as_json(AUDIT_REPLY))
        lookup = lookup_provider()
        orch = make_orchestrator(audit, lookup)

        result = await orch.analyze(AnalysisRequest(problem=PROBLEM, location="Lyon"))

        assert result.partial is False, f"Nothing failed, sources={result.sources}"
        assert result.sources == {"audit": "success", "lookup": "success"}
        assert result.analysis.urgency == 8
        assert result.analysis.needs_lawyer is True
        assert result.recommended_template.id == "contestation-licenciement"
        assert result.recommended_template.name == "Lettre de contestation de licenciement"
        assert [e.name for e in result.directory] == ["Me Durand", "Me Petit"]
        assert lookup.requests[0].specialty == "Droit du travail"
        assert lookup.requests[0].location == "Lyon"

    @pytest.mark.asyncio
    async def test_audit_receives_problem(self, make_orchestrator):
        audit = audit_provider(as_json(AUDIT_REPLY))
        orch = make_orchestrator(audit)
        await orch.analyze(AnalysisRequest(problem=PROBLEM))
        assert audit.requests[0].problem == PROBLEM
        assert audit.requests[0].answers["situation"] == PROBLEM

    @pytest.mark.asyncio
    async def test_guided_intake_to_analysis(self, make_orchestrator, catalog, session_store):
        flow = FlowController(catalog, session_store)
        step = await flow.start("happy")
        session = await flow.load(step.session_id)

        answered = 0
        while (q := flow.next_question(session)) is not None:
            flow.record_answer(session, q.id, FULL_ANSWERS[q.id])
            answered += 1
        await flow.save(session)
        assert answered == 18
        assert flow.is_complete(session)

        orch = make_orchestrator(audit_provider(as_json(AUDIT_REPLY)), lookup_provider())
        result = await orch.finalize_session(await flow.load("happy"))

        assert result.partial is False
        assert result.analysis.urgency == 8
        assert result.analysis.needs_lawyer is True


# =====================================================================
# Degradation
# =====================================================================


class TestDegradation:
    @pytest.mark.asyncio
    async def test_audit_outage_is_partial(self, make_orchestrator):
        audit = audit_provider(httpx.ConnectError("down"))
        lookup = lookup_provider()
        orch = make_orchestrator(audit, lookup)

        result = await orch.analyze(AnalysisRequest(problem=PROBLEM, location="Lyon"))

        assert result.partial is True
        assert result.sources["audit"] == "failure:upstream_error"
        assert result.analysis.urgency == 5, "Defaults apply when the audit is down"
        assert result.analysis.actions, "The analysis is still complete"
        assert result.sources["lookup"] == "success", "Lookup still runs on the default specialty"

    @pytest.mark.asyncio
    async def test_audit_timeout_is_partial(self, make_orchestrator):
        async def stalled(request, timeout_s):
            await asyncio.sleep(1.0)
            return as_json(AUDIT_REPLY)

        audit = audit_provider(stalled, timeout_ms=50)
        orch = make_orchestrator(audit, lookup_provider())

        result = await orch.analyze(AnalysisRequest(problem=PROBLEM, location="Lyon"))

        assert result.sources["audit"] == "failure:timeout"
        assert result.partial is True
        analysis = result.analysis
        assert analysis.summary and analysis.category and analysis.recommended_specialty
        assert 1 <= analysis.urgency <= 10
        assert analysis.actions, "Default actions fill in for the missing audit"
        assert analysis.diagnostic is not None

    @pytest.mark.asyncio
    async def test_raising_audit_provider_degrades(self, make_orchestrator):
        orch = make_orchestrator(audit_provider(RuntimeError("sdk bug")))
        result = await orch.analyze(AnalysisRequest(problem=PROBLEM))
        assert result.partial is True
        assert result.sources["audit"] == "failure:upstream_error"
        assert result.analysis.urgency == 5

    @pytest.mark.asyncio
    async def test_malformed_audit(self, make_orchestrator):
        orch = make_orchestrator(audit_provider("Je ne peux pas répondre en JSON."))
        result = await orch.analyze(AnalysisRequest(problem=PROBLEM))
        assert result.partial is True
        assert result.sources["audit"] == "failure:malformed_output"
        assert result.analysis.recommended_template_id == "mise-en-demeure-generale"

    @pytest.mark.asyncio
    async def test_lookup_failure_keeps_analysis(self, make_orchestrator):
        audit = audit_provider(as_json(AUDIT_REPLY))
        lookup = lookup_provider(httpx.ConnectError("down"))
        orch = make_orchestrator(audit, lookup)
        result = await orch.analyze(AnalysisRequest(problem=PROBLEM, location="Lyon"))
        assert result.partial is True
        assert result.sources["lookup"] == "failure:upstream_error"
        assert result.directory == []
        assert result.analysis.urgency == 8, "Audit result survives a lookup failure"

    @pytest.mark.asyncio
    async def test_nothing_configured(self, make_orchestrator):
        orch = make_orchestrator()
        result = await orch.analyze(AnalysisRequest(problem=PROBLEM, location="Lyon"))
        assert result.sources == {
            "audit": "failure:not_configured",
            "lookup": "failure:not_configured",
        }
        assert result.partial is True, "A missing audit still makes the result partial"

    @pytest.mark.asyncio
    async def test_no_location_skips_lookup(self, make_orchestrator):
        lookup = lookup_provider()
        orch = make_orchestrator(audit_provider(as_json(AUDIT_REPLY)), lookup)
        result = await orch.analyze(AnalysisRequest(problem=PROBLEM, location="  "))
        assert result.sources["lookup"] == "skipped:no_location"
        assert lookup.calls == 0
        assert result.partial is False

    @pytest.mark.asyncio
    async def test_unknown_template_id(self, make_orchestrator):
        reply = dict(AUDIT_REPLY, recommendedTemplateId="modele-inconnu")
        orch = make_orchestrator(audit_provider(as_json(reply)))
        result = await orch.analyze(AnalysisRequest(problem=PROBLEM))
        assert result.analysis.recommended_template_id == "modele-inconnu"
        assert result.recommended_template is None


# =====================================================================
# Deadline budget
# =====================================================================


class TestBudget:
    @pytest.mark.asyncio
    async def test_slow_audit_skips_lookup(self, make_orchestrator, clock):
        # 6.75s audit leaves 1250ms: above the guard but under the lookup budget
        audit = audit_provider(as_json(AUDIT_REPLY), clock=clock, cost_s=6.75)
        lookup = lookup_provider()
        orch = make_orchestrator(audit, lookup)

        result = await orch.analyze(AnalysisRequest(problem=PROBLEM, location="Lyon"))

        assert lookup.calls == 0, "Lookup must not start without its margin"
        assert result.sources["lookup"] == "skipped:no_time"
        assert result.partial is True
        assert result.analysis.urgency == 8, "The audit result is still used"
        assert result.elapsed_ms == 6750

    @pytest.mark.asyncio
    async def test_exhausted_budget_skips_audit(self, make_orchestrator, clock):
        audit = audit_provider(as_json(AUDIT_REPLY))
        orch = make_orchestrator(audit)
        budget = orch.new_budget()
        clock.advance(6.0)  # 2000ms left, audit needs 2500ms

        result = await orch.analyze(AnalysisRequest(problem=PROBLEM), budget)

        assert audit.calls == 0
        assert result.sources["audit"] == "skipped:no_time"
        assert result.partial is True
        assert result.analysis.urgency == 5

    @pytest.mark.asyncio
    async def test_provider_timeout_bounded_by_remaining(self, make_orchestrator, clock):
        audit = audit_provider(as_json(AUDIT_REPLY), timeout_ms=7000)
        orch = make_orchestrator(audit)
        budget = orch.new_budget()
        clock.advance(3.0)
        await orch.analyze(AnalysisRequest(problem=PROBLEM), budget)
        assert audit.timeouts == [5.0], "Provider timeout must not exceed the remaining budget"

    @pytest.mark.asyncio
    async def test_expired_after_audit(self, make_orchestrator, clock):
        audit = audit_provider(as_json(AUDIT_REPLY), clock=clock, cost_s=9.0)
        orch = make_orchestrator(audit, lookup_provider())
        result = await orch.analyze(AnalysisRequest(problem=PROBLEM, location="Lyon"))
        assert result.partial is True
        assert result.recommended_template is None, "No enrichment after the deadline"
        assert result.sources["lookup"] == "skipped:no_time"


# =====================================================================
# Input validation & sessions
# =====================================================================


class TestInput:
    @pytest.mark.asyncio
    async def test_short_problem_rejected(self, make_orchestrator):
        orch = make_orchestrator()
        with pytest.raises(IncompleteIntake) as info:
            await orch.analyze(AnalysisRequest(problem="Trop court"))
        assert info.value.question_id == "problem"

    @pytest.mark.asyncio
    async def test_finalize_uses_session_answers(self, make_orchestrator):
        audit = audit_provider(as_json(AUDIT_REPLY))
        lookup = lookup_provider()
        orch = make_orchestrator(audit, lookup)
        session = IntakeSession(session_id="s", answers=dict(FULL_ANSWERS))

        result = await orch.finalize_session(session)

        assert audit.requests[0].problem == FULL_ANSWERS["situation"]
        assert audit.requests[0].location == "Lyon"
        assert result.sources["lookup"] == "success"

    @pytest.mark.asyncio
    async def test_finalize_without_situation(self, make_orchestrator):
        orch = make_orchestrator()
        with pytest.raises(IncompleteIntake) as info:
            await orch.finalize_session(IntakeSession(session_id="s", answers={"city": "Lyon"}))
        assert info.value.question_id == "situation"
