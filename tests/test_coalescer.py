"""ResultCoalescer tests — totality and field-level fallbacks."""

import pytest

from legal_intake.coalescer import coalesce
from legal_intake.models.analysis import Analysis
from legal_intake.models.result import Failure, FailureKind, Skipped, Success

from conftest import AUDIT_REPLY, FULL_ANSWERS


class TestTotality:
    @pytest.mark.parametrize("audit", [
        None,
        "not a dict",
        [1, 2, 3],
        {},
        {"urgency": "n/a", "complexity": 12, "actions": "one", "needsLawyer": "yes"},
        {"urgency": float("nan"), "diagnostic": ["bad"], "estimated_costs": 3},
        Failure(kind=FailureKind.TIMEOUT),
        Skipped(reason="no_time"),
    ])
    def test_always_complete(self, coalescer, audit):
        analysis = coalescer.coalesce(audit, {})
        assert isinstance(analysis, Analysis)
        assert 1 <= analysis.urgency <= 10
        assert analysis.actions, "actions must never be empty"
        assert analysis.summary and analysis.category and analysis.recommended_specialty
        assert analysis.diagnostic.risks and analysis.diagnostic.legal_pitfalls

    def test_garbage_answers(self, coalescer):
        analysis = coalescer.coalesce(None, {"urgency": "très", "situation": 42})
        assert analysis.urgency == 5, "Unparseable urgency falls back to the midpoint"


class TestAuditPreferred:
    def test_audit_fields_win(self, coalescer):
        analysis = coalescer.coalesce(Success(payload=AUDIT_REPLY), FULL_ANSWERS)
        assert analysis.urgency == 8
        assert analysis.needs_lawyer is True
        assert analysis.summary == AUDIT_REPLY["summary"]
        assert analysis.recommended_template_id == "contestation-licenciement"
        assert analysis.diagnostic.problem_statement == "Rappel de salaire"
        assert analysis.diagnostic.risks == ["Prescription"]

    def test_urgency_label(self, coalescer):
        analysis = coalescer.coalesce({"urgency": "Élevée - délais courts"}, {})
        assert analysis.urgency == 7

    def test_urgency_clamped(self, coalescer):
        assert coalescer.coalesce({"urgency": 42}, {}).urgency == 10
        assert coalescer.coalesce({"urgency": -3}, {}).urgency == 1

    def test_french_cost_keys(self, coalescer):
        analysis = coalescer.coalesce(
            {"estimated_costs": {"amiable": "€300-900", "judiciaire": "€3000-8000"}}, {},
        )
        assert analysis.diagnostic.cost_estimate.amicable == "€300-900"
        assert analysis.diagnostic.cost_estimate.litigation == "€3000-8000"


class TestDefaults:
    def test_answers_drive_defaults(self, coalescer):
        analysis = coalescer.coalesce(None, FULL_ANSWERS)
        assert analysis.category == "Droit du travail"
        assert analysis.urgency == 8
        assert analysis.complexity == "Medium", "'Moyenne' maps to Medium"
        assert analysis.needs_lawyer is True, "Urgency >= 7 implies a lawyer"
        assert analysis.recommended_specialty == "Droit du travail"
        assert analysis.recommended_template_id == "contrat-travail"
        assert analysis.summary == FULL_ANSWERS["situation"]

    def test_empty_everything(self, coalescer, defaults):
        analysis = coalescer.coalesce(None, None)
        assert analysis.category == defaults.generic_category
        assert analysis.urgency == defaults.urgency_midpoint
        assert analysis.complexity == "Medium"
        assert analysis.needs_lawyer is False
        assert analysis.recommended_specialty == defaults.default_specialty
        assert analysis.recommended_template_id == defaults.default_template_id
        assert analysis.summary == f"Affaire {defaults.generic_category}"
        assert analysis.actions == defaults.actions

    def test_high_urgency_raises_complexity(self, coalescer):
        analysis = coalescer.coalesce(None, {"urgency": 9})
        assert analysis.complexity == "High"
        assert analysis.diagnostic.urgency_level == "Élevé"

    def test_summary_truncated(self, coalescer, defaults):
        analysis = coalescer.coalesce(None, {"situation": "x" * 1000})
        assert len(analysis.summary) == defaults.summary_max_chars

    def test_module_shortcut(self, defaults):
        assert coalesce(None, {"category": "Consommation"}, defaults).recommended_template_id == (
            "reclamation-consommateur"
        )
