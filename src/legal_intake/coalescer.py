"""Result coalescer — audit output + deterministic defaults → Analysis.

:func:`coalesce` is total.  Whatever it is given (a ``Success`` wrapping a
well-formed audit object, a ``Failure``, ``None``, a list, a dict of wrong
types) it returns an :class:`~legal_intake.models.analysis.Analysis` whose
required fields are all populated.  For each field the audit value is used
when present and of the expected shape; otherwise a default is derived from
the intake answers and the YAML heuristics in ``data/defaults.yaml``.

The audit upstream is loosely specified, so several key spellings are
accepted (``needsLawyer`` / ``needs_lawyer``, ``lawyerSpecialty`` /
``specialty``, French diagnostic keys, ...).
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from legal_intake.catalog import DATA_DIR, load_yaml
from legal_intake.constants import CATEGORY_QID, SITUATION_QID, URGENCY_QID
from legal_intake.models.analysis import Analysis, Complexity, CostEstimate, Diagnostic
from legal_intake.models.result import Success

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

class SpecialtyRule(BaseModel):
    keyword: str
    specialty: str
    template_id: Optional[str] = None


class DiagnosticDefaults(BaseModel):
    problem_statement: str
    critical_risk: str
    strategy: str
    prognosis_if_no_action: str
    next_step: str


class CoalescerDefaults(BaseModel):
    """Business heuristics backing every coalesced field."""

    urgency_midpoint: int = 5
    high_urgency_threshold: int = 7
    urgency_labels: dict[str, int] = Field(default_factory=dict)
    urgency_level_high: str = "Élevé"
    urgency_level_moderate: str = "Modéré"
    complexity_aliases: dict[str, Complexity] = Field(default_factory=dict)
    generic_category: str = "Droit général"
    summary_max_chars: int = 280
    specialty_rules: list[SpecialtyRule] = Field(default_factory=list)
    default_specialty: str = "Généraliste"
    default_template_id: Optional[str] = None
    actions: list[str] = Field(min_length=1)
    risks: list[str] = Field(min_length=1)
    legal_pitfalls: list[str] = Field(min_length=1)
    cost_estimate: CostEstimate
    diagnostic: DiagnosticDefaults

    @classmethod
    def load(cls, path: str | Path | None = None) -> "CoalescerDefaults":
        """Load heuristics from YAML (the packaged ``defaults.yaml`` by default)."""
        path = Path(path) if path is not None else DATA_DIR / "defaults.yaml"
        defaults = cls.model_validate(load_yaml(path))
        logger.info(
            "CoalescerDefaults loaded: %d urgency labels, %d specialty rules",
            len(defaults.urgency_labels), len(defaults.specialty_rules),
        )
        return defaults


_DEFAULTS: CoalescerDefaults | None = None


def get_defaults() -> CoalescerDefaults:
    """Packaged defaults, loaded once per process."""
    global _DEFAULTS
    if _DEFAULTS is None:
        _DEFAULTS = CoalescerDefaults.load()
    return _DEFAULTS


# ---------------------------------------------------------------------------
# Shape helpers
# ---------------------------------------------------------------------------

def _as_dict(value: Any) -> dict:
    if isinstance(value, Success):
        value = value.payload
    if isinstance(value, BaseModel):
        value = value.model_dump()
    return value if isinstance(value, dict) else {}


def _text(source: dict, *keys: str) -> str | None:
    for key in keys:
        value = source.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _text_list(source: dict, *keys: str) -> list[str] | None:
    for key in keys:
        value = source.get(key)
        if isinstance(value, list):
            items = [v.strip() for v in value if isinstance(v, str) and v.strip()]
            if items:
                return items
    return None


def _number(value: Any) -> float | None:
    """Finite number from an int/float or numeric string, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip().replace(",", "."))
        except ValueError:
            return None
    if isinstance(value, (int, float)) and math.isfinite(value):
        return float(value)
    return None


def _clamp_urgency(value: float) -> int:
    return max(1, min(10, int(round(value))))


# ---------------------------------------------------------------------------
# Coalescing
# ---------------------------------------------------------------------------

class ResultCoalescer:
    """Merges one audit outcome with defaults.  See module docstring."""

    def __init__(self, defaults: CoalescerDefaults | None = None) -> None:
        self._d = defaults or get_defaults()

    @property
    def defaults(self) -> CoalescerDefaults:
        return self._d

    def coalesce(self, audit: Any, answers: Any = None) -> Analysis:
        audit_d = _as_dict(audit)
        answers_d = answers if isinstance(answers, dict) else {}
        try:
            return self._coalesce(audit_d, answers_d)
        except Exception:
            # Last resort so the function stays total even on unforeseen input
            logger.exception("Coalescing failed; falling back to defaults only")
            return self._coalesce({}, {})

    def _coalesce(self, audit: dict, answers: dict) -> Analysis:
        d = self._d
        diag_in = audit.get("diagnostic") if isinstance(audit.get("diagnostic"), dict) else {}

        category = (
            _text(audit, "category")
            or _text(answers, CATEGORY_QID)
            or d.generic_category
        )
        urgency = self._urgency(audit, diag_in, answers)
        complexity = self._complexity(audit, answers, urgency)
        high = urgency >= d.high_urgency_threshold

        summary = _text(audit, "summary")
        if summary is None:
            situation = _text(answers, SITUATION_QID)
            summary = situation[: d.summary_max_chars] if situation else f"Affaire {category}"

        needs_lawyer = audit.get("needsLawyer", audit.get("needs_lawyer"))
        if not isinstance(needs_lawyer, bool):
            needs_lawyer = high or complexity == "High"

        rule = self._rule_for(category)
        specialty = (
            _text(audit, "lawyerSpecialty", "recommended_specialty", "specialty")
            or (rule.specialty if rule else d.default_specialty)
        )
        template_id = _text(audit, "recommendedTemplateId", "recommended_template_id")
        if template_id is None:
            template_id = rule.template_id if rule and rule.template_id else d.default_template_id

        diagnostic = Diagnostic(
            problem_statement=(
                _text(diag_in, "probleme_principal", "problem_statement")
                or d.diagnostic.problem_statement
            ),
            critical_risk=(
                _text(diag_in, "risque_critique", "critical_risk")
                or d.diagnostic.critical_risk
            ),
            urgency_level=(
                _text(diag_in, "niveau_urgence", "urgency_level")
                or (d.urgency_level_high if high else d.urgency_level_moderate)
            ),
            risks=(
                _text_list(audit, "risks")
                or _text_list(_as_dict(audit.get("risk_matrix")), "main_risks")
                or list(d.risks)
            ),
            legal_pitfalls=_text_list(audit, "pieges_juridiques", "legal_pitfalls") or list(d.legal_pitfalls),
            strategy=_text(audit, "analyse_strategique", "strategy") or d.diagnostic.strategy,
            cost_estimate=self._costs(audit),
            prognosis_if_no_action=(
                _text(audit, "prognosis_if_no_action") or d.diagnostic.prognosis_if_no_action
            ),
            next_step=_text(audit, "next_critical_step", "next_step") or d.diagnostic.next_step,
        )

        return Analysis(
            summary=summary,
            category=category,
            urgency=urgency,
            complexity=complexity,
            actions=_text_list(audit, "actions") or list(d.actions),
            needs_lawyer=needs_lawyer,
            recommended_specialty=specialty,
            recommended_template_id=template_id,
            diagnostic=diagnostic,
        )

    # --- field derivations ---

    def _label_score(self, label: str | None) -> int | None:
        """Score for "Élevée" or "Élevée - explication", case-insensitive."""
        if not label:
            return None
        head = label.split("-")[0].split(":")[0].strip().lower()
        for name, score in self._d.urgency_labels.items():
            if head == name.lower():
                return score
        return None

    def _urgency(self, audit: dict, diag_in: dict, answers: dict) -> int:
        raw = audit.get("urgency")
        number = _number(raw)
        if number is not None:
            return _clamp_urgency(number)
        score = self._label_score(raw if isinstance(raw, str) else None)
        if score is None:
            score = self._label_score(_text(diag_in, "niveau_urgence", "urgency_level"))
        if score is not None:
            return _clamp_urgency(score)
        number = _number(answers.get(URGENCY_QID))
        if number is not None:
            return _clamp_urgency(number)
        return _clamp_urgency(self._d.urgency_midpoint)

    def _complexity(self, audit: dict, answers: dict, urgency: int) -> Complexity:
        aliases = {k.lower(): v for k, v in self._d.complexity_aliases.items()}
        for source in (audit, answers):
            label = _text(source, "complexity")
            if label is None:
                continue
            canonical = aliases.get(label.split("-")[0].strip().lower())
            if canonical is not None:
                return canonical
        return "High" if urgency >= self._d.high_urgency_threshold else "Medium"

    def _rule_for(self, category: str) -> SpecialtyRule | None:
        lower = category.lower()
        for rule in self._d.specialty_rules:
            if rule.keyword.lower() in lower:
                return rule
        return None

    def _costs(self, audit: dict) -> CostEstimate:
        costs = _as_dict(audit.get("estimated_costs") or audit.get("cost_estimate"))
        return CostEstimate(
            amicable=_text(costs, "amiable", "amicable") or self._d.cost_estimate.amicable,
            litigation=_text(costs, "judiciaire", "litigation") or self._d.cost_estimate.litigation,
        )


def coalesce(audit: Any, answers: Any = None, defaults: CoalescerDefaults | None = None) -> Analysis:
    """Functional shortcut for :meth:`ResultCoalescer.coalesce`."""
    return ResultCoalescer(defaults).coalesce(audit, answers)
