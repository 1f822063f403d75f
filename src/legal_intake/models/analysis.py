"""Analysis models — the coalesced output of the analysis pipeline.

``Analysis`` is always fully populated: the coalescer fills every field from
the audit provider when the value there is usable and from deterministic
defaults otherwise.  The only nullable field is ``recommended_template_id``.

``AnalysisResult`` wraps an ``Analysis`` with the enrichment the orchestrator
managed to attach before the deadline (template title, directory entries)
and tells the caller whether that enrichment was complete (``partial``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

Complexity = Literal["Low", "Medium", "High"]


class CostEstimate(BaseModel):
    """Indicative fee ranges, as display strings (e.g. "€200-800")."""

    amicable: str
    litigation: str


class Diagnostic(BaseModel):
    """Extended diagnostic block."""

    problem_statement: str
    critical_risk: str
    urgency_level: str
    risks: list[str] = Field(min_length=1)
    legal_pitfalls: list[str] = Field(min_length=1)
    strategy: str
    cost_estimate: CostEstimate
    prognosis_if_no_action: str
    next_step: str


class Analysis(BaseModel):
    """Complete, schema-valid legal analysis."""

    summary: str = Field(min_length=1)
    category: str = Field(min_length=1)
    urgency: int = Field(ge=1, le=10)
    complexity: Complexity
    actions: list[str] = Field(min_length=1)
    needs_lawyer: bool
    recommended_specialty: str = Field(min_length=1)
    recommended_template_id: Optional[str] = None
    diagnostic: Diagnostic


class DirectoryEntry(BaseModel):
    """One professional returned by the lookup provider."""

    name: str
    firm: str | None = None
    specialty: str | None = None
    city: str | None = None
    phone: str | None = None
    rating: float | None = None


class RecommendedTemplate(BaseModel):
    """A template id resolved to a human-readable title."""

    id: str
    name: str
    reason: str


class AnalysisRequest(BaseModel):
    """Input to the orchestrator.

    ``problem`` is the free-text description; ``answers`` carries any
    structured intake answers collected so far (may be empty).
    """

    problem: str
    location: str | None = None
    answers: dict[str, Any] = Field(default_factory=dict)


class AnalysisResult(BaseModel):
    """Final orchestrator response."""

    type: Literal["analysis"] = "analysis"
    analysis: Analysis
    recommended_template: RecommendedTemplate | None = None
    directory: list[DirectoryEntry] = Field(default_factory=list)
    # True when enrichment stopped early (provider failure, deadline reached)
    partial: bool = False
    # Per-provider outcome tags, e.g. {"audit": "failure:timeout", "lookup": "success"}
    sources: dict[str, str] = Field(default_factory=dict)
    elapsed_ms: int = 0
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
