"""Direct analysis endpoint — one free-text problem, no intake session."""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from legal_intake.models.analysis import AnalysisRequest, AnalysisResult
from legal_intake.orchestrator import AnalysisOrchestrator

from legal_intake_server.dependencies import get_orchestrator, rate_limit

router = APIRouter(tags=["analysis"], dependencies=[Depends(rate_limit)])


class AnalyzeBody(BaseModel):
    """Body for POST /analyze."""
    problem: str
    city: str | None = None
    # Structured answers already known to the client, keyed by question id
    answers: dict[str, Any] = Field(default_factory=dict)


@router.post("/analyze")
async def analyze(
    body: AnalyzeBody,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> AnalysisResult:
    """Analyse ``problem`` within the deadline budget.

    Always 200 once the input is long enough; ``partial`` and ``sources``
    report which enrichment steps did not complete.
    """
    return await orchestrator.analyze(
        AnalysisRequest(problem=body.problem, location=body.city, answers=body.answers)
    )
