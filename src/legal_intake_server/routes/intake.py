"""Intake endpoints — guided question/answer sessions.

Sessions are created explicitly with ``POST /sessions``.  Answer and
freeform writes to an unknown id create the session on the fly (see
:class:`~legal_intake.flow.FlowController`); reads, finalisation and
deletion of an unknown id return 404.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from legal_intake.catalog import QuestionCatalog
from legal_intake.extractor import FreeformExtractor
from legal_intake.flow import FlowController
from legal_intake.models.analysis import AnalysisResult
from legal_intake.models.session import IntakeStep, QuestionPayload
from legal_intake.orchestrator import AnalysisOrchestrator

from legal_intake_server.dependencies import (
    get_catalog,
    get_extractor,
    get_flow,
    get_orchestrator,
    rate_limit,
)

router = APIRouter(prefix="/intake", tags=["intake"], dependencies=[Depends(rate_limit)])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class StartSessionRequest(BaseModel):
    """Body for POST /intake/sessions (optional)."""
    session_id: str | None = None


class AnswerRequest(BaseModel):
    """Body for POST /intake/sessions/{session_id}/answers."""
    question_id: str
    # str, list[str], number or ISO date depending on the question type
    value: Any = None


class FreeformRequest(BaseModel):
    """Body for POST /intake/sessions/{session_id}/freeform."""
    message: str


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("/questions")
async def list_questions(
    catalog: QuestionCatalog = Depends(get_catalog),
) -> list[QuestionPayload]:
    """All catalog questions in traversal order (visibility not applied)."""
    return [FlowController.question_to_payload(q) for q in catalog]


@router.post("/sessions", status_code=201)
async def start_session(
    body: StartSessionRequest | None = None,
    flow: FlowController = Depends(get_flow),
) -> IntakeStep:
    """Start a session; the id is server-generated unless supplied."""
    return await flow.start(body.session_id if body is not None else None)


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    flow: FlowController = Depends(get_flow),
) -> IntakeStep:
    return await flow.get_step(session_id)


@router.post("/sessions/{session_id}/answers")
async def answer_question(
    session_id: str,
    body: AnswerRequest,
    flow: FlowController = Depends(get_flow),
) -> IntakeStep:
    """Record one answer; returns the next question and progress.

    Raises 400 with the violated rule when the value does not validate.
    """
    return await flow.answer(session_id, body.question_id, body.value)


@router.post("/sessions/{session_id}/freeform")
async def freeform(
    session_id: str,
    body: FreeformRequest,
    flow: FlowController = Depends(get_flow),
    extractor: FreeformExtractor = Depends(get_extractor),
) -> IntakeStep:
    """Fill unanswered questions from a free-text message.

    ``filled`` in the response lists the question ids that were set.
    """
    session = await flow.load_or_create(session_id)
    filled = await extractor.extract(session, body.message)
    await flow.save(session)
    return flow.build_step(session, filled=filled)


@router.post("/sessions/{session_id}/finalize")
async def finalize(
    session_id: str,
    flow: FlowController = Depends(get_flow),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> AnalysisResult:
    """Run the analysis on the session's answers."""
    session = await flow.load(session_id)
    return await orchestrator.finalize_session(session)


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    flow: FlowController = Depends(get_flow),
) -> None:
    await flow.delete(session_id)
