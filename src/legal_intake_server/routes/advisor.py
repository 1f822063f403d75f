"""Advisor endpoint — classify a free question into one proposed action."""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from legal_intake.advisor import AdvisorLoop
from legal_intake.models.advisor import AdvisorReply

from legal_intake_server.dependencies import get_advisor, rate_limit

router = APIRouter(tags=["advisor"], dependencies=[Depends(rate_limit)])


class AdvisorBody(BaseModel):
    """Body for POST /advisor."""
    query: str
    # Optional hints; ``followup_answer`` answers follow-up questions
    context: dict[str, Any] = Field(default_factory=dict)


@router.post("/advisor")
async def advise(
    body: AdvisorBody,
    advisor: AdvisorLoop = Depends(get_advisor),
) -> AdvisorReply:
    return await advisor.run(body.query, body.context)
