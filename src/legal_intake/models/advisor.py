"""Fixed-shape model outputs: extraction fields and advisor replies.

Both are parsed from language-model text through
:func:`legal_intake.parsing.parse_model` and never trusted at the call site
until validation succeeded.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExtractedFields(BaseModel):
    """Small scalar object emitted by the model-assisted extraction pass.

    Unknown keys are ignored; every field is optional.
    """

    model_config = ConfigDict(extra="ignore")

    city: Optional[str] = None
    urgency: Optional[float] = None
    budget: Optional[float] = None
    amount: Optional[float] = None
    category: Optional[str] = None


AdvisorActionType = Literal[
    "triage", "generate_contract", "review", "explain", "search_lawyers", "none",
]


class AdvisorAction(BaseModel):
    type: AdvisorActionType
    args: dict[str, Any] = Field(default_factory=dict)


class AdvisorOutput(BaseModel):
    """One advisor turn: classification plus exactly one proposed action."""

    thought: str
    followup_question: Optional[str] = None
    action: AdvisorAction
    reply_text: str


class AdvisorReply(BaseModel):
    """What the advisor loop hands back to callers."""

    output: AdvisorOutput
    iterations: int
    # True if the loop stopped on its iteration cap with a follow-up pending
    capped: bool = False
    # True if no provider output validated and the fallback reply was used
    fallback: bool = False
