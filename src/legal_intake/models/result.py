"""ProviderResult — tagged outcome of one provider call.

The gateway never raises for upstream trouble; it returns one of:

    Success(payload)  — the provider answered and the body parsed
    Failure(kind)     — timeout, upstream_error, malformed_output, not_configured
    Skipped(reason)   — the caller decided not to call at all (e.g. no time left)

Callers dispatch on ``status`` (or ``isinstance``) rather than trusting the
payload shape.  ``ParseResult`` plays the same role for free-text parsing.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, Field

T = TypeVar("T")


class FailureKind(str, enum.Enum):
    """Why a provider call produced no usable payload."""

    TIMEOUT = "timeout"
    UPSTREAM_ERROR = "upstream_error"
    MALFORMED_OUTPUT = "malformed_output"
    NOT_CONFIGURED = "not_configured"


class Success(BaseModel, Generic[T]):
    status: Literal["success"] = "success"
    payload: T
    elapsed_ms: int = 0

    @property
    def tag(self) -> str:
        return "success"


class Failure(BaseModel):
    status: Literal["failure"] = "failure"
    kind: FailureKind
    detail: str | None = None
    elapsed_ms: int = 0
    # Raw response text for malformed_output, kept for repair prompts
    raw: str | None = Field(default=None, exclude=True)

    @property
    def tag(self) -> str:
        return f"failure:{self.kind.value}"


class Skipped(BaseModel):
    status: Literal["skipped"] = "skipped"
    reason: str

    @property
    def tag(self) -> str:
        return f"skipped:{self.reason}"


ProviderResult = Annotated[
    Union[Success[Any], Failure, Skipped],
    Field(discriminator="status"),
]


# ---------------------------------------------------------------------------
# Parse results for model output
# ---------------------------------------------------------------------------

class Parsed(BaseModel, Generic[T]):
    ok: Literal[True] = True
    value: T


class ParseFailure(BaseModel):
    ok: Literal[False] = False
    reason: str


ParseResult = Union[Parsed[Any], ParseFailure]
