"""Exception taxonomy for the intake SDK.

Only caller input errors and admission-control rejections are raised out of
the SDK.  Provider trouble is never raised: the gateway turns it into a
:class:`~legal_intake.models.result.Failure` and the coalescer absorbs it.

Several classes inherit from built-in exceptions (``ValueError``,
``LookupError``) so that callers which only know the builtins still
classify them correctly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from legal_intake.ratelimit import RateDecision


class IntakeError(Exception):
    """Base class for all errors raised by the intake SDK."""


class CatalogError(IntakeError, ValueError):
    """The question catalog is inconsistent (duplicate id, dangling reference)."""


class ValidationError(IntakeError, ValueError):
    """Caller input failed a validation rule.

    ``reason`` is a short human-readable description of the rule that was
    violated; ``question_id`` names the offending question when there is one.
    """

    def __init__(self, reason: str, question_id: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.question_id = question_id

    def to_dict(self) -> dict:
        return {"reason": self.reason, "question_id": self.question_id}


class IncompleteIntake(ValidationError):
    """The analysis request lacks the minimum required facts."""


class SessionNotFound(IntakeError, LookupError):
    """An intake session id does not exist in the session store."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: session_id={session_id}")
        self.session_id = session_id


class RateLimited(IntakeError):
    """Admission denied by the sliding-window rate limiter."""

    def __init__(self, decision: RateDecision) -> None:
        super().__init__(
            f"Rate limit exceeded for key={decision.key}: "
            f"{decision.count}/{decision.limit} in window"
        )
        self.decision = decision


class ProviderError(IntakeError):
    """Upstream answered but the response envelope was unusable.

    Raised by provider clients and converted into a ``Failure`` by the
    gateway; it never escapes :class:`~legal_intake.providers.ProviderGateway`.
    """
