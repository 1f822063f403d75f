"""FastAPI dependency injection — SDK components, caller identity, rate limit.

Components are built once in the lifespan handler and stashed on
``app.state``; the getters below hand them to routes.  ``rate_limit`` is
attached to every intake, analyze and advisor router.
"""

from fastapi import Request, Response

from legal_intake.advisor import AdvisorLoop
from legal_intake.catalog import QuestionCatalog
from legal_intake.extractor import FreeformExtractor
from legal_intake.flow import FlowController
from legal_intake.orchestrator import AnalysisOrchestrator


# ------------------------------------------------------------------
# SDK components, stashed on app.state during lifespan
# ------------------------------------------------------------------

def get_catalog(request: Request) -> QuestionCatalog:
    return request.app.state.catalog


def get_flow(request: Request) -> FlowController:
    return request.app.state.flow


def get_extractor(request: Request) -> FreeformExtractor:
    return request.app.state.extractor


def get_orchestrator(request: Request) -> AnalysisOrchestrator:
    return request.app.state.orchestrator


def get_advisor(request: Request) -> AdvisorLoop:
    return request.app.state.advisor


# ------------------------------------------------------------------
# Caller identity & admission control
# ------------------------------------------------------------------

def caller_key(request: Request) -> str:
    """First ``X-Forwarded-For`` hop when trusted, else the socket address."""
    if request.app.state.settings.trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"


async def rate_limit(request: Request, response: Response) -> None:
    """Admit the request or raise ``RateLimited`` (mapped to 429).

    Admitted responses carry ``X-RateLimit-Limit``, ``X-RateLimit-Remaining``
    and ``X-RateLimit-Reset``.
    """
    limiter = request.app.state.limiter
    if limiter is None:
        return
    decision = await limiter.check(caller_key(request))
    for name, value in decision.headers().items():
        response.headers[name] = value
