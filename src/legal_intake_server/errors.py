"""Global exception handlers — map SDK exceptions to HTTP status codes.

Route handlers stay on the happy path; every SDK exception that can reach
the HTTP layer is translated here:

    ValidationError / IncompleteIntake → 400 with the violated rule
    SessionNotFound                    → 404
    RateLimited                        → 429 with X-RateLimit-* / Retry-After
    other ValueError                   → 400/404/409 by message pattern
    KeyError                           → 404
    anything else                      → 500, traceback in the server log

Provider trouble never gets here; the orchestrator absorbs it.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from legal_intake.errors import RateLimited, SessionNotFound, ValidationError

logger = logging.getLogger(__name__)

# --- Keyword patterns in ValueError messages and their HTTP status codes ---
# Checked in order; first match wins.
_VALUE_ERROR_PATTERNS: list[tuple[str, int]] = [
    ("already exists", 409),
    ("not found", 404),
]


# --- Client-safe messages keyed by HTTP status code ---
# Internal details (session ids, upstream names) stay in the server log.
_SAFE_MESSAGES: dict[int, str] = {
    404: "Resource not found",
    409: "Resource already exists",
    400: "Invalid request",
}


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Caller input violated a rule; the reason is safe to return."""
    logger.info("ValidationError at %s: %s (question_id=%s)", request.url.path, exc.reason, exc.question_id)
    return JSONResponse(
        status_code=400,
        content={"detail": exc.reason, "question_id": exc.question_id},
    )


async def session_not_found_handler(request: Request, exc: SessionNotFound) -> JSONResponse:
    logger.warning("SessionNotFound at %s: %s", request.url.path, exc)
    return JSONResponse(status_code=404, content={"detail": "Session not found"})


async def rate_limited_handler(request: Request, exc: RateLimited) -> JSONResponse:
    """429 carrying the limiter's headers so clients know when to retry."""
    decision = exc.decision
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests",
            "retry_after": decision.reset_seconds,
        },
        headers=decision.headers(),
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map any other ``ValueError`` to a contextual HTTP error response.

    The raw exception message is logged server-side but never sent to the
    client.
    """
    msg = str(exc)
    status = 400  # default
    for pattern, code in _VALUE_ERROR_PATTERNS:
        if pattern in msg.lower():
            status = code
            break

    logger.warning("ValueError [%d] at %s: %s", status, request.url, msg)
    safe_detail = _SAFE_MESSAGES.get(status, "Invalid request")
    return JSONResponse(status_code=status, content={"detail": safe_detail})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Map ``KeyError`` (e.g. unknown question id lookup) to 404."""
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
