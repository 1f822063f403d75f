"""ProviderGateway — bounded, non-raising provider invocation.

``call(provider, request, remaining_ms)`` always returns a
:data:`~legal_intake.models.result.ProviderResult`:

    not configured                 → Failure(not_configured), no network I/O
    timeout fired                  → Failure(timeout)
    non-2xx status / transport     → Failure(upstream_error)
    provider raised anything else  → Failure(upstream_error)
    body unparseable or parser bug → Failure(malformed_output)
    otherwise                      → Success(payload)

The timeout is ``min(remaining_ms, provider.default_timeout_ms)`` and is
enforced twice: on the transport (passed to ``send``) and around the whole
coroutine with ``asyncio.wait_for`` so a slow parse or a misbehaving
transport cannot keep the caller past its deadline.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

import httpx

from legal_intake.errors import ProviderError
from legal_intake.models.result import Failure, FailureKind, ParseFailure, Success
from legal_intake.providers.base import Provider

logger = logging.getLogger(__name__)


class ProviderGateway:
    """Stateless wrapper applying timeout and error classification.

    Args:
        clock: monotonic clock in seconds, used only for ``elapsed_ms``
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock

    async def call(
        self, provider: Provider, request: Any, remaining_ms: int
    ) -> Success | Failure:
        if not provider.is_configured:
            logger.info("Provider %s not configured; skipping network call", provider.name)
            return Failure(kind=FailureKind.NOT_CONFIGURED, detail=f"{provider.name} has no credentials")

        timeout_ms = min(int(remaining_ms), int(provider.default_timeout_ms))
        if timeout_ms <= 0:
            return Failure(kind=FailureKind.TIMEOUT, detail="No time left for call")
        timeout_s = timeout_ms / 1000.0

        started = self._clock()
        try:
            raw = await asyncio.wait_for(provider.send(request, timeout_s), timeout=timeout_s)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            elapsed = self._elapsed_ms(started)
            logger.warning(
                "Provider %s timed out after %dms (limit %dms)", provider.name, elapsed, timeout_ms,
            )
            return Failure(kind=FailureKind.TIMEOUT, detail=f"limit {timeout_ms}ms", elapsed_ms=elapsed)
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("Provider %s returned HTTP %d", provider.name, status)
            return Failure(
                kind=FailureKind.UPSTREAM_ERROR,
                detail=f"HTTP {status}",
                elapsed_ms=self._elapsed_ms(started),
            )
        except (httpx.HTTPError, ProviderError) as exc:
            logger.warning("Provider %s upstream error: %s", provider.name, exc)
            return Failure(
                kind=FailureKind.UPSTREAM_ERROR,
                detail=str(exc) or type(exc).__name__,
                elapsed_ms=self._elapsed_ms(started),
            )
        except Exception as exc:
            logger.exception("Provider %s raised unexpectedly", provider.name)
            return Failure(
                kind=FailureKind.UPSTREAM_ERROR,
                detail=type(exc).__name__,
                elapsed_ms=self._elapsed_ms(started),
            )

        elapsed = self._elapsed_ms(started)
        try:
            parsed = provider.parse(raw)
        except Exception as exc:
            logger.exception("Provider %s parser raised", provider.name)
            parsed = ParseFailure(reason=f"parser raised {type(exc).__name__}")
        if isinstance(parsed, ParseFailure):
            logger.warning("Provider %s returned malformed output: %s", provider.name, parsed.reason)
            return Failure(
                kind=FailureKind.MALFORMED_OUTPUT,
                detail=parsed.reason,
                elapsed_ms=elapsed,
                raw=raw[:4000] if isinstance(raw, str) else None,
            )

        logger.debug("Provider %s succeeded in %dms", provider.name, elapsed)
        return Success(payload=parsed.value, elapsed_ms=elapsed)

    def _elapsed_ms(self, started: float) -> int:
        return max(0, int((self._clock() - started) * 1000))
