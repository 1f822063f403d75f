"""Sliding-window rate limiter with a Redis log and an in-memory fallback.

Each admission attempt logs one hit for the caller key, discards hits older
than the window and counts the rest.  With ``limit = N`` the first ``N``
hits inside any window are admitted and hit ``N + 1`` is rejected.
Rejected hits are logged too, so a caller that keeps hammering stays
limited until it backs off for a full window.

``RedisCounterStore`` runs trim, insert, count, oldest-lookup and expire in
one MULTI/EXEC transaction so concurrent hits on the same key cannot
interleave.  Every store call is bounded by ``RATE_LIMIT_STORE_TIMEOUT_MS``.
When Redis is unreachable, too slow or not configured, the limiter uses a
per-process :class:`InMemoryCounterStore` with the same semantics.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
import uuid
from dataclasses import dataclass
from typing import Callable

from redis.asyncio import Redis
from redis.exceptions import RedisError

from legal_intake.constants import (
    RATE_LIMIT_KEY_TTL_S,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_STORE_TIMEOUT_MS,
    RATE_LIMIT_SWEEP_EVERY,
    RATE_LIMIT_WINDOW_S,
)
from legal_intake.errors import RateLimited
from legal_intake.interfaces import RateCounterStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateDecision:
    """Outcome of one admission attempt."""

    key: str
    allowed: bool
    count: int
    limit: int
    remaining: int
    # Seconds until the oldest hit leaves the window
    reset_seconds: int

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_seconds),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.reset_seconds)
        return headers


# ---------------------------------------------------------------------------
# Counter stores
# ---------------------------------------------------------------------------

class InMemoryCounterStore(RateCounterStore):
    """Per-process ``key → [timestamps]`` log.

    Keys whose newest hit has left the window are dropped every
    ``sweep_every`` records, so idle callers do not accumulate.
    """

    def __init__(self, *, sweep_every: int = RATE_LIMIT_SWEEP_EVERY) -> None:
        self._hits: dict[str, list[float]] = {}
        self._sweep_every = max(1, sweep_every)
        self._since_sweep = 0

    def __len__(self) -> int:
        return len(self._hits)

    async def record(self, key: str, now: float, window_s: float) -> tuple[int, float | None]:
        # No await between trim and count, so this is atomic within the event loop
        window_start = now - window_s
        self._since_sweep += 1
        if self._since_sweep >= self._sweep_every:
            self._sweep(window_start)
        hits = [t for t in self._hits.get(key, []) if t > window_start]
        hits.append(now)
        self._hits[key] = hits
        return len(hits), hits[0]

    def _sweep(self, window_start: float) -> None:
        self._since_sweep = 0
        stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for k in stale:
            del self._hits[k]
        if stale:
            logger.debug("Dropped %d idle rate-limit keys", len(stale))

    def clear(self) -> None:
        self._hits.clear()
        self._since_sweep = 0


class RedisCounterStore(RateCounterStore):
    """Sorted-set log in Redis (one zset per caller key).

    Args:
        client: ``redis.asyncio.Redis`` instance
        ttl_s: key expiry, refreshed on every hit; must exceed the window
    """

    def __init__(self, client: Redis, *, ttl_s: int = RATE_LIMIT_KEY_TTL_S) -> None:
        self._client = client
        self._ttl_s = ttl_s

    @classmethod
    def from_url(
        cls, url: str, *, timeout_ms: int = RATE_LIMIT_STORE_TIMEOUT_MS, **kwargs
    ) -> "RedisCounterStore":
        timeout_s = timeout_ms / 1000.0
        client = Redis.from_url(url, socket_timeout=timeout_s, socket_connect_timeout=timeout_s)
        return cls(client, **kwargs)

    async def record(self, key: str, now: float, window_s: float) -> tuple[int, float | None]:
        # Unique member so two hits in the same instant both count
        member = f"{now:.6f}-{uuid.uuid4().hex[:8]}"
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(key, 0, now - window_s)
            pipe.zadd(key, {member: now})
            pipe.zcard(key)
            pipe.zrange(key, 0, 0, withscores=True)
            pipe.expire(key, self._ttl_s)
            _, _, count, oldest, _ = await pipe.execute()
        oldest_ts = float(oldest[0][1]) if oldest else None
        return int(count), oldest_ts

    async def aclose(self) -> None:
        await self._client.aclose()


# ---------------------------------------------------------------------------
# Limiter
# ---------------------------------------------------------------------------

class SlidingWindowRateLimiter:
    """Admission gate shared by all entry points.

    Args:
        store: primary counter store (``None`` = in-memory only)
        limit: hits admitted per window
        window_s: window length in seconds
        clock: wall clock in seconds; must agree across processes sharing Redis
        prefix: namespace for caller keys
        store_timeout_ms: ceiling on one primary store call; on expiry the
            hit is counted by the in-memory fallback instead
    """

    def __init__(
        self,
        store: RateCounterStore | None = None,
        *,
        limit: int = RATE_LIMIT_MAX_REQUESTS,
        window_s: float = RATE_LIMIT_WINDOW_S,
        clock: Callable[[], float] = time.time,
        prefix: str = "rl",
        store_timeout_ms: int = RATE_LIMIT_STORE_TIMEOUT_MS,
    ) -> None:
        self._store = store
        self._store_timeout_s = store_timeout_ms / 1000.0
        self._fallback = InMemoryCounterStore()
        self._limit = limit
        self._window_s = window_s
        self._clock = clock
        self._prefix = prefix

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_s(self) -> float:
        return self._window_s

    async def hit(self, caller: str) -> RateDecision:
        """Log one hit for ``caller`` and decide; never raises."""
        key = f"{self._prefix}:{caller}"
        now = self._clock()
        count, oldest = await self._record(key, now)

        if oldest is None:
            oldest = now
        reset = max(1, math.ceil(oldest + self._window_s - now))
        allowed = count <= self._limit
        decision = RateDecision(
            key=key,
            allowed=allowed,
            count=count,
            limit=self._limit,
            remaining=max(0, self._limit - count),
            reset_seconds=reset,
        )
        if not allowed:
            logger.warning(
                "Rate limit exceeded: key=%s count=%d limit=%d reset=%ds",
                key, count, self._limit, reset,
            )
        return decision

    async def check(self, caller: str) -> RateDecision:
        """Like :meth:`hit` but raises ``RateLimited`` on rejection."""
        decision = await self.hit(caller)
        if not decision.allowed:
            raise RateLimited(decision)
        return decision

    async def _record(self, key: str, now: float) -> tuple[int, float | None]:
        if self._store is not None:
            try:
                return await asyncio.wait_for(
                    self._store.record(key, now, self._window_s),
                    timeout=self._store_timeout_s,
                )
            except (RedisError, OSError, asyncio.TimeoutError) as exc:
                logger.warning(
                    "Rate counter store unavailable (%r); using in-memory fallback", exc,
                )
        return await self._fallback.record(key, now, self._window_s)
