"""Abstract interfaces for pluggable storage back-ends.

These ABCs define the contract that concrete back-ends must fulfil.  The SDK
ships in-memory implementations (:mod:`legal_intake.store`,
:mod:`legal_intake.ratelimit`); ``legal_intake_db`` provides the SQL session
store and ``legal_intake.ratelimit`` the Redis counter store.

Typical wiring::

    store: SessionStore = InMemorySessionStore()
    flow = FlowController(catalog, store)

    counters: RateCounterStore = RedisCounterStore(redis_client)
    limiter = SlidingWindowRateLimiter(counters)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from legal_intake.models.session import IntakeSession


class SessionStore(ABC):
    """Persistence for intake sessions keyed by ``session_id``.

    Implementations must make ``put`` visible to a subsequent ``get`` for
    the same id.  Concurrent writers to the same session are a caller error;
    the last ``put`` wins.
    """

    @abstractmethod
    async def get(self, session_id: str) -> IntakeSession | None:
        """Return the stored session or ``None`` if it does not exist."""
        ...

    @abstractmethod
    async def put(self, session: IntakeSession) -> None:
        """Insert or replace ``session``."""
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Remove a session.  Returns ``True`` if something was deleted."""
        ...


class RateCounterStore(ABC):
    """Sliding-window hit log for the rate limiter.

    ``record`` must behave atomically: trimming expired hits, adding the
    new hit and counting must not interleave with another ``record`` on the
    same key.
    """

    @abstractmethod
    async def record(self, key: str, now: float, window_s: float) -> tuple[int, float | None]:
        """Log one hit at ``now`` and return ``(count, oldest)``.

        Parameters
        ----------
        key:
            Caller identity (e.g. ``"rl:analyze:203.0.113.7"``).
        now:
            Current time in seconds.
        window_s:
            Window length; hits older than ``now - window_s`` are discarded.

        Returns
        -------
        tuple[int, float | None]
            Hits inside the window including this one, and the timestamp
            of the oldest of them.
        """
        ...


class TemplateLookup(ABC):
    """Document template index, used to title a recommended template id."""

    @abstractmethod
    async def get_template(self, template_id: str) -> dict[str, Any] | None:
        """Return ``{"id", "title", ...}`` or ``None`` if the id is unknown."""
        ...
