"""DeadlineBudget — monotonic wall-clock allowance for one request.

A budget is created once per top-level request and handed down to every
component that may start slow work.  Callers ask :meth:`has_margin` before
starting a provider call; a budget at or below its guard threshold means
"stop starting new work", never an error.

The clock is injectable so tests can drive time explicitly::

    clock = FakeClock()
    budget = DeadlineBudget(8000, clock=clock)
    clock.advance(7.5)
    budget.remaining()   # 500
"""

from __future__ import annotations

import time
from typing import Callable

from legal_intake.constants import ANALYSIS_WINDOW_MS, BUDGET_GUARD_MS

Clock = Callable[[], float]


class DeadlineBudget:
    """Absolute monotonic deadline with derived remaining time.

    Args:
        window_ms: length of the allowance, starting now
        guard_ms: remaining time at or below which dependent work is skipped
        clock: monotonic clock returning seconds (defaults to ``time.monotonic``)
    """

    def __init__(
        self,
        window_ms: int = ANALYSIS_WINDOW_MS,
        *,
        guard_ms: int = BUDGET_GUARD_MS,
        clock: Clock = time.monotonic,
    ) -> None:
        self._clock = clock
        self._window_ms = window_ms
        self._guard_ms = guard_ms
        self._deadline = clock() + window_ms / 1000.0

    @property
    def window_ms(self) -> int:
        return self._window_ms

    @property
    def guard_ms(self) -> int:
        return self._guard_ms

    def remaining(self) -> int:
        """Milliseconds left before the deadline, never negative."""
        left = (self._deadline - self._clock()) * 1000.0
        return max(0, int(left))

    def expired(self) -> bool:
        return self.remaining() <= 0

    def exhausted(self) -> bool:
        """True once remaining time is at or below the guard threshold."""
        return self.remaining() <= self._guard_ms

    def has_margin(self, needed_ms: int) -> bool:
        """True if there is room to start work that needs ``needed_ms``.

        Requires both that the guard threshold has not been reached and that
        at least ``needed_ms`` remain.
        """
        left = self.remaining()
        return left > self._guard_ms and left >= needed_ms

    def __repr__(self) -> str:
        return f"<DeadlineBudget(window={self._window_ms}ms, remaining={self.remaining()}ms)>"


def new_budget(window_ms: int = ANALYSIS_WINDOW_MS, *, clock: Clock = time.monotonic) -> DeadlineBudget:
    """Create a fresh budget starting now."""
    return DeadlineBudget(window_ms, clock=clock)
