"""Provider — one interchangeable upstream analysis service.

A provider knows how to talk to its upstream (``send``) and how to turn the
raw reply into its expected shape (``parse``).  It does not deal with
timeouts or error classification; :class:`ProviderGateway` does both, so
every provider gets identical failure semantics.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from legal_intake.models.result import ParseResult


class Provider(ABC):
    """Interface for an upstream provider role (audit, lookup, ...).

    Subclasses set ``name`` and ``default_timeout_ms``.
    """

    name: str = "provider"
    default_timeout_ms: int = 5000

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """False when credentials or endpoint are missing.

        The gateway checks this before any network I/O.
        """
        ...

    @abstractmethod
    async def send(self, request: Any, timeout_s: float) -> str:
        """Perform the upstream call and return the raw reply text.

        Parameters
        ----------
        request:
            Provider-specific request model.
        timeout_s:
            Hard client-side timeout to apply to the transport.

        Raises
        ------
        httpx.HTTPError, ProviderError
            Transport, status or envelope problems; classified by the gateway.
        """
        ...

    @abstractmethod
    def parse(self, raw: str) -> ParseResult:
        """Parse the raw reply into this provider's payload shape."""
        ...
