"""Shared fixtures and fakes for the legal_intake test-suite.

Mock strategy:
  - ``FakeClock`` is a controllable monotonic clock; budgets, the gateway
    and the rate limiter all accept it in place of ``time.monotonic``.
  - ``FakeProvider`` subclasses the real ``Provider`` ABC and replays
    scripted replies (text, exceptions or coroutines), optionally advancing
    the fake clock to simulate slow upstreams.
  - The packaged YAML catalog, defaults and templates are loaded for real.
"""

import json
from typing import Any, Callable

import pytest

from legal_intake.catalog import QuestionCatalog
from legal_intake.coalescer import CoalescerDefaults, ResultCoalescer
from legal_intake.models.result import ParseResult
from legal_intake.parsing import parse_object
from legal_intake.providers.base import Provider
from legal_intake.store import InMemorySessionStore
from legal_intake.templates import TemplateDirectory


# =====================================================================
# Fakes
# =====================================================================


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider(Provider):
    """Scripted provider.

    Each ``send`` consumes the next reply; the last reply repeats once the
    script runs out.  A reply may be a string (returned as raw text), an
    exception instance (raised) or an async callable ``(request, timeout_s)``.
    """

    def __init__(
        self,
        replies: list[Any] | None = None,
        *,
        name: str = "fake",
        timeout_ms: int = 5000,
        configured: bool = True,
        parser: Callable[[str], ParseResult] = parse_object,
        clock: FakeClock | None = None,
        cost_s: float = 0.0,
    ) -> None:
        self.name = name
        self.default_timeout_ms = timeout_ms
        self._replies = list(replies or ["{}"])
        self._configured = configured
        self._parser = parser
        self._clock = clock
        self._cost_s = cost_s
        self.requests: list[Any] = []
        self.timeouts: list[float] = []

    @property
    def is_configured(self) -> bool:
        return self._configured

    async def send(self, request: Any, timeout_s: float) -> str:
        self.requests.append(request)
        self.timeouts.append(timeout_s)
        if self._clock is not None:
            self._clock.advance(self._cost_s)
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return await reply(request, timeout_s)
        return reply

    def parse(self, raw: str) -> ParseResult:
        return self._parser(raw)

    @property
    def calls(self) -> int:
        return len(self.requests)


# =====================================================================
# Canned data
# =====================================================================

# A complete, valid answer set for the packaged 18-question catalog.
FULL_ANSWERS: dict[str, Any] = {
    "situation": "Mon employeur refuse de payer mes heures supplémentaires depuis six mois.",
    "category": "Droit du travail",
    "city": "Lyon",
    "dates": "Janvier à juin 2026",
    "parties": "Mon employeur, une PME de logistique",
    "evidence": ["Emails/SMS", "Contrats"],
    "amount": 4200,
    "urgency": 8,
    "procedure": "Aucune",
    "goal": "Être indemnisé",
    "opponentType": "Employeur",
    "contractExist": "Oui",
    "attempts": "Deux emails et un appel au service RH",
    "complexity": "Moyenne",
    "sensitivity": "Non",
    "budget": 1500,
    "templateNeed": "Mise en demeure",
    "freeAdd": "",
}

PROBLEM = (
    "Mon employeur refuse de payer mes heures supplémentaires depuis six mois "
    "malgré plusieurs relances écrites."
)

AUDIT_REPLY: dict[str, Any] = {
    "category": "Droit du travail",
    "urgency": 8,
    "complexity": "Medium",
    "summary": "Heures supplémentaires impayées par l'employeur.",
    "actions": ["Rassembler les bulletins de paie", "Envoyer une mise en demeure"],
    "needsLawyer": True,
    "lawyerSpecialty": "Droit du travail",
    "recommendedTemplateId": "contestation-licenciement",
    "diagnostic": {
        "probleme_principal": "Rappel de salaire",
        "risque_critique": "Prescription triennale",
        "niveau_urgence": "Élevée - délais courts",
    },
    "risks": ["Prescription"],
}

LOOKUP_REPLY: dict[str, Any] = {
    "lawyers": [
        {"name": "Me Durand", "firm": "Cabinet Durand", "city": "Lyon", "rating": 4.6},
        {"name": "Me Petit", "specialty": "Droit du travail", "city": "Lyon"},
    ]
}


def as_json(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False)


# =====================================================================
# Fixtures
# =====================================================================


@pytest.fixture(scope="session")
def catalog() -> QuestionCatalog:
    """Packaged catalog, loaded once for the whole session."""
    return QuestionCatalog().load()


@pytest.fixture(scope="session")
def defaults() -> CoalescerDefaults:
    return CoalescerDefaults.load()


@pytest.fixture(scope="session")
def templates() -> TemplateDirectory:
    return TemplateDirectory().load()


@pytest.fixture
def coalescer(defaults) -> ResultCoalescer:
    return ResultCoalescer(defaults)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()
