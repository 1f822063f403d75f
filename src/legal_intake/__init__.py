"""legal_intake — Conversational legal-intake and deadline-bounded analysis SDK.

Public API:
    QuestionCatalog      — loads the ordered intake questions from YAML
    FlowController       — next question / record answer / completeness
    FreeformExtractor    — fills unanswered fields from free text
    AnalysisOrchestrator — audit + lookup under a deadline, never failing
    ResultCoalescer      — audit output + defaults → complete Analysis
    AdvisorLoop          — capped classify/validate/repair loop
    DeadlineBudget       — monotonic wall-clock allowance per request
    SlidingWindowRateLimiter — admission gate (Redis or in-memory)

Providers:
    ProviderGateway      — bounded, non-raising provider invocation
    AuditProvider, LookupProvider, ExtractionProvider, AdvisorProvider

Storage interfaces:
    SessionStore, RateCounterStore, TemplateLookup
    InMemorySessionStore — process-local SessionStore
"""

from legal_intake.advisor import AdvisorLoop
from legal_intake.budget import DeadlineBudget, new_budget
from legal_intake.catalog import QuestionCatalog
from legal_intake.coalescer import CoalescerDefaults, ResultCoalescer, coalesce
from legal_intake.errors import (
    CatalogError,
    IncompleteIntake,
    IntakeError,
    RateLimited,
    SessionNotFound,
    ValidationError,
)
from legal_intake.extractor import FreeformExtractor
from legal_intake.flow import FlowController
from legal_intake.interfaces import RateCounterStore, SessionStore, TemplateLookup
from legal_intake.orchestrator import AnalysisOrchestrator
from legal_intake.prompt import PromptManager
from legal_intake.providers import (
    AdvisorProvider,
    AuditProvider,
    ChatCompletionClient,
    ChatSettings,
    ExtractionProvider,
    LookupProvider,
    ProviderGateway,
)
from legal_intake.ratelimit import (
    InMemoryCounterStore,
    RateDecision,
    RedisCounterStore,
    SlidingWindowRateLimiter,
)
from legal_intake.store import InMemorySessionStore
from legal_intake.templates import TemplateDirectory

__all__ = [
    # Flow
    "FlowController",
    "FreeformExtractor",
    "QuestionCatalog",
    # Analysis
    "AnalysisOrchestrator",
    "CoalescerDefaults",
    "DeadlineBudget",
    "ResultCoalescer",
    "coalesce",
    "new_budget",
    # Advisor
    "AdvisorLoop",
    # Providers
    "AdvisorProvider",
    "AuditProvider",
    "ChatCompletionClient",
    "ChatSettings",
    "ExtractionProvider",
    "LookupProvider",
    "PromptManager",
    "ProviderGateway",
    # Storage
    "InMemoryCounterStore",
    "InMemorySessionStore",
    "RateCounterStore",
    "RateDecision",
    "RedisCounterStore",
    "SessionStore",
    "SlidingWindowRateLimiter",
    "TemplateDirectory",
    "TemplateLookup",
    # Errors
    "CatalogError",
    "IncompleteIntake",
    "IntakeError",
    "RateLimited",
    "SessionNotFound",
    "ValidationError",
]
