"""Wiring of SDK components from ``ServerSettings``.

``build_components()`` is called once by the application lifespan.  Tests
build an :class:`AppComponents` by hand (fake providers, in-memory stores)
and pass it to ``create_app(components=...)`` instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from legal_intake.advisor import AdvisorLoop
from legal_intake.catalog import QuestionCatalog
from legal_intake.coalescer import CoalescerDefaults, ResultCoalescer
from legal_intake.extractor import FreeformExtractor
from legal_intake.flow import FlowController
from legal_intake.interfaces import SessionStore
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
from legal_intake.ratelimit import RedisCounterStore, SlidingWindowRateLimiter
from legal_intake.store import InMemorySessionStore
from legal_intake.templates import TemplateDirectory

from legal_intake_server.config import ServerSettings

logger = logging.getLogger(__name__)


@dataclass
class AppComponents:
    """Everything the routes need, stashed on ``app.state`` at startup."""

    catalog: QuestionCatalog
    templates: TemplateDirectory
    flow: FlowController
    extractor: FreeformExtractor
    orchestrator: AnalysisOrchestrator
    advisor: AdvisorLoop
    # None when rate limiting is disabled
    limiter: SlidingWindowRateLimiter | None = None
    session_backend: str = "memory"
    rate_backend: str = "memory"
    # Provider role → configured?
    providers: dict[str, bool] = field(default_factory=dict)
    clients: list[ChatCompletionClient] = field(default_factory=list)
    redis_store: RedisCounterStore | None = None

    async def aclose(self) -> None:
        """Release HTTP clients, Redis and the database pool."""
        for client in self.clients:
            await client.aclose()
        if self.redis_store is not None:
            await self.redis_store.aclose()
        if self.session_backend == "database":
            from legal_intake_db.engine import dispose_engine

            await dispose_engine()
            logger.info("Database engine disposed")


def _session_store(settings: ServerSettings) -> SessionStore:
    if settings.session_backend == "database":
        # Lazy import keeps asyncpg/SQLAlchemy out of memory-only deployments
        from legal_intake_db.engine import get_session_factory
        from legal_intake_db.store import SqlSessionStore

        return SqlSessionStore(get_session_factory())
    return InMemorySessionStore()


def build_components(settings: ServerSettings) -> AppComponents:
    """Load data files and build the SDK object graph."""
    # --- Data files ---
    catalog = QuestionCatalog(settings.catalog_path).load()
    templates = TemplateDirectory(settings.templates_path).load()
    coalescer = ResultCoalescer(CoalescerDefaults.load(settings.defaults_path))
    prompts = PromptManager()
    gateway = ProviderGateway()

    # --- Upstream clients ---
    chat = ChatCompletionClient(ChatSettings(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=settings.openai_model,
    ))
    search = ChatCompletionClient(ChatSettings(
        api_key=settings.perplexity_api_key,
        base_url=settings.perplexity_base_url,
        model=settings.perplexity_model,
    ))

    audit = AuditProvider(chat, prompts, template_ids=templates.ids()) if chat.configured else None
    category_question = catalog.get("category") if "category" in catalog else None
    extraction = (
        ExtractionProvider(chat, prompts, categories=getattr(category_question, "options", ()))
        if chat.configured else None
    )
    advisor_provider = AdvisorProvider(chat, prompts) if chat.configured else None
    lookup = LookupProvider(search, prompts) if search.configured else None

    # --- Flow ---
    flow = FlowController(catalog, _session_store(settings))
    extractor = FreeformExtractor(catalog, gateway, extraction)
    orchestrator = AnalysisOrchestrator(
        gateway, audit, lookup, coalescer=coalescer, templates=templates,
    )
    advisor = AdvisorLoop(gateway, advisor_provider)

    # --- Admission control ---
    limiter = None
    redis_store = None
    rate_backend = "disabled"
    if settings.rate_limit_enabled:
        if settings.redis_url:
            redis_store = RedisCounterStore.from_url(settings.redis_url)
            rate_backend = "redis"
        else:
            rate_backend = "memory"
        limiter = SlidingWindowRateLimiter(redis_store)

    providers = {
        "audit": audit is not None,
        "extraction": extraction is not None,
        "advisor": advisor_provider is not None,
        "lookup": lookup is not None,
    }
    logger.info(
        "Components ready: questions=%d templates=%d sessions=%s rate_limit=%s providers=%s",
        len(catalog), len(templates), settings.session_backend, rate_backend, providers,
    )
    return AppComponents(
        catalog=catalog,
        templates=templates,
        flow=flow,
        extractor=extractor,
        orchestrator=orchestrator,
        advisor=advisor,
        limiter=limiter,
        session_backend=settings.session_backend,
        rate_backend=rate_backend,
        providers=providers,
        clients=[chat, search],
        redis_store=redis_store,
    )
