"""Server configuration — reads settings from environment variables.

All settings have sensible defaults for local development.  In production
the values are typically overridden via env vars or a ``.env`` file.
Provider credentials are optional: a provider without a key is reported as
not configured and the analysis degrades to deterministic defaults.
"""

import os
from dataclasses import dataclass, field

# Module-level so argparse defaults can reference it at import time.
DEFAULT_CLEANUP_DAYS = int(os.getenv("DEFAULT_CLEANUP_DAYS", "30"))

SESSION_BACKENDS = ("memory", "database")


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS: comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    # "memory" (single instance) or "database" (PostgreSQL via legal_intake_db)
    session_backend: str = "memory"

    # Redis for the shared rate-limit log (None → per-process counters)
    redis_url: str | None = None
    rate_limit_enabled: bool = True
    # Take the caller key from the first X-Forwarded-For hop
    trust_forwarded_for: bool = True

    # Audit / extraction / advisor upstream (OpenAI-compatible)
    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"

    # Directory lookup upstream (OpenAI-compatible, web-grounded)
    perplexity_api_key: str | None = None
    perplexity_base_url: str = "https://api.perplexity.ai"
    perplexity_model: str = "llama-3.1-sonar-large-128k-online"

    # Data file overrides (None → files packaged with legal_intake)
    catalog_path: str | None = None
    defaults_path: str | None = None
    templates_path: str | None = None

    # Age threshold (days) used by the cleanup CLI when --days is omitted.
    # 0 means infinite (no automatic cleanup unless explicitly requested).
    session_ttl_days: int = 0


def _flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` and provider environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    backend = os.getenv("SESSION_BACKEND", "memory").strip().lower()
    if backend not in SESSION_BACKENDS:
        raise ValueError(
            f"SESSION_BACKEND must be one of {SESSION_BACKENDS}, got {backend!r}"
        )

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        session_backend=backend,
        redis_url=os.getenv("REDIS_URL") or None,
        rate_limit_enabled=not _flag("DISABLE_RATE_LIMIT"),
        trust_forwarded_for=_flag("TRUST_FORWARDED_FOR", "true"),
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        perplexity_api_key=os.getenv("PERPLEXITY_API_KEY") or None,
        perplexity_base_url=os.getenv("PERPLEXITY_BASE_URL", "https://api.perplexity.ai"),
        perplexity_model=os.getenv("PERPLEXITY_MODEL", "llama-3.1-sonar-large-128k-online"),
        catalog_path=os.getenv("INTAKE_CATALOG_PATH") or None,
        defaults_path=os.getenv("INTAKE_DEFAULTS_PATH") or None,
        templates_path=os.getenv("INTAKE_TEMPLATES_PATH") or None,
        session_ttl_days=int(os.getenv("SESSION_TTL_DAYS", "0")),
    )
