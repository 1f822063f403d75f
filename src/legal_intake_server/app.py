"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads the catalog and builds the SDK components once
  - CORS middleware
  - Global exception handlers (SDK errors → 400/404/429)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``legal-intake-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from legal_intake.errors import RateLimited, SessionNotFound, ValidationError

from legal_intake_server.components import AppComponents, build_components
from legal_intake_server.config import ServerSettings, load_settings
from legal_intake_server.errors import (
    generic_error_handler,
    key_error_handler,
    rate_limited_handler,
    session_not_found_handler,
    validation_error_handler,
    value_error_handler,
)
from legal_intake_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Build (or take the pre-built) ``AppComponents``
      2. Stash each component on ``app.state`` for dependency injection

    Shutdown:
      1. Close upstream HTTP clients, Redis and the database pool
    """
    settings: ServerSettings = app.state.settings
    components: AppComponents = app.state.components or build_components(settings)

    app.state.components = components
    app.state.catalog = components.catalog
    app.state.flow = components.flow
    app.state.extractor = components.extractor
    app.state.orchestrator = components.orchestrator
    app.state.advisor = components.advisor
    app.state.limiter = components.limiter

    yield

    # --- Shutdown ---
    await components.aclose()
    logger.info("Components closed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(
    settings: ServerSettings | None = None,
    *,
    components: AppComponents | None = None,
) -> FastAPI:
    """Build and return the configured FastAPI application.

    ``components`` bypasses :func:`build_components` (tests pass fakes).
    """
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Legal Intake API Server",
        description="REST API for guided legal intake and deadline-bounded analysis",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings so the lifespan handler can read them
    app.state.settings = settings
    app.state.components = components

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Retry-After",
        ],
    )

    # --- Exception handlers (most specific class wins) ---
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(SessionNotFound, session_not_found_handler)
    app.add_exception_handler(RateLimited, rate_limited_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe — catalog size and configured backends."""
        components: AppComponents = app.state.components
        body = {
            "status": "ok",
            "questions": len(components.catalog),
            "templates": len(components.templates),
            "providers": dict(components.providers),
            "stores": {
                "sessions": components.session_backend,
                "rate_limit": components.rate_backend,
            },
        }
        if components.session_backend == "database":
            try:
                from legal_intake_db.engine import check_connection

                await check_connection()
            except Exception as exc:
                logger.error("Health check failed: %s", exc)
                body["status"] = "error"
                body["detail"] = str(exc)
        return body

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn legal_intake_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``legal-intake-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "legal_intake_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
