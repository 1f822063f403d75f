"""Route registration — mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from legal_intake_server.routes.advisor import router as advisor_router
from legal_intake_server.routes.analysis import router as analysis_router
from legal_intake_server.routes.intake import router as intake_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(intake_router, prefix=API_PREFIX)
    app.include_router(analysis_router, prefix=API_PREFIX)
    app.include_router(advisor_router, prefix=API_PREFIX)
