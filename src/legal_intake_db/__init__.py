"""legal_intake_db — PostgreSQL persistence layer for intake sessions.

This package provides the ORM model, async engine factory, repository and a
``SessionStore`` implementation.  It is consumed by the FastAPI server and
the cleanup CLI.
"""

from legal_intake_db.engine import get_engine, get_session_factory
from legal_intake_db.models.session import IntakeSessionRow
from legal_intake_db.repository import SessionRepository
from legal_intake_db.store import SqlSessionStore

__all__ = [
    "IntakeSessionRow",
    "get_engine",
    "get_session_factory",
    "SessionRepository",
    "SqlSessionStore",
]
