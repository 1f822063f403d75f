"""SqlSessionStore — :class:`~legal_intake.interfaces.SessionStore` on PostgreSQL.

Each call opens its own short ``AsyncSession`` from the factory and commits
before returning, so sessions are shared across server instances.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from legal_intake.interfaces import SessionStore
from legal_intake.models.session import IntakeSession
from legal_intake_db.models.session import IntakeSessionRow
from legal_intake_db.repository import SessionRepository

logger = logging.getLogger(__name__)


def row_to_session(row: IntakeSessionRow) -> IntakeSession:
    return IntakeSession(
        session_id=row.session_id,
        answers=dict(row.answers or {}),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlSessionStore(SessionStore):
    """Session store backed by the ``intake_sessions`` table.

    Args:
        session_factory: async session factory (see
            :func:`legal_intake_db.engine.get_session_factory`)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repository: SessionRepository | None = None,
    ) -> None:
        self._factory = session_factory
        self._repo = repository or SessionRepository()

    async def get(self, session_id: str) -> IntakeSession | None:
        async with self._factory() as db:
            row = await self._repo.get(db, session_id)
            return row_to_session(row) if row is not None else None

    async def put(self, session: IntakeSession) -> None:
        async with self._factory() as db:
            await self._repo.upsert(
                db,
                session_id=session.session_id,
                answers=session.answers,
                created_at=session.created_at,
            )
            await db.commit()

    async def delete(self, session_id: str) -> bool:
        async with self._factory() as db:
            removed = await self._repo.delete(db, session_id)
            await db.commit()
        if removed:
            logger.info("Deleted stored session: session_id=%s", session_id)
        return removed
