"""Async CRUD repository for IntakeSessionRow.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  The repository does no answer validation; that
belongs to the flow controller.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from legal_intake_db.models.session import IntakeSessionRow


class SessionRepository:
    """Async read/write operations on the ``intake_sessions`` table."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get(self, db: AsyncSession, session_id: str) -> IntakeSessionRow | None:
        """Fetch a session by id."""
        return await db.get(IntakeSessionRow, session_id)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def upsert(
        self,
        db: AsyncSession,
        *,
        session_id: str,
        answers: dict[str, Any],
        created_at: datetime | None = None,
    ) -> IntakeSessionRow:
        """Insert the session or replace its answers.

        The caller must ``await db.commit()`` to persist.
        """
        row = await db.get(IntakeSessionRow, session_id)
        now = datetime.now(timezone.utc)
        if row is None:
            row = IntakeSessionRow(
                session_id=session_id,
                answers=dict(answers),
                created_at=created_at or now,
                updated_at=now,
            )
            db.add(row)
        else:
            # New dict so SQLAlchemy detects the JSONB change
            row.answers = dict(answers)
            row.updated_at = now
        await db.flush()
        return row

    async def delete(self, db: AsyncSession, session_id: str) -> bool:
        """Delete one session.  Returns ``True`` if a row was removed."""
        result = await db.execute(
            delete(IntakeSessionRow).where(IntakeSessionRow.session_id == session_id)
        )
        return (result.rowcount or 0) > 0

    async def purge_older_than(self, db: AsyncSession, *, days: int) -> int:
        """Delete sessions not updated for ``days`` days (0 = all).

        Returns the number of deleted rows.
        """
        stmt = delete(IntakeSessionRow)
        if days > 0:
            cutoff = datetime.now(timezone.utc) - timedelta(days=days)
            stmt = stmt.where(IntakeSessionRow.updated_at < cutoff)
        result = await db.execute(stmt)
        return result.rowcount or 0
