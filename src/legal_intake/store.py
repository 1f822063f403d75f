"""InMemorySessionStore — process-local session storage.

Sessions are copied on the way in and out so callers mutating a returned
session never alter stored state without calling ``put``.
"""

from __future__ import annotations

import logging

from legal_intake.interfaces import SessionStore
from legal_intake.models.session import IntakeSession

logger = logging.getLogger(__name__)


class InMemorySessionStore(SessionStore):
    """Dict-backed store; contents are lost on restart."""

    def __init__(self) -> None:
        self._sessions: dict[str, IntakeSession] = {}

    async def get(self, session_id: str) -> IntakeSession | None:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session is not None else None

    async def put(self, session: IntakeSession) -> None:
        self._sessions[session.session_id] = session.model_copy(deep=True)

    async def delete(self, session_id: str) -> bool:
        removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.info("Deleted in-memory session: session_id=%s", session_id)
        return removed

    def __len__(self) -> int:
        return len(self._sessions)
