"""IntakeSessionRow ORM model — one row per intake conversation.

Answers live in a single JSONB column keyed by question id, so a session is
read and written as one row without joins.
"""

from sqlalchemy import Index, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from legal_intake_db.models.base import Base, TimestampMixin


class IntakeSessionRow(TimestampMixin, Base):
    """Persisted intake session."""

    __tablename__ = "intake_sessions"

    # Opaque id, caller- or server-generated
    session_id: Mapped[str] = mapped_column(Text, primary_key=True)

    # {question_id: value}
    answers: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )

    __table_args__ = (
        # Age-based cleanup scans by last activity
        Index("ix_intake_sessions_updated_at", "updated_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<IntakeSessionRow(session={self.session_id!r}, "
            f"answers={len(self.answers or {})})>"
        )
