"""ORM models for legal_intake_db."""

from legal_intake_db.models.base import Base, TimestampMixin
from legal_intake_db.models.session import IntakeSessionRow

__all__ = ["Base", "IntakeSessionRow", "TimestampMixin"]
