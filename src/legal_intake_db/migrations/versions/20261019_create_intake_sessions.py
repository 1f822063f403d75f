"""Create the intake_sessions table.

One row per intake conversation with answers stored as JSONB, plus an
index on ``updated_at`` for age-based cleanup.

Revision ID: 20261019_intake_sessions
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP

# revision identifiers, used by Alembic.
revision = "20261019_intake_sessions"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "intake_sessions",
        sa.Column("session_id", sa.Text(), primary_key=True),
        sa.Column(
            "answers",
            JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_intake_sessions_updated_at",
        "intake_sessions",
        ["updated_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_intake_sessions_updated_at", table_name="intake_sessions")
    op.drop_table("intake_sessions")
