"""TTL CLI — ``legal-intake-cleanup``.

Connects to the database and deletes stored intake sessions that have not
been updated for a number of days.  Session eviction is not done by the
server itself; run this from cron.

Examples::

    # Delete sessions idle for more than 30 days
    uv run legal-intake-cleanup --days 30

    # Delete every stored session
    uv run legal-intake-cleanup --days 0
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from legal_intake_server.config import DEFAULT_CLEANUP_DAYS, ServerSettings, load_settings

logger = logging.getLogger(__name__)

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


async def run_cleanup(*, days: int = DEFAULT_CLEANUP_DAYS) -> int:
    """Delete sessions idle for ``days`` days and return the row count.

    Creates its own database session, runs the repository purge and
    commits.  Safe to call from a CLI entry point or a scheduled task.
    """
    if days < 0:
        raise ValueError(f"days must be >= 0, got {days}")

    # Lazy imports to avoid loading DB machinery at module import time
    from legal_intake_db.engine import dispose_engine, get_session_factory
    from legal_intake_db.repository import SessionRepository

    repo = SessionRepository()
    factory = get_session_factory()

    try:
        async with factory() as db:
            affected = await repo.purge_older_than(db, days=days)
            await db.commit()

        logger.info("Cleanup complete: affected_rows=%d, days=%d", affected, days)
        return affected
    finally:
        await dispose_engine()


def default_days(settings: ServerSettings) -> int:
    """``--days`` default: the configured session TTL, else ``DEFAULT_CLEANUP_DAYS``."""
    return settings.session_ttl_days or DEFAULT_CLEANUP_DAYS


def cli() -> None:
    """Console-script entry point: ``legal-intake-cleanup``."""
    settings = load_settings()
    parser = argparse.ArgumentParser(
        prog="legal-intake-cleanup",
        description="Delete idle intake sessions from the database.",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=default_days(settings),
        help=(
            "Age threshold in days (default: $SESSION_TTL_DAYS, "
            "falling back to $DEFAULT_CLEANUP_DAYS, or 30). "
            "0 deletes every stored session."
        ),
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level if settings.log_level in _LOG_LEVELS else "INFO",
        choices=_LOG_LEVELS,
        help="Log level (default: $SERVER_LOG_LEVEL, or INFO)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    affected = asyncio.run(run_cleanup(days=args.days))

    print(f"Deleted sessions: {affected}")
    sys.exit(0)
