"""``intake-cleanup`` — drop idle intake rows from PostgreSQL.

For cron jobs when the server runs with ``SERVER_STORE=sql``; the
in-memory store is swept by the server itself (``SESSION_TTL_DAYS``).

Examples::

    # Rows idle for more than $DEFAULT_CLEANUP_DAYS (90) days
    uv run intake-cleanup

    # Rows idle for more than 30 days
    uv run intake-cleanup --days 30
"""

import argparse
import asyncio
import logging
from datetime import timedelta

from intake_engine.models.progress import utcnow

from intake_server.config import DEFAULT_CLEANUP_DAYS, LOG_LEVELS

logger = logging.getLogger(__name__)


async def run_cleanup(*, days: int) -> int:
    """Purge rows idle for more than *days* days; return how many went."""
    # DB stack imported here so --help works without asyncpg installed
    from intake_db.engine import dispose_engine
    from intake_db.store import SqlProgressStore

    try:
        affected = await SqlProgressStore().purge_idle(utcnow() - timedelta(days=days))
    finally:
        await dispose_engine()
    logger.info("Cleanup complete: affected_rows=%d, days=%d", affected, days)
    return affected


def _non_negative(value: str) -> int:
    days = int(value)
    if days < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return days


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intake-cleanup",
        description="Remove idle onboarding intake sessions from the database.",
    )
    parser.add_argument(
        "--days",
        type=_non_negative,
        default=DEFAULT_CLEANUP_DAYS,
        help="Idle threshold in days (default: $DEFAULT_CLEANUP_DAYS or 90). 0 removes every row.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=LOG_LEVELS,
        help="Log level (default: INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    affected = asyncio.run(run_cleanup(days=args.days))
    print(f"Affected rows: {affected}")
    return 0


def cli() -> None:
    """Console-script entry point: ``intake-cleanup``."""
    raise SystemExit(main())
