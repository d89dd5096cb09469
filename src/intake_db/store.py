"""SqlProgressStore — ``ProgressStore`` backed by PostgreSQL.

Each store call runs in its own transaction through ``session_scope``,
delegating the SQL to :class:`ProgressRepository`.  The engine already
serialises calls per user, so a row is never written by two coroutines
of the same process at once.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from intake_engine.interfaces import ProgressStore
from intake_engine.models.progress import ProgressRecord

from intake_db.engine import session_scope
from intake_db.models.progress import IntakeProgress
from intake_db.repository import ProgressRepository

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values; everything is written in UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def row_to_record(row: IntakeProgress) -> ProgressRecord:
    """Rebuild a ``ProgressRecord`` from its ORM row."""
    data = {
        "user_id": row.user_id,
        "current_phase": row.current_phase,
        "responses": dict(row.responses or {}),
        "answered_at": dict(row.answered_at or {}),
        "created_at": _as_utc(row.created_at),
        "updated_at": _as_utc(row.updated_at),
    }
    # Rows written before any answer may carry an empty phase map
    if row.phase_status:
        initial = ProgressRecord.fresh(row.user_id).phase_status
        data["phase_status"] = {
            **{phase: status.model_dump() for phase, status in initial.items()},
            **row.phase_status,
        }
    return ProgressRecord.model_validate(data)


def record_to_values(record: ProgressRecord) -> dict:
    """Flatten a ``ProgressRecord`` into JSON-ready column values."""
    dumped = record.model_dump(mode="json", include={"responses", "phase_status", "answered_at"})
    return {
        "current_phase": record.current_phase,
        "responses": dumped["responses"],
        "phase_status": dumped["phase_status"],
        "answered_at": dumped["answered_at"],
        "created_at": record.created_at,
        "updated_at": record.updated_at,
    }


class SqlProgressStore(ProgressStore):
    """Persist progress records in the ``intake_progress`` table.

    Each call is its own transaction (see :func:`session_scope`).  The
    session factory is resolved on first use so the store can be built
    before the database engine exists.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        repository: ProgressRepository | None = None,
    ) -> None:
        self._factory = session_factory
        self._repo = repository if repository is not None else ProgressRepository()

    async def load(self, user_id: str) -> ProgressRecord | None:
        async with session_scope(self._factory) as db:
            row = await self._repo.get_by_user(db, user_id)
            return row_to_record(row) if row is not None else None

    async def save(self, record: ProgressRecord) -> None:
        async with session_scope(self._factory) as db:
            await self._repo.upsert(db, user_id=record.user_id, values=record_to_values(record))

    async def delete(self, user_id: str) -> bool:
        async with session_scope(self._factory) as db:
            return await self._repo.delete_by_user(db, user_id)

    async def purge_idle(self, cutoff: datetime) -> int:
        async with session_scope(self._factory) as db:
            affected = await self._repo.purge_idle(db, cutoff=cutoff)
        logger.info("Purged %d idle intake rows (cutoff %s)", affected, cutoff.isoformat())
        return affected
