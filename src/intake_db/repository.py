"""Async CRUD repository for IntakeProgress.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Methods call ``flush()`` but never ``commit()``.

The repository deliberately avoids progression logic — that belongs in
``intake_engine``.  It stores whatever record it is handed.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from intake_db.models.progress import IntakeProgress


class ProgressRepository:
    """Async read/write operations on the ``intake_progress`` table."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_user(
        self, db: AsyncSession, user_id: str
    ) -> IntakeProgress | None:
        """Fetch the progress row for a user."""
        stmt = select(IntakeProgress).where(IntakeProgress.user_id == user_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def upsert(
        self,
        db: AsyncSession,
        *,
        user_id: str,
        values: dict[str, Any],
    ) -> IntakeProgress:
        """Insert the user's row or overwrite its columns with *values*.

        *values* must be JSON-ready (``current_phase``, ``responses``,
        ``phase_status``, ``answered_at``, ``created_at``, ``updated_at``).
        """
        row = await self.get_by_user(db, user_id)
        if row is None:
            row = IntakeProgress(user_id=user_id, **values)
            db.add(row)
        else:
            for key, value in values.items():
                setattr(row, key, value)
        await db.flush()
        return row

    async def delete_by_user(self, db: AsyncSession, user_id: str) -> bool:
        """Delete the user's row.  Returns False if there was none."""
        stmt = delete(IntakeProgress).where(IntakeProgress.user_id == user_id)
        result = await db.execute(stmt)
        await db.flush()
        return (result.rowcount or 0) > 0

    async def purge_idle(self, db: AsyncSession, *, cutoff: datetime) -> int:
        """Delete rows last updated before *cutoff*; return the row count."""
        stmt = delete(IntakeProgress).where(IntakeProgress.updated_at < cutoff)
        result = await db.execute(stmt)
        await db.flush()
        return result.rowcount or 0
