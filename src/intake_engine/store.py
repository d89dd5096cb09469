"""In-memory progress store — the default backend.

Records live for the lifetime of the process.  Copies go in and out so
that the engine can mutate a loaded record and discard it on failure
without touching the stored version.
"""

from __future__ import annotations

import logging
from datetime import datetime

from intake_engine.interfaces import ProgressStore
from intake_engine.models.progress import ProgressRecord

logger = logging.getLogger(__name__)


class MemoryProgressStore(ProgressStore):
    """Dict-backed store keyed by user id."""

    def __init__(self) -> None:
        self._records: dict[str, ProgressRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def load(self, user_id: str) -> ProgressRecord | None:
        record = self._records.get(user_id)
        if record is None:
            return None
        return record.model_copy(deep=True)

    async def save(self, record: ProgressRecord) -> None:
        self._records[record.user_id] = record.model_copy(deep=True)

    async def delete(self, user_id: str) -> bool:
        return self._records.pop(user_id, None) is not None

    async def purge_idle(self, cutoff: datetime) -> int:
        stale = [uid for uid, rec in self._records.items() if rec.updated_at < cutoff]
        for uid in stale:
            del self._records[uid]
        if stale:
            logger.info("Evicted %d idle progress records (cutoff %s)", len(stale), cutoff.isoformat())
        return len(stale)
