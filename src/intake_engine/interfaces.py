"""Abstract interface for progress-record storage.

The engine keeps no state of its own beyond per-session locks; every
read and write of a ``ProgressRecord`` goes through a ``ProgressStore``.
The SDK ships an in-memory implementation (``intake_engine.store``); the
PostgreSQL implementation lives in ``intake_db.store``.

Contract::

    record = await store.load("user-1")   # None if never saved
    record.responses["age"] = 31
    await store.save(record)              # keyed by record.user_id

Implementations must hand out records the caller can mutate freely:
changes become visible to other callers only through :meth:`save`.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from intake_engine.models.progress import ProgressRecord


class ProgressStore(ABC):
    """Keyed storage for progress records, one per session key."""

    @abstractmethod
    async def load(self, user_id: str) -> ProgressRecord | None:
        """Return a private copy of the stored record, or None if absent."""
        ...

    @abstractmethod
    async def save(self, record: ProgressRecord) -> None:
        """Insert or replace the record stored under ``record.user_id``."""
        ...

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        """Remove the record.  Returns False if nothing was stored."""
        ...

    @abstractmethod
    async def purge_idle(self, cutoff: datetime) -> int:
        """Remove every record last updated before *cutoff*.

        Returns
        -------
        int
            Number of records removed.
        """
        ...
