"""intake_db — PostgreSQL persistence for intake progress records.

Used only when the server runs with ``SERVER_STORE=sql``.  The engine
package never imports this one; the server wires ``SqlProgressStore`` in
as the engine's ``ProgressStore``.
"""

from intake_db.config import DatabaseSettings
from intake_db.engine import dispose_engine, get_engine, session_scope
from intake_db.models.progress import IntakeProgress
from intake_db.repository import ProgressRepository
from intake_db.store import SqlProgressStore

__all__ = [
    "DatabaseSettings",
    "IntakeProgress",
    "ProgressRepository",
    "SqlProgressStore",
    "dispose_engine",
    "get_engine",
    "session_scope",
]
