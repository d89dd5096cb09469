"""intake_engine — progressive multi-phase onboarding intake SDK.

Public API:
    IntakeEngine        — progression engine over one record per session key
    QuestionCatalog     — loads the YAML question table with lookup helpers
    ProgressStore       — ABC for progress-record storage
    MemoryProgressStore — default in-process store

Models:
    Question            — one catalog entry
    ProgressRecord      — recorded answers and per-phase completion flags
    PhaseStatus         — {complete, completed_at} for a base phase
    StatusView          — "what to ask next" projection
    SubmitResult        — outcome of a single submission
    DetailedStatus      — full audit projection
    CatalogView         — whole catalog plus the stored phase
    ResetResult         — acknowledgement of a reset
    AnswerEntry         — one row of the answer trail

Errors:
    IntakeError, ValidationError, NotFoundError, CatalogError
"""

from intake_engine.catalog import QuestionCatalog
from intake_engine.engine import IntakeEngine
from intake_engine.errors import CatalogError, IntakeError, NotFoundError, ValidationError
from intake_engine.interfaces import ProgressStore
from intake_engine.models import (
    AnswerEntry,
    CatalogView,
    DetailedStatus,
    PhaseStatus,
    ProgressRecord,
    Question,
    ResetResult,
    StatusView,
    SubmitResult,
)
from intake_engine.store import MemoryProgressStore

__all__ = [
    # Engine & catalog
    "IntakeEngine",
    "QuestionCatalog",
    # Storage
    "ProgressStore",
    "MemoryProgressStore",
    # Models
    "AnswerEntry",
    "CatalogView",
    "DetailedStatus",
    "PhaseStatus",
    "ProgressRecord",
    "Question",
    "ResetResult",
    "StatusView",
    "SubmitResult",
    # Errors
    "CatalogError",
    "IntakeError",
    "NotFoundError",
    "ValidationError",
]
