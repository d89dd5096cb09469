"""Public model re-exports for intake_engine.

Consumers should import from ``intake_engine.models`` rather than
reaching into sub-modules directly.
"""

# --- Catalog ---
from intake_engine.models.question import AnswerType, Question

# --- Progress record ---
from intake_engine.models.progress import PhaseStatus, ProgressRecord

# --- Projections ---
from intake_engine.models.status import (
    AnswerEntry,
    CatalogView,
    DetailedStatus,
    ResetResult,
    StatusView,
    SubmitResult,
)

__all__ = [
    # Catalog
    "AnswerType",
    "Question",
    # Progress
    "PhaseStatus",
    "ProgressRecord",
    # Projections
    "AnswerEntry",
    "CatalogView",
    "DetailedStatus",
    "ResetResult",
    "StatusView",
    "SubmitResult",
]
