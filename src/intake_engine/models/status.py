"""Status projections — the contract between the engine and API callers.

These models define what each engine operation returns.  They are
decoupled from ``ProgressRecord`` so that callers never see storage
bookkeeping, and they serialise with the camelCase keys the client
application reads.

Projections:
  - StatusView: lightweight "what to ask next" view
  - SubmitResult: outcome of a single answer submission
  - DetailedStatus: full audit view including every recorded answer
  - CatalogView: the whole question catalog plus the stored phase
  - ResetResult: acknowledgement carrying the fresh detailed status
  - AnswerEntry: one row of the chronological answer trail
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from intake_engine.models.progress import PhaseStatus
from intake_engine.models.question import Question


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatusView(_CamelModel):
    """Engine view: the next question to ask and overall progress."""

    current_phase: str
    next_question: Question | None = None
    is_phase_complete: bool
    # Fraction of the catalog answered, in [0, 1]
    progress: float
    total_questions: int
    answered_count: int
    phase1_completed_at: datetime | None = None
    phase2_completed_at: datetime | None = None
    phase3_completed_at: datetime | None = None


class SubmitResult(_CamelModel):
    """Engine view: result of applying one answer."""

    success: bool = True
    phase_complete: bool
    current_phase: str
    next_question: Question | None = None
    message: str


class DetailedStatus(_CamelModel):
    """Audit view of the whole progress record."""

    current_phase: str
    is_complete: bool
    phase1: PhaseStatus
    phase2: PhaseStatus
    phase3: PhaseStatus
    answered_questions: int
    total_questions: int
    responses: dict[str, Any]


class CatalogView(_CamelModel):
    """The entire catalog, unfiltered, tagged with the stored phase."""

    phase: str
    questions: list[Question]


class ResetResult(_CamelModel):
    success: bool = True
    message: str
    status: DetailedStatus


class AnswerEntry(_CamelModel):
    """One answered question, in catalog order."""

    question_id: str
    field_name: str
    phase: str
    question: str
    answer: Any = None
    answered_at: datetime | None = None
