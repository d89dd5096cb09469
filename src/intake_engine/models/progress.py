"""Progress record — the mutable per-session intake state.

One record exists per session key (the caller's user id).  The engine is
the only writer; stores hand out copies so a failed submission never
leaves a half-applied record behind.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from intake_engine.constants import PHASES, TERMINAL_PHASE


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PhaseStatus(BaseModel):
    """One-way completion flag for a base phase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    complete: bool = False
    completed_at: datetime | None = None


def _initial_phase_status() -> dict[str, PhaseStatus]:
    return {phase: PhaseStatus() for phase in PHASES}


class ProgressRecord(BaseModel):
    """Recorded answers and per-phase completion markers for one session."""

    user_id: str
    current_phase: str = PHASES[0]
    # field_name -> opaque answer value
    responses: dict[str, Any] = Field(default_factory=dict)
    phase_status: dict[str, PhaseStatus] = Field(default_factory=_initial_phase_status)
    # field_name -> time of the latest submission for that field
    answered_at: dict[str, datetime] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def fresh(cls, user_id: str) -> ProgressRecord:
        """Initial state: no answers, every phase incomplete, first phase current."""
        return cls(user_id=user_id)

    @property
    def is_complete(self) -> bool:
        """True once every base phase carries its completion flag."""
        return all(self.phase_status[phase].complete for phase in PHASES)

    def completed_at(self, phase: str) -> datetime | None:
        return self.phase_status[phase].completed_at

    def __repr__(self) -> str:
        done = "done" if self.current_phase == TERMINAL_PHASE else self.current_phase
        return (
            f"<ProgressRecord(user={self.user_id!r}, phase={done}, "
            f"answers={len(self.responses)})>"
        )
