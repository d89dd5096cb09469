"""Onboarding endpoints — status polling, answer submission, audit views.

The client polls ``GET /onboarding`` to learn what to ask next, posts one
answer at a time to ``POST /onboarding``, and renders ``GET
/onboarding/status`` as a progress summary.  Every endpoint is scoped to
the caller's session key (see ``get_user_id``).
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, field_validator

from intake_engine.engine import IntakeEngine
from intake_engine.errors import NotFoundError
from intake_engine.models.status import (
    AnswerEntry,
    CatalogView,
    DetailedStatus,
    ResetResult,
    StatusView,
    SubmitResult,
)

from intake_server.dependencies import get_intake, get_user_id

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class SubmitAnswerRequest(BaseModel):
    """Body for POST /onboarding.

    Both fields are optional at the HTTP layer so that a missing
    ``questionId`` or ``answer`` is reported by the engine with its own
    message instead of a generic schema error.
    """

    model_config = ConfigDict(populate_by_name=True)

    question_id: str | None = Field(None, alias="questionId")
    answer: Any = None

    @field_validator("question_id", mode="before")
    @classmethod
    def _numeric_id_as_text(cls, value: Any) -> Any:
        # Clients may send ids such as 42; look them up like "42"
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("")
async def get_status(
    user_id: str = Depends(get_user_id),
    engine: IntakeEngine = Depends(get_intake),
) -> StatusView:
    """Return the next question to ask and overall progress.

    May move the stored ``currentPhase`` forward to the next question's
    phase; never fails.
    """
    return await engine.get_status(user_id)


@router.post("")
async def submit_answer(
    body: SubmitAnswerRequest | None = None,
    user_id: str = Depends(get_user_id),
    engine: IntakeEngine = Depends(get_intake),
) -> SubmitResult:
    """Record one answer.

    Returns 400 if ``questionId`` is missing or a required answer is empty,
    404 if ``questionId`` is unknown.  The progress record is unchanged on
    failure.
    """
    body = body or SubmitAnswerRequest()
    return await engine.submit_answer(
        user_id, question_id=body.question_id, answer=body.answer,
    )


@router.delete("", status_code=204)
async def delete_progress(
    user_id: str = Depends(get_user_id),
    engine: IntakeEngine = Depends(get_intake),
) -> None:
    """Permanently drop the caller's progress record.

    Returns 204 on success, 404 if nothing was stored.
    """
    if not await engine.delete_session(user_id):
        raise NotFoundError("Onboarding session not found")


@router.get("/questions")
async def list_questions(
    user_id: str = Depends(get_user_id),
    engine: IntakeEngine = Depends(get_intake),
) -> CatalogView:
    """Return the whole catalog (all phases) and the stored current phase."""
    return await engine.list_catalog(user_id)


@router.get("/status")
async def get_detailed_status(
    user_id: str = Depends(get_user_id),
    engine: IntakeEngine = Depends(get_intake),
) -> DetailedStatus:
    """Return per-phase completion, counts, and every recorded answer."""
    return await engine.get_detailed_status(user_id)


@router.get("/history")
async def get_history(
    user_id: str = Depends(get_user_id),
    engine: IntakeEngine = Depends(get_intake),
) -> list[AnswerEntry]:
    """Return the answered questions in ask order with their latest answers."""
    return await engine.get_history(user_id)


@router.post("/reset")
async def reset_progress(
    user_id: str = Depends(get_user_id),
    engine: IntakeEngine = Depends(get_intake),
) -> ResetResult:
    """Start the intake over.  Idempotent."""
    return await engine.reset(user_id)
