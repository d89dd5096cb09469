"""IntakeEngine — progression logic for the multi-phase onboarding intake.

Stateless engine pattern: each call loads the caller's progress record
from the store, computes the projection or applies the mutation, saves
the record if it changed, and returns the result.  The only in-memory
state is a registry of per-session ``asyncio.Lock`` objects that
serialises read-modify-write cycles for the same session key.

Operations:
    get_status          — next question, progress, per-phase timestamps
    submit_answer       — record one answer, complete/advance phases
    get_detailed_status — full audit view with every recorded answer
    list_catalog        — whole catalog plus the stored current phase
    reset               — replace the record with a fresh one
    get_history         — answered questions in ask order
    delete_session      — drop the record entirely
    evict_idle          — drop records untouched for N days

Phase state machine:
    current_phase moves phase_1 -> phase_2 -> phase_3 -> complete, never
    backwards.  Each base phase carries its own one-way completion flag;
    ``complete`` is reached only once every flag is set.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from datetime import timedelta
from typing import Any

from intake_engine.catalog import QuestionCatalog
from intake_engine.constants import (
    MESSAGE_ANSWER_SAVED,
    MESSAGE_PHASE_COMPLETE,
    MESSAGE_RESET,
    PHASE_NAMES,
    PHASES,
    TERMINAL_PHASE,
    phase_index,
)
from intake_engine.errors import NotFoundError, ValidationError
from intake_engine.interfaces import ProgressStore
from intake_engine.models.progress import ProgressRecord, utcnow
from intake_engine.models.question import Question
from intake_engine.models.status import (
    AnswerEntry,
    CatalogView,
    DetailedStatus,
    ResetResult,
    StatusView,
    SubmitResult,
)
from intake_engine.store import MemoryProgressStore

logger = logging.getLogger(__name__)


def _is_blank(answer: Any) -> bool:
    """Absent, null, or the empty string.  Empty lists/dicts count as answers."""
    return answer is None or (isinstance(answer, str) and answer == "")


def _later(a: str, b: str) -> str:
    """The phase further along the progression."""
    return a if phase_index(a) >= phase_index(b) else b


class IntakeEngine:
    """Drives one progress record per session key through the catalog.

    Args:
        catalog: a loaded :class:`QuestionCatalog`
        store: where progress records live (in-memory by default)
    """

    def __init__(self, catalog: QuestionCatalog, store: ProgressStore | None = None) -> None:
        self._catalog = catalog
        self._store = store if store is not None else MemoryProgressStore()
        # Locks disappear once no coroutine holds or awaits them.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    @property
    def catalog(self) -> QuestionCatalog:
        return self._catalog

    @property
    def store(self) -> ProgressStore:
        return self._store

    # ==================================================================
    # Queries
    # ==================================================================

    async def get_status(self, user_id: str) -> StatusView:
        """Return what to ask next and how far the session has come.

        If the next unanswered question belongs to a later phase than the
        stored ``current_phase`` (for example after answering out of order),
        the stored phase is moved forward to match and saved.  This
        reconciliation runs under the session lock like any other write.
        """
        async with self._lock_for(user_id):
            record = await self._load(user_id)
            next_q = self._catalog.next_unanswered(record.responses)

            if self._reconcile_phase(record, next_q):
                record.updated_at = utcnow()
                await self._store.save(record)

            effective = next_q.phase if next_q is not None else record.current_phase
            total = self._catalog.total
            answered = len(record.responses)

            return StatusView(
                current_phase=effective,
                next_question=next_q,
                is_phase_complete=self._is_phase_complete(effective, record),
                progress=answered / total if total else 0.0,
                total_questions=total,
                answered_count=answered,
                phase1_completed_at=record.completed_at(PHASES[0]),
                phase2_completed_at=record.completed_at(PHASES[1]),
                phase3_completed_at=record.completed_at(PHASES[2]),
            )

    async def get_detailed_status(self, user_id: str) -> DetailedStatus:
        """Return the full audit view of the session's progress record."""
        async with self._lock_for(user_id):
            record = await self._load(user_id)
        return self._to_detailed_status(record)

    async def list_catalog(self, user_id: str) -> CatalogView:
        """Return the entire catalog, unfiltered, with the stored current phase.

        Callers that only want the active phase's questions filter the list
        themselves on ``phase``.
        """
        async with self._lock_for(user_id):
            record = await self._load(user_id)
        return CatalogView(phase=record.current_phase, questions=list(self._catalog.questions))

    async def get_history(self, user_id: str) -> list[AnswerEntry]:
        """Return every answered question in ask order with its latest answer."""
        async with self._lock_for(user_id):
            record = await self._load(user_id)
        return [
            AnswerEntry(
                question_id=q.id,
                field_name=q.field_name,
                phase=q.phase,
                question=q.prompt,
                answer=record.responses[q.field_name],
                answered_at=record.answered_at.get(q.field_name),
            )
            for q in self._catalog.questions
            if q.field_name in record.responses
        ]

    # ==================================================================
    # Mutations
    # ==================================================================

    async def submit_answer(
        self,
        user_id: str,
        *,
        question_id: str | None,
        answer: Any = None,
    ) -> SubmitResult:
        """Record one answer and advance the session.

        Raises:
            ValidationError: ``question_id`` is missing, or the question is
                required and ``answer`` is None / empty string.
            NotFoundError: ``question_id`` is not in the catalog.

        Resubmitting an already-answered question overwrites the stored
        answer.  A completed phase stays completed with its original
        timestamp.
        """
        if not question_id:
            raise ValidationError("questionId is required")

        question = self._catalog.get(question_id)
        if question is None:
            raise NotFoundError(f"Question not found: {question_id}")

        if question.required and _is_blank(answer):
            raise ValidationError("answer required")

        async with self._lock_for(user_id):
            record = await self._load(user_id, persist=False)
            now = utcnow()

            record.responses[question.field_name] = answer
            record.answered_at[question.field_name] = now
            self._settle_phases(record, now, include_empty=True)

            status = record.phase_status[question.phase]

            if status.complete:
                target = self._phase_after(record, question.phase)
            else:
                target = question.phase
            record.current_phase = _later(record.current_phase, target)
            record.updated_at = now

            await self._store.save(record)

        logger.debug(
            "Answer saved: user=%s question=%s phase=%s current=%s",
            user_id, question.id, question.phase, record.current_phase,
        )
        return SubmitResult(
            phase_complete=status.complete,
            current_phase=record.current_phase,
            next_question=self._catalog.next_unanswered(record.responses),
            message=MESSAGE_PHASE_COMPLETE if status.complete else MESSAGE_ANSWER_SAVED,
        )

    async def reset(self, user_id: str) -> ResetResult:
        """Replace the session's record with a freshly initialised one."""
        async with self._lock_for(user_id):
            record = ProgressRecord.fresh(user_id)
            await self._store.save(record)
        logger.info("Progress reset: user=%s", user_id)
        return ResetResult(message=MESSAGE_RESET, status=self._to_detailed_status(record))

    async def delete_session(self, user_id: str) -> bool:
        """Remove the session's record.  Returns False if none was stored."""
        async with self._lock_for(user_id):
            deleted = await self._store.delete(user_id)
        if deleted:
            logger.info("Progress deleted: user=%s", user_id)
        return deleted

    async def evict_idle(self, older_than_days: int) -> int:
        """Remove records not updated within the last *older_than_days* days."""
        cutoff = utcnow() - timedelta(days=older_than_days)
        return await self._store.purge_idle(cutoff)

    # ==================================================================
    # Internal helpers
    # ==================================================================

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    async def _load(self, user_id: str, *, persist: bool = True) -> ProgressRecord:
        """Load the record, creating an initial one in memory if absent.

        Brings a stored record in line with the current catalog: answers for
        fields it no longer defines are dropped, and phases whose remaining
        questions are all answered are marked complete.  With *persist* the
        adjusted record is saved straight away; callers that save anyway
        pass False.
        """
        record = await self._store.load(user_id)
        if record is None:
            return ProgressRecord.fresh(user_id)

        unknown = [f for f in record.responses if not self._catalog.has_field(f)]
        if unknown:
            logger.warning(
                "Dropping answers for unknown fields: user=%s fields=%s", user_id, unknown,
            )
            for field_name in unknown:
                record.responses.pop(field_name, None)
                record.answered_at.pop(field_name, None)

        settled = self._settle_phases(record, utcnow(), include_empty=False)
        if settled and record.is_complete:
            record.current_phase = TERMINAL_PHASE
        if persist and (unknown or settled):
            await self._store.save(record)
        return record

    def _reconcile_phase(self, record: ProgressRecord, next_q: Question | None) -> bool:
        """Catch ``current_phase`` up to the next question's phase.

        Only moves forward; never leaves the terminal phase.  Returns True
        if the record changed.
        """
        if next_q is None or record.current_phase == TERMINAL_PHASE:
            return False
        if phase_index(next_q.phase) <= phase_index(record.current_phase):
            return False
        logger.info(
            "Phase catch-up: user=%s %s -> %s",
            record.user_id, record.current_phase, next_q.phase,
        )
        record.current_phase = next_q.phase
        return True

    def _is_phase_complete(self, phase: str, record: ProgressRecord) -> bool:
        if phase == TERMINAL_PHASE:
            return True
        return self._catalog.is_phase_answered(phase, record.responses)

    def _mark_complete(self, record: ProgressRecord, phase: str, now) -> None:
        """Set a phase's completion flag once; later calls are no-ops."""
        status = record.phase_status[phase]
        if status.complete:
            return
        status.complete = True
        status.completed_at = now
        logger.info(
            "Phase complete: user=%s phase=%s (%s)",
            record.user_id, phase, PHASE_NAMES.get(phase, phase),
        )

    def _settle_phases(self, record: ProgressRecord, now, *, include_empty: bool) -> bool:
        """Mark complete every phase whose questions all have an entry.

        Covers phases finished by a catalog change as well as by an answer.
        Phases without questions are only settled with *include_empty*, i.e.
        once the session starts answering.  Returns True if any flag was set.
        """
        settled = False
        for phase in PHASES:
            if record.phase_status[phase].complete:
                continue
            if not include_empty and not self._catalog.questions_for_phase(phase):
                continue
            if self._catalog.is_phase_answered(phase, record.responses):
                self._mark_complete(record, phase, now)
                settled = True
        return settled

    def _phase_after(self, record: ProgressRecord, phase: str) -> str:
        """The phase to move to once *phase* is complete.

        Skips phases that have no questions.  Once every phase is complete the
        session is ``complete`` whichever phase finished last; past the last
        base phase with gaps remaining it stays on *phase*.
        """
        if record.is_complete:
            return TERMINAL_PHASE
        for candidate in PHASES[phase_index(phase) + 1:]:
            if self._catalog.questions_for_phase(candidate):
                return candidate
        return phase

    def _to_detailed_status(self, record: ProgressRecord) -> DetailedStatus:
        is_complete = record.is_complete
        return DetailedStatus(
            current_phase=TERMINAL_PHASE if is_complete else record.current_phase,
            is_complete=is_complete,
            phase1=record.phase_status[PHASES[0]].model_copy(),
            phase2=record.phase_status[PHASES[1]].model_copy(),
            phase3=record.phase_status[PHASES[2]].model_copy(),
            answered_questions=len(record.responses),
            total_questions=self._catalog.total,
            responses=dict(record.responses),
        )
