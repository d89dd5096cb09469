"""IntakeEngine tests against the in-memory store.

Covers the progression rules end to end:
  - next-question ordering and progress bounds
  - phase completion (monotonic, ignores the required flag)
  - current_phase advancement and the status catch-up
  - validation / not-found failures leaving the record untouched
  - reset, history, deletion, and idle eviction
"""

import asyncio
from datetime import timedelta

import pytest

from intake_engine.catalog import QuestionCatalog
from intake_engine.engine import IntakeEngine
from intake_engine.errors import NotFoundError, ValidationError
from intake_engine.models.progress import ProgressRecord, utcnow

from conftest import FULL_ANSWERS, FULL_QUESTIONS

USER = "user-1"


async def _answer_all(engine, user_id=USER):
    for qid, value in FULL_ANSWERS:
        await engine.submit_answer(user_id, question_id=qid, answer=value)


# =====================================================================
# Scenario walkthroughs
# =====================================================================


class TestScenarios:
    """End-to-end scenarios over the small and full catalogs."""

    @pytest.mark.asyncio
    async def test_two_phase_walkthrough(self, small_engine):
        """Optional question gates phase_1; completing it moves to phase_2."""
        status = await small_engine.get_status(USER)
        assert status.next_question.id == "q_name", "First question should be q_name"
        assert status.progress == 0
        assert status.current_phase == "phase_1"
        assert status.is_phase_complete is False

        first = await small_engine.submit_answer(USER, question_id="q_name", answer="Sam")
        assert first.success is True
        assert first.phase_complete is False, "Optional question still unanswered"
        assert first.current_phase == "phase_1"
        assert first.message == "Answer saved"
        assert first.next_question.id == "q_nickname"

        second = await small_engine.submit_answer(USER, question_id="q_nickname", answer="")
        assert second.phase_complete is True
        assert second.current_phase == "phase_2"
        assert second.message == "Phase complete"
        assert second.next_question.id == "q_goal"

        status = await small_engine.get_status(USER)
        assert status.phase1_completed_at is not None, "phase_1 timestamp should be set"
        assert status.phase2_completed_at is None
        assert status.current_phase == "phase_2"

    @pytest.mark.asyncio
    async def test_unknown_question_leaves_record_unchanged(self, small_engine):
        await small_engine.submit_answer(USER, question_id="q_name", answer="Sam")
        before = await small_engine.get_detailed_status(USER)

        with pytest.raises(NotFoundError):
            await small_engine.submit_answer(USER, question_id="q_missing", answer="x")

        after = await small_engine.get_detailed_status(USER)
        assert after == before, "Failed submission must not modify the record"

    @pytest.mark.asyncio
    async def test_empty_answer_required_vs_optional(self, small_engine):
        with pytest.raises(ValidationError) as exc_info:
            await small_engine.submit_answer(USER, question_id="q_name", answer="")
        assert exc_info.value.message == "answer required"

        detailed = await small_engine.get_detailed_status(USER)
        assert detailed.responses == {}, "Rejected answer must not be stored"

        result = await small_engine.submit_answer(USER, question_id="q_nickname", answer="")
        assert result.success is True
        detailed = await small_engine.get_detailed_status(USER)
        assert detailed.responses == {"nickname": ""}, "Optional empty answer is recorded"

    @pytest.mark.asyncio
    async def test_all_answered_reaches_complete(self, engine):
        await _answer_all(engine)

        detailed = await engine.get_detailed_status(USER)
        assert detailed.is_complete is True
        assert detailed.current_phase == "complete"

        status = await engine.get_status(USER)
        assert status.current_phase == "complete"
        assert status.next_question is None
        assert status.is_phase_complete is True
        assert status.progress == 1


# =====================================================================
# Submission validation
# =====================================================================


class TestSubmitValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("question_id", [None, ""])
    async def test_missing_question_id(self, engine, question_id):
        with pytest.raises(ValidationError) as exc_info:
            await engine.submit_answer(USER, question_id=question_id, answer="x")
        assert exc_info.value.message == "questionId is required"

    @pytest.mark.asyncio
    async def test_missing_question_id_checked_before_lookup(self, engine):
        """An empty id is a validation failure, not a not-found."""
        with pytest.raises(ValidationError):
            await engine.submit_answer(USER, question_id="", answer=None)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer", [None, ""])
    async def test_required_blank_answers_rejected(self, engine, answer):
        with pytest.raises(ValidationError):
            await engine.submit_answer(USER, question_id="a1", answer=answer)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("answer", [0, False, [], {}, " "])
    async def test_falsy_but_present_answers_accepted(self, engine, answer):
        """Only None and the empty string count as missing."""
        result = await engine.submit_answer(USER, question_id="a1", answer=answer)
        assert result.success is True

    @pytest.mark.asyncio
    async def test_optional_accepts_absent_answer(self, engine):
        await engine.submit_answer(USER, question_id="a2", answer=None)
        detailed = await engine.get_detailed_status(USER)
        assert "city" in detailed.responses
        assert detailed.responses["city"] is None

    @pytest.mark.asyncio
    async def test_answer_types_are_not_enforced(self, engine):
        """answer_type is a rendering hint; a string for a number question is stored."""
        await engine.submit_answer(USER, question_id="a1", answer="thirty-one")
        detailed = await engine.get_detailed_status(USER)
        assert detailed.responses["age"] == "thirty-one"


# =====================================================================
# Phase completion properties
# =====================================================================


class TestPhaseCompletion:

    @pytest.mark.asyncio
    async def test_completion_is_monotonic(self, engine):
        """Once complete, a phase stays complete with its first timestamp."""
        seen: dict[str, object] = {}
        for qid, value in FULL_ANSWERS + FULL_ANSWERS:
            await engine.submit_answer(USER, question_id=qid, answer=value)
            detailed = await engine.get_detailed_status(USER)
            for name in ("phase1", "phase2", "phase3"):
                phase = getattr(detailed, name)
                if name in seen:
                    assert phase.complete is True, f"{name} regressed to incomplete"
                    assert phase.completed_at == seen[name], f"{name} timestamp changed"
                elif phase.complete:
                    assert phase.completed_at is not None
                    seen[name] = phase.completed_at
        assert set(seen) == {"phase1", "phase2", "phase3"}

    @pytest.mark.asyncio
    async def test_required_only_does_not_complete_phase(self, engine):
        """Answering only the required question of phase_1 leaves it incomplete."""
        result = await engine.submit_answer(USER, question_id="a1", answer=31)
        assert result.phase_complete is False
        detailed = await engine.get_detailed_status(USER)
        assert detailed.phase1.complete is False

        result = await engine.submit_answer(USER, question_id="a2", answer="Porto")
        assert result.phase_complete is True

    @pytest.mark.asyncio
    async def test_resubmission_changes_response_not_phase_status(self, engine):
        await engine.submit_answer(USER, question_id="a1", answer=31)
        await engine.submit_answer(USER, question_id="a2", answer="Porto")
        before = await engine.get_detailed_status(USER)

        result = await engine.submit_answer(USER, question_id="a1", answer=32)
        assert result.phase_complete is True, "Already-complete phase reports complete"
        after = await engine.get_detailed_status(USER)
        assert after.responses["age"] == 32
        assert after.phase1 == before.phase1, "Phase status must be unchanged"

    @pytest.mark.asyncio
    async def test_empty_phase_is_skipped_and_counts_complete(self, small_engine):
        """phase_3 has no questions: finishing phase_2 ends the intake."""
        await small_engine.submit_answer(USER, question_id="q_name", answer="Sam")
        await small_engine.submit_answer(USER, question_id="q_nickname", answer=None)
        result = await small_engine.submit_answer(USER, question_id="q_goal", answer="Strength")

        assert result.phase_complete is True
        assert result.current_phase == "complete"
        detailed = await small_engine.get_detailed_status(USER)
        assert detailed.is_complete is True
        assert detailed.phase3.complete is True


# =====================================================================
# current_phase advancement
# =====================================================================


class TestPhaseAdvancement:

    @pytest.mark.asyncio
    async def test_out_of_order_answers_keep_global_next(self, engine):
        await engine.submit_answer(USER, question_id="c1", answer={"x": 1})
        await engine.submit_answer(USER, question_id="b1", answer=3)
        status = await engine.get_status(USER)
        assert status.next_question.id == "a1", "Lowest-order unanswered comes first"
        assert status.current_phase == "phase_1"

    @pytest.mark.asyncio
    async def test_current_phase_never_regresses(self, engine):
        for qid, value in FULL_ANSWERS[:4]:
            await engine.submit_answer(USER, question_id=qid, answer=value)
        detailed = await engine.get_detailed_status(USER)
        assert detailed.current_phase == "phase_3"

        # Resubmitting an early question must not pull the phase back
        result = await engine.submit_answer(USER, question_id="a1", answer=40)
        assert result.current_phase == "phase_3"

    @pytest.mark.asyncio
    async def test_last_phase_without_earlier_phases_is_not_terminal(self, engine):
        """Completing phase_3 first does not reach 'complete'."""
        await engine.submit_answer(USER, question_id="c1", answer={})
        result = await engine.submit_answer(USER, question_id="c2", answer="why not")
        assert result.phase_complete is True
        assert result.current_phase == "phase_3"

        detailed = await engine.get_detailed_status(USER)
        assert detailed.is_complete is False
        assert detailed.current_phase == "phase_3"

        # Fill the gaps; the final earlier-phase answer finishes the intake
        for qid, value in FULL_ANSWERS[:4]:
            await engine.submit_answer(USER, question_id=qid, answer=value)
        detailed = await engine.get_detailed_status(USER)
        assert detailed.is_complete is True
        assert detailed.current_phase == "complete"

    @pytest.mark.asyncio
    async def test_status_catches_stored_phase_up(self, engine, store):
        """get_status moves a lagging stored phase forward and persists it."""
        record = ProgressRecord.fresh(USER)
        record.responses.update({"age": 30, "city": "Rome"})
        await store.save(record)

        status = await engine.get_status(USER)
        assert status.current_phase == "phase_2"
        stored = await store.load(USER)
        assert stored.current_phase == "phase_2", "Catch-up should be saved"

        catalog_view = await engine.list_catalog(USER)
        assert catalog_view.phase == "phase_2"

    @pytest.mark.asyncio
    async def test_status_catch_up_is_forward_only(self, engine, store):
        record = ProgressRecord.fresh(USER)
        record.current_phase = "phase_3"
        await store.save(record)

        status = await engine.get_status(USER)
        # Effective phase follows the next question ...
        assert status.current_phase == "phase_1"
        # ... but the stored phase never moves backwards
        stored = await store.load(USER)
        assert stored.current_phase == "phase_3"


# =====================================================================
# Projections
# =====================================================================


class TestProjections:

    @pytest.mark.asyncio
    async def test_progress_bounds(self, engine):
        status = await engine.get_status(USER)
        assert status.progress == 0
        assert status.total_questions == 6
        assert status.answered_count == 0

        for i, (qid, value) in enumerate(FULL_ANSWERS, start=1):
            await engine.submit_answer(USER, question_id=qid, answer=value)
            status = await engine.get_status(USER)
            assert 0 <= status.progress <= 1
            assert status.answered_count == i
            assert (status.progress == 1) == (i == len(FULL_ANSWERS))

    @pytest.mark.asyncio
    async def test_empty_catalog(self, store):
        engine = IntakeEngine(QuestionCatalog.from_questions([]), store)
        status = await engine.get_status(USER)
        assert status.progress == 0, "Empty catalog must not divide by zero"
        assert status.total_questions == 0
        assert status.next_question is None
        assert status.current_phase == "phase_1"
        assert status.is_phase_complete is True

        with pytest.raises(NotFoundError):
            await engine.submit_answer(USER, question_id="anything", answer=1)

    @pytest.mark.asyncio
    async def test_list_catalog_returns_every_phase(self, engine):
        view = await engine.list_catalog(USER)
        assert view.phase == "phase_1"
        assert [q.id for q in view.questions] == ["a1", "a2", "b1", "b2", "c1", "c2"]

    @pytest.mark.asyncio
    async def test_detailed_status_snapshot_is_a_copy(self, engine):
        await engine.submit_answer(USER, question_id="a1", answer=31)
        detailed = await engine.get_detailed_status(USER)
        detailed.responses["age"] = 99
        again = await engine.get_detailed_status(USER)
        assert again.responses["age"] == 31

    @pytest.mark.asyncio
    async def test_history_in_ask_order(self, engine):
        await engine.submit_answer(USER, question_id="b1", answer=5)
        await engine.submit_answer(USER, question_id="a1", answer=31)
        history = await engine.get_history(USER)
        assert [h.question_id for h in history] == ["a1", "b1"]
        assert history[0].field_name == "age"
        assert history[0].question == "A1"
        assert history[0].answer == 31
        assert history[0].answered_at is not None

    @pytest.mark.asyncio
    async def test_status_serialises_camel_case(self, small_engine):
        status = await small_engine.get_status(USER)
        dumped = status.model_dump(by_alias=True)
        assert set(dumped) == {
            "currentPhase", "nextQuestion", "isPhaseComplete", "progress",
            "totalQuestions", "answeredCount", "phase1CompletedAt",
            "phase2CompletedAt", "phase3CompletedAt",
        }
        assert dumped["nextQuestion"]["fieldName"] == "name"


# =====================================================================
# Reset / delete / eviction
# =====================================================================


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_reset_restores_initial_state(self, engine):
        await _answer_all(engine)
        result = await engine.reset(USER)
        assert result.success is True
        assert result.message == "Onboarding reset"

        detailed = await engine.get_detailed_status(USER)
        assert detailed.is_complete is False
        assert detailed.current_phase == "phase_1"
        assert detailed.responses == {}
        for name in ("phase1", "phase2", "phase3"):
            phase = getattr(detailed, name)
            assert phase.complete is False and phase.completed_at is None
        assert result.status == detailed

        status = await engine.get_status(USER)
        assert status.progress == 0

    @pytest.mark.asyncio
    async def test_reset_is_idempotent(self, engine):
        first = await engine.reset(USER)
        second = await engine.reset(USER)
        assert first.status == second.status

    @pytest.mark.asyncio
    async def test_sessions_are_independent(self, engine):
        await engine.submit_answer("alice", question_id="a1", answer=30)
        await engine.submit_answer("alice", question_id="a2", answer="Oslo")

        bob = await engine.get_status("bob")
        assert bob.answered_count == 0
        assert bob.next_question.id == "a1"

        alice = await engine.get_status("alice")
        assert alice.current_phase == "phase_2"

    @pytest.mark.asyncio
    async def test_delete_session(self, engine, store):
        await engine.submit_answer(USER, question_id="a1", answer=30)
        assert await engine.delete_session(USER) is True
        assert await store.load(USER) is None
        assert await engine.delete_session(USER) is False

    @pytest.mark.asyncio
    async def test_read_only_calls_do_not_create_records(self, engine, store):
        await engine.get_detailed_status(USER)
        await engine.list_catalog(USER)
        await engine.get_status(USER)
        assert await store.load(USER) is None

    @pytest.mark.asyncio
    async def test_evict_idle(self, engine, store):
        await engine.submit_answer("fresh", question_id="a1", answer=30)
        stale = ProgressRecord.fresh("stale")
        stale.updated_at = utcnow() - timedelta(days=40)
        await store.save(stale)

        evicted = await engine.evict_idle(30)
        assert evicted == 1
        assert await store.load("stale") is None
        assert await store.load("fresh") is not None

    @pytest.mark.asyncio
    async def test_unknown_stored_fields_are_dropped(self, engine, store):
        record = ProgressRecord.fresh(USER)
        record.responses.update({"age": 30, "retired_field": "x"})
        await store.save(record)

        detailed = await engine.get_detailed_status(USER)
        assert detailed.responses == {"age": 30}

    @pytest.mark.asyncio
    async def test_phase_finished_by_catalog_change_completes(self, store):
        """A question removed from an unfinished phase lets the session reach complete."""
        extended = QuestionCatalog.from_questions(FULL_QUESTIONS + [
            {"id": "a3", "phase": "phase_1", "prompt": "A3", "answer_type": "text",
             "required": False, "field_name": "hometown", "order": 25},
        ])
        before = IntakeEngine(extended, store)
        await before.submit_answer(USER, question_id="a1", answer=31)
        await before.submit_answer(USER, question_id="a2", answer="Lisbon")
        assert (await before.get_detailed_status(USER)).phase1.complete is False

        after = IntakeEngine(QuestionCatalog.from_questions(FULL_QUESTIONS), store)
        for qid, value in FULL_ANSWERS[2:]:
            result = await after.submit_answer(USER, question_id=qid, answer=value)
        assert result.current_phase == "complete"

        detailed = await after.get_detailed_status(USER)
        assert detailed.is_complete is True
        assert detailed.current_phase == "complete"
        assert detailed.phase1.complete is True
        assert detailed.phase1.completed_at is not None

    @pytest.mark.asyncio
    async def test_catalog_change_settles_on_read(self, store):
        """Reading a session whose remaining questions are all answered stamps the phase."""
        extended = QuestionCatalog.from_questions(FULL_QUESTIONS + [
            {"id": "c3", "phase": "phase_3", "prompt": "C3", "answer_type": "text",
             "required": True, "field_name": "sleep", "order": 70},
        ])
        before = IntakeEngine(extended, store)
        for qid, value in FULL_ANSWERS:
            await before.submit_answer(USER, question_id=qid, answer=value)
        assert (await before.get_detailed_status(USER)).is_complete is False

        after = IntakeEngine(QuestionCatalog.from_questions(FULL_QUESTIONS), store)
        status = await after.get_status(USER)
        assert status.next_question is None
        assert status.phase3_completed_at is not None

        saved = await store.load(USER)
        assert saved.is_complete is True
        assert saved.current_phase == "complete"


# =====================================================================
# Concurrency
# =====================================================================


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_concurrent_submissions_are_all_applied(self, engine):
        """Parallel submissions for one session never lose an answer."""
        await asyncio.gather(*(
            engine.submit_answer(USER, question_id=qid, answer=value)
            for qid, value in FULL_ANSWERS
        ))
        detailed = await engine.get_detailed_status(USER)
        assert detailed.answered_questions == len(FULL_ANSWERS)
        assert detailed.is_complete is True
        assert detailed.current_phase == "complete"

    @pytest.mark.asyncio
    async def test_concurrent_status_and_submit(self, engine):
        await asyncio.gather(
            engine.get_status(USER),
            engine.submit_answer(USER, question_id="a1", answer=30),
            engine.get_status(USER),
            engine.submit_answer(USER, question_id="a2", answer="Oslo"),
        )
        status = await engine.get_status(USER)
        assert status.answered_count == 2
        assert status.current_phase == "phase_2"
