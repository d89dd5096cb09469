"""Shared fixtures: small in-memory catalogs and engines built on them."""

import pytest

from intake_engine.catalog import QuestionCatalog
from intake_engine.engine import IntakeEngine
from intake_engine.store import MemoryProgressStore

# Two phase_1 questions (one required, one optional) and one required
# phase_2 question.  phase_3 has no questions.
SMALL_QUESTIONS = [
    {
        "id": "q_name",
        "phase": "phase_1",
        "prompt": "What should we call you?",
        "answer_type": "text",
        "required": True,
        "field_name": "name",
        "order": 1,
    },
    {
        "id": "q_nickname",
        "phase": "phase_1",
        "prompt": "Any nickname?",
        "answer_type": "text",
        "required": False,
        "field_name": "nickname",
        "order": 2,
    },
    {
        "id": "q_goal",
        "phase": "phase_2",
        "prompt": "Main goal?",
        "answer_type": "select",
        "options": ["Strength", "Endurance"],
        "required": True,
        "field_name": "goal",
        "order": 3,
    },
]

# Two questions in every base phase.
FULL_QUESTIONS = [
    {"id": "a1", "phase": "phase_1", "prompt": "A1", "answer_type": "number",
     "required": True, "field_name": "age", "order": 10},
    {"id": "a2", "phase": "phase_1", "prompt": "A2", "answer_type": "text",
     "required": False, "field_name": "city", "order": 20},
    {"id": "b1", "phase": "phase_2", "prompt": "B1", "answer_type": "scale",
     "min_value": 1, "max_value": 10, "required": True, "field_name": "stress", "order": 30},
    {"id": "b2", "phase": "phase_2", "prompt": "B2", "answer_type": "multiselect",
     "options": ["Nuts", "Dairy"], "required": False, "field_name": "allergies", "order": 40},
    {"id": "c1", "phase": "phase_3", "prompt": "C1", "answer_type": "json",
     "required": True, "field_name": "schedule", "order": 50},
    {"id": "c2", "phase": "phase_3", "prompt": "C2", "answer_type": "text",
     "required": True, "field_name": "motivation", "order": 60},
]

# Answers that satisfy every question in FULL_QUESTIONS, in ask order.
FULL_ANSWERS = [
    ("a1", 31),
    ("a2", "Lisbon"),
    ("b1", 4),
    ("b2", ["Nuts"]),
    ("c1", {"mornings": True}),
    ("c2", "Feel better"),
]


@pytest.fixture
def small_catalog() -> QuestionCatalog:
    return QuestionCatalog.from_questions(SMALL_QUESTIONS)


@pytest.fixture
def full_catalog() -> QuestionCatalog:
    return QuestionCatalog.from_questions(FULL_QUESTIONS)


@pytest.fixture
def store() -> MemoryProgressStore:
    return MemoryProgressStore()


@pytest.fixture
def small_engine(small_catalog, store) -> IntakeEngine:
    return IntakeEngine(small_catalog, store)


@pytest.fixture
def engine(full_catalog, store) -> IntakeEngine:
    return IntakeEngine(full_catalog, store)
