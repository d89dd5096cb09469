"""QuestionCatalog — loads the onboarding question table from ``v1/``.

This is the single source of truth for question data at runtime.  The
catalog is loaded once at startup, checked for integrity, and provides
fast lookup by question id, field name, and phase.

Usage::

    catalog = QuestionCatalog()     # defaults to v1/onboarding.yaml from repo root
    catalog.load()                  # parse and validate the YAML table

    q = catalog.get("p1_age")
    nxt = catalog.next_unanswered(record.responses)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import pydantic
import yaml

from intake_engine.constants import CATALOG_FILE, PHASES, SELECT_TYPES
from intake_engine.errors import CatalogError
from intake_engine.models.question import Question

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# QuestionCatalog
# ---------------------------------------------------------------------------

class QuestionCatalog:
    """Ordered, validated question table.

    Attributes populated after :meth:`load` (or :meth:`from_questions`):

        questions  — list[Question] in ascending ``order``
        version    — optional version tag from the YAML header

    Integrity rules, checked once:
        - ``id`` values are unique
        - ``field_name`` values are unique
        - ``order`` values strictly increase in table order
        - every ``phase`` is one of the base phases
        - select / multiselect questions carry at least one option,
          other types carry none
    """

    def __init__(self, catalog_path: str | Path | None = None) -> None:
        if catalog_path is None:
            catalog_path = find_repo_root() / "v1" / CATALOG_FILE
        self._path = Path(catalog_path)

        self.questions: list[Question] = []
        self.version: str | None = None

        self._by_id: dict[str, Question] = {}
        self._by_field: dict[str, Question] = {}
        self._by_phase: dict[str, list[Question]] = {phase: [] for phase in PHASES}

    @classmethod
    def from_questions(cls, items: Iterable[Question | Mapping[str, Any]]) -> QuestionCatalog:
        """Build a catalog from in-memory entries (dicts or ``Question`` models)."""
        catalog = cls(catalog_path="<memory>")
        catalog._index(list(items), source="<memory>")
        return catalog

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Parse the YAML catalog into typed, validated questions.

        Call this once at startup.  Raises ``FileNotFoundError`` if the file
        is missing and ``CatalogError`` if the table breaks an integrity rule.
        """
        raw = load_yaml(self._path)
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise CatalogError(f"{self._path}: expected a mapping with a 'questions' list")

        self.version = raw.get("version")
        items = raw.get("questions") or []
        if not isinstance(items, list):
            raise CatalogError(f"{self._path}: 'questions' must be a list")

        self._index(items, source=str(self._path))
        logger.info(
            "QuestionCatalog loaded: %d questions (%s) from %s",
            len(self.questions),
            ", ".join(f"{p}={len(self._by_phase[p])}" for p in PHASES),
            self._path,
        )

    def _index(self, items: list[Any], *, source: str) -> None:
        questions: list[Question] = []
        for position, item in enumerate(items):
            if isinstance(item, Question):
                questions.append(item)
                continue
            try:
                questions.append(Question.model_validate(item))
            except pydantic.ValidationError as exc:
                raise CatalogError(f"{source}: invalid question at position {position}: {exc}") from exc

        by_id: dict[str, Question] = {}
        by_field: dict[str, Question] = {}
        by_phase: dict[str, list[Question]] = {phase: [] for phase in PHASES}
        last_order: int | None = None

        for q in questions:
            if q.id in by_id:
                raise CatalogError(f"{source}: duplicate question id '{q.id}'")
            if q.field_name in by_field:
                raise CatalogError(
                    f"{source}: duplicate field_name '{q.field_name}' (question '{q.id}')"
                )
            if q.phase not in by_phase:
                raise CatalogError(f"{source}: question '{q.id}' has unknown phase '{q.phase}'")
            if last_order is not None and q.order <= last_order:
                raise CatalogError(
                    f"{source}: order must strictly increase, got {q.order} after "
                    f"{last_order} (question '{q.id}')"
                )
            if q.answer_type in SELECT_TYPES and not q.options:
                raise CatalogError(f"{source}: {q.answer_type} question '{q.id}' has no options")
            if q.answer_type not in SELECT_TYPES and q.options:
                raise CatalogError(
                    f"{source}: options are only allowed on select questions ('{q.id}')"
                )

            by_id[q.id] = q
            by_field[q.field_name] = q
            by_phase[q.phase].append(q)
            last_order = q.order

        self.questions = questions
        self._by_id = by_id
        self._by_field = by_field
        self._by_phase = by_phase

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.questions)

    @property
    def total(self) -> int:
        return len(self.questions)

    def get(self, question_id: str) -> Question | None:
        """Return the question with this id, or None if unknown."""
        return self._by_id.get(question_id)

    def get_by_field(self, field_name: str) -> Question | None:
        return self._by_field.get(field_name)

    def has_field(self, field_name: str) -> bool:
        return field_name in self._by_field

    def questions_for_phase(self, phase: str) -> list[Question]:
        """Questions tagged with *phase*, in ask order.  Empty for unknown phases."""
        return list(self._by_phase.get(phase, []))

    def next_unanswered(self, responses: Mapping[str, Any]) -> Question | None:
        """The lowest-``order`` question whose field has no recorded answer.

        The order is global, so answering questions out of sequence never
        changes which question comes next.
        """
        for q in self.questions:
            if q.field_name not in responses:
                return q
        return None

    def is_phase_answered(self, phase: str, responses: Mapping[str, Any]) -> bool:
        """True if every question of *phase* has an entry in *responses*.

        The ``required`` flag plays no part here: an optional question blocks
        phase completion until something (even an empty value) is recorded.
        A phase with no questions is vacuously answered.
        """
        return all(q.field_name in responses for q in self._by_phase.get(phase, []))
