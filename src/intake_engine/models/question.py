"""Question model for the onboarding intake catalog.

Each answer type maps to a UI component in the client application:

    - text: free-text input
    - number: numeric input
    - select: pick exactly one of ``options``
    - multiselect: pick any number of ``options``
    - json: structured input rendered by a dedicated form
    - scale: slider between ``min_value`` and ``max_value``

The engine treats the answer type as a rendering hint only.  Submitted
answers are checked for presence (when ``required``), never for type
conformance.

Serialised with the keys the client already consumes
(``question``, ``type``, ``fieldName``); YAML catalogs may use either the
Python field names or those aliases.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AnswerType = Literal["text", "number", "select", "multiselect", "json", "scale"]


class Question(BaseModel):
    """A single catalog entry.  Immutable once loaded."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: str
    phase: str
    prompt: str = Field(alias="question")
    answer_type: AnswerType = Field(alias="type")
    options: Optional[List[str]] = None
    required: bool = True
    field_name: str
    # Global ask order across every phase
    order: int
    # Bounds for "scale" questions
    min_value: Optional[float] = None
    max_value: Optional[float] = None
