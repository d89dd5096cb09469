"""Intake constants shared across the SDK.

Phase identifiers mirror the tags the client application already renders
(``phase_1`` … ``phase_3`` and the terminal ``complete``).
"""

import os

# Base phases in the fixed order they are completed.
PHASES: tuple[str, ...] = ("phase_1", "phase_2", "phase_3")

# Pseudo-phase reached only after every base phase is complete.
TERMINAL_PHASE = "complete"

# Human-readable phase names for API responses and logging.
PHASE_NAMES: dict[str, str] = {
    "phase_1": "Baseline Profile",
    "phase_2": "Recovery & Nutrition",
    "phase_3": "Personalization",
    TERMINAL_PHASE: "Complete",
}

# Answer types that must carry a non-empty ``options`` list.
SELECT_TYPES: set[str] = {"select", "multiselect"}

# Catalog file name under the ruleset directory (``v1/`` by default).
# Overridable via INTAKE_CATALOG_FILE env var.
CATALOG_FILE = os.getenv("INTAKE_CATALOG_FILE", "onboarding.yaml")

MESSAGE_PHASE_COMPLETE = "Phase complete"
MESSAGE_ANSWER_SAVED = "Answer saved"
MESSAGE_RESET = "Onboarding reset"


def phase_index(phase: str) -> int:
    """Position of *phase* in the progression; the terminal sentinel sorts last."""
    if phase == TERMINAL_PHASE:
        return len(PHASES)
    return PHASES.index(phase)
