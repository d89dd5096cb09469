"""Error taxonomy for the intake engine.

Every error here is caller-correctable: the progress record is never
modified when one is raised, and resubmitting valid input succeeds.
"""


class IntakeError(ValueError):
    """Base class for errors raised by engine operations."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(IntakeError):
    """Missing or empty required input (HTTP 400)."""


class NotFoundError(IntakeError):
    """Unknown question identifier or session (HTTP 404)."""


class CatalogError(ValueError):
    """The question catalog failed integrity checks at load time."""
