"""Global exception handlers — map engine exceptions to HTTP responses.

The engine raises ``ValidationError`` for missing input and
``NotFoundError`` for unknown question ids.  Rather than catching these
in every route, global handlers turn them into declarative failure
bodies::

    {"success": false, "message": "answer required"}

Engine messages describe caller mistakes only, so they are safe to return
verbatim.  Anything unexpected is logged with its traceback and reported
as a generic 500.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from intake_engine.errors import IntakeError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# --- Engine error classes and their HTTP status codes ---
# Checked in order; first match wins.
_STATUS_BY_ERROR: list[tuple[type[IntakeError], int]] = [
    (NotFoundError, 404),
    (ValidationError, 400),
]


def _failure(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"success": False, "message": message})


async def intake_error_handler(request: Request, exc: IntakeError) -> JSONResponse:
    """Map ``IntakeError`` subclasses to 400 / 404 failure bodies."""
    status = 400
    for error_cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            status = code
            break
    logger.warning("%s [%d] at %s: %s", type(exc).__name__, status, request.url.path, exc.message)
    return _failure(status, exc.message)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies (e.g. non-JSON) become 400 instead of 422."""
    logger.warning("Malformed request at %s: %s", request.url.path, exc.errors())
    return _failure(400, "Invalid request body")


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return _failure(500, "Internal server error")


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Guard failures (identity, admin key) and unknown routes use the same body."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )
