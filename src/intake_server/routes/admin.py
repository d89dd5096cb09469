"""Admin endpoints — bulk eviction of idle intake sessions.

Protected by the ``ADMIN_API_KEY`` setting.  Every request must include an
``X-Admin-Key`` header whose value matches the configured key.
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from intake_engine.engine import IntakeEngine

from intake_server.config import DEFAULT_CLEANUP_DAYS
from intake_server.dependencies import get_intake, require_admin_key

router = APIRouter(prefix="/admin", tags=["admin"])


# ------------------------------------------------------------------
# Response models
# ------------------------------------------------------------------

class CleanupResult(BaseModel):
    """Response body for cleanup operations."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    affected_rows: int
    action: str


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/cleanup/sessions")
async def cleanup_sessions(
    older_than_days: int = Query(DEFAULT_CLEANUP_DAYS, ge=0),
    engine: IntakeEngine = Depends(get_intake),
    _admin: str = Depends(require_admin_key),
) -> CleanupResult:
    """Drop progress records not updated within ``older_than_days`` days."""
    affected = await engine.evict_idle(older_than_days)
    return CleanupResult(affected_rows=affected, action="evict_idle")
