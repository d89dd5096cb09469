"""FastAPI dependency injection — provides the engine and caller identity."""

import hmac

from fastapi import Header, HTTPException, Request

from intake_engine.engine import IntakeEngine


# ------------------------------------------------------------------
# Engine: stashed on app.state during lifespan
# ------------------------------------------------------------------

def get_intake(request: Request) -> IntakeEngine:
    """Return the IntakeEngine singleton from ``app.state``."""
    return request.app.state.engine


# ------------------------------------------------------------------
# User identity: extracted from the X-User-ID header
# ------------------------------------------------------------------

async def get_user_id(
    request: Request,
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    x_proxy_secret: str | None = Header(None, alias="X-Proxy-Secret"),
) -> str:
    """Resolve the session key for this request.

    Uses the ``X-User-ID`` header when present and falls back to the
    configured ``default_user_id`` otherwise, so a single-user deployment
    keeps working without an identity layer in front of it.

    When ``TRUSTED_PROXY_SECRET`` is configured, a request carrying
    ``X-User-ID`` must also carry a matching ``X-Proxy-Secret``, proving
    the identity header was injected by a trusted gateway.
    """
    settings = request.app.state.settings
    if not x_user_id:
        return settings.default_user_id

    expected_secret: str | None = settings.trusted_proxy_secret
    if expected_secret:
        if not x_proxy_secret:
            raise HTTPException(
                status_code=403,
                detail="X-Proxy-Secret header is required",
            )
        # Constant-time comparison to prevent timing side-channels.
        if not hmac.compare_digest(x_proxy_secret, expected_secret):
            raise HTTPException(status_code=403, detail="Invalid proxy secret")

    return x_user_id


async def require_admin_key(
    request: Request,
    x_admin_key: str | None = Header(None, alias="X-Admin-Key"),
) -> str:
    """Validate ``X-Admin-Key`` against the configured ``ADMIN_API_KEY``.

    Raises 403 if admin endpoints are disabled or the key is wrong, 401 if
    the header is missing.
    """
    expected: str | None = request.app.state.settings.admin_api_key
    if not expected:
        raise HTTPException(
            status_code=403,
            detail="Admin endpoints are disabled (ADMIN_API_KEY not configured)",
        )
    if not x_admin_key:
        raise HTTPException(status_code=401, detail="X-Admin-Key header is required")
    if not hmac.compare_digest(x_admin_key, expected):
        raise HTTPException(status_code=403, detail="Invalid admin key")
    return x_admin_key
