"""Server settings, read once from the environment at startup.

=========================  ==========================================
Variable                   Meaning (default)
=========================  ==========================================
SERVER_HOST / SERVER_PORT  bind address (0.0.0.0 / 8080)
SERVER_CORS_ORIGINS        comma-separated origins (``*``)
SERVER_CATALOG_PATH        question catalog YAML (v1/onboarding.yaml)
SERVER_STORE               ``memory`` or ``sql`` (memory)
SERVER_DEFAULT_USER_ID     session key without X-User-ID (anonymous)
SERVER_LOG_LEVEL           root log level (INFO)
SESSION_TTL_DAYS           idle sweep threshold, 0 = never (0)
SESSION_SWEEP_INTERVAL     seconds between idle sweeps (3600)
ADMIN_API_KEY              enables /admin endpoints (unset)
TRUSTED_PROXY_SECRET       required X-Proxy-Secret value (unset)
DEFAULT_CLEANUP_DAYS       admin/CLI cleanup default (90)
=========================  ==========================================
"""

import os
from dataclasses import dataclass, field

# Read at import time: FastAPI Query() defaults are fixed at decoration.
DEFAULT_CLEANUP_DAYS = int(os.getenv("DEFAULT_CLEANUP_DAYS", "90"))

STORE_BACKENDS = ("memory", "sql")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    catalog_path: str | None = None
    store: str = "memory"
    default_user_id: str = "anonymous"
    log_level: str = "INFO"
    session_ttl_days: int = 0
    sweep_interval_seconds: float = 3600
    # Shared secrets; None disables the corresponding check
    admin_api_key: str | None = None
    trusted_proxy_secret: str | None = None

    def __post_init__(self) -> None:
        if self.store not in STORE_BACKENDS:
            raise ValueError(
                f"Unknown store backend '{self.store}' (expected one of {STORE_BACKENDS})"
            )
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level '{self.log_level}'")
        if self.session_ttl_days < 0:
            raise ValueError("session_ttl_days must be >= 0")
        if self.sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be > 0")
        if not self.default_user_id:
            raise ValueError("default_user_id must not be empty")

    @property
    def uses_sql(self) -> bool:
        return self.store == "sql"


def load_settings() -> ServerSettings:
    """Build settings from the environment (see the module table)."""
    env = os.environ
    return ServerSettings(
        host=env.get("SERVER_HOST", "0.0.0.0"),
        port=int(env.get("SERVER_PORT", "8080")),
        cors_origins=_split_origins(env.get("SERVER_CORS_ORIGINS", "*")),
        catalog_path=env.get("SERVER_CATALOG_PATH") or None,
        store=env.get("SERVER_STORE", "memory").lower(),
        default_user_id=env.get("SERVER_DEFAULT_USER_ID", "anonymous"),
        log_level=env.get("SERVER_LOG_LEVEL", "INFO").upper(),
        session_ttl_days=int(env.get("SESSION_TTL_DAYS", "0")),
        sweep_interval_seconds=float(env.get("SESSION_SWEEP_INTERVAL", "3600")),
        admin_api_key=env.get("ADMIN_API_KEY") or None,
        trusted_proxy_secret=env.get("TRUSTED_PROXY_SECRET") or None,
    )
