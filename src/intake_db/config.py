"""Database settings — where the intake_progress table lives.

``DATABASE_URL`` wins when set; otherwise the URL is assembled from the
``PG_*`` variables used by docker-compose.  Either driver prefix is
accepted in ``DATABASE_URL``: the runtime engine always talks asyncpg and
Alembic always talks psycopg2.
"""

import os
from dataclasses import dataclass

from sqlalchemy.engine import URL, make_url

ASYNC_DRIVER = "postgresql+asyncpg"
SYNC_DRIVER = "postgresql+psycopg2"


@dataclass(frozen=True)
class DatabaseSettings:
    url: URL
    pool_size: int = 5
    max_overflow: int = 10
    echo: bool = False

    @classmethod
    def from_env(cls) -> "DatabaseSettings":
        raw = os.getenv("DATABASE_URL")
        if raw:
            url = make_url(raw)
        else:
            url = URL.create(
                "postgresql",
                username=os.getenv("PG_USER", "intake"),
                password=os.getenv("PG_PASSWORD", "intake"),
                host=os.getenv("PG_HOST", "localhost"),
                port=int(os.getenv("PG_PORT", "5432")),
                database=os.getenv("PG_DATABASE", "intake"),
            )
        return cls(
            url=url,
            pool_size=int(os.getenv("PG_POOL_SIZE", "5")),
            max_overflow=int(os.getenv("PG_MAX_OVERFLOW", "10")),
            echo=os.getenv("PG_ECHO", "").lower() in ("1", "true", "yes"),
        )

    @property
    def async_url(self) -> URL:
        return self.url.set(drivername=ASYNC_DRIVER)

    @property
    def sync_url(self) -> URL:
        return self.url.set(drivername=SYNC_DRIVER)
