"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads the question catalog and builds the engine once
  - CORS middleware
  - Global exception handlers (ValidationError → 400, NotFoundError → 404)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``intake-server`` console-script entry point.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from intake_engine.catalog import QuestionCatalog
from intake_engine.engine import IntakeEngine
from intake_engine.errors import IntakeError
from intake_engine.interfaces import ProgressStore
from intake_engine.store import MemoryProgressStore

from intake_server.config import ServerSettings, load_settings
from intake_server.errors import (
    generic_error_handler,
    http_error_handler,
    intake_error_handler,
    request_validation_handler,
)
from intake_server.routes import register_routes

logger = logging.getLogger(__name__)

def build_store(settings: ServerSettings) -> ProgressStore:
    """Return the progress store selected by ``settings.store``."""
    if settings.uses_sql:
        # Imported lazily so memory-only deployments never load the DB stack
        from intake_db.store import SqlProgressStore

        return SqlProgressStore()
    return MemoryProgressStore()


async def _evict_periodically(engine: IntakeEngine, ttl_days: int, interval: float) -> None:
    """Sweep idle sessions forever; cancelled at shutdown."""
    while True:
        await asyncio.sleep(interval)
        try:
            evicted = await engine.evict_idle(ttl_days)
        except Exception:
            logger.exception("Idle-session sweep failed")
            continue
        if evicted:
            logger.info("Idle-session sweep removed %d sessions", evicted)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Load and validate the YAML question catalog
      2. Build the progress store and ``IntakeEngine``
      3. Stash them on ``app.state`` for dependency injection
      4. Start the idle-session sweeper if a TTL is configured

    Shutdown:
      1. Stop the sweeper
      2. Dispose the database engine's connection pool (SQL store only)
    """
    settings: ServerSettings = app.state.settings

    # --- Load catalog ---
    catalog = QuestionCatalog(catalog_path=settings.catalog_path)
    catalog.load()

    # --- Build engine ---
    store = build_store(settings)
    engine = IntakeEngine(catalog, store)
    logger.info("IntakeEngine ready (store=%s)", settings.store)

    app.state.catalog = catalog
    app.state.engine = engine

    sweeper: asyncio.Task | None = None
    if settings.session_ttl_days > 0:
        sweeper = asyncio.create_task(
            _evict_periodically(
                engine, settings.session_ttl_days, settings.sweep_interval_seconds,
            )
        )
    app.state.sweeper = sweeper

    yield

    # --- Shutdown ---
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper

    if settings.uses_sql:
        from intake_db.engine import dispose_engine

        await dispose_engine()
        logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Intake API Server",
        description="REST API for the progressive multi-phase onboarding intake",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings so the lifespan handler and dependencies can read them
    app.state.settings = settings

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(IntakeError, intake_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe — catalog loaded and, for the SQL store, DB reachable."""
        total = app.state.catalog.total
        if not settings.uses_sql:
            return {"status": "ok", "totalQuestions": total}
        try:
            import sqlalchemy

            from intake_db.engine import get_engine

            async with get_engine().connect() as conn:
                await conn.execute(sqlalchemy.text("SELECT 1"))
            return {"status": "ok", "totalQuestions": total}
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": str(exc)}

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn intake_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``intake-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "intake_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
