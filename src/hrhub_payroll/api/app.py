"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hrhub_payroll.api.errors import register_exception_handlers
from hrhub_payroll.api.routes import health_router, payroll_runs_router, severance_router
from hrhub_payroll.calculators import RateSchedule, load_rate_schedule
from hrhub_payroll.config import Settings, get_settings
from hrhub_payroll.database import dispose_db, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings: Settings = app.state.settings
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Startup
    owns_engine = app.state.session_factory is None
    if owns_engine:
        _, app.state.session_factory = init_db()
    logger.info(
        "Payroll engine %s started; rate tables: %s",
        settings.engine_version,
        ", ".join(v.isoformat() for v in app.state.rate_schedule.versions),
    )
    yield
    # Shutdown
    if owns_engine:
        await dispose_db()
        app.state.session_factory = None


def create_app(
    settings: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    rate_schedule: RateSchedule | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Without a session factory the engine is created from ``DATABASE_URL``
    at startup and disposed at shutdown.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="HR Hub Payroll API",
        description="Payroll calculation engine: batch runs, review, adjustments and severance",
        version=settings.engine_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.rate_schedule = rate_schedule or load_rate_schedule(settings.rate_table_dir)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(payroll_runs_router, prefix="/api/v1")
    app.include_router(severance_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
