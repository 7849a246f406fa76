"""Health check endpoints."""

import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from hrhub_payroll.api.dependencies import AppSettings, DbSession, Rates
from hrhub_payroll.calculators import RateTableNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Engine, database and rate-table status."""

    status: str
    timestamp: datetime
    database: str
    engine_version: str
    rate_tables: list[str]
    rate_table_in_force: str | None


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health_check(db: DbSession, settings: AppSettings, rates: Rates) -> HealthResponse:
    """Degraded when the database is unreachable or no rate table covers today."""
    database = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Database health check failed", exc_info=True)
        database = "unhealthy"

    try:
        in_force = rates.for_date(date.today()).effective_from.isoformat()
    except RateTableNotFoundError:
        in_force = None

    return HealthResponse(
        status="healthy" if database == "healthy" and in_force else "degraded",
        timestamp=datetime.now(timezone.utc),
        database=database,
        engine_version=settings.engine_version,
        rate_tables=[v.isoformat() for v in rates.versions],
        rate_table_in_force=in_force,
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check() -> dict[str, str]:
    return {"status": "ready"}


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
