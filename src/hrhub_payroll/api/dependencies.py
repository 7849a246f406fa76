"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hrhub_payroll.calculators import EmployeePayrollCalculator, RateSchedule, SeveranceCalculator
from hrhub_payroll.config import Settings
from hrhub_payroll.providers.sql import SqlPayrollDataProvider, SqlPayrollRunStore
from hrhub_payroll.services import PayrollBatchService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.session_factory


def get_rate_schedule(request: Request) -> RateSchedule:
    return request.app.state.rate_schedule


AppSettings = Annotated[Settings, Depends(get_app_settings)]
SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
Rates = Annotated[RateSchedule, Depends(get_rate_schedule)]


async def get_db_session(factory: SessionFactory) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_company_id(
    x_company_id: Annotated[str | None, Header()] = None
) -> UUID:
    """Extract company ID from header."""
    if not x_company_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Company-ID header is required",
        )
    try:
        return UUID(x_company_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Company-ID format",
        )


def get_data_provider(factory: SessionFactory) -> SqlPayrollDataProvider:
    return SqlPayrollDataProvider(factory)


DataProvider = Annotated[SqlPayrollDataProvider, Depends(get_data_provider)]


def get_batch_service(
    factory: SessionFactory,
    provider: DataProvider,
    rate_schedule: Rates,
    settings: AppSettings,
) -> PayrollBatchService:
    calculator = EmployeePayrollCalculator(
        compensation=provider,
        attendance=provider,
        allowances=provider,
        benefits=provider,
        rate_schedule=rate_schedule,
    )
    return PayrollBatchService(
        store=SqlPayrollRunStore(factory),
        population=provider,
        calculator=calculator,
        concurrency=settings.batch_concurrency,
    )


def get_severance_calculator(provider: DataProvider, rate_schedule: Rates) -> SeveranceCalculator:
    return SeveranceCalculator(
        directory=provider,
        payroll_history=provider,
        compensation=provider,
        allowances=provider,
        attendance=provider,
        rate_schedule=rate_schedule,
    )


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
CompanyId = Annotated[UUID, Depends(get_company_id)]
BatchService = Annotated[PayrollBatchService, Depends(get_batch_service)]
Severance = Annotated[SeveranceCalculator, Depends(get_severance_calculator)]
