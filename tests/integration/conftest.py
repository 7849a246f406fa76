"""Integration test fixtures with a real (SQLite) database."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from hrhub_payroll.api.app import create_app
from hrhub_payroll.calculators import EmployeePayrollCalculator, RateSchedule
from hrhub_payroll.config import Settings
from hrhub_payroll.database import get_engine, make_session_factory
from hrhub_payroll.models import (
    AllowanceRecord,
    Attendance,
    Base,
    BenefitPolicy,
    CompensationHistory,
    Employee,
    EmployeeBenefit,
    PayrollItem,
    PayrollRun,
)
from hrhub_payroll.providers.sql import SqlPayrollDataProvider, SqlPayrollRunStore
from hrhub_payroll.services import PayrollBatchService

PERIOD_START = date(2025, 3, 1)
PERIOD_END = date(2025, 3, 31)


@dataclass
class SeededCompany:
    """Ids of the seeded company data."""

    company_id: UUID
    run_id: UUID
    employees: dict[str, UUID] = field(default_factory=dict)

    @property
    def active(self) -> list[UUID]:
        """Employees expected in the March run, in population order."""
        return [self.employees[no] for no in ("E001", "E002", "E003", "E004", "E005")]


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine on a temporary SQLite file."""
    engine = get_engine(f"sqlite+aiosqlite:///{tmp_path / 'payroll.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest.fixture
def provider(session_factory) -> SqlPayrollDataProvider:
    return SqlPayrollDataProvider(session_factory)


@pytest.fixture
def store(session_factory) -> SqlPayrollRunStore:
    return SqlPayrollRunStore(session_factory)


def make_batch(
    provider: SqlPayrollDataProvider,
    store: SqlPayrollRunStore,
    rate_schedule: RateSchedule,
    concurrency: int = 2,
) -> PayrollBatchService:
    calculator = EmployeePayrollCalculator(
        compensation=provider,
        attendance=provider,
        allowances=provider,
        benefits=provider,
        rate_schedule=rate_schedule,
    )
    return PayrollBatchService(store, provider, calculator, concurrency=concurrency)


@pytest.fixture
def batch(provider, store, rate_schedule) -> PayrollBatchService:
    return make_batch(provider, store, rate_schedule)


async def set_run_status(session_factory, run_id: UUID, status: str) -> None:
    async with session_factory.begin() as session:
        await session.execute(
            update(PayrollRun).where(PayrollRun.run_id == run_id).values(status=status)
        )


@pytest.fixture
async def seeded(session_factory) -> SeededCompany:
    """One company with five payable employees and a DRAFT March run.

    - E001: 36M/yr, 2h weekday + 1h holiday overtime, 100,000 meal allowance
    - E002: 42M/yr, 50,000 monthly meal benefit (plus excluded benefits)
    - E003: 30M/yr, 70h weekday overtime
    - E004: 24M/yr
    - E005: 30M/yr, hired during the period
    - E006 resigned and E007 hired after the period are excluded
    """
    company_id = uuid4()
    seeded = SeededCompany(company_id=company_id, run_id=uuid4())

    staff = [
        ("E001", "Kim Minji", date(2020, 1, 1), "ACTIVE", "36000000"),
        ("E002", "Lee Junho", date(2021, 6, 1), "ACTIVE", "42000000"),
        ("E003", "Park Seoyeon", date(2022, 3, 1), "ACTIVE", "30000000"),
        ("E004", "Choi Dohyun", date(2023, 1, 1), "ACTIVE", "24000000"),
        ("E005", "Jung Hayoon", date(2025, 3, 3), "ACTIVE", "30000000"),
        ("E006", "Kang Jiwoo", date(2019, 5, 1), "RESIGNED", "40000000"),
        ("E007", "Yoon Seojun", date(2025, 4, 1), "ACTIVE", "30000000"),
    ]

    async with session_factory.begin() as session:
        for employee_no, name, hire_date, status, salary in staff:
            employee = Employee(
                company_id=company_id,
                employee_no=employee_no,
                name=name,
                status=status,
                hire_date=hire_date,
            )
            session.add(employee)
            await session.flush()
            seeded.employees[employee_no] = employee.employee_id
            session.add(
                CompensationHistory(
                    employee_id=employee.employee_id,
                    company_id=company_id,
                    effective_date=hire_date,
                    annual_base_salary=Decimal(salary),
                    change_reason="HIRE",
                )
            )

        e = seeded.employees

        # Raise effective after the period must be ignored
        session.add(
            CompensationHistory(
                employee_id=e["E001"],
                company_id=company_id,
                effective_date=date(2025, 4, 1),
                annual_base_salary=Decimal("48000000"),
                change_reason="PROMOTION",
            )
        )

        session.add_all(
            [
                Attendance(
                    employee_id=e["E001"],
                    company_id=company_id,
                    work_date=date(2025, 3, 10),
                    work_type="OVERTIME",
                    overtime_minutes=120,
                ),
                Attendance(
                    employee_id=e["E001"],
                    company_id=company_id,
                    work_date=date(2025, 3, 1),
                    work_type="HOLIDAY",
                    overtime_minutes=60,
                ),
                Attendance(
                    employee_id=e["E001"],
                    company_id=company_id,
                    work_date=date(2025, 3, 11),
                    work_type="NORMAL",
                    overtime_minutes=0,
                ),
                Attendance(
                    employee_id=e["E001"],
                    company_id=company_id,
                    work_date=date(2025, 2, 27),
                    work_type="OVERTIME",
                    overtime_minutes=300,
                ),
            ]
        )
        for day in range(7):
            session.add(
                Attendance(
                    employee_id=e["E003"],
                    company_id=company_id,
                    work_date=date(2025, 3, 3) + timedelta(days=day),
                    work_type="OVERTIME",
                    overtime_minutes=600,
                )
            )

        session.add(
            AllowanceRecord(
                employee_id=e["E001"],
                company_id=company_id,
                year_month="2025-03",
                allowance_type="MEAL_ALLOWANCE",
                amount=Decimal("100000"),
            )
        )

        meal = BenefitPolicy(
            company_id=company_id,
            name="Meal support",
            category="MEAL",
            frequency="MONTHLY",
            amount=Decimal("50000"),
            effective_from=date(2024, 1, 1),
        )
        annual = BenefitPolicy(
            company_id=company_id,
            name="Health check",
            category="HEALTH",
            frequency="ANNUAL",
            amount=Decimal("300000"),
            effective_from=date(2024, 1, 1),
        )
        expired = BenefitPolicy(
            company_id=company_id,
            name="Old transport support",
            category="TRANSPORT",
            frequency="MONTHLY",
            amount=Decimal("70000"),
            effective_from=date(2023, 1, 1),
            effective_to=date(2025, 1, 31),
        )
        session.add_all([meal, annual, expired])
        await session.flush()
        session.add_all(
            [
                EmployeeBenefit(employee_id=e["E002"], policy_id=policy.policy_id)
                for policy in (meal, annual, expired)
            ]
        )

        session.add(
            PayrollRun(
                run_id=seeded.run_id,
                company_id=company_id,
                name="March 2025 payroll",
                run_type="MONTHLY",
                year_month="2025-03",
                period_start=PERIOD_START,
                period_end=PERIOD_END,
                pay_date=date(2025, 4, 10),
                currency="KRW",
                status="DRAFT",
            )
        )

    return seeded


@pytest.fixture
def app_settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite://",
        engine_version="test",
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="INFO",
        batch_concurrency=2,
        currency="KRW",
        rate_table_dir=None,
    )


@pytest.fixture
def app(app_settings, session_factory, rate_schedule):
    return create_app(
        settings=app_settings,
        session_factory=session_factory,
        rate_schedule=rate_schedule,
    )


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def add_paid_run(
    session_factory,
    company_id: UUID,
    year_month: str,
    period_start: date,
    period_end: date,
    items: dict[UUID, dict[str, Decimal]],
) -> UUID:
    """Insert a PAID run holding the given item amounts."""
    run_id = uuid4()
    async with session_factory.begin() as session:
        session.add(
            PayrollRun(
                run_id=run_id,
                company_id=company_id,
                name=f"{year_month} payroll",
                run_type="MONTHLY",
                year_month=year_month,
                period_start=period_start,
                period_end=period_end,
                status="PAID",
            )
        )
        await session.flush()
        for employee_id, amounts in items.items():
            session.add(PayrollItem(run_id=run_id, employee_id=employee_id, **amounts))
    return run_id


class FlakyDataProvider(SqlPayrollDataProvider):
    """SQL provider whose attendance read fails for chosen employees."""

    def __init__(self, session_factory, failing: set[UUID]):
        super().__init__(session_factory)
        self.failing = failing

    async def attendance_in_range(self, employee_id, company_id, start, end):
        if employee_id in self.failing:
            raise ConnectionError("attendance service unavailable")
        return await super().attendance_in_range(employee_id, company_id, start, end)


async def load_run(session_factory, run_id: UUID) -> PayrollRun:
    """Fresh copy of a run with its items."""
    async with session_factory() as session:
        return (
            await session.execute(
                select(PayrollRun)
                .where(PayrollRun.run_id == run_id)
                .options(selectinload(PayrollRun.items))
            )
        ).scalar_one()
