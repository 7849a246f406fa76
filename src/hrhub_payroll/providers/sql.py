"""SQLAlchemy-backed providers.

Every read opens its own short-lived session from the factory: an
AsyncSession must not be shared by concurrently running calculations.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hrhub_payroll.calculators.types import (
    ZERO,
    AllowanceEntry,
    AttendanceRecord,
    BenefitEntry,
    CompensationRecord,
    EmployeeProfile,
    PaidPayComponents,
)
from hrhub_payroll.models import (
    AllowanceRecord,
    Attendance,
    BenefitPolicy,
    CompensationHistory,
    Employee,
    EmployeeBenefit,
    PayrollItem,
    PayrollRun,
)
from hrhub_payroll.providers.base import (
    EmployeeNotFoundError,
    EmployeePayResult,
    PayrollRunNotFoundError,
    PayrollRunSnapshot,
    RunTotals,
)
from hrhub_payroll.services.commit_service import CommitService
from hrhub_payroll.services.state_machine import InvalidTransitionError, PayrollRunStatus


class SqlPayrollDataProvider:
    """Implements every read provider against the HR tables."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def latest_compensation(
        self, employee_id: UUID, company_id: UUID, as_of: date
    ) -> CompensationRecord | None:
        async with self.session_factory() as session:
            row = (
                await session.execute(
                    select(
                        CompensationHistory.annual_base_salary,
                        CompensationHistory.effective_date,
                    )
                    .where(
                        CompensationHistory.employee_id == employee_id,
                        CompensationHistory.company_id == company_id,
                        CompensationHistory.effective_date <= as_of,
                    )
                    .order_by(CompensationHistory.effective_date.desc())
                    .limit(1)
                )
            ).first()
        if row is None:
            return None
        return CompensationRecord(annual_salary=Decimal(row[0]), effective_date=row[1])

    async def attendance_in_range(
        self, employee_id: UUID, company_id: UUID, start: date, end: date
    ) -> Sequence[AttendanceRecord]:
        async with self.session_factory() as session:
            rows = (
                await session.execute(
                    select(Attendance.overtime_minutes, Attendance.work_type)
                    .where(
                        Attendance.employee_id == employee_id,
                        Attendance.company_id == company_id,
                        Attendance.work_date >= start,
                        Attendance.work_date <= end,
                        Attendance.overtime_minutes > 0,
                    )
                    .order_by(Attendance.work_date)
                )
            ).all()
        return [AttendanceRecord(overtime_minutes=m, work_type=t) for m, t in rows]

    async def allowance_records(
        self, employee_id: UUID, company_id: UUID, year_month: str
    ) -> Sequence[AllowanceEntry]:
        async with self.session_factory() as session:
            rows = (
                await session.execute(
                    select(AllowanceRecord.allowance_type, AllowanceRecord.amount).where(
                        AllowanceRecord.employee_id == employee_id,
                        AllowanceRecord.company_id == company_id,
                        AllowanceRecord.year_month == year_month,
                    )
                )
            ).all()
        return [AllowanceEntry(allowance_type=t, amount=Decimal(a)) for t, a in rows]

    async def active_monthly_benefits(
        self, employee_id: UUID, company_id: UUID, period_start: date, period_end: date
    ) -> Sequence[BenefitEntry]:
        async with self.session_factory() as session:
            rows = (
                await session.execute(
                    select(BenefitPolicy.category, BenefitPolicy.amount)
                    .join(EmployeeBenefit, EmployeeBenefit.policy_id == BenefitPolicy.policy_id)
                    .where(
                        EmployeeBenefit.employee_id == employee_id,
                        EmployeeBenefit.status == "ACTIVE",
                        BenefitPolicy.company_id == company_id,
                        BenefitPolicy.frequency == "MONTHLY",
                        BenefitPolicy.is_active.is_(True),
                        BenefitPolicy.effective_from <= period_end,
                        or_(
                            BenefitPolicy.effective_to.is_(None),
                            BenefitPolicy.effective_to >= period_start,
                        ),
                    )
                )
            ).all()
        return [
            BenefitEntry(category=c, amount=Decimal(a) if a is not None else ZERO)
            for c, a in rows
        ]

    async def active_employees(
        self, company_id: UUID, hired_on_or_before: date
    ) -> Sequence[UUID]:
        async with self.session_factory() as session:
            result = await session.scalars(
                select(Employee.employee_id)
                .where(
                    Employee.company_id == company_id,
                    Employee.status == "ACTIVE",
                    Employee.hire_date <= hired_on_or_before,
                )
                .order_by(Employee.hire_date, Employee.employee_no)
            )
            return list(result.all())

    async def get_employee(self, employee_id: UUID) -> EmployeeProfile:
        async with self.session_factory() as session:
            employee = await session.get(Employee, employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        return EmployeeProfile(
            employee_id=employee.employee_id,
            company_id=employee.company_id,
            name=employee.name,
            hire_date=employee.hire_date,
        )

    async def paid_item(
        self, employee_id: UUID, company_id: UUID, year_month: str
    ) -> PaidPayComponents | None:
        async with self.session_factory() as session:
            row = (
                await session.execute(
                    select(
                        PayrollItem.base_salary,
                        PayrollItem.overtime_pay,
                        PayrollItem.allowances,
                    )
                    .join(PayrollRun, PayrollRun.run_id == PayrollItem.run_id)
                    .where(
                        PayrollItem.employee_id == employee_id,
                        PayrollRun.company_id == company_id,
                        PayrollRun.year_month == year_month,
                        PayrollRun.status == PayrollRunStatus.PAID.value,
                    )
                    .order_by(PayrollRun.period_end.desc())
                    .limit(1)
                )
            ).first()
        if row is None:
            return None
        return PaidPayComponents(
            base_salary=Decimal(row[0]),
            overtime_pay=Decimal(row[1]),
            allowances=Decimal(row[2]),
        )


class SqlPayrollRunStore:
    """Run status transitions and result persistence.

    Status changes are conditional updates on the expected current status,
    so two concurrent calculations of the same run cannot both proceed.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_run(self, run_id: UUID) -> PayrollRunSnapshot:
        async with self.session_factory() as session:
            run = await session.get(PayrollRun, run_id)
        if run is None:
            raise PayrollRunNotFoundError(run_id)
        return PayrollRunSnapshot(
            run_id=run.run_id,
            company_id=run.company_id,
            year_month=run.year_month,
            period_start=run.period_start,
            period_end=run.period_end,
            currency=run.currency,
            status=run.status,
        )

    async def _transition(self, run_id: UUID, from_status: str, to_status: str) -> None:
        async with self.session_factory.begin() as session:
            result = await session.execute(
                update(PayrollRun)
                .where(PayrollRun.run_id == run_id, PayrollRun.status == from_status)
                .values(status=to_status)
            )
            if result.rowcount == 0:
                current = await session.scalar(
                    select(PayrollRun.status).where(PayrollRun.run_id == run_id)
                )
                if current is None:
                    raise PayrollRunNotFoundError(run_id)
                raise InvalidTransitionError(current, to_status)

    async def mark_calculating(self, run_id: UUID) -> None:
        await self._transition(
            run_id, PayrollRunStatus.DRAFT.value, PayrollRunStatus.CALCULATING.value
        )

    async def revert_to_draft(self, run_id: UUID) -> None:
        await self._transition(
            run_id, PayrollRunStatus.CALCULATING.value, PayrollRunStatus.DRAFT.value
        )

    async def commit_run(
        self,
        run_id: UUID,
        results: Sequence[EmployeePayResult],
        totals: RunTotals,
        currency: str,
    ) -> None:
        async with self.session_factory.begin() as session:
            await CommitService(session).commit_run(run_id, results, totals, currency)
