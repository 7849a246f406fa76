"""Pytest fixtures for payroll engine tests."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import UUID, uuid4

import pytest

from hrhub_payroll.calculators import EmployeePayrollCalculator, RateSchedule, SeveranceCalculator
from hrhub_payroll.calculators.rate_table import RateTable
from hrhub_payroll.calculators.types import (
    AllowanceEntry,
    AttendanceRecord,
    BenefitEntry,
    CompensationRecord,
    EmployeeProfile,
    PaidPayComponents,
)
from hrhub_payroll.providers import (
    EmployeeNotFoundError,
    EmployeePayResult,
    PayrollRunNotFoundError,
    PayrollRunSnapshot,
    RunTotals,
)
from hrhub_payroll.services import InvalidTransitionError, PayrollRunStatus


class InMemoryHrData:
    """Implements every read provider from in-memory records."""

    def __init__(self, company_id: UUID):
        self.company_id = company_id
        self.employees: dict[UUID, EmployeeProfile] = {}
        self.compensation: dict[UUID, list[CompensationRecord]] = defaultdict(list)
        self.attendance: dict[UUID, list[tuple[date, AttendanceRecord]]] = defaultdict(list)
        self.allowances: dict[tuple[UUID, str], list[AllowanceEntry]] = defaultdict(list)
        self.benefits: dict[UUID, list[BenefitEntry]] = defaultdict(list)
        self.paid: dict[tuple[UUID, str], PaidPayComponents] = {}
        self.failing_attendance: set[UUID] = set()

    def add_employee(
        self,
        name: str,
        hire_date: date,
        annual_salary: Decimal | None = None,
        effective_date: date | None = None,
    ) -> UUID:
        employee_id = uuid4()
        self.employees[employee_id] = EmployeeProfile(
            employee_id=employee_id,
            company_id=self.company_id,
            name=name,
            hire_date=hire_date,
        )
        if annual_salary is not None:
            self.add_compensation(employee_id, annual_salary, effective_date or hire_date)
        return employee_id

    def add_compensation(self, employee_id: UUID, annual_salary: Decimal, effective: date) -> None:
        self.compensation[employee_id].append(CompensationRecord(annual_salary, effective))

    def add_overtime(self, employee_id: UUID, work_date: date, minutes: int, work_type: str) -> None:
        self.attendance[employee_id].append((work_date, AttendanceRecord(minutes, work_type)))

    # Providers

    async def latest_compensation(
        self, employee_id: UUID, company_id: UUID, as_of: date
    ) -> CompensationRecord | None:
        candidates = [c for c in self.compensation[employee_id] if c.effective_date <= as_of]
        return max(candidates, key=lambda c: c.effective_date, default=None)

    async def attendance_in_range(
        self, employee_id: UUID, company_id: UUID, start: date, end: date
    ) -> Sequence[AttendanceRecord]:
        if employee_id in self.failing_attendance:
            raise ConnectionError("attendance service unavailable")
        return [
            record
            for work_date, record in self.attendance[employee_id]
            if start <= work_date <= end and record.overtime_minutes > 0
        ]

    async def allowance_records(
        self, employee_id: UUID, company_id: UUID, year_month: str
    ) -> Sequence[AllowanceEntry]:
        return list(self.allowances[(employee_id, year_month)])

    async def active_monthly_benefits(
        self, employee_id: UUID, company_id: UUID, period_start: date, period_end: date
    ) -> Sequence[BenefitEntry]:
        return list(self.benefits[employee_id])

    async def active_employees(self, company_id: UUID, hired_on_or_before: date) -> Sequence[UUID]:
        eligible = [
            e for e in self.employees.values()
            if e.company_id == company_id and e.hire_date <= hired_on_or_before
        ]
        return [e.employee_id for e in sorted(eligible, key=lambda e: (e.hire_date, e.name))]

    async def get_employee(self, employee_id: UUID) -> EmployeeProfile:
        try:
            return self.employees[employee_id]
        except KeyError:
            raise EmployeeNotFoundError(employee_id) from None

    async def paid_item(
        self, employee_id: UUID, company_id: UUID, year_month: str
    ) -> PaidPayComponents | None:
        return self.paid.get((employee_id, year_month))


class InMemoryRunStore:
    """PayrollRunStore keeping runs and committed items in dicts."""

    def __init__(self):
        self.runs: dict[UUID, PayrollRunSnapshot] = {}
        self.items: dict[UUID, dict[UUID, EmployeePayResult]] = {}
        self.totals: dict[UUID, RunTotals] = {}
        self.fail_on_commit = False
        self.status_history: list[tuple[UUID, str]] = []

    def add_run(self, company_id: UUID, period_start: date, period_end: date) -> UUID:
        run_id = uuid4()
        self.runs[run_id] = PayrollRunSnapshot(
            run_id=run_id,
            company_id=company_id,
            year_month=f"{period_start:%Y-%m}",
            period_start=period_start,
            period_end=period_end,
            currency="KRW",
            status=PayrollRunStatus.DRAFT.value,
        )
        return run_id

    def status(self, run_id: UUID) -> str:
        return self.runs[run_id].status

    def set_status(self, run_id: UUID, status: str) -> None:
        self.runs[run_id] = replace(self.runs[run_id], status=status)
        self.status_history.append((run_id, status))

    async def get_run(self, run_id: UUID) -> PayrollRunSnapshot:
        if run_id not in self.runs:
            raise PayrollRunNotFoundError(run_id)
        return self.runs[run_id]

    async def mark_calculating(self, run_id: UUID) -> None:
        current = self.status(run_id)
        if current != PayrollRunStatus.DRAFT.value:
            raise InvalidTransitionError(current, PayrollRunStatus.CALCULATING.value)
        self.set_status(run_id, PayrollRunStatus.CALCULATING.value)

    async def revert_to_draft(self, run_id: UUID) -> None:
        self.set_status(run_id, PayrollRunStatus.DRAFT.value)

    async def commit_run(
        self,
        run_id: UUID,
        results: Sequence[EmployeePayResult],
        totals: RunTotals,
        currency: str,
    ) -> None:
        if self.fail_on_commit:
            raise RuntimeError("connection lost during commit")
        items = self.items.setdefault(run_id, {})
        current = {r.employee_id for r in results}
        for employee_id in set(items) - current:
            del items[employee_id]
        for result in results:
            items[result.employee_id] = result
        self.totals[run_id] = totals
        self.set_status(run_id, PayrollRunStatus.REVIEW.value)


@pytest.fixture(scope="session")
def rate_schedule() -> RateSchedule:
    """Packaged rate tables."""
    return RateSchedule.packaged()


@pytest.fixture(scope="session")
def rate_table(rate_schedule: RateSchedule) -> RateTable:
    return rate_schedule.for_date(date(2025, 6, 30))


@pytest.fixture
def company_id() -> UUID:
    return uuid4()


@pytest.fixture
def hr_data(company_id: UUID) -> InMemoryHrData:
    return InMemoryHrData(company_id)


@pytest.fixture
def run_store() -> InMemoryRunStore:
    return InMemoryRunStore()


@pytest.fixture
def employee_calculator(
    hr_data: InMemoryHrData, rate_schedule: RateSchedule
) -> EmployeePayrollCalculator:
    return EmployeePayrollCalculator(
        compensation=hr_data,
        attendance=hr_data,
        allowances=hr_data,
        benefits=hr_data,
        rate_schedule=rate_schedule,
    )


@pytest.fixture
def severance_calculator(
    hr_data: InMemoryHrData, rate_schedule: RateSchedule
) -> SeveranceCalculator:
    return SeveranceCalculator(
        directory=hr_data,
        payroll_history=hr_data,
        compensation=hr_data,
        allowances=hr_data,
        attendance=hr_data,
        rate_schedule=rate_schedule,
    )
