"""Provider protocols and boundary types.

Calculators and the batch orchestrator depend only on these protocols, so
they can be driven by the SQL providers in production and by in-memory
fakes in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol, Sequence
from uuid import UUID

from hrhub_payroll.calculators.types import (
    ZERO,
    AllowanceEntry,
    AttendanceRecord,
    BenefitEntry,
    CompensationRecord,
    EmployeeProfile,
    PaidPayComponents,
    PayDetail,
)


class PayrollRunNotFoundError(Exception):
    """Raised when a payroll run does not exist (or belongs to another company)."""

    def __init__(self, run_id: UUID):
        self.run_id = run_id
        super().__init__(f"Payroll run {run_id} not found")


class EmployeeNotFoundError(Exception):
    """Raised when an employee does not exist."""

    def __init__(self, employee_id: UUID):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} not found")


# ===== Boundary types =====


@dataclass(frozen=True)
class PayrollRunSnapshot:
    """The run fields the batch orchestrator needs."""

    run_id: UUID
    company_id: UUID
    year_month: str
    period_start: date
    period_end: date
    currency: str
    status: str


@dataclass(frozen=True)
class EmployeePayResult:
    """Calculated pay detail of one employee in a run."""

    employee_id: UUID
    detail: PayDetail


@dataclass
class RunTotals:
    """Run-level sums of gross, deductions and net."""

    total_gross: Decimal = ZERO
    total_deductions: Decimal = ZERO
    total_net: Decimal = ZERO
    headcount: int = 0

    def add(self, detail: PayDetail) -> None:
        self.total_gross += detail.gross_pay
        self.total_deductions += detail.total_deductions
        self.total_net += detail.net_pay
        self.headcount += 1


# ===== Read providers =====


class CompensationProvider(Protocol):
    async def latest_compensation(
        self, employee_id: UUID, company_id: UUID, as_of: date
    ) -> CompensationRecord | None:
        """Most recent compensation with effective_date <= as_of, or None."""
        ...


class AttendanceProvider(Protocol):
    async def attendance_in_range(
        self, employee_id: UUID, company_id: UUID, start: date, end: date
    ) -> Sequence[AttendanceRecord]:
        """Attendance rows with positive overtime in [start, end]."""
        ...


class AllowanceProvider(Protocol):
    async def allowance_records(
        self, employee_id: UUID, company_id: UUID, year_month: str
    ) -> Sequence[AllowanceEntry]:
        ...


class BenefitProvider(Protocol):
    async def active_monthly_benefits(
        self, employee_id: UUID, company_id: UUID, period_start: date, period_end: date
    ) -> Sequence[BenefitEntry]:
        """Active MONTHLY benefit enrollments whose policy overlaps the period."""
        ...


class EmployeePopulationProvider(Protocol):
    async def active_employees(
        self, company_id: UUID, hired_on_or_before: date
    ) -> Sequence[UUID]:
        """ACTIVE employees hired on or before the date, in a stable order."""
        ...


class EmployeeDirectory(Protocol):
    async def get_employee(self, employee_id: UUID) -> EmployeeProfile:
        """Raises EmployeeNotFoundError when the employee does not exist."""
        ...


class PayrollHistoryProvider(Protocol):
    async def paid_item(
        self, employee_id: UUID, company_id: UUID, year_month: str
    ) -> PaidPayComponents | None:
        """Pay components of the employee's item in a PAID run for the month."""
        ...


# ===== Run persistence =====


class PayrollRunStore(Protocol):
    """Run status transitions and atomic result persistence."""

    async def get_run(self, run_id: UUID) -> PayrollRunSnapshot:
        ...

    async def mark_calculating(self, run_id: UUID) -> None:
        """Move DRAFT -> CALCULATING; raise InvalidTransitionError otherwise."""
        ...

    async def revert_to_draft(self, run_id: UUID) -> None:
        """Move CALCULATING -> DRAFT."""
        ...

    async def commit_run(
        self,
        run_id: UUID,
        results: Sequence[EmployeePayResult],
        totals: RunTotals,
        currency: str,
    ) -> None:
        """Upsert every item and move CALCULATING -> REVIEW in one transaction."""
        ...
