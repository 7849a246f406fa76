"""Statutory severance (retirement) pay.

Severance = average monthly pay over the three calendar months before
termination, prorated by tenure: ``round(average * tenure_days / 365)``.
Months that have a PAID payroll item use its figures; other months are
estimated from compensation, allowances and attendance.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from hrhub_payroll.calculators.overtime import MINUTES_PER_HOUR
from hrhub_payroll.calculators.periods import format_year_month, month_bounds, months_before
from hrhub_payroll.calculators.rate_table import RateSchedule, RateTable, RateTableNotFoundError
from hrhub_payroll.calculators.tax_calculator import MONTHS_PER_YEAR, TaxCalculator, round_unit
from hrhub_payroll.calculators.types import (
    ZERO,
    EmployeeProfile,
    SeveranceDetail,
    SeveranceMonth,
)

if TYPE_CHECKING:
    from hrhub_payroll.providers.base import (
        AllowanceProvider,
        AttendanceProvider,
        CompensationProvider,
        EmployeeDirectory,
        PayrollHistoryProvider,
    )

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = Decimal("365")
DEFAULT_ELIGIBILITY_DAYS = 365
WINDOW_MONTHS = 3
SOURCE_PAYROLL = "PAYROLL"
SOURCE_ESTIMATE = "ESTIMATE"


class SeveranceCalculator:
    """Severance for one employee and termination date. Read-only."""

    def __init__(
        self,
        directory: EmployeeDirectory,
        payroll_history: PayrollHistoryProvider,
        compensation: CompensationProvider,
        allowances: AllowanceProvider,
        attendance: AttendanceProvider,
        rate_schedule: RateSchedule,
    ):
        self.directory = directory
        self.payroll_history = payroll_history
        self.compensation = compensation
        self.allowances = allowances
        self.attendance = attendance
        self.rate_schedule = rate_schedule

    async def calculate(self, employee_id: UUID, termination_date: date) -> SeveranceDetail:
        employee = await self.directory.get_employee(employee_id)
        try:
            rate_table = self.rate_schedule.for_date(termination_date)
        except RateTableNotFoundError:
            # Eligibility is still decidable without a table
            rate_table = None

        tenure_days = (termination_date - employee.hire_date).days
        tenure_years = (Decimal(tenure_days) / DAYS_PER_YEAR).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        eligibility_days = (
            rate_table.severance.eligibility_days if rate_table else DEFAULT_ELIGIBILITY_DAYS
        )
        is_eligible = tenure_days >= eligibility_days

        if not is_eligible:
            return SeveranceDetail(
                employee_id=employee.employee_id,
                employee_name=employee.name,
                hire_date=employee.hire_date,
                termination_date=termination_date,
                tenure_days=tenure_days,
                tenure_years=tenure_years,
                is_eligible=False,
            )

        if rate_table is None:
            raise RateTableNotFoundError(termination_date)

        months = []
        for offset in range(1, WINDOW_MONTHS + 1):
            year, month = months_before(termination_date, offset)
            months.append(await self._month_pay(employee, year, month, rate_table))

        total = sum((m.total_pay for m in months), ZERO)
        average_monthly_pay = round_unit(total / WINDOW_MONTHS)
        severance_pay = round_unit(average_monthly_pay * Decimal(tenure_days) / DAYS_PER_YEAR)

        tax = TaxCalculator(rate_table).income_tax(severance_pay)

        return SeveranceDetail(
            employee_id=employee.employee_id,
            employee_name=employee.name,
            hire_date=employee.hire_date,
            termination_date=termination_date,
            tenure_days=tenure_days,
            tenure_years=tenure_years,
            is_eligible=True,
            recent_three_months=months,
            average_monthly_pay=average_monthly_pay,
            severance_pay=severance_pay,
            income_tax=tax.income_tax,
            local_income_tax=tax.local_income_tax,
        )

    async def _month_pay(
        self,
        employee: EmployeeProfile,
        year: int,
        month: int,
        rate_table: RateTable,
    ) -> SeveranceMonth:
        month_start, month_end = month_bounds(year, month)
        year_month = format_year_month(month_start)

        paid = await self.payroll_history.paid_item(
            employee.employee_id, employee.company_id, year_month
        )
        if paid is not None:
            return SeveranceMonth(
                year_month=year_month,
                base_salary=paid.base_salary,
                overtime_pay=paid.overtime_pay,
                allowances=paid.allowances,
                source=SOURCE_PAYROLL,
            )

        logger.debug(
            "No paid payroll for employee %s in %s; estimating",
            employee.employee_id,
            year_month,
        )

        comp = await self.compensation.latest_compensation(
            employee.employee_id, employee.company_id, month_end
        )
        base_salary = round_unit(comp.annual_salary / MONTHS_PER_YEAR) if comp else ZERO

        entries = await self.allowances.allowance_records(
            employee.employee_id, employee.company_id, year_month
        )
        allowances = sum((entry.amount for entry in entries), ZERO)

        records = await self.attendance.attendance_in_range(
            employee.employee_id, employee.company_id, month_start, month_end
        )
        overtime_minutes = sum(max(r.overtime_minutes or 0, 0) for r in records)
        hourly_wage = TaxCalculator(rate_table).hourly_wage(base_salary)
        overtime_pay = round_unit(
            hourly_wage
            * rate_table.severance.fallback_overtime_multiplier
            * Decimal(overtime_minutes)
            / MINUTES_PER_HOUR
        )

        return SeveranceMonth(
            year_month=year_month,
            base_salary=base_salary,
            overtime_pay=overtime_pay,
            allowances=allowances,
            source=SOURCE_ESTIMATE,
        )
