"""Per-employee payroll calculator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from hrhub_payroll.calculators.overtime import OvertimeCalculator, classify_attendance
from hrhub_payroll.calculators.periods import format_year_month
from hrhub_payroll.calculators.rate_table import RateSchedule
from hrhub_payroll.calculators.tax_calculator import MONTHS_PER_YEAR, TaxCalculator, round_unit
from hrhub_payroll.calculators.types import (
    ZERO,
    AllowanceEntry,
    AllowanceType,
    BenefitCategory,
    BenefitEntry,
    PayDetail,
    PayrollDeductions,
    PayrollEarnings,
)

if TYPE_CHECKING:
    from hrhub_payroll.providers.base import (
        AllowanceProvider,
        AttendanceProvider,
        BenefitProvider,
        CompensationProvider,
    )


@dataclass
class AllowanceBuckets:
    """Running allowance totals by earnings bucket."""

    meal: Decimal = ZERO
    transport: Decimal = ZERO
    fixed_overtime: Decimal = ZERO
    other: Decimal = ZERO

    def add_allowance(self, entry: AllowanceEntry) -> None:
        if entry.allowance_type == AllowanceType.MEAL_ALLOWANCE:
            self.meal += entry.amount
        elif entry.allowance_type == AllowanceType.TRANSPORT_ALLOWANCE:
            self.transport += entry.amount
        elif entry.allowance_type == AllowanceType.OVERTIME_ALLOWANCE:
            self.fixed_overtime += entry.amount
        else:
            self.other += entry.amount

    def add_benefit(self, entry: BenefitEntry) -> None:
        # Added on top of explicit allowance records of the same kind
        if entry.category == BenefitCategory.MEAL:
            self.meal += entry.amount
        elif entry.category == BenefitCategory.TRANSPORT:
            self.transport += entry.amount
        else:
            self.other += entry.amount


class EmployeePayrollCalculator:
    """Builds one employee's PayDetail for a pay period.

    Calculation order (per employee):
    1) Monthly salary from the latest compensation effective by period end
    2) Hourly wage from monthly salary
    3) Overtime pay from in-period attendance
    4) Allowances for the period's month plus recurring monthly benefits
    5) Gross, statutory deductions, net

    The calculator only reads. Provider errors propagate to the caller:
    a zeroed pay record for a real employee is worse than a failed batch.
    """

    def __init__(
        self,
        compensation: CompensationProvider,
        attendance: AttendanceProvider,
        allowances: AllowanceProvider,
        benefits: BenefitProvider,
        rate_schedule: RateSchedule,
    ):
        self.compensation = compensation
        self.attendance = attendance
        self.allowances = allowances
        self.benefits = benefits
        self.rate_schedule = rate_schedule

    async def calculate(
        self,
        employee_id: UUID,
        period_start: date,
        period_end: date,
        company_id: UUID,
    ) -> PayDetail:
        """Calculate the pay detail of one employee for one period."""
        rate_table = self.rate_schedule.for_date(period_end)
        tax_calculator = TaxCalculator(rate_table)

        # 1) Base salary (no compensation record -> zero, not an error)
        comp = await self.compensation.latest_compensation(employee_id, company_id, period_end)
        annual_salary = comp.annual_salary if comp is not None else ZERO
        monthly_salary = round_unit(annual_salary / MONTHS_PER_YEAR)
        hourly_wage = tax_calculator.hourly_wage(monthly_salary)

        # 2) Overtime
        records = await self.attendance.attendance_in_range(
            employee_id, company_id, period_start, period_end
        )
        overtime = OvertimeCalculator(rate_table.overtime_multipliers).calculate(
            hourly_wage, classify_attendance(records)
        )

        # 3) Allowances
        buckets = AllowanceBuckets()
        year_month = format_year_month(period_start)
        for entry in await self.allowances.allowance_records(employee_id, company_id, year_month):
            buckets.add_allowance(entry)
        for benefit in await self.benefits.active_monthly_benefits(
            employee_id, company_id, period_start, period_end
        ):
            buckets.add_benefit(benefit)

        earnings = PayrollEarnings(
            base_salary=monthly_salary,
            fixed_overtime_allowance=buckets.fixed_overtime,
            meal_allowance=buckets.meal,
            transport_allowance=buckets.transport,
            overtime_pay=overtime.total_pay,
            other_earnings=buckets.other,
        )

        # 4) Deductions on gross
        deductions = PayrollDeductions.from_result(
            tax_calculator.total_deductions(earnings.total)
        )

        return PayDetail(
            earnings=earnings,
            deductions=deductions,
            overtime=overtime,
            rate_table_version=rate_table.effective_from,
        )
