"""Type definitions for the calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

ZERO = Decimal("0")


class WorkType(str, Enum):
    """Attendance work-type tags."""

    NORMAL = "NORMAL"
    OVERTIME = "OVERTIME"
    HOLIDAY = "HOLIDAY"
    NIGHT = "NIGHT"
    REMOTE = "REMOTE"
    BUSINESS_TRIP = "BUSINESS_TRIP"


class AllowanceType(str, Enum):
    """Allowance record types with a dedicated earnings bucket."""

    MEAL_ALLOWANCE = "MEAL_ALLOWANCE"
    TRANSPORT_ALLOWANCE = "TRANSPORT_ALLOWANCE"
    OVERTIME_ALLOWANCE = "OVERTIME_ALLOWANCE"


class BenefitCategory(str, Enum):
    """Benefit policy categories with a dedicated earnings bucket."""

    MEAL = "MEAL"
    TRANSPORT = "TRANSPORT"


@dataclass(frozen=True)
class TaxBracket:
    """Progressive income-tax bracket in quick-deduction form.

    For taxable income above ``min_amount``:
    ``tax = taxable * rate - quick_deduction``.
    """

    min_amount: Decimal
    rate: Decimal
    quick_deduction: Decimal = ZERO


@dataclass(frozen=True)
class EarnedIncomeBand:
    """One band of the earned-income deduction curve.

    Applies when annual gross <= ``up_to`` (``None`` = open-ended):
    ``deduction = base + (annual_gross - floor) * rate`` where ``floor`` is the
    previous band's ``up_to``.
    """

    up_to: Decimal | None
    base: Decimal
    rate: Decimal


# ===== Provider records =====


@dataclass(frozen=True)
class CompensationRecord:
    """Effective-dated annual salary."""

    annual_salary: Decimal
    effective_date: date


@dataclass(frozen=True)
class AttendanceRecord:
    """Overtime minutes for one work day."""

    overtime_minutes: int
    work_type: str


@dataclass(frozen=True)
class AllowanceEntry:
    """Allowance amount for one month."""

    allowance_type: str
    amount: Decimal


@dataclass(frozen=True)
class BenefitEntry:
    """Recurring monthly benefit amount."""

    category: str
    amount: Decimal


@dataclass(frozen=True)
class EmployeeProfile:
    """Employee identity needed for severance."""

    employee_id: UUID
    company_id: UUID
    name: str
    hire_date: date


@dataclass(frozen=True)
class PaidPayComponents:
    """Pay components of an already-paid payroll item."""

    base_salary: Decimal
    overtime_pay: Decimal
    allowances: Decimal


# ===== Deduction results =====


@dataclass(frozen=True)
class SocialInsuranceResult:
    """Employee share of the four social-insurance contributions."""

    national_pension: Decimal = ZERO
    health_insurance: Decimal = ZERO
    long_term_care: Decimal = ZERO
    employment_insurance: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return (
            self.national_pension
            + self.health_insurance
            + self.long_term_care
            + self.employment_insurance
        )


@dataclass(frozen=True)
class IncomeTaxResult:
    """Monthly income tax and local income surtax."""

    income_tax: Decimal = ZERO
    local_income_tax: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.income_tax + self.local_income_tax


@dataclass(frozen=True)
class TotalDeductionResult:
    """Statutory deductions for one monthly gross figure."""

    social_insurance: SocialInsuranceResult
    income_tax: IncomeTaxResult

    @property
    def total_deductions(self) -> Decimal:
        return self.social_insurance.total + self.income_tax.total


# ===== Overtime =====


@dataclass
class OvertimeBreakdown:
    """Overtime minutes per mutually-exclusive category."""

    weekday_ot_minutes: int = 0
    weekend_minutes: int = 0
    holiday_minutes: int = 0
    night_minutes: int = 0


@dataclass(frozen=True)
class PayrollOvertime:
    """Overtime section of a pay detail (hours rounded to 2 places)."""

    hourly_wage: Decimal = ZERO
    total_overtime_hours: Decimal = ZERO
    weekday_ot_hours: Decimal = ZERO
    weekend_hours: Decimal = ZERO
    holiday_hours: Decimal = ZERO
    night_hours: Decimal = ZERO
    weekday_ot_pay: Decimal = ZERO
    weekend_pay: Decimal = ZERO
    holiday_pay: Decimal = ZERO
    night_pay: Decimal = ZERO

    @property
    def total_pay(self) -> Decimal:
        return self.weekday_ot_pay + self.weekend_pay + self.holiday_pay + self.night_pay


# ===== Pay detail =====


@dataclass(frozen=True)
class PayrollEarnings:
    """Earnings section of a pay detail."""

    base_salary: Decimal = ZERO
    fixed_overtime_allowance: Decimal = ZERO
    meal_allowance: Decimal = ZERO
    transport_allowance: Decimal = ZERO
    overtime_pay: Decimal = ZERO
    night_shift_pay: Decimal = ZERO
    holiday_pay: Decimal = ZERO
    bonuses: Decimal = ZERO
    other_earnings: Decimal = ZERO

    @property
    def total_allowances(self) -> Decimal:
        return (
            self.meal_allowance
            + self.transport_allowance
            + self.fixed_overtime_allowance
            + self.other_earnings
        )

    @property
    def total(self) -> Decimal:
        return (
            self.base_salary
            + self.overtime_pay
            + self.night_shift_pay
            + self.holiday_pay
            + self.bonuses
            + self.total_allowances
        )


@dataclass(frozen=True)
class PayrollDeductions:
    """Deductions section of a pay detail."""

    national_pension: Decimal = ZERO
    health_insurance: Decimal = ZERO
    long_term_care: Decimal = ZERO
    employment_insurance: Decimal = ZERO
    income_tax: Decimal = ZERO
    local_income_tax: Decimal = ZERO
    other_deductions: Decimal = ZERO

    @classmethod
    def from_result(cls, result: TotalDeductionResult) -> PayrollDeductions:
        si = result.social_insurance
        return cls(
            national_pension=si.national_pension,
            health_insurance=si.health_insurance,
            long_term_care=si.long_term_care,
            employment_insurance=si.employment_insurance,
            income_tax=result.income_tax.income_tax,
            local_income_tax=result.income_tax.local_income_tax,
        )

    @property
    def total(self) -> Decimal:
        return (
            self.national_pension
            + self.health_insurance
            + self.long_term_care
            + self.employment_insurance
            + self.income_tax
            + self.local_income_tax
            + self.other_deductions
        )


def _section_dict(section: Any) -> dict[str, str]:
    return {name: str(value) for name, value in vars(section).items()}


@dataclass(frozen=True)
class PayDetail:
    """Complete, self-describing pay breakdown for one employee and period.

    Gross, total deductions and net are derived from the sections on every
    access, so they cannot drift from the lines they summarize.
    """

    earnings: PayrollEarnings
    deductions: PayrollDeductions
    overtime: PayrollOvertime
    rate_table_version: date | None = None

    @property
    def gross_pay(self) -> Decimal:
        return self.earnings.total

    @property
    def total_deductions(self) -> Decimal:
        return self.deductions.total

    @property
    def net_pay(self) -> Decimal:
        return self.gross_pay - self.total_deductions

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation stored in ``payroll_item.detail``.

        Money and hours are serialized as decimal strings.
        """
        return {
            "earnings": _section_dict(self.earnings),
            "deductions": _section_dict(self.deductions),
            "overtime": _section_dict(self.overtime),
            "gross_pay": str(self.gross_pay),
            "total_deductions": str(self.total_deductions),
            "net_pay": str(self.net_pay),
            "rate_table_version": (
                self.rate_table_version.isoformat() if self.rate_table_version else None
            ),
        }


# ===== Severance =====


@dataclass(frozen=True)
class SeveranceMonth:
    """Pay components of one month in the trailing three-month window."""

    year_month: str
    base_salary: Decimal
    overtime_pay: Decimal
    allowances: Decimal
    source: str  # "PAYROLL" (paid item) or "ESTIMATE"

    @property
    def total_pay(self) -> Decimal:
        return self.base_salary + self.overtime_pay + self.allowances


@dataclass(frozen=True)
class SeveranceDetail:
    """Derived severance report; not persisted as part of payroll."""

    employee_id: UUID
    employee_name: str
    hire_date: date
    termination_date: date
    tenure_days: int
    tenure_years: Decimal
    is_eligible: bool
    recent_three_months: list[SeveranceMonth] = field(default_factory=list)
    average_monthly_pay: Decimal = ZERO
    severance_pay: Decimal = ZERO
    income_tax: Decimal = ZERO
    local_income_tax: Decimal = ZERO

    @property
    def net_severance_pay(self) -> Decimal:
        return self.severance_pay - self.income_tax - self.local_income_tax

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": str(self.employee_id),
            "employee_name": self.employee_name,
            "hire_date": self.hire_date.isoformat(),
            "termination_date": self.termination_date.isoformat(),
            "tenure_days": self.tenure_days,
            "tenure_years": str(self.tenure_years),
            "is_eligible": self.is_eligible,
            "recent_three_months": [
                {
                    "year_month": m.year_month,
                    "base_salary": str(m.base_salary),
                    "overtime_pay": str(m.overtime_pay),
                    "allowances": str(m.allowances),
                    "total_pay": str(m.total_pay),
                    "source": m.source,
                }
                for m in self.recent_three_months
            ],
            "average_monthly_pay": str(self.average_monthly_pay),
            "severance_pay": str(self.severance_pay),
            "income_tax": str(self.income_tax),
            "local_income_tax": str(self.local_income_tax),
            "net_severance_pay": str(self.net_severance_pay),
        }
