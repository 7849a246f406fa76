"""Payroll calculation engine."""

from hrhub_payroll.calculators.employee_calculator import EmployeePayrollCalculator
from hrhub_payroll.calculators.overtime import OvertimeCalculator, classify_attendance
from hrhub_payroll.calculators.rate_table import (
    RateSchedule,
    RateTable,
    RateTableError,
    RateTableNotFoundError,
    load_rate_schedule,
)
from hrhub_payroll.calculators.severance import SeveranceCalculator
from hrhub_payroll.calculators.tax_calculator import TaxCalculator
from hrhub_payroll.calculators.types import PayDetail, SeveranceDetail

__all__ = [
    "EmployeePayrollCalculator",
    "OvertimeCalculator",
    "PayDetail",
    "RateSchedule",
    "RateTable",
    "RateTableError",
    "RateTableNotFoundError",
    "SeveranceCalculator",
    "SeveranceDetail",
    "TaxCalculator",
    "classify_attendance",
    "load_rate_schedule",
]
