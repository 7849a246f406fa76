"""Data providers feeding the payroll calculators.

SQL-backed implementations live in :mod:`hrhub_payroll.providers.sql`.
"""

from hrhub_payroll.providers.base import (
    AllowanceProvider,
    AttendanceProvider,
    BenefitProvider,
    CompensationProvider,
    EmployeeDirectory,
    EmployeeNotFoundError,
    EmployeePayResult,
    EmployeePopulationProvider,
    PayrollHistoryProvider,
    PayrollRunNotFoundError,
    PayrollRunSnapshot,
    PayrollRunStore,
    RunTotals,
)

__all__ = [
    "AllowanceProvider",
    "AttendanceProvider",
    "BenefitProvider",
    "CompensationProvider",
    "EmployeeDirectory",
    "EmployeeNotFoundError",
    "EmployeePayResult",
    "EmployeePopulationProvider",
    "PayrollHistoryProvider",
    "PayrollRunNotFoundError",
    "PayrollRunSnapshot",
    "PayrollRunStore",
    "RunTotals",
]
