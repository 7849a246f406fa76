"""ORM models."""

from hrhub_payroll.models.base import Base, TimestampMixin
from hrhub_payroll.models.employee import (
    AllowanceRecord,
    Attendance,
    BenefitPolicy,
    CompensationHistory,
    Employee,
    EmployeeBenefit,
)
from hrhub_payroll.models.payroll import PayrollItem, PayrollRun

__all__ = [
    "AllowanceRecord",
    "Attendance",
    "Base",
    "BenefitPolicy",
    "CompensationHistory",
    "Employee",
    "EmployeeBenefit",
    "PayrollItem",
    "PayrollRun",
    "TimestampMixin",
]
