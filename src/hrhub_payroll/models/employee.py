"""Employee and pay-input models (read-only to the payroll engine)."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrhub_payroll.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from hrhub_payroll.models.payroll import PayrollItem


class Employee(Base, TimestampMixin):
    """Employee record."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    employee_no: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="ACTIVE")
    hire_date: Mapped[date] = mapped_column(Date, nullable=False)
    resign_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "employee_no", name="employee_company_no_unique"),
        CheckConstraint(
            "status IN ('ACTIVE', 'ON_LEAVE', 'RESIGNED', 'TERMINATED')",
            name="employee_status_check",
        ),
    )

    # Relationships
    compensation_history: Mapped[list[CompensationHistory]] = relationship(
        back_populates="employee"
    )
    payroll_items: Mapped[list[PayrollItem]] = relationship(back_populates="employee")


class CompensationHistory(Base, TimestampMixin):
    """Effective-dated annual base salary."""

    __tablename__ = "compensation_history"

    compensation_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    company_id: Mapped[UUID] = mapped_column(nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    annual_base_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    change_reason: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        Index("compensation_employee_effective_idx", "employee_id", "effective_date"),
    )

    employee: Mapped[Employee] = relationship(back_populates="compensation_history")


class Attendance(Base, TimestampMixin):
    """One work day, with overtime minutes tagged by work type."""

    __tablename__ = "attendance"

    attendance_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    company_id: Mapped[UUID] = mapped_column(nullable=False)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    work_type: Mapped[str] = mapped_column(String, nullable=False, default="NORMAL")
    overtime_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True, default=0)

    __table_args__ = (
        UniqueConstraint("employee_id", "work_date", name="attendance_employee_day_unique"),
    )


class AllowanceRecord(Base, TimestampMixin):
    """Monthly allowance amount (meal, transport, fixed overtime, other)."""

    __tablename__ = "allowance_record"

    allowance_record_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    company_id: Mapped[UUID] = mapped_column(nullable=False)
    year_month: Mapped[str] = mapped_column(String(7), nullable=False)
    allowance_type: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    __table_args__ = (
        Index("allowance_employee_month_idx", "employee_id", "year_month"),
    )


class BenefitPolicy(Base, TimestampMixin):
    """Company benefit policy; MONTHLY policies are paid as allowances."""

    __tablename__ = "benefit_policy"

    policy_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    frequency: Mapped[str] = mapped_column(String, nullable=False, default="MONTHLY")
    amount: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "frequency IN ('MONTHLY', 'ANNUAL', 'ONE_TIME')",
            name="benefit_policy_frequency_check",
        ),
    )


class EmployeeBenefit(Base, TimestampMixin):
    """Enrollment of an employee in a benefit policy."""

    __tablename__ = "employee_benefit"

    employee_benefit_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    policy_id: Mapped[UUID] = mapped_column(
        ForeignKey("benefit_policy.policy_id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="ACTIVE")

    policy: Mapped[BenefitPolicy] = relationship()
