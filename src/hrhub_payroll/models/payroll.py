"""Payroll run and payroll item models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrhub_payroll.models.base import Base, JSONType, TimestampMixin

if TYPE_CHECKING:
    from hrhub_payroll.models.employee import Employee


class PayrollRun(Base, TimestampMixin):
    """One calculation cycle for a company over a period."""

    __tablename__ = "payroll_run"

    run_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    company_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    run_type: Mapped[str] = mapped_column(String, nullable=False, default="MONTHLY")
    year_month: Mapped[str] = mapped_column(String(7), nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    pay_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="KRW")
    status: Mapped[str] = mapped_column(String, nullable=False, default="DRAFT")
    headcount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_gross: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    total_deductions: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    total_net: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)
    calculated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "run_type IN ('MONTHLY', 'BONUS', 'SEVERANCE', 'SPECIAL')",
            name="payroll_run_type_check",
        ),
        CheckConstraint(
            "status IN ('DRAFT', 'CALCULATING', 'REVIEW', 'APPROVED', 'PAID', 'CANCELLED')",
            name="payroll_run_status_check",
        ),
        CheckConstraint("period_end >= period_start", name="payroll_run_period_check"),
        Index("payroll_run_company_month_idx", "company_id", "year_month"),
    )

    # Relationships
    items: Mapped[list[PayrollItem]] = relationship(back_populates="run")


class PayrollItem(Base, TimestampMixin):
    """One employee's result within one run, keyed by (run_id, employee_id)."""

    __tablename__ = "payroll_item"

    run_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_run.run_id", ondelete="CASCADE"),
        primary_key=True,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        primary_key=True,
    )
    base_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    bonus: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    allowances: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    gross_pay: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    deductions: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    net_pay: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="KRW")
    detail: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    is_manually_adjusted: Mapped[bool] = mapped_column(default=False, nullable=False)
    adjustment_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    run: Mapped[PayrollRun] = relationship(back_populates="items")
    employee: Mapped[Employee] = relationship(back_populates="payroll_items")
