"""Pydantic schemas for API request/response models.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from hrhub_payroll.calculators.periods import YEAR_MONTH_PATTERN
from hrhub_payroll.services.state_machine import PayrollRunStatus, PayrollRunType


class ApiModel(BaseModel):
    """Base schema with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============================================================================
# Payroll run schemas
# ============================================================================


class PayrollRunCreate(ApiModel):
    """Schema for creating a new payroll run."""

    name: str = Field(min_length=1, max_length=100)
    run_type: PayrollRunType = PayrollRunType.MONTHLY
    year_month: str = Field(pattern=YEAR_MONTH_PATTERN.pattern)
    period_start: date
    period_end: date
    pay_date: date | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)

    @model_validator(mode="after")
    def check_period(self) -> "PayrollRunCreate":
        if self.period_end < self.period_start:
            raise ValueError("periodEnd must not be before periodStart")
        return self


class PayrollRunResponse(ApiModel):
    """Schema for payroll run response."""

    run_id: UUID
    company_id: UUID
    name: str
    run_type: str
    year_month: str
    period_start: date
    period_end: date
    pay_date: date | None = None
    currency: str
    status: str
    headcount: int
    total_gross: Decimal | None = None
    total_deductions: Decimal | None = None
    total_net: Decimal | None = None
    calculated_at: datetime | None = None
    created_at: datetime | None = None


class PayrollItemResponse(ApiModel):
    """Schema for payroll item response."""

    run_id: UUID
    employee_id: UUID
    base_salary: Decimal
    overtime_pay: Decimal
    bonus: Decimal
    allowances: Decimal
    gross_pay: Decimal
    deductions: Decimal
    net_pay: Decimal
    currency: str
    detail: dict[str, Any] | None = None
    is_manually_adjusted: bool
    adjustment_reason: str | None = None


class PayrollRunDetailResponse(PayrollRunResponse):
    """Payroll run with its items."""

    items: list[PayrollItemResponse] = []


class PayrollRunListResponse(ApiModel):
    """Schema for listing payroll runs."""

    items: list[PayrollRunResponse]
    total: int
    page: int
    limit: int


class CalculateResponse(ApiModel):
    """Result of a committed calculation."""

    run_id: UUID
    status: str = PayrollRunStatus.REVIEW.value
    headcount: int
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal
    duration_seconds: float


# ============================================================================
# Review schemas
# ============================================================================


class AnomalyResponse(ApiModel):
    employee_id: UUID
    employee_name: str
    severity: str
    field: str
    message: str
    current_value: Decimal
    previous_value: Decimal | None = None


class ReviewResponse(ApiModel):
    """Run totals plus anomaly flags."""

    run_id: UUID
    status: str
    headcount: int
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal
    anomalies: list[AnomalyResponse]


# ============================================================================
# Adjustment schemas
# ============================================================================


class ItemAdjustRequest(ApiModel):
    """Manual adjustment; omitted amounts keep their stored values."""

    base_salary: Decimal | None = Field(default=None, ge=0)
    overtime_pay: Decimal | None = Field(default=None, ge=0)
    bonus: Decimal | None = Field(default=None, ge=0)
    allowances: Decimal | None = Field(default=None, ge=0)
    deductions: Decimal | None = Field(default=None, ge=0)
    adjustment_reason: str = Field(min_length=1)

    @field_validator("adjustment_reason")
    @classmethod
    def reason_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("adjustmentReason must not be blank")
        return value


# ============================================================================
# Severance schemas
# ============================================================================


class SeveranceRequest(ApiModel):
    termination_date: date


class SeveranceMonthResponse(ApiModel):
    year_month: str
    base_salary: Decimal
    overtime_pay: Decimal
    allowances: Decimal
    total_pay: Decimal
    source: str


class SeveranceResponse(ApiModel):
    """Schema for severance calculation response."""

    employee_id: UUID
    employee_name: str
    hire_date: date
    termination_date: date
    tenure_days: int
    tenure_years: Decimal
    is_eligible: bool
    recent_three_months: list[SeveranceMonthResponse]
    average_monthly_pay: Decimal
    severance_pay: Decimal
    income_tax: Decimal
    local_income_tax: Decimal
    net_severance_pay: Decimal


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
