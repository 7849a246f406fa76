"""Review summary with rule-based anomaly flags."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrhub_payroll.calculators.types import ZERO
from hrhub_payroll.models import PayrollItem, PayrollRun
from hrhub_payroll.providers.base import PayrollRunNotFoundError
from hrhub_payroll.services.state_machine import PayrollRunStatus

DEFAULT_OVERTIME_HOURS_LIMIT = Decimal("60")
DEFAULT_NET_PAY_CHANGE_LIMIT = Decimal("0.20")


class AnomalySeverity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class PayrollAnomaly:
    """One flagged item in a run under review."""

    employee_id: UUID
    employee_name: str
    severity: str
    field: str
    message: str
    current_value: Decimal
    previous_value: Decimal | None = None


@dataclass(frozen=True)
class ReviewSummary:
    run_id: UUID
    status: str
    headcount: int
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal
    anomalies: list[PayrollAnomaly] = field(default_factory=list)


def _overtime_hours(detail: dict[str, Any] | None) -> Decimal:
    if not detail:
        return ZERO
    value = (detail.get("overtime") or {}).get("total_overtime_hours")
    return Decimal(str(value)) if value is not None else ZERO


class ReviewService:
    """Builds the review summary of a run. Read only.

    Rules per item:
    - WARNING when monthly overtime exceeds the hours limit
    - ERROR when net pay moved more than the change limit against the
      employee's latest PAID item in another run of the company
    - INFO when the employee was hired on or after the period start
    """

    def __init__(
        self,
        session: AsyncSession,
        overtime_hours_limit: Decimal = DEFAULT_OVERTIME_HOURS_LIMIT,
        net_pay_change_limit: Decimal = DEFAULT_NET_PAY_CHANGE_LIMIT,
    ):
        self.session = session
        self.overtime_hours_limit = overtime_hours_limit
        self.net_pay_change_limit = net_pay_change_limit

    async def review(self, run_id: UUID, company_id: UUID) -> ReviewSummary:
        run = (
            await self.session.execute(
                select(PayrollRun)
                .where(PayrollRun.run_id == run_id, PayrollRun.company_id == company_id)
                .options(selectinload(PayrollRun.items).selectinload(PayrollItem.employee))
            )
        ).scalar_one_or_none()
        if run is None:
            raise PayrollRunNotFoundError(run_id)

        anomalies: list[PayrollAnomaly] = []
        for item in sorted(run.items, key=lambda i: i.employee.employee_no):
            anomalies.extend(await self._item_anomalies(run, item))

        return ReviewSummary(
            run_id=run.run_id,
            status=run.status,
            headcount=run.headcount,
            total_gross=run.total_gross or ZERO,
            total_deductions=run.total_deductions or ZERO,
            total_net=run.total_net or ZERO,
            anomalies=anomalies,
        )

    async def _item_anomalies(self, run: PayrollRun, item: PayrollItem) -> list[PayrollAnomaly]:
        anomalies = []
        employee = item.employee

        hours = _overtime_hours(item.detail)
        if hours > self.overtime_hours_limit:
            anomalies.append(
                PayrollAnomaly(
                    employee_id=item.employee_id,
                    employee_name=employee.name,
                    severity=AnomalySeverity.WARNING.value,
                    field="overtimeHours",
                    message=(
                        f"Overtime {hours:.1f}h exceeds the monthly limit of "
                        f"{self.overtime_hours_limit}h"
                    ),
                    current_value=hours,
                )
            )

        previous_net = await self._previous_net_pay(run, item.employee_id)
        if previous_net is not None and previous_net > 0:
            change = abs(item.net_pay - previous_net) / previous_net
            if change > self.net_pay_change_limit:
                anomalies.append(
                    PayrollAnomaly(
                        employee_id=item.employee_id,
                        employee_name=employee.name,
                        severity=AnomalySeverity.ERROR.value,
                        field="netPay",
                        message=(
                            f"Net pay changed {change * 100:.1f}% against the last paid run "
                            f"(limit {self.net_pay_change_limit * 100:.0f}%)"
                        ),
                        current_value=item.net_pay,
                        previous_value=previous_net,
                    )
                )

        if employee.hire_date >= run.period_start:
            anomalies.append(
                PayrollAnomaly(
                    employee_id=item.employee_id,
                    employee_name=employee.name,
                    severity=AnomalySeverity.INFO.value,
                    field="hireDate",
                    message="New hire in this period; proration may be required",
                    current_value=item.gross_pay,
                )
            )

        return anomalies

    async def _previous_net_pay(self, run: PayrollRun, employee_id: UUID) -> Decimal | None:
        return await self.session.scalar(
            select(PayrollItem.net_pay)
            .join(PayrollRun, PayrollRun.run_id == PayrollItem.run_id)
            .where(
                PayrollItem.employee_id == employee_id,
                PayrollRun.company_id == run.company_id,
                PayrollRun.status == PayrollRunStatus.PAID.value,
                PayrollRun.run_id != run.run_id,
            )
            .order_by(PayrollRun.period_end.desc())
            .limit(1)
        )
