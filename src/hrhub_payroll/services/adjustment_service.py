"""Manual adjustment of payroll items under review."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrhub_payroll.calculators.rate_table import RateSchedule
from hrhub_payroll.calculators.tax_calculator import TaxCalculator
from hrhub_payroll.calculators.types import ZERO
from hrhub_payroll.models import PayrollItem, PayrollRun
from hrhub_payroll.services.payroll_run_service import PayrollRunService
from hrhub_payroll.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
)

logger = logging.getLogger(__name__)


class PayrollItemNotFoundError(Exception):
    """Raised when a run has no item for the employee."""

    def __init__(self, run_id: UUID, employee_id: UUID):
        self.run_id = run_id
        self.employee_id = employee_id
        super().__init__(f"Payroll item for employee {employee_id} not found in run {run_id}")


@dataclass(frozen=True)
class ItemAdjustment:
    """Requested changes; ``None`` keeps the stored value."""

    reason: str
    base_salary: Decimal | None = None
    overtime_pay: Decimal | None = None
    bonus: Decimal | None = None
    allowances: Decimal | None = None
    deductions: Decimal | None = None


class AdjustmentService:
    """Applies a manual adjustment to one item and refreshes run totals.

    Runs inside the caller's transaction; the item update and the totals
    update are committed together.
    """

    def __init__(self, session: AsyncSession, rate_schedule: RateSchedule):
        self.session = session
        self.rate_schedule = rate_schedule

    async def adjust_item(
        self,
        run_id: UUID,
        company_id: UUID,
        employee_id: UUID,
        adjustment: ItemAdjustment,
    ) -> PayrollItem:
        if not adjustment.reason or not adjustment.reason.strip():
            raise ValueError("An adjustment reason is required")

        run = await PayrollRunService(self.session).get_run(run_id, company_id)
        if not PayrollRunStateMachine.can_adjust(run.status):
            raise InvalidTransitionError(
                run.status,
                run.status,
                f"items can only be adjusted in {PayrollRunStatus.REVIEW.value}",
            )

        item = await self.session.get(PayrollItem, (run_id, employee_id))
        if item is None:
            raise PayrollItemNotFoundError(run_id, employee_id)

        base_salary = _pick(adjustment.base_salary, item.base_salary)
        overtime_pay = _pick(adjustment.overtime_pay, item.overtime_pay)
        bonus = _pick(adjustment.bonus, item.bonus)
        allowances = _pick(adjustment.allowances, item.allowances)
        gross_pay = base_salary + overtime_pay + bonus + allowances

        if adjustment.deductions is not None:
            deductions = adjustment.deductions
        else:
            tax_calculator = TaxCalculator(self.rate_schedule.for_date(run.period_end))
            deductions = tax_calculator.total_deductions(gross_pay).total_deductions

        item.base_salary = base_salary
        item.overtime_pay = overtime_pay
        item.bonus = bonus
        item.allowances = allowances
        item.gross_pay = gross_pay
        item.deductions = deductions
        item.net_pay = gross_pay - deductions
        item.is_manually_adjusted = True
        item.adjustment_reason = adjustment.reason
        await self.session.flush()

        await self._refresh_run_totals(run)

        logger.info(
            "Adjusted payroll item run=%s employee=%s gross=%s net=%s",
            run_id,
            employee_id,
            item.gross_pay,
            item.net_pay,
        )
        return item

    async def _refresh_run_totals(self, run: PayrollRun) -> None:
        result = await self.session.scalars(
            select(PayrollItem).where(PayrollItem.run_id == run.run_id)
        )
        items = list(result.all())
        run.total_gross = sum((Decimal(i.gross_pay) for i in items), ZERO)
        run.total_deductions = sum((Decimal(i.deductions) for i in items), ZERO)
        run.total_net = sum((Decimal(i.net_pay) for i in items), ZERO)
        await self.session.flush()


def _pick(value: Decimal | None, stored: Decimal | None) -> Decimal:
    if value is not None:
        return Decimal(value)
    return Decimal(stored) if stored is not None else ZERO
