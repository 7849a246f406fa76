"""Idempotent persistence of calculated payroll items."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from hrhub_payroll.models import PayrollItem, PayrollRun
from hrhub_payroll.providers.base import EmployeePayResult, RunTotals
from hrhub_payroll.services.state_machine import InvalidTransitionError, PayrollRunStatus

# Columns rewritten when an item is recalculated
UPSERT_COLUMNS = (
    "base_salary",
    "overtime_pay",
    "bonus",
    "allowances",
    "gross_pay",
    "deductions",
    "net_pay",
    "currency",
    "detail",
    "is_manually_adjusted",
    "adjustment_reason",
)


def item_values(run_id: UUID, result: EmployeePayResult, currency: str) -> dict[str, Any]:
    """Column values of the payroll_item row for one calculated employee."""
    detail = result.detail
    earnings = detail.earnings
    return {
        "run_id": run_id,
        "employee_id": result.employee_id,
        "base_salary": earnings.base_salary,
        "overtime_pay": earnings.overtime_pay,
        "bonus": earnings.bonuses,
        "allowances": earnings.total_allowances,
        "gross_pay": detail.gross_pay,
        "deductions": detail.total_deductions,
        "net_pay": detail.net_pay,
        "currency": currency,
        "detail": detail.to_dict(),
        "is_manually_adjusted": False,
        "adjustment_reason": None,
    }


class CommitService:
    """Writes a run's items and totals inside the caller's transaction.

    Key invariants:
    1. One payroll_item per (run_id, employee_id) (composite primary key)
    2. Recalculation overwrites the existing row, so retries are safe
    3. Items of employees no longer in the population are removed, so run
       totals always equal the sum of the run's items
    4. The run only reaches REVIEW from CALCULATING
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(PayrollItem)
        if dialect == "sqlite":
            return sqlite.insert(PayrollItem)
        raise NotImplementedError(f"Upsert is not supported on dialect '{dialect}'")

    async def upsert_items(
        self,
        run_id: UUID,
        results: Sequence[EmployeePayResult],
        currency: str,
    ) -> int:
        """Insert or overwrite one item per result. Returns the number written."""
        for result in results:
            stmt = self._insert().values(**item_values(run_id, result, currency))
            stmt = stmt.on_conflict_do_update(
                index_elements=["run_id", "employee_id"],
                set_={column: stmt.excluded[column] for column in UPSERT_COLUMNS},
            )
            await self.session.execute(stmt)
        return len(results)

    async def remove_stale_items(self, run_id: UUID, keep: Sequence[UUID]) -> int:
        """Delete the run's items for employees not in ``keep``. Returns the number removed."""
        result = await self.session.execute(
            delete(PayrollItem).where(
                PayrollItem.run_id == run_id,
                PayrollItem.employee_id.not_in(list(keep)),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def finalize_run(self, run_id: UUID, totals: RunTotals) -> None:
        """Store totals and move CALCULATING -> REVIEW."""
        result = await self.session.execute(
            update(PayrollRun)
            .where(
                PayrollRun.run_id == run_id,
                PayrollRun.status == PayrollRunStatus.CALCULATING.value,
            )
            .values(
                status=PayrollRunStatus.REVIEW.value,
                headcount=totals.headcount,
                total_gross=totals.total_gross,
                total_deductions=totals.total_deductions,
                total_net=totals.total_net,
                calculated_at=datetime.now(timezone.utc),
            )
        )
        if result.rowcount == 0:
            current = await self.session.scalar(
                select(PayrollRun.status).where(PayrollRun.run_id == run_id)
            )
            raise InvalidTransitionError(
                str(current),
                PayrollRunStatus.REVIEW.value,
                "run left CALCULATING before results were committed",
            )

    async def commit_run(
        self,
        run_id: UUID,
        results: Sequence[EmployeePayResult],
        totals: RunTotals,
        currency: str,
    ) -> int:
        count = await self.upsert_items(run_id, results, currency)
        await self.remove_stale_items(run_id, [r.employee_id for r in results])
        await self.finalize_run(run_id, totals)
        return count
