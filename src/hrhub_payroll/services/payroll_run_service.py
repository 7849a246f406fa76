"""Payroll run lookup, creation and status transitions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrhub_payroll.models import PayrollRun
from hrhub_payroll.providers.base import PayrollRunNotFoundError
from hrhub_payroll.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
    PayrollRunType,
)


@dataclass(frozen=True)
class RunPage:
    """One page of a run listing."""

    runs: list[PayrollRun]
    total: int
    page: int
    limit: int


class PayrollRunService:
    """Company-scoped access to payroll runs.

    Operations:
    - create_run: new run in DRAFT
    - get_run: load one run (404 semantics when it belongs to another company)
    - list_runs: filtered, newest first, paginated
    - transition_status: validated move along the run lifecycle
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_run(
        self,
        company_id: UUID,
        name: str,
        year_month: str,
        period_start: date,
        period_end: date,
        run_type: str = PayrollRunType.MONTHLY.value,
        pay_date: date | None = None,
        currency: str = "KRW",
    ) -> PayrollRun:
        if period_end < period_start:
            raise ValueError("period_end must not be before period_start")

        run = PayrollRun(
            company_id=company_id,
            name=name,
            run_type=run_type,
            year_month=year_month,
            period_start=period_start,
            period_end=period_end,
            pay_date=pay_date,
            currency=currency,
            status=PayrollRunStatus.DRAFT.value,
            headcount=0,
        )
        self.session.add(run)
        await self.session.flush()
        return run

    async def get_run(
        self,
        run_id: UUID,
        company_id: UUID,
        load_items: bool = False,
    ) -> PayrollRun:
        """Load a run of the company, raising PayrollRunNotFoundError otherwise."""
        stmt = select(PayrollRun).where(
            PayrollRun.run_id == run_id,
            PayrollRun.company_id == company_id,
        )
        if load_items:
            stmt = stmt.options(selectinload(PayrollRun.items))

        run = (await self.session.execute(stmt)).scalar_one_or_none()
        if run is None:
            raise PayrollRunNotFoundError(run_id)
        return run

    async def list_runs(
        self,
        company_id: UUID,
        status: str | None = None,
        run_type: str | None = None,
        year_month: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> RunPage:
        conditions = [PayrollRun.company_id == company_id]
        if status:
            conditions.append(PayrollRun.status == status)
        if run_type:
            conditions.append(PayrollRun.run_type == run_type)
        if year_month:
            conditions.append(PayrollRun.year_month == year_month)

        total = await self.session.scalar(
            select(func.count()).select_from(PayrollRun).where(*conditions)
        )
        result = await self.session.scalars(
            select(PayrollRun)
            .where(*conditions)
            .order_by(PayrollRun.created_at.desc(), PayrollRun.period_end.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return RunPage(runs=list(result.all()), total=total or 0, page=page, limit=limit)

    async def transition_status(self, run: PayrollRun, to_status: str) -> PayrollRun:
        """Move a run to ``to_status``.

        CALCULATING is owned by the batch orchestrator and cannot be entered
        or left through this method.
        """
        from_status = run.status
        if PayrollRunStatus.CALCULATING.value in (from_status, to_status):
            raise InvalidTransitionError(
                from_status, to_status, "CALCULATING is managed by the calculation batch"
            )
        PayrollRunStateMachine.validate_transition(from_status, to_status)

        run.status = to_status
        await self.session.flush()
        return run
