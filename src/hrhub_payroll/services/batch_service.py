"""Batch payroll calculation for a whole run."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence, TypeVar
from uuid import UUID

from hrhub_payroll.calculators.employee_calculator import EmployeePayrollCalculator
from hrhub_payroll.providers.base import (
    EmployeePayResult,
    EmployeePopulationProvider,
    PayrollRunStore,
    RunTotals,
)
from hrhub_payroll.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 10

T = TypeVar("T")
R = TypeVar("R")


async def process_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    batch_size: int,
) -> list[R]:
    """Run ``worker`` over ``items`` in fixed-size concurrent waves.

    Each wave is awaited in full before the next starts. Results keep the
    order of ``items``. The first failure in a wave is raised once the
    whole wave has settled.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    results: list[R] = []
    waves = (len(items) + batch_size - 1) // batch_size
    for number, start in enumerate(range(0, len(items), batch_size), start=1):
        wave = items[start : start + batch_size]
        outcomes = await asyncio.gather(*(worker(item) for item in wave), return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        results.extend(outcomes)
        logger.info("Completed wave %d/%d (%d items)", number, waves, len(wave))
    return results


@dataclass(frozen=True)
class BatchResult:
    """Outcome of a committed run calculation."""

    run_id: UUID
    headcount: int
    totals: RunTotals
    duration_seconds: float


class PayrollBatchService:
    """Computes and commits pay for every eligible employee in a run.

    Lifecycle: DRAFT → CALCULATING → REVIEW. Any failure or cancellation
    after the run enters CALCULATING reverts it to DRAFT and re-raises; items
    and totals are written in one transaction, so nothing partial is ever
    stored.
    """

    def __init__(
        self,
        store: PayrollRunStore,
        population: EmployeePopulationProvider,
        calculator: EmployeePayrollCalculator,
        concurrency: int = DEFAULT_CONCURRENCY,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.store = store
        self.population = population
        self.calculator = calculator
        self.concurrency = concurrency

    async def run_batch(self, run_id: UUID) -> BatchResult:
        run = await self.store.get_run(run_id)
        if not PayrollRunStateMachine.can_calculate(run.status):
            raise InvalidTransitionError(
                run.status,
                PayrollRunStatus.CALCULATING.value,
                "calculation can only start from DRAFT",
            )

        await self.store.mark_calculating(run_id)
        started = time.perf_counter()

        try:
            employee_ids = list(
                await self.population.active_employees(run.company_id, run.period_end)
            )
            logger.info(
                "Calculating payroll run %s for company %s: %d employees, concurrency %d",
                run_id,
                run.company_id,
                len(employee_ids),
                self.concurrency,
            )

            async def calculate_one(employee_id: UUID) -> EmployeePayResult:
                detail = await self.calculator.calculate(
                    employee_id, run.period_start, run.period_end, run.company_id
                )
                return EmployeePayResult(employee_id=employee_id, detail=detail)

            results = await process_in_batches(employee_ids, calculate_one, self.concurrency)

            totals = RunTotals()
            for result in results:
                totals.add(result.detail)

            await self.store.commit_run(run_id, results, totals, run.currency)
        except BaseException:
            # Includes cancellation; a run must never stay in CALCULATING
            logger.exception("Payroll calculation failed for run %s; reverting to DRAFT", run_id)
            try:
                await self.store.revert_to_draft(run_id)
            except Exception:
                logger.exception("Could not revert payroll run %s to DRAFT", run_id)
            raise

        duration = time.perf_counter() - started
        logger.info(
            "Payroll run %s moved to REVIEW: headcount=%d gross=%s net=%s (%.2fs)",
            run_id,
            totals.headcount,
            totals.total_gross,
            totals.total_net,
            duration,
        )
        return BatchResult(
            run_id=run_id,
            headcount=totals.headcount,
            totals=totals,
            duration_seconds=duration,
        )
