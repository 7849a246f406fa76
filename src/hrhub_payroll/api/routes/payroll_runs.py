"""Payroll run API endpoints."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from hrhub_payroll.api.dependencies import AppSettings, BatchService, CompanyId, DbSession, Rates
from hrhub_payroll.api.errors import CalculationFailedError
from hrhub_payroll.api.schemas import (
    AnomalyResponse,
    CalculateResponse,
    ErrorResponse,
    ItemAdjustRequest,
    PayrollItemResponse,
    PayrollRunCreate,
    PayrollRunDetailResponse,
    PayrollRunListResponse,
    PayrollRunResponse,
    ReviewResponse,
)
from hrhub_payroll.providers import PayrollRunNotFoundError
from hrhub_payroll.services import (
    AdjustmentService,
    InvalidTransitionError,
    ItemAdjustment,
    PayrollRunService,
    PayrollRunStatus,
    ReviewService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payroll/runs", tags=["payroll-runs"])


# ============================================================================
# Payroll run CRUD
# ============================================================================


@router.post(
    "",
    response_model=PayrollRunResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_payroll_run(
    db: DbSession,
    company_id: CompanyId,
    settings: AppSettings,
    payload: PayrollRunCreate,
) -> PayrollRunResponse:
    """Create a new payroll run in DRAFT status.

    Currency defaults to the configured payroll currency.
    """
    run = await PayrollRunService(db).create_run(
        company_id=company_id,
        name=payload.name,
        run_type=payload.run_type.value,
        year_month=payload.year_month,
        period_start=payload.period_start,
        period_end=payload.period_end,
        pay_date=payload.pay_date,
        currency=payload.currency or settings.currency,
    )
    await db.commit()
    await db.refresh(run)
    return PayrollRunResponse.model_validate(run)


@router.get("", response_model=PayrollRunListResponse)
async def list_payroll_runs(
    db: DbSession,
    company_id: CompanyId,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    status_filter: Annotated[PayrollRunStatus | None, Query(alias="status")] = None,
    run_type: Annotated[str | None, Query(alias="runType")] = None,
    year_month: Annotated[str | None, Query(alias="yearMonth", pattern=r"^\d{4}-\d{2}$")] = None,
) -> PayrollRunListResponse:
    """List payroll runs of the company, newest first."""
    result = await PayrollRunService(db).list_runs(
        company_id,
        status=status_filter.value if status_filter else None,
        run_type=run_type,
        year_month=year_month,
        page=page,
        limit=limit,
    )
    return PayrollRunListResponse(
        items=[PayrollRunResponse.model_validate(run) for run in result.runs],
        total=result.total,
        page=result.page,
        limit=result.limit,
    )


@router.get(
    "/{run_id}",
    response_model=PayrollRunDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_run(
    db: DbSession,
    company_id: CompanyId,
    run_id: Annotated[UUID, Path()],
) -> PayrollRunDetailResponse:
    """Get a payroll run with its items."""
    run = await PayrollRunService(db).get_run(run_id, company_id, load_items=True)
    return PayrollRunDetailResponse.model_validate(run)


# ============================================================================
# Calculation and review
# ============================================================================


@router.post(
    "/{run_id}/calculate",
    response_model=CalculateResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def calculate_payroll_run(
    db: DbSession,
    company_id: CompanyId,
    batch: BatchService,
    run_id: Annotated[UUID, Path()],
) -> CalculateResponse:
    """Calculate every eligible employee and move the run to REVIEW."""
    await PayrollRunService(db).get_run(run_id, company_id)
    # Release the read transaction; the batch uses its own sessions
    await db.rollback()

    try:
        result = await batch.run_batch(run_id)
    except (InvalidTransitionError, PayrollRunNotFoundError):
        raise
    except Exception as e:
        raise CalculationFailedError(run_id) from e

    return CalculateResponse(
        run_id=result.run_id,
        headcount=result.headcount,
        total_gross=result.totals.total_gross,
        total_deductions=result.totals.total_deductions,
        total_net=result.totals.total_net,
        duration_seconds=result.duration_seconds,
    )


@router.get(
    "/{run_id}/review",
    response_model=ReviewResponse,
    responses={404: {"model": ErrorResponse}},
)
async def review_payroll_run(
    db: DbSession,
    company_id: CompanyId,
    run_id: Annotated[UUID, Path()],
) -> ReviewResponse:
    """Run totals with rule-based anomaly flags."""
    summary = await ReviewService(db).review(run_id, company_id)
    return ReviewResponse(
        run_id=summary.run_id,
        status=summary.status,
        headcount=summary.headcount,
        total_gross=summary.total_gross,
        total_deductions=summary.total_deductions,
        total_net=summary.total_net,
        anomalies=[AnomalyResponse.model_validate(a) for a in summary.anomalies],
    )


@router.put(
    "/{run_id}/items/{employee_id}",
    response_model=PayrollItemResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def adjust_payroll_item(
    db: DbSession,
    company_id: CompanyId,
    rate_schedule: Rates,
    run_id: Annotated[UUID, Path()],
    employee_id: Annotated[UUID, Path()],
    payload: ItemAdjustRequest,
) -> PayrollItemResponse:
    """Manually adjust one item of a run under REVIEW."""
    item = await AdjustmentService(db, rate_schedule).adjust_item(
        run_id,
        company_id,
        employee_id,
        ItemAdjustment(
            reason=payload.adjustment_reason,
            base_salary=payload.base_salary,
            overtime_pay=payload.overtime_pay,
            bonus=payload.bonus,
            allowances=payload.allowances,
            deductions=payload.deductions,
        ),
    )
    await db.commit()
    logger.info("Payroll item adjusted: run=%s employee=%s", run_id, employee_id)
    return PayrollItemResponse.model_validate(item)
