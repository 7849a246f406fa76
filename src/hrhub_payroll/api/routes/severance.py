"""Severance calculation endpoint."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from hrhub_payroll.api.dependencies import CompanyId, DataProvider, Severance
from hrhub_payroll.api.schemas import ErrorResponse, SeveranceRequest, SeveranceResponse
from hrhub_payroll.providers import EmployeeNotFoundError

router = APIRouter(prefix="/payroll/severance", tags=["severance"])


@router.post(
    "/{employee_id}",
    response_model=SeveranceResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def calculate_severance(
    company_id: CompanyId,
    provider: DataProvider,
    calculator: Severance,
    employee_id: Annotated[UUID, Path()],
    payload: SeveranceRequest,
) -> SeveranceResponse:
    """Estimate severance pay for a termination date. Nothing is persisted."""
    profile = await provider.get_employee(employee_id)
    if profile.company_id != company_id:
        raise EmployeeNotFoundError(employee_id)

    detail = await calculator.calculate(employee_id, payload.termination_date)
    return SeveranceResponse.model_validate(detail)
