"""Exception to HTTP response mapping."""

from uuid import UUID

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from hrhub_payroll.calculators import RateTableNotFoundError
from hrhub_payroll.providers import EmployeeNotFoundError, PayrollRunNotFoundError
from hrhub_payroll.services import InvalidTransitionError, PayrollItemNotFoundError


class CalculationFailedError(Exception):
    """A run calculation failed and the run was reverted to DRAFT."""

    def __init__(self, run_id: UUID):
        self.run_id = run_id
        super().__init__(f"Payroll calculation failed for run {run_id}")


def _error(status_code: int, detail: str, code: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, "code": code})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PayrollRunNotFoundError)
    @app.exception_handler(PayrollItemNotFoundError)
    @app.exception_handler(EmployeeNotFoundError)
    async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, str(exc), "NOT_FOUND")

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(
        request: Request, exc: InvalidTransitionError
    ) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc), "INVALID_TRANSITION")

    @app.exception_handler(RateTableNotFoundError)
    async def rate_table_handler(request: Request, exc: RateTableNotFoundError) -> JSONResponse:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc), "RATE_TABLE_NOT_FOUND")

    @app.exception_handler(CalculationFailedError)
    async def calculation_failed_handler(
        request: Request, exc: CalculationFailedError
    ) -> JSONResponse:
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Payroll calculation failed; run reverted to DRAFT",
            "CALCULATION_FAILED",
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred",
            "INTERNAL_ERROR",
        )
