"""API routes."""

from hrhub_payroll.api.routes.health import router as health_router
from hrhub_payroll.api.routes.payroll_runs import router as payroll_runs_router
from hrhub_payroll.api.routes.severance import router as severance_router

__all__ = ["health_router", "payroll_runs_router", "severance_router"]
