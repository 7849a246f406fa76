"""Payroll run services."""

from hrhub_payroll.services.adjustment_service import (
    AdjustmentService,
    ItemAdjustment,
    PayrollItemNotFoundError,
)
from hrhub_payroll.services.batch_service import BatchResult, PayrollBatchService, process_in_batches
from hrhub_payroll.services.commit_service import CommitService
from hrhub_payroll.services.payroll_run_service import PayrollRunService, RunPage
from hrhub_payroll.services.review_service import (
    AnomalySeverity,
    PayrollAnomaly,
    ReviewService,
    ReviewSummary,
)
from hrhub_payroll.services.state_machine import (
    InvalidTransitionError,
    PayrollRunStateMachine,
    PayrollRunStatus,
    PayrollRunType,
)

__all__ = [
    "AdjustmentService",
    "AnomalySeverity",
    "BatchResult",
    "CommitService",
    "InvalidTransitionError",
    "ItemAdjustment",
    "PayrollAnomaly",
    "PayrollBatchService",
    "PayrollItemNotFoundError",
    "PayrollRunService",
    "PayrollRunStateMachine",
    "PayrollRunStatus",
    "PayrollRunType",
    "ReviewService",
    "ReviewSummary",
    "RunPage",
    "process_in_batches",
]
