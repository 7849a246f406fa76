"""Payroll run state machine with transition validation."""

from __future__ import annotations

from enum import Enum


class PayrollRunStatus(str, Enum):
    """Payroll run status values."""

    DRAFT = "DRAFT"
    CALCULATING = "CALCULATING"
    REVIEW = "REVIEW"
    APPROVED = "APPROVED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class PayrollRunType(str, Enum):
    """Payroll run types."""

    MONTHLY = "MONTHLY"
    BONUS = "BONUS"
    SEVERANCE = "SEVERANCE"
    SPECIAL = "SPECIAL"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PayrollRunStateMachine:
    """State machine for payroll run status transitions.

    Allowed transitions:
    - DRAFT → CALCULATING (calculation starts)
    - DRAFT → CANCELLED
    - CALCULATING → REVIEW (calculation committed)
    - CALCULATING → DRAFT (calculation failed)
    - REVIEW → DRAFT (send back for recalculation)
    - REVIEW → APPROVED
    - APPROVED → REVIEW (reopen)
    - APPROVED → PAID
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayrollRunStatus.DRAFT: [PayrollRunStatus.CALCULATING, PayrollRunStatus.CANCELLED],
        PayrollRunStatus.CALCULATING: [PayrollRunStatus.REVIEW, PayrollRunStatus.DRAFT],
        PayrollRunStatus.REVIEW: [PayrollRunStatus.DRAFT, PayrollRunStatus.APPROVED],
        PayrollRunStatus.APPROVED: [PayrollRunStatus.PAID, PayrollRunStatus.REVIEW],
        PayrollRunStatus.PAID: [],  # Terminal state
        PayrollRunStatus.CANCELLED: [],  # Terminal state
    }

    # Statuses where items may be edited by hand
    ADJUSTMENT_ALLOWED = {PayrollRunStatus.REVIEW}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def can_calculate(cls, status: str) -> bool:
        """Calculation only starts from DRAFT."""
        return cls.can_transition(status, PayrollRunStatus.CALCULATING)

    @classmethod
    def can_adjust(cls, status: str) -> bool:
        return status in cls.ADJUSTMENT_ALLOWED

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])
