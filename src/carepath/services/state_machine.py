"""Invoice and shift state machines with transition validation."""

from __future__ import annotations

from carepath.enums import InvoiceStatus, ShiftStatus
from carepath.exceptions import InvalidTransitionError


class InvoiceStateMachine:
    """State machine for invoice status transitions.

    Allowed transitions:
    - draft → sent
    - sent → partially_paid | paid | overdue
    - partially_paid → paid | overdue
    - overdue → partially_paid | paid
    - any non-terminal → cancelled

    Payment reconciliation (``Invoice.recalculate_status``) moves directly to
    paid/partially_paid from whatever non-cancelled status the invoice holds;
    this table governs the explicit lifecycle operations.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        InvoiceStatus.DRAFT: [InvoiceStatus.SENT, InvoiceStatus.CANCELLED],
        InvoiceStatus.SENT: [
            InvoiceStatus.PARTIALLY_PAID,
            InvoiceStatus.PAID,
            InvoiceStatus.OVERDUE,
            InvoiceStatus.CANCELLED,
        ],
        InvoiceStatus.PARTIALLY_PAID: [
            InvoiceStatus.PAID,
            InvoiceStatus.OVERDUE,
            InvoiceStatus.CANCELLED,
        ],
        InvoiceStatus.OVERDUE: [
            InvoiceStatus.PARTIALLY_PAID,
            InvoiceStatus.PAID,
            InvoiceStatus.CANCELLED,
        ],
        InvoiceStatus.PAID: [],  # Terminal state
        InvoiceStatus.CANCELLED: [],  # Terminal state
    }

    # Statuses the overdue job may act on
    COLLECTIBLE = {
        InvoiceStatus.SENT,
        InvoiceStatus.PARTIALLY_PAID,
    }

    TERMINAL = {
        InvoiceStatus.PAID,
        InvoiceStatus.CANCELLED,
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(_label(from_status), _label(to_status))

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return status in cls.TERMINAL

    @classmethod
    def is_collectible(cls, status: str) -> bool:
        """Check if an invoice in this status is awaiting payment."""
        return status in cls.COLLECTIBLE

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])


class ShiftStateMachine:
    """State machine for shift status transitions.

    Allowed transitions:
    - scheduled → in_progress | cancelled | no_show
    - in_progress → completed | cancelled

    Completed, cancelled and no_show are terminal.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        ShiftStatus.SCHEDULED: [
            ShiftStatus.IN_PROGRESS,
            ShiftStatus.CANCELLED,
            ShiftStatus.NO_SHOW,
        ],
        ShiftStatus.IN_PROGRESS: [ShiftStatus.COMPLETED, ShiftStatus.CANCELLED],
        ShiftStatus.COMPLETED: [],
        ShiftStatus.CANCELLED: [],
        ShiftStatus.NO_SHOW: [],
    }

    # Statuses where the shift may still be reassigned or rescheduled
    SCHEDULE_MUTABLE = {ShiftStatus.SCHEDULED}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(_label(from_status), _label(to_status))

    @classmethod
    def can_modify_schedule(cls, status: str) -> bool:
        """Check if scheduled times and caregiver assignment can change."""
        return status in cls.SCHEDULE_MUTABLE

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])


def _label(status: str) -> str:
    return getattr(status, "value", status)
