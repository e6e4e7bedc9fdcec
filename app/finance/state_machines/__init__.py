"""
State machine enums and status derivation for finance models.
"""

from finance.state_machines.states import (
    BANK_MOVEMENT_METHODS,
    PaymentMethod,
    RecurrenceFrequency,
    RecurrenceKind,
    RecurrenceStatus,
    TransactionKind,
    TransactionStatus,
    WorkflowFlag,
)
from finance.state_machines.status import TERMINAL_STATUSES, days_overdue, derive_status

__all__ = [
    "BANK_MOVEMENT_METHODS",
    "PaymentMethod",
    "RecurrenceFrequency",
    "RecurrenceKind",
    "RecurrenceStatus",
    "TERMINAL_STATUSES",
    "TransactionKind",
    "TransactionStatus",
    "WorkflowFlag",
    "days_overdue",
    "derive_status",
]
