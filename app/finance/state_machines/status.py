"""
Status derivation for ledger transactions.

derive_status() is the single source of truth for a transaction's status.
The persisted ``Transaction.status`` column is a cache of its result,
rewritten inside the same database transaction as every change that
affects it.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

from finance.state_machines.states import TransactionStatus, WorkflowFlag

TERMINAL_STATUSES = frozenset({TransactionStatus.PAID, TransactionStatus.CANCELED})


class StatusSubject(Protocol):
    """Attributes derive_status() reads; Transaction satisfies it."""

    amount_cents: int
    amount_paid_cents: int
    due_date: date
    workflow_flag: str

    @property
    def is_canceled(self) -> bool: ...


def derive_status(transaction: StatusSubject, as_of: date) -> TransactionStatus:
    """
    Compute a transaction's status at a given date.

    Pure function: reads only the transaction's fields, writes nothing.

    Rules, evaluated in order:
        1. canceled if explicitly canceled
        2. paid if amount_paid == amount
        3. overdue if unpaid and as_of > due_date (due date itself is not late)
        4. approved/scheduled if the workflow flag is set
        5. pending otherwise

    Args:
        transaction: Transaction (or any object with the same fields)
        as_of: Calendar date the status is evaluated at

    Returns:
        The derived TransactionStatus
    """
    if transaction.is_canceled:
        return TransactionStatus.CANCELED

    if transaction.amount_paid_cents == transaction.amount_cents:
        return TransactionStatus.PAID

    if as_of > transaction.due_date:
        return TransactionStatus.OVERDUE

    if transaction.workflow_flag == WorkflowFlag.APPROVED:
        return TransactionStatus.APPROVED
    if transaction.workflow_flag == WorkflowFlag.SCHEDULED:
        return TransactionStatus.SCHEDULED

    return TransactionStatus.PENDING


def days_overdue(transaction: StatusSubject, as_of: date) -> int:
    """Whole days past the due date at ``as_of`` (0 when not yet due)."""
    return max((as_of - transaction.due_date).days, 0)
