"""
State and kind enums for finance models.

These are Django TextChoices for database storage and admin integration.

State Machines Overview:

Transaction Status (cached copy of derive_status()):
    pending → approved/scheduled → paid (on full settlement)
    pending/approved/scheduled → overdue (as_of > due_date, unpaid)
    pending/approved/scheduled/overdue → canceled (explicit, unpaid)
    paid and canceled are terminal

Recurrence Status (django-fsm):
    active ⇄ paused
    active/paused → finished (end date reached or closed)
"""

from django.db import models


class TransactionKind(models.TextChoices):
    """
    Direction of a ledger transaction.

    The amount is always positive; the kind alone implies the direction.
    """

    PAYABLE = "payable", "Payable"
    RECEIVABLE = "receivable", "Receivable"
    TRANSFER = "transfer", "Transfer"
    ADJUSTMENT = "adjustment", "Adjustment"


class TransactionStatus(models.TextChoices):
    """
    Derived status of a transaction.

    Terminal states: PAID, CANCELED

    Evaluation order (first match wins):
        CANCELED → PAID → OVERDUE → APPROVED/SCHEDULED → PENDING
    """

    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    SCHEDULED = "scheduled", "Scheduled"
    PAID = "paid", "Paid"
    OVERDUE = "overdue", "Overdue"
    CANCELED = "canceled", "Canceled"


class WorkflowFlag(models.TextChoices):
    """
    Approval step recorded by an external workflow.

    Passed through to the derived status when nothing stronger applies.
    """

    NONE = "", "None"
    APPROVED = "approved", "Approved"
    SCHEDULED = "scheduled", "Scheduled"


class PaymentMethod(models.TextChoices):
    PIX = "pix", "PIX"
    BANK_TRANSFER = "bank_transfer", "Bank Transfer"
    CASH = "cash", "Cash"
    CARD = "card", "Card"
    DEPOSIT = "deposit", "Deposit"


# Methods that move money through a bank account; payments by these
# methods must name the account.
BANK_MOVEMENT_METHODS = frozenset(
    {PaymentMethod.PIX, PaymentMethod.BANK_TRANSFER, PaymentMethod.DEPOSIT}
)


class RecurrenceKind(models.TextChoices):
    """Kinds a recurrence may materialize (adjustments are never recurring)."""

    PAYABLE = "payable", "Payable"
    RECEIVABLE = "receivable", "Receivable"
    TRANSFER = "transfer", "Transfer"


class RecurrenceFrequency(models.TextChoices):
    WEEKLY = "weekly", "Weekly"
    MONTHLY = "monthly", "Monthly"
    YEARLY = "yearly", "Yearly"


class RecurrenceStatus(models.TextChoices):
    """
    States for the Recurrence lifecycle.

    Terminal states: FINISHED

    State Flow:
        ACTIVE → PAUSED (pause)
        PAUSED → ACTIVE (resume)
        ACTIVE → FINISHED (schedule exhausted past end_date)
        PAUSED → FINISHED (closed while paused)
    """

    ACTIVE = "active", "Active"
    PAUSED = "paused", "Paused"
    FINISHED = "finished", "Finished"
