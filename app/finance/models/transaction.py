"""
Transaction model - the ledger's central entity.

A Transaction is one payable, receivable, transfer or adjustment owned by
a store. Its amount is always positive; direction comes from its kind.
Status is derived (see finance.state_machines.derive_status) and the
``status`` column only caches the last derivation.

Usage:
    from finance.services import ledger

    txn = ledger.create(store_id=store_id, kind="receivable", ...)
    txn.outstanding          # Money
    txn.current_status()     # derived at today's date
"""

from __future__ import annotations

from datetime import date

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from finance.models.base import StoreScopedModel
from finance.state_machines import (
    TransactionKind,
    TransactionStatus,
    WorkflowFlag,
    derive_status,
)
from finance.types import Money


class TransactionQuerySet(models.QuerySet):
    """QuerySet helpers for ledger reads."""

    def for_store(self, store_id) -> TransactionQuerySet:
        return self.filter(store_id=store_id)

    def not_canceled(self) -> TransactionQuerySet:
        return self.filter(canceled_at__isnull=True)

    def open(self) -> TransactionQuerySet:
        """Transactions that are neither canceled nor fully paid."""
        return self.not_canceled().filter(amount_paid_cents__lt=F("amount_cents"))

    def overdue_at(self, as_of: date) -> TransactionQuerySet:
        """Open transactions whose due date is strictly before ``as_of``."""
        return self.open().filter(due_date__lt=as_of)


class Transaction(StoreScopedModel):
    """
    A payable, receivable, transfer or adjustment.

    Fields:
        kind: Direction of the transaction
        description / document_number / issue_date: Descriptive data
        amount_cents / currency: Positive amount fixed at creation
        due_date: Calendar date payment is due
        paid_date: Date of the payment that settled it in full
        counterparty / category / cost_center / tags: Optional classification
        bank_account: Account the transaction is expected to settle through
        attachment_url: Link to the scanned invoice or receipt
        amount_paid_cents: Sum of the transaction's payments (cached)
        status: Cached result of derive_status()
        workflow_flag: Pass-through approval step (approved/scheduled)
        recurrence: Recurrence that generated it (None for manual entries)
        canceled_at / canceled_by: Explicit cancellation
        created_by / approved_by: Audit actors

    Invariants (enforced by check constraints):
        amount_cents > 0
        0 <= amount_paid_cents <= amount_cents
    """

    # ==========================================================================
    # Description
    # ==========================================================================

    kind = models.CharField(
        max_length=12,
        choices=TransactionKind.choices,
        db_index=True,
        help_text="Direction of the transaction",
    )
    description = models.CharField(
        max_length=255,
        blank=True,
        help_text="Human-readable description",
    )
    document_number = models.CharField(
        max_length=60,
        blank=True,
        help_text="Invoice (NF) or other supporting document number",
    )
    issue_date = models.DateField(
        null=True,
        blank=True,
        help_text="Date the supporting document was issued",
    )
    attachment_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="Link to the supporting document file",
    )

    # ==========================================================================
    # Amounts and Dates
    # ==========================================================================

    amount_cents = models.PositiveBigIntegerField(
        help_text="Amount in cents (always positive)",
    )
    currency = models.CharField(
        max_length=3,
        help_text="ISO 4217 currency code, fixed at creation",
    )
    due_date = models.DateField(
        db_index=True,
        help_text="Date the amount is due",
    )
    paid_date = models.DateField(
        null=True,
        blank=True,
        help_text="Date of the payment that settled the transaction in full",
    )

    # ==========================================================================
    # Classification
    # ==========================================================================

    counterparty = models.ForeignKey(
        "finance.Party",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
        help_text="Customer or supplier on the other side",
    )
    category = models.ForeignKey(
        "finance.Category",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
        help_text="Reporting category",
    )
    cost_center = models.ForeignKey(
        "finance.CostCenter",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
        help_text="Reporting cost center",
    )
    tags = models.ManyToManyField(
        "finance.Tag",
        blank=True,
        related_name="transactions",
        help_text="Free-form labels",
    )
    bank_account = models.ForeignKey(
        "finance.BankAccount",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
        help_text="Default account for payments of this transaction",
    )

    # ==========================================================================
    # Settlement State
    # ==========================================================================

    amount_paid_cents = models.BigIntegerField(
        default=0,
        help_text="Sum of all payments and reversals in cents",
    )
    status = models.CharField(
        max_length=10,
        choices=TransactionStatus.choices,
        default=TransactionStatus.PENDING,
        db_index=True,
        help_text="Cached derived status, rewritten with every settlement change",
    )
    workflow_flag = models.CharField(
        max_length=10,
        choices=WorkflowFlag.choices,
        default=WorkflowFlag.NONE,
        blank=True,
        help_text="Approval step set by the external workflow",
    )
    canceled_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the transaction was canceled",
    )

    # ==========================================================================
    # Origin and Audit
    # ==========================================================================

    recurrence = models.ForeignKey(
        "finance.Recurrence",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="transactions",
        help_text="Recurrence that materialized this transaction",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="User who recorded the transaction",
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="User who set the workflow flag",
    )
    canceled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="User who canceled the transaction",
    )

    objects = TransactionQuerySet.as_manager()

    class Meta:
        db_table = "finance_transaction"
        ordering = ["due_date", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount_cents__gt=0),
                name="finance_txn_amount_positive",
            ),
            models.CheckConstraint(
                condition=Q(amount_paid_cents__gte=0)
                & Q(amount_paid_cents__lte=F("amount_cents")),
                name="finance_txn_paid_within_amount",
            ),
            # One materialized occurrence per recurrence cursor date
            models.UniqueConstraint(
                fields=["recurrence", "due_date"],
                condition=Q(recurrence__isnull=False),
                name="finance_txn_unique_recurrence_occurrence",
            ),
        ]
        indexes = [
            models.Index(
                fields=["store_id", "status", "due_date"],
                name="txn_store_status_due_idx",
            ),
            models.Index(
                fields=["store_id", "kind", "due_date"],
                name="txn_store_kind_due_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.get_kind_display()} {self.amount} due {self.due_date}"

    # ==========================================================================
    # Money Views
    # ==========================================================================

    @property
    def amount(self) -> Money:
        return Money(self.amount_cents, self.currency)

    @property
    def amount_paid(self) -> Money:
        return Money(self.amount_paid_cents, self.currency)

    @property
    def outstanding(self) -> Money:
        """amount - amount_paid (zero for canceled transactions)."""
        if self.is_canceled:
            return Money.zero(self.currency)
        return self.amount - self.amount_paid

    # ==========================================================================
    # State
    # ==========================================================================

    @property
    def is_canceled(self) -> bool:
        return self.canceled_at is not None

    @property
    def is_settled(self) -> bool:
        return self.amount_paid_cents == self.amount_cents

    @property
    def origin(self) -> str:
        """'manual' or 'recurrence'."""
        return "manual" if self.recurrence_id is None else "recurrence"

    def current_status(self, as_of: date | None = None) -> TransactionStatus:
        """Derive the status at ``as_of`` (default: today in TIME_ZONE)."""
        return derive_status(self, as_of or timezone.localdate())

    def refresh_status(self, as_of: date | None = None) -> bool:
        """
        Re-derive and cache the status on the instance.

        Does not save; callers persist it inside their atomic block.

        Returns:
            True if the cached value changed
        """
        new_status = self.current_status(as_of)
        changed = new_status != self.status
        self.status = new_status
        return changed
