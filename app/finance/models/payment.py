"""
Payment model - an immutable settlement record against one Transaction.

Payments are append-only. A positive row records money received or
paid; a reversal is a new negative row pointing at the payment it
compensates. Rows are never updated or deleted through the ORM instance
API.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.models import UUIDModel
from finance.exceptions import ImmutableRecordError
from finance.state_machines import PaymentMethod
from finance.types import Money


class Payment(UUIDModel):
    """
    A payment (or reversal) applied to a transaction.

    Fields:
        transaction: The settled transaction (owner; cascades on delete)
        amount_cents: Positive for payments, negative for reversals
        currency: Copied from the transaction
        method: pix, bank_transfer, cash, card or deposit
        paid_on: Calendar date the money moved
        note: Optional free text
        bank_account: Account the money moved through
        reverses: Original payment, for reversal rows
        recorded_by: User who recorded the row
    """

    transaction = models.ForeignKey(
        "finance.Transaction",
        on_delete=models.CASCADE,
        related_name="payments",
        help_text="Transaction this payment settles",
    )
    amount_cents = models.BigIntegerField(
        help_text="Amount in cents; negative for reversals",
    )
    currency = models.CharField(
        max_length=3,
        help_text="ISO 4217 currency code (same as the transaction)",
    )
    method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        help_text="How the money moved",
    )
    paid_on = models.DateField(
        help_text="Date the money moved",
    )
    note = models.TextField(
        blank=True,
        help_text="Optional free-text note",
    )
    bank_account = models.ForeignKey(
        "finance.BankAccount",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payments",
        help_text="Account the money moved through",
    )
    reverses = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reversals",
        help_text="Payment compensated by this reversal",
    )
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="User who recorded the payment",
    )

    class Meta:
        db_table = "finance_payment"
        ordering = ["paid_on", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=~Q(amount_cents=0),
                name="finance_payment_amount_nonzero",
            ),
            # Positive rows are payments, negative rows are reversals
            models.CheckConstraint(
                condition=(
                    Q(amount_cents__gt=0, reverses__isnull=True)
                    | Q(amount_cents__lt=0, reverses__isnull=False)
                ),
                name="finance_payment_sign_matches_kind",
            ),
        ]
        indexes = [
            models.Index(fields=["transaction", "paid_on"], name="payment_txn_paid_idx"),
        ]

    def __str__(self) -> str:
        label = "Reversal" if self.is_reversal else "Payment"
        return f"{label} {self.amount} on {self.paid_on}"

    @property
    def amount(self) -> Money:
        return Money(self.amount_cents, self.currency)

    @property
    def is_reversal(self) -> bool:
        return self.reverses_id is not None

    def save(self, *args, **kwargs):
        """Insert-only: saving an already persisted payment is refused."""
        if not self._state.adding:
            raise ImmutableRecordError(
                f"Payment {self.pk} is immutable; record a reversal instead",
                details={"payment_id": str(self.pk)},
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError(
            f"Payment {self.pk} cannot be deleted; record a reversal instead",
            details={"payment_id": str(self.pk)},
        )
