"""
Bank accounts of a store.

Payments made by a method that moves money through a bank (pix, bank
transfer, deposit) record the account they moved through. An account's
balance is the net of the payments recorded against it.
"""

from __future__ import annotations

from django.db import models

from finance.models.base import StoreScopedModel
from finance.models.classification import CatalogStatus
from finance.state_machines import PaymentMethod


class BankAccountType(models.TextChoices):
    CHECKING = "checking", "Checking"
    SAVINGS = "savings", "Savings"
    INVESTMENT = "investment", "Investment"
    PAYMENT = "payment", "Payment account"
    CASH = "cash", "Cash box"
    OTHER = "other", "Other"


class BankAccount(StoreScopedModel):
    """
    A bank (or cash) account owned by a store.

    Fields:
        name: Display name, unique per store (e.g. "Main account")
        bank_name / bank_code: Institution
        agency / account_number / account_digit: Account identification
        account_type: checking, savings, investment, payment, cash or other
        allowed_payment_methods: Methods this account accepts; empty
            means every method
        is_default: Preselected account for new payments
        status: active or inactive; inactive accounts take no payments
    """

    name = models.CharField(max_length=100, help_text="Account display name")
    bank_name = models.CharField(max_length=100, help_text="Bank name")
    bank_code = models.CharField(max_length=10, blank=True, help_text="Bank code")
    agency = models.CharField(max_length=20, help_text="Branch (agency) number")
    account_number = models.CharField(max_length=30, help_text="Account number")
    account_digit = models.CharField(max_length=5, blank=True, help_text="Check digit")
    account_type = models.CharField(
        max_length=12,
        choices=BankAccountType.choices,
        default=BankAccountType.CHECKING,
        help_text="Kind of account",
    )
    allowed_payment_methods = models.JSONField(
        default=list,
        blank=True,
        help_text="Payment methods accepted by this account (empty: all)",
    )
    is_default = models.BooleanField(default=False, help_text="Default account of the store")
    status = models.CharField(
        max_length=10,
        choices=CatalogStatus.choices,
        default=CatalogStatus.ACTIVE,
        help_text="Catalog status",
    )

    class Meta:
        db_table = "finance_bank_account"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["store_id", "name"],
                name="unique_bank_account_name_per_store",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.bank_name} {self.agency}/{self.account_number})"

    @property
    def is_active(self) -> bool:
        return self.status == CatalogStatus.ACTIVE

    def accepts(self, method: PaymentMethod | str) -> bool:
        """Whether payments by ``method`` may be recorded on this account."""
        return not self.allowed_payment_methods or method in self.allowed_payment_methods
