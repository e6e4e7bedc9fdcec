"""
Finance models.

Models:
    Party: Counterparty directory entry
    Category / CostCenter / Tag: Classification catalogs
    Transaction: Payable/receivable/transfer/adjustment
    Payment: Immutable settlement record (or reversal)
    BankAccount: Account that bank-moving payments go through
    Recurrence: Template materialized on a cadence
"""

from finance.models.bank_account import BankAccount, BankAccountType
from finance.models.classification import (
    CatalogStatus,
    Category,
    CategoryKind,
    CostCenter,
    Tag,
)
from finance.models.party import Party, PartyStatus
from finance.models.payment import Payment
from finance.models.recurrence import Recurrence
from finance.models.transaction import Transaction, TransactionQuerySet

__all__ = [
    "BankAccount",
    "BankAccountType",
    "CatalogStatus",
    "Category",
    "CategoryKind",
    "CostCenter",
    "Party",
    "PartyStatus",
    "Payment",
    "Recurrence",
    "Tag",
    "Transaction",
    "TransactionQuerySet",
]
