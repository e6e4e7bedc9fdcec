"""
Payment allocation against ledger transactions.

PaymentAllocator is the only writer of Payment rows and of a
transaction's settlement fields (amount_paid_cents, paid_date and the
cached status). Every operation locks the transaction row first, so two
concurrent payments can never both observe the same outstanding balance.

Invariant maintained:
    amount_paid_cents == sum(payment.amount_cents for its payments)
    0 <= amount_paid_cents <= amount_cents

Usage:
    from finance.services import allocator

    payment = allocator.apply(
        txn.id,
        Money(4000, "BRL"),
        method=PaymentMethod.PIX,
        paid_on=date(2026, 1, 5),
        bank_account=main_account,
    )

    # Compensate (part of) a payment recorded by mistake
    allocator.reverse(payment.id, amount=Money(1000, "BRL"), note="Duplicate")
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction as db_transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from core.exceptions import ValidationError
from finance.exceptions import (
    BankAccountRequired,
    InvalidBankAccount,
    InvalidCurrency,
    InvalidReversal,
    OverpaymentRejected,
    PaymentKindMismatch,
    PaymentNotFound,
    TransactionCanceled,
)
from finance.models import Payment
from finance.services.ledger_service import LedgerService, validate_positive_amount
from finance.state_machines import BANK_MOVEMENT_METHODS, PaymentMethod

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser
    from django.db.models import QuerySet

    from finance.models import BankAccount, Transaction
    from finance.types import Money

logger = logging.getLogger(__name__)


class PaymentAllocator:
    """
    Service class for applying and reversing payments.

    All methods are static - no instance state is maintained.
    """

    @staticmethod
    def get_payment(payment_id: uuid.UUID | str, store_id: uuid.UUID | None = None) -> Payment:
        """
        Get a payment by ID.

        Raises:
            PaymentNotFound: If the payment doesn't exist
            CrossStoreAccess: If its transaction belongs to another store
        """
        try:
            payment = Payment.objects.select_related("transaction").get(id=payment_id)
        except (Payment.DoesNotExist, DjangoValidationError):
            raise PaymentNotFound(
                f"Payment {payment_id} not found",
                details={"payment_id": str(payment_id)},
            )
        if store_id is not None:
            payment.transaction.ensure_store(store_id)
        return payment

    @staticmethod
    def list_payments(
        transaction_id: uuid.UUID, store_id: uuid.UUID | None = None
    ) -> QuerySet[Payment]:
        """Payments and reversals of one transaction, oldest first."""
        txn = LedgerService.get(transaction_id, store_id)
        return txn.payments.select_related("reverses").order_by("paid_on", "created_at")

    @staticmethod
    def recompute_amount_paid(txn: Transaction) -> int:
        """Sum the transaction's payment rows in the database."""
        return txn.payments.aggregate(total=Coalesce(Sum("amount_cents"), 0))["total"]

    @staticmethod
    def _settle(txn: Transaction, paid_on: date | None) -> None:
        """
        Refresh settlement fields after a payment row was written.

        Sets paid_date when the balance reaches exactly zero, clears it
        otherwise, and rewrites the cached status.
        """
        txn.amount_paid_cents = PaymentAllocator.recompute_amount_paid(txn)
        txn.paid_date = paid_on if txn.is_settled else None
        txn.refresh_status()
        txn.save(update_fields=["amount_paid_cents", "paid_date", "status", "updated_at"])

    @staticmethod
    def _resolve_bank_account(
        txn: Transaction, method: str, bank_account: BankAccount | None
    ) -> BankAccount | None:
        """Pick and validate the account a payment on ``txn`` moves through."""
        account = bank_account or txn.bank_account
        if account is None:
            if method in BANK_MOVEMENT_METHODS:
                raise BankAccountRequired(
                    f"Payments by {method} must name a bank account",
                    details={"transaction_id": str(txn.id), "method": method},
                )
            return None

        account.ensure_store(txn.store_id)
        if not account.is_active:
            raise InvalidBankAccount(
                f"Bank account {account.id} is inactive",
                details={"bank_account_id": str(account.id), "status": account.status},
            )
        if not account.accepts(method):
            raise InvalidBankAccount(
                f"Bank account {account.id} does not accept {method} payments",
                error_code="PAYMENT_METHOD_NOT_ALLOWED",
                details={
                    "bank_account_id": str(account.id),
                    "method": method,
                    "allowed_payment_methods": account.allowed_payment_methods,
                },
            )
        return account

    # =========================================================================
    # Apply
    # =========================================================================

    @staticmethod
    def apply(
        transaction_id: uuid.UUID,
        amount: Money,
        method: PaymentMethod | str,
        paid_on: date,
        note: str = "",
        store_id: uuid.UUID | None = None,
        actor: AbstractBaseUser | None = None,
        expected_kind: str | None = None,
        bank_account: BankAccount | None = None,
    ) -> Payment:
        """
        Record a payment against a transaction.

        Partial payments are always allowed. The checks below run against
        the balance read under the row lock.

        Args:
            transaction_id: Transaction to settle
            amount: Positive Money in the transaction's currency
            method: pix, bank_transfer, cash, card or deposit
            paid_on: Date the money moved
            note: Optional free text
            store_id: When given, the transaction must belong to this store
            actor: Recording user
            expected_kind: Kind the caller believes it is settling
                (payable or receivable); must match the transaction's
            bank_account: Account the money moved through (default: the
                transaction's own account); required for pix,
                bank_transfer and deposit

        Returns:
            The created Payment

        Raises:
            InvalidAmount: amount <= 0
            TransactionNotFound / CrossStoreAccess: Bad reference
            TransactionCanceled: Transaction is canceled
            PaymentKindMismatch: expected_kind differs from the transaction's
            InvalidCurrency: Currency differs from the transaction's
            OverpaymentRejected: amount > outstanding balance
            BankAccountRequired: Bank-moving method without an account
            InvalidBankAccount: Account inactive or not accepting the method
            CrossStoreAccess: Account belongs to another store
        """
        validate_positive_amount(amount)
        if method not in PaymentMethod.values:
            raise ValidationError(
                f"Unknown payment method: {method!r}",
                error_code="INVALID_PAYMENT_METHOD",
                details={"method": method},
            )

        with db_transaction.atomic():
            txn = LedgerService.lock(transaction_id, store_id)

            if txn.is_canceled:
                raise TransactionCanceled(
                    f"Transaction {txn.id} is canceled and cannot receive payments",
                    details={"transaction_id": str(txn.id)},
                )
            if expected_kind and expected_kind != txn.kind:
                raise PaymentKindMismatch(
                    f"Payment targets a {expected_kind} but transaction {txn.id} "
                    f"is a {txn.kind}",
                    details={
                        "transaction_id": str(txn.id),
                        "expected_kind": expected_kind,
                        "kind": txn.kind,
                    },
                )
            if amount.currency != txn.currency:
                raise InvalidCurrency(
                    f"Payment currency {amount.currency} does not match "
                    f"transaction currency {txn.currency}",
                    details={
                        "transaction_id": str(txn.id),
                        "currency": amount.currency,
                        "transaction_currency": txn.currency,
                    },
                )

            account = PaymentAllocator._resolve_bank_account(txn, method, bank_account)

            outstanding = txn.amount_cents - txn.amount_paid_cents
            if amount.cents > outstanding:
                logger.warning(
                    "Overpayment rejected",
                    extra={
                        "transaction_id": str(txn.id),
                        "amount_cents": amount.cents,
                        "outstanding_cents": outstanding,
                    },
                )
                raise OverpaymentRejected(
                    transaction_id=txn.id,
                    amount_cents=amount.cents,
                    outstanding_cents=outstanding,
                )

            payment = Payment.objects.create(
                transaction=txn,
                amount_cents=amount.cents,
                currency=txn.currency,
                method=method,
                paid_on=paid_on,
                note=note,
                bank_account=account,
                recorded_by=actor,
            )
            PaymentAllocator._settle(txn, paid_on)

        logger.info(
            "Payment applied",
            extra={
                "payment_id": str(payment.id),
                "transaction_id": str(txn.id),
                "amount_cents": amount.cents,
                "amount_paid_cents": txn.amount_paid_cents,
                "status": txn.status,
                "bank_account_id": str(account.id) if account else None,
            },
        )
        return payment

    # =========================================================================
    # Reverse
    # =========================================================================

    @staticmethod
    def reverse(
        payment_id: uuid.UUID,
        amount: Money | None = None,
        note: str = "",
        reversed_on: date | None = None,
        store_id: uuid.UUID | None = None,
        actor: AbstractBaseUser | None = None,
    ) -> Payment:
        """
        Compensate a payment with a negative reversal row.

        The original row is never modified. A fully paid transaction is
        reopened when a reversal brings its balance back above zero.

        Args:
            payment_id: Payment to reverse
            amount: Positive Money to reverse (default: the unreversed rest)
            note: Reason for the reversal
            reversed_on: Date of the reversal (default: today)
            store_id: When given, the payment must belong to this store
            actor: Recording user

        Returns:
            The reversal Payment (negative amount)

        Raises:
            PaymentNotFound / CrossStoreAccess: Bad reference
            InvalidAmount: amount <= 0
            InvalidReversal: Target is a reversal, amount exceeds what is
                left to reverse, or amount_paid would leave [0, amount]
            TransactionCanceled: Transaction is canceled
        """
        original = PaymentAllocator.get_payment(payment_id, store_id)
        if amount is not None:
            validate_positive_amount(amount)

        with db_transaction.atomic():
            txn = LedgerService.lock(original.transaction_id)

            if original.is_reversal:
                raise InvalidReversal(
                    f"Payment {original.id} is itself a reversal",
                    details={"payment_id": str(original.id)},
                )
            if txn.is_canceled:
                raise TransactionCanceled(
                    f"Transaction {txn.id} is canceled",
                    details={"transaction_id": str(txn.id)},
                )

            already_reversed = -original.reversals.aggregate(
                total=Coalesce(Sum("amount_cents"), 0)
            )["total"]
            reversible = original.amount_cents - already_reversed
            reverse_cents = amount.cents if amount is not None else reversible

            if amount is not None and amount.currency != txn.currency:
                raise InvalidCurrency(
                    f"Reversal currency {amount.currency} does not match "
                    f"transaction currency {txn.currency}",
                    details={"payment_id": str(original.id), "currency": amount.currency},
                )

            new_paid = txn.amount_paid_cents - reverse_cents
            if (
                reverse_cents <= 0
                or reverse_cents > reversible
                or not 0 <= new_paid <= txn.amount_cents
            ):
                raise InvalidReversal(
                    f"Cannot reverse {reverse_cents} cents of payment {original.id}",
                    details={
                        "payment_id": str(original.id),
                        "amount_cents": reverse_cents,
                        "reversible_cents": reversible,
                        "amount_paid_cents": txn.amount_paid_cents,
                    },
                )

            reversal = Payment.objects.create(
                transaction=txn,
                amount_cents=-reverse_cents,
                currency=txn.currency,
                method=original.method,
                paid_on=reversed_on or timezone.localdate(),
                note=note,
                bank_account_id=original.bank_account_id,
                reverses=original,
                recorded_by=actor,
            )
            PaymentAllocator._settle(txn, txn.paid_date)

        logger.info(
            "Payment reversed",
            extra={
                "payment_id": str(original.id),
                "reversal_id": str(reversal.id),
                "transaction_id": str(txn.id),
                "amount_cents": reverse_cents,
                "amount_paid_cents": txn.amount_paid_cents,
            },
        )
        return reversal


# Singleton instance for convenient access
allocator = PaymentAllocator()
