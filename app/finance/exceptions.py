"""
Finance-specific exceptions.

Every ledger failure is a structured, recoverable error inheriting from
FinanceError and from one of the core categories, which fixes its HTTP
status.

Exception Hierarchy:
    FinanceError (base)
    ├── InvalidAmount (validation)
    ├── InvalidCurrency (validation)
    ├── InvalidRecurrence (validation)
    ├── PaymentKindMismatch (validation)
    ├── BankAccountRequired (validation)
    ├── InvalidBankAccount (validation)
    ├── CrossStoreAccess (permission denied)
    ├── TransactionNotFound / PaymentNotFound / RecurrenceNotFound (not found)
    ├── OverpaymentRejected (conflict)
    ├── AlreadySettled (conflict)
    ├── HasPayments (conflict)
    ├── TransactionCanceled (conflict)
    ├── RecurrenceNotActive (conflict)
    ├── RecurrenceNotPaused (conflict)
    ├── InvalidReversal (conflict)
    ├── ImmutableRecordError (conflict)
    └── LockAcquisitionError (conflict)

Usage:
    from finance.exceptions import OverpaymentRejected

    if amount.cents > outstanding_cents:
        raise OverpaymentRejected(
            transaction_id=txn.id,
            amount_cents=amount.cents,
            outstanding_cents=outstanding_cents,
        )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

if TYPE_CHECKING:
    import uuid
    from typing import Any


class FinanceError(BaseApplicationError):
    """
    Base exception for all ledger operations.

    Example:
        try:
            allocator.apply(txn_id, amount, method, paid_on)
        except FinanceError as e:
            logger.warning(f"Payment rejected: {e}")
            return Response(e.to_dict(), status=e.http_status)
    """

    default_error_code: str = "FINANCE_ERROR"


# =============================================================================
# Validation Errors
# =============================================================================


class InvalidAmount(FinanceError, ValidationError):
    """Raised when an amount is zero, negative or otherwise unusable."""

    default_error_code: str = "INVALID_AMOUNT"


class InvalidCurrency(FinanceError, ValidationError):
    """
    Raised when a currency is unsupported or differs from the record's.

    Supported currencies come from settings.FINANCE_SUPPORTED_CURRENCIES.
    """

    default_error_code: str = "INVALID_CURRENCY"


class InvalidRecurrence(FinanceError, ValidationError):
    """Raised when a recurrence template has an inconsistent schedule."""

    default_error_code: str = "INVALID_RECURRENCE"


class PaymentKindMismatch(FinanceError, ValidationError):
    """
    Raised when a payment names a transaction kind other than its target's.

    A payment recorded as settling a payable must not land on a receivable
    and vice versa.
    """

    default_error_code: str = "PAYMENT_KIND_MISMATCH"


class BankAccountRequired(FinanceError, ValidationError):
    """Raised when a bank-moving payment names no bank account."""

    default_error_code: str = "BANK_ACCOUNT_REQUIRED"


class InvalidBankAccount(FinanceError, ValidationError):
    """
    Raised when a bank account cannot take a payment.

    The account is inactive, or its allowed_payment_methods exclude the
    payment's method.
    """

    default_error_code: str = "INVALID_BANK_ACCOUNT"


# =============================================================================
# Tenant Scope
# =============================================================================


class CrossStoreAccess(FinanceError, PermissionDeniedError):
    """
    Raised when an operation reaches a record owned by another store.

    Example:
        raise CrossStoreAccess(
            f"Transaction {txn.id} does not belong to store {store_id}",
            details={"transaction_id": str(txn.id), "store_id": str(store_id)},
        )
    """

    default_error_code: str = "CROSS_STORE_ACCESS"


# =============================================================================
# Lookups
# =============================================================================


class TransactionNotFound(FinanceError, NotFoundError):
    default_error_code: str = "TRANSACTION_NOT_FOUND"


class PaymentNotFound(FinanceError, NotFoundError):
    default_error_code: str = "PAYMENT_NOT_FOUND"


class RecurrenceNotFound(FinanceError, NotFoundError):
    default_error_code: str = "RECURRENCE_NOT_FOUND"


# =============================================================================
# State Conflicts
# =============================================================================


class OverpaymentRejected(FinanceError, ConflictError):
    """
    Raised when a payment exceeds the transaction's outstanding balance.

    Stores the transaction ID, attempted amount and outstanding balance
    for detailed error reporting.

    Attributes:
        transaction_id: UUID of the transaction
        amount_cents: Attempted payment in cents
        outstanding_cents: Outstanding balance at the time of the attempt
    """

    default_error_code: str = "OVERPAYMENT_REJECTED"

    def __init__(
        self,
        transaction_id: uuid.UUID,
        amount_cents: int,
        outstanding_cents: int,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.transaction_id = transaction_id
        self.amount_cents = amount_cents
        self.outstanding_cents = outstanding_cents

        message = (
            f"Payment of {amount_cents} cents exceeds outstanding balance "
            f"of {outstanding_cents} cents on transaction {transaction_id}"
        )
        full_details = {
            "transaction_id": str(transaction_id),
            "amount_cents": amount_cents,
            "outstanding_cents": outstanding_cents,
        }
        if details:
            full_details.update(details)

        super().__init__(message, error_code=error_code, details=full_details)


class AlreadySettled(FinanceError, ConflictError):
    """Raised when an operation needs an unsettled transaction."""

    default_error_code: str = "ALREADY_SETTLED"


class HasPayments(FinanceError, ConflictError):
    """
    Raised when canceling a recurrence-generated transaction with payments.

    Canceling it would leave the payments orphaned.
    """

    default_error_code: str = "HAS_PAYMENTS"


class TransactionCanceled(FinanceError, ConflictError):
    """Raised when a canceled transaction is asked to change."""

    default_error_code: str = "TRANSACTION_CANCELED"


class RecurrenceNotActive(FinanceError, ConflictError):
    """Raised when advancing or pausing a recurrence that is not active."""

    default_error_code: str = "RECURRENCE_NOT_ACTIVE"


class RecurrenceNotPaused(FinanceError, ConflictError):
    """Raised when resuming a recurrence that is not paused."""

    default_error_code: str = "RECURRENCE_NOT_PAUSED"


class InvalidReversal(FinanceError, ConflictError):
    """
    Raised when a reversal cannot be applied.

    Covers reversing a reversal, reversing more than the original payment
    and any reversal that would take amount_paid outside [0, amount].
    """

    default_error_code: str = "INVALID_REVERSAL"


class ImmutableRecordError(FinanceError, ConflictError):
    """Raised on an attempt to update or delete a persisted payment."""

    default_error_code: str = "IMMUTABLE_RECORD"


class LockAcquisitionError(FinanceError, ConflictError):
    """
    Raised when a distributed lock cannot be acquired.

    The caller should back off and retry later.
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"
