"""
Transaction ledger service.

LedgerService owns the lifecycle of ledger transactions: creation,
cancellation, the pass-through workflow flags and status derivation.
Settlement is handled by PaymentAllocator and materialization of
recurring obligations by RecurrenceScheduler; both write transactions
through the same locking discipline used here.

Every mutation runs in ``transaction.atomic()`` and locks the target row
with ``select_for_update()``, so concurrent operations on one
transaction are serialized while different transactions proceed in
parallel.

Usage:
    from finance.services import ledger
    from finance.types import Money

    txn = ledger.create(
        store_id=store_id,
        kind=TransactionKind.PAYABLE,
        amount=Money(350000, "BRL"),
        due_date=date(2026, 2, 5),
        description="February rent",
    )
    ledger.approve(txn.id, store_id=store_id, actor=request.user)
    ledger.cancel(txn.id, store_id=store_id, actor=request.user)
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import date
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction as db_transaction
from django.db.models import F, Q
from django.utils import timezone

from core.exceptions import ValidationError
from finance.exceptions import (
    AlreadySettled,
    HasPayments,
    InvalidAmount,
    InvalidCurrency,
    TransactionCanceled,
    TransactionNotFound,
)
from finance.models import Transaction
from finance.state_machines import (
    TransactionKind,
    TransactionStatus,
    WorkflowFlag,
    derive_status,
)

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser

    from finance.models import BankAccount, Category, CostCenter, Party, Recurrence, Tag
    from finance.models.transaction import TransactionQuerySet
    from finance.types import Money

logger = logging.getLogger(__name__)


# =============================================================================
# Input Normalization
# =============================================================================


def normalize_currency(currency: str | None) -> str:
    """
    Upper-case and validate a currency against FINANCE_SUPPORTED_CURRENCIES.

    Args:
        currency: ISO 4217 code; None means FINANCE_DEFAULT_CURRENCY

    Returns:
        The normalized code

    Raises:
        InvalidCurrency: If the code is not supported
    """
    code = (currency or settings.FINANCE_DEFAULT_CURRENCY).strip().upper()
    supported = [c.upper() for c in settings.FINANCE_SUPPORTED_CURRENCIES]
    if code not in supported:
        raise InvalidCurrency(
            f"Currency {code!r} is not supported",
            details={"currency": code, "supported": supported},
        )
    return code


def validate_positive_amount(amount: Money) -> None:
    """Raise InvalidAmount unless ``amount`` is strictly positive."""
    if not amount.is_positive:
        raise InvalidAmount(
            f"Amount must be positive, got {amount.cents} cents",
            details={"amount_cents": amount.cents},
        )


def status_filter(status: str, as_of: date) -> Q:
    """
    Build a Q matching transactions whose derived status is ``status``.

    Mirrors derive_status() rule by rule so filtering in the database
    agrees with the status computed on read.
    """
    canceled = Q(canceled_at__isnull=False)
    paid = Q(amount_paid_cents=F("amount_cents"))
    overdue = Q(due_date__lt=as_of)

    if status == TransactionStatus.CANCELED:
        return canceled
    if status == TransactionStatus.PAID:
        return ~canceled & paid
    if status == TransactionStatus.OVERDUE:
        return ~canceled & ~paid & overdue
    if status == TransactionStatus.APPROVED:
        return ~canceled & ~paid & ~overdue & Q(workflow_flag=WorkflowFlag.APPROVED)
    if status == TransactionStatus.SCHEDULED:
        return ~canceled & ~paid & ~overdue & Q(workflow_flag=WorkflowFlag.SCHEDULED)
    if status == TransactionStatus.PENDING:
        return ~canceled & ~paid & ~overdue & Q(workflow_flag=WorkflowFlag.NONE)

    raise ValidationError(
        f"Unknown transaction status: {status!r}",
        error_code="INVALID_STATUS",
        details={"status": status},
    )


class LedgerService:
    """
    Service class for transaction lifecycle operations.

    Key features:
    - Tenant scope: every lookup can be pinned to a store
    - Per-row locking for every mutation
    - Cached status rewritten in the same database transaction

    All methods are static - no instance state is maintained.
    """

    # =========================================================================
    # Lookups
    # =========================================================================

    @staticmethod
    def get(transaction_id: uuid.UUID | str, store_id: uuid.UUID | None = None) -> Transaction:
        """
        Get a transaction by ID.

        Args:
            transaction_id: UUID of the transaction
            store_id: When given, the transaction must belong to this store

        Raises:
            TransactionNotFound: If the transaction doesn't exist
            CrossStoreAccess: If it belongs to another store
        """
        try:
            txn = Transaction.objects.get(id=transaction_id)
        except (Transaction.DoesNotExist, DjangoValidationError):
            raise TransactionNotFound(
                f"Transaction {transaction_id} not found",
                details={"transaction_id": str(transaction_id)},
            )
        if store_id is not None:
            txn.ensure_store(store_id)
        return txn

    @staticmethod
    def lock(transaction_id: uuid.UUID | str, store_id: uuid.UUID | None = None) -> Transaction:
        """
        Fetch a transaction with a row lock held until the atomic block ends.

        Must be called inside ``transaction.atomic()``.
        """
        try:
            txn = Transaction.objects.select_for_update().get(id=transaction_id)
        except (Transaction.DoesNotExist, DjangoValidationError):
            raise TransactionNotFound(
                f"Transaction {transaction_id} not found",
                details={"transaction_id": str(transaction_id)},
            )
        if store_id is not None:
            txn.ensure_store(store_id)
        return txn

    @staticmethod
    def list_transactions(
        store_id: uuid.UUID,
        kind: str | None = None,
        status: str | None = None,
        due_from: date | None = None,
        due_to: date | None = None,
        counterparty_id: uuid.UUID | None = None,
        category_id: uuid.UUID | None = None,
        cost_center_id: uuid.UUID | None = None,
        origin: str | None = None,
        as_of: date | None = None,
    ) -> TransactionQuerySet:
        """
        Filtered transactions of one store, ordered by due date.

        ``status`` filters on the derived status at ``as_of`` (default
        today), not on the cached column.
        """
        queryset = Transaction.objects.for_store(store_id).select_related(
            "counterparty", "category", "cost_center"
        )
        if kind:
            queryset = queryset.filter(kind=kind)
        if status:
            queryset = queryset.filter(status_filter(status, as_of or timezone.localdate()))
        if due_from:
            queryset = queryset.filter(due_date__gte=due_from)
        if due_to:
            queryset = queryset.filter(due_date__lte=due_to)
        if counterparty_id:
            queryset = queryset.filter(counterparty_id=counterparty_id)
        if category_id:
            queryset = queryset.filter(category_id=category_id)
        if cost_center_id:
            queryset = queryset.filter(cost_center_id=cost_center_id)
        if origin == "manual":
            queryset = queryset.filter(recurrence__isnull=True)
        elif origin == "recurrence":
            queryset = queryset.filter(recurrence__isnull=False)
        return queryset.prefetch_related("tags").order_by("due_date", "created_at")

    # =========================================================================
    # Status
    # =========================================================================

    @staticmethod
    def derive_status(txn: Transaction, as_of: date | None = None) -> TransactionStatus:
        """Derive the status of ``txn`` at ``as_of`` (default today). No side effects."""
        return derive_status(txn, as_of or timezone.localdate())

    # =========================================================================
    # Creation
    # =========================================================================

    @staticmethod
    def create(
        store_id: uuid.UUID,
        kind: TransactionKind | str,
        amount: Money,
        due_date: date,
        counterparty: Party | None = None,
        category: Category | None = None,
        cost_center: CostCenter | None = None,
        tags: Iterable[Tag] = (),
        description: str = "",
        document_number: str = "",
        issue_date: date | None = None,
        attachment_url: str = "",
        bank_account: BankAccount | None = None,
        recurrence: Recurrence | None = None,
        created_by: AbstractBaseUser | None = None,
    ) -> Transaction:
        """
        Record a new transaction in ``pending`` status.

        Args:
            store_id: Owning store
            kind: payable, receivable, transfer or adjustment
            amount: Positive Money; its currency becomes the transaction's
            due_date: Calendar due date
            counterparty / category / cost_center / tags: Optional
                classification, all owned by the same store
            description / document_number / issue_date / attachment_url:
                Descriptive data
            bank_account: Default account for its payments (same store)
            recurrence: Generating recurrence (None for manual entries)
            created_by: Recording user

        Returns:
            The created Transaction

        Raises:
            InvalidAmount: If amount <= 0
            InvalidCurrency: If the currency is not supported
            CrossStoreAccess: If a classification belongs to another store
            ValidationError: If kind is unknown
        """
        if kind not in TransactionKind.values:
            raise ValidationError(
                f"Unknown transaction kind: {kind!r}",
                error_code="INVALID_KIND",
                details={"kind": kind},
            )
        validate_positive_amount(amount)
        currency = normalize_currency(amount.currency)

        tags = list(tags)
        for related in (counterparty, category, cost_center, bank_account, recurrence, *tags):
            if related is not None:
                related.ensure_store(store_id)

        with db_transaction.atomic():
            txn = Transaction.objects.create(
                store_id=store_id,
                kind=kind,
                amount_cents=amount.cents,
                currency=currency,
                due_date=due_date,
                counterparty=counterparty,
                category=category,
                cost_center=cost_center,
                description=description,
                document_number=document_number,
                issue_date=issue_date,
                attachment_url=attachment_url,
                bank_account=bank_account,
                recurrence=recurrence,
                created_by=created_by,
                status=TransactionStatus.PENDING,
            )
            if tags:
                txn.tags.set(tags)

        logger.info(
            "Transaction created",
            extra={
                "transaction_id": str(txn.id),
                "store_id": str(store_id),
                "kind": kind,
                "amount_cents": amount.cents,
                "currency": currency,
                "due_date": due_date.isoformat(),
                "origin": txn.origin,
            },
        )
        return txn

    # =========================================================================
    # Cancellation
    # =========================================================================

    @staticmethod
    def cancel(
        transaction_id: uuid.UUID,
        store_id: uuid.UUID | None = None,
        actor: AbstractBaseUser | None = None,
    ) -> Transaction:
        """
        Cancel an unsettled transaction. Canceled is terminal.

        Policy:
            manual: only while amount_paid == 0
            recurrence-generated: only while it has no payment rows at all,
                so no payment is ever left orphaned

        Raises:
            TransactionNotFound: Unknown id
            CrossStoreAccess: Transaction belongs to another store
            TransactionCanceled: Already canceled
            AlreadySettled: Fully paid, or a manual transaction with payments
            HasPayments: Recurrence-generated transaction with payments
        """
        with db_transaction.atomic():
            txn = LedgerService.lock(transaction_id, store_id)

            if txn.is_canceled:
                raise TransactionCanceled(
                    f"Transaction {txn.id} is already canceled",
                    details={"transaction_id": str(txn.id)},
                )
            if txn.is_settled:
                raise AlreadySettled(
                    f"Transaction {txn.id} is fully paid and cannot be canceled",
                    details={"transaction_id": str(txn.id)},
                )
            if txn.recurrence_id is not None:
                if txn.payments.exists():
                    raise HasPayments(
                        f"Transaction {txn.id} has payments and cannot be canceled",
                        details={
                            "transaction_id": str(txn.id),
                            "amount_paid_cents": txn.amount_paid_cents,
                        },
                    )
            elif txn.amount_paid_cents != 0:
                raise AlreadySettled(
                    f"Transaction {txn.id} is partially paid and cannot be canceled",
                    details={
                        "transaction_id": str(txn.id),
                        "amount_paid_cents": txn.amount_paid_cents,
                    },
                )

            txn.canceled_at = timezone.now()
            txn.canceled_by = actor
            txn.status = TransactionStatus.CANCELED
            txn.save(update_fields=["canceled_at", "canceled_by", "status", "updated_at"])

        logger.info(
            "Transaction canceled",
            extra={"transaction_id": str(txn.id), "store_id": str(txn.store_id)},
        )
        return txn

    # =========================================================================
    # Workflow Flags
    # =========================================================================

    @staticmethod
    def approve(
        transaction_id: uuid.UUID,
        store_id: uuid.UUID | None = None,
        actor: AbstractBaseUser | None = None,
    ) -> Transaction:
        """Record an external approval (status ``approved`` until due or paid)."""
        return LedgerService._set_workflow_flag(
            transaction_id, WorkflowFlag.APPROVED, store_id, actor
        )

    @staticmethod
    def schedule(
        transaction_id: uuid.UUID,
        store_id: uuid.UUID | None = None,
        actor: AbstractBaseUser | None = None,
    ) -> Transaction:
        """Record that the payment has been scheduled with the bank."""
        return LedgerService._set_workflow_flag(
            transaction_id, WorkflowFlag.SCHEDULED, store_id, actor
        )

    @staticmethod
    def _set_workflow_flag(
        transaction_id: uuid.UUID,
        flag: WorkflowFlag,
        store_id: uuid.UUID | None,
        actor: AbstractBaseUser | None,
    ) -> Transaction:
        with db_transaction.atomic():
            txn = LedgerService.lock(transaction_id, store_id)

            if txn.is_canceled:
                raise TransactionCanceled(
                    f"Transaction {txn.id} is canceled",
                    details={"transaction_id": str(txn.id)},
                )
            if txn.is_settled:
                raise AlreadySettled(
                    f"Transaction {txn.id} is already paid",
                    details={"transaction_id": str(txn.id)},
                )

            txn.workflow_flag = flag
            txn.approved_by = actor
            txn.refresh_status()
            txn.save(update_fields=["workflow_flag", "approved_by", "status", "updated_at"])

        logger.info(
            "Transaction workflow flag set",
            extra={"transaction_id": str(txn.id), "workflow_flag": flag},
        )
        return txn

    # =========================================================================
    # Cached Status Maintenance
    # =========================================================================

    @staticmethod
    def refresh_overdue(as_of: date | None = None, batch_size: int = 500) -> int:
        """
        Rewrite the cached status of open transactions that became overdue.

        Each row is locked and re-derived individually so a concurrent
        payment is never overwritten with a stale status.

        Returns:
            Number of rows whose cached status changed
        """
        as_of = as_of or timezone.localdate()
        candidate_ids = list(
            Transaction.objects.overdue_at(as_of)
            .exclude(status=TransactionStatus.OVERDUE)
            .order_by("id")
            .values_list("id", flat=True)[:batch_size]
        )

        updated = 0
        for txn_id in candidate_ids:
            with db_transaction.atomic():
                txn = Transaction.objects.select_for_update().get(id=txn_id)
                if txn.refresh_status(as_of):
                    txn.save(update_fields=["status", "updated_at"])
                    updated += 1

        logger.info(
            f"Overdue refresh complete: {updated} transactions updated",
            extra={"as_of": as_of.isoformat(), "updated": updated},
        )
        return updated


# Singleton instance for convenient access
ledger = LedgerService()
