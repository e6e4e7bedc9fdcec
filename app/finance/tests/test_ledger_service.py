"""
Tests for LedgerService.

Tests cover:
- Transaction creation and input validation
- Store scoping of lookups and classifications
- Cancellation policy for manual and recurrence-generated transactions
- Workflow flags and the cached status refresh
- Filtered listing on the derived status
"""

from datetime import date

import pytest
from freezegun import freeze_time

from core.exceptions import ValidationError
from finance.exceptions import (
    AlreadySettled,
    CrossStoreAccess,
    HasPayments,
    InvalidAmount,
    InvalidCurrency,
    TransactionCanceled,
    TransactionNotFound,
)
from finance.models import Transaction
from finance.services import allocator, ledger, scheduler
from finance.state_machines import (
    PaymentMethod,
    TransactionKind,
    TransactionStatus,
    WorkflowFlag,
)
from finance.tests.conftest import OTHER_STORE_ID
from finance.tests.factories import (
    STORE_ID,
    BankAccountFactory,
    TagFactory,
    TransactionFactory,
)
from finance.types import Money


# =============================================================================
# Creation
# =============================================================================


@pytest.mark.django_db
class TestCreate:
    def test_create_pending_transaction(self, user, supplier, category, cost_center):
        """New transactions start pending with nothing paid."""
        tag = TagFactory(name="supplies")

        txn = ledger.create(
            store_id=STORE_ID,
            kind=TransactionKind.PAYABLE,
            amount=Money(10000, "brl"),
            due_date=date(2026, 1, 10),
            counterparty=supplier,
            category=category,
            cost_center=cost_center,
            tags=[tag],
            description="Beverages",
            document_number="NF-1234",
            created_by=user,
        )

        assert txn.status == TransactionStatus.PENDING
        assert txn.amount_paid_cents == 0
        assert txn.currency == "BRL"
        assert txn.origin == "manual"
        assert txn.paid_date is None
        assert list(txn.tags.all()) == [tag]
        assert txn.created_by == user

    @pytest.mark.parametrize("cents", [0, -100])
    def test_non_positive_amount_rejected(self, db, cents):
        with pytest.raises(InvalidAmount):
            ledger.create(
                store_id=STORE_ID,
                kind=TransactionKind.PAYABLE,
                amount=Money(cents, "BRL"),
                due_date=date(2026, 1, 10),
            )
        assert Transaction.objects.count() == 0

    def test_unsupported_currency_rejected(self, db):
        with pytest.raises(InvalidCurrency):
            ledger.create(
                store_id=STORE_ID,
                kind=TransactionKind.PAYABLE,
                amount=Money(100, "JPY"),
                due_date=date(2026, 1, 10),
            )

    def test_unknown_kind_rejected(self, db):
        with pytest.raises(ValidationError) as exc_info:
            ledger.create(
                store_id=STORE_ID,
                kind="loan",
                amount=Money(100, "BRL"),
                due_date=date(2026, 1, 10),
            )
        assert exc_info.value.error_code == "INVALID_KIND"

    def test_classification_from_other_store_rejected(self, foreign_category):
        with pytest.raises(CrossStoreAccess):
            ledger.create(
                store_id=STORE_ID,
                kind=TransactionKind.PAYABLE,
                amount=Money(100, "BRL"),
                due_date=date(2026, 1, 10),
                category=foreign_category,
            )
        assert Transaction.objects.count() == 0

    def test_bank_account_and_attachment(self, bank_account):
        txn = ledger.create(
            store_id=STORE_ID,
            kind=TransactionKind.PAYABLE,
            amount=Money(100, "BRL"),
            due_date=date(2026, 1, 10),
            attachment_url="https://files.example.com/nf-1234.pdf",
            bank_account=bank_account,
        )

        txn = Transaction.objects.get(id=txn.id)
        assert txn.bank_account_id == bank_account.id
        assert txn.attachment_url == "https://files.example.com/nf-1234.pdf"

    def test_bank_account_from_other_store_rejected(self, db):
        foreign = BankAccountFactory(store_id=OTHER_STORE_ID)

        with pytest.raises(CrossStoreAccess):
            ledger.create(
                store_id=STORE_ID,
                kind=TransactionKind.PAYABLE,
                amount=Money(100, "BRL"),
                due_date=date(2026, 1, 10),
                bank_account=foreign,
            )
        assert Transaction.objects.count() == 0


# =============================================================================
# Lookups
# =============================================================================


@pytest.mark.django_db
class TestGet:
    def test_get_in_store(self, ledger_txn):
        assert ledger.get(ledger_txn.id, STORE_ID) == ledger_txn

    def test_get_cross_store(self, ledger_txn):
        with pytest.raises(CrossStoreAccess):
            ledger.get(ledger_txn.id, OTHER_STORE_ID)

    def test_get_unknown(self, db):
        with pytest.raises(TransactionNotFound):
            ledger.get("00000000-0000-0000-0000-000000000000")

    def test_get_malformed_id(self, db):
        with pytest.raises(TransactionNotFound):
            ledger.get("not-a-uuid")


# =============================================================================
# Cancellation
# =============================================================================


@pytest.mark.django_db
class TestCancel:
    def test_cancel_unpaid(self, ledger_txn, user):
        txn = ledger.cancel(ledger_txn.id, store_id=STORE_ID, actor=user)

        assert txn.status == TransactionStatus.CANCELED
        assert txn.canceled_at is not None
        assert txn.canceled_by == user
        assert txn.outstanding.cents == 0

    def test_cancel_twice(self, ledger_txn):
        ledger.cancel(ledger_txn.id)

        with pytest.raises(TransactionCanceled):
            ledger.cancel(ledger_txn.id)

    def test_cancel_partially_paid_manual(self, ledger_txn):
        allocator.apply(ledger_txn.id, Money(4000, "BRL"), PaymentMethod.CASH, date(2026, 1, 5))

        with pytest.raises(AlreadySettled):
            ledger.cancel(ledger_txn.id)

    def test_cancel_paid(self, ledger_txn):
        allocator.apply(ledger_txn.id, Money(10000, "BRL"), PaymentMethod.CASH, date(2026, 1, 5))

        with pytest.raises(AlreadySettled):
            ledger.cancel(ledger_txn.id)

    def test_cancel_manual_after_full_reversal(self, ledger_txn):
        """A manual transaction whose payments net to zero can be canceled."""
        payment = allocator.apply(
            ledger_txn.id, Money(4000, "BRL"), PaymentMethod.CASH, date(2026, 1, 5)
        )
        allocator.reverse(payment.id, reversed_on=date(2026, 1, 6))

        txn = ledger.cancel(ledger_txn.id)
        assert txn.status == TransactionStatus.CANCELED

    def test_cancel_generated_with_payment_history(self, monthly_rent):
        """Generated transactions with any payment rows keep them attached."""
        [first, *_] = scheduler.advance(monthly_rent.id, as_of=date(2026, 1, 31))
        payment = allocator.apply(
            first.id, Money(1000, "BRL"), PaymentMethod.CASH, date(2026, 1, 31)
        )
        allocator.reverse(payment.id, reversed_on=date(2026, 1, 31))

        with pytest.raises(HasPayments):
            ledger.cancel(first.id)

    def test_cancel_generated_without_payments(self, monthly_rent):
        [first] = scheduler.advance(monthly_rent.id, as_of=date(2026, 1, 31))

        txn = ledger.cancel(first.id)
        assert txn.is_canceled

    def test_cancel_cross_store(self, ledger_txn):
        with pytest.raises(CrossStoreAccess):
            ledger.cancel(ledger_txn.id, store_id=OTHER_STORE_ID)

        ledger_txn = Transaction.objects.get(id=ledger_txn.id)
        assert not ledger_txn.is_canceled


# =============================================================================
# Workflow Flags
# =============================================================================


@pytest.mark.django_db
class TestWorkflowFlags:
    @freeze_time("2026-01-05 12:00:00")
    def test_approve(self, ledger_txn, user):
        txn = ledger.approve(ledger_txn.id, store_id=STORE_ID, actor=user)

        assert txn.workflow_flag == WorkflowFlag.APPROVED
        assert txn.status == TransactionStatus.APPROVED
        assert txn.approved_by == user

    def test_schedule(self, ledger_txn):
        txn = ledger.schedule(ledger_txn.id)

        assert txn.workflow_flag == WorkflowFlag.SCHEDULED
        assert txn.current_status(date(2026, 1, 5)) == TransactionStatus.SCHEDULED

    def test_approve_canceled(self, ledger_txn):
        ledger.cancel(ledger_txn.id)

        with pytest.raises(TransactionCanceled):
            ledger.approve(ledger_txn.id)

    def test_approve_paid(self, ledger_txn):
        allocator.apply(ledger_txn.id, Money(10000, "BRL"), PaymentMethod.CASH, date(2026, 1, 5))

        with pytest.raises(AlreadySettled):
            ledger.schedule(ledger_txn.id)


# =============================================================================
# Status
# =============================================================================


@pytest.mark.django_db
class TestStatus:
    def test_derive_status_has_no_side_effects(self, ledger_txn):
        assert ledger.derive_status(ledger_txn, date(2026, 2, 1)) == TransactionStatus.OVERDUE

        stored = Transaction.objects.get(id=ledger_txn.id)
        assert stored.status == TransactionStatus.PENDING

    def test_refresh_overdue(self, db):
        late = TransactionFactory(due_date=date(2026, 1, 1))
        on_time = TransactionFactory(due_date=date(2026, 1, 10))
        paid = TransactionFactory(
            due_date=date(2026, 1, 1),
            amount_paid_cents=10000,
            status=TransactionStatus.PAID,
        )

        updated = ledger.refresh_overdue(as_of=date(2026, 1, 10))

        assert updated == 1
        assert Transaction.objects.get(id=late.id).status == TransactionStatus.OVERDUE
        assert Transaction.objects.get(id=on_time.id).status == TransactionStatus.PENDING
        assert Transaction.objects.get(id=paid.id).status == TransactionStatus.PAID

    def test_refresh_overdue_is_idempotent(self, db):
        TransactionFactory(due_date=date(2026, 1, 1))

        assert ledger.refresh_overdue(as_of=date(2026, 1, 10)) == 1
        assert ledger.refresh_overdue(as_of=date(2026, 1, 10)) == 0


# =============================================================================
# Listing
# =============================================================================


@pytest.mark.django_db
class TestListTransactions:
    def test_scoped_to_store(self, db):
        mine = TransactionFactory()
        TransactionFactory(store_id=OTHER_STORE_ID)

        assert list(ledger.list_transactions(STORE_ID)) == [mine]

    def test_filter_by_derived_status(self, db):
        """Status filters use the derivation, not the cached column."""
        late = TransactionFactory(due_date=date(2026, 1, 1))
        upcoming = TransactionFactory(due_date=date(2026, 2, 1))
        paid = TransactionFactory(amount_paid_cents=10000)

        as_of = date(2026, 1, 15)
        overdue = ledger.list_transactions(STORE_ID, status="overdue", as_of=as_of)
        pending = ledger.list_transactions(STORE_ID, status="pending", as_of=as_of)
        settled = ledger.list_transactions(STORE_ID, status="paid", as_of=as_of)

        assert list(overdue) == [late]
        assert list(pending) == [upcoming]
        assert list(settled) == [paid]

    def test_filter_by_kind_and_due_range(self, db):
        TransactionFactory(kind=TransactionKind.PAYABLE, due_date=date(2026, 1, 5))
        wanted = TransactionFactory(kind=TransactionKind.RECEIVABLE, due_date=date(2026, 1, 15))
        TransactionFactory(kind=TransactionKind.RECEIVABLE, due_date=date(2026, 2, 15))

        result = ledger.list_transactions(
            STORE_ID,
            kind=TransactionKind.RECEIVABLE,
            due_from=date(2026, 1, 1),
            due_to=date(2026, 1, 31),
        )
        assert list(result) == [wanted]

    def test_filter_by_origin(self, monthly_rent):
        manual = TransactionFactory()
        [generated] = scheduler.advance(monthly_rent.id, as_of=date(2026, 1, 31))

        assert list(ledger.list_transactions(STORE_ID, origin="manual")) == [manual]
        assert list(ledger.list_transactions(STORE_ID, origin="recurrence")) == [generated]

    def test_unknown_status_rejected(self, db):
        with pytest.raises(ValidationError) as exc_info:
            list(ledger.list_transactions(STORE_ID, status="lost"))
        assert exc_info.value.error_code == "INVALID_STATUS"
