"""
Tests for finance model constraints, immutability and state transitions.
"""

from datetime import date

import pytest
from django.db import IntegrityError, transaction
from django_fsm import TransitionNotAllowed

from finance.exceptions import CrossStoreAccess, ImmutableRecordError
from finance.models import Payment, Recurrence
from finance.state_machines import PaymentMethod, RecurrenceStatus
from finance.tests.conftest import OTHER_STORE_ID
from finance.tests.factories import (
    BankAccountFactory,
    CategoryFactory,
    CostCenterFactory,
    PartyFactory,
    RecurrenceFactory,
    TagFactory,
    TransactionFactory,
)


@pytest.mark.django_db
class TestTransactionConstraints:
    def test_amount_must_be_positive(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            TransactionFactory(amount_cents=0)

    def test_paid_cannot_exceed_amount(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            TransactionFactory(amount_cents=10000, amount_paid_cents=10001)

    def test_paid_cannot_be_negative(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            TransactionFactory(amount_paid_cents=-1)

    def test_one_occurrence_per_recurrence_date(self):
        """A recurrence can materialize a given due date only once."""
        rent = RecurrenceFactory()
        TransactionFactory(recurrence=rent, due_date=date(2026, 1, 31))

        with pytest.raises(IntegrityError), transaction.atomic():
            TransactionFactory(recurrence=rent, due_date=date(2026, 1, 31))

    def test_manual_transactions_may_share_due_date(self):
        TransactionFactory(due_date=date(2026, 1, 31))
        TransactionFactory(due_date=date(2026, 1, 31))


@pytest.mark.django_db
class TestStoreOwnership:
    def test_ensure_store_passes_for_owner(self):
        txn = TransactionFactory()
        txn.ensure_store(txn.store_id)
        txn.ensure_store(str(txn.store_id))

    def test_ensure_store_rejects_other_store(self):
        txn = TransactionFactory()

        with pytest.raises(CrossStoreAccess) as exc_info:
            txn.ensure_store(OTHER_STORE_ID)

        assert exc_info.value.error_code == "CROSS_STORE_ACCESS"
        assert exc_info.value.details["record"] == "transaction"


@pytest.mark.django_db
class TestPaymentImmutability:
    def _payment(self):
        txn = TransactionFactory()
        return Payment.objects.create(
            transaction=txn,
            amount_cents=4000,
            currency="BRL",
            method=PaymentMethod.PIX,
            paid_on=date(2026, 1, 5),
        )

    def test_update_refused(self):
        payment = self._payment()
        payment.amount_cents = 1

        with pytest.raises(ImmutableRecordError):
            payment.save()

        payment = Payment.objects.get(id=payment.id)
        assert payment.amount_cents == 4000

    def test_delete_refused(self):
        payment = self._payment()

        with pytest.raises(ImmutableRecordError):
            payment.delete()

        assert Payment.objects.filter(id=payment.id).exists()

    def test_positive_row_cannot_reference_original(self):
        """Only negative rows are reversals."""
        original = self._payment()

        with pytest.raises(IntegrityError), transaction.atomic():
            Payment.objects.create(
                transaction=original.transaction,
                amount_cents=100,
                currency="BRL",
                method=PaymentMethod.PIX,
                paid_on=date(2026, 1, 6),
                reverses=original,
            )

    def test_zero_amount_rejected(self):
        txn = TransactionFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            Payment.objects.create(
                transaction=txn,
                amount_cents=0,
                currency="BRL",
                method=PaymentMethod.CASH,
                paid_on=date(2026, 1, 5),
            )


@pytest.mark.django_db
class TestRecurrenceStateMachine:
    def test_pause_and_resume(self):
        rent = RecurrenceFactory()

        rent.pause()
        assert rent.status == RecurrenceStatus.PAUSED

        rent.resume()
        assert rent.status == RecurrenceStatus.ACTIVE

    def test_finished_is_terminal(self):
        rent = RecurrenceFactory()
        rent.finish()

        with pytest.raises(TransitionNotAllowed):
            rent.resume()
        with pytest.raises(TransitionNotAllowed):
            rent.pause()

    def test_resume_requires_paused(self):
        rent = RecurrenceFactory()

        with pytest.raises(TransitionNotAllowed):
            rent.resume()

    def test_status_cannot_be_assigned_directly(self):
        rent = RecurrenceFactory()

        with pytest.raises(AttributeError):
            rent.status = RecurrenceStatus.FINISHED

    def test_day_of_month_range(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            RecurrenceFactory(day_of_month=32)

    def test_end_date_not_before_start(self):
        with pytest.raises(IntegrityError), transaction.atomic():
            RecurrenceFactory(start_date=date(2026, 3, 1), end_date=date(2026, 2, 1))

    def test_amount_view(self):
        rent = Recurrence(amount_cents=350000, currency="BRL")
        assert str(rent.amount) == "3500.00 BRL"


@pytest.mark.django_db
class TestCatalogConstraints:
    def test_category_unique_per_store_and_kind(self):
        CategoryFactory(name="Rent")

        with pytest.raises(IntegrityError), transaction.atomic():
            CategoryFactory(name="Rent")

    def test_same_category_name_in_other_store(self):
        CategoryFactory(name="Rent")
        CategoryFactory(name="Rent", store_id=OTHER_STORE_ID)

    def test_blank_cost_center_codes_not_unique(self):
        CostCenterFactory(code="")
        CostCenterFactory(code="")

    def test_cost_center_code_unique(self):
        CostCenterFactory(code="HALL")

        with pytest.raises(IntegrityError), transaction.atomic():
            CostCenterFactory(code="HALL")

    def test_tag_unique_per_store(self):
        TagFactory(name="vip")

        with pytest.raises(IntegrityError), transaction.atomic():
            TagFactory(name="vip")

    def test_party_str_prefers_trade_name(self):
        party = PartyFactory(name="Distribuidora Sul Ltda", trade_name="Sul")
        assert str(party) == "Sul"

    def test_bank_account_name_unique_per_store(self):
        BankAccountFactory(name="Main account")
        BankAccountFactory(name="Main account", store_id=OTHER_STORE_ID)

        with pytest.raises(IntegrityError), transaction.atomic():
            BankAccountFactory(name="Main account")

    def test_bank_account_accepts(self):
        any_method = BankAccountFactory()
        pix_only = BankAccountFactory(allowed_payment_methods=[PaymentMethod.PIX])

        assert any_method.accepts(PaymentMethod.DEPOSIT)
        assert pix_only.accepts(PaymentMethod.PIX)
        assert not pix_only.accepts(PaymentMethod.BANK_TRANSFER)
