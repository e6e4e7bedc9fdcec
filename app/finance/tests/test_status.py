"""
Tests for derive_status() and days_overdue().

derive_status() reads plain attributes, so these tests use unsaved
Transaction instances and never touch the database.
"""

from datetime import date

import pytest
from django.utils import timezone

from finance.models import Transaction
from finance.state_machines import (
    TransactionStatus,
    WorkflowFlag,
    days_overdue,
    derive_status,
)

DUE = date(2026, 1, 10)


def make_txn(**kwargs) -> Transaction:
    values = {
        "amount_cents": 10000,
        "amount_paid_cents": 0,
        "currency": "BRL",
        "due_date": DUE,
        "workflow_flag": WorkflowFlag.NONE,
    }
    values.update(kwargs)
    return Transaction(**values)


class TestDeriveStatus:
    def test_pending_before_due(self):
        assert derive_status(make_txn(), date(2026, 1, 5)) == TransactionStatus.PENDING

    def test_due_date_itself_is_not_overdue(self):
        assert derive_status(make_txn(), DUE) == TransactionStatus.PENDING

    def test_overdue_day_after_due(self):
        assert derive_status(make_txn(), date(2026, 1, 11)) == TransactionStatus.OVERDUE

    def test_partial_payment_does_not_change_status(self):
        txn = make_txn(amount_paid_cents=4000)
        assert derive_status(txn, date(2026, 1, 5)) == TransactionStatus.PENDING
        assert derive_status(txn, date(2026, 1, 15)) == TransactionStatus.OVERDUE

    def test_paid_wins_over_overdue(self):
        txn = make_txn(amount_paid_cents=10000)
        assert derive_status(txn, date(2026, 3, 1)) == TransactionStatus.PAID

    def test_canceled_wins_over_everything(self):
        txn = make_txn(canceled_at=timezone.now(), workflow_flag=WorkflowFlag.APPROVED)
        assert derive_status(txn, date(2026, 3, 1)) == TransactionStatus.CANCELED

    @pytest.mark.parametrize(
        "flag,expected",
        [
            (WorkflowFlag.APPROVED, TransactionStatus.APPROVED),
            (WorkflowFlag.SCHEDULED, TransactionStatus.SCHEDULED),
        ],
    )
    def test_workflow_flag_passes_through(self, flag, expected):
        assert derive_status(make_txn(workflow_flag=flag), date(2026, 1, 5)) == expected

    def test_overdue_wins_over_workflow_flag(self):
        txn = make_txn(workflow_flag=WorkflowFlag.SCHEDULED)
        assert derive_status(txn, date(2026, 1, 20)) == TransactionStatus.OVERDUE

    def test_pure_function(self):
        """Deriving a status never changes the cached column."""
        txn = make_txn(status=TransactionStatus.PENDING)
        derive_status(txn, date(2026, 2, 1))
        assert txn.status == TransactionStatus.PENDING


class TestDaysOverdue:
    def test_not_yet_due(self):
        assert days_overdue(make_txn(), date(2026, 1, 1)) == 0

    def test_on_due_date(self):
        assert days_overdue(make_txn(), DUE) == 0

    def test_past_due(self):
        assert days_overdue(make_txn(), date(2026, 2, 9)) == 30


class TestTransactionHelpers:
    def test_outstanding(self):
        txn = make_txn(amount_paid_cents=2500)
        assert txn.outstanding.cents == 7500

    def test_canceled_outstanding_is_zero(self):
        txn = make_txn(amount_paid_cents=0, canceled_at=timezone.now())
        assert txn.outstanding.cents == 0

    def test_refresh_status_reports_change(self):
        txn = make_txn(status=TransactionStatus.PENDING)

        assert txn.refresh_status(date(2026, 1, 20)) is True
        assert txn.status == TransactionStatus.OVERDUE
        assert txn.refresh_status(date(2026, 1, 20)) is False

    def test_origin(self):
        assert make_txn().origin == "manual"
