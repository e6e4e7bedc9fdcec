"""
End-to-end ledger workflows.

These tests drive the API and Celery tasks together the way a store
would use them over a few months: recurring rent materialized by the
daily job, partial payments, a reversal and the resulting reports.
"""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from django.urls import reverse
from rest_framework import status

from finance.models import Recurrence, Transaction
from finance.services import allocator, ledger, scheduler
from finance.services.ledger_service import LedgerService
from finance.state_machines import PaymentMethod, TransactionStatus
from finance.tasks import advance_due_recurrences, advance_single_recurrence
from finance.tests.factories import STORE_ID
from finance.types import Money


def url(name, **kwargs):
    return reverse(f"finance:{name}", kwargs={"store_id": STORE_ID, **kwargs})


@pytest.mark.django_db
class TestRentLifecycle:
    def test_rent_paid_in_installments(self, api_client):
        """Create rent, let the daily job catch up, pay and report."""
        response = api_client.post(
            url("recurrence-list"),
            {
                "kind": "payable",
                "description": "Rent",
                "amount_cents": 350000,
                "frequency": "monthly",
                "start_date": "2026-01-31",
            },
            format="json",
        )
        assert response.status_code == status.HTTP_201_CREATED
        recurrence_id = response.data["id"]

        # Daily scan queues the recurrence; run the queued task inline
        with patch("finance.tasks.advance_single_recurrence") as mock_task:
            mock_task.delay = MagicMock(
                side_effect=lambda rid, as_of: advance_single_recurrence(rid, as_of)
            )
            result = advance_due_recurrences("2026-04-15")
        assert result["queued_count"] == 1

        rent = list(Transaction.objects.filter(recurrence_id=recurrence_id).order_by("due_date"))
        assert [t.due_date for t in rent] == [
            date(2026, 1, 31),
            date(2026, 2, 28),
            date(2026, 3, 31),
            date(2026, 4, 30),
        ]

        # January paid in two parts
        january = rent[0]
        for cents in (200000, 150000):
            response = api_client.post(
                url("transaction-payments", pk=january.id),
                {"amount_cents": cents, "method": "cash", "paid_on": "2026-02-02"},
                format="json",
            )
            assert response.status_code == status.HTTP_201_CREATED

        response = api_client.get(url("transaction-detail", pk=january.id))
        assert response.data["status"] == "paid"
        assert response.data["paid_date"] == "2026-02-02"

        # February paid, then the transfer bounces
        february = rent[1]
        payment = allocator.apply(
            february.id, Money(350000, "BRL"), PaymentMethod.CASH, date(2026, 2, 27)
        )
        response = api_client.post(
            url("payment-reverse", pk=payment.id),
            {"note": "Returned by bank", "reversed_on": "2026-03-02"},
            format="json",
        )
        assert response.status_code == status.HTTP_201_CREATED

        response = api_client.get(
            url("transaction-list"), {"status": "overdue", "as_of": "2026-04-15"}
        )
        overdue_dates = [r["due_date"] for r in response.data["results"]]
        assert overdue_dates == ["2026-02-28", "2026-03-31"]

        response = api_client.get(url("report-aging"), {"as_of": "2026-04-15"})
        assert response.data["BRL"] == {
            "current": 350000,
            "1-30": 350000,
            "31-60": 350000,
            "61-90": 0,
            "90+": 0,
        }

        response = api_client.get(url("report-summary"), {"as_of": "2026-04-15"})
        assert response.data["BRL"]["payable"] == {"pending": 1050000, "paid": 350000}
        assert response.data["BRL"]["overdue"] == 700000

    def test_fully_paid_transaction_cannot_be_overpaid_or_canceled(self, api_client, ledger_txn):
        allocator.apply(ledger_txn.id, Money(10000, "BRL"), PaymentMethod.CASH, date(2026, 1, 5))

        response = api_client.post(
            url("transaction-payments", pk=ledger_txn.id),
            {"amount_cents": 1, "method": "cash"},
            format="json",
        )
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["details"]["outstanding_cents"] == 0

        response = api_client.post(url("transaction-cancel", pk=ledger_txn.id))
        assert response.status_code == status.HTTP_409_CONFLICT


@pytest.mark.django_db
class TestAtomicMaterialization:
    def test_failure_mid_advance_rolls_back(self, monthly_rent):
        """Either every occurrence and the cursor persist, or none do."""
        real_create = LedgerService.create
        calls = {"count": 0}

        def failing_create(**kwargs):
            calls["count"] += 1
            if calls["count"] == 3:
                raise RuntimeError("disk full")
            return real_create(**kwargs)

        with patch(
            "finance.services.recurrence_scheduler.LedgerService.create",
            side_effect=failing_create,
        ):
            with pytest.raises(RuntimeError):
                scheduler.advance(monthly_rent.id, as_of=date(2026, 4, 15))

        assert not Transaction.objects.filter(recurrence=monthly_rent).exists()
        assert Recurrence.objects.get(id=monthly_rent.id).next_due_date == date(2026, 1, 31)

        # A clean retry materializes everything exactly once
        created = scheduler.advance(monthly_rent.id, as_of=date(2026, 4, 15))
        assert len(created) == 4


@pytest.mark.django_db
class TestOverdueLifecycle:
    def test_overdue_then_paid(self, ledger_txn):
        ledger.refresh_overdue(as_of=date(2026, 1, 11))
        assert Transaction.objects.get(id=ledger_txn.id).status == TransactionStatus.OVERDUE

        allocator.apply(ledger_txn.id, Money(10000, "BRL"), PaymentMethod.CASH, date(2026, 1, 12))

        txn = Transaction.objects.get(id=ledger_txn.id)
        assert txn.status == TransactionStatus.PAID
        assert txn.current_status(date(2026, 1, 11)) == TransactionStatus.PAID
