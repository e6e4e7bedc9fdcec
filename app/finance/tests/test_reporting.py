"""
Tests for ReportingService aggregations.
"""

from datetime import date

import pytest
from django.utils import timezone

from core.exceptions import ValidationError
from finance.services import allocator, reporting
from finance.services.reporting_service import aging_bucket
from finance.state_machines import PaymentMethod, TransactionKind, TransactionStatus
from finance.tests.conftest import OTHER_STORE_ID
from finance.tests.factories import (
    STORE_ID,
    BankAccountFactory,
    CategoryFactory,
    CostCenterFactory,
    TransactionFactory,
)
from finance.types import Money

AS_OF = date(2026, 4, 15)


class TestAgingBucket:
    @pytest.mark.parametrize(
        "days,label",
        [
            (0, "current"),
            (1, "1-30"),
            (30, "1-30"),
            (31, "31-60"),
            (60, "31-60"),
            (61, "61-90"),
            (90, "61-90"),
            (91, "90+"),
            (400, "90+"),
        ],
    )
    def test_boundaries(self, days, label):
        assert aging_bucket(days) == label

    def test_negative_days_rejected(self):
        with pytest.raises(ValueError):
            aging_bucket(-1)


@pytest.mark.django_db
class TestOutstanding:
    def test_store_total_excludes_paid_and_canceled(self):
        TransactionFactory(amount_cents=10000, amount_paid_cents=4000)
        TransactionFactory(amount_cents=5000)
        TransactionFactory(amount_cents=7000, amount_paid_cents=7000, status=TransactionStatus.PAID)
        TransactionFactory(amount_cents=9000, canceled_at=timezone.now())
        TransactionFactory(amount_cents=2000, store_id=OTHER_STORE_ID)

        rows = reporting.outstanding(STORE_ID)

        assert rows == [{"currency": "BRL", "outstanding_cents": 11000, "count": 2}]

    def test_grouped_by_category(self):
        rent = CategoryFactory(name="Rent")
        food = CategoryFactory(name="Food")
        TransactionFactory(category=rent, amount_cents=350000)
        TransactionFactory(category=food, amount_cents=1500)
        TransactionFactory(category=food, amount_cents=2500)

        rows = reporting.outstanding(STORE_ID, group_by="category")

        by_name = {row["group_name"]: row for row in rows}
        assert by_name["Rent"]["outstanding_cents"] == 350000
        assert by_name["Food"]["outstanding_cents"] == 4000
        assert by_name["Food"]["count"] == 2
        assert by_name["Food"]["group_id"] == str(food.id)

    def test_grouped_by_cost_center_keeps_unassigned(self):
        hall = CostCenterFactory(name="Hall")
        TransactionFactory(cost_center=hall, amount_cents=1000)
        TransactionFactory(amount_cents=500)

        rows = reporting.outstanding(STORE_ID, group_by="cost_center")

        by_id = {row["group_id"]: row["outstanding_cents"] for row in rows}
        assert by_id == {str(hall.id): 1000, None: 500}

    def test_currencies_never_mixed(self):
        TransactionFactory(amount_cents=1000, currency="BRL")
        TransactionFactory(amount_cents=300, currency="USD")

        rows = reporting.outstanding(STORE_ID)

        assert {row["currency"]: row["outstanding_cents"] for row in rows} == {
            "BRL": 1000,
            "USD": 300,
        }

    def test_kind_filter(self):
        TransactionFactory(kind=TransactionKind.PAYABLE, amount_cents=1000)
        TransactionFactory(kind=TransactionKind.RECEIVABLE, amount_cents=2000)

        rows = reporting.outstanding(STORE_ID, kind=TransactionKind.RECEIVABLE)

        assert rows[0]["outstanding_cents"] == 2000

    def test_unknown_grouping(self):
        with pytest.raises(ValidationError) as exc_info:
            reporting.outstanding(STORE_ID, group_by="counterparty")
        assert exc_info.value.error_code == "INVALID_GROUPING"


@pytest.mark.django_db
class TestAging:
    def test_buckets(self):
        TransactionFactory(due_date=AS_OF, amount_cents=100)
        TransactionFactory(due_date=date(2026, 4, 1), amount_cents=200)
        TransactionFactory(due_date=date(2026, 3, 1), amount_cents=300)
        TransactionFactory(due_date=date(2026, 1, 20), amount_cents=400)
        TransactionFactory(due_date=date(2025, 12, 1), amount_cents=500, amount_paid_cents=100)
        TransactionFactory(due_date=date(2026, 6, 1), amount_cents=600)

        report = reporting.aging(STORE_ID, as_of=AS_OF)

        assert report == {
            "BRL": {
                "current": 700,
                "1-30": 200,
                "31-60": 300,
                "61-90": 400,
                "90+": 400,
            }
        }

    def test_empty_store(self):
        assert reporting.aging(STORE_ID, as_of=AS_OF) == {}


@pytest.mark.django_db
class TestTotals:
    def test_totals_by_currency(self):
        TransactionFactory(amount_cents=10000, amount_paid_cents=2500)
        TransactionFactory(amount_cents=5000, amount_paid_cents=5000, status=TransactionStatus.PAID)
        TransactionFactory(amount_cents=800, currency="EUR")
        TransactionFactory(amount_cents=9999, canceled_at=timezone.now())

        totals = reporting.totals_by_currency(STORE_ID)

        assert totals == {
            "BRL": {
                "amount_cents": 15000,
                "paid_cents": 7500,
                "outstanding_cents": 7500,
                "count": 2,
            },
            "EUR": {
                "amount_cents": 800,
                "paid_cents": 0,
                "outstanding_cents": 800,
                "count": 1,
            },
        }

    def test_due_range(self):
        TransactionFactory(due_date=date(2026, 1, 5), amount_cents=100)
        TransactionFactory(due_date=date(2026, 2, 5), amount_cents=200)

        totals = reporting.totals_by_currency(
            STORE_ID, due_from=date(2026, 2, 1), due_to=date(2026, 2, 28)
        )

        assert totals["BRL"]["amount_cents"] == 200


@pytest.mark.django_db
class TestSummary:
    def test_summary(self):
        TransactionFactory(
            kind=TransactionKind.PAYABLE,
            amount_cents=10000,
            amount_paid_cents=4000,
            due_date=date(2026, 4, 1),
        )
        TransactionFactory(
            kind=TransactionKind.PAYABLE, amount_cents=3000, due_date=date(2026, 5, 1)
        )
        TransactionFactory(
            kind=TransactionKind.RECEIVABLE,
            amount_cents=20000,
            amount_paid_cents=20000,
            status=TransactionStatus.PAID,
            due_date=date(2026, 3, 1),
        )
        TransactionFactory(
            kind=TransactionKind.TRANSFER, amount_cents=50000, due_date=date(2026, 3, 1)
        )

        report = reporting.summary(STORE_ID, as_of=AS_OF)

        brl = report["BRL"]
        assert brl["payable"] == {"pending": 9000, "paid": 4000}
        assert brl["receivable"] == {"pending": 0, "paid": 20000}
        assert brl["total_paid"] == 24000
        # Overdue counts every open kind, transfers included
        assert brl["overdue"] == 6000 + 50000

    def test_summary_ignores_other_stores(self):
        TransactionFactory(store_id=OTHER_STORE_ID)
        assert reporting.summary(STORE_ID, as_of=AS_OF) == {}


@pytest.mark.django_db
class TestBankBalances:
    def test_receipts_add_and_payments_subtract(self):
        main = BankAccountFactory(name="Main")
        savings = BankAccountFactory(name="Savings")
        BankAccountFactory(store_id=OTHER_STORE_ID, name="Foreign")
        sale = TransactionFactory(kind=TransactionKind.RECEIVABLE, amount_cents=30000)
        invoice = TransactionFactory(kind=TransactionKind.PAYABLE, amount_cents=12000)

        allocator.apply(
            sale.id, Money(30000, "BRL"), PaymentMethod.PIX, date(2026, 4, 1), bank_account=main
        )
        allocator.apply(
            invoice.id,
            Money(12000, "BRL"),
            PaymentMethod.BANK_TRANSFER,
            date(2026, 4, 2),
            bank_account=main,
        )
        tip = TransactionFactory(kind=TransactionKind.RECEIVABLE, amount_cents=500)
        allocator.apply(tip.id, Money(500, "BRL"), PaymentMethod.CASH, date(2026, 4, 2))

        rows = reporting.bank_balances(STORE_ID, as_of=AS_OF)

        assert rows == [
            {"bank_account_id": str(main.id), "name": "Main", "balances": {"BRL": 18000}},
            {"bank_account_id": str(savings.id), "name": "Savings", "balances": {}},
        ]

    def test_reversal_nets_out(self):
        main = BankAccountFactory(name="Main")
        sale = TransactionFactory(kind=TransactionKind.RECEIVABLE, amount_cents=30000)
        payment = allocator.apply(
            sale.id, Money(30000, "BRL"), PaymentMethod.PIX, date(2026, 4, 1), bank_account=main
        )
        allocator.reverse(payment.id, amount=Money(10000, "BRL"), reversed_on=date(2026, 4, 3))

        rows = reporting.bank_balances(STORE_ID, as_of=AS_OF)

        assert rows[0]["balances"] == {"BRL": 20000}

    def test_payments_after_as_of_excluded(self):
        main = BankAccountFactory(name="Main")
        sale = TransactionFactory(kind=TransactionKind.RECEIVABLE, amount_cents=30000)
        allocator.apply(
            sale.id, Money(30000, "BRL"), PaymentMethod.PIX, date(2026, 4, 20), bank_account=main
        )

        assert reporting.bank_balances(STORE_ID, as_of=AS_OF)[0]["balances"] == {}
        assert reporting.bank_balances(STORE_ID, as_of=date(2026, 4, 20))[0]["balances"] == {
            "BRL": 30000
        }
