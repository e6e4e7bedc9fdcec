"""
Read-only reporting over the ledger.

ReportingService never writes. Every aggregation is grouped by currency
(the ledger does no conversion) and classifies transactions with the same
rules as derive_status(), evaluated at the ``as_of`` date of the query.

Reports:
    outstanding: open balance per store, category or cost center
    aging: open balance per days-overdue bucket
    totals_by_currency: amount, paid and outstanding totals
    summary: payable/receivable pending and paid, overdue and total paid
    bank_balances: net of the payments recorded on each bank account

Usage:
    from finance.services import reporting

    reporting.aging(store_id, as_of=date(2026, 3, 1))
    # {"BRL": {"current": 10000, "1-30": 0, "31-60": 5000, "61-90": 0, "90+": 0}}
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import date
from typing import TYPE_CHECKING, Any

from django.db.models import BigIntegerField, Case, Count, F, Sum, Value, When
from django.utils import timezone

from core.exceptions import ValidationError
from finance.models import BankAccount, Payment, Transaction
from finance.state_machines import TransactionKind, days_overdue

if TYPE_CHECKING:
    from finance.models.transaction import TransactionQuerySet


# =============================================================================
# Constants
# =============================================================================

# (label, lowest days overdue, highest days overdue or None for open-ended)
AGING_BUCKETS: tuple[tuple[str, int, int | None], ...] = (
    ("current", 0, 0),
    ("1-30", 1, 30),
    ("31-60", 31, 60),
    ("61-90", 61, 90),
    ("90+", 91, None),
)

GROUP_FIELDS = {
    "store": None,
    "category": ("category_id", "category__name"),
    "cost_center": ("cost_center_id", "cost_center__name"),
}


def aging_bucket(days: int) -> str:
    """Return the bucket label for a number of days overdue."""
    for label, low, high in AGING_BUCKETS:
        if days >= low and (high is None or days <= high):
            return label
    raise ValueError(f"days overdue must be >= 0, got {days}")


class ReportingService:
    """
    Service class for ledger aggregations.

    All methods are static - no instance state is maintained.
    """

    @staticmethod
    def _base(
        store_id: uuid.UUID,
        kind: str | None = None,
        due_from: date | None = None,
        due_to: date | None = None,
    ) -> TransactionQuerySet:
        queryset = Transaction.objects.for_store(store_id).not_canceled()
        if kind:
            queryset = queryset.filter(kind=kind)
        if due_from:
            queryset = queryset.filter(due_date__gte=due_from)
        if due_to:
            queryset = queryset.filter(due_date__lte=due_to)
        return queryset

    # =========================================================================
    # Outstanding Balance
    # =========================================================================

    @staticmethod
    def outstanding(
        store_id: uuid.UUID,
        group_by: str = "store",
        kind: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Open balance (amount - amount_paid) of unsettled transactions.

        Args:
            store_id: Store to report on
            group_by: "store", "category" or "cost_center"
            kind: Optional transaction kind filter

        Returns:
            One row per group and currency:
            {"group_id", "group_name", "currency", "outstanding_cents", "count"}
            (group keys are omitted when grouping by store)
        """
        if group_by not in GROUP_FIELDS:
            raise ValidationError(
                f"Unknown grouping: {group_by!r}",
                error_code="INVALID_GROUPING",
                details={"group_by": group_by, "allowed": list(GROUP_FIELDS)},
            )

        fields = GROUP_FIELDS[group_by] or ()
        rows = (
            ReportingService._base(store_id, kind)
            .open()
            .values(*fields, "currency")
            .annotate(
                outstanding_cents=Sum(F("amount_cents") - F("amount_paid_cents")),
                count=Count("id"),
            )
            .order_by(*fields, "currency")
        )

        results = []
        for row in rows:
            entry: dict[str, Any] = {
                "currency": row["currency"],
                "outstanding_cents": row["outstanding_cents"],
                "count": row["count"],
            }
            if fields:
                id_field, name_field = fields
                group_id = row[id_field]
                entry["group_id"] = str(group_id) if group_id else None
                entry["group_name"] = row[name_field]
            results.append(entry)
        return results

    # =========================================================================
    # Aging
    # =========================================================================

    @staticmethod
    def aging(
        store_id: uuid.UUID,
        as_of: date | None = None,
        kind: str | None = None,
    ) -> dict[str, dict[str, int]]:
        """
        Open balance split by days overdue at ``as_of``.

        A transaction due on ``as_of`` itself is "current", matching the
        grace rule of derive_status().

        Returns:
            {currency: {bucket_label: outstanding_cents}}
        """
        as_of = as_of or timezone.localdate()
        report: dict[str, dict[str, int]] = {}

        open_rows = (
            ReportingService._base(store_id, kind)
            .open()
            .only("due_date", "amount_cents", "amount_paid_cents", "currency")
        )
        for txn in open_rows.iterator():
            buckets = report.setdefault(
                txn.currency, {label: 0 for label, _, _ in AGING_BUCKETS}
            )
            bucket = aging_bucket(days_overdue(txn, as_of))
            buckets[bucket] += txn.amount_cents - txn.amount_paid_cents
        return report

    # =========================================================================
    # Totals
    # =========================================================================

    @staticmethod
    def totals_by_currency(
        store_id: uuid.UUID,
        kind: str | None = None,
        due_from: date | None = None,
        due_to: date | None = None,
    ) -> dict[str, dict[str, int]]:
        """
        Running totals of non-canceled transactions per currency.

        Returns:
            {currency: {"amount_cents", "paid_cents", "outstanding_cents", "count"}}
        """
        rows = (
            ReportingService._base(store_id, kind, due_from, due_to)
            .values("currency")
            .annotate(
                amount_total=Sum("amount_cents"),
                paid_total=Sum("amount_paid_cents"),
                count=Count("id"),
            )
            .order_by("currency")
        )
        return {
            row["currency"]: {
                "amount_cents": row["amount_total"],
                "paid_cents": row["paid_total"],
                "outstanding_cents": row["amount_total"] - row["paid_total"],
                "count": row["count"],
            }
            for row in rows
        }

    @staticmethod
    def summary(
        store_id: uuid.UUID,
        as_of: date | None = None,
        kind: str | None = None,
        due_from: date | None = None,
        due_to: date | None = None,
    ) -> dict[str, dict[str, Any]]:
        """
        Dashboard KPIs per currency, canceled transactions excluded.

        pending is the unpaid part of each transaction (overdue included),
        paid is the paid part, overdue is the unpaid part of transactions
        past due at ``as_of``, and total_paid adds paid payables and
        receivables.

        Returns:
            {currency: {"payable": {"pending", "paid"},
                        "receivable": {"pending", "paid"},
                        "overdue", "total_paid"}}
        """
        as_of = as_of or timezone.localdate()
        report: dict[str, dict[str, Any]] = defaultdict(
            lambda: {
                TransactionKind.PAYABLE.value: {"pending": 0, "paid": 0},
                TransactionKind.RECEIVABLE.value: {"pending": 0, "paid": 0},
                "overdue": 0,
                "total_paid": 0,
            }
        )

        queryset = ReportingService._base(store_id, kind, due_from, due_to)
        rows = (
            queryset.filter(kind__in=[TransactionKind.PAYABLE, TransactionKind.RECEIVABLE])
            .values("currency", "kind")
            .annotate(
                amount_total=Sum("amount_cents"),
                paid_total=Sum("amount_paid_cents"),
            )
            .order_by("currency", "kind")
        )
        for row in rows:
            entry = report[row["currency"]]
            entry[row["kind"]]["pending"] += row["amount_total"] - row["paid_total"]
            entry[row["kind"]]["paid"] += row["paid_total"]
            entry["total_paid"] += row["paid_total"]

        overdue_rows = (
            queryset.overdue_at(as_of)
            .values("currency")
            .annotate(overdue=Sum(F("amount_cents") - F("amount_paid_cents")))
            .order_by("currency")
        )
        for row in overdue_rows:
            report[row["currency"]]["overdue"] += row["overdue"]

        return dict(report)

    # =========================================================================
    # Bank Accounts
    # =========================================================================

    @staticmethod
    def bank_balances(
        store_id: uuid.UUID, as_of: date | None = None
    ) -> list[dict[str, Any]]:
        """
        Balance of each bank account of the store on ``as_of``.

        Payments on receivables and adjustments add to the balance,
        payments on payables subtract from it and transfers are ignored.
        Reversal rows are negative, so they undo their payment.

        Returns:
            [{"bank_account_id", "name", "balances": {currency: cents}}]
        """
        as_of = as_of or timezone.localdate()
        signed = Case(
            When(
                transaction__kind__in=[TransactionKind.RECEIVABLE, TransactionKind.ADJUSTMENT],
                then=F("amount_cents"),
            ),
            When(transaction__kind=TransactionKind.PAYABLE, then=-F("amount_cents")),
            default=Value(0),
            output_field=BigIntegerField(),
        )
        rows = (
            Payment.objects.filter(bank_account__store_id=store_id, paid_on__lte=as_of)
            .values("bank_account_id", "currency")
            .annotate(balance=Sum(signed))
            .order_by("currency")
        )
        balances: dict[uuid.UUID, dict[str, int]] = defaultdict(dict)
        for row in rows:
            balances[row["bank_account_id"]][row["currency"]] = row["balance"]

        return [
            {
                "bank_account_id": str(account.id),
                "name": account.name,
                "balances": balances.get(account.id, {}),
            }
            for account in BankAccount.objects.filter(store_id=store_id).order_by("name")
        ]


# Singleton instance for convenient access
reporting = ReportingService()
