"""
Recurrence model - a template that materializes transactions on a cadence.

The ``next_due_date`` cursor is the single source of truth for what has
been materialized: every occurrence strictly before it already exists as
a Transaction, and it is the earliest one that does not.

Usage:
    from finance.models import Recurrence

    rent = Recurrence.objects.create(
        store_id=store_id,
        kind=RecurrenceKind.PAYABLE,
        description="Rent",
        amount_cents=350000,
        currency="BRL",
        frequency=RecurrenceFrequency.MONTHLY,
        start_date=date(2026, 1, 31),
        next_due_date=date(2026, 1, 31),
        day_of_month=31,
    )

    # State transitions using django-fsm
    rent.pause()   # active -> paused
    rent.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from django_fsm import FSMField, transition

from finance.models.base import StoreScopedModel
from finance.state_machines import (
    RecurrenceFrequency,
    RecurrenceKind,
    RecurrenceStatus,
)
from finance.types import Money


class Recurrence(StoreScopedModel):
    """
    Recurring obligation template (rent, subscriptions, installments).

    State Flow:
        ACTIVE -> PAUSED (pause)
        PAUSED -> ACTIVE (resume)
        ACTIVE/PAUSED -> FINISHED (finish)

    Fields:
        kind / description / amount_cents / currency: Template for
            materialized transactions
        frequency: weekly, monthly or yearly cadence
        status: FSM state
        start_date / end_date: Schedule bounds (end_date inclusive, optional)
        next_due_date: Cursor, earliest occurrence not yet materialized
        day_of_month: Anchor day (1-31) for monthly and yearly cadences
        counterparty / category / cost_center: Classification template
        created_by / updated_by: Audit actors
    """

    # ==========================================================================
    # Template
    # ==========================================================================

    kind = models.CharField(
        max_length=12,
        choices=RecurrenceKind.choices,
        help_text="Kind of transaction materialized",
    )
    description = models.CharField(
        max_length=255,
        help_text="Description copied to each transaction",
    )
    amount_cents = models.PositiveBigIntegerField(
        help_text="Amount in cents for each occurrence",
    )
    currency = models.CharField(
        max_length=3,
        help_text="ISO 4217 currency code",
    )
    counterparty = models.ForeignKey(
        "finance.Party",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="recurrences",
        help_text="Counterparty copied to each transaction",
    )
    category = models.ForeignKey(
        "finance.Category",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="recurrences",
        help_text="Category copied to each transaction",
    )
    cost_center = models.ForeignKey(
        "finance.CostCenter",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="recurrences",
        help_text="Cost center copied to each transaction",
    )

    # ==========================================================================
    # Schedule
    # ==========================================================================

    frequency = models.CharField(
        max_length=10,
        choices=RecurrenceFrequency.choices,
        default=RecurrenceFrequency.MONTHLY,
        help_text="Cadence unit",
    )
    status = FSMField(
        default=RecurrenceStatus.ACTIVE,
        choices=RecurrenceStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current lifecycle state",
    )
    start_date = models.DateField(
        help_text="First occurrence date",
    )
    end_date = models.DateField(
        null=True,
        blank=True,
        help_text="Last date an occurrence may fall on (inclusive)",
    )
    next_due_date = models.DateField(
        db_index=True,
        help_text="Earliest occurrence not yet materialized",
    )
    day_of_month = models.PositiveSmallIntegerField(
        help_text="Anchor day (1-31) for monthly and yearly cadences",
    )

    # ==========================================================================
    # Audit
    # ==========================================================================

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="User who created the recurrence",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="User who last changed the recurrence",
    )

    class Meta:
        db_table = "finance_recurrence"
        ordering = ["next_due_date", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount_cents__gt=0),
                name="finance_recurrence_amount_positive",
            ),
            models.CheckConstraint(
                condition=Q(day_of_month__gte=1) & Q(day_of_month__lte=31),
                name="finance_recurrence_day_of_month_range",
            ),
            models.CheckConstraint(
                condition=Q(next_due_date__gte=F("start_date")),
                name="finance_recurrence_cursor_after_start",
            ),
            models.CheckConstraint(
                condition=Q(end_date__isnull=True) | Q(end_date__gte=F("start_date")),
                name="finance_recurrence_end_after_start",
            ),
        ]
        indexes = [
            models.Index(
                fields=["status", "next_due_date"],
                name="recurrence_status_cursor_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.description} ({self.get_frequency_display()}, {self.status})"

    @property
    def amount(self) -> Money:
        return Money(self.amount_cents, self.currency)

    @property
    def is_active(self) -> bool:
        return self.status == RecurrenceStatus.ACTIVE

    # ==========================================================================
    # State Transitions
    # ==========================================================================

    @transition(
        field=status,
        source=RecurrenceStatus.ACTIVE,
        target=RecurrenceStatus.PAUSED,
    )
    def pause(self) -> None:
        """Stop materializing occurrences; the cursor is left untouched."""

    @transition(
        field=status,
        source=RecurrenceStatus.PAUSED,
        target=RecurrenceStatus.ACTIVE,
    )
    def resume(self) -> None:
        """
        Resume materializing from the existing cursor.

        Occurrences missed while paused are caught up by the next advance.
        """

    @transition(
        field=status,
        source=[RecurrenceStatus.ACTIVE, RecurrenceStatus.PAUSED],
        target=RecurrenceStatus.FINISHED,
    )
    def finish(self) -> None:
        """Close the recurrence permanently."""
