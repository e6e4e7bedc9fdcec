"""
Recurrence scheduler - materializes recurring obligations.

RecurrenceScheduler walks a recurrence's ``next_due_date`` cursor forward,
creating one ledger Transaction per occurrence. Each call to advance()
runs in a single atomic block with the recurrence row locked: the new
transactions and the moved cursor are committed together or not at all.

Catch-up semantics: a recurrence that has not been advanced for several
periods materializes every missed occurrence in one call.

Usage:
    from finance.services import scheduler

    rent = scheduler.create(
        store_id=store_id,
        kind=RecurrenceKind.PAYABLE,
        description="Rent",
        amount=Money(350000, "BRL"),
        frequency=RecurrenceFrequency.MONTHLY,
        start_date=date(2026, 1, 31),
    )
    created = scheduler.advance(rent.id, as_of=date(2026, 4, 15))
    # 4 transactions: Jan 31, Feb 28, Mar 31, Apr 30; cursor now May 31
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction as db_transaction
from django.db.models import Q
from django.utils import timezone

from core.exceptions import ValidationError
from finance.exceptions import (
    InvalidRecurrence,
    RecurrenceNotActive,
    RecurrenceNotFound,
    RecurrenceNotPaused,
)
from finance.models import Recurrence
from finance.services.cadence import materialization_horizon, next_occurrence
from finance.services.ledger_service import (
    LedgerService,
    normalize_currency,
    validate_positive_amount,
)
from finance.state_machines import (
    RecurrenceFrequency,
    RecurrenceKind,
    RecurrenceStatus,
)

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser
    from django.db.models import QuerySet

    from finance.models import Category, CostCenter, Party, Transaction
    from finance.types import Money

logger = logging.getLogger(__name__)


class RecurrenceScheduler:
    """
    Service class for recurrence templates and their materialization.

    All methods are static - no instance state is maintained.
    """

    # =========================================================================
    # Lookups
    # =========================================================================

    @staticmethod
    def get(recurrence_id: uuid.UUID | str, store_id: uuid.UUID | None = None) -> Recurrence:
        """
        Get a recurrence by ID.

        Raises:
            RecurrenceNotFound: If the recurrence doesn't exist
            CrossStoreAccess: If it belongs to another store
        """
        try:
            recurrence = Recurrence.objects.get(id=recurrence_id)
        except (Recurrence.DoesNotExist, DjangoValidationError):
            raise RecurrenceNotFound(
                f"Recurrence {recurrence_id} not found",
                details={"recurrence_id": str(recurrence_id)},
            )
        if store_id is not None:
            recurrence.ensure_store(store_id)
        return recurrence

    @staticmethod
    def _lock(recurrence_id: uuid.UUID | str, store_id: uuid.UUID | None) -> Recurrence:
        try:
            recurrence = Recurrence.objects.select_for_update().get(id=recurrence_id)
        except (Recurrence.DoesNotExist, DjangoValidationError):
            raise RecurrenceNotFound(
                f"Recurrence {recurrence_id} not found",
                details={"recurrence_id": str(recurrence_id)},
            )
        if store_id is not None:
            recurrence.ensure_store(store_id)
        return recurrence

    @staticmethod
    def list_recurrences(
        store_id: uuid.UUID,
        status: str | None = None,
        kind: str | None = None,
        search: str | None = None,
    ) -> QuerySet[Recurrence]:
        """Recurrences of one store ordered by cursor."""
        queryset = Recurrence.objects.filter(store_id=store_id).select_related(
            "counterparty", "category", "cost_center"
        )
        if status:
            queryset = queryset.filter(status=status)
        if kind:
            queryset = queryset.filter(kind=kind)
        if search:
            queryset = queryset.filter(
                Q(description__icontains=search) | Q(counterparty__name__icontains=search)
            )
        return queryset.order_by("next_due_date", "created_at")

    @staticmethod
    def due_for_advance(as_of: date) -> QuerySet[Recurrence]:
        """Active recurrences whose cursor has been reached, oldest first."""
        return Recurrence.objects.filter(
            status=RecurrenceStatus.ACTIVE,
            next_due_date__lte=as_of,
        ).order_by("next_due_date", "id")

    # =========================================================================
    # Creation
    # =========================================================================

    @staticmethod
    def create(
        store_id: uuid.UUID,
        kind: RecurrenceKind | str,
        description: str,
        amount: Money,
        frequency: RecurrenceFrequency | str,
        start_date: date,
        end_date: date | None = None,
        day_of_month: int | None = None,
        counterparty: Party | None = None,
        category: Category | None = None,
        cost_center: CostCenter | None = None,
        created_by: AbstractBaseUser | None = None,
    ) -> Recurrence:
        """
        Create an active recurrence with its cursor on ``start_date``.

        Args:
            day_of_month: Anchor day for monthly/yearly cadences
                (default: start_date.day)

        Raises:
            InvalidAmount: amount <= 0
            InvalidCurrency: Unsupported currency
            InvalidRecurrence: end_date before start_date or anchor outside 1-31
            CrossStoreAccess: Classification owned by another store
            ValidationError: Unknown kind or frequency
        """
        if kind not in RecurrenceKind.values:
            raise ValidationError(
                f"Unknown recurrence kind: {kind!r}",
                error_code="INVALID_KIND",
                details={"kind": kind},
            )
        if frequency not in RecurrenceFrequency.values:
            raise ValidationError(
                f"Unknown recurrence frequency: {frequency!r}",
                error_code="INVALID_FREQUENCY",
                details={"frequency": frequency},
            )
        validate_positive_amount(amount)
        currency = normalize_currency(amount.currency)

        anchor = day_of_month if day_of_month is not None else start_date.day
        if not 1 <= anchor <= 31:
            raise InvalidRecurrence(
                f"day_of_month must be between 1 and 31, got {anchor}",
                details={"day_of_month": anchor},
            )
        if end_date is not None and end_date < start_date:
            raise InvalidRecurrence(
                "end_date must not be before start_date",
                details={
                    "start_date": start_date.isoformat(),
                    "end_date": end_date.isoformat(),
                },
            )
        for related in (counterparty, category, cost_center):
            if related is not None:
                related.ensure_store(store_id)

        recurrence = Recurrence.objects.create(
            store_id=store_id,
            kind=kind,
            description=description,
            amount_cents=amount.cents,
            currency=currency,
            frequency=frequency,
            start_date=start_date,
            end_date=end_date,
            next_due_date=start_date,
            day_of_month=anchor,
            counterparty=counterparty,
            category=category,
            cost_center=cost_center,
            created_by=created_by,
            updated_by=created_by,
        )

        logger.info(
            "Recurrence created",
            extra={
                "recurrence_id": str(recurrence.id),
                "store_id": str(store_id),
                "frequency": frequency,
                "amount_cents": amount.cents,
                "start_date": start_date.isoformat(),
            },
        )
        return recurrence

    # =========================================================================
    # Advance
    # =========================================================================

    @staticmethod
    def advance(
        recurrence_id: uuid.UUID | str,
        as_of: date | None = None,
        store_id: uuid.UUID | None = None,
    ) -> list[Transaction]:
        """
        Materialize every occurrence inside the horizon of ``as_of``.

        Nothing is materialized while the cursor is after ``as_of``. Once it
        is due, the horizon is ``as_of`` itself for weekly and yearly
        cadences and the last day of ``as_of``'s month for monthly ones
        (see cadence.materialization_horizon).

        Loop while the recurrence is active, its cursor is <= horizon and
        the cursor is within end_date: create a transaction due on the
        cursor, then move the cursor one cadence unit. When the next
        cursor falls after end_date the recurrence is finished.

        Idempotent: a call whose ``as_of`` is on or before a cursor that an
        earlier call moved past it materializes nothing.

        Args:
            recurrence_id: Recurrence to advance
            as_of: Target date (default: today)
            store_id: When given, the recurrence must belong to this store

        Returns:
            Transactions created by this call, in due-date order

        Raises:
            RecurrenceNotFound / CrossStoreAccess: Bad reference
            RecurrenceNotActive: Recurrence is paused or finished
        """
        as_of = as_of or timezone.localdate()
        created: list[Transaction] = []

        with db_transaction.atomic():
            recurrence = RecurrenceScheduler._lock(recurrence_id, store_id)

            if not recurrence.is_active:
                raise RecurrenceNotActive(
                    f"Recurrence {recurrence.id} is {recurrence.status}",
                    details={
                        "recurrence_id": str(recurrence.id),
                        "status": recurrence.status,
                    },
                )

            start_cursor = recurrence.next_due_date
            horizon = materialization_horizon(as_of, recurrence.frequency)
            if start_cursor > as_of:
                horizon = as_of

            while recurrence.is_active and recurrence.next_due_date <= horizon:
                if recurrence.end_date and recurrence.next_due_date > recurrence.end_date:
                    recurrence.finish()
                    break

                created.append(
                    LedgerService.create(
                        store_id=recurrence.store_id,
                        kind=recurrence.kind,
                        amount=recurrence.amount,
                        due_date=recurrence.next_due_date,
                        counterparty=recurrence.counterparty,
                        category=recurrence.category,
                        cost_center=recurrence.cost_center,
                        description=recurrence.description,
                        recurrence=recurrence,
                        created_by=recurrence.created_by,
                    )
                )
                recurrence.next_due_date = next_occurrence(
                    recurrence.next_due_date,
                    recurrence.frequency,
                    recurrence.day_of_month,
                )
                if recurrence.end_date and recurrence.next_due_date > recurrence.end_date:
                    recurrence.finish()

            if created or not recurrence.is_active:
                recurrence.save(update_fields=["next_due_date", "status", "updated_at"])

        logger.info(
            f"Recurrence advanced: {len(created)} occurrences materialized",
            extra={
                "recurrence_id": str(recurrence.id),
                "as_of": as_of.isoformat(),
                "from_cursor": start_cursor.isoformat(),
                "next_due_date": recurrence.next_due_date.isoformat(),
                "status": recurrence.status,
                "created_count": len(created),
            },
        )
        return created

    # =========================================================================
    # Pause / Resume
    # =========================================================================

    @staticmethod
    def pause(
        recurrence_id: uuid.UUID | str,
        store_id: uuid.UUID | None = None,
        actor: AbstractBaseUser | None = None,
    ) -> Recurrence:
        """
        Pause an active recurrence. The cursor is not touched.

        Raises:
            RecurrenceNotActive: If the recurrence is not active
        """
        with db_transaction.atomic():
            recurrence = RecurrenceScheduler._lock(recurrence_id, store_id)
            if not recurrence.is_active:
                raise RecurrenceNotActive(
                    f"Recurrence {recurrence.id} is {recurrence.status}",
                    details={
                        "recurrence_id": str(recurrence.id),
                        "status": recurrence.status,
                    },
                )
            recurrence.pause()
            recurrence.updated_by = actor
            recurrence.save(update_fields=["status", "updated_by", "updated_at"])

        logger.info("Recurrence paused", extra={"recurrence_id": str(recurrence.id)})
        return recurrence

    @staticmethod
    def resume(
        recurrence_id: uuid.UUID | str,
        store_id: uuid.UUID | None = None,
        actor: AbstractBaseUser | None = None,
    ) -> Recurrence:
        """
        Resume a paused recurrence from its existing cursor.

        Raises:
            RecurrenceNotPaused: If the recurrence is not paused
        """
        with db_transaction.atomic():
            recurrence = RecurrenceScheduler._lock(recurrence_id, store_id)
            if recurrence.status != RecurrenceStatus.PAUSED:
                raise RecurrenceNotPaused(
                    f"Recurrence {recurrence.id} is {recurrence.status}",
                    details={
                        "recurrence_id": str(recurrence.id),
                        "status": recurrence.status,
                    },
                )
            recurrence.resume()
            recurrence.updated_by = actor
            recurrence.save(update_fields=["status", "updated_by", "updated_at"])

        logger.info("Recurrence resumed", extra={"recurrence_id": str(recurrence.id)})
        return recurrence


# Singleton instance for convenient access
scheduler = RecurrenceScheduler()
