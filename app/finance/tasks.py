"""
Celery tasks for the finance ledger.

Tasks:
- advance_due_recurrences: Periodic scan that queues due recurrences
- advance_single_recurrence: Materializes one recurrence under a lock
- refresh_overdue_statuses: Periodic rewrite of cached overdue statuses

Usage:
    # Scheduled daily via django-celery-beat (see migrations)
    from finance.tasks import advance_due_recurrences

    advance_due_recurrences.delay()

    # Catch up one recurrence up to a given date
    advance_single_recurrence.delay(str(recurrence.id), "2026-04-15")
"""

from __future__ import annotations

import logging
from datetime import date

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from finance.exceptions import LockAcquisitionError, RecurrenceNotActive, RecurrenceNotFound
from finance.locks import recurrence_lock
from finance.services import ledger, scheduler

logger = logging.getLogger(__name__)


def _parse_as_of(as_of: str | None) -> date:
    """ISO date string from a task payload, or today when omitted."""
    return date.fromisoformat(as_of) if as_of else timezone.localdate()


# =============================================================================
# Periodic Task: Scan for Due Recurrences
# =============================================================================


@shared_task(bind=True)
def advance_due_recurrences(self, as_of: str | None = None) -> dict:
    """
    Queue an advance task for every active recurrence that is due.

    Runs daily via celery-beat. Recurrences are queued oldest cursor
    first, at most FINANCE_RECURRENCE_BATCH_SIZE per run; anything left
    over is picked up by the next run.

    Args:
        as_of: ISO date to advance to (default: today)

    Returns:
        Dict with:
        - queued_count: Number of recurrences queued
        - as_of: Date used for the scan
    """
    target = _parse_as_of(as_of)
    batch_size = settings.FINANCE_RECURRENCE_BATCH_SIZE
    logger.info("Starting due recurrence scan", extra={"as_of": target.isoformat()})

    due_ids = list(
        scheduler.due_for_advance(target).values_list("id", flat=True)[:batch_size]
    )

    for recurrence_id in due_ids:
        advance_single_recurrence.delay(str(recurrence_id), target.isoformat())
        logger.info(
            "Queued recurrence for advance",
            extra={"recurrence_id": str(recurrence_id), "as_of": target.isoformat()},
        )

    logger.info(
        f"Due recurrence scan complete: queued {len(due_ids)} recurrences",
        extra={"queued_count": len(due_ids)},
    )
    return {"queued_count": len(due_ids), "as_of": target.isoformat()}


# =============================================================================
# Individual Advance Task
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    dont_autoretry_for=(LockAcquisitionError,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": 3},
    acks_late=True,
)
def advance_single_recurrence(self, recurrence_id: str, as_of: str | None = None) -> dict:
    """
    Materialize due occurrences of one recurrence.

    A Redis lock keeps overlapping runs for the same recurrence apart;
    the scheduler's row lock and cursor check make the work idempotent
    even if the lock expires mid-run.

    Args:
        recurrence_id: UUID of the recurrence
        as_of: ISO date to advance to (default: today)

    Returns:
        Dict with:
        - status: One of "advanced", "not_found", "not_active", "lock_failed"
        - recurrence_id: The recurrence processed
        - created_count / transaction_ids: Materialized transactions
        - error: Error message if not advanced

    Raises:
        Exception: Re-raised to trigger Celery retry for transient failures
    """
    target = _parse_as_of(as_of)

    try:
        with recurrence_lock(recurrence_id):
            created = scheduler.advance(recurrence_id, as_of=target)

    except RecurrenceNotFound as e:
        logger.warning(
            "Recurrence not found",
            extra={"recurrence_id": recurrence_id, "error_code": e.error_code},
        )
        return {"status": "not_found", "recurrence_id": recurrence_id, "error": e.message}

    except RecurrenceNotActive as e:
        logger.info(
            "Recurrence no longer active, skipping",
            extra={"recurrence_id": recurrence_id, "status": e.details.get("status")},
        )
        return {"status": "not_active", "recurrence_id": recurrence_id, "error": e.message}

    except LockAcquisitionError as e:
        logger.warning(
            f"Could not acquire lock for recurrence advance: {e}",
            extra={"recurrence_id": recurrence_id},
        )
        return {"status": "lock_failed", "recurrence_id": recurrence_id, "error": e.message}

    except Exception as e:
        logger.exception(
            f"Unexpected error advancing recurrence: {e}",
            extra={"recurrence_id": recurrence_id},
        )
        raise

    return {
        "status": "advanced",
        "recurrence_id": recurrence_id,
        "created_count": len(created),
        "transaction_ids": [str(txn.id) for txn in created],
    }


# =============================================================================
# Periodic Task: Overdue Status Refresh
# =============================================================================


@shared_task(bind=True, acks_late=True)
def refresh_overdue_statuses(self, as_of: str | None = None) -> dict:
    """
    Bring the cached status of past-due open transactions up to date.

    Reads always derive the status, so this only keeps the denormalized
    column (used by admin filters and external reporting) in line.

    Returns:
        Dict with:
        - updated_count: Number of transactions whose cached status changed
    """
    target = _parse_as_of(as_of)
    updated = ledger.refresh_overdue(as_of=target)
    return {"updated_count": updated, "as_of": target.isoformat()}


__all__ = [
    "advance_due_recurrences",
    "advance_single_recurrence",
    "refresh_overdue_statuses",
]
