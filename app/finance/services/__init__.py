"""
Finance service layer.

Services:
    LedgerService (ledger): create, cancel, approve, schedule, derive_status
    PaymentAllocator (allocator): apply, reverse
    RecurrenceScheduler (scheduler): create, advance, pause, resume
    ReportingService (reporting): outstanding, aging, totals, summary
"""

from finance.services.ledger_service import LedgerService, ledger
from finance.services.payment_allocator import PaymentAllocator, allocator
from finance.services.recurrence_scheduler import RecurrenceScheduler, scheduler
from finance.services.reporting_service import ReportingService, reporting

__all__ = [
    "LedgerService",
    "PaymentAllocator",
    "RecurrenceScheduler",
    "ReportingService",
    "allocator",
    "ledger",
    "reporting",
    "scheduler",
]
