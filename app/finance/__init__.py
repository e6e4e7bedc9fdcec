"""
Finance application - store-scoped payables and receivables ledger.

Components (leaves first):
    finance.types: Money value type (integer cents + ISO currency)
    finance.models: Party, Category, CostCenter, Tag, Transaction,
        Payment, Recurrence
    finance.state_machines: Status enums and derive_status()
    finance.services.ledger_service: create/cancel/approve/schedule
    finance.services.payment_allocator: apply/reverse payments
    finance.services.recurrence_scheduler: advance/pause/resume
    finance.services.reporting_service: read-only aggregations
    finance.tasks: Celery beat entry points

Usage:
    from finance.services import allocator, ledger, scheduler

    txn = ledger.create(
        store_id=store_id,
        kind=TransactionKind.RECEIVABLE,
        amount=Money(10000, "BRL"),
        due_date=date(2026, 1, 10),
    )
    allocator.apply(txn.id, Money(4000, "BRL"), PaymentMethod.CASH, date(2026, 1, 5))
"""
