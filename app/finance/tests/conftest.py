"""
Pytest fixtures for ledger tests.

Redis is never contacted: ``mock_redis`` replaces the connection used by
finance.locks for every test in this package.

Usage:
    def test_pay(ledger_txn, user):
        allocator.apply(ledger_txn.id, Money(4000, "BRL"), "cash", date(2026, 1, 5))
"""

import uuid
from datetime import date

import pytest
from rest_framework.test import APIClient

from finance.services import ledger, scheduler
from finance.state_machines import RecurrenceFrequency, RecurrenceKind, TransactionKind
from finance.tests.factories import (
    STORE_ID,
    BankAccountFactory,
    CategoryFactory,
    CostCenterFactory,
    PartyFactory,
    UserFactory,
)
from finance.types import Money

OTHER_STORE_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")


# =============================================================================
# Infrastructure
# =============================================================================


@pytest.fixture(autouse=True)
def mock_redis(mocker):
    """
    Mock Redis client for distributed lock tests.

    Returns a MagicMock configured so every lock is free.
    """
    mock_client = mocker.MagicMock()
    mock_client.set.return_value = True
    mock_client.eval.return_value = 1
    mocker.patch("finance.locks.get_redis_connection", return_value=mock_client)
    return mock_client


@pytest.fixture
def store_id():
    return STORE_ID


@pytest.fixture
def other_store_id():
    return OTHER_STORE_ID


# =============================================================================
# Users and API
# =============================================================================


@pytest.fixture
def user(db):
    """Create a test user."""
    return UserFactory()


@pytest.fixture
def api_client(user):
    """APIClient authenticated as ``user``."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def anonymous_client():
    return APIClient()


# =============================================================================
# Reference Data
# =============================================================================


@pytest.fixture
def supplier(db):
    return PartyFactory(name="Distribuidora Sul")


@pytest.fixture
def category(db):
    return CategoryFactory(name="Rent")


@pytest.fixture
def cost_center(db):
    return CostCenterFactory(name="Main hall", code="HALL")


@pytest.fixture
def bank_account(db):
    return BankAccountFactory(name="Main account")


@pytest.fixture
def foreign_category(db):
    """Category owned by another store."""
    return CategoryFactory(store_id=OTHER_STORE_ID, name="Foreign")


# =============================================================================
# Ledger Records
# =============================================================================


@pytest.fixture
def ledger_txn(db, user):
    """100.00 BRL payable due 2026-01-10, created through the ledger service."""
    return ledger.create(
        store_id=STORE_ID,
        kind=TransactionKind.PAYABLE,
        amount=Money(10000, "BRL"),
        due_date=date(2026, 1, 10),
        description="Supplier invoice",
        created_by=user,
    )


@pytest.fixture
def receivable_txn(db, user):
    """250.00 BRL receivable due 2026-01-20."""
    return ledger.create(
        store_id=STORE_ID,
        kind=TransactionKind.RECEIVABLE,
        amount=Money(25000, "BRL"),
        due_date=date(2026, 1, 20),
        description="Ticket sales",
        created_by=user,
    )


@pytest.fixture
def monthly_rent(db, user):
    """Monthly 3,500.00 BRL rent starting (and anchored on) 2026-01-31."""
    return scheduler.create(
        store_id=STORE_ID,
        kind=RecurrenceKind.PAYABLE,
        description="Rent",
        amount=Money(350000, "BRL"),
        frequency=RecurrenceFrequency.MONTHLY,
        start_date=date(2026, 1, 31),
        created_by=user,
    )
