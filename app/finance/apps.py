"""
Finance app configuration.

This app owns the store-scoped financial ledger:
- Payable/receivable/transfer/adjustment transactions with derived status
- Payment allocation and reversal
- Recurrence templates materialized on a cadence
- Read-only reporting aggregations
"""

from django.apps import AppConfig


class FinanceConfig(AppConfig):
    """Configuration for the finance application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "finance"
    verbose_name = "Finance"
