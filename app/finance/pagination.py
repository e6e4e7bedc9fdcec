"""
Pagination classes for the finance API.

Cursor pagination keeps pages stable while new transactions and payments
are being recorded concurrently.
"""

from rest_framework.pagination import CursorPagination


class TransactionCursorPagination(CursorPagination):
    """
    Transactions ordered by due date, earliest first.

    Default: 50 per page
    Maximum: 200 per page
    """

    page_size = 50
    max_page_size = 200
    page_size_query_param = "page_size"
    ordering = ("due_date", "created_at", "id")


class RecurrenceCursorPagination(CursorPagination):
    page_size = 50
    max_page_size = 200
    page_size_query_param = "page_size"
    ordering = ("next_due_date", "created_at", "id")


class CatalogCursorPagination(CursorPagination):
    """Reference data (parties, categories, cost centers, tags) by creation."""

    page_size = 100
    max_page_size = 500
    page_size_query_param = "page_size"
    ordering = ("-created_at", "id")
