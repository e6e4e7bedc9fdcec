"""
Classification catalogs for transactions.

Category, CostCenter and Tag label transactions for reporting. They have
no effect on ledger behavior.
"""

from __future__ import annotations

from django.db import models

from finance.models.base import StoreScopedModel


class CatalogStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class CategoryKind(models.TextChoices):
    PAYABLE = "payable", "Payable"
    RECEIVABLE = "receivable", "Receivable"


class Category(StoreScopedModel):
    """
    Reporting category (e.g. "Rent", "Ticket sales").

    Fields:
        name: Display name, unique per store and kind
        kind: Whether the category labels payables or receivables
        color / icon: Presentation hints for clients
        status: active or inactive
    """

    name = models.CharField(max_length=100, help_text="Category name")
    kind = models.CharField(
        max_length=10,
        choices=CategoryKind.choices,
        help_text="Transaction direction this category applies to",
    )
    color = models.CharField(max_length=20, blank=True, help_text="Display color")
    icon = models.CharField(max_length=50, blank=True, help_text="Display icon name")
    status = models.CharField(
        max_length=10,
        choices=CatalogStatus.choices,
        default=CatalogStatus.ACTIVE,
        help_text="Catalog status",
    )

    class Meta:
        db_table = "finance_category"
        verbose_name_plural = "Categories"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["store_id", "kind", "name"],
                name="unique_category_per_store_kind",
            ),
        ]

    def __str__(self) -> str:
        return self.name


class CostCenter(StoreScopedModel):
    """
    Cost center (department, event, project) used to split totals.

    Fields:
        name: Display name
        code: Short code, unique per store when set
        description: Free text
        status: active or inactive
    """

    name = models.CharField(max_length=100, help_text="Cost center name")
    code = models.CharField(max_length=30, blank=True, help_text="Short code")
    description = models.TextField(blank=True, help_text="Description")
    status = models.CharField(
        max_length=10,
        choices=CatalogStatus.choices,
        default=CatalogStatus.ACTIVE,
        help_text="Catalog status",
    )

    class Meta:
        db_table = "finance_cost_center"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["store_id", "code"],
                condition=~models.Q(code=""),
                name="unique_cost_center_code_per_store",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.code} {self.name}".strip()


class Tag(StoreScopedModel):
    """Free-form label; a transaction may carry any number of tags."""

    name = models.CharField(max_length=50, help_text="Tag name")
    color = models.CharField(max_length=20, blank=True, help_text="Display color")
    status = models.CharField(
        max_length=10,
        choices=CatalogStatus.choices,
        default=CatalogStatus.ACTIVE,
        help_text="Catalog status",
    )

    class Meta:
        db_table = "finance_tag"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["store_id", "name"],
                name="unique_tag_per_store",
            ),
        ]

    def __str__(self) -> str:
        return self.name
