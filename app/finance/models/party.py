"""
Party model - customers, suppliers and other counterparties.

A Party is pure reference data for transactions and recurrences:
identity and contact details, no ledger behavior.

Usage:
    from finance.models import Party

    supplier = Party.objects.create(
        store_id=store_id,
        name="Distribuidora Sul",
        document="12.345.678/0001-90",
        is_supplier=True,
    )
"""

from __future__ import annotations

from django.db import models

from finance.models.base import StoreScopedModel


class PartyStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"
    BLOCKED = "blocked", "Blocked"


class Party(StoreScopedModel):
    """
    A counterparty referenced by transactions.

    Fields:
        name / trade_name: Legal and trading names
        document: Tax identifier (CPF/CNPJ or foreign equivalent)
        email / phone / mobile: Contact details
        is_customer / is_supplier / is_employee / is_salesperson: Roles
        address fields: Postal address
        notes: Free text
        status: active, inactive or blocked
    """

    # ==========================================================================
    # Identity
    # ==========================================================================

    name = models.CharField(
        max_length=200,
        help_text="Legal or full name",
    )
    trade_name = models.CharField(
        max_length=200,
        blank=True,
        help_text="Trading name, if different from the legal name",
    )
    document = models.CharField(
        max_length=32,
        blank=True,
        db_index=True,
        help_text="Tax identifier (CPF/CNPJ)",
    )

    # ==========================================================================
    # Contact
    # ==========================================================================

    email = models.EmailField(blank=True, help_text="Contact email")
    phone = models.CharField(max_length=32, blank=True, help_text="Landline")
    mobile = models.CharField(max_length=32, blank=True, help_text="Mobile phone")

    # ==========================================================================
    # Roles
    # ==========================================================================

    is_customer = models.BooleanField(default=False, help_text="Buys from the store")
    is_supplier = models.BooleanField(default=False, help_text="Sells to the store")
    is_employee = models.BooleanField(default=False, help_text="Store employee")
    is_salesperson = models.BooleanField(default=False, help_text="Sales agent")

    # ==========================================================================
    # Address
    # ==========================================================================

    address_street = models.CharField(max_length=200, blank=True, help_text="Street")
    address_number = models.CharField(max_length=20, blank=True, help_text="Number")
    address_complement = models.CharField(
        max_length=100, blank=True, help_text="Complement"
    )
    address_district = models.CharField(
        max_length=100, blank=True, help_text="District"
    )
    address_city = models.CharField(max_length=100, blank=True, help_text="City")
    address_state = models.CharField(max_length=50, blank=True, help_text="State")
    address_zip = models.CharField(max_length=20, blank=True, help_text="Postal code")

    notes = models.TextField(blank=True, help_text="Free-form notes")
    status = models.CharField(
        max_length=10,
        choices=PartyStatus.choices,
        default=PartyStatus.ACTIVE,
        db_index=True,
        help_text="Directory status",
    )

    class Meta:
        db_table = "finance_party"
        verbose_name = "Party"
        verbose_name_plural = "Parties"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["store_id", "name"], name="party_store_name_idx"),
        ]

    def __str__(self) -> str:
        return self.trade_name or self.name
