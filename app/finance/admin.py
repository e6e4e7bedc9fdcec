"""
Django admin configuration for ledger models.

Transactions, payments and recurrences are written only through the
service layer, so their admin pages are for inspection:
- Payment is immutable (no add/change/delete)
- Transaction settlement fields and Recurrence state are read-only
- Reference data (parties, catalogs, bank accounts) is fully editable
"""

from django.contrib import admin

from finance.models import (
    BankAccount,
    Category,
    CostCenter,
    Party,
    Payment,
    Recurrence,
    Tag,
    Transaction,
)


class PaymentInline(admin.TabularInline):
    model = Payment
    fk_name = "transaction"
    extra = 0
    can_delete = False
    fields = [
        "paid_on",
        "amount_cents",
        "currency",
        "method",
        "bank_account",
        "reverses",
        "note",
    ]
    readonly_fields = fields
    ordering = ["paid_on", "created_at"]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    """
    Admin configuration for Transaction.

    Amounts, settlement state and origin are read-only; cancel, approve
    and pay through the API so every change goes through the ledger
    service's locking.
    """

    list_display = [
        "id",
        "store_id",
        "kind",
        "description",
        "amount_display",
        "outstanding_display",
        "due_date",
        "status",
        "origin",
    ]
    list_filter = ["kind", "status", "currency", "workflow_flag", "due_date"]
    search_fields = ["id", "store_id", "description", "document_number"]
    date_hierarchy = "due_date"
    ordering = ["due_date"]
    inlines = [PaymentInline]
    filter_horizontal = ["tags"]
    readonly_fields = [
        "id",
        "store_id",
        "kind",
        "amount_cents",
        "currency",
        "amount_paid_cents",
        "paid_date",
        "status",
        "workflow_flag",
        "canceled_at",
        "canceled_by",
        "recurrence",
        "created_by",
        "approved_by",
        "created_at",
        "updated_at",
    ]

    fieldsets = (
        (
            None,
            {
                "fields": (
                    "id",
                    "store_id",
                    "kind",
                    "description",
                    "document_number",
                    "issue_date",
                    "attachment_url",
                ),
            },
        ),
        (
            "Amounts",
            {
                "fields": ("amount_cents", "currency", "amount_paid_cents", "due_date", "paid_date"),
            },
        ),
        (
            "Classification",
            {
                "fields": ("counterparty", "category", "cost_center", "tags", "bank_account"),
            },
        ),
        (
            "State",
            {
                "fields": ("status", "workflow_flag", "canceled_at", "canceled_by", "recurrence"),
            },
        ),
        (
            "Audit",
            {
                "fields": ("created_by", "approved_by", "created_at", "updated_at"),
            },
        ),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description="Amount")
    def amount_display(self, obj: Transaction) -> str:
        return str(obj.amount)

    @admin.display(description="Outstanding")
    def outstanding_display(self, obj: Transaction) -> str:
        return str(obj.outstanding)


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """
    Admin configuration for Payment.

    Payments are immutable - they cannot be added, edited or deleted
    through the admin. Corrections are recorded as reversals.
    """

    list_display = ["id", "transaction", "amount_display", "method", "paid_on", "is_reversal"]
    list_filter = ["method", "currency", "paid_on", "bank_account"]
    search_fields = ["id", "transaction__id", "note"]
    date_hierarchy = "paid_on"
    ordering = ["-paid_on"]
    readonly_fields = [
        "id",
        "transaction",
        "amount_cents",
        "currency",
        "method",
        "paid_on",
        "note",
        "bank_account",
        "reverses",
        "recorded_by",
        "created_at",
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description="Amount")
    def amount_display(self, obj: Payment) -> str:
        return str(obj.amount)

    @admin.display(boolean=True, description="Reversal")
    def is_reversal(self, obj: Payment) -> bool:
        return obj.is_reversal


@admin.register(Recurrence)
class RecurrenceAdmin(admin.ModelAdmin):
    """Recurrence templates. Status and cursor move only through the scheduler."""

    list_display = [
        "id",
        "store_id",
        "description",
        "kind",
        "frequency",
        "amount_cents",
        "currency",
        "next_due_date",
        "status",
    ]
    list_filter = ["status", "kind", "frequency"]
    search_fields = ["id", "store_id", "description"]
    readonly_fields = [
        "id",
        "store_id",
        "amount_cents",
        "currency",
        "status",
        "start_date",
        "next_due_date",
        "created_by",
        "updated_by",
        "created_at",
        "updated_at",
    ]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Party)
class PartyAdmin(admin.ModelAdmin):
    list_display = ["name", "trade_name", "document", "is_customer", "is_supplier", "status"]
    list_filter = ["status", "is_customer", "is_supplier", "is_employee"]
    search_fields = ["name", "trade_name", "document", "email", "store_id"]


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ["name", "kind", "store_id", "status"]
    list_filter = ["kind", "status"]
    search_fields = ["name", "store_id"]


@admin.register(CostCenter)
class CostCenterAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "store_id", "status"]
    list_filter = ["status"]
    search_fields = ["code", "name", "store_id"]


@admin.register(Tag)
class TagAdmin(admin.ModelAdmin):
    list_display = ["name", "store_id", "status"]
    list_filter = ["status"]
    search_fields = ["name", "store_id"]


@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    list_display = ["name", "bank_name", "agency", "account_number", "account_type", "status"]
    list_filter = ["account_type", "status", "is_default"]
    search_fields = ["name", "bank_name", "account_number", "store_id"]
