"""
DRF serializers for the finance API.

Money travels over the wire as an integer number of cents plus an ISO
4217 currency code, never as a float. Output serializers expose the
derived transaction status evaluated at the request's ``as_of`` date
(today unless the view passes one in the serializer context).

Serializer Types:
    Output: TransactionSerializer, PaymentSerializer, RecurrenceSerializer,
        PartySerializer, CategorySerializer, CostCenterSerializer, TagSerializer,
        BankAccountSerializer
    Input: TransactionCreateSerializer, PaymentCreateSerializer,
        PaymentReverseSerializer, RecurrenceCreateSerializer,
        RecurrenceGenerateSerializer
    Query: TransactionFilterSerializer, ReportQuerySerializer

Usage:
    serializer = PaymentCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    payment = allocator.apply(txn_id, serializer.money(default_currency), ...)
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import serializers

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
from finance.services.ledger_service import normalize_currency
from finance.services.reporting_service import GROUP_FIELDS
from finance.state_machines import (
    PaymentMethod,
    RecurrenceFrequency,
    RecurrenceKind,
    RecurrenceStatus,
    TransactionKind,
    TransactionStatus,
)
from finance.types import Money


class MoneyInputMixin:
    """Build a Money value from validated ``amount_cents`` / ``currency``."""

    def validate_currency(self, value: str) -> str:
        return normalize_currency(value)

    def money(self, default_currency: str | None = None) -> Money:
        data = self.validated_data
        currency = data.get("currency") or default_currency or settings.FINANCE_DEFAULT_CURRENCY
        return Money(data["amount_cents"], currency)


# =============================================================================
# Reference Data
# =============================================================================


class PartySerializer(serializers.ModelSerializer):
    """Customer, supplier or other counterparty."""

    class Meta:
        model = Party
        fields = [
            "id",
            "store_id",
            "name",
            "trade_name",
            "document",
            "email",
            "phone",
            "mobile",
            "is_customer",
            "is_supplier",
            "is_employee",
            "is_salesperson",
            "address_street",
            "address_number",
            "address_complement",
            "address_district",
            "address_city",
            "address_state",
            "address_zip",
            "notes",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "store_id", "created_at", "updated_at"]


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "store_id", "name", "kind", "color", "icon", "status", "created_at"]
        read_only_fields = ["id", "store_id", "created_at"]


class CostCenterSerializer(serializers.ModelSerializer):
    class Meta:
        model = CostCenter
        fields = ["id", "store_id", "name", "code", "description", "status", "created_at"]
        read_only_fields = ["id", "store_id", "created_at"]


class TagSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tag
        fields = ["id", "store_id", "name", "color", "status", "created_at"]
        read_only_fields = ["id", "store_id", "created_at"]


class BankAccountSerializer(serializers.ModelSerializer):
    """Bank account; ``allowed_payment_methods`` empty means every method."""

    allowed_payment_methods = serializers.ListField(
        child=serializers.ChoiceField(choices=PaymentMethod.choices),
        required=False,
    )

    class Meta:
        model = BankAccount
        fields = [
            "id",
            "store_id",
            "name",
            "bank_name",
            "bank_code",
            "agency",
            "account_number",
            "account_digit",
            "account_type",
            "allowed_payment_methods",
            "is_default",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "store_id", "created_at", "updated_at"]


# =============================================================================
# Transactions
# =============================================================================


class TransactionSerializer(serializers.ModelSerializer):
    """
    Transaction with settlement figures and derived status.

    Computed fields:
        status: derive_status() at the context's ``as_of`` date
        outstanding_cents: amount - amount_paid (0 once canceled)
        origin: "manual" or "recurrence"
    """

    status = serializers.SerializerMethodField()
    outstanding_cents = serializers.SerializerMethodField()
    origin = serializers.CharField(read_only=True)
    tags = serializers.PrimaryKeyRelatedField(many=True, read_only=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "store_id",
            "kind",
            "description",
            "document_number",
            "issue_date",
            "attachment_url",
            "amount_cents",
            "amount_paid_cents",
            "outstanding_cents",
            "currency",
            "due_date",
            "paid_date",
            "status",
            "workflow_flag",
            "origin",
            "recurrence",
            "counterparty",
            "category",
            "cost_center",
            "tags",
            "bank_account",
            "canceled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_status(self, obj: Transaction) -> str:
        return obj.current_status(self.context.get("as_of"))

    def get_outstanding_cents(self, obj: Transaction) -> int:
        return obj.outstanding.cents


class TransactionCreateSerializer(MoneyInputMixin, serializers.Serializer):
    """
    Input for recording a manual transaction.

    Classification references are resolved here; store ownership is
    checked by the ledger service.
    """

    kind = serializers.ChoiceField(choices=TransactionKind.choices)
    amount_cents = serializers.IntegerField(help_text="Amount in cents, > 0")
    currency = serializers.CharField(
        max_length=3,
        required=False,
        help_text="ISO 4217 code (default: FINANCE_DEFAULT_CURRENCY)",
    )
    due_date = serializers.DateField()
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)
    document_number = serializers.CharField(max_length=60, required=False, allow_blank=True)
    issue_date = serializers.DateField(required=False, allow_null=True)
    attachment_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    counterparty = serializers.PrimaryKeyRelatedField(
        queryset=Party.objects.all(), required=False, allow_null=True
    )
    category = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(), required=False, allow_null=True
    )
    cost_center = serializers.PrimaryKeyRelatedField(
        queryset=CostCenter.objects.all(), required=False, allow_null=True
    )
    tags = serializers.PrimaryKeyRelatedField(
        queryset=Tag.objects.all(), many=True, required=False
    )
    bank_account = serializers.PrimaryKeyRelatedField(
        queryset=BankAccount.objects.all(), required=False, allow_null=True
    )


class TransactionFilterSerializer(serializers.Serializer):
    """Query parameters accepted by the transaction list."""

    kind = serializers.ChoiceField(choices=TransactionKind.choices, required=False)
    status = serializers.ChoiceField(choices=TransactionStatus.choices, required=False)
    due_from = serializers.DateField(required=False)
    due_to = serializers.DateField(required=False)
    counterparty = serializers.UUIDField(required=False)
    category = serializers.UUIDField(required=False)
    cost_center = serializers.UUIDField(required=False)
    origin = serializers.ChoiceField(choices=["manual", "recurrence"], required=False)
    as_of = serializers.DateField(required=False)

    def validate(self, attrs: dict) -> dict:
        due_from, due_to = attrs.get("due_from"), attrs.get("due_to")
        if due_from and due_to and due_from > due_to:
            raise serializers.ValidationError({"due_to": "Must not be before due_from."})
        return attrs


# =============================================================================
# Payments
# =============================================================================


class PaymentSerializer(serializers.ModelSerializer):
    is_reversal = serializers.BooleanField(read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "transaction",
            "amount_cents",
            "currency",
            "method",
            "paid_on",
            "note",
            "bank_account",
            "reverses",
            "is_reversal",
            "created_at",
        ]
        read_only_fields = fields


class PaymentCreateSerializer(MoneyInputMixin, serializers.Serializer):
    """
    Input for applying a payment.

    ``currency`` defaults to the transaction's own currency and
    ``paid_on`` to today.
    """

    amount_cents = serializers.IntegerField(help_text="Amount in cents, > 0")
    currency = serializers.CharField(max_length=3, required=False)
    method = serializers.ChoiceField(choices=PaymentMethod.choices)
    paid_on = serializers.DateField(required=False)
    note = serializers.CharField(required=False, allow_blank=True, default="")
    expected_kind = serializers.ChoiceField(
        choices=[TransactionKind.PAYABLE, TransactionKind.RECEIVABLE],
        required=False,
        help_text="Reject the payment unless the transaction has this kind",
    )
    bank_account = serializers.PrimaryKeyRelatedField(
        queryset=BankAccount.objects.all(),
        required=False,
        allow_null=True,
        help_text="Account the money moved through (required for pix, bank_transfer, deposit)",
    )


class PaymentReverseSerializer(serializers.Serializer):
    """Input for reversing a payment (whole payment when amount_cents is omitted)."""

    amount_cents = serializers.IntegerField(required=False)
    currency = serializers.CharField(max_length=3, required=False)
    note = serializers.CharField(required=False, allow_blank=True, default="")
    reversed_on = serializers.DateField(required=False)

    def validate_currency(self, value: str) -> str:
        return normalize_currency(value)

    def money(self, default_currency: str) -> Money | None:
        data = self.validated_data
        if data.get("amount_cents") is None:
            return None
        return Money(data["amount_cents"], data.get("currency") or default_currency)


# =============================================================================
# Recurrences
# =============================================================================


class RecurrenceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Recurrence
        fields = [
            "id",
            "store_id",
            "kind",
            "description",
            "amount_cents",
            "currency",
            "frequency",
            "status",
            "start_date",
            "end_date",
            "next_due_date",
            "day_of_month",
            "counterparty",
            "category",
            "cost_center",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class RecurrenceCreateSerializer(MoneyInputMixin, serializers.Serializer):
    kind = serializers.ChoiceField(choices=RecurrenceKind.choices)
    description = serializers.CharField(max_length=255)
    amount_cents = serializers.IntegerField(help_text="Amount per occurrence in cents")
    currency = serializers.CharField(max_length=3, required=False)
    frequency = serializers.ChoiceField(choices=RecurrenceFrequency.choices)
    start_date = serializers.DateField()
    end_date = serializers.DateField(required=False, allow_null=True)
    day_of_month = serializers.IntegerField(required=False, allow_null=True)
    counterparty = serializers.PrimaryKeyRelatedField(
        queryset=Party.objects.all(), required=False, allow_null=True
    )
    category = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(), required=False, allow_null=True
    )
    cost_center = serializers.PrimaryKeyRelatedField(
        queryset=CostCenter.objects.all(), required=False, allow_null=True
    )


class RecurrenceFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=RecurrenceStatus.choices, required=False)
    kind = serializers.ChoiceField(choices=RecurrenceKind.choices, required=False)
    search = serializers.CharField(required=False, allow_blank=True)


class RecurrenceGenerateSerializer(serializers.Serializer):
    target_date = serializers.DateField(
        required=False,
        help_text="Materialize occurrences up to this date (default: today)",
    )


# =============================================================================
# Reports
# =============================================================================


class ReportQuerySerializer(serializers.Serializer):
    """Query parameters shared by the report endpoints."""

    as_of = serializers.DateField(required=False)
    kind = serializers.ChoiceField(choices=TransactionKind.choices, required=False)
    due_from = serializers.DateField(required=False)
    due_to = serializers.DateField(required=False)
    group_by = serializers.ChoiceField(choices=list(GROUP_FIELDS), required=False, default="store")
