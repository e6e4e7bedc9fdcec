"""
ViewSets for the finance API.

Every route is nested under a store: the ``store_id`` URL kwarg scopes
all lookups, and a record owned by another store is refused with
CrossStoreAccess (403). Business rules live in the service layer; views
only parse input, call a service and serialize the result. Service
errors are rendered by core.exceptions.api_exception_handler.

URL Structure (prefix /api/v1/stores/{store_id}/finance/):
    transactions/                       GET, POST
    transactions/{id}/                  GET
    transactions/{id}/cancel/           POST
    transactions/{id}/approve/          POST
    transactions/{id}/schedule/         POST
    transactions/{id}/payments/         GET, POST
    payments/{id}/                      GET
    payments/{id}/reverse/              POST
    recurrences/                        GET, POST
    recurrences/{id}/                   GET
    recurrences/{id}/pause/             POST
    recurrences/{id}/resume/            POST
    recurrences/{id}/generate/          POST
    parties/ categories/ cost-centers/ tags/ bank-accounts/   CRUD
    reports/summary|outstanding|aging|totals|bank-balances/  GET
"""

from __future__ import annotations

import logging

from django.db import IntegrityError, transaction as db_transaction
from django.db.models import ProtectedError, Q
from django.utils import timezone
from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import ConflictError
from finance.locks import recurrence_lock
from finance.models import BankAccount, Category, CostCenter, Party, PartyStatus, Tag
from finance.pagination import (
    CatalogCursorPagination,
    RecurrenceCursorPagination,
    TransactionCursorPagination,
)
from finance.serializers import (
    BankAccountSerializer,
    CategorySerializer,
    CostCenterSerializer,
    PartySerializer,
    PaymentCreateSerializer,
    PaymentReverseSerializer,
    PaymentSerializer,
    RecurrenceCreateSerializer,
    RecurrenceFilterSerializer,
    RecurrenceGenerateSerializer,
    RecurrenceSerializer,
    ReportQuerySerializer,
    TagSerializer,
    TransactionCreateSerializer,
    TransactionFilterSerializer,
    TransactionSerializer,
)
from finance.services import allocator, ledger, reporting, scheduler

logger = logging.getLogger(__name__)


class StoreScopedViewMixin:
    """Expose the store from the URL as ``self.store_id``."""

    @property
    def store_id(self):
        return self.kwargs["store_id"]


# =============================================================================
# Transactions
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_transactions",
        summary="List transactions",
        parameters=[TransactionFilterSerializer],
        tags=["Finance - Transactions"],
    ),
    retrieve=extend_schema(
        operation_id="get_transaction",
        summary="Get transaction",
        tags=["Finance - Transactions"],
    ),
    create=extend_schema(
        operation_id="create_transaction",
        summary="Record a transaction",
        request=TransactionCreateSerializer,
        responses={201: TransactionSerializer},
        tags=["Finance - Transactions"],
    ),
)
class TransactionViewSet(StoreScopedViewMixin, viewsets.GenericViewSet):
    """
    Payables, receivables, transfers and adjustments of one store.

    list:
        Filter by kind, derived status (at ``as_of``, default today),
        due-date range, counterparty, category, cost center and origin.

    cancel:
        Cancel an unsettled transaction. Refused once payments exist.

    approve / schedule:
        Set the pass-through workflow flag.

    payments:
        GET lists payments and reversals; POST applies a payment.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = TransactionSerializer
    pagination_class = TransactionCursorPagination

    def list(self, request, store_id=None):
        params = TransactionFilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        filters = params.validated_data

        queryset = ledger.list_transactions(
            store_id=self.store_id,
            kind=filters.get("kind"),
            status=filters.get("status"),
            due_from=filters.get("due_from"),
            due_to=filters.get("due_to"),
            counterparty_id=filters.get("counterparty"),
            category_id=filters.get("category"),
            cost_center_id=filters.get("cost_center"),
            origin=filters.get("origin"),
            as_of=filters.get("as_of"),
        )
        context = {"request": request, "as_of": filters.get("as_of")}
        page = self.paginate_queryset(queryset)
        serializer = TransactionSerializer(page, many=True, context=context)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request, store_id=None, pk=None):
        txn = ledger.get(pk, self.store_id)
        return Response(TransactionSerializer(txn, context={"request": request}).data)

    def create(self, request, store_id=None):
        serializer = TransactionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        txn = ledger.create(
            store_id=self.store_id,
            kind=data["kind"],
            amount=serializer.money(),
            due_date=data["due_date"],
            counterparty=data.get("counterparty"),
            category=data.get("category"),
            cost_center=data.get("cost_center"),
            tags=data.get("tags", ()),
            description=data.get("description", ""),
            document_number=data.get("document_number", ""),
            issue_date=data.get("issue_date"),
            attachment_url=data.get("attachment_url", ""),
            bank_account=data.get("bank_account"),
            created_by=request.user,
        )
        return Response(
            TransactionSerializer(txn, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(
        operation_id="cancel_transaction",
        summary="Cancel transaction",
        request=None,
        responses={
            200: TransactionSerializer,
            409: OpenApiResponse(description="Paid, partially paid or already canceled"),
        },
        tags=["Finance - Transactions"],
    )
    @action(detail=True, methods=["post"])
    def cancel(self, request, store_id=None, pk=None):
        txn = ledger.cancel(pk, store_id=self.store_id, actor=request.user)
        return Response(TransactionSerializer(txn, context={"request": request}).data)

    @extend_schema(
        operation_id="approve_transaction",
        summary="Mark transaction as approved",
        request=None,
        responses={200: TransactionSerializer},
        tags=["Finance - Transactions"],
    )
    @action(detail=True, methods=["post"])
    def approve(self, request, store_id=None, pk=None):
        txn = ledger.approve(pk, store_id=self.store_id, actor=request.user)
        return Response(TransactionSerializer(txn, context={"request": request}).data)

    @extend_schema(
        operation_id="schedule_transaction",
        summary="Mark transaction as scheduled",
        request=None,
        responses={200: TransactionSerializer},
        tags=["Finance - Transactions"],
    )
    @action(detail=True, methods=["post"])
    def schedule(self, request, store_id=None, pk=None):
        txn = ledger.schedule(pk, store_id=self.store_id, actor=request.user)
        return Response(TransactionSerializer(txn, context={"request": request}).data)

    @extend_schema(
        operation_id="transaction_payments",
        summary="List or apply payments",
        request=PaymentCreateSerializer,
        responses={
            200: PaymentSerializer(many=True),
            201: PaymentSerializer,
            409: OpenApiResponse(description="Overpayment or canceled transaction"),
        },
        tags=["Finance - Payments"],
    )
    @action(detail=True, methods=["get", "post"])
    def payments(self, request, store_id=None, pk=None):
        if request.method == "GET":
            payments = allocator.list_payments(pk, store_id=self.store_id)
            return Response(PaymentSerializer(payments, many=True).data)

        txn = ledger.get(pk, self.store_id)
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payment = allocator.apply(
            txn.id,
            serializer.money(default_currency=txn.currency),
            method=data["method"],
            paid_on=data.get("paid_on") or timezone.localdate(),
            note=data.get("note", ""),
            store_id=self.store_id,
            actor=request.user,
            expected_kind=data.get("expected_kind"),
            bank_account=data.get("bank_account"),
        )
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


# =============================================================================
# Payments
# =============================================================================


@extend_schema_view(
    retrieve=extend_schema(
        operation_id="get_payment",
        summary="Get payment",
        tags=["Finance - Payments"],
    ),
)
class PaymentViewSet(StoreScopedViewMixin, viewsets.GenericViewSet):
    """
    Individual payments. Payments are immutable; mistakes are compensated
    with a reversal.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = PaymentSerializer

    def retrieve(self, request, store_id=None, pk=None):
        payment = allocator.get_payment(pk, self.store_id)
        return Response(PaymentSerializer(payment).data)

    @extend_schema(
        operation_id="reverse_payment",
        summary="Reverse payment",
        request=PaymentReverseSerializer,
        responses={
            201: PaymentSerializer,
            409: OpenApiResponse(description="Invalid reversal"),
        },
        tags=["Finance - Payments"],
    )
    @action(detail=True, methods=["post"])
    def reverse(self, request, store_id=None, pk=None):
        original = allocator.get_payment(pk, self.store_id)
        serializer = PaymentReverseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        reversal = allocator.reverse(
            original.id,
            amount=serializer.money(default_currency=original.currency),
            note=data.get("note", ""),
            reversed_on=data.get("reversed_on"),
            store_id=self.store_id,
            actor=request.user,
        )
        return Response(PaymentSerializer(reversal).data, status=status.HTTP_201_CREATED)


# =============================================================================
# Recurrences
# =============================================================================


@extend_schema_view(
    list=extend_schema(
        operation_id="list_recurrences",
        summary="List recurrences",
        parameters=[RecurrenceFilterSerializer],
        tags=["Finance - Recurrences"],
    ),
    retrieve=extend_schema(
        operation_id="get_recurrence",
        summary="Get recurrence",
        tags=["Finance - Recurrences"],
    ),
    create=extend_schema(
        operation_id="create_recurrence",
        summary="Create recurrence",
        request=RecurrenceCreateSerializer,
        responses={201: RecurrenceSerializer},
        tags=["Finance - Recurrences"],
    ),
)
class RecurrenceViewSet(StoreScopedViewMixin, viewsets.GenericViewSet):
    """
    Recurring obligations of one store.

    generate:
        Materialize due occurrences up to ``target_date`` right away,
        instead of waiting for the daily scan.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = RecurrenceSerializer
    pagination_class = RecurrenceCursorPagination

    def list(self, request, store_id=None):
        params = RecurrenceFilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        queryset = scheduler.list_recurrences(self.store_id, **params.validated_data)
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(RecurrenceSerializer(page, many=True).data)

    def retrieve(self, request, store_id=None, pk=None):
        recurrence = scheduler.get(pk, self.store_id)
        return Response(RecurrenceSerializer(recurrence).data)

    def create(self, request, store_id=None):
        serializer = RecurrenceCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        recurrence = scheduler.create(
            store_id=self.store_id,
            kind=data["kind"],
            description=data["description"],
            amount=serializer.money(),
            frequency=data["frequency"],
            start_date=data["start_date"],
            end_date=data.get("end_date"),
            day_of_month=data.get("day_of_month"),
            counterparty=data.get("counterparty"),
            category=data.get("category"),
            cost_center=data.get("cost_center"),
            created_by=request.user,
        )
        return Response(RecurrenceSerializer(recurrence).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="pause_recurrence",
        summary="Pause recurrence",
        request=None,
        responses={200: RecurrenceSerializer},
        tags=["Finance - Recurrences"],
    )
    @action(detail=True, methods=["post"])
    def pause(self, request, store_id=None, pk=None):
        recurrence = scheduler.pause(pk, store_id=self.store_id, actor=request.user)
        return Response(RecurrenceSerializer(recurrence).data)

    @extend_schema(
        operation_id="resume_recurrence",
        summary="Resume recurrence",
        request=None,
        responses={200: RecurrenceSerializer},
        tags=["Finance - Recurrences"],
    )
    @action(detail=True, methods=["post"])
    def resume(self, request, store_id=None, pk=None):
        recurrence = scheduler.resume(pk, store_id=self.store_id, actor=request.user)
        return Response(RecurrenceSerializer(recurrence).data)

    @extend_schema(
        operation_id="generate_recurrence",
        summary="Materialize due occurrences",
        request=RecurrenceGenerateSerializer,
        responses={
            200: TransactionSerializer(many=True),
            409: OpenApiResponse(description="Recurrence not active or busy"),
        },
        tags=["Finance - Recurrences"],
    )
    @action(detail=True, methods=["post"])
    def generate(self, request, store_id=None, pk=None):
        recurrence = scheduler.get(pk, self.store_id)
        serializer = RecurrenceGenerateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        target_date = serializer.validated_data.get("target_date")

        with recurrence_lock(recurrence.id):
            created = scheduler.advance(recurrence.id, as_of=target_date, store_id=self.store_id)

        context = {"request": request, "as_of": target_date}
        return Response(TransactionSerializer(created, many=True, context=context).data)


# =============================================================================
# Reference Data
# =============================================================================


class StoreCatalogViewSet(StoreScopedViewMixin, viewsets.ModelViewSet):
    """
    CRUD for store-owned reference data.

    Uniqueness violations and deletes of records still referenced by
    transactions are reported as conflicts.
    """

    permission_classes = [IsAuthenticated]
    pagination_class = CatalogCursorPagination
    model = None

    def get_queryset(self):
        return self.model.objects.filter(store_id=self.store_id)

    def perform_create(self, serializer):
        try:
            with db_transaction.atomic():
                serializer.save(store_id=self.store_id)
        except IntegrityError as e:
            raise ConflictError(
                f"{self.model.__name__} already exists",
                error_code="DUPLICATE_RECORD",
                details={"store_id": str(self.store_id)},
            ) from e

    def perform_update(self, serializer):
        try:
            with db_transaction.atomic():
                serializer.save()
        except IntegrityError as e:
            raise ConflictError(
                f"{self.model.__name__} already exists",
                error_code="DUPLICATE_RECORD",
                details={"id": str(serializer.instance.pk)},
            ) from e

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError as e:
            raise ConflictError(
                f"{self.model.__name__} {instance.pk} is still referenced",
                error_code="RECORD_IN_USE",
                details={"id": str(instance.pk)},
            ) from e
        logger.info(
            "Catalog record deleted",
            extra={"model": self.model.__name__, "id": str(instance.pk)},
        )


@extend_schema_view(
    list=extend_schema(operation_id="list_parties", tags=["Finance - Parties"]),
    create=extend_schema(operation_id="create_party", tags=["Finance - Parties"]),
    retrieve=extend_schema(operation_id="get_party", tags=["Finance - Parties"]),
    update=extend_schema(operation_id="replace_party", tags=["Finance - Parties"]),
    partial_update=extend_schema(operation_id="update_party", tags=["Finance - Parties"]),
    destroy=extend_schema(operation_id="delete_party", tags=["Finance - Parties"]),
)
class PartyViewSet(StoreCatalogViewSet):
    model = Party
    serializer_class = PartySerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        role = self.request.query_params.get("role")
        if role in ("customer", "supplier", "employee", "salesperson"):
            queryset = queryset.filter(**{f"is_{role}": True})
        party_status = self.request.query_params.get("status")
        if party_status in PartyStatus.values:
            queryset = queryset.filter(status=party_status)
        search = self.request.query_params.get("search")
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search)
                | Q(trade_name__icontains=search)
                | Q(document__icontains=search)
                | Q(email__icontains=search)
            )
        return queryset


@extend_schema_view(
    list=extend_schema(operation_id="list_categories", tags=["Finance - Catalogs"]),
    create=extend_schema(operation_id="create_category", tags=["Finance - Catalogs"]),
    retrieve=extend_schema(operation_id="get_category", tags=["Finance - Catalogs"]),
    update=extend_schema(operation_id="replace_category", tags=["Finance - Catalogs"]),
    partial_update=extend_schema(operation_id="update_category", tags=["Finance - Catalogs"]),
    destroy=extend_schema(operation_id="delete_category", tags=["Finance - Catalogs"]),
)
class CategoryViewSet(StoreCatalogViewSet):
    model = Category
    serializer_class = CategorySerializer


@extend_schema_view(
    list=extend_schema(operation_id="list_cost_centers", tags=["Finance - Catalogs"]),
    create=extend_schema(operation_id="create_cost_center", tags=["Finance - Catalogs"]),
    retrieve=extend_schema(operation_id="get_cost_center", tags=["Finance - Catalogs"]),
    update=extend_schema(operation_id="replace_cost_center", tags=["Finance - Catalogs"]),
    partial_update=extend_schema(
        operation_id="update_cost_center", tags=["Finance - Catalogs"]
    ),
    destroy=extend_schema(operation_id="delete_cost_center", tags=["Finance - Catalogs"]),
)
class CostCenterViewSet(StoreCatalogViewSet):
    model = CostCenter
    serializer_class = CostCenterSerializer


@extend_schema_view(
    list=extend_schema(operation_id="list_tags", tags=["Finance - Catalogs"]),
    create=extend_schema(operation_id="create_tag", tags=["Finance - Catalogs"]),
    retrieve=extend_schema(operation_id="get_tag", tags=["Finance - Catalogs"]),
    update=extend_schema(operation_id="replace_tag", tags=["Finance - Catalogs"]),
    partial_update=extend_schema(operation_id="update_tag", tags=["Finance - Catalogs"]),
    destroy=extend_schema(operation_id="delete_tag", tags=["Finance - Catalogs"]),
)
class TagViewSet(StoreCatalogViewSet):
    model = Tag
    serializer_class = TagSerializer


@extend_schema_view(
    list=extend_schema(operation_id="list_bank_accounts", tags=["Finance - Bank Accounts"]),
    create=extend_schema(operation_id="create_bank_account", tags=["Finance - Bank Accounts"]),
    retrieve=extend_schema(operation_id="get_bank_account", tags=["Finance - Bank Accounts"]),
    update=extend_schema(operation_id="replace_bank_account", tags=["Finance - Bank Accounts"]),
    partial_update=extend_schema(
        operation_id="update_bank_account", tags=["Finance - Bank Accounts"]
    ),
    destroy=extend_schema(operation_id="delete_bank_account", tags=["Finance - Bank Accounts"]),
)
class BankAccountViewSet(StoreCatalogViewSet):
    """Bank accounts; an account with payments recorded on it cannot be deleted."""

    model = BankAccount
    serializer_class = BankAccountSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        account_status = self.request.query_params.get("status")
        if account_status:
            queryset = queryset.filter(status=account_status)
        return queryset


# =============================================================================
# Reports
# =============================================================================


class ReportViewSet(StoreScopedViewMixin, viewsets.ViewSet):
    """Read-only aggregations, grouped by currency."""

    permission_classes = [IsAuthenticated]

    def _query(self, request) -> dict:
        params = ReportQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        return params.validated_data

    @extend_schema(
        operation_id="report_summary",
        summary="Dashboard KPIs",
        parameters=[ReportQuerySerializer],
        tags=["Finance - Reports"],
    )
    @action(detail=False, methods=["get"])
    def summary(self, request, store_id=None):
        query = self._query(request)
        return Response(
            reporting.summary(
                self.store_id,
                as_of=query.get("as_of"),
                kind=query.get("kind"),
                due_from=query.get("due_from"),
                due_to=query.get("due_to"),
            )
        )

    @extend_schema(
        operation_id="report_outstanding",
        summary="Open balance by store, category or cost center",
        parameters=[ReportQuerySerializer],
        tags=["Finance - Reports"],
    )
    @action(detail=False, methods=["get"])
    def outstanding(self, request, store_id=None):
        query = self._query(request)
        return Response(
            reporting.outstanding(
                self.store_id, group_by=query["group_by"], kind=query.get("kind")
            )
        )

    @extend_schema(
        operation_id="report_aging",
        summary="Open balance by days overdue",
        parameters=[ReportQuerySerializer],
        tags=["Finance - Reports"],
    )
    @action(detail=False, methods=["get"])
    def aging(self, request, store_id=None):
        query = self._query(request)
        return Response(
            reporting.aging(self.store_id, as_of=query.get("as_of"), kind=query.get("kind"))
        )

    @extend_schema(
        operation_id="report_totals",
        summary="Totals per currency",
        parameters=[ReportQuerySerializer],
        tags=["Finance - Reports"],
    )
    @action(detail=False, methods=["get"])
    def totals(self, request, store_id=None):
        query = self._query(request)
        return Response(
            reporting.totals_by_currency(
                self.store_id,
                kind=query.get("kind"),
                due_from=query.get("due_from"),
                due_to=query.get("due_to"),
            )
        )

    @extend_schema(
        operation_id="report_bank_balances",
        summary="Balance of each bank account",
        parameters=[ReportQuerySerializer],
        tags=["Finance - Reports"],
    )
    @action(detail=False, methods=["get"], url_path="bank-balances")
    def bank_balances(self, request, store_id=None):
        query = self._query(request)
        return Response(reporting.bank_balances(self.store_id, as_of=query.get("as_of")))
