"""
URL configuration for the finance API.

All routes are prefixed with /api/v1/stores/<store_id>/finance/ in the
main URL configuration; see finance.views for the full route table.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from finance.views import (
    BankAccountViewSet,
    CategoryViewSet,
    CostCenterViewSet,
    PartyViewSet,
    PaymentViewSet,
    RecurrenceViewSet,
    ReportViewSet,
    TagViewSet,
    TransactionViewSet,
)

router = DefaultRouter()
router.register(r"transactions", TransactionViewSet, basename="transaction")
router.register(r"payments", PaymentViewSet, basename="payment")
router.register(r"recurrences", RecurrenceViewSet, basename="recurrence")
router.register(r"parties", PartyViewSet, basename="party")
router.register(r"categories", CategoryViewSet, basename="category")
router.register(r"cost-centers", CostCenterViewSet, basename="cost-center")
router.register(r"tags", TagViewSet, basename="tag")
router.register(r"bank-accounts", BankAccountViewSet, basename="bank-account")
router.register(r"reports", ReportViewSet, basename="report")

app_name = "finance"

urlpatterns = [
    path("", include(router.urls)),
]
