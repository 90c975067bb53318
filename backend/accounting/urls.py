# accounting/urls.py
"""
URL configuration for accounting API.

Endpoints:
- /accounts/ - Chart of Accounts CRUD
- /journals/ - Manual journals with post/void actions
- /tax/compute/ - PPN and PPh 23 calculator
- /periods/ - Month close and reopen
"""

from django.urls import path

from accounting.views import (
    # Account views
    AccountListCreateView,
    AccountDetailView,
    # Journal views
    JournalListCreateView,
    JournalDetailView,
    JournalPostView,
    JournalVoidView,
    # Tax views
    TaxComputeView,
    # Period views
    PeriodListView,
    PeriodSnapshotView,
    PeriodCloseView,
    PeriodReopenView,
)

app_name = "accounting"

urlpatterns = [
    # ==========================================================================
    # Accounts (Chart of Accounts)
    # ==========================================================================
    path("accounts/", AccountListCreateView.as_view(), name="account-list"),
    path("accounts/<str:code>/", AccountDetailView.as_view(), name="account-detail"),

    # ==========================================================================
    # Journals
    # ==========================================================================
    path("journals/", JournalListCreateView.as_view(), name="journal-list"),
    path("journals/<int:pk>/", JournalDetailView.as_view(), name="journal-detail"),
    path("journals/<int:pk>/post/", JournalPostView.as_view(), name="journal-post"),
    path("journals/<int:pk>/void/", JournalVoidView.as_view(), name="journal-void"),

    # ==========================================================================
    # Tax
    # ==========================================================================
    path("tax/compute/", TaxComputeView.as_view(), name="tax-compute"),

    # ==========================================================================
    # Periods
    # ==========================================================================
    path("periods/", PeriodListView.as_view(), name="period-list"),
    path("periods/<str:period>/snapshot/", PeriodSnapshotView.as_view(), name="period-snapshot"),
    path("periods/<str:period>/close/", PeriodCloseView.as_view(), name="period-close"),
    path("periods/<str:period>/reopen/", PeriodReopenView.as_view(), name="period-reopen"),
]
