# reports/urls.py

from django.urls import path

from reports.views import (
    AccountLedgerView,
    APAgingView,
    ARAgingView,
    BalanceSheetView,
    CashFlowView,
    ProfitLossView,
    ProjectProfitabilityView,
    TaxSummaryView,
    TrialBalanceView,
)

app_name = "reports"

urlpatterns = [
    path("trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
    path("ledger/<str:code>/", AccountLedgerView.as_view(), name="account-ledger"),
    path("ap-aging/", APAgingView.as_view(), name="ap-aging"),
    path("ar-aging/", ARAgingView.as_view(), name="ar-aging"),
    path("profit-loss/", ProfitLossView.as_view(), name="profit-loss"),
    path("balance-sheet/", BalanceSheetView.as_view(), name="balance-sheet"),
    path("tax-summary/", TaxSummaryView.as_view(), name="tax-summary"),
    path("cash-flow/", CashFlowView.as_view(), name="cash-flow"),
    path("project-profitability/", ProjectProfitabilityView.as_view(), name="project-profitability"),
]
