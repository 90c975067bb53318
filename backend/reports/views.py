# reports/views.py
"""
Report API. All reads; no commands involved.

GET /api/reports/trial-balance/?as_of=YYYY-MM-DD
GET /api/reports/ledger/<code>/?date_from=&date_to=
GET /api/reports/ap-aging/?as_of=
GET /api/reports/ar-aging/?as_of=
GET /api/reports/profit-loss/?period_from=YYYY-MM&period_to=YYYY-MM
GET /api/reports/balance-sheet/?as_of=
GET /api/reports/tax-summary/?period_from=&period_to=
GET /api/reports/cash-flow/?date_from=&date_to=
GET /api/reports/project-profitability/?date_from=&date_to=

Every report also accepts ``export=xlsx|csv|txt`` and then answers with a
file download instead of JSON.
"""

from datetime import date

from django.utils import timezone
from rest_framework import serializers
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from accounting.errors import LedgerError
from accounting.models import PERIOD_PATTERN, period_of
from accounting.responses import ledger_error_response
from reports.exports import (
    AGING_COLUMNS,
    LEDGER_COLUMNS,
    STATEMENT_COLUMNS,
    PROJECT_COLUMNS,
    TAX_COLUMNS,
    TRIAL_BALANCE_COLUMNS,
    ExportFormat,
    balance_sheet_rows,
    cash_flow_rows,
    create_export_response,
    ledger_rows,
    profit_loss_rows,
    tax_summary_rows,
    trial_balance_rows,
)
from reports.queries import (
    account_ledger,
    ap_aging,
    ar_aging,
    balance_sheet,
    cash_flow,
    profit_loss,
    project_profitability,
    tax_summary,
    trial_balance,
)


class ReportQuerySerializer(serializers.Serializer):
    as_of = serializers.DateField(required=False, default=None)
    date_from = serializers.DateField(required=False, default=None)
    date_to = serializers.DateField(required=False, default=None)
    period_from = serializers.RegexField(PERIOD_PATTERN, required=False, default=None)
    period_to = serializers.RegexField(PERIOD_PATTERN, required=False, default=None)
    export = serializers.ChoiceField(choices=ExportFormat.CHOICES, required=False, default=None)


def _query(request) -> dict[str, date | str | None]:
    serializer = ReportQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class TrialBalanceView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")

        query = _query(request)
        report = trial_balance(query["as_of"])
        if query["export"]:
            return create_export_response(
                trial_balance_rows(report),
                TRIAL_BALANCE_COLUMNS,
                query["export"],
                filename=f"neraca-saldo-{report['as_of_date']}",
                title=f"Neraca Saldo per {report['as_of_date']}",
            )
        return Response(report)


class AccountLedgerView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, code):
        actor = resolve_actor(request)
        require(actor, "reports.view")

        query = _query(request)
        try:
            report = account_ledger(code, query["date_from"], query["date_to"])
        except LedgerError as exc:
            return ledger_error_response(exc)

        if query["export"]:
            return create_export_response(
                ledger_rows(report),
                LEDGER_COLUMNS,
                query["export"],
                filename=f"buku-besar-{report['code']}",
                title=f"Buku Besar {report['code']} {report['name']}",
            )
        return Response(report)


class _AgingView(APIView):
    permission_classes = [IsAuthenticated]
    report = None
    filename = ""
    title = ""

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")

        query = _query(request)
        report = self.report(query["as_of"])
        if query["export"]:
            return create_export_response(
                report["rows"],
                AGING_COLUMNS,
                query["export"],
                filename=f"{self.filename}-{report['as_of_date']}",
                title=f"{self.title} per {report['as_of_date']}",
            )
        return Response(report)


class APAgingView(_AgingView):
    report = staticmethod(ap_aging)
    filename = "umur-hutang"
    title = "Umur Hutang Usaha"


class ARAgingView(_AgingView):
    report = staticmethod(ar_aging)
    filename = "umur-piutang"
    title = "Umur Piutang Usaha"


class _PeriodReportView(APIView):
    """A report over whole periods; defaults to the current month."""
    permission_classes = [IsAuthenticated]
    report = None
    rows = None
    columns = None
    filename = ""
    title = ""

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")

        query = _query(request)
        period_from = query["period_from"] or period_of(timezone.localdate())
        try:
            report = self.report(period_from, query["period_to"])
        except LedgerError as exc:
            return ledger_error_response(exc)

        if query["export"]:
            span = report["period_from"]
            if report["period_to"] != span:
                span = f"{span}-sd-{report['period_to']}"
            return create_export_response(
                self.rows(report),
                self.columns,
                query["export"],
                filename=f"{self.filename}-{span}",
                title=f"{self.title} {span}",
            )
        return Response(report)


class ProfitLossView(_PeriodReportView):
    report = staticmethod(profit_loss)
    rows = staticmethod(profit_loss_rows)
    columns = STATEMENT_COLUMNS
    filename = "laba-rugi"
    title = "Laporan Laba Rugi"


class TaxSummaryView(_PeriodReportView):
    report = staticmethod(tax_summary)
    rows = staticmethod(tax_summary_rows)
    columns = TAX_COLUMNS
    filename = "ringkasan-pajak"
    title = "Ringkasan PPN dan PPh 23"


class BalanceSheetView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")

        query = _query(request)
        report = balance_sheet(query["as_of"])
        if query["export"]:
            return create_export_response(
                balance_sheet_rows(report),
                STATEMENT_COLUMNS,
                query["export"],
                filename=f"neraca-{report['as_of_date']}",
                title=f"Neraca per {report['as_of_date']}",
            )
        return Response(report)


class CashFlowView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")

        query = _query(request)
        today = timezone.localdate()
        date_from = query["date_from"] or today.replace(day=1)
        date_to = query["date_to"] or today
        try:
            report = cash_flow(date_from, date_to)
        except LedgerError as exc:
            return ledger_error_response(exc)

        if query["export"]:
            span = f"{report['date_from']}-sd-{report['date_to']}"
            return create_export_response(
                cash_flow_rows(report),
                STATEMENT_COLUMNS,
                query["export"],
                filename=f"arus-kas-{span}",
                title=f"Laporan Arus Kas {span}",
            )
        return Response(report)


class ProjectProfitabilityView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "reports.view")

        query = _query(request)
        report = project_profitability(query["date_from"], query["date_to"])
        if query["export"]:
            return create_export_response(
                report["projects"],
                PROJECT_COLUMNS,
                query["export"],
                filename="profitabilitas-proyek",
                title="Profitabilitas Proyek",
            )
        return Response(report)
