# accounting/views.py
"""
Thin views that delegate to the commands layer.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: business logic, validation, ledger writes.

CRITICAL: All mutations (create, update, delete) MUST go through commands.
Views should never directly call .save() on models.
"""

from django.db.models import Exists, OuterRef
from django.http import Http404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from accounting.errors import LedgerError
from accounting.models import Account, Journal, JournalLine, PeriodSnapshot, PeriodStatus
from accounting.responses import error_response, ledger_error_response
from accounting.serializers import (
    AccountCreateSerializer,
    AccountSerializer,
    AccountUpdateSerializer,
    JournalCreateSerializer,
    JournalSerializer,
    JournalUpdateSerializer,
    PeriodReopenSerializer,
    PeriodSnapshotSerializer,
    PeriodStatusSerializer,
    TaxComputeSerializer,
    VoidSerializer,
)
from accounting.commands import (
    # Account commands
    create_account,
    update_account,
    delete_account,
    # Journal commands
    create_journal,
    update_draft_journal,
    post_draft_journal,
    delete_draft_journal,
    void_journal,
    # Period commands
    close_period,
    reopen_period,
)
from accounting.tax import compute_tax


# =============================================================================
# Account Views
# =============================================================================

class AccountListCreateView(APIView):
    """
    GET /api/accounting/accounts/ -> list the chart of accounts
    POST /api/accounting/accounts/ -> create account
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "accounts.view")

        accounts = Account.objects.annotate(
            _has_transactions=Exists(
                JournalLine.objects.filter(account=OuterRef("code"))
            ),
        ).order_by("code")

        account_type = request.query_params.get("type")
        if account_type:
            accounts = accounts.filter(account_type=account_type)
        if request.query_params.get("active") == "true":
            accounts = accounts.filter(is_active=True)

        serializer = AccountSerializer(accounts, many=True)
        return Response(serializer.data)

    def post(self, request):
        actor = resolve_actor(request)
        # Permission check happens in command

        input_serializer = AccountCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = create_account(actor, **input_serializer.validated_data)
        if not result.success:
            return error_response(result)

        output_serializer = AccountSerializer(result.data)
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)


class AccountDetailView(APIView):
    """
    GET /api/accounting/accounts/<code>/ -> retrieve account
    PATCH /api/accounting/accounts/<code>/ -> update account
    DELETE /api/accounting/accounts/<code>/ -> delete account
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, code):
        actor = resolve_actor(request)
        require(actor, "accounts.view")

        account = Account.objects.filter(code=code).first()
        if not account:
            raise Http404
        return Response(AccountSerializer(account).data)

    def patch(self, request, code):
        actor = resolve_actor(request)

        input_serializer = AccountUpdateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = update_account(actor, code, **input_serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(AccountSerializer(result.data).data)

    def delete(self, request, code):
        actor = resolve_actor(request)

        result = delete_account(actor, code)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Journal Views
# =============================================================================

class JournalListCreateView(APIView):
    """
    GET /api/accounting/journals/ -> list journals (?status=&period=&source=)
    POST /api/accounting/journals/ -> create a manual journal (draft, or posted with post=true)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "journal.view")

        journals = Journal.objects.prefetch_related("lines__account").select_related("reversal_journal")
        params = request.query_params
        if params.get("status"):
            journals = journals.filter(status=params["status"])
        if params.get("period"):
            journals = journals.filter(period=params["period"])
        if params.get("source"):
            journals = journals.filter(source_doc_type=params["source"])

        serializer = JournalSerializer(journals, many=True)
        return Response(serializer.data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = JournalCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = create_journal(
            actor,
            date=data["date"],
            description=data["description"],
            lines=data["lines"],
            post=data["post"],
            idempotency_key=data["idempotency_key"] or None,
        )
        if not result.success:
            return error_response(result)

        return Response(JournalSerializer(result.data).data, status=status.HTTP_201_CREATED)


class JournalDetailView(APIView):
    """
    GET /api/accounting/journals/<pk>/ -> retrieve journal with lines
    PATCH /api/accounting/journals/<pk>/ -> edit a draft
    DELETE /api/accounting/journals/<pk>/ -> delete a draft
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "journal.view")

        journal = Journal.objects.filter(pk=pk).prefetch_related("lines__account").first()
        if not journal:
            raise Http404
        return Response(JournalSerializer(journal).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)

        serializer = JournalUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_draft_journal(actor, pk, **serializer.validated_data)
        if not result.success:
            return error_response(result)
        return Response(JournalSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)

        result = delete_draft_journal(actor, pk)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class JournalPostView(APIView):
    """
    POST /api/accounting/journals/<pk>/post/ -> post a draft
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        result = post_draft_journal(actor, pk)
        if not result.success:
            return error_response(result)

        journal = result.data
        return Response({
            "id": journal.id,
            "number": journal.number,
            "status": journal.status,
            "period": journal.period,
            "posted_at": journal.posted_at,
            "posted_by": journal.posted_by_id,
        })


class JournalVoidView(APIView):
    """
    POST /api/accounting/journals/<pk>/void/ -> void a posted manual journal (admin)
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        serializer = VoidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = void_journal(actor, pk, serializer.validated_data["reason"])
        if not result.success:
            return error_response(result)

        reversal = result.data["reversal"]
        original = result.data["original"]
        return Response(
            {
                "id": reversal.id,
                "number": reversal.number,
                "kind": reversal.kind,
                "status": reversal.status,
                "reverses_journal": original.id,
                "voided_at": original.voided_at,
            },
            status=status.HTTP_201_CREATED,
        )


# =============================================================================
# Tax Views
# =============================================================================

class TaxComputeView(APIView):
    """
    POST /api/accounting/tax/compute/ -> VAT and PPh 23 for a subtotal
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        actor = resolve_actor(request)
        require(actor, "tax.compute")

        serializer = TaxComputeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        party = None
        if data.get("vendor_id"):
            from billing.models import Vendor
            party = Vendor.objects.filter(pk=data["vendor_id"]).first()
            if party is None:
                return Response(
                    {"detail": "Vendor not found.", "kind": "not_found"},
                    status=status.HTTP_404_NOT_FOUND,
                )

        try:
            breakdown = compute_tax(
                data["subtotal"],
                kind=data["kind"],
                faktur_pajak_number=data["faktur_pajak_number"],
                party=party,
            )
        except LedgerError as exc:
            return ledger_error_response(exc)

        return Response(breakdown.to_dict())


# =============================================================================
# Period Views
# =============================================================================

class PeriodListView(APIView):
    """
    GET /api/accounting/periods/ -> period statuses (months without a row are open)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "periods.view")

        periods = PeriodStatus.objects.all()
        return Response(PeriodStatusSerializer(periods, many=True).data)


class PeriodSnapshotView(APIView):
    """
    GET /api/accounting/periods/<period>/snapshot/ -> balances frozen at close
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, period):
        actor = resolve_actor(request)
        require(actor, "periods.view")

        rows = PeriodSnapshot.objects.filter(period=period).order_by("account_id")
        return Response(PeriodSnapshotSerializer(rows, many=True).data)


class PeriodCloseView(APIView):
    """
    POST /api/accounting/periods/<period>/close/ -> close a month (admin)
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, period):
        actor = resolve_actor(request)

        result = close_period(actor, period)
        if not result.success:
            return error_response(result)
        return Response(PeriodStatusSerializer(result.data).data)


class PeriodReopenView(APIView):
    """
    POST /api/accounting/periods/<period>/reopen/ -> reopen a closed month (admin)
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, period):
        actor = resolve_actor(request)

        serializer = PeriodReopenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = reopen_period(actor, period, serializer.validated_data["reason"])
        if not result.success:
            return error_response(result)
        return Response(PeriodStatusSerializer(result.data).data)
