# billing/views.py
"""
Thin views that delegate to billing/commands.py.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: business logic, numbering, tax, ledger writes.
"""

from django.http import Http404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import require, resolve_actor
from accounting.responses import error_response
from accounting.serializers import VoidSerializer
from billing import commands
from billing.models import (
    BankAccount,
    CashReceipt,
    Client,
    Project,
    SalesInvoice,
    TransactionAttachment,
    Vendor,
    VendorBill,
    VendorPayment,
)
from billing.serializers import (
    BankAccountSerializer,
    CashReceiptCreateSerializer,
    CashReceiptSerializer,
    ClientSerializer,
    ProjectSerializer,
    SalesInvoiceCreateSerializer,
    SalesInvoiceSerializer,
    TransactionAttachmentSerializer,
    VendorBillCreateSerializer,
    VendorBillSerializer,
    VendorPaymentCreateSerializer,
    VendorPaymentSerializer,
    VendorSerializer,
    master_data_fields,
)


def _respond(result, serializer_class, success_status=status.HTTP_200_OK):
    if not result.success:
        return error_response(result)
    return Response(serializer_class(result.data).data, status=success_status)


# =============================================================================
# Master data Views
# =============================================================================

class MasterDataListCreateView(APIView):
    """
    GET -> list rows (?active=true)
    POST -> create a row
    """
    permission_classes = [IsAuthenticated]
    model = None
    serializer_class = None
    create_command = None

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "masterdata.view")

        rows = self.model.objects.all()
        if request.query_params.get("active") == "true" and hasattr(self.model, "is_active"):
            rows = rows.filter(is_active=True)
        return Response(self.serializer_class(rows, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        require(actor, "masterdata.manage")

        data = master_data_fields(self.serializer_class, request.data)
        result = type(self).create_command(actor, **data)
        return _respond(result, self.serializer_class, status.HTTP_201_CREATED)


class MasterDataDetailView(APIView):
    """
    GET -> retrieve a row
    PATCH -> update a row
    """
    permission_classes = [IsAuthenticated]
    model = None
    serializer_class = None
    update_command = None

    def get_object(self, pk):
        row = self.model.objects.filter(pk=pk).first()
        if row is None:
            raise Http404
        return row

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "masterdata.view")
        return Response(self.serializer_class(self.get_object(pk)).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "masterdata.manage")

        data = master_data_fields(self.serializer_class, request.data, instance=self.get_object(pk))
        result = type(self).update_command(actor, pk, **data)
        return _respond(result, self.serializer_class)


class VendorListCreateView(MasterDataListCreateView):
    model = Vendor
    serializer_class = VendorSerializer
    create_command = commands.create_vendor


class VendorDetailView(MasterDataDetailView):
    model = Vendor
    serializer_class = VendorSerializer
    update_command = commands.update_vendor


class ClientListCreateView(MasterDataListCreateView):
    model = Client
    serializer_class = ClientSerializer
    create_command = commands.create_client


class ClientDetailView(MasterDataDetailView):
    model = Client
    serializer_class = ClientSerializer
    update_command = commands.update_client


class ProjectListCreateView(MasterDataListCreateView):
    model = Project
    serializer_class = ProjectSerializer
    create_command = commands.create_project


class ProjectDetailView(MasterDataDetailView):
    model = Project
    serializer_class = ProjectSerializer
    update_command = commands.update_project


class BankAccountListCreateView(MasterDataListCreateView):
    model = BankAccount
    serializer_class = BankAccountSerializer
    create_command = commands.create_bank_account


class BankAccountDetailView(MasterDataDetailView):
    model = BankAccount
    serializer_class = BankAccountSerializer
    update_command = commands.update_bank_account


# =============================================================================
# Vendor Bill Views
# =============================================================================

class BillListCreateView(APIView):
    """
    GET /api/billing/bills/ -> list bills (?status=&vendor=)
    POST /api/billing/bills/ -> record a bill (posted unless draft=true)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "documents.view")

        bills = VendorBill.objects.select_related("vendor", "project", "journal").prefetch_related("lines")
        params = request.query_params
        if params.get("status"):
            bills = bills.filter(status=params["status"])
        if params.get("vendor"):
            bills = bills.filter(vendor_id=params["vendor"])
        return Response(VendorBillSerializer(bills, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = VendorBillCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = commands.create_bill(actor, **serializer.validated_data)
        return _respond(result, VendorBillSerializer, status.HTTP_201_CREATED)


class BillDetailView(APIView):
    """
    GET /api/billing/bills/<pk>/ -> bill with lines and balance
    DELETE /api/billing/bills/<pk>/ -> delete a draft bill
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "documents.view")

        bill = VendorBill.objects.filter(pk=pk).first()
        if bill is None:
            raise Http404
        return Response(VendorBillSerializer(bill).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)

        result = commands.delete_draft_bill(actor, pk)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class BillPostView(APIView):
    """POST /api/billing/bills/<pk>/post/ -> post a draft bill"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        return _respond(commands.post_bill(actor, pk), VendorBillSerializer)


class BillVoidView(APIView):
    """POST /api/billing/bills/<pk>/void/ -> void a posted bill (admin)"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        serializer = VoidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = commands.void_bill(actor, pk, serializer.validated_data["reason"])
        if not result.success:
            return error_response(result)
        return Response({
            "bill": VendorBillSerializer(result.data["bill"]).data,
            "reversal_number": result.data["reversal"].number,
        })


# =============================================================================
# Sales Invoice Views
# =============================================================================

class InvoiceListCreateView(APIView):
    """
    GET /api/billing/invoices/ -> list invoices (?status=&client=)
    POST /api/billing/invoices/ -> record an invoice (issued unless draft=true)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "documents.view")

        invoices = SalesInvoice.objects.select_related("client", "project", "journal").prefetch_related("lines")
        params = request.query_params
        if params.get("status"):
            invoices = invoices.filter(status=params["status"])
        if params.get("client"):
            invoices = invoices.filter(client_id=params["client"])
        return Response(SalesInvoiceSerializer(invoices, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = SalesInvoiceCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = commands.create_invoice(actor, **serializer.validated_data)
        return _respond(result, SalesInvoiceSerializer, status.HTTP_201_CREATED)


class InvoiceDetailView(APIView):
    """
    GET /api/billing/invoices/<pk>/ -> invoice with lines and balance
    DELETE /api/billing/invoices/<pk>/ -> delete a draft invoice
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "documents.view")

        invoice = SalesInvoice.objects.filter(pk=pk).first()
        if invoice is None:
            raise Http404
        return Response(SalesInvoiceSerializer(invoice).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)

        result = commands.delete_draft_invoice(actor, pk)
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class InvoiceIssueView(APIView):
    """POST /api/billing/invoices/<pk>/issue/ -> post a draft invoice"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        return _respond(commands.issue_invoice(actor, pk), SalesInvoiceSerializer)


class InvoiceVoidView(APIView):
    """POST /api/billing/invoices/<pk>/void/ -> void an issued invoice (admin)"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        serializer = VoidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = commands.void_invoice(actor, pk, serializer.validated_data["reason"])
        if not result.success:
            return error_response(result)
        return Response({
            "invoice": SalesInvoiceSerializer(result.data["invoice"]).data,
            "reversal_number": result.data["reversal"].number,
        })


# =============================================================================
# Payment and Receipt Views
# =============================================================================

class PaymentListCreateView(APIView):
    """
    GET /api/billing/payments/ -> list vendor payments (?bill=)
    POST /api/billing/payments/ -> pay a bill
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "documents.view")

        payments = VendorPayment.objects.select_related("bill", "vendor", "journal")
        if request.query_params.get("bill"):
            payments = payments.filter(bill_id=request.query_params["bill"])
        return Response(VendorPaymentSerializer(payments, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = VendorPaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = commands.create_payment(actor, **serializer.validated_data)
        return _respond(result, VendorPaymentSerializer, status.HTTP_201_CREATED)


class PaymentVoidView(APIView):
    """POST /api/billing/payments/<pk>/void/ -> void a payment (admin)"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        serializer = VoidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = commands.void_payment(actor, pk, serializer.validated_data["reason"])
        if not result.success:
            return error_response(result)
        return Response({
            "payment": VendorPaymentSerializer(result.data["payment"]).data,
            "reversal_number": result.data["reversal"].number,
            "bill_status": result.data["bill_status"],
        })


class ReceiptListCreateView(APIView):
    """
    GET /api/billing/receipts/ -> list cash receipts (?invoice=)
    POST /api/billing/receipts/ -> receive cash against an invoice
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "documents.view")

        receipts = CashReceipt.objects.select_related("invoice", "client", "journal")
        if request.query_params.get("invoice"):
            receipts = receipts.filter(invoice_id=request.query_params["invoice"])
        return Response(CashReceiptSerializer(receipts, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = CashReceiptCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = commands.create_receipt(actor, **serializer.validated_data)
        return _respond(result, CashReceiptSerializer, status.HTTP_201_CREATED)


class ReceiptVoidView(APIView):
    """POST /api/billing/receipts/<pk>/void/ -> void a receipt (admin)"""
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        serializer = VoidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = commands.void_receipt(actor, pk, serializer.validated_data["reason"])
        if not result.success:
            return error_response(result)
        return Response({
            "receipt": CashReceiptSerializer(result.data["receipt"]).data,
            "reversal_number": result.data["reversal"].number,
            "invoice_status": result.data["invoice_status"],
        })


# =============================================================================
# Attachment Views
# =============================================================================

class AttachmentListCreateView(APIView):
    """
    GET /api/billing/attachments/?type=bill&id=12 -> attachments of a document
    POST /api/billing/attachments/ -> record attachment metadata
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "documents.view")

        attachments = TransactionAttachment.objects.all()
        params = request.query_params
        if params.get("type"):
            attachments = attachments.filter(transaction_type=params["type"])
        if params.get("id"):
            attachments = attachments.filter(transaction_id=params["id"])
        return Response(TransactionAttachmentSerializer(attachments, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)

        serializer = TransactionAttachmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = commands.add_attachment(actor, **serializer.validated_data)
        return _respond(result, TransactionAttachmentSerializer, status.HTTP_201_CREATED)
