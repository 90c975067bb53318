# billing/serializers.py
"""
Serializers for billing API.

Output serializers are read-only views of the models; input serializers
validate request bodies before they reach billing/commands.py.
"""

from rest_framework import serializers

from accounting.chart import DEFAULT_BANK_ACCOUNT
from billing.models import (
    BankAccount,
    BillLine,
    CashReceipt,
    Client,
    InvoiceLine,
    Project,
    SalesInvoice,
    TransactionAttachment,
    Vendor,
    VendorBill,
    VendorPayment,
)


# =============================================================================
# Master data
# =============================================================================

class VendorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Vendor
        fields = [
            "id", "code", "name", "tax_id", "address", "email", "phone",
            "payment_terms", "provides_faktur_pajak", "subject_to_pph23", "pph23_rate",
            "is_active", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class ClientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Client
        fields = [
            "id", "code", "name", "tax_id", "address", "email", "phone",
            "payment_terms", "withholds_pph23",
            "is_active", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class ProjectSerializer(serializers.ModelSerializer):
    client_id = serializers.IntegerField(required=False, allow_null=True)
    client_name = serializers.CharField(source="client.name", read_only=True, default=None)

    class Meta:
        model = Project
        fields = [
            "id", "code", "name", "client_id", "client_name", "status",
            "start_date", "end_date", "budget", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "client_name", "created_at", "updated_at"]


class BankAccountSerializer(serializers.ModelSerializer):
    account_code = serializers.CharField(source="account_id", max_length=7)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = BankAccount
        fields = [
            "id", "account_code", "account_name", "bank_name", "account_number",
            "account_holder", "is_active", "created_at", "updated_at",
        ]
        read_only_fields = ["id", "account_name", "created_at", "updated_at"]


def master_data_fields(serializer_class, data, *, instance=None) -> dict:
    """Validate master-data input and return it keyed by command argument name."""
    serializer = serializer_class(instance, data=data, partial=instance is not None)
    serializer.is_valid(raise_exception=True)
    values = dict(serializer.validated_data)
    if "account_id" in values:
        values["account_code"] = values.pop("account_id")
    return values


# =============================================================================
# Documents
# =============================================================================

class DocumentLineInputSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    quantity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=1)
    unit_price = serializers.IntegerField(min_value=0)
    project_code = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")


class BillLineInputSerializer(DocumentLineInputSerializer):
    expense_account_code = serializers.CharField(max_length=7)


class InvoiceLineInputSerializer(DocumentLineInputSerializer):
    revenue_account_code = serializers.CharField(max_length=7, required=False, allow_blank=True, default="")


class BillLineSerializer(serializers.ModelSerializer):
    expense_account_code = serializers.CharField(source="expense_account_id", read_only=True)

    class Meta:
        model = BillLine
        fields = [
            "line_no", "description", "quantity", "unit_price", "amount",
            "expense_account_code", "project_code",
        ]
        read_only_fields = fields


class InvoiceLineSerializer(serializers.ModelSerializer):
    revenue_account_code = serializers.CharField(source="revenue_account_id", read_only=True)

    class Meta:
        model = InvoiceLine
        fields = [
            "line_no", "description", "quantity", "unit_price", "amount",
            "revenue_account_code", "project_code",
        ]
        read_only_fields = fields


DOCUMENT_FIELDS = [
    "id", "number", "date", "description",
    "journal", "voided_at", "voided_by", "void_reason", "reversal_journal",
    "created_at", "updated_at", "created_by",
]


class VendorBillSerializer(serializers.ModelSerializer):
    lines = BillLineSerializer(many=True, read_only=True)
    vendor_name = serializers.CharField(source="vendor.name", read_only=True)
    project_code = serializers.CharField(source="project.code", read_only=True, default=None)
    journal_number = serializers.CharField(source="journal.number", read_only=True, default=None)
    amount_settled = serializers.IntegerField(read_only=True)
    balance_due = serializers.IntegerField(read_only=True)

    class Meta:
        model = VendorBill
        fields = DOCUMENT_FIELDS + [
            "vendor", "vendor_name", "vendor_invoice_number", "faktur_pajak_number",
            "due_date", "project", "project_code", "category",
            "subtotal", "vat_amount", "total", "status",
            "journal_number", "amount_settled", "balance_due", "lines",
        ]
        read_only_fields = fields


class VendorBillCreateSerializer(serializers.Serializer):
    vendor_id = serializers.IntegerField()
    date = serializers.DateField()
    category = serializers.ChoiceField(choices=VendorBill.Category.choices, required=False, default=VendorBill.Category.OPEX)
    project_id = serializers.IntegerField(required=False, allow_null=True)
    vendor_invoice_number = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    faktur_pajak_number = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    draft = serializers.BooleanField(required=False, default=False)
    lines = BillLineInputSerializer(many=True)

    def validate_lines(self, value):
        if not value:
            raise serializers.ValidationError("At least one line is required.")
        return value


class SalesInvoiceSerializer(serializers.ModelSerializer):
    lines = InvoiceLineSerializer(many=True, read_only=True)
    client_name = serializers.CharField(source="client.name", read_only=True)
    project_code = serializers.CharField(source="project.code", read_only=True, default=None)
    journal_number = serializers.CharField(source="journal.number", read_only=True, default=None)
    amount_received = serializers.IntegerField(read_only=True)
    balance_due = serializers.IntegerField(read_only=True)

    class Meta:
        model = SalesInvoice
        fields = DOCUMENT_FIELDS + [
            "client", "client_name", "project", "project_code", "due_date",
            "faktur_pajak_number", "apply_vat",
            "subtotal", "vat_amount", "total", "status",
            "journal_number", "amount_received", "balance_due", "lines",
        ]
        read_only_fields = fields


class SalesInvoiceCreateSerializer(serializers.Serializer):
    client_id = serializers.IntegerField()
    date = serializers.DateField()
    project_id = serializers.IntegerField(required=False, allow_null=True)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    apply_vat = serializers.BooleanField(required=False, default=True)
    faktur_pajak_number = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    draft = serializers.BooleanField(required=False, default=False)
    lines = InvoiceLineInputSerializer(many=True)

    def validate_lines(self, value):
        if not value:
            raise serializers.ValidationError("At least one line is required.")
        return value


class VendorPaymentSerializer(serializers.ModelSerializer):
    bill_number = serializers.CharField(source="bill.number", read_only=True)
    vendor_name = serializers.CharField(source="vendor.name", read_only=True)
    bank_account_code = serializers.CharField(source="bank_account_id", read_only=True)
    journal_number = serializers.CharField(source="journal.number", read_only=True, default=None)

    class Meta:
        model = VendorPayment
        fields = DOCUMENT_FIELDS + [
            "bill", "bill_number", "vendor", "vendor_name",
            "amount", "pph23_withheld", "bank_account_code", "reference", "journal_number",
        ]
        read_only_fields = fields


class VendorPaymentCreateSerializer(serializers.Serializer):
    bill_id = serializers.IntegerField()
    date = serializers.DateField()
    amount = serializers.IntegerField(min_value=1)
    bank_account_code = serializers.CharField(max_length=7, required=False, default=DEFAULT_BANK_ACCOUNT)
    pph23_withheld = serializers.IntegerField(min_value=0, required=False, allow_null=True, default=None)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class CashReceiptSerializer(serializers.ModelSerializer):
    invoice_number = serializers.CharField(source="invoice.number", read_only=True)
    client_name = serializers.CharField(source="client.name", read_only=True)
    bank_account_code = serializers.CharField(source="bank_account_id", read_only=True)
    journal_number = serializers.CharField(source="journal.number", read_only=True, default=None)

    class Meta:
        model = CashReceipt
        fields = DOCUMENT_FIELDS + [
            "invoice", "invoice_number", "client", "client_name",
            "amount", "pph23_withheld", "bank_account_code", "reference", "journal_number",
        ]
        read_only_fields = fields


class CashReceiptCreateSerializer(serializers.Serializer):
    invoice_id = serializers.IntegerField()
    date = serializers.DateField()
    amount = serializers.IntegerField(min_value=1)
    bank_account_code = serializers.CharField(max_length=7, required=False, default=DEFAULT_BANK_ACCOUNT)
    pph23_withheld = serializers.IntegerField(min_value=0, required=False, default=0)
    reference = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


# =============================================================================
# Attachments
# =============================================================================

class TransactionAttachmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = TransactionAttachment
        fields = [
            "id", "transaction_type", "transaction_id", "file_name", "file_path",
            "file_size", "mime_type", "uploaded_by", "uploaded_at",
        ]
        read_only_fields = ["id", "uploaded_by", "uploaded_at"]
