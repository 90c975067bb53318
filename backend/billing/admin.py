# billing/admin.py
"""
Django admin configuration for billing models.

Master data is editable here. Bills, invoices, payments and receipts are
COMMAND-OWNED and shown read-only; post and void them through the API.
"""

from django.contrib import admin

from accounting.admin import ReadOnlyInline, ReadOnlyModelAdmin
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


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "tax_id", "provides_faktur_pajak", "subject_to_pph23", "pph23_rate", "is_active"]
    list_filter = ["is_active", "subject_to_pph23", "provides_faktur_pajak"]
    search_fields = ["code", "name", "tax_id"]


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "tax_id", "withholds_pph23", "is_active"]
    list_filter = ["is_active", "withholds_pph23"]
    search_fields = ["code", "name", "tax_id"]


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "client", "status", "start_date", "end_date", "budget"]
    list_filter = ["status"]
    search_fields = ["code", "name"]


@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    list_display = ["account", "bank_name", "account_number", "is_active"]


class BillLineInline(ReadOnlyInline):
    model = BillLine
    extra = 0
    fields = ["line_no", "description", "quantity", "unit_price", "amount", "expense_account", "project_code"]
    readonly_fields = fields


class InvoiceLineInline(ReadOnlyInline):
    model = InvoiceLine
    extra = 0
    fields = ["line_no", "description", "quantity", "unit_price", "amount", "revenue_account", "project_code"]
    readonly_fields = fields


@admin.register(VendorBill)
class VendorBillAdmin(ReadOnlyModelAdmin):
    list_display = ["number", "date", "vendor", "category", "total", "status", "voided_at"]
    list_filter = ["status", "category"]
    search_fields = ["number", "vendor__name", "faktur_pajak_number"]
    inlines = [BillLineInline]


@admin.register(SalesInvoice)
class SalesInvoiceAdmin(ReadOnlyModelAdmin):
    list_display = ["number", "date", "client", "total", "status", "due_date", "voided_at"]
    list_filter = ["status"]
    search_fields = ["number", "client__name"]
    inlines = [InvoiceLineInline]


@admin.register(VendorPayment)
class VendorPaymentAdmin(ReadOnlyModelAdmin):
    list_display = ["number", "date", "bill", "amount", "pph23_withheld", "voided_at"]
    search_fields = ["number", "bill__number"]


@admin.register(CashReceipt)
class CashReceiptAdmin(ReadOnlyModelAdmin):
    list_display = ["number", "date", "invoice", "amount", "pph23_withheld", "voided_at"]
    search_fields = ["number", "invoice__number"]


@admin.register(TransactionAttachment)
class TransactionAttachmentAdmin(ReadOnlyModelAdmin):
    list_display = ["transaction_type", "transaction_id", "file_name", "uploaded_by", "uploaded_at"]
    list_filter = ["transaction_type"]
