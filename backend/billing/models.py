# billing/models.py
"""
Source documents and the master data they reference.

Master data (Vendor, Client, Project, BankAccount) are plain models edited
through billing.commands. The documents (VendorBill, SalesInvoice,
VendorPayment, CashReceipt and their lines) are command-owned like the
journals they generate: once a document is posted its journal is the
record, and the only change allowed afterwards is a void.
"""

from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import F, Q, Sum

from accounting.models import Account, CommandOwnedModel, Journal


# =============================================================================
# Master data
# =============================================================================

class Vendor(models.Model):
    code = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=255)
    tax_id = models.CharField("NPWP", max_length=30, blank=True, default="")
    address = models.TextField(blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=30, blank=True, default="")
    payment_terms = models.PositiveSmallIntegerField(default=30, help_text="Days until a bill is due")

    provides_faktur_pajak = models.BooleanField(default=True)
    subject_to_pph23 = models.BooleanField(default=False)
    pph23_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        default=Decimal("0.02"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("1"))],
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.code} {self.name}"


class Client(models.Model):
    code = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=255)
    tax_id = models.CharField("NPWP", max_length=30, blank=True, default="")
    address = models.TextField(blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=30, blank=True, default="")
    payment_terms = models.PositiveSmallIntegerField(default=30)
    withholds_pph23 = models.BooleanField(default=False, help_text="Client withholds PPh 23 on payments to us")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.code} {self.name}"


class Project(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        COMPLETED = "COMPLETED", "Completed"
        ON_HOLD = "ON_HOLD", "On Hold"

    code = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=255)
    client = models.ForeignKey(
        Client,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="projects",
    )
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    budget = models.BigIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]

    def __str__(self):
        return f"{self.code} {self.name}"


class BankAccount(models.Model):
    """A bank or cash account; ``account`` is its ledger account."""

    account = models.OneToOneField(
        Account,
        on_delete=models.PROTECT,
        related_name="bank_account",
        to_field="code",
        db_column="account_code",
    )
    bank_name = models.CharField(max_length=100)
    account_number = models.CharField(max_length=50, blank=True, default="")
    account_holder = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["account"]

    def __str__(self):
        return f"{self.bank_name} {self.account_number} ({self.account_id})"


# =============================================================================
# Documents
# =============================================================================

class PostedDocument(CommandOwnedModel):
    """Fields shared by every document that generates a journal."""

    number = models.CharField(max_length=30, unique=True)
    date = models.DateField()
    description = models.CharField(max_length=255, blank=True, default="")

    journal = models.OneToOneField(
        Journal,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )

    # Void metadata
    voided_at = models.DateTimeField(null=True, blank=True)
    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    void_reason = models.CharField(max_length=255, blank=True, default="")
    reversal_journal = models.OneToOneField(
        Journal,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )

    class Meta:
        abstract = True

    def __str__(self):
        return self.number

    @property
    def is_voided(self) -> bool:
        return self.voided_at is not None


class DocumentLine(CommandOwnedModel):
    line_no = models.PositiveIntegerField()
    description = models.CharField(max_length=255, blank=True, default="")
    quantity = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("1"))
    unit_price = models.BigIntegerField(default=0)
    amount = models.BigIntegerField(default=0)
    project_code = models.CharField(max_length=30, blank=True, default="")

    class Meta:
        abstract = True


class VendorBill(PostedDocument):
    """
    A vendor's bill.

    Workflow: DRAFT -> APPROVED -> PARTIAL -> PAID; CANCELLED when voided.
    APPROVED means posted: the AP journal exists.
    """

    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        APPROVED = "APPROVED", "Approved"
        PARTIAL = "PARTIAL", "Partially Paid"
        PAID = "PAID", "Paid"
        CANCELLED = "CANCELLED", "Cancelled"

    class Category(models.TextChoices):
        COGS = "COGS", "Cost of Goods Sold"
        OPEX = "OPEX", "Operating Expense"

    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT, related_name="bills")
    vendor_invoice_number = models.CharField(max_length=100, blank=True, default="")
    faktur_pajak_number = models.CharField(max_length=50, blank=True, default="")
    due_date = models.DateField()
    project = models.ForeignKey(
        Project,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="bills",
    )
    category = models.CharField(max_length=10, choices=Category.choices, default=Category.OPEX)

    subtotal = models.BigIntegerField(default=0)
    vat_amount = models.BigIntegerField(default=0)
    total = models.BigIntegerField(default=0)

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.DRAFT)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["status", "due_date"], name="bill_status_due_idx"),
            models.Index(fields=["vendor", "date", "total"], name="bill_vendor_date_total_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=Q(total=F("subtotal") + F("vat_amount")),
                name="chk_bill_total",
            ),
        ]

    def live_payments(self):
        return self.payments.filter(voided_at__isnull=True)

    @property
    def amount_settled(self) -> int:
        agg = self.live_payments().aggregate(paid=Sum("amount"), withheld=Sum("pph23_withheld"))
        return (agg["paid"] or 0) + (agg["withheld"] or 0)

    @property
    def balance_due(self) -> int:
        return self.total - self.amount_settled


class BillLine(DocumentLine):
    bill = models.ForeignKey(VendorBill, on_delete=models.CASCADE, related_name="lines")
    expense_account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="+",
        to_field="code",
        db_column="expense_account_code",
    )

    class Meta:
        ordering = ["bill", "line_no"]
        constraints = [
            models.UniqueConstraint(fields=["bill", "line_no"], name="uniq_bill_line_no"),
        ]


class SalesInvoice(PostedDocument):
    """
    An invoice to a client.

    Workflow: DRAFT -> SENT -> PARTIAL -> PAID; SENT -> OVERDUE past the due
    date; CANCELLED when voided. SENT means posted: the AR journal exists.
    """

    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        SENT = "SENT", "Sent"
        PARTIAL = "PARTIAL", "Partially Paid"
        PAID = "PAID", "Paid"
        OVERDUE = "OVERDUE", "Overdue"
        CANCELLED = "CANCELLED", "Cancelled"

    OPEN_STATUSES = (Status.SENT, Status.PARTIAL, Status.OVERDUE)

    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name="invoices")
    project = models.ForeignKey(
        Project,
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    due_date = models.DateField()
    faktur_pajak_number = models.CharField(max_length=50, blank=True, default="")
    apply_vat = models.BooleanField(default=True)

    subtotal = models.BigIntegerField(default=0)
    vat_amount = models.BigIntegerField(default=0)
    total = models.BigIntegerField(default=0)

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.DRAFT)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["status", "due_date"], name="invoice_status_due_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=Q(total=F("subtotal") + F("vat_amount")),
                name="chk_invoice_total",
            ),
        ]

    def live_receipts(self):
        return self.receipts.filter(voided_at__isnull=True)

    @property
    def amount_received(self) -> int:
        return self.live_receipts().aggregate(total=Sum("amount"))["total"] or 0

    @property
    def balance_due(self) -> int:
        return self.total - self.amount_received


class InvoiceLine(DocumentLine):
    invoice = models.ForeignKey(SalesInvoice, on_delete=models.CASCADE, related_name="lines")
    revenue_account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="+",
        to_field="code",
        db_column="revenue_account_code",
    )

    class Meta:
        ordering = ["invoice", "line_no"]
        constraints = [
            models.UniqueConstraint(fields=["invoice", "line_no"], name="uniq_invoice_line_no"),
        ]


class VendorPayment(PostedDocument):
    """
    Cash paid against a bill.

    ``amount`` is the cash leaving the bank; ``amount + pph23_withheld``
    is what the payment settles on the bill.
    """

    bill = models.ForeignKey(VendorBill, on_delete=models.PROTECT, related_name="payments")
    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT, related_name="payments")
    amount = models.BigIntegerField()
    pph23_withheld = models.BigIntegerField(default=0)
    bank_account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="+",
        to_field="code",
        db_column="bank_account_code",
    )
    reference = models.CharField(max_length=100, blank=True, default="")

    class Meta:
        ordering = ["-date", "-id"]
        constraints = [
            models.CheckConstraint(
                check=Q(amount__gt=0) & Q(pph23_withheld__gte=0),
                name="chk_payment_amounts",
            ),
        ]

    @property
    def settled(self) -> int:
        return self.amount + self.pph23_withheld


class CashReceipt(PostedDocument):
    """
    Cash received against an invoice.

    ``amount`` is the receivable settled; the bank receives
    ``amount - pph23_withheld`` when the client withholds PPh 23.
    """

    invoice = models.ForeignKey(SalesInvoice, on_delete=models.PROTECT, related_name="receipts")
    client = models.ForeignKey(Client, on_delete=models.PROTECT, related_name="receipts")
    amount = models.BigIntegerField()
    pph23_withheld = models.BigIntegerField(default=0)
    bank_account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="+",
        to_field="code",
        db_column="bank_account_code",
    )
    reference = models.CharField(max_length=100, blank=True, default="")

    class Meta:
        ordering = ["-date", "-id"]
        constraints = [
            models.CheckConstraint(
                check=Q(amount__gt=0) & Q(pph23_withheld__gte=0) & Q(pph23_withheld__lte=F("amount")),
                name="chk_receipt_amounts",
            ),
        ]

    @property
    def net_cash(self) -> int:
        return self.amount - self.pph23_withheld


# =============================================================================
# Attachments
# =============================================================================

class TransactionAttachment(models.Model):
    """
    Metadata of a supporting file (invoice scan, payment proof).

    The file itself lives in external storage at ``file_path``.
    """

    class TransactionType(models.TextChoices):
        BILL = "bill", "Vendor Bill"
        INVOICE = "invoice", "Sales Invoice"
        PAYMENT = "payment", "Vendor Payment"
        RECEIPT = "receipt", "Cash Receipt"
        JOURNAL = "journal", "Journal"

    transaction_type = models.CharField(max_length=10, choices=TransactionType.choices)
    transaction_id = models.PositiveBigIntegerField()
    file_name = models.CharField(max_length=255)
    file_path = models.CharField(max_length=500)
    file_size = models.PositiveBigIntegerField(default=0)
    mime_type = models.CharField(max_length=100, blank=True, default="")
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-uploaded_at"]
        indexes = [
            models.Index(fields=["transaction_type", "transaction_id"], name="attachment_target_idx"),
        ]

    def __str__(self):
        return f"{self.transaction_type}#{self.transaction_id} {self.file_name}"
