# assistant/models.py

from django.conf import settings
from django.db import models


class TxInput(models.Model):
    """A free-text transaction as typed by the user."""

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        CLASSIFIED = "CLASSIFIED", "Classified"
        APPROVED = "APPROVED", "Approved"
        REJECTED = "REJECTED", "Rejected"

    raw_text = models.TextField()
    amount = models.BigIntegerField()
    date = models.DateField()
    status = models.CharField(max_length=12, choices=Status.choices, default=Status.PENDING)

    created_at = models.DateTimeField(auto_now_add=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.date} {self.raw_text[:40]} ({self.amount})"


class TxSuggestion(models.Model):
    """
    The oracle's proposed classification of a TxInput.

    State machine:
        PROPOSED -> APPROVED -> POSTED
        PROPOSED | APPROVED -> REJECTED

    Only an APPROVED suggestion can be posted.
    """

    class Status(models.TextChoices):
        PROPOSED = "PROPOSED", "Proposed"
        APPROVED = "APPROVED", "Approved"
        POSTED = "POSTED", "Posted"
        REJECTED = "REJECTED", "Rejected"

    class SuggestedType(models.TextChoices):
        VENDOR_BILL = "vendor_bill", "Vendor Bill"
        SALES_INVOICE = "sales_invoice", "Sales Invoice"
        CASH_RECEIPT = "cash_receipt", "Cash Receipt"
        VENDOR_PAYMENT = "vendor_payment", "Vendor Payment"
        JOURNAL_ENTRY = "journal_entry", "Journal Entry"

    tx_input = models.OneToOneField(TxInput, on_delete=models.CASCADE, related_name="suggestion")

    suggested_type = models.CharField(max_length=20, choices=SuggestedType.choices)
    suggested_vendor = models.CharField(max_length=255, blank=True, default="")
    suggested_client = models.CharField(max_length=255, blank=True, default="")
    suggested_project = models.CharField(max_length=30, blank=True, default="")
    amount = models.BigIntegerField(default=0)
    vat_amount = models.BigIntegerField(default=0)
    # [{"code": "6-60100", "name": "...", "debit": 0, "credit": 0}, ...]
    suggested_accounts = models.JSONField(default=list)
    confidence = models.FloatField(default=0)
    reasoning = models.TextField(blank=True, default="")
    requires_input = models.JSONField(default=list, blank=True)
    edited = models.BooleanField(default=False)

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PROPOSED)
    journal = models.OneToOneField(
        "accounting.Journal",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="+",
    )
    # Number of the bill, invoice, receipt or payment a typed suggestion became
    document_number = models.CharField(max_length=30, blank=True, default="")
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )
    review_note = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status"], name="suggestion_status_idx"),
        ]

    def __str__(self):
        return f"{self.suggested_type} {self.amount} [{self.status}]"
