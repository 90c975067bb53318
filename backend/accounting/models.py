# accounting/models.py
"""
Ledger models for pembukuan.

Models:
- Account: Chart of Accounts (code "D-DDDDD")
- Journal / JournalLine: the double-entry posting unit and its lines
- DocumentSequence / NumberReservation: per (kind, year) document counters
- PeriodStatus / PeriodSnapshot: month close and the balances frozen at close

Journal, JournalLine and DocumentSequence are command-owned: they may only
be written inside ``command_writes_allowed()`` (see accounting/posting.py,
accounting/reversal.py and accounting/numbering.py). Workflow rules live in
accounting/policies.py; models only enforce true invariants.
"""

from django.conf import settings
from django.core.validators import RegexValidator
from django.db import models
from django.db.models import Q, Sum

from accounting.write_barrier import ledger_writes_allowed


ACCOUNT_CODE_PATTERN = r"^\d-\d{5}$"
PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


def period_of(value) -> str:
    """Calendar-month period key (YYYY-MM) for a date."""
    return value.strftime("%Y-%m")


class CommandOwnedModel(models.Model):
    """Base for ledger rows that only the command layer may write."""

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not ledger_writes_allowed():
            raise RuntimeError(
                f"{self.__class__.__name__} is a command-owned write model. "
                "Direct saves are only allowed within command_writes_allowed()."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if not ledger_writes_allowed():
            raise RuntimeError(
                f"{self.__class__.__name__} is a command-owned write model. "
                "Direct deletes are only allowed within command_writes_allowed()."
            )
        return super().delete(*args, **kwargs)


class DocumentKind(models.TextChoices):
    JOURNAL = "journal", "Journal"
    INVOICE = "invoice", "Sales Invoice"
    BILL = "bill", "Vendor Bill"
    PAYMENT = "payment", "Vendor Payment"
    RECEIPT = "receipt", "Cash Receipt"


class DocumentSequence(CommandOwnedModel):
    """
    Counter for one document kind in one year.

    Allocated under select_for_update by accounting.numbering.next_number.
    """

    kind = models.CharField(max_length=20, choices=DocumentKind.choices)
    year = models.PositiveSmallIntegerField()
    next_value = models.BigIntegerField(default=1)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["kind", "year"],
                name="uniq_document_sequence_kind_year",
            ),
        ]

    def __str__(self):
        return f"{self.kind}:{self.year}={self.next_value}"


class NumberReservation(CommandOwnedModel):
    """A number handed out for an idempotency key; replays get the same number."""

    idempotency_key = models.CharField(max_length=128, unique=True)
    kind = models.CharField(max_length=20, choices=DocumentKind.choices)
    year = models.PositiveSmallIntegerField()
    number = models.CharField(max_length=30)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.idempotency_key} -> {self.number}"


class Account(models.Model):
    """
    Chart of Accounts entry.

    Codes follow the Indonesian SME layout "D-DDDDD" where the leading digit
    is the group (1 assets, 2 liabilities, 3 equity, 4 revenue, 5 COGS,
    6 operating expenses, 7/8 other income/expense, 9 tax expense).
    """

    class AccountType(models.TextChoices):
        ASSET = "ASSET", "Asset"
        LIABILITY = "LIABILITY", "Liability"
        EQUITY = "EQUITY", "Equity"
        REVENUE = "REVENUE", "Revenue"
        COGS = "COGS", "Cost of Goods Sold"
        OPEX = "OPEX", "Operating Expense"
        OTHER_INCOME = "OTHER_INCOME", "Other Income"
        OTHER_EXPENSE = "OTHER_EXPENSE", "Other Expense"
        TAX_EXPENSE = "TAX_EXPENSE", "Tax Expense"

    class NormalBalance(models.TextChoices):
        DEBIT = "DEBIT", "Debit"
        CREDIT = "CREDIT", "Credit"

    DEBIT_NORMAL_TYPES = frozenset({
        AccountType.ASSET,
        AccountType.COGS,
        AccountType.OPEX,
        AccountType.OTHER_EXPENSE,
        AccountType.TAX_EXPENSE,
    })

    code = models.CharField(
        max_length=7,
        unique=True,
        validators=[RegexValidator(ACCOUNT_CODE_PATTERN, "Account code must look like 1-10100.")],
    )
    name = models.CharField(max_length=255)
    account_type = models.CharField(max_length=20, choices=AccountType.choices)
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
        to_field="code",
        db_column="parent_code",
    )
    description = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        indexes = [
            models.Index(fields=["account_type"], name="acct_account_type_idx"),
        ]

    def __str__(self):
        return f"{self.code} {self.name}"

    @property
    def normal_balance(self) -> str:
        if self.account_type in self.DEBIT_NORMAL_TYPES:
            return self.NormalBalance.DEBIT
        return self.NormalBalance.CREDIT

    def has_posted_lines(self) -> bool:
        return self.journal_lines.filter(journal__status=Journal.Status.POSTED).exists()


class Journal(CommandOwnedModel):
    """
    Journal header.

    Workflow: DRAFT -> POSTED
    - DRAFT: manual entry being prepared; no number, may be unbalanced
    - POSTED: balanced, numbered, immutable except for the void stamp

    A voided journal stays POSTED; its reversal_journal holds the mirror
    entry and voided_at/voided_by/void_reason record who voided it.
    """

    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        POSTED = "POSTED", "Posted"

    class Kind(models.TextChoices):
        NORMAL = "NORMAL", "Normal"
        REVERSAL = "REVERSAL", "Reversal"

    class SourceDocType(models.TextChoices):
        MANUAL = "manual", "Manual Entry"
        BILL = "bill", "Vendor Bill"
        INVOICE = "invoice", "Sales Invoice"
        PAYMENT = "payment", "Vendor Payment"
        RECEIPT = "receipt", "Cash Receipt"
        SUGGESTION = "suggestion", "AI Suggestion"

    number = models.CharField(max_length=30, unique=True, null=True, blank=True)
    date = models.DateField()
    period = models.CharField(max_length=7, db_index=True, editable=False)
    description = models.CharField(max_length=255, blank=True, default="")

    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.DRAFT,
    )
    kind = models.CharField(
        max_length=10,
        choices=Kind.choices,
        default=Kind.NORMAL,
    )

    source_doc_type = models.CharField(
        max_length=20,
        choices=SourceDocType.choices,
        default=SourceDocType.MANUAL,
    )
    source_doc_id = models.PositiveBigIntegerField(null=True, blank=True)

    # Void metadata
    voided_at = models.DateTimeField(null=True, blank=True)
    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="voided_journals",
    )
    void_reason = models.CharField(max_length=255, blank=True, default="")
    reversal_journal = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="reversed_journal",
    )

    # Posting metadata
    posted_at = models.DateTimeField(null=True, blank=True)
    posted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="posted_journals",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="created_journals",
    )

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [
            models.Index(fields=["status", "date"], name="acct_journal_status_date_idx"),
            models.Index(fields=["source_doc_type", "source_doc_id"], name="acct_journal_source_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=Q(status="DRAFT") | Q(number__isnull=False),
                name="chk_posted_journal_has_number",
            ),
        ]

    def __str__(self):
        num = self.number or f"#{self.id}"
        return f"{num} ({self.date}) {self.status}"

    def save(self, *args, **kwargs):
        self.period = period_of(self.date)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.status == self.Status.POSTED:
            raise RuntimeError("Posted journals are never deleted; void them instead.")
        return super().delete(*args, **kwargs)

    @property
    def is_voided(self) -> bool:
        return self.voided_at is not None

    def totals(self) -> tuple[int, int]:
        agg = self.lines.aggregate(debit=Sum("debit"), credit=Sum("credit"))
        return agg["debit"] or 0, agg["credit"] or 0

    @property
    def total_debit(self) -> int:
        return self.totals()[0]

    @property
    def total_credit(self) -> int:
        return self.totals()[1]


class JournalLine(CommandOwnedModel):
    """One debit or credit row of a journal, in whole rupiah."""

    journal = models.ForeignKey(
        Journal,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    line_no = models.PositiveIntegerField()
    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="journal_lines",
        to_field="code",
        db_column="account_code",
    )
    description = models.CharField(max_length=255, blank=True, default="")
    debit = models.BigIntegerField(default=0)
    credit = models.BigIntegerField(default=0)
    project_code = models.CharField(max_length=30, blank=True, default="")

    class Meta:
        ordering = ["journal", "line_no"]
        constraints = [
            models.UniqueConstraint(
                fields=["journal", "line_no"],
                name="uniq_journal_line_no",
            ),
            models.CheckConstraint(
                check=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_line_non_negative",
            ),
            models.CheckConstraint(
                check=~(Q(debit__gt=0) & Q(credit__gt=0)),
                name="chk_line_not_both_debit_credit",
            ),
        ]

    def __str__(self):
        return f"{self.journal_id} L{self.line_no} {self.account_id}"

    @property
    def account_code(self) -> str:
        return self.account_id

    @property
    def amount(self) -> int:
        return self.debit if self.debit > 0 else self.credit


# =============================================================================
# Periods
# =============================================================================

class PeriodStatus(models.Model):
    """Open/closed state of a calendar month. Months without a row are open."""

    class Status(models.TextChoices):
        OPEN = "OPEN", "Open"
        CLOSED = "CLOSED", "Closed"

    period = models.CharField(
        max_length=7,
        unique=True,
        validators=[RegexValidator(PERIOD_PATTERN, "Period must look like 2025-01.")],
    )
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.OPEN)
    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="closed_periods",
    )
    reopened_at = models.DateTimeField(null=True, blank=True)
    reopened_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="reopened_periods",
    )

    class Meta:
        ordering = ["-period"]
        verbose_name_plural = "Period statuses"

    def __str__(self):
        return f"{self.period} {self.status}"


class PeriodSnapshot(models.Model):
    """Cumulative account balance at the end of a closed period."""

    period = models.CharField(max_length=7, db_index=True)
    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="snapshots",
        to_field="code",
        db_column="account_code",
    )
    debit_balance = models.BigIntegerField(default=0)
    credit_balance = models.BigIntegerField(default=0)
    net_balance = models.BigIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["period", "account"]
        constraints = [
            models.UniqueConstraint(
                fields=["period", "account"],
                name="uniq_period_snapshot_account",
            ),
        ]

    def __str__(self):
        return f"{self.period} {self.account_id} {self.net_balance}"
