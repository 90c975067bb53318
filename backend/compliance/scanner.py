# compliance/scanner.py
"""
Compliance Scanner.

A read-only pass over posted, non-voided documents. Each rule is
independent and returns its own findings; ``scan`` concatenates them.
Persisting findings is the job of compliance.commands.run_compliance_scan.

Rules:
1. Bill claims input VAT without a Faktur Pajak number      tax_risk/high
2. Payment to a PPh 23 vendor with nothing withheld         tax_risk/critical
3. Cost line (5-xxxxx) without a project code               accounting_error/high
4. Large payment without a supporting attachment            documentation/medium
5. Bills sharing vendor, date and total                     data_quality/medium
"""

from dataclasses import asdict, dataclass

from django.conf import settings
from django.db.models import Count, Sum
from django.utils import timezone

from accounting.chart import COGS_PREFIX
from accounting.models import Journal, JournalLine
from accounting.tax import withholding
from billing.models import TransactionAttachment, VendorBill, VendorPayment
from compliance.models import ComplianceIssue

IssueType = ComplianceIssue.IssueType
Severity = ComplianceIssue.Severity

# Journal source types that map onto a document entity
DOCUMENT_SOURCES = {
    Journal.SourceDocType.BILL: "bill",
    Journal.SourceDocType.INVOICE: "invoice",
    Journal.SourceDocType.PAYMENT: "payment",
    Journal.SourceDocType.RECEIPT: "receipt",
}


@dataclass(frozen=True)
class Finding:
    rule: str
    issue_type: str
    severity: str
    message: str
    action_required: str
    related_entity_type: str
    related_entity_id: int

    @property
    def key(self) -> tuple:
        return (self.issue_type, self.related_entity_type, self.related_entity_id)

    def to_dict(self) -> dict:
        return asdict(self)


def _idr(amount: int) -> str:
    return f"{amount:,}"


def _posted_bills(today):
    return VendorBill.objects.filter(
        journal__isnull=False,
        voided_at__isnull=True,
        date__lte=today,
    )


def _posted_payments(today):
    return VendorPayment.objects.filter(
        journal__isnull=False,
        voided_at__isnull=True,
        date__lte=today,
    )


# =============================================================================
# Rules
# =============================================================================

def vat_without_faktur(today) -> list[Finding]:
    bills = _posted_bills(today).filter(vat_amount__gt=0, faktur_pajak_number="").order_by("id")
    return [
        Finding(
            rule="vat_without_faktur",
            issue_type=IssueType.TAX_RISK,
            severity=Severity.HIGH,
            message=f"Bill {bill.number} claims IDR {_idr(bill.vat_amount)} input VAT without Faktur Pajak",
            action_required="Add Faktur Pajak number or remove VAT claim",
            related_entity_type="bill",
            related_entity_id=bill.pk,
        )
        for bill in bills
    ]


def missing_withholding(today) -> list[Finding]:
    payments = (
        _posted_payments(today)
        .filter(pph23_withheld=0, vendor__subject_to_pph23=True)
        .select_related("bill", "vendor")
        .order_by("id")
    )
    findings = []
    for payment in payments:
        bill = payment.bill
        expected = withholding(bill.subtotal, payment.vendor)
        withheld = bill.live_payments().aggregate(total=Sum("pph23_withheld"))["total"] or 0
        if expected == 0 or withheld >= expected:
            continue
        findings.append(Finding(
            rule="missing_withholding",
            issue_type=IssueType.TAX_RISK,
            severity=Severity.CRITICAL,
            message=(
                f"Payment {payment.number} to {payment.vendor.name} withheld no PPh 23; "
                f"expected IDR {_idr(expected - withheld)}"
            ),
            action_required="Void payment and recreate with PPh 23 withholding",
            related_entity_type="payment",
            related_entity_id=payment.pk,
        ))
    return findings


def cost_without_project(today) -> list[Finding]:
    lines = (
        JournalLine.objects.filter(
            journal__status=Journal.Status.POSTED,
            journal__kind=Journal.Kind.NORMAL,
            journal__voided_at__isnull=True,
            journal__date__lte=today,
            account__code__startswith=COGS_PREFIX,
            project_code="",
        )
        .select_related("journal")
        .order_by("journal_id", "line_no")
    )
    findings = {}
    for line in lines:
        journal = line.journal
        entity_type = DOCUMENT_SOURCES.get(journal.source_doc_type)
        if entity_type and journal.source_doc_id:
            entity = (entity_type, journal.source_doc_id)
        else:
            entity = ("journal", journal.pk)
        if entity in findings:
            continue
        findings[entity] = Finding(
            rule="cost_without_project",
            issue_type=IssueType.ACCOUNTING_ERROR,
            severity=Severity.HIGH,
            message=f"{journal.number}: cost line on {line.account_id} has no project code",
            action_required="Assign a project code to the cost line",
            related_entity_type=entity[0],
            related_entity_id=entity[1],
        )
    return list(findings.values())


def large_payment_without_attachment(today) -> list[Finding]:
    threshold = settings.LARGE_PAYMENT_THRESHOLD
    attached = set(
        TransactionAttachment.objects.filter(
            transaction_type=TransactionAttachment.TransactionType.PAYMENT,
        ).values_list("transaction_id", flat=True)
    )
    payments = _posted_payments(today).filter(amount__gt=threshold).order_by("id")
    return [
        Finding(
            rule="large_payment_without_attachment",
            issue_type=IssueType.DOCUMENTATION,
            severity=Severity.MEDIUM,
            message=f"Payment {payment.number} of IDR {_idr(payment.amount)} has no supporting document",
            action_required="Upload invoice or payment proof",
            related_entity_type="payment",
            related_entity_id=payment.pk,
        )
        for payment in payments
        if payment.pk not in attached
    ]


def duplicate_bills(today) -> list[Finding]:
    groups = (
        _posted_bills(today)
        .order_by()
        .values("vendor_id", "date", "total")
        .annotate(n=Count("id"))
        .filter(n__gt=1)
    )
    findings = []
    for group in groups:
        bills = list(
            _posted_bills(today)
            .filter(vendor_id=group["vendor_id"], date=group["date"], total=group["total"])
            .order_by("id")
        )
        first = bills[0]
        for bill in bills[1:]:
            findings.append(Finding(
                rule="duplicate_bill",
                issue_type=IssueType.DATA_QUALITY,
                severity=Severity.MEDIUM,
                message=(
                    f"Bill {bill.number} matches {first.number}: same vendor, date "
                    f"and total IDR {_idr(bill.total)}"
                ),
                action_required="Check for a duplicate entry and void it if so",
                related_entity_type="bill",
                related_entity_id=bill.pk,
            ))
    return findings


RULES = [
    vat_without_faktur,
    missing_withholding,
    cost_without_project,
    large_payment_without_attachment,
    duplicate_bills,
]


def scan(today=None) -> list[Finding]:
    """Run every rule over documents dated on or before ``today``."""
    today = today or timezone.localdate()
    findings = []
    for rule in RULES:
        findings.extend(rule(today))
    return findings
