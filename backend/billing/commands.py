# billing/commands.py
"""
Command layer for source documents and master data.

Every document command runs in one transaction: the document row, its
line items, its number and its journal are written together or not at
all. Amounts are computed here from the line items and the tax
calculator; the journal lines come from billing.builders and are
validated and posted by accounting.posting.

Pattern:
1. Validate permissions (require / require_admin)
2. Load and lock the rows the operation depends on
3. Compute amounts, build journal lines, post
4. Record an audit entry for voids
5. Return CommandResult
"""

import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from accounts.authz import ActorContext, require, require_admin
from accounting.chart import DEFAULT_BANK_ACCOUNT, DEFAULT_REVENUE_ACCOUNT
from accounting.commands import CommandResult, rejected
from accounting.errors import AlreadyVoidedError, LedgerError, NotFoundError, ValidationError
from accounting.models import Account, DocumentKind, Journal
from accounting.numbering import next_number
from accounting.posting import post_journal
from accounting.registry import AccountRegistry
from accounting.reversal import reverse_journal
from accounting.tax import input_vat, output_vat, round_idr, withholding
from accounting.write_barrier import command_writes_allowed
from audit.models import AuditLog
from audit.recorder import record_action, snapshot
from billing import builders
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

logger = logging.getLogger(__name__)

DOC_VOID_FIELDS = ["status", "voided_at", "voided_by", "void_reason", "reversal_journal"]


# =============================================================================
# Helpers
# =============================================================================

def _get(model, pk, label: str, *, lock: bool = False):
    qs = model.objects.select_for_update() if lock else model.objects.all()
    try:
        return qs.get(pk=pk)
    except model.DoesNotExist:
        raise NotFoundError(f"{label} {pk} not found.")


def _check_amount(value, label: str, *, allow_zero: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} must be whole rupiah.")
    if value < 0 or (value == 0 and not allow_zero):
        raise ValidationError(f"{label} must be positive.")
    return value


def _quantity(value, index: int) -> Decimal:
    try:
        quantity = Decimal(str(value if value is not None else 1))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Line {index}: invalid quantity {value!r}.")
    if quantity <= 0:
        raise ValidationError(f"Line {index}: quantity must be positive.")
    return quantity


def _document_items(lines, account_field: str, *, default_account: str = "", default_project: str = "") -> list[dict]:
    """
    Normalize document line input.

    Each line is {description, quantity, unit_price, <account_field>,
    project_code?}; amount = round(quantity * unit_price).
    """
    if not lines:
        raise ValidationError("A document needs at least one line.")

    items = []
    for index, line in enumerate(lines, start=1):
        quantity = _quantity(line.get("quantity"), index)
        unit_price = _check_amount(line.get("unit_price"), f"Line {index}: unit price")
        amount = round_idr(quantity * unit_price)
        if amount <= 0:
            raise ValidationError(f"Line {index}: amount is zero.")

        account_code = line.get(account_field) or default_account
        if not account_code:
            raise ValidationError(f"Line {index}: {account_field} is required.")

        items.append({
            "line_no": index,
            "description": (line.get("description") or "")[:255],
            "quantity": quantity,
            "unit_price": unit_price,
            "amount": amount,
            "account_code": account_code,
            "project_code": line.get("project_code") or default_project,
        })

    registry = AccountRegistry.load(item["account_code"] for item in items)
    for item in items:
        registry.resolve(item["account_code"])
    return items


def _resolve_bank_account(code: str) -> Account:
    account = AccountRegistry.load([code]).resolve(code)
    if account.account_type != Account.AccountType.ASSET:
        raise ValidationError(f"Account {code} is not a cash or bank account.")
    return account


def _void_document(actor: ActorContext, document, reason: str) -> Journal:
    """
    Reverse a document's journal and stamp the document voided.

    Caller holds the row lock and has checked document-specific rules.
    """
    if document.voided_at is not None:
        raise AlreadyVoidedError(f"{document.number} is already voided.")
    if document.journal_id is None:
        raise ValidationError(f"{document.number} has no posted journal. Delete it instead.")

    before = snapshot(document, DOC_VOID_FIELDS)
    reversal = reverse_journal(
        document.journal,
        reason=reason,
        user=actor.user,
        description=f"VOID: {document.number} - {(reason or '').strip()}",
    )

    with command_writes_allowed():
        document.voided_at = timezone.now()
        document.voided_by = actor.user
        document.void_reason = reason.strip()[:255]
        document.reversal_journal = reversal
        if hasattr(document, "status"):
            document.status = document.Status.CANCELLED
        document.save()

    record_action(
        action=AuditLog.Action.VOID,
        user=actor.user,
        instance=document,
        reason=reason,
        old_values=before,
        new_values=snapshot(document, DOC_VOID_FIELDS),
    )
    logger.info(
        "Document voided",
        extra={"document_number": document.number, "reversal_number": reversal.number},
    )
    return reversal


# =============================================================================
# Master data Commands
# =============================================================================

VENDOR_FIELDS = {
    "code", "name", "tax_id", "address", "email", "phone", "payment_terms",
    "provides_faktur_pajak", "subject_to_pph23", "pph23_rate", "is_active",
}
CLIENT_FIELDS = {
    "code", "name", "tax_id", "address", "email", "phone", "payment_terms",
    "withholds_pph23", "is_active",
}
PROJECT_FIELDS = {"code", "name", "client_id", "status", "start_date", "end_date", "budget"}
BANK_ACCOUNT_FIELDS = {"account_code", "bank_name", "account_number", "account_holder", "is_active"}


def _save_master(instance, label: str) -> CommandResult:
    try:
        with transaction.atomic():
            instance.save()
    except IntegrityError:
        return CommandResult.fail(f"{label} code '{getattr(instance, 'code', '')}' already exists.")
    except LedgerError as exc:
        return rejected(exc, f"save_{label.lower()}")
    return CommandResult.ok(instance)


def _apply(instance, fields: set, data: dict) -> CommandResult | None:
    unknown = set(data) - fields
    if unknown:
        return CommandResult.fail(f"Cannot set fields: {sorted(unknown)}")
    for name, value in data.items():
        setattr(instance, name, value)
    return None


def _check_rate(data: dict) -> CommandResult | None:
    rate = data.get("pph23_rate")
    if rate is not None and not (Decimal("0") <= Decimal(str(rate)) <= Decimal("1")):
        return CommandResult.fail("PPh 23 rate must be between 0 and 1.")
    return None


def create_vendor(actor: ActorContext, **data) -> CommandResult:
    require(actor, "masterdata.manage")
    if Vendor.objects.filter(code=data.get("code")).exists():
        return CommandResult.fail(f"Vendor code '{data.get('code')}' already exists.")
    failed = _check_rate(data)
    if failed:
        return failed
    vendor = Vendor()
    return _apply(vendor, VENDOR_FIELDS, data) or _save_master(vendor, "Vendor")


def update_vendor(actor: ActorContext, vendor_id: int, **data) -> CommandResult:
    require(actor, "masterdata.manage")
    vendor = Vendor.objects.filter(pk=vendor_id).first()
    if vendor is None:
        return CommandResult.fail("Vendor not found.", "not_found")
    failed = _check_rate(data)
    if failed:
        return failed
    return _apply(vendor, VENDOR_FIELDS, data) or _save_master(vendor, "Vendor")


def create_client(actor: ActorContext, **data) -> CommandResult:
    require(actor, "masterdata.manage")
    if Client.objects.filter(code=data.get("code")).exists():
        return CommandResult.fail(f"Client code '{data.get('code')}' already exists.")
    client = Client()
    return _apply(client, CLIENT_FIELDS, data) or _save_master(client, "Client")


def update_client(actor: ActorContext, client_id: int, **data) -> CommandResult:
    require(actor, "masterdata.manage")
    client = Client.objects.filter(pk=client_id).first()
    if client is None:
        return CommandResult.fail("Client not found.", "not_found")
    return _apply(client, CLIENT_FIELDS, data) or _save_master(client, "Client")


def create_project(actor: ActorContext, **data) -> CommandResult:
    require(actor, "masterdata.manage")
    if Project.objects.filter(code=data.get("code")).exists():
        return CommandResult.fail(f"Project code '{data.get('code')}' already exists.")
    if data.get("client_id") and not Client.objects.filter(pk=data["client_id"]).exists():
        return CommandResult.fail("Client not found.", "not_found")
    project = Project()
    return _apply(project, PROJECT_FIELDS, data) or _save_master(project, "Project")


def update_project(actor: ActorContext, project_id: int, **data) -> CommandResult:
    require(actor, "masterdata.manage")
    project = Project.objects.filter(pk=project_id).first()
    if project is None:
        return CommandResult.fail("Project not found.", "not_found")
    if data.get("client_id") and not Client.objects.filter(pk=data["client_id"]).exists():
        return CommandResult.fail("Client not found.", "not_found")
    return _apply(project, PROJECT_FIELDS, data) or _save_master(project, "Project")


def create_bank_account(actor: ActorContext, **data) -> CommandResult:
    require(actor, "masterdata.manage")
    code = data.get("account_code")
    try:
        _resolve_bank_account(code)
    except LedgerError as exc:
        return rejected(exc, "create_bank_account")
    if BankAccount.objects.filter(account_id=code).exists():
        return CommandResult.fail(f"Account {code} already has a bank account.")

    data = dict(data)
    bank_account = BankAccount(account_id=data.pop("account_code"))
    return _apply(bank_account, BANK_ACCOUNT_FIELDS, data) or _save_master(bank_account, "Bank account")


def update_bank_account(actor: ActorContext, bank_account_id: int, **data) -> CommandResult:
    require(actor, "masterdata.manage")
    bank_account = BankAccount.objects.filter(pk=bank_account_id).first()
    if bank_account is None:
        return CommandResult.fail("Bank account not found.", "not_found")
    if "account_code" in data:
        return CommandResult.fail("The ledger account of a bank account cannot change.")
    return _apply(bank_account, BANK_ACCOUNT_FIELDS, data) or _save_master(bank_account, "Bank account")


# =============================================================================
# Vendor Bill Commands
# =============================================================================

def _post_bill(bill: VendorBill, user) -> Journal:
    items = [
        builders.ItemLine(
            account_code=line.expense_account_id,
            amount=line.amount,
            description=line.description,
            project_code=line.project_code,
        )
        for line in bill.lines.order_by("line_no")
    ]
    journal = post_journal(
        date=bill.date,
        description=f"Vendor Bill {bill.number} - {bill.vendor.name}",
        lines=builders.bill_lines(
            number=bill.number,
            vendor_name=bill.vendor.name,
            items=items,
            vat_amount=bill.vat_amount,
            faktur_pajak_number=bill.faktur_pajak_number,
        ),
        user=user,
        source_doc_type=Journal.SourceDocType.BILL,
        source_doc_id=bill.pk,
    )
    with command_writes_allowed():
        bill.journal = journal
        bill.status = VendorBill.Status.APPROVED
        bill.save(update_fields=["journal", "status", "updated_at"])

    logger.info("Bill posted", extra={"bill_number": bill.number, "journal_number": journal.number, "total": bill.total})
    return journal


def create_bill(
    actor: ActorContext,
    vendor_id: int,
    date,
    lines,
    category: str = VendorBill.Category.OPEX,
    project_id: int = None,
    vendor_invoice_number: str = "",
    faktur_pajak_number: str = "",
    description: str = "",
    draft: bool = False,
) -> CommandResult:
    """
    Record a vendor bill and (unless ``draft``) post its AP journal.

    Input VAT is claimed only when a Faktur Pajak number is present and
    the vendor issues them. COGS bills must name a project; line items
    without a project code inherit the bill's.
    """
    require(actor, "documents.create")
    if not draft:
        require(actor, "documents.post")

    try:
        with transaction.atomic():
            vendor = _get(Vendor, vendor_id, "Vendor")
            if not vendor.is_active:
                raise ValidationError(f"Vendor {vendor.code} is inactive.")

            if category not in VendorBill.Category.values:
                raise ValidationError(f"Invalid bill category {category!r}.")

            project = _get(Project, project_id, "Project") if project_id else None
            if category == VendorBill.Category.COGS and project is None:
                raise ValidationError("COGS bills must have a project.")

            items = _document_items(
                lines,
                "expense_account_code",
                default_project=project.code if project else "",
            )
            faktur = (faktur_pajak_number or "").strip()
            subtotal = sum(item["amount"] for item in items)
            vat = input_vat(subtotal, faktur, vendor)

            number = next_number(DocumentKind.BILL, date.year)
            with command_writes_allowed():
                bill = VendorBill.objects.create(
                    number=number,
                    date=date,
                    due_date=date + timedelta(days=vendor.payment_terms),
                    vendor=vendor,
                    project=project,
                    category=category,
                    vendor_invoice_number=vendor_invoice_number or "",
                    faktur_pajak_number=faktur,
                    description=(description or "; ".join(i["description"] for i in items if i["description"]))[:255],
                    subtotal=subtotal,
                    vat_amount=vat,
                    total=subtotal + vat,
                    status=VendorBill.Status.DRAFT,
                    created_by=actor.user,
                )
                BillLine.objects.bulk_create([
                    BillLine(
                        bill=bill,
                        line_no=item["line_no"],
                        description=item["description"],
                        quantity=item["quantity"],
                        unit_price=item["unit_price"],
                        amount=item["amount"],
                        expense_account_id=item["account_code"],
                        project_code=item["project_code"],
                    )
                    for item in items
                ])

            if not draft:
                _post_bill(bill, actor.user)
    except LedgerError as exc:
        return rejected(exc, "create_bill")

    return CommandResult.ok(bill)


def post_bill(actor: ActorContext, bill_id: int) -> CommandResult:
    require(actor, "documents.post")

    try:
        with transaction.atomic():
            bill = _get(VendorBill, bill_id, "Bill", lock=True)
            if bill.status != VendorBill.Status.DRAFT:
                raise ValidationError(f"Bill {bill.number} is already {bill.get_status_display().lower()}.")
            _post_bill(bill, actor.user)
    except LedgerError as exc:
        return rejected(exc, "post_bill")

    return CommandResult.ok(bill)


def delete_draft_bill(actor: ActorContext, bill_id: int) -> CommandResult:
    require(actor, "documents.create")

    try:
        with transaction.atomic():
            bill = _get(VendorBill, bill_id, "Bill", lock=True)
            if bill.status != VendorBill.Status.DRAFT:
                raise ValidationError("Only DRAFT bills can be deleted. Void it instead.")
            with command_writes_allowed():
                bill.lines.all().delete()
                bill.delete()
    except LedgerError as exc:
        return rejected(exc, "delete_draft_bill")

    return CommandResult.ok({"deleted": True})


def void_bill(actor: ActorContext, bill_id: int, reason: str) -> CommandResult:
    """Admin only. Payments against the bill must be voided first."""
    require(actor, "documents.void")
    require_admin(actor, "void bills")

    try:
        with transaction.atomic():
            bill = _get(VendorBill, bill_id, "Bill", lock=True)
            if bill.status == VendorBill.Status.DRAFT:
                raise ValidationError("Cannot void a draft bill. Delete it instead.")
            if bill.voided_at is None and bill.live_payments().exists():
                raise ValidationError(
                    f"Bill {bill.number} has payments. Void the payments first."
                )
            reversal = _void_document(actor, bill, reason)
    except LedgerError as exc:
        return rejected(exc, "void_bill")

    return CommandResult.ok({"bill": bill, "reversal": reversal})


# =============================================================================
# Sales Invoice Commands
# =============================================================================

def _issue(invoice: SalesInvoice, user) -> Journal:
    items = [
        builders.ItemLine(
            account_code=line.revenue_account_id,
            amount=line.amount,
            description=line.description,
            project_code=line.project_code,
        )
        for line in invoice.lines.order_by("line_no")
    ]
    journal = post_journal(
        date=invoice.date,
        description=f"Invoice {invoice.number} - {invoice.client.name}",
        lines=builders.invoice_lines(
            number=invoice.number,
            client_name=invoice.client.name,
            items=items,
            vat_amount=invoice.vat_amount,
        ),
        user=user,
        source_doc_type=Journal.SourceDocType.INVOICE,
        source_doc_id=invoice.pk,
    )
    with command_writes_allowed():
        invoice.journal = journal
        invoice.status = SalesInvoice.Status.SENT
        invoice.save(update_fields=["journal", "status", "updated_at"])

    logger.info(
        "Invoice issued",
        extra={"invoice_number": invoice.number, "journal_number": journal.number, "total": invoice.total},
    )
    return journal


def create_invoice(
    actor: ActorContext,
    client_id: int,
    date,
    lines,
    project_id: int = None,
    description: str = "",
    apply_vat: bool = True,
    faktur_pajak_number: str = "",
    draft: bool = False,
) -> CommandResult:
    """Record a sales invoice and (unless ``draft``) post its AR journal."""
    require(actor, "documents.create")
    if not draft:
        require(actor, "documents.post")

    try:
        with transaction.atomic():
            client = _get(Client, client_id, "Client")
            if not client.is_active:
                raise ValidationError(f"Client {client.code} is inactive.")
            project = _get(Project, project_id, "Project") if project_id else None

            items = _document_items(
                lines,
                "revenue_account_code",
                default_account=DEFAULT_REVENUE_ACCOUNT,
                default_project=project.code if project else "",
            )
            subtotal = sum(item["amount"] for item in items)
            vat = output_vat(subtotal) if apply_vat else 0

            number = next_number(DocumentKind.INVOICE, date.year)
            with command_writes_allowed():
                invoice = SalesInvoice.objects.create(
                    number=number,
                    date=date,
                    due_date=date + timedelta(days=client.payment_terms),
                    client=client,
                    project=project,
                    description=(description or "")[:255],
                    faktur_pajak_number=(faktur_pajak_number or "").strip(),
                    apply_vat=apply_vat,
                    subtotal=subtotal,
                    vat_amount=vat,
                    total=subtotal + vat,
                    status=SalesInvoice.Status.DRAFT,
                    created_by=actor.user,
                )
                InvoiceLine.objects.bulk_create([
                    InvoiceLine(
                        invoice=invoice,
                        line_no=item["line_no"],
                        description=item["description"],
                        quantity=item["quantity"],
                        unit_price=item["unit_price"],
                        amount=item["amount"],
                        revenue_account_id=item["account_code"],
                        project_code=item["project_code"],
                    )
                    for item in items
                ])

            if not draft:
                _issue(invoice, actor.user)
    except LedgerError as exc:
        return rejected(exc, "create_invoice")

    return CommandResult.ok(invoice)


def issue_invoice(actor: ActorContext, invoice_id: int) -> CommandResult:
    require(actor, "documents.post")

    try:
        with transaction.atomic():
            invoice = _get(SalesInvoice, invoice_id, "Invoice", lock=True)
            if invoice.status != SalesInvoice.Status.DRAFT:
                raise ValidationError(f"Invoice {invoice.number} has already been issued.")
            _issue(invoice, actor.user)
    except LedgerError as exc:
        return rejected(exc, "issue_invoice")

    return CommandResult.ok(invoice)


def delete_draft_invoice(actor: ActorContext, invoice_id: int) -> CommandResult:
    require(actor, "documents.create")

    try:
        with transaction.atomic():
            invoice = _get(SalesInvoice, invoice_id, "Invoice", lock=True)
            if invoice.status != SalesInvoice.Status.DRAFT:
                raise ValidationError("Only DRAFT invoices can be deleted. Void it instead.")
            with command_writes_allowed():
                invoice.lines.all().delete()
                invoice.delete()
    except LedgerError as exc:
        return rejected(exc, "delete_draft_invoice")

    return CommandResult.ok({"deleted": True})


def void_invoice(actor: ActorContext, invoice_id: int, reason: str) -> CommandResult:
    """Admin only. Receipts against the invoice must be voided first."""
    require(actor, "documents.void")
    require_admin(actor, "void invoices")

    try:
        with transaction.atomic():
            invoice = _get(SalesInvoice, invoice_id, "Invoice", lock=True)
            if invoice.status == SalesInvoice.Status.DRAFT:
                raise ValidationError("Cannot void a draft invoice. Delete it instead.")
            if invoice.voided_at is None and invoice.live_receipts().exists():
                raise ValidationError(
                    f"Invoice {invoice.number} has receipts. Void the receipts first."
                )
            reversal = _void_document(actor, invoice, reason)
    except LedgerError as exc:
        return rejected(exc, "void_invoice")

    return CommandResult.ok({"invoice": invoice, "reversal": reversal})


# =============================================================================
# Payment status
# =============================================================================

def refresh_bill_status(bill: VendorBill) -> str:
    """Recompute a posted bill's status from its live payments. Caller holds the lock."""
    if bill.status in (VendorBill.Status.DRAFT, VendorBill.Status.CANCELLED):
        return bill.status

    settled = bill.amount_settled
    if settled >= bill.total:
        status = VendorBill.Status.PAID
    elif settled > 0:
        status = VendorBill.Status.PARTIAL
    else:
        status = VendorBill.Status.APPROVED

    if status != bill.status:
        with command_writes_allowed():
            bill.status = status
            bill.save(update_fields=["status", "updated_at"])
    return status


def refresh_invoice_status(invoice: SalesInvoice, today=None) -> str:
    """Recompute a posted invoice's status from its live receipts. Caller holds the lock."""
    if invoice.status in (SalesInvoice.Status.DRAFT, SalesInvoice.Status.CANCELLED):
        return invoice.status

    today = today or timezone.localdate()
    received = invoice.amount_received
    if received >= invoice.total:
        status = SalesInvoice.Status.PAID
    elif received > 0:
        status = SalesInvoice.Status.PARTIAL
    elif invoice.due_date < today:
        status = SalesInvoice.Status.OVERDUE
    else:
        status = SalesInvoice.Status.SENT

    if status != invoice.status:
        with command_writes_allowed():
            invoice.status = status
            invoice.save(update_fields=["status", "updated_at"])
    return status


# =============================================================================
# Vendor Payment Commands
# =============================================================================

def expected_withholding(bill: VendorBill) -> int:
    """PPh 23 still to be withheld on ``bill`` (DPP is the subtotal, VAT excluded)."""
    expected = withholding(bill.subtotal, bill.vendor)
    already = bill.live_payments().aggregate(total=Sum("pph23_withheld"))["total"] or 0
    return max(expected - already, 0)


def create_payment(
    actor: ActorContext,
    bill_id: int,
    date,
    amount: int,
    bank_account_code: str = DEFAULT_BANK_ACCOUNT,
    pph23_withheld: int = None,
    reference: str = "",
    description: str = "",
) -> CommandResult:
    """
    Pay a posted bill.

    ``amount`` is the cash paid. When ``pph23_withheld`` is omitted the
    bill's remaining expected withholding is used. ``amount + withheld``
    settles AP and cannot exceed what is still owed on the bill.
    """
    require(actor, "documents.create")
    require(actor, "documents.post")

    try:
        with transaction.atomic():
            bill = _get(VendorBill, bill_id, "Bill", lock=True)
            if bill.status not in (VendorBill.Status.APPROVED, VendorBill.Status.PARTIAL):
                raise ValidationError(
                    f"Bill {bill.number} is {bill.get_status_display().lower()} and cannot be paid."
                )
            vendor = bill.vendor

            _check_amount(amount, "Payment amount")
            if pph23_withheld is None:
                pph23_withheld = expected_withholding(bill)
            _check_amount(pph23_withheld, "PPh 23 withheld", allow_zero=True)

            settled = amount + pph23_withheld
            balance = bill.balance_due
            if settled > balance:
                raise ValidationError(
                    f"Payment settles IDR {settled} but only IDR {balance} is outstanding on {bill.number}."
                )

            _resolve_bank_account(bank_account_code)

            number = next_number(DocumentKind.PAYMENT, date.year)
            with command_writes_allowed():
                payment = VendorPayment.objects.create(
                    number=number,
                    date=date,
                    bill=bill,
                    vendor=vendor,
                    amount=amount,
                    pph23_withheld=pph23_withheld,
                    bank_account_id=bank_account_code,
                    reference=reference or "",
                    description=(description or f"Payment for {bill.number}")[:255],
                    created_by=actor.user,
                )

            journal = post_journal(
                date=date,
                description=f"Vendor Payment {number} - {bill.number}",
                lines=builders.payment_lines(
                    number=number,
                    vendor_name=vendor.name,
                    amount=amount,
                    pph23_withheld=pph23_withheld,
                    bank_account_code=bank_account_code,
                ),
                user=actor.user,
                source_doc_type=Journal.SourceDocType.PAYMENT,
                source_doc_id=payment.pk,
            )
            with command_writes_allowed():
                payment.journal = journal
                payment.save(update_fields=["journal", "updated_at"])

            refresh_bill_status(bill)
    except LedgerError as exc:
        return rejected(exc, "create_payment")

    logger.info(
        "Payment recorded",
        extra={
            "payment_number": payment.number,
            "bill_number": bill.number,
            "amount": amount,
            "pph23_withheld": pph23_withheld,
            "bill_status": bill.status,
        },
    )
    return CommandResult.ok(payment)


def void_payment(actor: ActorContext, payment_id: int, reason: str) -> CommandResult:
    require(actor, "documents.void")
    require_admin(actor, "void payments")

    try:
        with transaction.atomic():
            payment = _get(VendorPayment, payment_id, "Payment", lock=True)
            bill = _get(VendorBill, payment.bill_id, "Bill", lock=True)
            reversal = _void_document(actor, payment, reason)
            refresh_bill_status(bill)
    except LedgerError as exc:
        return rejected(exc, "void_payment")

    return CommandResult.ok({"payment": payment, "reversal": reversal, "bill_status": bill.status})


# =============================================================================
# Cash Receipt Commands
# =============================================================================

def create_receipt(
    actor: ActorContext,
    invoice_id: int,
    date,
    amount: int,
    bank_account_code: str = DEFAULT_BANK_ACCOUNT,
    pph23_withheld: int = 0,
    reference: str = "",
    description: str = "",
) -> CommandResult:
    """
    Record cash received against an issued invoice.

    ``amount`` is the receivable settled. A client that withholds PPh 23
    pays ``amount - pph23_withheld`` into the bank.
    """
    require(actor, "documents.create")
    require(actor, "documents.post")

    try:
        with transaction.atomic():
            invoice = _get(SalesInvoice, invoice_id, "Invoice", lock=True)
            if invoice.status not in SalesInvoice.OPEN_STATUSES:
                raise ValidationError(
                    f"Invoice {invoice.number} is {invoice.get_status_display().lower()} and cannot receive payments."
                )
            client = invoice.client

            _check_amount(amount, "Receipt amount")
            _check_amount(pph23_withheld or 0, "PPh 23 withheld", allow_zero=True)
            pph23_withheld = pph23_withheld or 0
            if pph23_withheld and not client.withholds_pph23:
                raise ValidationError(f"Client {client.code} does not withhold PPh 23.")
            if pph23_withheld > amount:
                raise ValidationError("PPh 23 withheld cannot exceed the receipt amount.")

            balance = invoice.balance_due
            if amount > balance:
                raise ValidationError(
                    f"Receipt of IDR {amount} exceeds the IDR {balance} outstanding on {invoice.number}."
                )

            _resolve_bank_account(bank_account_code)

            number = next_number(DocumentKind.RECEIPT, date.year)
            with command_writes_allowed():
                receipt = CashReceipt.objects.create(
                    number=number,
                    date=date,
                    invoice=invoice,
                    client=client,
                    amount=amount,
                    pph23_withheld=pph23_withheld,
                    bank_account_id=bank_account_code,
                    reference=reference or "",
                    description=(description or f"Payment for {invoice.number}")[:255],
                    created_by=actor.user,
                )

            journal = post_journal(
                date=date,
                description=f"Receipt {number} - {invoice.number}",
                lines=builders.receipt_lines(
                    number=number,
                    invoice_number=invoice.number,
                    amount=amount,
                    pph23_withheld=pph23_withheld,
                    bank_account_code=bank_account_code,
                ),
                user=actor.user,
                source_doc_type=Journal.SourceDocType.RECEIPT,
                source_doc_id=receipt.pk,
            )
            with command_writes_allowed():
                receipt.journal = journal
                receipt.save(update_fields=["journal", "updated_at"])

            refresh_invoice_status(invoice)
    except LedgerError as exc:
        return rejected(exc, "create_receipt")

    logger.info(
        "Receipt recorded",
        extra={"receipt_number": receipt.number, "invoice_number": invoice.number, "amount": amount},
    )
    return CommandResult.ok(receipt)


def void_receipt(actor: ActorContext, receipt_id: int, reason: str) -> CommandResult:
    require(actor, "documents.void")
    require_admin(actor, "void receipts")

    try:
        with transaction.atomic():
            receipt = _get(CashReceipt, receipt_id, "Receipt", lock=True)
            invoice = _get(SalesInvoice, receipt.invoice_id, "Invoice", lock=True)
            reversal = _void_document(actor, receipt, reason)
            refresh_invoice_status(invoice)
    except LedgerError as exc:
        return rejected(exc, "void_receipt")

    return CommandResult.ok({"receipt": receipt, "reversal": reversal, "invoice_status": invoice.status})


# =============================================================================
# Attachment Commands
# =============================================================================

ATTACHMENT_TARGETS = {
    TransactionAttachment.TransactionType.BILL: VendorBill,
    TransactionAttachment.TransactionType.INVOICE: SalesInvoice,
    TransactionAttachment.TransactionType.PAYMENT: VendorPayment,
    TransactionAttachment.TransactionType.RECEIPT: CashReceipt,
    TransactionAttachment.TransactionType.JOURNAL: Journal,
}


def add_attachment(
    actor: ActorContext,
    transaction_type: str,
    transaction_id: int,
    file_name: str,
    file_path: str,
    file_size: int = 0,
    mime_type: str = "",
) -> CommandResult:
    """Record the metadata of a file already stored externally."""
    require(actor, "attachments.upload")

    target = ATTACHMENT_TARGETS.get(transaction_type)
    if target is None:
        return CommandResult.fail(f"Unknown transaction type {transaction_type!r}.")
    if not target.objects.filter(pk=transaction_id).exists():
        return CommandResult.fail(f"{transaction_type} {transaction_id} not found.", "not_found")

    with transaction.atomic():
        attachment = TransactionAttachment.objects.create(
            transaction_type=transaction_type,
            transaction_id=transaction_id,
            file_name=file_name,
            file_path=file_path,
            file_size=file_size or 0,
            mime_type=mime_type or "",
            uploaded_by=actor.user,
        )

    return CommandResult.ok(attachment)
