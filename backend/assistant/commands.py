# assistant/commands.py
"""
Command layer for AI suggestions.

The oracle only proposes. A suggestion moves
PROPOSED -> APPROVED -> POSTED (or to REJECTED) through these commands,
and posting (post_suggestion, or accept_suggestion in one step) is the
only path to the ledger. It refuses anything that is not APPROVED,
whichever caller drives it. Typed suggestions become real documents
through the billing commands; journal_entry suggestions post as-is.
"""

import logging

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from accounts.authz import ActorContext, require
from accounting.chart import (
    ACCOUNTS_PAYABLE,
    ACCOUNTS_RECEIVABLE,
    COGS_PREFIX,
    DEFAULT_BANK_ACCOUNT,
    PPH23_PAYABLE,
    PPH23_PREPAID,
    PPN_KELUARAN,
    PPN_MASUKAN,
)
from accounting.commands import CommandResult, rejected
from accounting.errors import LedgerError, NotFoundError, ValidationError
from accounting.models import Journal
from accounting.posting import LineSpec, post_journal, validate_lines
from assistant.models import TxInput, TxSuggestion
from assistant.oracle import ClassificationOracle, SuggestedAccountSerializer
from audit.models import AuditLog
from audit.recorder import record_action, snapshot
from billing.commands import create_bill, create_invoice, create_payment, create_receipt
from billing.models import Client, Project, SalesInvoice, Vendor, VendorBill

logger = logging.getLogger(__name__)

REVIEW_FIELDS = ["status", "reviewed_at", "reviewed_by", "review_note", "journal"]
EDITABLE_FIELDS = {
    "suggested_type", "suggested_vendor", "suggested_client", "suggested_project",
    "amount", "vat_amount", "suggested_accounts",
}


def suggestion_lines(suggestion: TxSuggestion) -> list[LineSpec]:
    """The suggested accounts as journal lines, tagged with the suggested project."""
    return [
        LineSpec(
            account_code=account.get("code", ""),
            debit=account.get("debit") or 0,
            credit=account.get("credit") or 0,
            description=(account.get("name") or "")[:255],
            project_code=suggestion.suggested_project,
        )
        for account in suggestion.suggested_accounts
    ]


def _get_suggestion(suggestion_id: int, *, lock: bool = False) -> TxSuggestion:
    qs = TxSuggestion.objects.select_related("tx_input")
    if lock:
        qs = qs.select_for_update()
    suggestion = qs.filter(pk=suggestion_id).first()
    if suggestion is None:
        raise NotFoundError(f"Suggestion {suggestion_id} not found.")
    return suggestion


def _clean_accounts(accounts) -> list[dict]:
    serializer = SuggestedAccountSerializer(data=accounts, many=True)
    if not serializer.is_valid():
        raise ValidationError("Invalid suggested accounts.", errors=serializer.errors)
    return [dict(account) for account in serializer.validated_data]


# =============================================================================
# Classification
# =============================================================================

def classify_transaction(
    actor: ActorContext,
    text: str,
    amount: int,
    date=None,
    oracle: ClassificationOracle = None,
    context: str = "",
) -> CommandResult:
    """
    Ask the oracle for a classification and store it as a PROPOSED suggestion.

    The oracle call happens before any transaction is opened; a failed
    call (UpstreamError) stores nothing.
    """
    require(actor, "assistant.use")

    try:
        if not (text or "").strip():
            raise ValidationError("Description is required.")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Amount must be a positive whole rupiah value.")

        oracle = oracle or ClassificationOracle()
        answer = oracle.classify(text.strip(), amount, context)

        with transaction.atomic():
            tx_input = TxInput.objects.create(
                raw_text=text.strip(),
                amount=amount,
                date=date or timezone.localdate(),
                status=TxInput.Status.CLASSIFIED,
                created_by=actor.user,
            )
            suggestion = TxSuggestion.objects.create(
                tx_input=tx_input,
                suggested_type=answer["type"],
                suggested_vendor=answer["vendor"][:255],
                suggested_client=answer["client"][:255],
                suggested_project=answer["project"][:30],
                amount=answer["amount"],
                vat_amount=answer["vat_amount"],
                suggested_accounts=answer["accounts"],
                confidence=answer["confidence"],
                reasoning=answer["reasoning"],
                requires_input=answer["requires_input"],
                status=TxSuggestion.Status.PROPOSED,
            )
    except LedgerError as exc:
        return rejected(exc, "classify_transaction")

    logger.info(
        "Transaction classified",
        extra={"suggestion_id": suggestion.pk, "suggested_type": suggestion.suggested_type, "confidence": suggestion.confidence},
    )
    return CommandResult.ok(suggestion)


def edit_suggestion(actor: ActorContext, suggestion_id: int, **changes) -> CommandResult:
    """Correct a PROPOSED suggestion before review."""
    require(actor, "assistant.use")

    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        return CommandResult.fail(f"Cannot edit fields: {sorted(unknown)}")

    try:
        with transaction.atomic():
            suggestion = _get_suggestion(suggestion_id, lock=True)
            if suggestion.status != TxSuggestion.Status.PROPOSED:
                raise ValidationError(f"Only PROPOSED suggestions can be edited; this one is {suggestion.status}.")

            if "suggested_accounts" in changes:
                changes["suggested_accounts"] = _clean_accounts(changes["suggested_accounts"])
            for name, value in changes.items():
                setattr(suggestion, name, value if value is not None else "")
            suggestion.edited = True
            suggestion.save()
    except LedgerError as exc:
        return rejected(exc, "edit_suggestion")

    return CommandResult.ok(suggestion)


# =============================================================================
# Review
# =============================================================================

def _approve(actor: ActorContext, suggestion: TxSuggestion, note: str) -> None:
    if suggestion.status != TxSuggestion.Status.PROPOSED:
        raise ValidationError(f"Only PROPOSED suggestions can be approved; this one is {suggestion.status}.")

    # Same checks as a manual entry: shape, accounts, balance
    validate_lines(suggestion_lines(suggestion))

    before = snapshot(suggestion, REVIEW_FIELDS)
    suggestion.status = TxSuggestion.Status.APPROVED
    suggestion.reviewed_at = timezone.now()
    suggestion.reviewed_by = actor.user
    suggestion.review_note = note or ""
    suggestion.save()

    record_action(
        action=AuditLog.Action.APPROVE_SUGGESTION,
        user=actor.user,
        instance=suggestion,
        reason=note,
        old_values=before,
        new_values=snapshot(suggestion, REVIEW_FIELDS),
    )


# =============================================================================
# Typed postings
# =============================================================================

# Tax and control accounts the document commands post themselves
_DERIVED_ACCOUNTS = {
    ACCOUNTS_RECEIVABLE, ACCOUNTS_PAYABLE,
    PPN_MASUKAN, PPN_KELUARAN,
    PPH23_PREPAID, PPH23_PAYABLE,
}


def _find(model, name: str, label: str):
    """Match by code or name, case-insensitive. Parties are never created here."""
    name = (name or "").strip()
    if not name:
        raise ValidationError(f"The suggestion does not name a {label.lower()}.")
    found = model.objects.filter(Q(code__iexact=name) | Q(name__iexact=name)).first()
    if found is None:
        raise ValidationError(f"{label} {name!r} not found. Create the {label.lower()} first.")
    return found


def _find_project(suggestion: TxSuggestion):
    if not suggestion.suggested_project:
        return None
    return _find(Project, suggestion.suggested_project, "Project")


def _item_lines(suggestion: TxSuggestion, side: str, account_field: str) -> list[dict]:
    """One document line per suggested account on ``side``, leaving out tax and control accounts."""
    lines = [
        {
            "description": account.get("name") or suggestion.tx_input.raw_text[:255],
            "quantity": 1,
            "unit_price": account[side],
            account_field: account["code"],
        }
        for account in suggestion.suggested_accounts
        if account.get(side) and account.get("code") not in _DERIVED_ACCOUNTS
    ]
    if not lines:
        raise ValidationError("The suggestion has no line items for this document type.")
    return lines


def _amount_on(suggestion: TxSuggestion, code: str, side: str) -> int:
    return sum(a.get(side) or 0 for a in suggestion.suggested_accounts if a.get("code") == code)


def _cash_line(suggestion: TxSuggestion, side: str) -> dict | None:
    for account in suggestion.suggested_accounts:
        if account.get(side) and account.get("code") not in _DERIVED_ACCOUNTS:
            return account
    return None


def _unwrap(result: CommandResult):
    # A refused document command aborts the whole review transaction
    if not result.success:
        raise result.exception or ValidationError(result.error)
    return result.data


def _open_document(queryset, reference: str, label: str):
    if reference:
        document = queryset.filter(number=reference.strip()).first()
        if document is None:
            raise ValidationError(f"{label} {reference!r} is not open.")
        return document
    documents = list(queryset[:2])
    if len(documents) != 1:
        raise ValidationError(f"Name the {label.lower()} this suggestion settles.")
    return documents[0]


def _post_bill(actor, suggestion, reference, faktur_pajak_number):
    vendor = _find(Vendor, suggestion.suggested_vendor, "Vendor")
    project = _find_project(suggestion)
    lines = _item_lines(suggestion, "debit", "expense_account_code")
    if any(line["expense_account_code"].startswith(COGS_PREFIX) for line in lines):
        category = VendorBill.Category.COGS
    else:
        category = VendorBill.Category.OPEX
    return _unwrap(create_bill(
        actor,
        vendor.pk,
        suggestion.tx_input.date,
        lines,
        category=category,
        project_id=project.pk if project else None,
        vendor_invoice_number=reference,
        faktur_pajak_number=faktur_pajak_number,
        description=suggestion.tx_input.raw_text[:255],
    ))


def _post_invoice(actor, suggestion, reference, faktur_pajak_number):
    client = _find(Client, suggestion.suggested_client, "Client")
    project = _find_project(suggestion)
    apply_vat = bool(suggestion.vat_amount or _amount_on(suggestion, PPN_KELUARAN, "credit"))
    return _unwrap(create_invoice(
        actor,
        client.pk,
        suggestion.tx_input.date,
        _item_lines(suggestion, "credit", "revenue_account_code"),
        project_id=project.pk if project else None,
        description=suggestion.tx_input.raw_text[:255],
        apply_vat=apply_vat,
        faktur_pajak_number=faktur_pajak_number,
    ))


def _post_receipt(actor, suggestion, reference, faktur_pajak_number):
    invoices = SalesInvoice.objects.filter(status__in=SalesInvoice.OPEN_STATUSES).order_by("date", "id")
    if not reference:
        invoices = invoices.filter(client=_find(Client, suggestion.suggested_client, "Client"))
    invoice = _open_document(invoices, reference, "Invoice")

    cash = _cash_line(suggestion, "debit")
    withheld = _amount_on(suggestion, PPH23_PREPAID, "debit")
    amount = (
        _amount_on(suggestion, ACCOUNTS_RECEIVABLE, "credit")
        or ((cash["debit"] + withheld) if cash else suggestion.amount)
    )
    return _unwrap(create_receipt(
        actor,
        invoice.pk,
        suggestion.tx_input.date,
        amount,
        bank_account_code=cash["code"] if cash else DEFAULT_BANK_ACCOUNT,
        pph23_withheld=withheld,
        description=suggestion.tx_input.raw_text[:255],
    ))


def _post_payment(actor, suggestion, reference, faktur_pajak_number):
    bills = VendorBill.objects.filter(
        status__in=(VendorBill.Status.APPROVED, VendorBill.Status.PARTIAL),
    ).order_by("date", "id")
    if not reference:
        bills = bills.filter(vendor=_find(Vendor, suggestion.suggested_vendor, "Vendor"))
    bill = _open_document(bills, reference, "Bill")

    cash = _cash_line(suggestion, "credit")
    withheld = _amount_on(suggestion, PPH23_PAYABLE, "credit")
    return _unwrap(create_payment(
        actor,
        bill.pk,
        suggestion.tx_input.date,
        cash["credit"] if cash else suggestion.amount,
        bank_account_code=cash["code"] if cash else DEFAULT_BANK_ACCOUNT,
        pph23_withheld=withheld if withheld else None,
        description=suggestion.tx_input.raw_text[:255],
    ))


DOCUMENT_POSTERS = {
    TxSuggestion.SuggestedType.VENDOR_BILL: _post_bill,
    TxSuggestion.SuggestedType.SALES_INVOICE: _post_invoice,
    TxSuggestion.SuggestedType.CASH_RECEIPT: _post_receipt,
    TxSuggestion.SuggestedType.VENDOR_PAYMENT: _post_payment,
}


def _post(actor: ActorContext, suggestion: TxSuggestion, reference: str = "", faktur_pajak_number: str = "") -> Journal:
    """
    Turn an APPROVED suggestion into ledger entries.

    Bills, invoices, receipts and payments go through the billing commands
    so they get a document, a number and tax lines like one entered by hand.
    ``reference`` is the vendor's invoice number for a bill, or the number
    of the invoice or bill a receipt or payment settles. A journal_entry
    suggestion posts its accounts as they stand.
    """
    if suggestion.status != TxSuggestion.Status.APPROVED:
        raise ValidationError(
            f"Suggestion must be APPROVED before posting; this one is {suggestion.status}."
        )

    tx_input = suggestion.tx_input
    poster = DOCUMENT_POSTERS.get(suggestion.suggested_type)
    if poster is not None:
        document = poster(actor, suggestion, (reference or "").strip(), (faktur_pajak_number or "").strip())
        journal = document.journal
        suggestion.document_number = document.number
    else:
        journal = post_journal(
            date=tx_input.date,
            description=tx_input.raw_text[:255],
            lines=suggestion_lines(suggestion),
            user=actor.user,
            source_doc_type=Journal.SourceDocType.SUGGESTION,
            source_doc_id=suggestion.pk,
        )

    suggestion.journal = journal
    suggestion.status = TxSuggestion.Status.POSTED
    suggestion.save(update_fields=["journal", "document_number", "status", "updated_at"])

    tx_input.status = TxInput.Status.APPROVED
    tx_input.save(update_fields=["status"])

    logger.info(
        "Suggestion posted",
        extra={
            "suggestion_id": suggestion.pk,
            "suggested_type": suggestion.suggested_type,
            "document_number": suggestion.document_number,
            "journal_number": journal.number,
        },
    )
    return journal


def approve_suggestion(actor: ActorContext, suggestion_id: int, note: str = "") -> CommandResult:
    require(actor, "assistant.approve")

    try:
        with transaction.atomic():
            suggestion = _get_suggestion(suggestion_id, lock=True)
            _approve(actor, suggestion, note)
    except LedgerError as exc:
        return rejected(exc, "approve_suggestion")

    return CommandResult.ok(suggestion)


def post_suggestion(
    actor: ActorContext,
    suggestion_id: int,
    reference: str = "",
    faktur_pajak_number: str = "",
) -> CommandResult:
    require(actor, "assistant.approve")
    require(actor, "journal.post")

    try:
        with transaction.atomic():
            suggestion = _get_suggestion(suggestion_id, lock=True)
            _post(actor, suggestion, reference, faktur_pajak_number)
    except LedgerError as exc:
        return rejected(exc, "post_suggestion")

    return CommandResult.ok(suggestion)


def accept_suggestion(
    actor: ActorContext,
    suggestion_id: int,
    note: str = "",
    reference: str = "",
    faktur_pajak_number: str = "",
) -> CommandResult:
    """Approve and post in one transaction; the suggestion still passes through APPROVED."""
    require(actor, "assistant.approve")
    require(actor, "journal.post")

    try:
        with transaction.atomic():
            suggestion = _get_suggestion(suggestion_id, lock=True)
            _approve(actor, suggestion, note)
            _post(actor, suggestion, reference, faktur_pajak_number)
    except LedgerError as exc:
        return rejected(exc, "accept_suggestion")

    return CommandResult.ok(suggestion)


def reject_suggestion(actor: ActorContext, suggestion_id: int, reason: str = "") -> CommandResult:
    require(actor, "assistant.approve")

    try:
        with transaction.atomic():
            suggestion = _get_suggestion(suggestion_id, lock=True)
            if suggestion.status not in (TxSuggestion.Status.PROPOSED, TxSuggestion.Status.APPROVED):
                raise ValidationError(f"A {suggestion.status} suggestion cannot be rejected.")

            before = snapshot(suggestion, REVIEW_FIELDS)
            suggestion.status = TxSuggestion.Status.REJECTED
            suggestion.reviewed_at = timezone.now()
            suggestion.reviewed_by = actor.user
            suggestion.review_note = reason or ""
            suggestion.save()

            tx_input = suggestion.tx_input
            tx_input.status = TxInput.Status.REJECTED
            tx_input.save(update_fields=["status"])

            record_action(
                action=AuditLog.Action.REJECT_SUGGESTION,
                user=actor.user,
                instance=suggestion,
                reason=reason,
                old_values=before,
                new_values=snapshot(suggestion, REVIEW_FIELDS),
            )
    except LedgerError as exc:
        return rejected(exc, "reject_suggestion")

    return CommandResult.ok(suggestion)
