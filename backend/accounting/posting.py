# accounting/posting.py
"""
Ledger Poster.

The only place balance is enforced. Callers (bills, invoices, payments,
receipts, manual journals, accepted AI suggestions) assemble a list of
LineSpec and hand it to ``post_journal``; the header and all lines are
written in one transaction or not at all.
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from django.db import transaction
from django.utils import timezone

from accounting.errors import ImbalanceError, ValidationError
from accounting.models import DocumentKind, Journal, JournalLine, NumberReservation
from accounting.numbering import next_number
from accounting.policies import assert_can_post_to_period
from accounting.registry import AccountRegistry
from accounting.write_barrier import command_writes_allowed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineSpec:
    """One requested debit or credit line."""

    account_code: str
    debit: int = 0
    credit: int = 0
    description: str = ""
    project_code: str = ""

    def mirrored(self) -> "LineSpec":
        return replace(self, debit=self.credit, credit=self.debit)

    @classmethod
    def from_line(cls, line: JournalLine) -> "LineSpec":
        return cls(
            account_code=line.account_id,
            debit=line.debit,
            credit=line.credit,
            description=line.description,
            project_code=line.project_code,
        )


def _is_amount(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def totals(lines: Iterable[LineSpec]) -> tuple[int, int]:
    debit = credit = 0
    for line in lines:
        debit += line.debit
        credit += line.credit
    return debit, credit


def check_line_shapes(
    lines: Sequence[LineSpec],
    registry: AccountRegistry | None = None,
    *,
    allow_inactive: bool = False,
) -> AccountRegistry:
    """Everything short of the balance check: non-empty, amounts, accounts."""
    if not lines:
        raise ValidationError("A journal needs at least one line.")

    for index, line in enumerate(lines, start=1):
        if not _is_amount(line.debit) or not _is_amount(line.credit):
            raise ValidationError(f"Line {index}: amounts must be whole rupiah.")
        if line.debit < 0 or line.credit < 0:
            raise ValidationError(f"Line {index}: amounts cannot be negative.")
        if line.debit > 0 and line.credit > 0:
            raise ValidationError(f"Line {index}: a line is either a debit or a credit.")
        if line.debit == 0 and line.credit == 0:
            raise ValidationError(f"Line {index}: amount is zero.")

    if registry is None:
        registry = AccountRegistry.load(line.account_code for line in lines)
    for line in lines:
        registry.resolve(line.account_code, allow_inactive=allow_inactive)
    return registry


def validate_lines(
    lines: Sequence[LineSpec],
    registry: AccountRegistry | None = None,
    *,
    allow_inactive: bool = False,
) -> AccountRegistry:
    """
    Validate a line set for posting.

    Raises:
        ValidationError: empty set, bad amounts, malformed account code
        UnknownAccountError: account missing, or inactive unless ``allow_inactive``
        ImbalanceError: sum(debit) != sum(credit)
    """
    registry = check_line_shapes(lines, registry, allow_inactive=allow_inactive)
    debit, credit = totals(lines)
    if debit != credit:
        raise ImbalanceError(debit, credit)
    return registry


def _write_lines(journal: Journal, lines: Sequence[LineSpec]) -> None:
    JournalLine.objects.bulk_create([
        JournalLine(
            journal=journal,
            line_no=index,
            account_id=line.account_code,
            description=line.description,
            debit=line.debit,
            credit=line.credit,
            project_code=line.project_code,
        )
        for index, line in enumerate(lines, start=1)
    ])


def post_journal(
    *,
    date,
    description: str,
    lines: Sequence[LineSpec],
    user=None,
    source_doc_type: str = Journal.SourceDocType.MANUAL,
    source_doc_id: int | None = None,
    kind: str = Journal.Kind.NORMAL,
    idempotency_key: str | None = None,
) -> Journal:
    """
    Validate and persist a balanced, numbered, POSTED journal.

    Replaying an idempotency key whose journal already exists returns that
    journal instead of posting twice.
    """
    lines = list(lines)

    if idempotency_key:
        reservation = NumberReservation.objects.filter(idempotency_key=idempotency_key).first()
        if reservation is not None:
            existing = Journal.objects.filter(number=reservation.number).first()
            if existing is not None:
                return existing

    # Reversals mirror existing lines, so deactivated accounts stay reachable
    validate_lines(lines, allow_inactive=kind == Journal.Kind.REVERSAL)
    assert_can_post_to_period(date)

    with transaction.atomic(), command_writes_allowed():
        number = next_number(DocumentKind.JOURNAL, date.year, idempotency_key)
        now = timezone.now()
        journal = Journal.objects.create(
            number=number,
            date=date,
            description=description[:255],
            status=Journal.Status.POSTED,
            kind=kind,
            source_doc_type=source_doc_type,
            source_doc_id=source_doc_id,
            posted_at=now,
            posted_by=user,
            created_by=user,
        )
        _write_lines(journal, lines)

    logger.info(
        "Journal posted",
        extra={
            "journal_number": number,
            "source_doc_type": source_doc_type,
            "source_doc_id": source_doc_id,
            "line_count": len(lines),
            "amount": totals(lines)[0],
        },
    )
    return journal


def create_draft(*, date, description: str, lines: Sequence[LineSpec], user=None) -> Journal:
    """Store an unposted manual journal. Balance is checked when it is posted."""
    lines = list(lines)
    check_line_shapes(lines)

    with transaction.atomic(), command_writes_allowed():
        journal = Journal.objects.create(
            date=date,
            description=description[:255],
            status=Journal.Status.DRAFT,
            source_doc_type=Journal.SourceDocType.MANUAL,
            created_by=user,
        )
        _write_lines(journal, lines)
    return journal


def post_draft(journal: Journal, user=None) -> Journal:
    """Validate a DRAFT journal's stored lines, number it and mark it POSTED."""
    lines = [LineSpec.from_line(line) for line in journal.lines.order_by("line_no")]
    validate_lines(lines)
    assert_can_post_to_period(journal.date)

    with transaction.atomic(), command_writes_allowed():
        journal.number = next_number(DocumentKind.JOURNAL, journal.date.year)
        journal.status = Journal.Status.POSTED
        journal.posted_at = timezone.now()
        journal.posted_by = user
        journal.save(update_fields=["number", "status", "posted_at", "posted_by", "period"])

    logger.info("Draft journal posted", extra={"journal_number": journal.number})
    return journal
