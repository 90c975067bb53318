# accounting/reversal.py
"""
Document Reversal.

A posted journal is never edited or deleted. Voiding it posts a new
journal with every line mirrored (debit and credit swapped, same
account, same project) and stamps the original with who voided it,
when, why, and which journal reversed it.
"""

import logging

from django.db import transaction
from django.utils import timezone

from accounting.errors import ValidationError
from accounting.models import Journal
from accounting.policies import assert_can_void_journal
from accounting.posting import LineSpec, post_journal
from accounting.write_barrier import command_writes_allowed

logger = logging.getLogger(__name__)


def mirror_lines(journal: Journal) -> list[LineSpec]:
    return [
        LineSpec.from_line(line).mirrored()
        for line in journal.lines.order_by("line_no")
    ]


def reverse_journal(
    journal: Journal,
    *,
    reason: str,
    user=None,
    on_date=None,
    description: str | None = None,
) -> Journal:
    """
    Post the mirror of ``journal`` and mark ``journal`` voided.

    The original row is locked for the duration, so two concurrent voids
    cannot both succeed.

    Raises:
        ValidationError: blank reason, draft or reversal journal
        AlreadyVoidedError: journal was voided before
        PeriodClosedError: the reversal date falls in a closed period
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A void reason is required.")

    with transaction.atomic():
        journal = Journal.objects.select_for_update().get(pk=journal.pk)
        assert_can_void_journal(journal)

        reversal = post_journal(
            date=on_date or timezone.localdate(),
            description=description or f"VOID: {journal.number} - {reason}",
            lines=mirror_lines(journal),
            user=user,
            source_doc_type=journal.source_doc_type,
            source_doc_id=journal.source_doc_id,
            kind=Journal.Kind.REVERSAL,
        )

        with command_writes_allowed():
            journal.voided_at = timezone.now()
            journal.voided_by = user
            journal.void_reason = reason[:255]
            journal.reversal_journal = reversal
            journal.save(update_fields=["voided_at", "voided_by", "void_reason", "reversal_journal", "period"])

    logger.info(
        "Journal voided",
        extra={"journal_number": journal.number, "reversal_number": reversal.number},
    )
    return reversal
