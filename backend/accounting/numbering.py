# accounting/numbering.py
"""
Document numbering.

Numbers look like ``JV-2025-0001``: one counter per (document kind, year),
incremented under a row lock so concurrent callers never mint the same
number. An optional idempotency key pins the number handed out, so a
retried request gets the number it already received.
"""

import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from accounting.errors import ValidationError
from accounting.models import DocumentKind, DocumentSequence, NumberReservation
from accounting.write_barrier import command_writes_allowed

logger = logging.getLogger(__name__)


PREFIXES = {
    DocumentKind.JOURNAL: "JV",
    DocumentKind.INVOICE: "INV",
    DocumentKind.BILL: "BILL",
    DocumentKind.PAYMENT: "PAY",
    DocumentKind.RECEIPT: "RCP",
}


def format_number(kind: str, year: int, value: int) -> str:
    return f"{PREFIXES[kind]}-{year}-{value:04d}"


def _allocate(kind: str, year: int) -> int:
    """
    Allocate the next sequence value for a kind/year pair.
    Uses select_for_update to avoid concurrent duplicates.
    """
    try:
        seq = DocumentSequence.objects.select_for_update().get(kind=kind, year=year)
    except DocumentSequence.DoesNotExist:
        try:
            with transaction.atomic():
                seq = DocumentSequence.objects.create(kind=kind, year=year, next_value=1)
        except IntegrityError:
            seq = DocumentSequence.objects.select_for_update().get(kind=kind, year=year)

    value = seq.next_value
    seq.next_value = value + 1
    seq.save(update_fields=["next_value", "updated_at"])
    return value


def next_number(kind: str, year: int | None = None, idempotency_key: str | None = None) -> str:
    """
    Return the next document number for ``kind``.

    Must run inside the caller's transaction when the number is stored with
    a document; it opens its own otherwise.
    """
    if kind not in PREFIXES:
        raise ValidationError(f"Unknown document kind {kind!r}.")
    if year is None:
        year = timezone.localdate().year

    with transaction.atomic(), command_writes_allowed():
        if idempotency_key:
            reserved = NumberReservation.objects.filter(idempotency_key=idempotency_key).first()
            if reserved is not None:
                if reserved.kind != kind or reserved.year != year:
                    raise ValidationError(
                        f"Idempotency key {idempotency_key!r} was already used for "
                        f"{reserved.kind} {reserved.year}."
                    )
                return reserved.number

        number = format_number(kind, year, _allocate(kind, year))

        if idempotency_key:
            try:
                with transaction.atomic():
                    NumberReservation.objects.create(
                        idempotency_key=idempotency_key,
                        kind=kind,
                        year=year,
                        number=number,
                    )
            except IntegrityError:
                # A concurrent retry with the same key won the reservation.
                return NumberReservation.objects.get(idempotency_key=idempotency_key).number

    logger.debug("Allocated document number", extra={"kind": kind, "number": number})
    return number


def reserved_number(idempotency_key: str) -> str | None:
    reservation = NumberReservation.objects.filter(idempotency_key=idempotency_key).first()
    return reservation.number if reservation else None
