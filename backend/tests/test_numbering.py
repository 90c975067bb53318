# tests/test_numbering.py
"""
Tests for document numbering.
"""

import threading

import pytest
from django.db import connection
from django.db.models import QuerySet

from accounting.errors import ValidationError
from accounting.models import DocumentKind, DocumentSequence
from accounting.numbering import format_number, next_number, reserved_number
from accounting.write_barrier import command_writes_allowed


def test_format_number():
    assert format_number(DocumentKind.JOURNAL, 2025, 1) == "JV-2025-0001"
    assert format_number(DocumentKind.INVOICE, 2025, 42) == "INV-2025-0042"
    assert format_number(DocumentKind.PAYMENT, 2026, 12345) == "PAY-2026-12345"


@pytest.mark.django_db
def test_numbers_increase_without_gaps():
    numbers = [next_number(DocumentKind.JOURNAL, 2025) for _ in range(3)]

    assert numbers == ["JV-2025-0001", "JV-2025-0002", "JV-2025-0003"]


@pytest.mark.django_db
def test_each_kind_and_year_has_its_own_counter():
    assert next_number(DocumentKind.JOURNAL, 2025) == "JV-2025-0001"
    assert next_number(DocumentKind.BILL, 2025) == "BILL-2025-0001"
    assert next_number(DocumentKind.JOURNAL, 2026) == "JV-2026-0001"
    assert next_number(DocumentKind.JOURNAL, 2025) == "JV-2025-0002"

    assert DocumentSequence.objects.count() == 3


@pytest.mark.django_db
def test_idempotency_key_returns_same_number():
    first = next_number(DocumentKind.RECEIPT, 2025, idempotency_key="rcp-abc")
    again = next_number(DocumentKind.RECEIPT, 2025, idempotency_key="rcp-abc")
    other = next_number(DocumentKind.RECEIPT, 2025)

    assert first == again == "RCP-2025-0001"
    assert other == "RCP-2025-0002"
    assert reserved_number("rcp-abc") == first


@pytest.mark.django_db
def test_idempotency_key_cannot_switch_kind():
    next_number(DocumentKind.BILL, 2025, idempotency_key="key-1")

    with pytest.raises(ValidationError):
        next_number(DocumentKind.INVOICE, 2025, idempotency_key="key-1")


@pytest.mark.django_db
def test_unknown_kind_rejected():
    with pytest.raises(ValidationError):
        next_number("credit_note", 2025)


@pytest.mark.django_db
def test_allocation_locks_and_rereads_the_sequence_row(monkeypatch):
    next_number(DocumentKind.JOURNAL, 2025)
    # Another allocator committed two numbers after our last read
    with command_writes_allowed():
        DocumentSequence.objects.filter(kind=DocumentKind.JOURNAL, year=2025).update(next_value=4)

    locked = []
    select_for_update = QuerySet.select_for_update

    def spy(self, *args, **kwargs):
        locked.append(self.model)
        return select_for_update(self, *args, **kwargs)

    monkeypatch.setattr(QuerySet, "select_for_update", spy)

    assert next_number(DocumentKind.JOURNAL, 2025) == "JV-2025-0004"
    assert locked == [DocumentSequence]
    assert DocumentSequence.objects.get(kind=DocumentKind.JOURNAL, year=2025).next_value == 5


# SQLite has no row locks; run with DATABASE_URL=postgres://... to exercise this
@pytest.mark.skipif(connection.vendor == "sqlite", reason="needs row-level locks")
@pytest.mark.django_db(transaction=True)
def test_concurrent_allocation_never_duplicates():
    numbers = []
    errors = []

    def allocate():
        try:
            for _ in range(5):
                numbers.append(next_number(DocumentKind.JOURNAL, 2025))
        except Exception as exc:  # surfaced by the assertion below
            errors.append(exc)
        finally:
            connection.close()

    threads = [threading.Thread(target=allocate) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(numbers) == 20
    assert len(set(numbers)) == 20
    assert sorted(numbers) == [f"JV-2025-{n:04d}" for n in range(1, 21)]
