# tests/test_reversal.py
"""
Tests for voiding journals by reversal.
"""

from datetime import date

import pytest
from django.db.models import Sum

from accounting.commands import update_account, void_journal
from accounting.errors import AlreadyVoidedError, AuthorizationError, ImbalanceError, UnknownAccountError, ValidationError
from accounting.models import Journal, JournalLine
from accounting.posting import LineSpec, post_journal
from accounting.reversal import reverse_journal
from accounts.models import UserRole
from audit.models import AuditLog

DOC_DATE = date(2025, 1, 15)


def account_net(code):
    agg = JournalLine.objects.filter(account_id=code, journal__status=Journal.Status.POSTED).aggregate(
        debit=Sum("debit"), credit=Sum("credit")
    )
    return (agg["debit"] or 0) - (agg["credit"] or 0)


@pytest.fixture
def office_supplies(chart, post_manual):
    return post_manual("6-60110", "1-10200", 750_000, project_code="")


@pytest.mark.django_db
class TestReverseJournal:
    def test_mirror_lines_posted(self, office_supplies, admin_user):
        reversal = reverse_journal(office_supplies, reason="Salah input", user=admin_user, on_date=DOC_DATE)

        assert reversal.kind == Journal.Kind.REVERSAL
        assert reversal.status == Journal.Status.POSTED
        assert reversal.number == "JV-2025-0002"
        assert reversal.description == f"VOID: {office_supplies.number} - Salah input"
        assert list(reversal.lines.values_list("account_id", "debit", "credit")) == [
            ("6-60110", 0, 750_000),
            ("1-10200", 750_000, 0),
        ]

        office_supplies.refresh_from_db()
        assert office_supplies.is_voided
        assert office_supplies.voided_by == admin_user
        assert office_supplies.void_reason == "Salah input"
        assert office_supplies.reversal_journal == reversal
        # Original stays posted and unchanged
        assert office_supplies.status == Journal.Status.POSTED
        assert office_supplies.totals() == (750_000, 750_000)

    def test_accounts_net_to_zero(self, office_supplies):
        reverse_journal(office_supplies, reason="Duplikat", on_date=DOC_DATE)

        assert account_net("6-60110") == 0
        assert account_net("1-10200") == 0

    def test_project_code_carried_to_reversal(self, chart, post_manual):
        journal = post_manual("5-50100", "2-20100", 2_000_000, project_code="BSI-001")

        reversal = reverse_journal(journal, reason="Batal", on_date=DOC_DATE)

        assert reversal.lines.get(account_id="5-50100").project_code == "BSI-001"

    def test_second_void_rejected(self, office_supplies):
        reverse_journal(office_supplies, reason="Pertama", on_date=DOC_DATE)

        with pytest.raises(AlreadyVoidedError):
            reverse_journal(office_supplies, reason="Kedua", on_date=DOC_DATE)
        assert Journal.objects.filter(kind=Journal.Kind.REVERSAL).count() == 1

    def test_reason_required(self, office_supplies):
        with pytest.raises(ValidationError):
            reverse_journal(office_supplies, reason="   ")

    def test_reversal_cannot_be_voided(self, office_supplies):
        reversal = reverse_journal(office_supplies, reason="Batal", on_date=DOC_DATE)

        with pytest.raises(ValidationError):
            reverse_journal(reversal, reason="Batal lagi", on_date=DOC_DATE)


@pytest.mark.django_db
class TestVoidJournalCommand:
    def test_admin_voids_and_is_audited(self, office_supplies, admin_actor):
        result = void_journal(admin_actor, office_supplies.pk, "Salah akun")

        assert result.success
        assert result.data["original"].is_voided
        assert result.data["reversal"].kind == Journal.Kind.REVERSAL

        entry = AuditLog.objects.get(action=AuditLog.Action.VOID)
        assert entry.record_id == str(office_supplies.pk)
        assert entry.changed_by == admin_actor.user
        assert entry.reason == "Salah akun"
        assert entry.old_values["voided_at"] is None
        assert entry.new_values["reversal_journal"] == result.data["reversal"].pk

    def test_second_void_reports_already_voided(self, office_supplies, admin_actor):
        assert void_journal(admin_actor, office_supplies.pk, "Pertama").success

        result = void_journal(admin_actor, office_supplies.pk, "Kedua")

        assert not result.success
        assert result.error_kind == "already_voided"

    def test_missing_journal(self, chart, admin_actor):
        result = void_journal(admin_actor, 99999, "Tidak ada")

        assert result.error_kind == "not_found"

    def test_regular_user_cannot_void(self, office_supplies, user_actor):
        with pytest.raises(AuthorizationError):
            void_journal(user_actor, office_supplies.pk, "Tidak boleh")

        office_supplies.refresh_from_db()
        assert not office_supplies.is_voided

    def test_demoted_admin_cannot_void(self, office_supplies, admin_actor):
        # The actor was built while still admin; the role is re-read at void time
        UserRole.objects.filter(user=admin_actor.user).update(role=UserRole.Role.USER)

        with pytest.raises(AuthorizationError):
            void_journal(admin_actor, office_supplies.pk, "Sudah bukan admin")

    def test_document_journal_voided_through_document(self, chart, admin_actor):
        journal = post_journal(
            date=DOC_DATE,
            description="Bill journal",
            lines=[LineSpec(account_code="6-60100", debit=100), LineSpec(account_code="2-20100", credit=100)],
            source_doc_type=Journal.SourceDocType.BILL,
            source_doc_id=1,
        )

        result = void_journal(admin_actor, journal.pk, "Langsung")

        assert not result.success
        assert "void the document" in result.error


@pytest.mark.django_db
class TestVoidAfterDeactivation:
    def test_void_reaches_deactivated_account(self, office_supplies, admin_actor):
        assert update_account(admin_actor, "6-60110", is_active=False).success

        result = void_journal(admin_actor, office_supplies.pk, "Akun sudah ditutup")

        assert result.success
        assert account_net("6-60110") == 0
        assert account_net("1-10200") == 0

    def test_new_postings_still_refuse_deactivated_account(self, office_supplies, admin_actor):
        update_account(admin_actor, "6-60110", is_active=False)

        with pytest.raises(UnknownAccountError, match="inactive"):
            post_journal(
                date=DOC_DATE,
                description="Setelah dinonaktifkan",
                lines=[LineSpec(account_code="6-60110", debit=100), LineSpec(account_code="1-10200", credit=100)],
            )

    def test_reversal_still_checks_balance(self, chart):
        with pytest.raises(ImbalanceError):
            post_journal(
                date=DOC_DATE,
                description="Reversal tidak seimbang",
                lines=[LineSpec(account_code="1-10200", debit=100), LineSpec(account_code="6-60110", credit=90)],
                kind=Journal.Kind.REVERSAL,
            )
