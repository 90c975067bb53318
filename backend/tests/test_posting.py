# tests/test_posting.py
"""
Tests for the Ledger Poster and the manual journal commands.
"""

from datetime import date

import pytest

from accounting.commands import create_journal, delete_draft_journal, post_draft_journal, update_draft_journal
from accounting.errors import (
    AuthorizationError,
    ImbalanceError,
    PeriodClosedError,
    UnknownAccountError,
    ValidationError,
)
from accounting.models import Account, DocumentSequence, Journal, JournalLine, PeriodStatus
from accounting.posting import LineSpec, post_journal, validate_lines
from accounting.registry import AccountRegistry

DOC_DATE = date(2025, 1, 15)


def capital_injection(amount=10_000_000):
    return [
        LineSpec(account_code="1-10200", debit=amount, description="Setoran modal"),
        LineSpec(account_code="3-30100", credit=amount, description="Setoran modal"),
    ]


@pytest.mark.django_db
class TestPostJournal:
    def test_posts_balanced_journal(self, chart, admin_user):
        journal = post_journal(
            date=DOC_DATE,
            description="Setoran modal awal",
            lines=capital_injection(),
            user=admin_user,
        )

        assert journal.status == Journal.Status.POSTED
        assert journal.number == "JV-2025-0001"
        assert journal.period == "2025-01"
        assert journal.kind == Journal.Kind.NORMAL
        assert journal.posted_by == admin_user
        assert journal.totals() == (10_000_000, 10_000_000)
        assert list(journal.lines.values_list("line_no", "account_id")) == [(1, "1-10200"), (2, "3-30100")]

    def test_imbalance_rejected_and_nothing_written(self, chart):
        lines = [
            LineSpec(account_code="6-60100", debit=1_000_000),
            LineSpec(account_code="1-10200", credit=999_999),
        ]

        with pytest.raises(ImbalanceError) as exc_info:
            post_journal(date=DOC_DATE, description="Off by one", lines=lines)

        assert exc_info.value.total_debit == 1_000_000
        assert exc_info.value.total_credit == 999_999
        assert Journal.objects.count() == 0
        assert JournalLine.objects.count() == 0
        assert DocumentSequence.objects.count() == 0

    def test_unknown_account_rejected(self, chart):
        lines = [
            LineSpec(account_code="6-69999", debit=500),
            LineSpec(account_code="1-10200", credit=500),
        ]

        with pytest.raises(UnknownAccountError) as exc_info:
            post_journal(date=DOC_DATE, description="Unknown", lines=lines)

        assert exc_info.value.code == "6-69999"
        assert Journal.objects.count() == 0

    def test_inactive_account_rejected(self, chart):
        Account.objects.filter(code="1-10300").update(is_active=False)
        lines = [
            LineSpec(account_code="1-10300", debit=500),
            LineSpec(account_code="3-30100", credit=500),
        ]

        with pytest.raises(UnknownAccountError, match="inactive"):
            post_journal(date=DOC_DATE, description="Inactive", lines=lines)

    @pytest.mark.parametrize("code", ["1000", "1-1020", "A-10200", "", None])
    def test_malformed_code_rejected(self, chart, code):
        with pytest.raises(ValidationError):
            validate_lines([LineSpec(account_code=code, debit=1), LineSpec(account_code="1-10200", credit=1)])

    @pytest.mark.parametrize(
        "line",
        [
            LineSpec(account_code="6-60100", debit=100, credit=100),
            LineSpec(account_code="6-60100", debit=-100),
            LineSpec(account_code="6-60100", debit=100.5),
            LineSpec(account_code="6-60100"),
        ],
    )
    def test_malformed_line_rejected(self, chart, line):
        with pytest.raises(ValidationError):
            validate_lines([line, LineSpec(account_code="1-10200", credit=100)])

    def test_empty_lines_rejected(self, chart):
        with pytest.raises(ValidationError):
            post_journal(date=DOC_DATE, description="Empty", lines=[])

    def test_closed_period_rejected(self, chart):
        PeriodStatus.objects.create(period="2025-01", status=PeriodStatus.Status.CLOSED)

        with pytest.raises(PeriodClosedError):
            post_journal(date=DOC_DATE, description="Late", lines=capital_injection())

        # Next month is still open
        journal = post_journal(date=date(2025, 2, 1), description="On time", lines=capital_injection())
        assert journal.period == "2025-02"

    def test_idempotent_replay_returns_same_journal(self, chart):
        first = post_journal(date=DOC_DATE, description="Retry", lines=capital_injection(), idempotency_key="req-1")
        second = post_journal(date=DOC_DATE, description="Retry", lines=capital_injection(), idempotency_key="req-1")

        assert first.pk == second.pk
        assert Journal.objects.count() == 1

    def test_failure_after_numbering_rolls_back_number(self, chart, monkeypatch):
        def broken(journal, lines):
            raise RuntimeError("disk full")

        monkeypatch.setattr("accounting.posting._write_lines", broken)
        with pytest.raises(RuntimeError):
            post_journal(date=DOC_DATE, description="Broken", lines=capital_injection())
        monkeypatch.undo()

        assert Journal.objects.count() == 0
        journal = post_journal(date=DOC_DATE, description="Works", lines=capital_injection())
        assert journal.number == "JV-2025-0001"

    def test_registry_resolves_loaded_codes(self, chart):
        registry = AccountRegistry.load(["1-10200", "2-20100"])

        assert registry.resolve("1-10200").name == "Bank BSI"
        assert "6-60100" not in registry
        with pytest.raises(UnknownAccountError):
            registry.resolve("6-60100")


@pytest.mark.django_db
class TestManualJournalCommands:
    lines = [
        {"account_code": "6-60200", "debit": 8_000_000, "description": "Gaji Januari"},
        {"account_code": "1-10200", "credit": 8_000_000},
    ]

    def test_create_and_post_in_one_step(self, chart, user_actor):
        result = create_journal(user_actor, date=DOC_DATE, description="Gaji", lines=self.lines, post=True)

        assert result.success
        assert result.data.status == Journal.Status.POSTED
        assert result.data.created_by == user_actor.user

    def test_draft_may_be_unbalanced_until_posted(self, chart, user_actor):
        unbalanced = [self.lines[0], {"account_code": "1-10200", "credit": 7_000_000}]
        result = create_journal(user_actor, date=DOC_DATE, description="Draft", lines=unbalanced)

        assert result.success
        draft = result.data
        assert draft.status == Journal.Status.DRAFT
        assert draft.number is None

        posted = post_draft_journal(user_actor, draft.pk)
        assert not posted.success
        assert posted.error_kind == "imbalance"

        fixed = update_draft_journal(user_actor, draft.pk, lines=self.lines)
        assert fixed.success

        posted = post_draft_journal(user_actor, draft.pk)
        assert posted.success
        assert posted.data.number == "JV-2025-0001"

    def test_draft_with_unknown_account_rejected(self, chart, user_actor):
        result = create_journal(
            user_actor,
            date=DOC_DATE,
            description="Bad",
            lines=[{"account_code": "9-99999", "debit": 1}],
        )

        assert not result.success
        assert result.error_kind == "unknown_account"

    def test_imbalance_kind_returned(self, chart, user_actor):
        result = create_journal(
            user_actor,
            date=DOC_DATE,
            description="Off",
            lines=[self.lines[0], {"account_code": "1-10200", "credit": 1}],
            post=True,
        )

        assert not result.success
        assert result.error_kind == "imbalance"
        assert Journal.objects.count() == 0

    def test_posted_journal_cannot_be_deleted(self, chart, user_actor):
        journal = create_journal(user_actor, date=DOC_DATE, description="Gaji", lines=self.lines, post=True).data

        result = delete_draft_journal(user_actor, journal.pk)

        assert not result.success
        assert Journal.objects.filter(pk=journal.pk).exists()

    def test_draft_can_be_deleted(self, chart, user_actor):
        draft = create_journal(user_actor, date=DOC_DATE, description="Draft", lines=self.lines).data

        assert delete_draft_journal(user_actor, draft.pk).success
        assert not Journal.objects.filter(pk=draft.pk).exists()

    def test_viewer_cannot_create(self, chart, viewer_actor):
        with pytest.raises(AuthorizationError):
            create_journal(viewer_actor, date=DOC_DATE, description="No", lines=self.lines)
