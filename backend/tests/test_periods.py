# tests/test_periods.py
"""
Tests for closing and reopening accounting periods.
"""

from datetime import date

import pytest

from accounting.commands import close_period, create_journal, post_draft_journal, reopen_period
from accounting.errors import AuthorizationError, PeriodClosedError
from accounting.models import PeriodSnapshot, PeriodStatus
from accounting.reversal import reverse_journal
from audit.models import AuditLog

JAN = date(2025, 1, 15)
FEB = date(2025, 2, 10)


@pytest.fixture
def january_books(chart, post_manual):
    post_manual("1-10200", "3-30100", 50_000_000, on=date(2025, 1, 2))
    return post_manual("6-60110", "1-10200", 750_000, on=JAN)


@pytest.mark.django_db
class TestClosePeriod:
    def test_close_snapshots_balances(self, january_books, admin_actor, admin_user):
        result = close_period(admin_actor, "2025-01")

        assert result.success
        status = PeriodStatus.objects.get(period="2025-01")
        assert status.status == PeriodStatus.Status.CLOSED
        assert status.closed_by == admin_user

        balances = {s.account_id: s.net_balance for s in PeriodSnapshot.objects.filter(period="2025-01")}
        assert balances == {"1-10200": 49_250_000, "3-30100": 50_000_000, "6-60110": 750_000}
        assert AuditLog.objects.filter(action=AuditLog.Action.CLOSE_PERIOD).count() == 1

    def test_posting_into_closed_period_rejected(self, january_books, admin_actor, post_manual):
        close_period(admin_actor, "2025-01")

        with pytest.raises(PeriodClosedError):
            post_manual("6-60110", "1-10200", 100_000, on=date(2025, 1, 31))

        # Next month is still open
        assert post_manual("6-60110", "1-10200", 100_000, on=FEB).number == "JV-2025-0003"

    def test_reversal_into_closed_period_rejected(self, january_books, admin_actor, admin_user):
        close_period(admin_actor, "2025-01")

        with pytest.raises(PeriodClosedError):
            reverse_journal(january_books, reason="Salah input", user=admin_user, on_date=JAN)

        january_books.refresh_from_db()
        assert january_books.voided_at is None

    def test_draft_in_closed_period_reports_period_closed(self, january_books, admin_actor, user_actor):
        draft = create_journal(
            user_actor,
            date=JAN,
            description="Draft Januari",
            lines=[
                {"account_code": "6-60110", "debit": 100_000},
                {"account_code": "1-10200", "credit": 100_000},
            ],
        ).data
        close_period(admin_actor, "2025-01")

        result = post_draft_journal(user_actor, draft.pk)

        assert not result.success
        assert result.error_kind == "period_closed"
        draft.refresh_from_db()
        assert draft.number is None

    def test_snapshot_is_cumulative(self, january_books, admin_actor, post_manual):
        post_manual("6-60110", "1-10200", 250_000, on=FEB)

        close_period(admin_actor, "2025-02")

        snapshot = PeriodSnapshot.objects.get(period="2025-02", account_id="6-60110")
        assert snapshot.debit_balance == 1_000_000
        assert snapshot.net_balance == 1_000_000

    def test_close_twice_rejected(self, january_books, admin_actor):
        close_period(admin_actor, "2025-01")

        result = close_period(admin_actor, "2025-01")

        assert not result.success
        assert "already closed" in result.error

    @pytest.mark.parametrize("period", ["2025-1", "2025-13", "Jan 2025", ""])
    def test_invalid_period(self, chart, admin_actor, period):
        assert close_period(admin_actor, period).error_kind == "validation"

    def test_regular_user_cannot_close(self, january_books, user_actor):
        with pytest.raises(AuthorizationError):
            close_period(user_actor, "2025-01")


@pytest.mark.django_db
class TestReopenPeriod:
    def test_reopen_allows_posting_again(self, january_books, admin_actor, post_manual):
        close_period(admin_actor, "2025-01")

        result = reopen_period(admin_actor, "2025-01", "Late vendor bill")

        assert result.success
        assert result.data.status == PeriodStatus.Status.OPEN
        assert not PeriodSnapshot.objects.filter(period="2025-01").exists()
        assert post_manual("6-60110", "1-10200", 100_000, on=date(2025, 1, 31)).is_voided is False

        entry = AuditLog.objects.get(action=AuditLog.Action.REOPEN_PERIOD)
        assert entry.reason == "Late vendor bill"

    def test_reason_required(self, january_books, admin_actor):
        close_period(admin_actor, "2025-01")

        assert reopen_period(admin_actor, "2025-01", " ").error_kind == "validation"
        assert PeriodStatus.objects.get(period="2025-01").status == PeriodStatus.Status.CLOSED

    def test_open_period_cannot_be_reopened(self, chart, admin_actor):
        assert not reopen_period(admin_actor, "2025-03", "No reason").success

    def test_close_again_after_reopen(self, january_books, admin_actor):
        close_period(admin_actor, "2025-01")
        reopen_period(admin_actor, "2025-01", "Adjustment")

        assert close_period(admin_actor, "2025-01").success
        assert PeriodSnapshot.objects.filter(period="2025-01").count() == 3
