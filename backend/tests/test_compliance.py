# tests/test_compliance.py
"""
Tests for the compliance scanner and issue workflow.
"""

from datetime import date

import pytest

from accounting.commands import close_period
from accounting.errors import AuthorizationError
from audit.models import AuditLog
from billing.commands import add_attachment, create_bill, create_payment, void_bill
from billing.models import VendorBill
from compliance.commands import resolve_issue, run_compliance_scan
from compliance.models import ComplianceIssue
from compliance.scanner import scan
from compliance.tasks import scan_compliance

DOC_DATE = date(2025, 1, 15)


def bill_lines(amount, account="6-60800", **extra):
    return [{"description": "Jasa", "quantity": 1, "unit_price": amount, "expense_account_code": account, **extra}]


@pytest.fixture
def risky_books(chart, vendor, user_actor):
    """One bill claiming VAT with its Faktur Pajak removed, one paid with nothing withheld."""
    bill_a = create_bill(user_actor, vendor.pk, DOC_DATE, bill_lines(3_000_000), faktur_pajak_number="010.000-25.00000001").data
    VendorBill.objects.filter(pk=bill_a.pk).update(faktur_pajak_number="")

    bill_b = create_bill(user_actor, vendor.pk, DOC_DATE, bill_lines(5_000_000), faktur_pajak_number="010.000-25.00000002").data
    payment = create_payment(user_actor, bill_b.pk, date(2025, 1, 20), 5_550_000, pph23_withheld=0).data
    return {"bill_a": bill_a, "bill_b": bill_b, "payment": payment}


@pytest.mark.django_db
class TestScanner:
    def test_vat_and_withholding_findings(self, risky_books):
        findings = scan()

        assert sorted((f.rule, f.severity) for f in findings) == [
            ("missing_withholding", "critical"),
            ("vat_without_faktur", "high"),
        ]
        by_rule = {f.rule: f for f in findings}
        assert by_rule["vat_without_faktur"].related_entity_id == risky_books["bill_a"].pk
        assert by_rule["missing_withholding"].related_entity_type == "payment"
        assert by_rule["missing_withholding"].related_entity_id == risky_books["payment"].pk
        assert "100,000" in by_rule["missing_withholding"].message

    def test_scan_date_excludes_later_documents(self, risky_books):
        assert scan(date(2025, 1, 1)) == []

    def test_empty_ledger_scans_cleanly(self, chart):
        assert scan() == []

    def test_cost_rule_ignores_non_cost_accounts(self, chart, post_manual):
        post_manual("6-60110", "1-10200", 750_000)

        assert scan() == []

    def test_clean_books_have_no_findings(self, chart, vendor, user_actor):
        bill = create_bill(user_actor, vendor.pk, DOC_DATE, bill_lines(5_000_000), faktur_pajak_number="010.000-25.00000003").data
        create_payment(user_actor, bill.pk, DOC_DATE, 5_450_000)

        assert scan() == []

    def test_voided_documents_are_skipped(self, risky_books, admin_actor):
        assert void_bill(admin_actor, risky_books["bill_a"].pk, "Salah input").success

        assert [f.rule for f in scan()] == ["missing_withholding"]

    def test_cost_line_without_project_on_manual_journal(self, chart, post_manual):
        journal = post_manual("5-50200", "1-10200", 2_000_000)

        findings = scan()

        assert len(findings) == 1
        assert findings[0].rule == "cost_without_project"
        assert findings[0].issue_type == "accounting_error"
        assert (findings[0].related_entity_type, findings[0].related_entity_id) == ("journal", journal.pk)

    def test_cost_line_with_project_is_fine(self, chart, project, post_manual):
        post_manual("5-50200", "1-10200", 2_000_000, project_code=project.code)

        assert scan() == []

    def test_cost_line_on_bill_points_at_bill(self, chart, supplier, user_actor):
        bill = create_bill(user_actor, supplier.pk, DOC_DATE, bill_lines(1_000_000, account="5-50100")).data

        findings = scan()

        assert [(f.rule, f.related_entity_type, f.related_entity_id) for f in findings] == [
            ("cost_without_project", "bill", bill.pk),
        ]

    def test_large_payment_needs_attachment(self, chart, supplier, user_actor):
        bill = create_bill(user_actor, supplier.pk, DOC_DATE, bill_lines(12_000_000)).data
        payment = create_payment(user_actor, bill.pk, DOC_DATE, 12_000_000).data

        findings = scan()
        assert [(f.rule, f.severity) for f in findings] == [("large_payment_without_attachment", "medium")]

        add_attachment(user_actor, "payment", payment.pk, "bukti.pdf", "attachments/bukti.pdf")
        assert scan() == []

    def test_payment_at_threshold_is_not_large(self, chart, supplier, user_actor):
        bill = create_bill(user_actor, supplier.pk, DOC_DATE, bill_lines(10_000_000)).data
        create_payment(user_actor, bill.pk, DOC_DATE, 10_000_000)

        assert scan() == []

    def test_duplicate_bills(self, chart, supplier, user_actor):
        first = create_bill(user_actor, supplier.pk, DOC_DATE, bill_lines(750_000)).data
        second = create_bill(user_actor, supplier.pk, DOC_DATE, bill_lines(750_000)).data

        findings = scan()

        assert len(findings) == 1
        assert findings[0].rule == "duplicate_bill"
        assert findings[0].related_entity_id == second.pk
        assert first.number in findings[0].message


@pytest.mark.django_db
class TestRunComplianceScan:
    def test_persists_open_issues(self, risky_books, user_actor):
        result = run_compliance_scan(user_actor)

        assert result.success
        assert result.data["findings"] == 2
        assert len(result.data["created"]) == 2
        assert result.data["summary"] == {"low": 0, "medium": 0, "high": 1, "critical": 1}
        assert ComplianceIssue.objects.filter(status=ComplianceIssue.Status.OPEN).count() == 2

    def test_rescan_does_not_duplicate(self, risky_books, user_actor):
        run_compliance_scan(user_actor)
        again = run_compliance_scan(user_actor)

        assert again.data["findings"] == 2
        assert again.data["created"] == []
        assert ComplianceIssue.objects.count() == 2

    def test_resolved_issue_reopens_when_still_present(self, risky_books, user_actor, admin_actor):
        run_compliance_scan(user_actor)
        issue = ComplianceIssue.objects.get(rule="vat_without_faktur")
        resolve_issue(admin_actor, issue.pk, "Faktur requested from vendor")

        again = run_compliance_scan(user_actor)

        assert len(again.data["created"]) == 1
        assert ComplianceIssue.objects.filter(rule="vat_without_faktur").count() == 2

    def test_viewer_cannot_scan(self, viewer_actor):
        with pytest.raises(AuthorizationError):
            run_compliance_scan(viewer_actor)

    def test_scan_task(self, risky_books):
        result = scan_compliance()

        assert result["findings"] == 2
        assert result["created"] == 2
        assert result["summary"]["critical"] == 1


@pytest.mark.django_db
class TestResolveIssue:
    @pytest.fixture
    def issue(self, risky_books, user_actor):
        run_compliance_scan(user_actor)
        return ComplianceIssue.objects.get(rule="missing_withholding")

    def test_resolve_records_audit(self, issue, admin_actor, admin_user):
        result = resolve_issue(admin_actor, issue.pk, "Payment voided and re-entered")

        assert result.success
        issue.refresh_from_db()
        assert issue.status == ComplianceIssue.Status.RESOLVED
        assert issue.resolved_by == admin_user
        assert issue.resolution_note == "Payment voided and re-entered"

        entry = AuditLog.objects.get(action=AuditLog.Action.RESOLVE_ISSUE)
        assert entry.record_id == str(issue.pk)
        assert entry.old_values["status"] == "open"
        assert entry.new_values["status"] == "resolved"

    def test_note_required(self, issue, admin_actor):
        result = resolve_issue(admin_actor, issue.pk, "   ")

        assert not result.success
        assert result.error_kind == "validation"

    def test_resolve_twice_rejected(self, issue, admin_actor):
        resolve_issue(admin_actor, issue.pk, "Done")

        assert not resolve_issue(admin_actor, issue.pk, "Done again").success

    def test_missing_issue(self, chart, admin_actor):
        assert resolve_issue(admin_actor, 99999, "x").error_kind == "not_found"

    def test_regular_user_cannot_resolve(self, issue, user_actor):
        with pytest.raises(AuthorizationError):
            resolve_issue(user_actor, issue.pk, "Done")

    def test_open_critical_issue_blocks_period_close(self, issue, admin_actor):
        blocked = close_period(admin_actor, "2025-01")
        assert not blocked.success
        assert "critical" in blocked.error

        resolve_issue(admin_actor, issue.pk, "Withholding paid by vendor separately")

        assert close_period(admin_actor, "2025-01").success
