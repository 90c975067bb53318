# tests/test_api_workflow.py
"""
End-to-end API tests: JWT login, manual journals, documents, compliance
and AI suggestions through the HTTP layer.
"""

from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TransactionTestCase
from rest_framework.test import APIClient

from accounting.management.commands.seed_coa import seed_chart_of_accounts
from accounting.models import Journal
from accounts.models import UserRole
from assistant.oracle import parse_answer
from billing.models import Vendor

User = get_user_model()


class CannedOracle:
    """Stands in for the AI gateway."""

    answer = (
        '{"type": "journal_entry", "vendor": "Meta Platforms", "project": null, "amount": 2000000,'
        ' "accounts": [{"code": "6-60800", "name": "Beban Pemasaran", "debit": 2000000},'
        ' {"code": "1-10200", "name": "Bank BSI", "credit": 2000000}], "confidence": 0.81}'
    )

    def classify(self, text, amount, context=""):
        return parse_answer(self.answer)


class LedgerAPITestCase(TransactionTestCase):
    def setUp(self):
        seed_chart_of_accounts()
        self.client = APIClient()

        self.admin = User.objects.create_user(email="admin@test.com", password="testpass123", name="Admin")
        UserRole.objects.create(user=self.admin, role=UserRole.Role.ADMIN)
        self.bookkeeper = User.objects.create_user(email="user@test.com", password="testpass123", name="Bookkeeper")
        UserRole.objects.create(user=self.bookkeeper, role=UserRole.Role.USER)
        self.viewer = User.objects.create_user(email="viewer@test.com", password="testpass123", name="Viewer")
        UserRole.objects.create(user=self.viewer, role=UserRole.Role.VIEWER)

        self.vendor = Vendor.objects.create(
            code="V-001",
            name="PT Kreatif Digital",
            provides_faktur_pajak=True,
            subject_to_pph23=True,
            payment_terms=30,
        )

    def as_user(self, user):
        self.client.force_authenticate(user=user)

    def post_journal(self, amount=750_000, post=True, **extra):
        return self.client.post(
            "/api/accounting/journals/",
            {
                "date": "2025-01-15",
                "description": "Beli alat tulis",
                "lines": [
                    {"account_code": "6-60110", "debit": amount},
                    {"account_code": "1-10200", "credit": amount},
                ],
                "post": post,
                **extra,
            },
            format="json",
        )


class AuthAPITest(LedgerAPITestCase):
    def test_login_and_profile(self):
        response = self.client.post(
            "/api/auth/login/",
            {"email": "user@test.com", "password": "testpass123"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("refresh", response.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        profile = self.client.get("/api/auth/me/")

        self.assertEqual(profile.status_code, 200)
        self.assertEqual(profile.data["user"]["email"], "user@test.com")
        self.assertIn("journal.post", profile.data["permissions"])
        self.assertNotIn("journal.void", profile.data["permissions"])

    def test_bad_credentials(self):
        response = self.client.post(
            "/api/auth/login/",
            {"email": "user@test.com", "password": "wrong"},
            format="json",
        )
        self.assertEqual(response.status_code, 401)

    def test_anonymous_rejected(self):
        response = self.client.get("/api/accounting/journals/")
        self.assertEqual(response.status_code, 401)


class JournalAPITest(LedgerAPITestCase):
    def test_post_journal(self):
        self.as_user(self.bookkeeper)

        response = self.post_journal()

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["number"], "JV-2025-0001")
        self.assertEqual(response.data["status"], "POSTED")
        self.assertEqual(response.data["total_debit"], 750_000)
        self.assertEqual(len(response.data["lines"]), 2)

    def test_unbalanced_journal_rejected(self):
        self.as_user(self.bookkeeper)

        response = self.client.post(
            "/api/accounting/journals/",
            {
                "date": "2025-01-15",
                "description": "Salah",
                "lines": [
                    {"account_code": "6-60110", "debit": 750_000},
                    {"account_code": "1-10200", "credit": 700_000},
                ],
                "post": True,
            },
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["kind"], "imbalance")
        self.assertEqual(Journal.objects.count(), 0)

    def test_unknown_account_rejected(self):
        self.as_user(self.bookkeeper)

        response = self.client.post(
            "/api/accounting/journals/",
            {
                "date": "2025-01-15",
                "lines": [
                    {"account_code": "6-69999", "debit": 1000},
                    {"account_code": "1-10200", "credit": 1000},
                ],
                "post": True,
            },
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["kind"], "unknown_account")

    def test_idempotent_replay(self):
        self.as_user(self.bookkeeper)

        first = self.post_journal(idempotency_key="import-row-17")
        second = self.post_journal(idempotency_key="import-row-17")

        self.assertEqual(first.data["id"], second.data["id"])
        self.assertEqual(Journal.objects.count(), 1)

    def test_void_is_admin_only(self):
        self.as_user(self.bookkeeper)
        journal_id = self.post_journal().data["id"]

        forbidden = self.client.post(f"/api/accounting/journals/{journal_id}/void/", {"reason": "Salah"}, format="json")
        self.assertEqual(forbidden.status_code, 403)

        self.as_user(self.admin)
        voided = self.client.post(f"/api/accounting/journals/{journal_id}/void/", {"reason": "Salah"}, format="json")
        self.assertEqual(voided.status_code, 201)
        self.assertEqual(voided.data["kind"], "REVERSAL")
        self.assertEqual(voided.data["reverses_journal"], journal_id)

        again = self.client.post(f"/api/accounting/journals/{journal_id}/void/", {"reason": "Salah"}, format="json")
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.data["kind"], "already_voided")

    def test_viewer_cannot_post(self):
        self.as_user(self.viewer)

        response = self.post_journal()

        self.assertEqual(response.status_code, 403)

    def test_trial_balance(self):
        self.as_user(self.bookkeeper)
        self.post_journal()

        self.as_user(self.viewer)
        response = self.client.get("/api/reports/trial-balance/", {"as_of": "2025-01-31"})

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["is_balanced"])
        self.assertEqual(response.data["total_debit"], 750_000)

    def test_trial_balance_csv_export(self):
        self.as_user(self.bookkeeper)
        self.post_journal()

        response = self.client.get("/api/reports/trial-balance/", {"as_of": "2025-01-31", "export": "csv"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response["Content-Disposition"], 'attachment; filename="neraca-saldo-2025-01-31.csv"')
        self.assertIn("TOTAL", response.content.decode("utf-8-sig"))

    def test_financial_statements(self):
        self.as_user(self.bookkeeper)
        self.post_journal()

        self.as_user(self.viewer)
        profit_loss = self.client.get("/api/reports/profit-loss/", {"period_from": "2025-01"})
        balance_sheet = self.client.get("/api/reports/balance-sheet/", {"as_of": "2025-01-31"})
        tax = self.client.get("/api/reports/tax-summary/", {"period_from": "2025-01", "export": "xlsx"})

        self.assertEqual(profit_loss.status_code, 200)
        self.assertEqual(profit_loss.data["net_profit"], -750_000)
        self.assertEqual(balance_sheet.status_code, 200)
        self.assertEqual(balance_sheet.data["current_earnings"], -750_000)
        self.assertEqual(tax.status_code, 200)
        self.assertEqual(tax["Content-Disposition"], 'attachment; filename="ringkasan-pajak-2025-01.xlsx"')

    def test_cash_flow_and_project_reports(self):
        self.as_user(self.bookkeeper)
        self.post_journal()

        self.as_user(self.viewer)
        cash_flow = self.client.get("/api/reports/cash-flow/", {"date_from": "2025-01-01", "date_to": "2025-01-31"})
        projects = self.client.get("/api/reports/project-profitability/", {"export": "csv"})
        reversed_range = self.client.get("/api/reports/cash-flow/", {"date_from": "2025-02-01", "date_to": "2025-01-01"})

        self.assertEqual(cash_flow.status_code, 200)
        self.assertEqual(cash_flow.data["net_change"], -750_000)
        self.assertEqual(cash_flow.data["sections"]["operating"]["accounts"][0]["code"], "6-60110")
        self.assertEqual(projects.status_code, 200)
        self.assertEqual(projects["Content-Disposition"], 'attachment; filename="profitabilitas-proyek.csv"')
        self.assertEqual(reversed_range.status_code, 400)
        self.assertEqual(reversed_range.data["kind"], "validation")

    def test_invalid_report_period(self):
        self.as_user(self.viewer)

        response = self.client.get("/api/reports/profit-loss/", {"period_from": "2025-03", "period_to": "2025-01"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["kind"], "validation")

    def test_unknown_export_format(self):
        self.as_user(self.bookkeeper)

        response = self.client.get("/api/reports/trial-balance/", {"export": "pdf"})

        self.assertEqual(response.status_code, 400)

    def test_tax_compute(self):
        self.as_user(self.bookkeeper)

        response = self.client.post(
            "/api/accounting/tax/compute/",
            {"subtotal": 5_000_000, "kind": "purchase", "faktur_pajak_number": "010.000-25.00000001", "vendor_id": self.vendor.pk},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {
            "subtotal": 5_000_000,
            "vat": 550_000,
            "pph23": 100_000,
            "total": 5_550_000,
            "net_settlement": 5_450_000,
        })


class DocumentAPITest(LedgerAPITestCase):
    def create_bill(self, faktur="010.000-25.00000001"):
        return self.client.post(
            "/api/billing/bills/",
            {
                "vendor_id": self.vendor.pk,
                "date": "2025-01-15",
                "faktur_pajak_number": faktur,
                "lines": [
                    {"description": "Jasa desain", "unit_price": 5_000_000, "expense_account_code": "6-60800"},
                ],
            },
            format="json",
        )

    def test_bill_payment_and_compliance(self):
        self.as_user(self.bookkeeper)

        bill = self.create_bill()
        self.assertEqual(bill.status_code, 201)
        self.assertEqual(bill.data["total"], 5_550_000)
        self.assertEqual(bill.data["journal_number"], "JV-2025-0001")

        payment = self.client.post(
            "/api/billing/payments/",
            {"bill_id": bill.data["id"], "date": "2025-01-20", "amount": 5_550_000, "pph23_withheld": 0},
            format="json",
        )
        self.assertEqual(payment.status_code, 201)

        scan = self.client.post("/api/compliance/scan/")
        self.assertEqual(scan.status_code, 200)
        self.assertEqual(scan.data["findings"], 1)
        self.assertEqual(scan.data["summary"]["critical"], 1)

        issue_id = scan.data["created"][0]["id"]
        forbidden = self.client.post(f"/api/compliance/issues/{issue_id}/resolve/", {"note": "ok"}, format="json")
        self.assertEqual(forbidden.status_code, 403)

        self.as_user(self.admin)
        resolved = self.client.post(
            f"/api/compliance/issues/{issue_id}/resolve/",
            {"note": "Vendor refunded the withholding"},
            format="json",
        )
        self.assertEqual(resolved.status_code, 200)
        self.assertEqual(resolved.data["status"], "resolved")

    def test_void_bill(self):
        self.as_user(self.bookkeeper)
        bill_id = self.create_bill().data["id"]

        self.as_user(self.admin)
        response = self.client.post(f"/api/billing/bills/{bill_id}/void/", {"reason": "Tagihan ganda"}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["bill"]["status"], "CANCELLED")
        self.assertTrue(response.data["reversal_number"].startswith("JV-"))

    def test_missing_bill(self):
        self.as_user(self.admin)

        response = self.client.post("/api/billing/bills/424242/void/", {"reason": "x"}, format="json")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["kind"], "not_found")


class AssistantAPITest(LedgerAPITestCase):
    def test_classify_then_accept(self):
        self.as_user(self.bookkeeper)

        with mock.patch("assistant.commands.ClassificationOracle", CannedOracle):
            proposed = self.client.post(
                "/api/assistant/classify/",
                {"text": "Bayar Meta Ads", "amount": 2_000_000, "date": "2025-01-15"},
                format="json",
            )
        self.assertEqual(proposed.status_code, 201)
        self.assertEqual(proposed.data["status"], "PROPOSED")
        self.assertEqual(Journal.objects.count(), 0)

        early = self.client.post(f"/api/assistant/suggestions/{proposed.data['id']}/post/", {}, format="json")
        self.assertEqual(early.status_code, 400)

        accepted = self.client.post(
            f"/api/assistant/suggestions/{proposed.data['id']}/accept/",
            {"note": "Sesuai"},
            format="json",
        )
        self.assertEqual(accepted.status_code, 200)
        self.assertEqual(accepted.data["status"], "POSTED")
        self.assertEqual(Journal.objects.get().source_doc_type, Journal.SourceDocType.SUGGESTION)

    def test_gateway_not_configured(self):
        self.as_user(self.bookkeeper)

        with self.settings(AI_GATEWAY_API_KEY=""):
            response = self.client.post(
                "/api/assistant/classify/",
                {"text": "Bayar Meta Ads", "amount": 2_000_000},
                format="json",
            )

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data["kind"], "upstream")
