# tests/test_assistant.py
"""
Tests for AI classification and the suggestion approval flow.

The gateway is never called; FakeOracle and a stub OpenAI client stand in.
"""

import json
from datetime import date
from types import SimpleNamespace

import httpx
import openai
import pytest

from accounting.errors import AuthorizationError, UpstreamError
from accounting.models import Journal
from assistant.commands import (
    accept_suggestion,
    approve_suggestion,
    classify_transaction,
    edit_suggestion,
    post_suggestion,
    reject_suggestion,
)
from assistant.models import TxInput, TxSuggestion
from assistant.oracle import ClassificationOracle, parse_answer
from audit.models import AuditLog
from billing.commands import create_bill, create_invoice
from billing.models import CashReceipt, SalesInvoice, VendorBill, VendorPayment

DOC_DATE = date(2025, 1, 15)
GATEWAY = "https://ai-gateway.test/v1/chat/completions"


class FailingOracle:
    def classify(self, text, amount, context=""):
        raise UpstreamError("Rate limit exceeded. Please try again in a moment.", retryable=True)


@pytest.fixture
def proposed(chart, project, user_actor, fake_oracle):
    return classify_transaction(user_actor, "Bayar Meta Ads project BSI", 5_000_000, DOC_DATE, oracle=fake_oracle).data


# =============================================================================
# Classification
# =============================================================================

@pytest.mark.django_db
class TestClassify:
    def test_creates_proposed_suggestion(self, proposed, fake_oracle):
        assert proposed.status == TxSuggestion.Status.PROPOSED
        assert proposed.suggested_type == "journal_entry"
        assert proposed.suggested_project == "BSI-001"
        assert proposed.suggested_client == ""
        assert proposed.confidence == pytest.approx(0.92)
        assert proposed.suggested_accounts[0]["code"] == "5-50200"
        assert proposed.tx_input.status == TxInput.Status.CLASSIFIED
        assert fake_oracle.calls == [("Bayar Meta Ads project BSI", 5_000_000, "")]
        # Nothing reaches the ledger until review
        assert Journal.objects.count() == 0

    def test_upstream_failure_stores_nothing(self, chart, user_actor):
        result = classify_transaction(user_actor, "Bayar Meta Ads", 5_000_000, oracle=FailingOracle())

        assert not result.success
        assert result.error_kind == "upstream"
        assert TxInput.objects.count() == 0
        assert TxSuggestion.objects.count() == 0

    @pytest.mark.parametrize("text,amount", [("", 1000), ("Bayar listrik", 0), ("Bayar listrik", 1.5)])
    def test_invalid_input(self, chart, user_actor, fake_oracle, text, amount):
        result = classify_transaction(user_actor, text, amount, oracle=fake_oracle)

        assert result.error_kind == "validation"
        assert fake_oracle.calls == []

    def test_viewer_cannot_classify(self, viewer_actor, fake_oracle):
        with pytest.raises(AuthorizationError):
            classify_transaction(viewer_actor, "Bayar listrik", 1000, oracle=fake_oracle)


# =============================================================================
# Review
# =============================================================================

@pytest.mark.django_db
class TestReview:
    def test_post_requires_approval(self, proposed, user_actor):
        result = post_suggestion(user_actor, proposed.pk)

        assert not result.success
        assert "APPROVED" in result.error
        assert Journal.objects.count() == 0

    def test_approve_then_post(self, proposed, user_actor, regular_user):
        approved = approve_suggestion(user_actor, proposed.pk, "Looks right")
        assert approved.data.status == TxSuggestion.Status.APPROVED
        assert approved.data.reviewed_by == regular_user

        result = post_suggestion(user_actor, proposed.pk)

        assert result.success
        suggestion = result.data
        assert suggestion.status == TxSuggestion.Status.POSTED
        journal = suggestion.journal
        assert journal.status == Journal.Status.POSTED
        assert journal.source_doc_type == Journal.SourceDocType.SUGGESTION
        assert journal.source_doc_id == suggestion.pk
        assert journal.date == DOC_DATE
        assert list(journal.lines.values_list("account_id", "debit", "credit", "project_code")) == [
            ("5-50200", 5_000_000, 0, "BSI-001"),
            ("1-10200", 0, 5_000_000, "BSI-001"),
        ]
        suggestion.tx_input.refresh_from_db()
        assert suggestion.tx_input.status == TxInput.Status.APPROVED
        assert AuditLog.objects.filter(action=AuditLog.Action.APPROVE_SUGGESTION).count() == 1

    def test_posted_suggestion_cannot_post_again(self, proposed, user_actor):
        accept_suggestion(user_actor, proposed.pk)

        assert not post_suggestion(user_actor, proposed.pk).success
        assert Journal.objects.count() == 1

    def test_unbalanced_suggestion_fails_approval(self, chart, project, user_actor, oracle_answer, oracle_factory):
        oracle = oracle_factory(oracle_answer(balanced=False))
        suggestion = classify_transaction(user_actor, "Bayar Meta Ads", 5_000_000, DOC_DATE, oracle=oracle).data

        result = approve_suggestion(user_actor, suggestion.pk)

        assert result.error_kind == "imbalance"
        suggestion.refresh_from_db()
        assert suggestion.status == TxSuggestion.Status.PROPOSED

    def test_unknown_account_fails_approval(self, chart, user_actor, oracle_answer, oracle_factory):
        answer = oracle_answer()
        answer["accounts"][0]["code"] = "5-59999"
        suggestion = classify_transaction(user_actor, "Bayar Meta Ads", 5_000_000, oracle=oracle_factory(answer)).data

        assert approve_suggestion(user_actor, suggestion.pk).error_kind == "unknown_account"

    def test_accept_passes_through_approval(self, proposed, user_actor):
        result = accept_suggestion(user_actor, proposed.pk, "OK")

        assert result.data.status == TxSuggestion.Status.POSTED
        assert result.data.reviewed_at is not None
        assert result.data.journal.number == "JV-2025-0001"

    def test_reject(self, proposed, user_actor):
        result = reject_suggestion(user_actor, proposed.pk, "Personal expense")

        assert result.data.status == TxSuggestion.Status.REJECTED
        assert result.data.tx_input.status == TxInput.Status.REJECTED
        assert not approve_suggestion(user_actor, proposed.pk).success
        assert AuditLog.objects.filter(action=AuditLog.Action.REJECT_SUGGESTION).count() == 1

    def test_posted_suggestion_cannot_be_rejected(self, proposed, user_actor):
        accept_suggestion(user_actor, proposed.pk)

        assert not reject_suggestion(user_actor, proposed.pk).success

    def test_edit_fixes_unbalanced_suggestion(self, chart, project, user_actor, oracle_answer, oracle_factory):
        oracle = oracle_factory(oracle_answer(balanced=False))
        suggestion = classify_transaction(user_actor, "Bayar Meta Ads", 5_000_000, DOC_DATE, oracle=oracle).data

        edited = edit_suggestion(
            user_actor,
            suggestion.pk,
            suggested_accounts=[
                {"code": "5-50200", "name": "Beban Iklan Proyek", "debit": 5_000_000},
                {"code": "1-10200", "name": "Bank BSI", "credit": 5_000_000},
            ],
        )

        assert edited.success
        assert edited.data.edited
        assert edited.data.suggested_accounts[1] == {"code": "1-10200", "name": "Bank BSI", "debit": 0, "credit": 5_000_000}
        assert approve_suggestion(user_actor, suggestion.pk).success

    def test_edit_rejects_bad_accounts(self, proposed, user_actor):
        result = edit_suggestion(user_actor, proposed.pk, suggested_accounts=[{"code": "5200", "debit": 1}])

        assert result.error_kind == "validation"

    def test_edit_rejects_unknown_fields(self, proposed, user_actor):
        assert not edit_suggestion(user_actor, proposed.pk, status="APPROVED").success

    def test_viewer_cannot_approve(self, proposed, viewer_actor):
        with pytest.raises(AuthorizationError):
            approve_suggestion(viewer_actor, proposed.pk)

    def test_missing_suggestion(self, chart, user_actor):
        assert approve_suggestion(user_actor, 424242).error_kind == "not_found"


# =============================================================================
# Typed postings
# =============================================================================

def typed_answer(kind, accounts, *, vendor=None, client=None, project=None, vat=0):
    return {
        "type": kind,
        "vendor": vendor,
        "client": client,
        "project": project,
        "amount": sum(a.get("debit", 0) for a in accounts),
        "vatAmount": vat,
        "accounts": accounts,
        "confidence": 0.88,
        "reasoning": "",
        "requiresInput": [],
    }


@pytest.fixture
def suggest(chart, user_actor, oracle_factory):
    def _suggest(answer, text="Transaksi dari asisten"):
        oracle = oracle_factory(answer)
        return classify_transaction(user_actor, text, answer["amount"] or 1, DOC_DATE, oracle=oracle).data

    return _suggest


@pytest.mark.django_db
class TestTypedPosting:
    def test_bill_suggestion_becomes_vendor_bill(self, suggest, vendor, project, user_actor):
        suggestion = suggest(typed_answer(
            "vendor_bill",
            [
                {"code": "5-50200", "name": "Desain kampanye", "debit": 10_000_000},
                {"code": "1-14000", "name": "PPN Masukan", "debit": 1_100_000},
                {"code": "2-20100", "name": "Utang Usaha", "credit": 11_100_000},
            ],
            vendor="pt kreatif digital",
            project="BSI-001",
            vat=1_100_000,
        ))

        result = accept_suggestion(
            user_actor, suggestion.pk, reference="KD/2025/017", faktur_pajak_number="010.000-25.00000001",
        )

        assert result.success, result.error
        bill = VendorBill.objects.get()
        assert bill.vendor == vendor
        assert bill.project == project
        assert bill.category == VendorBill.Category.COGS
        assert bill.vendor_invoice_number == "KD/2025/017"
        assert (bill.subtotal, bill.vat_amount, bill.total) == (10_000_000, 1_100_000, 11_100_000)
        assert list(bill.lines.values_list("expense_account_id", "amount", "project_code")) == [
            ("5-50200", 10_000_000, "BSI-001"),
        ]
        suggestion = result.data
        assert suggestion.status == TxSuggestion.Status.POSTED
        assert suggestion.document_number == bill.number == "BILL-2025-0001"
        assert suggestion.journal == bill.journal
        assert bill.journal.source_doc_type == Journal.SourceDocType.BILL

    def test_overhead_bill_is_opex(self, suggest, supplier, user_actor):
        suggestion = suggest(typed_answer(
            "vendor_bill",
            [
                {"code": "6-60110", "name": "ATK", "debit": 750_000},
                {"code": "2-20100", "name": "Utang Usaha", "credit": 750_000},
            ],
            vendor="V-002",
        ))

        assert accept_suggestion(user_actor, suggestion.pk).success
        bill = VendorBill.objects.get()
        assert bill.category == VendorBill.Category.OPEX
        assert bill.vat_amount == 0

    def test_unknown_vendor_posts_nothing(self, suggest, user_actor):
        suggestion = suggest(typed_answer(
            "vendor_bill",
            [
                {"code": "6-60110", "name": "ATK", "debit": 750_000},
                {"code": "2-20100", "name": "Utang Usaha", "credit": 750_000},
            ],
            vendor="Toko Baru",
        ))

        result = accept_suggestion(user_actor, suggestion.pk)

        assert result.error_kind == "validation"
        assert "Create the vendor first" in result.error
        suggestion.refresh_from_db()
        assert suggestion.status == TxSuggestion.Status.PROPOSED
        assert VendorBill.objects.count() == 0
        assert Journal.objects.count() == 0

    def test_document_refusal_keeps_suggestion_approved(self, suggest, vendor, user_actor):
        # COGS without a project is refused by the bill command itself
        suggestion = suggest(typed_answer(
            "vendor_bill",
            [
                {"code": "5-50200", "name": "Subkon", "debit": 2_000_000},
                {"code": "2-20100", "name": "Utang Usaha", "credit": 2_000_000},
            ],
            vendor="PT Kreatif Digital",
        ))
        approve_suggestion(user_actor, suggestion.pk)

        result = post_suggestion(user_actor, suggestion.pk)

        assert "project" in result.error
        suggestion.refresh_from_db()
        assert suggestion.status == TxSuggestion.Status.APPROVED
        assert suggestion.journal is None
        assert Journal.objects.count() == 0

    def test_invoice_suggestion_becomes_sales_invoice(self, suggest, client_party, user_actor):
        suggestion = suggest(typed_answer(
            "sales_invoice",
            [
                {"code": "1-11000", "name": "Piutang Usaha", "debit": 11_100_000},
                {"code": "4-40100", "name": "Jasa konsultasi", "credit": 10_000_000},
                {"code": "2-22000", "name": "PPN Keluaran", "credit": 1_100_000},
            ],
            client="PT Bank Syariah Indonesia",
            vat=1_100_000,
        ))

        result = accept_suggestion(user_actor, suggestion.pk)

        assert result.success, result.error
        invoice = SalesInvoice.objects.get()
        assert invoice.client == client_party
        assert invoice.status == SalesInvoice.Status.SENT
        assert (invoice.subtotal, invoice.vat_amount, invoice.total) == (10_000_000, 1_100_000, 11_100_000)
        assert result.data.document_number == invoice.number == "INV-2025-0001"
        assert result.data.journal.source_doc_type == Journal.SourceDocType.INVOICE

    def test_receipt_suggestion_settles_the_open_invoice(self, suggest, client_party, user_actor):
        invoice = create_invoice(
            user_actor,
            client_party.pk,
            DOC_DATE,
            [{"description": "Jasa", "quantity": 1, "unit_price": 10_000_000, "revenue_account_code": "4-40100"}],
        ).data
        suggestion = suggest(typed_answer(
            "cash_receipt",
            [
                {"code": "1-10200", "name": "Bank BSI", "debit": 11_100_000},
                {"code": "1-11000", "name": "Piutang Usaha", "credit": 11_100_000},
            ],
            client="C-001",
        ))

        result = accept_suggestion(user_actor, suggestion.pk)

        assert result.success, result.error
        receipt = CashReceipt.objects.get()
        assert receipt.invoice == invoice
        assert receipt.amount == 11_100_000
        assert receipt.bank_account_id == "1-10200"
        invoice.refresh_from_db()
        assert invoice.status == SalesInvoice.Status.PAID
        assert result.data.document_number == receipt.number

    def test_payment_suggestion_needs_reference_when_several_bills_are_open(self, suggest, vendor, user_actor):
        line = {"description": "Desain", "quantity": 1, "unit_price": 1_000_000, "expense_account_code": "6-60800"}
        first = create_bill(user_actor, vendor.pk, DOC_DATE, [line]).data
        create_bill(user_actor, vendor.pk, DOC_DATE, [line])
        answer = typed_answer(
            "vendor_payment",
            [
                {"code": "2-20100", "name": "Utang Usaha", "debit": 1_000_000},
                {"code": "1-10200", "name": "Bank BSI", "credit": 980_000},
                {"code": "2-23100", "name": "Utang PPh 23", "credit": 20_000},
            ],
            vendor="PT Kreatif Digital",
        )

        ambiguous = accept_suggestion(user_actor, suggest(answer).pk)
        assert "Name the bill" in ambiguous.error
        assert VendorPayment.objects.count() == 0

        result = accept_suggestion(user_actor, suggest(answer).pk, reference=first.number)

        assert result.success, result.error
        payment = VendorPayment.objects.get()
        assert payment.bill == first
        assert (payment.amount, payment.pph23_withheld) == (980_000, 20_000)
        first.refresh_from_db()
        assert first.status == VendorBill.Status.PAID

    def test_journal_entry_posts_accounts_as_suggested(self, proposed, user_actor):
        result = accept_suggestion(user_actor, proposed.pk, reference="ignored")

        assert result.data.document_number == ""
        assert result.data.journal.source_doc_type == Journal.SourceDocType.SUGGESTION
        assert VendorBill.objects.count() == 0


# =============================================================================
# Oracle parsing and gateway errors
# =============================================================================

class TestParseAnswer:
    def test_code_fences_are_stripped(self):
        content = "```json\n" + json.dumps({
            "type": "vendor_bill",
            "vendor": "PLN",
            "amount": 1_200_000,
            "accounts": [{"code": "6-60200", "debit": 1_200_000}, {"code": "2-20100", "credit": 1_200_000}],
        }) + "\n```"

        answer = parse_answer(content)

        assert answer["type"] == "vendor_bill"
        assert answer["vendor"] == "PLN"
        assert answer["project"] == ""
        assert answer["vat_amount"] == 0
        assert answer["requires_input"] == []
        assert answer["accounts"][0] == {"code": "6-60200", "name": "", "debit": 1_200_000, "credit": 0}

    def test_invalid_json(self):
        with pytest.raises(UpstreamError, match="invalid JSON"):
            parse_answer("Sure! This looks like an ads expense.")

    @pytest.mark.parametrize("payload", [
        {"type": "journal_entry", "amount": 100},
        {"type": "journal_entry", "amount": 100, "accounts": []},
        {"type": "transfer", "amount": 100, "accounts": [{"code": "1-10200", "debit": 100}]},
        {"type": "journal_entry", "amount": -5, "accounts": [{"code": "1-10200", "debit": 100}]},
    ])
    def test_incomplete_answer(self, payload):
        with pytest.raises(UpstreamError):
            parse_answer(json.dumps(payload))


def stub_client(*, content=None, error=None):
    def create(**kwargs):
        if error is not None:
            raise error
        message = SimpleNamespace(content=content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def status_error(cls, status):
    request = httpx.Request("POST", GATEWAY)
    return cls("gateway error", response=httpx.Response(status, request=request), body=None)


class TestClassificationOracle:
    def test_returns_parsed_answer(self):
        oracle = ClassificationOracle(stub_client(content=json.dumps({
            "type": "journal_entry",
            "amount": 500_000,
            "accounts": [{"code": "6-60200", "debit": 500_000}, {"code": "1-10100", "credit": 500_000}],
            "confidence": 0.7,
        })))

        answer = oracle.classify("Bayar listrik kantor", 500_000)

        assert answer["confidence"] == pytest.approx(0.7)
        assert [a["code"] for a in answer["accounts"]] == ["6-60200", "1-10100"]

    def test_rate_limit(self):
        oracle = ClassificationOracle(stub_client(error=status_error(openai.RateLimitError, 429)))

        with pytest.raises(UpstreamError) as exc_info:
            oracle.classify("Bayar listrik", 1000)
        assert exc_info.value.details["retryable"] is True

    def test_usage_limit(self):
        oracle = ClassificationOracle(stub_client(error=status_error(openai.APIStatusError, 402)))

        with pytest.raises(UpstreamError, match="credits"):
            oracle.classify("Bayar listrik", 1000)

    def test_gateway_error(self):
        oracle = ClassificationOracle(stub_client(error=status_error(openai.InternalServerError, 500)))

        with pytest.raises(UpstreamError, match="HTTP 500"):
            oracle.classify("Bayar listrik", 1000)

    def test_unreachable(self):
        error = openai.APIConnectionError(request=httpx.Request("POST", GATEWAY))
        oracle = ClassificationOracle(stub_client(error=error))

        with pytest.raises(UpstreamError, match="unreachable"):
            oracle.classify("Bayar listrik", 1000)

    def test_not_configured(self, settings):
        settings.AI_GATEWAY_API_KEY = ""

        with pytest.raises(UpstreamError, match="not configured"):
            ClassificationOracle().classify("Bayar listrik", 1000)
