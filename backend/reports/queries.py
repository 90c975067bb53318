# reports/queries.py
"""
Report queries.

Balances are computed from POSTED journal lines on every call. Reversal
journals are posted journals too, so a voided document nets to zero.

Report totals may differ by less than REPORT_BALANCE_TOLERANCE and still
show as balanced. That slack is for display only; posting requires exact
equality.
"""

import calendar
import re
from datetime import date

from django.conf import settings
from django.db.models import Sum
from django.utils import timezone

from accounting.chart import (
    CASH_PREFIX,
    INVESTING_PREFIXES,
    PPH23_PAYABLE,
    PPH23_PREPAID,
    PPN_KELUARAN,
    PPN_MASUKAN,
)
from accounting.errors import NotFoundError, ValidationError
from accounting.models import PERIOD_PATTERN, Account, Journal, JournalLine
from billing.models import CashReceipt, Project, SalesInvoice, VendorBill, VendorPayment

AGING_BUCKETS = ["current", "1-30", "31-60", "61-90", "90+"]


def signed_balance(account: Account, debit: int, credit: int) -> int:
    """Balance in the account's normal direction (positive = normal side)."""
    if account.normal_balance == Account.NormalBalance.DEBIT:
        return debit - credit
    return credit - debit


def _posted_lines(as_of: date = None):
    lines = JournalLine.objects.filter(journal__status=Journal.Status.POSTED)
    if as_of is not None:
        lines = lines.filter(journal__date__lte=as_of)
    return lines


def trial_balance(as_of: date = None) -> dict:
    """
    Trial balance from posted journals up to ``as_of`` (inclusive).

    Returns:
        {
            "as_of_date": "2026-01-31",
            "accounts": [
                {"code": "1-10200", "name": "Bank BSI", "account_type": "ASSET",
                 "normal_balance": "DEBIT", "debit": 1000, "credit": 0, "balance": 1000},
                ...
            ],
            "total_debit": 1000,
            "total_credit": 1000,
            "difference": 0,
            "is_balanced": True,
        }
    """
    totals = {
        row["account_id"]: row
        for row in _posted_lines(as_of)
        .order_by()
        .values("account_id")
        .annotate(debit=Sum("debit"), credit=Sum("credit"))
    }
    accounts = Account.objects.filter(code__in=totals.keys()).order_by("code")

    rows = []
    total_debit = 0
    total_credit = 0
    for account in accounts:
        debit = totals[account.code]["debit"] or 0
        credit = totals[account.code]["credit"] or 0
        balance = signed_balance(account, debit, credit)

        # Show the net on the side it falls
        net = debit - credit
        column_debit = net if net > 0 else 0
        column_credit = -net if net < 0 else 0

        rows.append({
            "code": account.code,
            "name": account.name,
            "account_type": account.account_type,
            "normal_balance": account.normal_balance,
            "debit": column_debit,
            "credit": column_credit,
            "balance": balance,
        })
        total_debit += column_debit
        total_credit += column_credit

    difference = total_debit - total_credit
    return {
        "as_of_date": (as_of or timezone.localdate()).isoformat(),
        "accounts": rows,
        "total_debit": total_debit,
        "total_credit": total_credit,
        "difference": difference,
        "is_balanced": abs(difference) < settings.REPORT_BALANCE_TOLERANCE,
    }


def account_ledger(code: str, date_from: date = None, date_to: date = None) -> dict:
    """
    Posted lines of one account with a running balance.

    The running balance starts from everything posted before ``date_from``.
    """
    account = Account.objects.filter(code=code).first()
    if account is None:
        raise NotFoundError(f"Account {code} not found.")

    lines = _posted_lines(date_to).filter(account_id=code)

    opening = 0
    if date_from is not None:
        before = lines.filter(journal__date__lt=date_from).aggregate(debit=Sum("debit"), credit=Sum("credit"))
        opening = signed_balance(account, before["debit"] or 0, before["credit"] or 0)
        lines = lines.filter(journal__date__gte=date_from)

    running = opening
    entries = []
    for line in lines.select_related("journal").order_by("journal__date", "journal__number", "line_no"):
        running += signed_balance(account, line.debit, line.credit)
        entries.append({
            "date": line.journal.date.isoformat(),
            "journal_id": line.journal_id,
            "journal_number": line.journal.number,
            "description": line.description or line.journal.description,
            "project_code": line.project_code,
            "debit": line.debit,
            "credit": line.credit,
            "balance": running,
        })

    return {
        "code": account.code,
        "name": account.name,
        "normal_balance": account.normal_balance,
        "opening_balance": opening,
        "closing_balance": running,
        "lines": entries,
    }


def aging_bucket(due_date: date, as_of: date) -> str:
    days = (as_of - due_date).days
    if days <= 0:
        return "current"
    if days <= 30:
        return "1-30"
    if days <= 60:
        return "31-60"
    if days <= 90:
        return "61-90"
    return "90+"


def _aging(documents, party_attr: str, as_of: date) -> dict:
    buckets = {bucket: 0 for bucket in AGING_BUCKETS}
    rows = []
    for document in documents:
        outstanding = document.balance_due
        if outstanding <= 0:
            continue
        bucket = aging_bucket(document.due_date, as_of)
        buckets[bucket] += outstanding
        rows.append({
            "id": document.pk,
            "number": document.number,
            "party": getattr(document, party_attr).name,
            "date": document.date.isoformat(),
            "due_date": document.due_date.isoformat(),
            "days_past_due": max((as_of - document.due_date).days, 0),
            "total": document.total,
            "outstanding": outstanding,
            "bucket": bucket,
        })
    return {
        "as_of_date": as_of.isoformat(),
        "rows": rows,
        "buckets": buckets,
        "total_outstanding": sum(buckets.values()),
    }


def ap_aging(as_of: date = None) -> dict:
    """Outstanding vendor bills by days past due."""
    as_of = as_of or timezone.localdate()
    bills = (
        VendorBill.objects.filter(
            status__in=[VendorBill.Status.APPROVED, VendorBill.Status.PARTIAL],
            date__lte=as_of,
        )
        .select_related("vendor")
        .order_by("due_date", "id")
    )
    return _aging(bills, "vendor", as_of)


def ar_aging(as_of: date = None) -> dict:
    """Outstanding sales invoices by days past due."""
    as_of = as_of or timezone.localdate()
    invoices = (
        SalesInvoice.objects.filter(
            status__in=SalesInvoice.OPEN_STATUSES,
            date__lte=as_of,
        )
        .select_related("client")
        .order_by("due_date", "id")
    )
    return _aging(invoices, "client", as_of)


# =============================================================================
# Financial statements
# =============================================================================

T = Account.AccountType

# (key, label, account types); expenses reduce profit
PROFIT_LOSS_SECTIONS = [
    ("revenue", "Pendapatan", [T.REVENUE]),
    ("cogs", "Beban Pokok Pendapatan", [T.COGS]),
    ("opex", "Beban Operasional", [T.OPEX]),
    ("other_income", "Pendapatan Lain-lain", [T.OTHER_INCOME]),
    ("other_expense", "Beban Lain-lain", [T.OTHER_EXPENSE]),
    ("tax", "Beban Pajak Penghasilan", [T.TAX_EXPENSE]),
]
INCOME_STATEMENT_TYPES = [t for _, _, types in PROFIT_LOSS_SECTIONS for t in types]


def period_bounds(period_from: str, period_to: str = None) -> tuple[date, date]:
    """First day of ``period_from`` through the last day of ``period_to`` (YYYY-MM)."""
    period_to = period_to or period_from
    for period in (period_from, period_to):
        if not re.match(PERIOD_PATTERN, period or ""):
            raise ValidationError(f"Invalid period {period!r}. Expected YYYY-MM.")
    if period_to < period_from:
        raise ValidationError("period_to is before period_from.")

    start = date(int(period_from[:4]), int(period_from[5:]), 1)
    year, month = int(period_to[:4]), int(period_to[5:])
    end = date(year, month, calendar.monthrange(year, month)[1])
    return start, end


def _account_balances(lines, account_types) -> list[dict]:
    """Per-account balances, in each account's normal direction, for the given types."""
    totals = (
        lines.filter(account__account_type__in=account_types)
        .order_by()
        .values("account_id")
        .annotate(line_debit=Sum("debit"), line_credit=Sum("credit"))
    )
    totals = {row["account_id"]: row for row in totals}
    rows = []
    for account in Account.objects.filter(code__in=totals.keys()).order_by("code"):
        row = totals[account.code]
        rows.append({
            "code": account.code,
            "name": account.name,
            "account_type": account.account_type,
            "normal_balance": account.normal_balance,
            "amount": signed_balance(account, row["line_debit"] or 0, row["line_credit"] or 0),
        })
    return rows


def _margin(amount: int, revenue: int) -> float:
    return round(amount * 100 / revenue, 1) if revenue > 0 else 0.0


def profit_loss(period_from: str, period_to: str = None) -> dict:
    """
    Income statement over whole periods (YYYY-MM, inclusive).

    Returns:
        {
            "period_from": "2025-01", "period_to": "2025-03",
            "sections": {"revenue": {"label": ..., "accounts": [...], "total": 0}, ...},
            "gross_profit": 0, "gross_margin": 0.0,
            "operating_profit": 0,
            "net_profit": 0, "net_margin": 0.0,
        }
    """
    start, end = period_bounds(period_from, period_to)
    lines = _posted_lines(end).filter(journal__date__gte=start)
    rows = _account_balances(lines, INCOME_STATEMENT_TYPES)

    sections = {}
    for key, label, types in PROFIT_LOSS_SECTIONS:
        accounts = [row for row in rows if row["account_type"] in types]
        sections[key] = {
            "label": label,
            "accounts": accounts,
            "total": sum(row["amount"] for row in accounts),
        }

    total = {key: section["total"] for key, section in sections.items()}
    gross_profit = total["revenue"] - total["cogs"]
    operating_profit = gross_profit - total["opex"]
    net_profit = operating_profit + total["other_income"] - total["other_expense"] - total["tax"]

    return {
        "period_from": period_from,
        "period_to": period_to or period_from,
        "sections": sections,
        "gross_profit": gross_profit,
        "gross_margin": _margin(gross_profit, total["revenue"]),
        "operating_profit": operating_profit,
        "net_profit": net_profit,
        "net_margin": _margin(net_profit, total["revenue"]),
    }


def balance_sheet(as_of: date = None) -> dict:
    """
    Assets against liabilities and equity at ``as_of`` (inclusive).

    Periods are never closed into retained earnings by a journal, so the
    cumulative result of the income statement accounts is shown as a
    separate equity line.
    """
    as_of = as_of or timezone.localdate()
    lines = _posted_lines(as_of)

    assets = _account_balances(lines, [T.ASSET])
    liabilities = _account_balances(lines, [T.LIABILITY])
    equity = _account_balances(lines, [T.EQUITY])

    earnings = 0
    for row in _account_balances(lines, INCOME_STATEMENT_TYPES):
        # Income accounts are credit-normal, expenses debit-normal
        if row["normal_balance"] == Account.NormalBalance.CREDIT:
            earnings += row["amount"]
        else:
            earnings -= row["amount"]
    if earnings:
        equity.append({
            "code": "",
            "name": "Laba (Rugi) Berjalan",
            "account_type": T.EQUITY,
            "normal_balance": Account.NormalBalance.CREDIT,
            "amount": earnings,
        })

    total_assets = sum(row["amount"] for row in assets)
    total_liabilities = sum(row["amount"] for row in liabilities)
    total_equity = sum(row["amount"] for row in equity)
    difference = total_assets - (total_liabilities + total_equity)
    return {
        "as_of_date": as_of.isoformat(),
        "assets": assets,
        "liabilities": liabilities,
        "equity": equity,
        "current_earnings": earnings,
        "total_assets": total_assets,
        "total_liabilities": total_liabilities,
        "total_equity": total_equity,
        "total_liabilities_equity": total_liabilities + total_equity,
        "difference": difference,
        "is_balanced": abs(difference) < settings.REPORT_BALANCE_TOLERANCE,
    }


CASH_FLOW_SECTIONS = [
    ("operating", "Aktivitas Operasi"),
    ("investing", "Aktivitas Investasi"),
    ("financing", "Aktivitas Pendanaan"),
]


def cash_flow_category(account: Account) -> str:
    if account.account_type == T.EQUITY:
        return "financing"
    if account.account_type == T.ASSET and account.code.startswith(INVESTING_PREFIXES):
        return "investing"
    return "operating"


def _cash_balance(lines) -> int:
    totals = lines.filter(account__code__startswith=CASH_PREFIX).aggregate(debit=Sum("debit"), credit=Sum("credit"))
    return (totals["debit"] or 0) - (totals["credit"] or 0)


def cash_flow(date_from: date, date_to: date) -> dict:
    """
    Cash movements between two dates (inclusive), direct method.

    Every posted journal that touches a cash or bank account is attributed
    to its other accounts: crediting them brings cash in. Transfers between
    cash accounts have no other account and drop out. The sections add up
    to ``closing_cash - opening_cash``.
    """
    if date_to < date_from:
        raise ValidationError("date_to is before date_from.")

    in_range = _posted_lines(date_to).filter(journal__date__gte=date_from)
    cash_journals = in_range.filter(account__code__startswith=CASH_PREFIX).values("journal_id")
    totals = (
        in_range.filter(journal_id__in=cash_journals)
        .exclude(account__code__startswith=CASH_PREFIX)
        .order_by()
        .values("account_id")
        .annotate(line_debit=Sum("debit"), line_credit=Sum("credit"))
    )
    totals = {row["account_id"]: row for row in totals}

    sections = {key: {"label": label, "accounts": [], "total": 0} for key, label in CASH_FLOW_SECTIONS}
    for account in Account.objects.filter(code__in=totals.keys()).order_by("code"):
        amount = (totals[account.code]["line_credit"] or 0) - (totals[account.code]["line_debit"] or 0)
        if amount == 0:
            continue
        section = sections[cash_flow_category(account)]
        section["accounts"].append({"code": account.code, "name": account.name, "amount": amount})
        section["total"] += amount

    opening = _cash_balance(_posted_lines().filter(journal__date__lt=date_from))
    net_change = sum(section["total"] for section in sections.values())
    return {
        "date_from": date_from.isoformat(),
        "date_to": date_to.isoformat(),
        "sections": sections,
        "net_change": net_change,
        "opening_cash": opening,
        "closing_cash": _cash_balance(_posted_lines(date_to)),
    }


def project_profitability(date_from: date = None, date_to: date = None) -> dict:
    """Revenue and COGS posted against each project's code, with margin and budget left."""
    lines = _posted_lines(date_to).exclude(project_code="")
    if date_from is not None:
        lines = lines.filter(journal__date__gte=date_from)
    totals = (
        lines.filter(account__account_type__in=[T.REVENUE, T.COGS])
        .order_by()
        .values("project_code", "account__account_type")
        .annotate(line_debit=Sum("debit"), line_credit=Sum("credit"))
    )
    amounts = {}
    for row in totals:
        debit, credit = row["line_debit"] or 0, row["line_credit"] or 0
        if row["account__account_type"] == T.REVENUE:
            amount = credit - debit
        else:
            amount = debit - credit
        amounts[(row["project_code"], row["account__account_type"])] = amount

    rows = []
    for project in Project.objects.select_related("client").order_by("code"):
        revenue = amounts.get((project.code, T.REVENUE), 0)
        cogs = amounts.get((project.code, T.COGS), 0)
        gross_profit = revenue - cogs
        rows.append({
            "code": project.code,
            "name": project.name,
            "client": project.client.name if project.client else "",
            "status": project.status,
            "budget": project.budget,
            "revenue": revenue,
            "cogs": cogs,
            "gross_profit": gross_profit,
            "margin_percent": _margin(gross_profit, revenue),
            "budget_variance": project.budget - cogs if project.budget else None,
        })

    return {
        "date_from": date_from.isoformat() if date_from else None,
        "date_to": date_to.isoformat() if date_to else None,
        "projects": rows,
        "total_revenue": sum(row["revenue"] for row in rows),
        "total_cogs": sum(row["cogs"] for row in rows),
    }


# =============================================================================
# Tax summary
# =============================================================================

def _tax_account_balance(lines, code: str) -> int:
    account = Account.objects.filter(code=code).first()
    if account is None:
        return 0
    totals = lines.filter(account_id=code).aggregate(debit=Sum("debit"), credit=Sum("credit"))
    return signed_balance(account, totals["debit"] or 0, totals["credit"] or 0)


def tax_summary(period_from: str, period_to: str = None) -> dict:
    """
    PPN and PPh 23 for whole periods, from the ledger and from the documents behind it.

    ``ppn_payable`` is output VAT less claimable input VAT; a negative
    value is an overpayment (lebih bayar). ``documents`` lists every live
    document in the range that carried VAT or PPh 23.
    """
    start, end = period_bounds(period_from, period_to)
    lines = _posted_lines(end).filter(journal__date__gte=start)

    ppn_output = _tax_account_balance(lines, PPN_KELUARAN)
    ppn_input = _tax_account_balance(lines, PPN_MASUKAN)
    pph23_withheld = _tax_account_balance(lines, PPH23_PAYABLE)
    pph23_prepaid = _tax_account_balance(lines, PPH23_PREPAID)

    in_range = {"date__gte": start, "date__lte": end, "voided_at__isnull": True}
    documents = []
    for invoice in (
        SalesInvoice.objects.filter(vat_amount__gt=0, **in_range)
        .exclude(status=SalesInvoice.Status.DRAFT)
        .select_related("client")
        .order_by("date", "number")
    ):
        documents.append(_tax_row("PPN Keluaran", invoice, invoice.client, invoice.subtotal, invoice.vat_amount))
    for bill in (
        VendorBill.objects.filter(vat_amount__gt=0, **in_range)
        .exclude(status=VendorBill.Status.DRAFT)
        .select_related("vendor")
        .order_by("date", "number")
    ):
        documents.append(_tax_row("PPN Masukan", bill, bill.vendor, bill.subtotal, bill.vat_amount))
    for payment in (
        VendorPayment.objects.filter(pph23_withheld__gt=0, **in_range)
        .select_related("vendor", "bill")
        .order_by("date", "number")
    ):
        documents.append(_tax_row("PPh 23 Dipotong", payment, payment.vendor, payment.bill.subtotal, payment.pph23_withheld))
    for receipt in (
        CashReceipt.objects.filter(pph23_withheld__gt=0, **in_range)
        .select_related("client", "invoice")
        .order_by("date", "number")
    ):
        documents.append(_tax_row("PPh 23 Dibayar Dimuka", receipt, receipt.client, receipt.invoice.subtotal, receipt.pph23_withheld))

    return {
        "period_from": period_from,
        "period_to": period_to or period_from,
        "ppn_output": ppn_output,
        "ppn_input": ppn_input,
        "ppn_payable": ppn_output - ppn_input,
        "pph23_withheld": pph23_withheld,
        "pph23_prepaid": pph23_prepaid,
        "documents": documents,
    }


def _tax_row(tax: str, document, party, base_amount: int, tax_amount: int) -> dict:
    return {
        "tax": tax,
        "number": document.number,
        "date": document.date.isoformat(),
        "party": party.name,
        "faktur_pajak_number": getattr(document, "faktur_pajak_number", ""),
        "base_amount": base_amount,
        "tax_amount": tax_amount,
    }
