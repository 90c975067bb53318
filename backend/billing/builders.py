# billing/builders.py
"""
Journal line patterns for source documents.

Pure functions: given a document's numbers they return the LineSpec list
the Ledger Poster receives. Each pattern balances by construction.

    Sales invoice:  DR AR total ; CR revenue per line ; CR PPN Keluaran vat
    Vendor bill:    DR expense per line [+ DR PPN Masukan vat] ; CR AP total
    Vendor payment: DR AP (amount + withheld) ; CR bank amount ; CR PPh 23 payable withheld
    Cash receipt:   DR bank (amount - withheld) [+ DR PPh 23 prepaid withheld] ; CR AR amount
"""

from dataclasses import dataclass
from typing import Iterable

from accounting.chart import (
    ACCOUNTS_PAYABLE,
    ACCOUNTS_RECEIVABLE,
    PPH23_PAYABLE,
    PPH23_PREPAID,
    PPN_KELUARAN,
    PPN_MASUKAN,
)
from accounting.posting import LineSpec


@dataclass(frozen=True)
class ItemLine:
    """A document line item reduced to what the journal needs."""

    account_code: str
    amount: int
    description: str = ""
    project_code: str = ""


def bill_lines(
    *,
    number: str,
    vendor_name: str,
    items: Iterable[ItemLine],
    vat_amount: int,
    faktur_pajak_number: str = "",
) -> list[LineSpec]:
    items = list(items)
    subtotal = sum(item.amount for item in items)
    lines = [
        LineSpec(
            account_code=item.account_code,
            debit=item.amount,
            description=item.description,
            project_code=item.project_code,
        )
        for item in items
    ]
    if vat_amount > 0:
        lines.append(LineSpec(
            account_code=PPN_MASUKAN,
            debit=vat_amount,
            description=f"PPN Masukan - {faktur_pajak_number}",
        ))
    lines.append(LineSpec(
        account_code=ACCOUNTS_PAYABLE,
        credit=subtotal + vat_amount,
        description=f"Bill {number} - {vendor_name}",
    ))
    return lines


def invoice_lines(
    *,
    number: str,
    client_name: str,
    items: Iterable[ItemLine],
    vat_amount: int,
) -> list[LineSpec]:
    items = list(items)
    subtotal = sum(item.amount for item in items)
    lines = [
        LineSpec(
            account_code=ACCOUNTS_RECEIVABLE,
            debit=subtotal + vat_amount,
            description=f"Invoice {number} - {client_name}",
        )
    ]
    lines.extend(
        LineSpec(
            account_code=item.account_code,
            credit=item.amount,
            description=item.description,
            project_code=item.project_code,
        )
        for item in items
    )
    if vat_amount > 0:
        lines.append(LineSpec(
            account_code=PPN_KELUARAN,
            credit=vat_amount,
            description=f"PPN Keluaran - {number}",
        ))
    return lines


def payment_lines(
    *,
    number: str,
    vendor_name: str,
    amount: int,
    pph23_withheld: int,
    bank_account_code: str,
) -> list[LineSpec]:
    lines = [
        LineSpec(
            account_code=ACCOUNTS_PAYABLE,
            debit=amount + pph23_withheld,
            description=f"Payment {number}",
        ),
        LineSpec(
            account_code=bank_account_code,
            credit=amount,
            description=f"Payment to {vendor_name}",
        ),
    ]
    if pph23_withheld > 0:
        lines.append(LineSpec(
            account_code=PPH23_PAYABLE,
            credit=pph23_withheld,
            description=f"PPh 23 withheld - {number}",
        ))
    return lines


def receipt_lines(
    *,
    number: str,
    invoice_number: str,
    amount: int,
    pph23_withheld: int,
    bank_account_code: str,
) -> list[LineSpec]:
    lines = []
    if amount - pph23_withheld > 0:
        lines.append(LineSpec(
            account_code=bank_account_code,
            debit=amount - pph23_withheld,
            description=f"Receipt {number}",
        ))
    if pph23_withheld > 0:
        lines.append(LineSpec(
            account_code=PPH23_PREPAID,
            debit=pph23_withheld,
            description="PPh 23 withheld by client",
        ))
    lines.append(LineSpec(
        account_code=ACCOUNTS_RECEIVABLE,
        credit=amount,
        description=f"Payment for {invoice_number}",
    ))
    return lines
