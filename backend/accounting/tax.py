# accounting/tax.py
"""
Indonesian tax calculations: PPN (VAT) and PPh 23 withholding.

Pure functions on whole-rupiah integers. Rounding is half-up to the
nearest rupiah.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

from accounting.errors import ValidationError

SALES = "sales"
PURCHASE = "purchase"


def vat_rate() -> Decimal:
    return Decimal(str(getattr(settings, "PPN_RATE", "0.11")))


def default_pph23_rate() -> Decimal:
    return Decimal(str(getattr(settings, "PPH23_DEFAULT_RATE", "0.02")))


def round_idr(value) -> int:
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _check_base(amount) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"Tax base must be whole rupiah, got {amount!r}.")
    if amount < 0:
        raise ValidationError("Tax base cannot be negative.")
    return amount


def output_vat(subtotal: int) -> int:
    """PPN Keluaran charged on a sale."""
    return round_idr(_check_base(subtotal) * vat_rate())


def input_vat(subtotal: int, faktur_pajak_number: str | None, vendor=None) -> int:
    """
    PPN Masukan claimable on a purchase.

    Only claimable with a Faktur Pajak number from a vendor that issues them.
    """
    _check_base(subtotal)
    if not (faktur_pajak_number or "").strip():
        return 0
    if vendor is not None and not vendor.provides_faktur_pajak:
        return 0
    return round_idr(subtotal * vat_rate())


def withholding(subtotal: int, party) -> int:
    """PPh 23 withheld on a service payment to ``party``."""
    _check_base(subtotal)
    if not getattr(party, "subject_to_pph23", False):
        return 0
    rate = getattr(party, "pph23_rate", None)
    if rate is None:
        rate = default_pph23_rate()
    return round_idr(subtotal * Decimal(str(rate)))


@dataclass(frozen=True)
class TaxBreakdown:
    subtotal: int
    vat: int
    pph23: int

    @property
    def total(self) -> int:
        return self.subtotal + self.vat

    @property
    def net_settlement(self) -> int:
        """Cash that changes hands once the withholding is kept back."""
        return self.total - self.pph23

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "vat": self.vat,
            "pph23": self.pph23,
            "total": self.total,
            "net_settlement": self.net_settlement,
        }


def compute_tax(subtotal: int, *, kind: str, faktur_pajak_number: str = "", party=None) -> TaxBreakdown:
    """
    Tax lines for a document.

    kind="sales" charges output VAT; kind="purchase" claims input VAT when a
    Faktur Pajak is present and withholds PPh 23 when the vendor is subject.
    """
    if kind == SALES:
        vat = output_vat(subtotal)
        pph23 = 0
    elif kind == PURCHASE:
        vat = input_vat(subtotal, faktur_pajak_number, party)
        pph23 = withholding(subtotal, party) if party is not None else 0
    else:
        raise ValidationError(f"Unknown tax kind {kind!r}.")
    return TaxBreakdown(subtotal=subtotal, vat=vat, pph23=pph23)
