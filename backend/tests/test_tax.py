# tests/test_tax.py
"""
Tests for PPN and PPh 23 calculations.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from accounting.errors import ValidationError
from accounting.tax import (
    PURCHASE,
    SALES,
    compute_tax,
    input_vat,
    output_vat,
    round_idr,
    withholding,
)


def party(subject=True, rate=Decimal("0.02"), faktur=True):
    return SimpleNamespace(subject_to_pph23=subject, pph23_rate=rate, provides_faktur_pajak=faktur)


class TestRounding:
    def test_half_rounds_up(self):
        assert round_idr(Decimal("0.5")) == 1
        assert round_idr(Decimal("1.49")) == 1
        assert round_idr(Decimal("2.5")) == 3

    def test_output_vat_rounds_to_rupiah(self):
        # 5 * 0.11 = 0.55 -> 1 ; 4 * 0.11 = 0.44 -> 0
        assert output_vat(5) == 1
        assert output_vat(4) == 0


class TestOutputVat:
    def test_standard_rate(self):
        assert output_vat(10_000_000) == 1_100_000

    def test_zero_base(self):
        assert output_vat(0) == 0

    def test_negative_base_rejected(self):
        with pytest.raises(ValidationError):
            output_vat(-1)

    def test_fractional_base_rejected(self):
        with pytest.raises(ValidationError):
            output_vat(1000.5)

    def test_rate_comes_from_settings(self, settings):
        settings.PPN_RATE = Decimal("0.12")
        assert output_vat(1_000_000) == 120_000


class TestInputVat:
    def test_claimed_with_faktur(self):
        assert input_vat(5_000_000, "010.000-25.00000001") == 550_000

    def test_not_claimed_without_faktur(self):
        assert input_vat(5_000_000, "") == 0
        assert input_vat(5_000_000, None) == 0
        assert input_vat(5_000_000, "   ") == 0

    def test_not_claimed_from_vendor_without_faktur_pajak(self):
        assert input_vat(5_000_000, "010.000-25.00000001", party(faktur=False)) == 0


class TestWithholding:
    def test_subject_vendor(self):
        assert withholding(5_000_000, party()) == 100_000

    def test_vendor_rate(self):
        assert withholding(5_000_000, party(rate=Decimal("0.04"))) == 200_000

    def test_default_rate_when_vendor_has_none(self):
        assert withholding(1_000_000, party(rate=None)) == 20_000

    def test_not_subject(self):
        assert withholding(5_000_000, party(subject=False)) == 0

    def test_party_without_tax_profile(self):
        assert withholding(5_000_000, object()) == 0


class TestComputeTax:
    def test_purchase_breakdown(self):
        breakdown = compute_tax(5_000_000, kind=PURCHASE, faktur_pajak_number="010.000-25.00000001", party=party())

        assert breakdown.to_dict() == {
            "subtotal": 5_000_000,
            "vat": 550_000,
            "pph23": 100_000,
            "total": 5_550_000,
            "net_settlement": 5_450_000,
        }

    def test_sales_breakdown_has_no_withholding(self):
        breakdown = compute_tax(10_000_000, kind=SALES, party=party())

        assert breakdown.vat == 1_100_000
        assert breakdown.pph23 == 0
        assert breakdown.total == 11_100_000

    def test_unknown_kind(self):
        with pytest.raises(ValidationError):
            compute_tax(1_000, kind="payroll")
