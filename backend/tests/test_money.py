# Overview: Pytest coverage for cents arithmetic and tax rounding.

import pytest

from shopflow.money import (
    compute_totals,
    format_cents,
    round_half_up_div,
    tax_cents,
)


class TestRounding:
    def test_half_rounds_up(self):
        assert round_half_up_div(5, 10) == 1
        assert round_half_up_div(15, 10) == 2

    def test_below_half_rounds_down(self):
        assert round_half_up_div(4, 10) == 0
        assert round_half_up_div(14999, 10000) == 1

    def test_rejects_bad_denominator(self):
        with pytest.raises(ValueError):
            round_half_up_div(1, 0)


class TestTax:
    def test_eight_percent_of_twenty(self):
        assert tax_cents(2000, 800) == 160

    def test_fractional_cent_rounds_half_up(self):
        # 0.0825 * 1006 = 82.995 -> 83
        assert tax_cents(1006, 825) == 83
        # 0.08 * 1 = 0.08 -> 0
        assert tax_cents(1, 800) == 0

    def test_zero_rate(self):
        assert tax_cents(12345, 0) == 0

    def test_negative_rate_rejected(self):
        with pytest.raises(ValueError):
            tax_cents(100, -1)


class TestTotals:
    def test_two_by_ten_dollars_at_eight_percent(self):
        totals = compute_totals([(1000, 2)], 800)
        assert totals.subtotal_cents == 2000
        assert totals.tax_cents == 160
        assert totals.total_cents == 2160

    def test_subtotal_plus_tax_is_total(self):
        totals = compute_totals([(333, 3), (1999, 1), (5, 7)], 725)
        assert totals.subtotal_cents == 999 + 1999 + 35
        assert totals.subtotal_cents + totals.tax_cents == totals.total_cents

    def test_empty_is_zero(self):
        totals = compute_totals([], 800)
        assert (totals.subtotal_cents, totals.tax_cents, totals.total_cents) == (0, 0, 0)

    def test_amount_due(self):
        totals = compute_totals([(10000, 1)], 0)
        assert totals.amount_due(4000) == 6000


def test_format_cents():
    assert format_cents(2160) == "USD 21.60"
    assert format_cents(123456789, "EUR") == "EUR 1,234,567.89"
    assert format_cents(-5) == "-USD 0.05"
