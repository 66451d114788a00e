"""
Money arithmetic for carts and sale records.

All amounts are integer cents. Tax rates are basis points (800 = 8.00%).
Tax is computed once on the subtotal, nearest-cent rounding (half-up), so
subtotal + tax == total holds exactly on every stored record.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

BPS_DENOMINATOR = 10_000


def round_half_up_div(numerator: int, denominator: int) -> int:
    """Integer division rounded to nearest, halves away from zero (non-negative inputs)."""
    if denominator <= 0:
        raise ValueError("denominator must be > 0")
    if numerator < 0:
        raise ValueError("numerator must be >= 0")
    return (numerator + (denominator // 2)) // denominator


def tax_cents(subtotal_cents: int, tax_rate_bps: int) -> int:
    if tax_rate_bps < 0:
        raise ValueError("tax_rate_bps must be >= 0")
    return round_half_up_div(subtotal_cents * tax_rate_bps, BPS_DENOMINATOR)


def line_total_cents(unit_price_cents: int, quantity: int) -> int:
    return unit_price_cents * quantity


@dataclass(frozen=True)
class Totals:
    subtotal_cents: int
    tax_cents: int
    total_cents: int

    def amount_due(self, amount_paid_cents: int) -> int:
        return self.total_cents - amount_paid_cents

    def to_dict(self) -> dict:
        return {
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
        }


def compute_totals(priced_quantities: Iterable[tuple[int, int]], tax_rate_bps: int) -> Totals:
    """
    Totals for (unit_price_cents, quantity) pairs.

    subtotal = sum(unit_price * qty); tax = round_half_up(subtotal * bps / 10000).
    """
    subtotal = sum(line_total_cents(price, qty) for price, qty in priced_quantities)
    tax = tax_cents(subtotal, tax_rate_bps)
    return Totals(subtotal_cents=subtotal, tax_cents=tax, total_cents=subtotal + tax)


def format_cents(amount_cents: int, currency: str = "USD") -> str:
    sign = "-" if amount_cents < 0 else ""
    whole, cents = divmod(abs(amount_cents), 100)
    return f"{sign}{currency} {whole:,}.{cents:02d}"
