"""Checkout pricing rules.

taxes    = 10% of the subtotal, rounded half-up to cents
shipping = free above 100.00, otherwise a flat 10.00
total    = subtotal + taxes + shipping
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from modules.orders.constants import FLAT_SHIPPING_FEE, FREE_SHIPPING_THRESHOLD, TAX_RATE

CENT = Decimal("0.01")


def quantize_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    taxes: Decimal
    shipping: Decimal
    total: Decimal


def calculate_totals(subtotal: Decimal) -> OrderTotals:
    subtotal = quantize_money(subtotal)
    taxes = quantize_money(subtotal * TAX_RATE)
    shipping = Decimal("0.00") if subtotal > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE
    return OrderTotals(
        subtotal=subtotal,
        taxes=taxes,
        shipping=shipping,
        total=subtotal + taxes + shipping,
    )


def line_subtotal(unit_price: Decimal, quantity: int) -> Decimal:
    return quantize_money(Decimal(unit_price) * quantity)


def totals_for_lines(lines: Iterable[tuple[Decimal, int]]) -> OrderTotals:
    """Price ``(unit_price, quantity)`` pairs."""
    subtotal = sum((line_subtotal(price, qty) for price, qty in lines), Decimal("0.00"))
    return calculate_totals(subtotal)
