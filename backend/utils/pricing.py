# backend/utils/pricing.py
"""
Line and cart arithmetic for the checkout.

Amounts are Bolivianos. Receipts show no cents, so every subtotal and total is
rounded half-up to the integer unit.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from pydantic import BaseModel

REGULAR = "regular"
DISCOUNT = "discount"
SURCHARGE = "surcharge"


class CartTotals(BaseModel):
    subtotal: float
    discount_total: float
    total: float


def round_currency(amount) -> float:
    """Half-up rounding to whole Bs (Python's round() is banker's rounding)."""
    return float(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def round_qty(qty, places: int = 2) -> float:
    exp = Decimal(1).scaleb(-places)
    return float(Decimal(str(qty)).quantize(exp, rounding=ROUND_HALF_UP))


def to_number(value, default: float = 0.0) -> float:
    # Backend numbers may arrive as decimal strings ("45.00")
    if value is None or value == "":
        return default
    return float(value)


def price_scenario(unit_price: float, effective_unit_price: Optional[float]) -> str:
    if effective_unit_price is None:
        return REGULAR
    if effective_unit_price < unit_price:
        return DISCOUNT
    return SURCHARGE


def base_price(line) -> float:
    # Surcharges are charged through the subtotal; discounts through `discount`
    if price_scenario(line.unit_price, line.effective_unit_price) == SURCHARGE:
        return line.effective_unit_price
    return line.unit_price


def display_unit_price(line) -> float:
    if price_scenario(line.unit_price, line.effective_unit_price) == DISCOUNT:
        return line.unit_price
    return line.effective_unit_price or line.unit_price


def line_subtotal(line) -> float:
    return round_currency(line.qty * base_price(line))


def line_total(line) -> float:
    return max(0.0, round_currency(line_subtotal(line) - line.discount))


def auto_discount(qty: float, unit_price: float, effective_unit_price: Optional[float]) -> float:
    """Discount implied by an effective price below catalog, 0 otherwise."""
    if price_scenario(unit_price, effective_unit_price) != DISCOUNT:
        return 0.0
    expected = round_currency(qty * unit_price)
    charged = round_currency(qty * effective_unit_price)
    return max(0.0, expected - charged)


def cart_totals(lines: Iterable) -> CartTotals:
    lines = list(lines)
    subtotal = sum(line_subtotal(l) for l in lines)
    discount_total = sum(l.discount for l in lines)
    return CartTotals(
        subtotal=subtotal,
        discount_total=discount_total,
        total=round_currency(subtotal - discount_total),
    )
