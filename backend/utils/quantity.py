# backend/utils/quantity.py
import re

from models.enums import SaleType
from utils.pricing import round_qty

MIN_UNITS = 1
MIN_WEIGHT = 0.01

_INT_PREFIX = re.compile(r"^\s*[+-]?\d+")
_FLOAT_PREFIX = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)")


def _parse_int(text: str):
    m = _INT_PREFIX.match(text)
    return int(m.group(0)) if m else None


def _parse_float(text: str):
    m = _FLOAT_PREFIX.match(text)
    return float(m.group(0)) if m else None


def normalize_quantity(raw: str, sale_type: SaleType) -> float:
    """
    Turn free text from a quantity field into a valid quantity.

    Invalid input is coerced to the nearest valid boundary instead of being
    rejected: 1 for unit products, 0.01 kg for weighed ones.
    """
    text = (raw or "").replace(",", ".")

    if sale_type == SaleType.UNIT:
        parsed = _parse_int(text)
        if parsed is None or parsed < MIN_UNITS:
            return float(MIN_UNITS)
        return float(parsed)

    parsed = _parse_float(text)
    if parsed is None or parsed < MIN_WEIGHT:
        return MIN_WEIGHT
    return round_qty(parsed, 2)


def format_quantity(qty: float, sale_type: SaleType) -> str:
    if sale_type == SaleType.WEIGHT:
        return f"{qty:.3f}"
    return str(int(qty))


def step_for(sale_type: SaleType) -> float:
    # +/- buttons move one piece or half a kilo
    return 1.0 if sale_type == SaleType.UNIT else 0.5
