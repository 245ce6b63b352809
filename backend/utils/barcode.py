# backend/utils/barcode.py
"""
Labels printed by the counter scale.

Layout (18 digits): F WWWWWW NNNNN EEEEE C
    F  flag digit, 0 for scale labels
    W  product code / PLU (6)
    N  weight in grams (5)
    E  total price in Bs (5)
    C  check digit, not verified
"""
import re
from typing import Optional

from pydantic import BaseModel

from config import settings

SCALE_BARCODE_LENGTH = 18
_DIGITS = re.compile(r"^\d{18}$")


class ScaleBarcode(BaseModel):
    product_code: str
    weight_kg: float
    total_price: float
    raw_barcode: str


def is_scale_barcode(barcode: str) -> bool:
    return (
        len(barcode) == SCALE_BARCODE_LENGTH
        and barcode[0] == settings.SCALE_BARCODE_FLAG
        and bool(_DIGITS.match(barcode))
    )


def parse_scale_barcode(barcode: str) -> Optional[ScaleBarcode]:
    barcode = (barcode or "").strip()
    if not is_scale_barcode(barcode):
        return None

    product_code = barcode[1:7]
    weight_grams = int(barcode[7:12])
    total_price = int(barcode[12:17])

    return ScaleBarcode(
        product_code=product_code,
        weight_kg=weight_grams / 1000,
        total_price=float(total_price),
        raw_barcode=barcode,
    )


def format_weight(kg: float) -> str:
    """At most three decimals, trailing zeros dropped: 1.250 -> '1.25'."""
    text = f"{kg:.3f}".rstrip("0").rstrip(".")
    return text or "0"


def price_per_kg(total_price: float, weight_kg: float) -> float:
    if weight_kg == 0:
        return 0.0
    return total_price / weight_kg
