import pytest

from models.enums import SaleType
from schemas.cart import StandardLine, BatchLine, ScannedLine
from utils import pricing


def _line(qty, unit_price, effective=None, discount=0, sale_type=SaleType.UNIT):
    return StandardLine(id="l1", product_id=1, product_name="Test", sale_type=sale_type, unit="u",
                        qty=qty, unit_price=unit_price, effective_unit_price=effective, discount=discount)


@pytest.mark.parametrize("amount, expected", [
    (0.5, 1.0), (1.5, 2.0), (2.5, 3.0), (2.49, 2.0), (49.999, 50.0), (-0.4, 0.0),
])
def test_round_currency_is_half_up(amount, expected):
    assert pricing.round_currency(amount) == expected


def test_to_number_accepts_decimal_strings():
    assert pricing.to_number("45.00") == 45.0
    assert pricing.to_number(None) == 0.0
    assert pricing.to_number("", default=1.0) == 1.0


def test_price_scenarios():
    assert pricing.price_scenario(40, None) == pricing.REGULAR
    assert pricing.price_scenario(40, 36) == pricing.DISCOUNT
    assert pricing.price_scenario(40, 44) == pricing.SURCHARGE
    assert pricing.price_scenario(40, 40) == pricing.SURCHARGE


def test_unit_line_subtotal():
    line = _line(3, 25)
    assert pricing.line_subtotal(line) == 75
    assert pricing.line_total(line) == 75


def test_weight_line_subtotal_is_rounded():
    line = _line(1.25, 40, sale_type=SaleType.WEIGHT)
    assert pricing.line_subtotal(line) == 50


def test_discount_reduces_total():
    line = _line(1, 50, discount=10)
    assert pricing.line_total(line) == 40


def test_total_never_negative():
    line = _line(1, 20, discount=35)
    assert pricing.line_total(line) == 0


def test_surcharge_is_charged_through_subtotal():
    line = _line(1.25, 40, effective=44, sale_type=SaleType.WEIGHT)
    assert pricing.line_subtotal(line) == 55
    assert pricing.display_unit_price(line) == 44


def test_discount_scenario_shows_catalog_price():
    line = _line(1.25, 40, effective=36, discount=5, sale_type=SaleType.WEIGHT)
    assert pricing.display_unit_price(line) == 40
    assert pricing.line_subtotal(line) == 50
    assert pricing.line_total(line) == 45


def test_auto_discount():
    assert pricing.auto_discount(1.25, 40, 36) == 5
    assert pricing.auto_discount(1.25, 40, 44) == 0
    assert pricing.auto_discount(2, 40, None) == 0


def test_batch_line_total_is_package_price():
    line = BatchLine(id="b", product_id=3, product_name="Picaña", sale_type=SaleType.WEIGHT, unit="kg",
                     batch_id=1, batch_number="PIC-0001", actual_weight=0.950, fixed_price=45, catalog_price=45)
    assert line.qty == 1
    assert pricing.line_subtotal(line) == 45
    assert pricing.line_total(line) == 45


def test_cart_totals():
    lines = [
        _line(3, 25),
        _line(1, 50, discount=10),
        ScannedLine(id="s", product_id=2, product_name="Molida", sale_type=SaleType.WEIGHT, unit="kg",
                    scanned_barcode="0" * 18, qty=1.25, unit_price=40),
    ]
    totals = pricing.cart_totals(lines)
    assert totals.subtotal == 175
    assert totals.discount_total == 10
    assert totals.total == 165
