import pytest

from models.enums import SaleType
from utils.quantity import normalize_quantity, format_quantity, step_for


@pytest.mark.parametrize("raw, expected", [
    ("3", 3.0),
    ("12", 12.0),
    ("2.7", 2.0),
    ("0", 1.0),
    ("-4", 1.0),
    ("", 1.0),
    ("abc", 1.0),
    ("5kg", 5.0),
])
def test_unit_quantities_are_whole_and_at_least_one(raw, expected):
    assert normalize_quantity(raw, SaleType.UNIT) == expected


@pytest.mark.parametrize("raw, expected", [
    ("1,250", 1.25),
    ("1.256", 1.26),
    ("0,5", 0.5),
    (",5", 0.5),
    ("2.", 2.0),
    ("0,001", 0.01),
    ("0", 0.01),
    ("", 0.01),
    ("kilo", 0.01),
])
def test_weight_quantities_round_to_two_places(raw, expected):
    assert normalize_quantity(raw, SaleType.WEIGHT) == expected


def test_none_is_treated_as_empty():
    assert normalize_quantity(None, SaleType.UNIT) == 1.0
    assert normalize_quantity(None, SaleType.WEIGHT) == 0.01


def test_format_quantity():
    assert format_quantity(3.0, SaleType.UNIT) == "3"
    assert format_quantity(1.25, SaleType.WEIGHT) == "1.250"


def test_step_for():
    assert step_for(SaleType.UNIT) == 1.0
    assert step_for(SaleType.WEIGHT) == 0.5
