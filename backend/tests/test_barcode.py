from utils.barcode import is_scale_barcode, parse_scale_barcode, format_weight, price_per_kg


def test_parse_scale_label():
    label = "0" + "000101" + "01250" + "00050" + "7"
    parsed = parse_scale_barcode(label)
    assert parsed is not None
    assert parsed.product_code == "000101"
    assert parsed.weight_kg == 1.25
    assert parsed.total_price == 50
    assert parsed.raw_barcode == label


def test_surrounding_whitespace_is_ignored():
    label = "0" + "000101" + "01250" + "00050" + "7"
    assert parse_scale_barcode(f"  {label} ") is not None


def test_regular_barcodes_are_not_scale_labels():
    assert parse_scale_barcode("7771234500011") is None
    assert parse_scale_barcode("") is None
    assert parse_scale_barcode(None) is None
    assert not is_scale_barcode("2" + "0" * 17)
    assert not is_scale_barcode("0" * 17 + "X")


def test_format_weight():
    assert format_weight(1.25) == "1.25"
    assert format_weight(0.950) == "0.95"
    assert format_weight(2.0) == "2"
    assert format_weight(0) == "0"


def test_price_per_kg():
    assert price_per_kg(45, 1.25) == 36
    assert price_per_kg(45, 0) == 0
