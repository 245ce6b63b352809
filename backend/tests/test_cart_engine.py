from types import SimpleNamespace

import pytest

from models.enums import SaleType, InventoryType
from schemas.cart import CartState, StandardLine, BatchLine
from utils import cart_engine as engine
from utils import pricing


def make_product(**kw):
    data = dict(id=1, name="Chorizo", sale_type=SaleType.UNIT, inventory_type=InventoryType.UNIT,
                unit="unidad", price=25, discount_price=None, discount_active=False, stock_units=None)
    data.update(kw)
    return SimpleNamespace(**data)


def make_batch(**kw):
    data = dict(id=7, product_id=3, batch_number="PIC-0001", actual_weight=0.950, unit_price=45,
                is_sold=False, reserved_order_id=None)
    data.update(kw)
    data["is_reserved"] = data["reserved_order_id"] is not None
    return SimpleNamespace(**data)


@pytest.fixture
def chorizo():
    return make_product(stock_units=5)


@pytest.fixture
def molida():
    return make_product(id=2, name="Carne molida", sale_type=SaleType.WEIGHT,
                        inventory_type=InventoryType.WEIGHT, unit="kg", price=40)


@pytest.fixture
def picana():
    return make_product(id=3, name="Picaña", sale_type=SaleType.WEIGHT,
                        inventory_type=InventoryType.VACUUM_PACKED, unit="kg", price=45)


# ---- adding ----

def test_add_product_creates_standard_line(chorizo):
    cart = engine.add_product(CartState(), chorizo)
    (line,) = cart.lines
    assert isinstance(line, StandardLine)
    assert line.qty == 1
    assert line.stock_units == 5
    assert engine.totals(cart).total == 25


def test_adding_same_product_merges_lines(chorizo):
    cart = engine.add_product(CartState(), chorizo)
    cart = engine.add_product(cart, chorizo)
    assert len(cart.lines) == 1
    assert cart.lines[0].qty == 2


def test_operations_do_not_mutate_input(chorizo):
    empty = CartState()
    cart = engine.add_product(empty, chorizo)
    assert empty.lines == ()
    engine.set_quantity(cart, cart.lines[0].id, 3)
    assert cart.lines[0].qty == 1


def test_add_product_without_stock_is_rejected():
    product = make_product(stock_units=0)
    with pytest.raises(engine.InsufficientStockError):
        engine.add_product(CartState(), product)


def test_vacuum_packed_product_needs_a_batch(picana):
    with pytest.raises(engine.BatchSelectionRequired):
        engine.add_product(CartState(), picana)


def test_catalog_discount_is_auto_detected():
    product = make_product(id=2, sale_type=SaleType.WEIGHT, inventory_type=InventoryType.WEIGHT,
                           price=40, discount_price=36, discount_active=True)
    cart = engine.add_product(CartState(), product)
    line = cart.lines[0]
    assert line.effective_unit_price == 36
    assert line.discount == 4
    assert line.discount_auto_detected

    cart = engine.set_quantity(cart, line.id, 2)
    assert cart.lines[0].discount == 8
    assert engine.totals(cart).total == 72


def test_inactive_catalog_discount_is_ignored():
    product = make_product(price=40, discount_price=36, discount_active=False)
    line = engine.add_product(CartState(), product).lines[0]
    assert line.effective_unit_price is None
    assert line.discount == 0


# ---- batches ----

def test_batch_line_is_one_package_at_fixed_price(picana):
    cart = engine.add_batch(CartState(), picana, make_batch())
    (line,) = cart.lines
    assert isinstance(line, BatchLine)
    assert line.qty == 1
    assert line.actual_weight == 0.950
    assert pricing.line_total(line) == 45


def test_batch_quantity_cannot_change(picana):
    cart = engine.add_batch(CartState(), picana, make_batch())
    line_id = cart.lines[0].id
    for op, args in ((engine.set_quantity, (3,)), (engine.increment, ()), (engine.decrement, ()),
                     (engine.set_qty_input, ("2",)), (engine.commit_qty_input, ())):
        with pytest.raises(engine.QuantityLockedError):
            op(cart, line_id, *args)
    assert cart.lines[0].qty == 1


def test_batch_cannot_be_added_twice(picana):
    cart = engine.add_batch(CartState(), picana, make_batch())
    with pytest.raises(engine.BatchUnavailableError):
        engine.add_batch(cart, picana, make_batch())


def test_sold_or_foreign_reserved_batches_are_rejected(picana):
    with pytest.raises(engine.BatchUnavailableError):
        engine.add_batch(CartState(), picana, make_batch(is_sold=True))
    with pytest.raises(engine.BatchUnavailableError):
        engine.add_batch(CartState(), picana, make_batch(reserved_order_id=9))
    with pytest.raises(engine.BatchUnavailableError):
        engine.add_batch(CartState(), picana, make_batch(product_id=99))


def test_batch_reserved_by_loaded_order_is_accepted(picana):
    cart = engine.add_batch(CartState(order_id=9), picana, make_batch(reserved_order_id=9))
    assert len(cart.lines) == 1


def test_batch_discount_lands_on_the_added_line(picana, molida):
    cart = engine.add_product(CartState(), molida)
    cart = engine.add_batch(cart, picana, make_batch(), discount=5)
    standard, batch = cart.lines
    assert standard.discount == 0
    assert batch.discount == 5
    assert pricing.line_total(batch) == 40

    with pytest.raises(engine.DiscountError):
        engine.add_batch(CartState(), picana, make_batch(), discount=50)


# ---- scanned ----

def test_scanned_surcharge_goes_into_subtotal(molida):
    cart = engine.add_scanned(CartState(), molida, "0" * 18, 1.25, effective_unit_price=44)
    line = cart.lines[0]
    assert line.discount == 0
    assert pricing.line_subtotal(line) == 55
    with pytest.raises(engine.QuantityLockedError):
        engine.increment(cart, line.id)


def test_scanned_discount_is_auto_detected(molida):
    cart = engine.add_scanned(CartState(), molida, "0" * 18, 1.25, effective_unit_price=36)
    line = cart.lines[0]
    assert line.discount == 5
    assert line.discount_auto_detected
    assert pricing.line_total(line) == 45


# ---- quantity edits ----

def test_increment_beyond_stock_is_blocked(chorizo):
    cart = engine.add_product(CartState(), chorizo)
    cart = engine.set_quantity(cart, cart.lines[0].id, 5)
    with pytest.raises(engine.InsufficientStockError):
        engine.increment(cart, cart.lines[0].id)


def test_weight_step_is_half_kilo(molida):
    cart = engine.add_product(CartState(), molida)
    cart = engine.increment(cart, cart.lines[0].id)
    assert cart.lines[0].qty == 1.5


def test_decrement_never_reaches_zero(chorizo):
    cart = engine.add_product(CartState(), chorizo)
    assert engine.decrement(cart, cart.lines[0].id) == cart


def test_set_quantity_rejects_zero(chorizo):
    cart = engine.add_product(CartState(), chorizo)
    with pytest.raises(engine.CartError):
        engine.set_quantity(cart, cart.lines[0].id, 0)


def test_qty_input_is_buffered_until_commit(molida):
    cart = engine.add_product(CartState(), molida)
    line_id = cart.lines[0].id

    cart = engine.set_qty_input(cart, line_id, "1,")
    assert engine.input_value(cart, line_id) == "1,"
    assert cart.lines[0].qty == 1

    cart = engine.set_qty_input(cart, line_id, "1,250")
    cart = engine.commit_qty_input(cart, line_id)
    assert cart.lines[0].qty == 1.25
    assert cart.qty_inputs == {}
    assert engine.input_value(cart, line_id) == "1.250"
    assert engine.totals(cart).subtotal == 50


def test_unit_example_three_pieces():
    cart = engine.add_product(CartState(), make_product())
    line_id = cart.lines[0].id
    cart = engine.commit_qty_input(engine.set_qty_input(cart, line_id, "3"), line_id)
    assert cart.lines[0].qty == 3
    assert pricing.line_subtotal(cart.lines[0]) == 75


def test_invalid_input_commits_minimum(chorizo):
    cart = engine.add_product(CartState(), chorizo)
    line_id = cart.lines[0].id
    cart = engine.set_quantity(cart, line_id, 3)
    cart = engine.commit_qty_input(engine.set_qty_input(cart, line_id, "abc"), line_id)
    assert cart.lines[0].qty == 1


def test_commit_clamps_to_stock(chorizo):
    cart = engine.add_product(CartState(), chorizo)
    line_id = cart.lines[0].id
    cart = engine.commit_qty_input(engine.set_qty_input(cart, line_id, "9"), line_id)
    assert cart.lines[0].qty == 5


def test_commit_with_no_stock_left_is_rejected():
    sold_out = make_product(stock_units=0)
    cart = engine.add_order_line(CartState(), sold_out, 1, 25)
    line_id = cart.lines[0].id
    cart = engine.set_qty_input(cart, line_id, "2")
    with pytest.raises(engine.InsufficientStockError):
        engine.commit_qty_input(cart, line_id)
    assert cart.lines[0].qty == 1
    assert cart.qty_inputs == {line_id: "2"}


def test_unknown_line(chorizo):
    with pytest.raises(engine.LineNotFound):
        engine.remove_line(CartState(), "nope")


# ---- removal ----

def test_remove_line_drops_buffered_input(chorizo, molida):
    cart = engine.add_product(engine.add_product(CartState(), chorizo), molida)
    line_id = cart.lines[0].id
    cart = engine.set_qty_input(cart, line_id, "4")
    cart = engine.remove_line(cart, line_id)
    assert [l.product_id for l in cart.lines] == [2]
    assert cart.qty_inputs == {}


def test_clear_keeps_customer(chorizo):
    cart = engine.set_customer(engine.add_product(CartState(), chorizo), 12)
    cart = engine.clear(cart)
    assert cart.lines == ()
    assert cart.customer_id == 12


# ---- discounts ----

def test_manual_discount(chorizo):
    cart = engine.add_product(CartState(), chorizo)
    line_id = cart.lines[0].id
    cart = engine.set_quantity(cart, line_id, 3)
    cart = engine.apply_discount(cart, line_id, 10.4)
    line = cart.lines[0]
    assert line.discount == 10
    assert not line.discount_auto_detected
    assert pricing.line_total(line) == 65


def test_discount_above_subtotal_is_rejected(chorizo):
    cart = engine.add_product(CartState(), chorizo)
    with pytest.raises(engine.DiscountError):
        engine.apply_discount(cart, cart.lines[0].id, 26)
    with pytest.raises(engine.DiscountError):
        engine.apply_discount(cart, cart.lines[0].id, -1)


def test_manual_discount_shrinks_with_quantity(chorizo):
    cart = engine.add_product(CartState(), chorizo)
    line_id = cart.lines[0].id
    cart = engine.set_quantity(cart, line_id, 3)
    cart = engine.apply_discount(cart, line_id, 40)
    cart = engine.set_quantity(cart, line_id, 1)
    assert cart.lines[0].discount == 25
    assert pricing.line_total(cart.lines[0]) == 0


def test_order_line_with_agreed_price_and_discount():
    cart = engine.add_order_line(CartState(), make_product(), 1, 50, discount=10)
    line = cart.lines[0]
    assert line.unit_price == 50
    assert pricing.line_total(line) == 40


def test_lower_unit_price_becomes_discount(chorizo):
    cart = engine.add_product(CartState(), chorizo)
    line_id = cart.lines[0].id
    cart = engine.set_quantity(cart, line_id, 2)
    cart = engine.apply_unit_price(cart, line_id, 20)
    assert cart.lines[0].discount == 10
    assert pricing.line_total(cart.lines[0]) == 40

    with pytest.raises(engine.DiscountError):
        engine.apply_unit_price(cart, line_id, 30)


def test_batch_price_per_kg_override(picana):
    cart = engine.add_batch(CartState(), picana, make_batch())
    line_id = cart.lines[0].id
    cart = engine.apply_unit_price(cart, line_id, 40)
    # 40 x 0.950 = 38 charged out of 45
    assert cart.lines[0].discount == 7
    assert pricing.line_total(cart.lines[0]) == 38

    with pytest.raises(engine.DiscountError):
        engine.apply_unit_price(cart, line_id, 50)


def test_totals_add_up(chorizo, molida, picana):
    cart = engine.add_product(CartState(), chorizo)
    cart = engine.apply_discount(cart, cart.lines[0].id, 5)
    cart = engine.add_product(cart, molida)
    cart = engine.add_batch(cart, picana, make_batch())
    totals = engine.totals(cart)
    assert totals.subtotal == 25 + 40 + 45
    assert totals.discount_total == 5
    assert totals.total == totals.subtotal - totals.discount_total
