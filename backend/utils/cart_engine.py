# backend/utils/cart_engine.py
"""
Checkout cart operations.

Every function takes a CartState snapshot and returns a new one; the input is
never modified. Failures raise a CartError subclass and leave the caller's
snapshot as it was.
"""
import logging
import uuid
from typing import Optional

from models.enums import SaleType, InventoryType
from schemas.cart import CartState, StandardLine, BatchLine, ScannedLine
from utils import pricing
from utils.quantity import normalize_quantity, format_quantity, step_for

logger = logging.getLogger(__name__)

DEFAULT_QTY = 1.0


class CartError(Exception):
    """Base class for rejected cart operations."""


class LineNotFound(CartError):
    pass


class QuantityLockedError(CartError):
    pass


class InsufficientStockError(CartError):
    pass


class BatchSelectionRequired(CartError):
    pass


class BatchUnavailableError(CartError):
    pass


class DiscountError(CartError):
    pass


# ---- helpers ----

def _new_id() -> str:
    return uuid.uuid4().hex


def _find(cart: CartState, line_id: str):
    for line in cart.lines:
        if line.id == line_id:
            return line
    raise LineNotFound(f"Cart line {line_id} not found")


def _replace(cart: CartState, line) -> CartState:
    lines = tuple(line if l.id == line.id else l for l in cart.lines)
    return cart.model_copy(update={"lines": lines})


def _drop_input(cart: CartState, line_id: str) -> dict:
    return {k: v for k, v in cart.qty_inputs.items() if k != line_id}


def catalog_effective_price(product) -> Optional[float]:
    # Active catalog discount becomes the effective price of the line
    if not product.discount_active or product.discount_price is None:
        return None
    discount_price = pricing.to_number(product.discount_price)
    if discount_price >= pricing.to_number(product.price):
        return None
    return discount_price


def _with_qty(line: StandardLine, qty: float) -> StandardLine:
    update = {"qty": qty}
    # Auto-detected discounts follow the quantity; manual ones stay as entered
    if line.discount_auto_detected:
        update["discount"] = pricing.auto_discount(qty, line.unit_price, line.effective_unit_price)
    elif line.discount:
        subtotal = pricing.round_currency(qty * pricing.base_price(line))
        update["discount"] = min(line.discount, subtotal)
    return line.model_copy(update=update)


def _editable(cart: CartState, line_id: str) -> StandardLine:
    line = _find(cart, line_id)
    if not isinstance(line, StandardLine):
        raise QuantityLockedError("Quantity of this line cannot be changed")
    return line


def units_in_cart(cart: CartState, product_id: int) -> float:
    return sum(l.qty for l in cart.lines if l.product_id == product_id)


def batch_ids(cart: CartState) -> set:
    return {l.batch_id for l in cart.lines if isinstance(l, BatchLine)}


def has_stock_control(product) -> bool:
    return (
        product.sale_type == SaleType.UNIT
        and product.inventory_type == InventoryType.UNIT
        and product.stock_units is not None
    )


# ---- adding lines ----

def add_product(cart: CartState, product, qty: float = DEFAULT_QTY) -> CartState:
    if product.inventory_type == InventoryType.VACUUM_PACKED:
        raise BatchSelectionRequired(f"{product.name} is sold by batch, pick a batch first")

    if has_stock_control(product):
        available = product.stock_units - units_in_cart(cart, product.id)
        if available <= 0:
            raise InsufficientStockError(f"No stock available for {product.name}")

    for line in cart.lines:
        if isinstance(line, StandardLine) and line.product_id == product.id:
            return _replace(cart, _with_qty(line, line.qty + qty))

    unit_price = pricing.to_number(product.price)
    effective = catalog_effective_price(product)
    discount = pricing.auto_discount(qty, unit_price, effective)
    line = StandardLine(
        id=_new_id(),
        product_id=product.id,
        product_name=product.name,
        sale_type=product.sale_type,
        unit=product.unit,
        qty=qty,
        unit_price=unit_price,
        effective_unit_price=effective,
        discount=discount,
        discount_auto_detected=discount > 0,
        stock_units=product.stock_units if has_stock_control(product) else None,
    )
    return cart.model_copy(update={"lines": cart.lines + (line,)})


def add_batch(cart: CartState, product, batch, discount: float = 0) -> CartState:
    if batch.product_id != product.id:
        raise BatchUnavailableError("Batch does not belong to this product")
    if batch.is_sold or (batch.is_reserved and batch.reserved_order_id != cart.order_id):
        raise BatchUnavailableError(f"Batch {batch.batch_number} is no longer available")
    if batch.id in batch_ids(cart):
        raise BatchUnavailableError(f"Batch {batch.batch_number} is already in the cart")

    line = BatchLine(
        id=_new_id(),
        product_id=product.id,
        product_name=product.name,
        sale_type=product.sale_type,
        unit=product.unit,
        batch_id=batch.id,
        batch_number=batch.batch_number,
        actual_weight=pricing.to_number(batch.actual_weight),
        fixed_price=pricing.to_number(batch.unit_price),
        catalog_price=pricing.to_number(product.price),
    )
    cart = cart.model_copy(update={"lines": cart.lines + (line,)})
    if discount:
        cart = apply_discount(cart, line.id, discount)
    return cart


def add_scanned(cart: CartState, product, barcode: str, weight_kg: float,
                effective_unit_price: Optional[float] = None) -> CartState:
    unit_price = pricing.to_number(product.price)
    discount = pricing.auto_discount(weight_kg, unit_price, effective_unit_price)
    line = ScannedLine(
        id=_new_id(),
        product_id=product.id,
        product_name=product.name,
        sale_type=product.sale_type,
        unit=product.unit,
        scanned_barcode=barcode,
        qty=weight_kg,
        unit_price=unit_price,
        effective_unit_price=effective_unit_price,
        discount=discount,
        discount_auto_detected=discount > 0,
    )
    return cart.model_copy(update={"lines": cart.lines + (line,)})


def add_order_line(cart: CartState, product, qty: float, unit_price: float, discount: float = 0) -> CartState:
    """Standard line carried over from a reservation, priced as agreed."""
    line = StandardLine(
        id=_new_id(),
        product_id=product.id,
        product_name=product.name,
        sale_type=product.sale_type,
        unit=product.unit,
        qty=qty,
        unit_price=pricing.to_number(unit_price),
        stock_units=product.stock_units if has_stock_control(product) else None,
    )
    cart = cart.model_copy(update={"lines": cart.lines + (line,)})
    if discount:
        cart = apply_discount(cart, line.id, discount)
    return cart


# ---- quantity edits ----

def set_quantity(cart: CartState, line_id: str, qty: float) -> CartState:
    line = _editable(cart, line_id)
    if qty <= 0:
        raise CartError("Quantity must be greater than zero")
    return _replace(cart, _with_qty(line, qty))


def increment(cart: CartState, line_id: str) -> CartState:
    line = _editable(cart, line_id)
    new_qty = line.qty + step_for(line.sale_type)
    if line.stock_units is not None and new_qty > line.stock_units:
        raise InsufficientStockError(
            f"Insufficient stock, only {line.stock_units} units of {line.product_name} available"
        )
    return _replace(cart, _with_qty(line, new_qty))


def decrement(cart: CartState, line_id: str) -> CartState:
    line = _editable(cart, line_id)
    new_qty = line.qty - step_for(line.sale_type)
    if new_qty <= 0:
        return cart
    return _replace(cart, _with_qty(line, new_qty))


def set_qty_input(cart: CartState, line_id: str, raw: str) -> CartState:
    _editable(cart, line_id)
    inputs = dict(cart.qty_inputs)
    inputs[line_id] = raw
    return cart.model_copy(update={"qty_inputs": inputs})


def input_value(cart: CartState, line_id: str) -> str:
    line = _find(cart, line_id)
    if line_id in cart.qty_inputs:
        return cart.qty_inputs[line_id]
    return format_quantity(line.qty, line.sale_type)


def commit_qty_input(cart: CartState, line_id: str) -> CartState:
    line = _editable(cart, line_id)
    qty = normalize_quantity(cart.qty_inputs.get(line_id, ""), line.sale_type)

    if line.stock_units is not None and qty > line.stock_units:
        if line.stock_units <= 0:
            raise InsufficientStockError(f"No stock available for {line.product_name}")
        logger.warning(
            "Quantity %s for %s clamped to stock %s", qty, line.product_name, line.stock_units
        )
        qty = float(line.stock_units)

    cart = cart.model_copy(update={"qty_inputs": _drop_input(cart, line_id)})
    return _replace(cart, _with_qty(line, qty))


# ---- removal ----

def remove_line(cart: CartState, line_id: str) -> CartState:
    _find(cart, line_id)
    lines = tuple(l for l in cart.lines if l.id != line_id)
    return cart.model_copy(update={"lines": lines, "qty_inputs": _drop_input(cart, line_id)})


def clear(cart: CartState) -> CartState:
    return CartState(customer_id=cart.customer_id)


def set_customer(cart: CartState, customer_id: Optional[int]) -> CartState:
    return cart.model_copy(update={"customer_id": customer_id})


# ---- discounts ----

def apply_discount(cart: CartState, line_id: str, amount: float) -> CartState:
    line = _find(cart, line_id)
    if amount < 0:
        raise DiscountError("Discount cannot be negative")
    subtotal = pricing.line_subtotal(line)
    if amount > subtotal:
        raise DiscountError(f"Discount {amount} exceeds line subtotal {subtotal}")
    return _replace(cart, line.model_copy(update={
        "discount": pricing.round_currency(amount),
        "discount_auto_detected": False,
    }))


def apply_unit_price(cart: CartState, line_id: str, new_unit_price: float) -> CartState:
    """
    Charge a lower price per unit (per kg for batches) and book the difference
    as a manual discount.
    """
    line = _find(cart, line_id)
    if new_unit_price <= 0:
        raise DiscountError("Price must be greater than zero")

    if isinstance(line, BatchLine):
        if new_unit_price > line.catalog_price:
            raise DiscountError("New price cannot be higher than the original price")
        charged = pricing.round_currency(new_unit_price * line.actual_weight)
        if charged > line.fixed_price:
            raise DiscountError("New price cannot be higher than the package price")
        discount = line.fixed_price - charged
    else:
        if new_unit_price > line.unit_price:
            raise DiscountError("New price cannot be higher than the original price")
        charged = pricing.round_currency(line.qty * new_unit_price)
        discount = max(0.0, pricing.line_subtotal(line) - charged)

    return apply_discount(cart, line_id, discount)


# ---- reading ----

def totals(cart: CartState) -> pricing.CartTotals:
    return pricing.cart_totals(cart.lines)
