# backend/routes/cart.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from utils import cart_engine as engine
from utils import pricing
from utils.barcode import parse_scale_barcode, price_per_kg
from utils.batches import load_available_batches
from models.users import User
from models.product import Product, ProductBatch
from models.cart import Cart
from models.customer import Customer
from models.order import Order
from models.enums import OrderStatus
from schemas.batch import BatchOut
from schemas.cart import (
    CartState, BatchLine, ScannedLine, StandardLine,
    CartAddProduct, CartAddBatch, CartScan, CartQtyUpdate, CartQtyInput,
    CartDiscount, CartUnitPrice, CartCustomer, CartOut, CartLineOut,
)

router = APIRouter(prefix="/cart", tags=["Cart"])
logger = logging.getLogger(__name__)

_ERROR_STATUS = {
    engine.LineNotFound: 404,
    engine.QuantityLockedError: 409,
    engine.BatchSelectionRequired: 409,
    engine.BatchUnavailableError: 409,
    engine.InsufficientStockError: 400,
    engine.DiscountError: 400,
}


def cart_http_error(err: engine.CartError) -> HTTPException:
    return HTTPException(status_code=_ERROR_STATUS.get(type(err), 400), detail=str(err))


def get_open_cart(db: Session, user_id: int) -> Cart:
    # Retrieve active cart or create a new one
    cart = db.query(Cart).filter(Cart.user_id == user_id, Cart.status == "open").first()
    if not cart:
        cart = Cart(user_id=user_id, status="open", state=CartState().model_dump(mode="json"))
        db.add(cart)
        db.commit()
        db.refresh(cart)
    return cart


def load_state(cart: Cart) -> CartState:
    return CartState.model_validate(cart.state or {})


def save_state(db: Session, cart: Cart, state: CartState) -> None:
    cart.state = state.model_dump(mode="json")
    db.commit()


def _line_out(state: CartState, line) -> CartLineOut:
    locked = not isinstance(line, StandardLine)
    return CartLineOut(
        id=line.id,
        kind=line.kind,
        product_id=line.product_id,
        product_name=line.product_name,
        sale_type=line.sale_type,
        unit=line.unit,
        qty=line.qty,
        unit_price=line.unit_price,
        effective_unit_price=line.effective_unit_price,
        display_unit_price=pricing.display_unit_price(line),
        price_scenario=pricing.price_scenario(line.unit_price, line.effective_unit_price),
        discount=line.discount,
        discount_auto_detected=line.discount_auto_detected,
        subtotal=pricing.line_subtotal(line),
        total=pricing.line_total(line),
        qty_locked=locked,
        input_value=None if locked else engine.input_value(state, line.id),
        batch_id=line.batch_id if isinstance(line, BatchLine) else None,
        batch_number=line.batch_number if isinstance(line, BatchLine) else None,
        actual_weight=line.actual_weight if isinstance(line, BatchLine) else None,
        scanned_barcode=line.scanned_barcode if isinstance(line, ScannedLine) else None,
    )


def cart_to_out(state: CartState) -> CartOut:
    totals = engine.totals(state)
    return CartOut(
        lines=[_line_out(state, l) for l in state.lines],
        subtotal=totals.subtotal,
        discount_total=totals.discount_total,
        total=totals.total,
        customer_id=state.customer_id,
        order_id=state.order_id,
    )


def _apply(db: Session, cart: Cart, op, *args) -> CartOut:
    # Run a cart operation and persist the new snapshot
    try:
        state = op(load_state(cart), *args)
    except engine.CartError as e:
        raise cart_http_error(e)
    save_state(db, cart, state)
    return cart_to_out(state)


def _product_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id, Product.is_active == True).first()  # noqa: E712
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    return cart_to_out(load_state(cart))


@router.post("/items", response_model=CartOut)
def add_to_cart(
    payload: CartAddProduct,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    product = _product_or_404(db, payload.product_id)
    return _apply(db, cart, engine.add_product, product)


# Batches the cashier can pick for a vacuum-packed product
@router.get("/batches/{product_id}", response_model=List[BatchOut])
def available_batches(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    state = load_state(cart)
    rows = load_available_batches(db, product_id, engine.batch_ids(state), order_id=state.order_id)
    return [BatchOut.model_validate(b) for b in rows]


@router.post("/batch", response_model=CartOut)
def add_batch_to_cart(
    payload: CartAddBatch,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    batch = db.query(ProductBatch).filter(ProductBatch.id == payload.batch_id).first()
    if not batch:
        raise HTTPException(status_code=404, detail="Batch not found")
    product = _product_or_404(db, batch.product_id)
    return _apply(db, cart, engine.add_batch, product, batch)


@router.post("/scan", response_model=CartOut)
def scan_barcode(
    payload: CartScan,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    code = payload.barcode.strip()
    scale = parse_scale_barcode(code)

    if scale is None:
        product = db.query(Product).filter(Product.barcode == code, Product.is_active == True).first()  # noqa: E712
        if not product:
            raise HTTPException(status_code=404, detail=f"Product not found: {code}")
        return _apply(db, cart, engine.add_product, product)

    product = db.query(Product).filter(
        Product.barcode == scale.product_code, Product.is_active == True  # noqa: E712
    ).first()
    if not product:
        raise HTTPException(status_code=404, detail=f"Product {scale.product_code} not found")
    if scale.weight_kg <= 0:
        raise HTTPException(status_code=400, detail="Scale label has no weight")

    # Compare the label total against the catalog price
    expected = pricing.round_currency(scale.weight_kg * pricing.to_number(product.price))
    diff = scale.total_price - expected
    effective = None
    if abs(diff) >= settings.SCALE_PRICE_TOLERANCE:
        effective = price_per_kg(scale.total_price, scale.weight_kg)
        logger.info("Scale price differs for %s: expected %s, label %s", product.name, expected, scale.total_price)
        write_log(
            db, user_id=current_user.id, action="SCALE_PRICE_MISMATCH", resource="cart", status="WARN",
            ip=client_ip(request),
            meta={"product_id": product.id, "barcode": scale.raw_barcode, "expected": expected,
                  "actual": scale.total_price, "diff": diff},
        )

    return _apply(db, cart, engine.add_scanned, product, scale.raw_barcode, scale.weight_kg, effective)


@router.put("/items/{line_id}/qty", response_model=CartOut)
def update_qty(
    line_id: str,
    payload: CartQtyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    return _apply(db, cart, engine.set_quantity, line_id, payload.qty)


@router.post("/items/{line_id}/increment", response_model=CartOut)
def increment_qty(
    line_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    return _apply(db, cart, engine.increment, line_id)


@router.post("/items/{line_id}/decrement", response_model=CartOut)
def decrement_qty(
    line_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    return _apply(db, cart, engine.decrement, line_id)


# Raw keystrokes are buffered and only applied on commit (blur / Enter)
@router.put("/items/{line_id}/qty-input", response_model=CartOut)
def buffer_qty_input(
    line_id: str,
    payload: CartQtyInput,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    return _apply(db, cart, engine.set_qty_input, line_id, payload.value)


@router.post("/items/{line_id}/qty-input/commit", response_model=CartOut)
def commit_qty_input(
    line_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    return _apply(db, cart, engine.commit_qty_input, line_id)


@router.put("/items/{line_id}/discount", response_model=CartOut)
def set_discount(
    line_id: str,
    payload: CartDiscount,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    out = _apply(db, cart, engine.apply_discount, line_id, payload.amount)
    write_log(db, user_id=current_user.id, action="CART_DISCOUNT", resource="cart", status="SUCCESS",
              ip=client_ip(request), meta={"line_id": line_id, "amount": payload.amount})
    return out


@router.put("/items/{line_id}/unit-price", response_model=CartOut)
def set_unit_price(
    line_id: str,
    payload: CartUnitPrice,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    out = _apply(db, cart, engine.apply_unit_price, line_id, payload.unit_price)
    write_log(db, user_id=current_user.id, action="CART_PRICE_OVERRIDE", resource="cart", status="SUCCESS",
              ip=client_ip(request), meta={"line_id": line_id, "unit_price": payload.unit_price})
    return out


@router.delete("/items/{line_id}", response_model=CartOut)
def delete_cart_item(
    line_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    return _apply(db, cart, engine.remove_line, line_id)


@router.delete("", response_model=CartOut)
def clear_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    return _apply(db, cart, engine.clear)


@router.put("/customer", response_model=CartOut)
def set_cart_customer(
    payload: CartCustomer,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = get_open_cart(db, current_user.id)
    if payload.customer_id is not None:
        if not db.query(Customer).filter(Customer.id == payload.customer_id).first():
            raise HTTPException(status_code=404, detail="Customer not found")
    return _apply(db, cart, engine.set_customer, payload.customer_id)


# Put a reservation into the cart so it can be charged
@router.post("/load-order/{order_id}", response_model=CartOut)
def load_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
        raise HTTPException(status_code=400, detail=f"Order is {order.status.value}")

    cart = get_open_cart(db, current_user.id)
    state = CartState(order_id=order.id, customer_id=order.customer_id)
    try:
        for item in order.items:
            if item.batch_id is not None:
                state = engine.add_batch(state, item.product, item.batch, item.discount)
            else:
                state = engine.add_order_line(state, item.product, item.qty, item.unit_price, item.discount)
    except engine.CartError as e:
        raise cart_http_error(e)

    save_state(db, cart, state)
    write_log(db, user_id=current_user.id, action="CART_LOAD_ORDER", resource="cart", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "lines": len(state.lines)})
    return cart_to_out(state)
