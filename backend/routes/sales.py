# backend/routes/sales.py
import logging
from datetime import datetime, date, time, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session, joinedload

from database import get_db
from utils.tokenJWT import get_current_user, manager_required
from utils.audit import write_log, client_ip
from utils import cart_engine as engine
from utils import pricing
from utils.batches import (
    claim_for_sale, release_sale, release_order_reservations, restore_order_reservations,
)
from models.users import User
from models.product import Product
from models.cash import CashSession
from models.sale import Sale, SaleItem
from models.order import Order
from models.customer import Customer
from models.enums import CashSessionStatus, SaleStatus, PaymentMethod, OrderStatus
from schemas.cart import CartState, BatchLine, ScannedLine
from schemas.sale import SaleCreate, SaleCancel, SaleOut, SalesPage
from routes.cart import get_open_cart, load_state, cart_http_error

router = APIRouter(prefix="/sales", tags=["Sales"])
logger = logging.getLogger(__name__)


def _payment_split(payload: SaleCreate, total: float) -> dict:
    method = payload.payment_method

    if method == PaymentMethod.CASH:
        received = payload.cash_amount if payload.cash_amount is not None else total
        if received < total:
            raise HTTPException(status_code=400, detail=f"Cash received {received} is less than total {total}")
        return {"cash_amount": received, "change_amount": received - total}

    if method == PaymentMethod.CARD:
        return {"card_amount": total}

    if method == PaymentMethod.TRANSFER:
        return {"transfer_amount": total}

    parts = [payload.cash_amount or 0, payload.card_amount or 0, payload.transfer_amount or 0]
    if pricing.round_currency(sum(parts)) != total:
        raise HTTPException(status_code=400, detail=f"Payment amounts must add up to {total}")
    return {
        "cash_amount": parts[0], "card_amount": parts[1], "transfer_amount": parts[2], "change_amount": 0,
    }


def take_stock(db: Session, product_id: int, qty: float) -> bool:
    """Take units off the shelf under a row lock; False when the product has no stock control."""
    product = db.query(Product).filter(Product.id == product_id).with_for_update().first()
    if product is None or product.stock_units is None:
        return False
    if product.stock_units < qty:
        raise HTTPException(
            status_code=400,
            detail=f"Insufficient stock for {product.name}: {product.stock_units} left",
        )
    product.stock_units -= int(qty)
    return True


def _sale_item(line, stock_taken: bool = False) -> SaleItem:
    return SaleItem(
        product_id=line.product_id,
        batch_id=line.batch_id if isinstance(line, BatchLine) else None,
        product_name=line.product_name,
        sale_type=line.sale_type,
        scanned_barcode=line.scanned_barcode if isinstance(line, ScannedLine) else None,
        qty=line.qty,
        unit_price=line.unit_price,
        effective_unit_price=line.effective_unit_price,
        discount=line.discount,
        subtotal=pricing.line_subtotal(line),
        total=pricing.line_total(line),
        stock_taken=stock_taken,
    )


def _get_sale_or_404(db: Session, sale_id: int) -> Sale:
    sale = db.query(Sale).options(joinedload(Sale.items)).filter(Sale.id == sale_id).first()
    if not sale:
        raise HTTPException(status_code=404, detail="Sale not found")
    return sale


# Charge the current cart
@router.post("", response_model=SaleOut, status_code=201)
def create_sale(
    payload: SaleCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    session = db.query(CashSession).filter(
        CashSession.terminal_id == payload.terminal_id, CashSession.status == CashSessionStatus.OPEN
    ).first()
    if not session:
        raise HTTPException(status_code=400, detail="No open cash session for this terminal")

    cart = get_open_cart(db, current_user.id)
    state = load_state(cart)
    if not state.lines:
        raise HTTPException(status_code=400, detail="Cart is empty")
    if any(l.qty <= 0 for l in state.lines):
        raise HTTPException(status_code=400, detail="All quantities must be greater than zero")

    order_id = payload.order_id or state.order_id
    order = None
    if order_id is not None:
        order = db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
        if order.status in (OrderStatus.DELIVERED, OrderStatus.CANCELLED):
            raise HTTPException(status_code=400, detail=f"Order is {order.status.value}")

    customer_name = payload.customer_name
    if state.customer_id is not None and not customer_name:
        customer = db.query(Customer).filter(Customer.id == state.customer_id).first()
        customer_name = customer.name if customer else None

    totals = engine.totals(state)
    sale = Sale(
        cash_session_id=session.id,
        cashier_id=current_user.id,
        customer_id=state.customer_id,
        order_id=order_id,
        status=SaleStatus.COMPLETED,
        subtotal=totals.subtotal,
        discount=totals.discount_total,
        total=totals.total,
        payment_method=payload.payment_method,
        customer_name=customer_name,
        notes=payload.notes,
        **_payment_split(payload, totals.total),
    )

    try:
        db.add(sale)
        db.flush()

        for line in state.lines:
            stock_taken = False
            if isinstance(line, BatchLine):
                claim_for_sale(db, line.batch_id, sale.id, order_id=order_id)
            elif getattr(line, "stock_units", None) is not None:
                stock_taken = take_stock(db, line.product_id, line.qty)
            sale.items.append(_sale_item(line, stock_taken))

        if order is not None:
            # Packages dropped from the cart go back to the counter
            release_order_reservations(db, order.id)
            order.status = OrderStatus.DELIVERED
            order.delivered_at = datetime.now(timezone.utc)
            order.sale_id = sale.id

        cart.state = CartState().model_dump(mode="json")
        db.commit()
    except engine.CartError as e:
        db.rollback()
        raise cart_http_error(e)
    except HTTPException:
        db.rollback()
        raise

    db.refresh(sale)
    logger.info("Sale %s completed: total %s via %s", sale.id, sale.total, sale.payment_method.value)
    write_log(
        db, user_id=current_user.id, action="SALE_CREATE", resource="sales", status="SUCCESS",
        ip=client_ip(request),
        meta={"sale_id": sale.id, "total": sale.total, "payment": sale.payment_method.value,
              "order_id": order_id, "lines": len(sale.items)},
    )
    return sale


@router.get("", response_model=SalesPage)
def list_sales(
    cash_session_id: Optional[int] = Query(None),
    status: Optional[SaleStatus] = Query(None),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Sale)
    if cash_session_id is not None:
        query = query.filter(Sale.cash_session_id == cash_session_id)
    if status:
        query = query.filter(Sale.status == status)
    if date_from:
        query = query.filter(Sale.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        query = query.filter(Sale.created_at <= datetime.combine(date_to, time.max))

    total = query.count()
    rows = (query.options(joinedload(Sale.items))
            .order_by(Sale.created_at.desc(), Sale.id.desc())
            .offset((page - 1) * page_size).limit(page_size).all())
    return {"items": rows, "total": total, "page": page, "page_size": page_size}


@router.get("/{sale_id}", response_model=SaleOut)
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_sale_or_404(db, sale_id)


@router.patch("/{sale_id}/cancel", response_model=SaleOut)
def cancel_sale(
    sale_id: int,
    payload: SaleCancel,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    sale = _get_sale_or_404(db, sale_id)
    if sale.status == SaleStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Sale is already cancelled")

    # Put units back on the shelf
    for item in sale.items:
        if item.stock_taken:
            product = db.query(Product).filter(Product.id == item.product_id).with_for_update().first()
            if product and product.stock_units is not None:
                product.stock_units += int(item.qty)

    released = release_sale(db, sale.id)

    # A charged reservation goes back to waiting for pickup
    if sale.order_id is not None:
        order = db.query(Order).filter(Order.id == sale.order_id).first()
        if order and order.status == OrderStatus.DELIVERED:
            order.status = OrderStatus.READY
            order.delivered_at = None
            order.sale_id = None
            restore_order_reservations(db, order.id, [i.batch_id for i in order.items if i.batch_id is not None])

    sale.status = SaleStatus.CANCELLED
    sale.cancellation_reason = payload.reason
    sale.cancelled_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(sale)

    write_log(
        db, user_id=current_user.id, action="SALE_CANCEL", resource="sales", status="SUCCESS",
        ip=client_ip(request),
        meta={"sale_id": sale.id, "reason": payload.reason, "batches_released": released},
    )
    return sale
