# backend/routes/orders.py
import logging
from datetime import datetime, date, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Query
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from database import get_db
from utils.tokenJWT import get_current_user, manager_required, role_required
from utils.audit import write_log, client_ip
from utils import cart_engine as engine
from utils import pricing
from utils.batches import reserve_for_order, release_order_reservations, sell_order_reservations
from models.users import User
from models.product import Product, ProductBatch
from models.customer import Customer
from models.order import Order, OrderItem
from models.sale import Sale
from models.enums import OrderStatus, InventoryType, UserRole
from schemas.cart import CartState
from schemas.order import (
    OrderCreate, OrderItemCreate, OrderOut, OrdersPage, OrderStatusPatch, OrderCancel,
    OrderUpdate, OrderStatistics,
)
from routes.cart import cart_http_error
from routes.sales import take_stock

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)

OPEN_STATUSES = (OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.READY)

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


def _price_item(db: Session, item: OrderItemCreate, order_id: Optional[int] = None):
    """Price one order line with the checkout rules; returns (product, batch, line).

    Batches already held by `order_id` count as available, so an order can be
    re-priced while it keeps its own packages.
    """
    product = db.query(Product).filter(Product.id == item.product_id, Product.is_active == True).first()  # noqa: E712
    if not product:
        raise HTTPException(status_code=404, detail=f"Product {item.product_id} not found")

    cart = CartState(order_id=order_id)
    batch = None
    if item.batch_id is not None:
        batch = db.query(ProductBatch).filter(ProductBatch.id == item.batch_id).first()
        if not batch:
            raise HTTPException(status_code=404, detail=f"Batch {item.batch_id} not found")
        state = engine.add_batch(cart, product, batch, item.discount)
    elif product.inventory_type == InventoryType.VACUUM_PACKED:
        raise engine.BatchSelectionRequired(f"{product.name} is sold by batch, pick a batch first")
    else:
        unit_price = item.unit_price if item.unit_price is not None else pricing.to_number(product.price)
        discount = item.discount
        if item.unit_price is None and not discount:
            discount = pricing.auto_discount(item.qty, unit_price, engine.catalog_effective_price(product))
        state = engine.add_order_line(cart, product, item.qty, unit_price, discount)

    return product, batch, state.lines[0]


def _build_items(db: Session, payload_items: List[OrderItemCreate], order_id: Optional[int] = None):
    """Price every payload line; returns (order items, batch ids). Engine rejections propagate."""
    batch_ids = set()
    items = []
    for item in payload_items:
        if item.batch_id is not None:
            if item.batch_id in batch_ids:
                raise HTTPException(status_code=400, detail=f"Batch {item.batch_id} appears twice")
            batch_ids.add(item.batch_id)
        product, batch, line = _price_item(db, item, order_id)
        items.append(OrderItem(
            product_id=product.id,
            batch_id=batch.id if batch else None,
            product_name=product.name,
            product_sku=product.sku,
            sale_type=product.sale_type,
            unit=product.unit,
            qty=line.qty,
            unit_price=line.unit_price,
            discount=line.discount,
            subtotal=pricing.line_subtotal(line),
            total=pricing.line_total(line),
            notes=item.notes,
        ))
    return items, batch_ids


def _order_totals(items: List[OrderItem]) -> dict:
    subtotal = sum(i.subtotal for i in items)
    discount = sum(i.discount for i in items)
    return {"subtotal": subtotal, "discount": discount, "total": pricing.round_currency(subtotal - discount)}


def _next_order_number(db: Session) -> int:
    last_number = db.query(func.max(Order.order_number)).scalar()
    return (last_number or 0) + 1


def _get_or_404(db: Session, order_id: int) -> Order:
    order = db.query(Order).options(joinedload(Order.items)).filter(Order.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def _cancel(db: Session, order: Order, reason: Optional[str]) -> int:
    released = release_order_reservations(db, order.id)
    order.status = OrderStatus.CANCELLED
    order.cancelled_at = datetime.now(timezone.utc)
    order.cancellation_reason = reason
    return released


def _hand_over(db: Session, order: Order) -> int:
    # Delivered without going through the counter: the order's goods leave the shop here
    sold = sell_order_reservations(db, order.id)
    for item in order.items:
        if item.batch_id is None and engine.has_stock_control(item.product):
            take_stock(db, item.product_id, item.qty)
    return sold


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    customer = db.query(Customer).filter(Customer.id == payload.customer_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")

    try:
        items, batch_ids = _build_items(db, payload.items)
    except engine.CartError as e:
        raise cart_http_error(e)

    totals = _order_totals(items)
    if payload.deposit > totals["total"]:
        raise HTTPException(status_code=400, detail="Deposit cannot exceed the order total")

    order = Order(
        order_number=_next_order_number(db),
        customer_id=customer.id,
        customer_name=customer.name,
        customer_phone=customer.phone,
        status=OrderStatus.PENDING,
        delivery_date=payload.delivery_date,
        delivery_time=payload.delivery_time,
        deposit=payload.deposit,
        notes=payload.notes,
        internal_notes=payload.internal_notes,
        created_by=current_user.id,
        items=items,
        **totals,
    )

    try:
        db.add(order)
        db.flush()
        for batch_id in batch_ids:
            reserve_for_order(db, batch_id, order.id)
        db.commit()
    except engine.CartError as e:
        db.rollback()
        raise cart_http_error(e)

    db.refresh(order)
    write_log(
        db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="SUCCESS",
        ip=client_ip(request),
        meta={"order_id": order.id, "number": order.order_number, "total": order.total,
              "batches": sorted(batch_ids)},
    )
    return order


@router.get("", response_model=OrdersPage)
def list_orders(
    status: Optional[OrderStatus] = Query(None),
    customer_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None, description="Delivery date from"),
    date_to: Optional[date] = Query(None, description="Delivery date to"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = db.query(Order)
    if status:
        q = q.filter(Order.status == status)
    if customer_id is not None:
        q = q.filter(Order.customer_id == customer_id)
    if date_from:
        q = q.filter(Order.delivery_date >= date_from)
    if date_to:
        q = q.filter(Order.delivery_date <= date_to)

    total = q.count()
    rows = (q.options(joinedload(Order.items))
            .order_by(Order.delivery_date.asc(), Order.order_number.asc())
            .offset((page - 1) * page_size).limit(page_size).all())
    return {"items": rows, "total": total, "page": page, "page_size": page_size}


# Open orders whose pickup date has passed
@router.get("/overdue", response_model=OrdersPage)
def list_overdue_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = db.query(Order).filter(Order.status.in_(OPEN_STATUSES), Order.delivery_date < date.today())
    total = q.count()
    rows = (q.options(joinedload(Order.items))
            .order_by(Order.delivery_date.asc())
            .offset((page - 1) * page_size).limit(page_size).all())
    return {"items": rows, "total": total, "page": page, "page_size": page_size}


# Counts and amounts per status, by delivery date
@router.get("/statistics", response_model=OrderStatistics)
def order_statistics(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    q = db.query(
        Order.status,
        func.count(Order.id),
        func.coalesce(func.sum(Order.total), 0),
        func.coalesce(func.sum(Order.deposit), 0),
    )
    overdue_q = db.query(func.count(Order.id)).filter(
        Order.status.in_(OPEN_STATUSES), Order.delivery_date < date.today()
    )
    if date_from:
        q = q.filter(Order.delivery_date >= date_from)
        overdue_q = overdue_q.filter(Order.delivery_date >= date_from)
    if date_to:
        q = q.filter(Order.delivery_date <= date_to)
        overdue_q = overdue_q.filter(Order.delivery_date <= date_to)

    by_status = {s.value: 0 for s in OrderStatus}
    open_orders, open_total, open_deposits, delivered_total = 0, 0.0, 0.0, 0.0
    for status, count, total, deposits in q.group_by(Order.status).all():
        by_status[status.value] = count
        if status in OPEN_STATUSES:
            open_orders += count
            open_total += float(total)
            open_deposits += float(deposits)
        elif status == OrderStatus.DELIVERED:
            delivered_total += float(total)

    return OrderStatistics(
        total_orders=sum(by_status.values()),
        by_status=by_status,
        open_orders=open_orders,
        open_total=pricing.round_currency(open_total),
        open_deposits=pricing.round_currency(open_deposits),
        delivered_total=pricing.round_currency(delivered_total),
        overdue=overdue_q.scalar() or 0,
    )


@router.get("/{order_id}", response_model=OrderOut)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_or_404(db, order_id)


@router.patch("/{order_id}", response_model=OrderOut)
def update_order(
    order_id: int,
    payload: OrderUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = _get_or_404(db, order_id)
    if order.status not in OPEN_STATUSES:
        raise HTTPException(status_code=400, detail=f"Cannot edit a {order.status.value} order")

    changes = payload.model_dump(exclude_unset=True, exclude={"items"})
    # Date and deposit are required columns; null leaves them as they are
    changes = {k: v for k, v in changes.items() if v is not None or k not in ("delivery_date", "deposit")}
    released, reserved = set(), set()
    try:
        if payload.items is not None:
            items, batch_ids = _build_items(db, payload.items, order.id)
            old_batch_ids = {i.batch_id for i in order.items if i.batch_id is not None}
            released = old_batch_ids - batch_ids
            reserved = batch_ids - old_batch_ids

            if released:
                (db.query(ProductBatch)
                 .filter(ProductBatch.id.in_(released), ProductBatch.reserved_order_id == order.id)
                 .update({ProductBatch.reserved_order_id: None}, synchronize_session="fetch"))
            for batch_id in reserved:
                reserve_for_order(db, batch_id, order.id)

            order.items = items
            for key, value in _order_totals(items).items():
                setattr(order, key, value)

        for key, value in changes.items():
            setattr(order, key, value)

        if order.deposit > order.total:
            raise HTTPException(status_code=400, detail="Deposit cannot exceed the order total")
        db.commit()
    except engine.CartError as e:
        db.rollback()
        raise cart_http_error(e)
    except HTTPException:
        db.rollback()
        raise

    db.refresh(order)
    write_log(
        db, user_id=current_user.id, action="ORDER_EDIT", resource="orders", status="SUCCESS",
        ip=client_ip(request),
        meta={"order_id": order.id, "fields": sorted(changes), "items": payload.items is not None,
              "batches_released": sorted(released), "batches_reserved": sorted(reserved)},
    )
    return order


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = _get_or_404(db, order_id)
    old_status, new_status = order.status, payload.status

    if new_status not in ALLOWED_TRANSITIONS[old_status]:
        raise HTTPException(
            status_code=400, detail=f"Cannot change status from {old_status.value} to {new_status.value}"
        )

    if new_status == OrderStatus.CANCELLED:
        _cancel(db, order, None)
    else:
        order.status = new_status
        now = datetime.now(timezone.utc)
        if new_status == OrderStatus.CONFIRMED:
            order.confirmed_at = now
        elif new_status == OrderStatus.DELIVERED:
            order.delivered_at = now
            try:
                sold = _hand_over(db, order)
            except HTTPException:
                db.rollback()
                raise
            logger.info("Order %s delivered without a sale, %s batch(es) sold", order.order_number, sold)
    db.commit()
    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
              ip=client_ip(request),
              meta={"order_id": order.id, "old": old_status.value, "new": new_status.value})

    db.refresh(order)
    return order


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    payload: OrderCancel,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = _get_or_404(db, order_id)
    if order.status not in OPEN_STATUSES:
        raise HTTPException(status_code=400, detail=f"Cannot cancel a {order.status.value} order")

    released = _cancel(db, order, payload.reason)
    db.commit()
    logger.info("Order %s cancelled, %s batch reservation(s) released", order.order_number, released)
    write_log(db, user_id=current_user.id, action="ORDER_CANCEL", resource="orders", status="SUCCESS",
              ip=client_ip(request),
              meta={"order_id": order.id, "reason": payload.reason, "batches_released": released})

    db.refresh(order)
    return order


@router.delete("/{order_id}", status_code=204)
def delete_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(UserRole.ADMIN)),
):
    order = _get_or_404(db, order_id)
    if db.query(Sale).filter(Sale.order_id == order.id).first():
        raise HTTPException(status_code=409, detail="Orders charged at the counter cannot be deleted")

    released = release_order_reservations(db, order.id)
    number = order.order_number
    db.delete(order)
    db.commit()
    write_log(db, user_id=current_user.id, action="ORDER_DELETE", resource="orders", status="SUCCESS",
              ip=client_ip(request),
              meta={"order_id": order_id, "number": number, "batches_released": released})
