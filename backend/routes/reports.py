# routes/reports.py
from datetime import datetime, date, time
from typing import Optional, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, case
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import manager_required
from models.users import User
from models.product import Product
from models.sale import Sale, SaleItem
from models.enums import SaleStatus, PaymentMethod
from schemas.reports import (
    LowStockPage, LowStockItem,
    SalesSummaryResponse, SalesSummaryItem,
    ProductSalesResponse, ProductSalesItem,
)

router = APIRouter(prefix="/reports", tags=["Reports"])


def _completed_between(query, date_from: Optional[date], date_to: Optional[date]):
    query = query.filter(Sale.status == SaleStatus.COMPLETED)
    if date_from:
        query = query.filter(Sale.created_at >= datetime.combine(date_from, time.min))
    if date_to:
        query = query.filter(Sale.created_at <= datetime.combine(date_to, time.max))
    return query


def _split(method: PaymentMethod, mixed_column):
    # Whole total for single-method sales, the declared part for MIXED
    return func.coalesce(func.sum(case(
        (Sale.payment_method == method, Sale.total),
        (Sale.payment_method == PaymentMethod.MIXED, mixed_column),
        else_=0,
    )), 0.0)


# -----------------------------
# 1) Low stock
# -----------------------------
@router.get("/low-stock", response_model=LowStockPage)
def report_low_stock(
    threshold: int = Query(5, ge=0, description="Used when the product has no alert level"),
    q: Optional[str] = Query(None, description="Search by name or SKU"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    query = db.query(Product).filter(
        Product.is_active == True,  # noqa: E712
        Product.stock_units.isnot(None),
        Product.stock_units <= func.coalesce(Product.min_stock_alert, threshold),
    )
    if q:
        like = f"%{q}%"
        query = query.filter((Product.name.ilike(like)) | (Product.sku.ilike(like)))

    total = query.count()
    rows = (query
            .order_by(Product.stock_units.asc(), Product.name.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all())

    items: List[LowStockItem] = [
        LowStockItem(
            product_id=p.id,
            name=p.name,
            sku=p.sku,
            stock_units=p.stock_units,
            min_stock_alert=p.min_stock_alert,
        )
        for p in rows
    ]
    return {"items": items, "total": total, "page": page, "page_size": page_size}


# -----------------------------
# 2) Sales summary per day
# -----------------------------
@router.get("/sales-summary", response_model=SalesSummaryResponse)
def report_sales_summary(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    day = func.date(Sale.created_at)
    q = db.query(
        day.label("d"),
        func.count(Sale.id).label("sales"),
        func.coalesce(func.sum(Sale.total), 0.0).label("total_amount"),
        func.coalesce(func.sum(Sale.discount), 0.0).label("discount_amount"),
        _split(PaymentMethod.CASH, Sale.cash_amount).label("cash_amount"),
        _split(PaymentMethod.CARD, Sale.card_amount).label("card_amount"),
        _split(PaymentMethod.TRANSFER, Sale.transfer_amount).label("transfer_amount"),
    )
    q = _completed_between(q, date_from, date_to)
    rows = q.group_by(day).order_by(day.asc()).all()

    items: List[SalesSummaryItem] = [
        SalesSummaryItem(
            date=r.d,
            sales=r.sales,
            total_amount=float(r.total_amount),
            cash_amount=float(r.cash_amount),
            card_amount=float(r.card_amount),
            transfer_amount=float(r.transfer_amount),
            discount_amount=float(r.discount_amount),
        )
        for r in rows
    ]

    return SalesSummaryResponse(
        items=items,
        total_sales=sum(i.sales for i in items),
        total_amount=sum(i.total_amount for i in items),
        cash_amount=sum(i.cash_amount for i in items),
        card_amount=sum(i.card_amount for i in items),
        transfer_amount=sum(i.transfer_amount for i in items),
        date_from=date_from,
        date_to=date_to,
    )


# -----------------------------
# 3) Sales per product
# -----------------------------
@router.get("/product-sales", response_model=ProductSalesResponse)
def report_product_sales(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    total_col = func.coalesce(func.sum(SaleItem.total), 0.0)
    q = db.query(
        SaleItem.product_id,
        func.max(SaleItem.product_name).label("product_name"),
        func.count(SaleItem.id).label("lines"),
        func.coalesce(func.sum(SaleItem.qty), 0.0).label("qty"),
        total_col.label("total_amount"),
    ).join(Sale, Sale.id == SaleItem.sale_id)
    q = _completed_between(q, date_from, date_to)
    rows = q.group_by(SaleItem.product_id).order_by(total_col.desc()).limit(limit).all()

    items = [
        ProductSalesItem(
            product_id=r.product_id,
            product_name=r.product_name,
            lines=r.lines,
            qty=float(r.qty),
            total_amount=float(r.total_amount),
        )
        for r in rows
    ]
    return ProductSalesResponse(items=items, date_from=date_from, date_to=date_to)
