# backend/schemas/order.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional
from datetime import date, datetime

from models.enums import OrderStatus, SaleType


# Order line as sent by the reservation form (camelCase accepted)
class OrderItemCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int = Field(alias="productId")
    qty: float = Field(default=1, gt=0)
    notes: Optional[str] = None
    batch_id: Optional[int] = Field(default=None, alias="batchId")
    unit_price: Optional[float] = Field(default=None, gt=0, alias="unitPrice")
    discount: float = Field(default=0, ge=0)


class OrderCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_id: int = Field(alias="customerId")
    delivery_date: date = Field(alias="deliveryDate")
    delivery_time: Optional[str] = Field(default=None, pattern=r"^\d{2}:\d{2}$", alias="deliveryTime")
    deposit: float = Field(default=0, ge=0)
    notes: Optional[str] = None
    internal_notes: Optional[str] = Field(default=None, alias="internalNotes")
    items: List[OrderItemCreate] = Field(min_length=1)


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    batch_id: Optional[int] = None
    product_name: str
    product_sku: str
    sale_type: SaleType
    unit: str
    qty: float
    unit_price: float
    discount: float
    subtotal: float
    total: float
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    order_number: int
    customer_id: int
    customer_name: str
    customer_phone: Optional[str] = None
    status: OrderStatus
    delivery_date: date
    delivery_time: Optional[str] = None
    subtotal: float
    discount: float
    total: float
    deposit: float
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    created_by: int
    sale_id: Optional[int] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    items: List[OrderItemOut] = []

    model_config = ConfigDict(from_attributes=True)


class OrdersPage(BaseModel):
    items: List[OrderOut]
    total: int
    page: int
    page_size: int


class OrderStatusPatch(BaseModel):
    status: OrderStatus


class OrderCancel(BaseModel):
    reason: Optional[str] = None


# Partial edit of an open order; items, when sent, replace the current ones
class OrderUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    delivery_date: Optional[date] = Field(default=None, alias="deliveryDate")
    delivery_time: Optional[str] = Field(default=None, pattern=r"^\d{2}:\d{2}$", alias="deliveryTime")
    deposit: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
    internal_notes: Optional[str] = Field(default=None, alias="internalNotes")
    items: Optional[List[OrderItemCreate]] = Field(default=None, min_length=1)


class OrderStatistics(BaseModel):
    total_orders: int
    by_status: Dict[str, int]
    open_orders: int
    open_total: float
    open_deposits: float
    delivered_total: float
    overdue: int
