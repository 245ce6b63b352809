# backend/schemas/sale.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from models.enums import SaleStatus, PaymentMethod, SaleType


class SaleCreate(BaseModel):
    terminal_id: str = Field(min_length=1)
    payment_method: PaymentMethod
    cash_amount: Optional[float] = Field(default=None, ge=0)
    card_amount: Optional[float] = Field(default=None, ge=0)
    transfer_amount: Optional[float] = Field(default=None, ge=0)
    # Defaults to the order loaded into the cart
    order_id: Optional[int] = None
    customer_name: Optional[str] = None
    notes: Optional[str] = None


class SaleCancel(BaseModel):
    reason: str = Field(min_length=3)


class SaleItemOut(BaseModel):
    id: int
    product_id: int
    batch_id: Optional[int] = None
    product_name: str
    sale_type: SaleType
    scanned_barcode: Optional[str] = None
    qty: float
    unit_price: float
    effective_unit_price: Optional[float] = None
    discount: float
    subtotal: float
    total: float

    model_config = ConfigDict(from_attributes=True)


class SaleOut(BaseModel):
    id: int
    cash_session_id: int
    cashier_id: int
    customer_id: Optional[int] = None
    order_id: Optional[int] = None
    status: SaleStatus
    subtotal: float
    discount: float
    total: float
    payment_method: PaymentMethod
    cash_amount: Optional[float] = None
    card_amount: Optional[float] = None
    transfer_amount: Optional[float] = None
    change_amount: Optional[float] = None
    customer_name: Optional[str] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    items: List[SaleItemOut] = []

    model_config = ConfigDict(from_attributes=True)


class SalesPage(BaseModel):
    items: List[SaleOut]
    total: int
    page: int
    page_size: int
