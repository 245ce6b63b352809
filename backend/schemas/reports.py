# schemas/reports.py
from datetime import date
from typing import List, Optional
from pydantic import BaseModel

# Schemas for low stock alerting
class LowStockItem(BaseModel):
    product_id: int
    name: str
    sku: str
    stock_units: int
    min_stock_alert: Optional[int] = None

class LowStockPage(BaseModel):
    items: List[LowStockItem]
    total: int
    page: int
    page_size: int

# Daily takings with the payment split used for the cash count
class SalesSummaryItem(BaseModel):
    date: date
    sales: int
    total_amount: float
    cash_amount: float
    card_amount: float
    transfer_amount: float
    discount_amount: float

class SalesSummaryResponse(BaseModel):
    items: List[SalesSummaryItem]
    total_sales: int
    total_amount: float
    cash_amount: float
    card_amount: float
    transfer_amount: float
    date_from: Optional[date] = None
    date_to: Optional[date] = None

class ProductSalesItem(BaseModel):
    product_id: int
    product_name: str
    lines: int
    qty: float
    total_amount: float

class ProductSalesResponse(BaseModel):
    items: List[ProductSalesItem]
    date_from: Optional[date] = None
    date_to: Optional[date] = None
