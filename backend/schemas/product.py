# backend/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional, List
from datetime import datetime

from models.enums import SaleType, InventoryType


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Shared base attributes for product entities
class ProductBase(ORMBase):
    sku: str
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    barcode: Optional[str] = None
    sale_type: SaleType = SaleType.UNIT
    inventory_type: InventoryType = InventoryType.UNIT
    unit: str = "unidad"
    price: float = Field(ge=0)
    cost_price: Optional[float] = Field(default=None, ge=0)
    stock_units: Optional[int] = Field(default=None, ge=0)
    min_stock_alert: Optional[int] = Field(default=None, ge=0)
    is_active: bool = True
    is_favorite: bool = False


# Schema for creating a new product
class ProductCreate(ProductBase):

    @model_validator(mode="after")
    def _check_types(self):
        # Weighed cuts are priced per kg; packages are counted but need batches
        if self.inventory_type == InventoryType.WEIGHT and self.sale_type != SaleType.WEIGHT:
            raise ValueError("WEIGHT inventory requires WEIGHT sale type")
        if self.inventory_type != InventoryType.UNIT and self.stock_units is not None:
            raise ValueError("Stock units are only tracked for UNIT inventory")
        return self


# Schema for partial product updates
class ProductEditRequest(ORMBase):
    """Schema for PATCH requests - all fields optional."""
    sku: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    barcode: Optional[str] = None
    unit: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    cost_price: Optional[float] = Field(None, ge=0)
    stock_units: Optional[int] = Field(None, ge=0)
    min_stock_alert: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


# Catalog level discount
class ProductDiscountUpdate(BaseModel):
    discount_active: bool
    discount_price: Optional[float] = Field(None, ge=0)


# Full product representation including ID
class ProductOut(ProductBase):
    id: int
    discount_price: Optional[float] = None
    discount_active: bool = False
    created_at: Optional[datetime] = None


# Paginated response for product listings
class ProductListPage(ORMBase):
    items: List[ProductOut]
    total: int
    page: int
    page_size: int
