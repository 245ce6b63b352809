# backend/schemas/cart.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from models.enums import SaleType


# Fields shared by every kind of cart line
class _LineBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    product_id: int
    product_name: str
    sale_type: SaleType
    unit: str
    discount: float = 0
    discount_auto_detected: bool = False


# Line entered from the catalog; quantity is editable
class StandardLine(_LineBase):
    kind: Literal["standard"] = "standard"
    qty: float
    unit_price: float
    effective_unit_price: Optional[float] = None
    # Stock snapshot of UNIT products with stock control
    stock_units: Optional[int] = None


# Line locked to one pre-weighed package; always exactly one package
class BatchLine(_LineBase):
    kind: Literal["batch"] = "batch"
    batch_id: int
    batch_number: str
    actual_weight: float
    fixed_price: float
    # Catalog price per kg, ceiling for manual price overrides
    catalog_price: float

    @property
    def qty(self) -> float:
        return 1.0

    @property
    def unit_price(self) -> float:
        return self.fixed_price

    @property
    def effective_unit_price(self) -> Optional[float]:
        return None


# Line decoded from a scale label; weight and price come from the label
class ScannedLine(_LineBase):
    kind: Literal["scanned"] = "scanned"
    scanned_barcode: str
    qty: float
    unit_price: float
    effective_unit_price: Optional[float] = None


CartLine = Annotated[Union[StandardLine, BatchLine, ScannedLine], Field(discriminator="kind")]


# Immutable snapshot of a checkout cart
class CartState(BaseModel):
    model_config = ConfigDict(frozen=True)

    lines: Tuple[CartLine, ...] = ()
    # Raw text typed into quantity fields, committed on blur
    qty_inputs: Dict[str, str] = Field(default_factory=dict)
    customer_id: Optional[int] = None
    order_id: Optional[int] = None


# ---- Requests ----

class CartAddProduct(BaseModel):
    product_id: int

class CartAddBatch(BaseModel):
    batch_id: int

class CartScan(BaseModel):
    barcode: str = Field(min_length=1)

class CartQtyUpdate(BaseModel):
    qty: float = Field(gt=0)

class CartQtyInput(BaseModel):
    value: str

class CartDiscount(BaseModel):
    amount: float = Field(ge=0)

class CartUnitPrice(BaseModel):
    unit_price: float = Field(gt=0)

class CartCustomer(BaseModel):
    customer_id: Optional[int] = None


# ---- Responses ----

class CartLineOut(BaseModel):
    id: str
    kind: str
    product_id: int
    product_name: str
    sale_type: SaleType
    unit: str
    qty: float
    unit_price: float
    effective_unit_price: Optional[float] = None
    display_unit_price: float
    price_scenario: str
    discount: float
    discount_auto_detected: bool
    subtotal: float
    total: float
    qty_locked: bool
    input_value: Optional[str] = None
    batch_id: Optional[int] = None
    batch_number: Optional[str] = None
    actual_weight: Optional[float] = None
    scanned_barcode: Optional[str] = None

class CartOut(BaseModel):
    lines: List[CartLineOut]
    subtotal: float
    discount_total: float
    total: float
    customer_id: Optional[int] = None
    order_id: Optional[int] = None
