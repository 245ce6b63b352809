# backend/models/product.py
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Enum, ForeignKey, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base
from models.enums import SaleType, InventoryType

# Catalog entry sold at the counter.
# stock_units is only tracked for InventoryType.UNIT; NULL means no stock control.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    category = Column(String, nullable=True, index=True)

    # Barcode or scale PLU (6 digits for labels printed by the scale)
    barcode = Column(String, unique=True, nullable=True, index=True)

    sale_type = Column(Enum(SaleType), nullable=False, default=SaleType.UNIT)
    inventory_type = Column(Enum(InventoryType), nullable=False, default=InventoryType.UNIT)
    unit = Column(String, nullable=False, default="unidad")

    price = Column(Float, CheckConstraint("price >= 0"), nullable=False)
    cost_price = Column(Float, nullable=True)

    # Catalog level discount
    discount_price = Column(Float, nullable=True)
    discount_active = Column(Boolean, nullable=False, default=False)

    stock_units = Column(Integer, CheckConstraint("stock_units >= 0"), nullable=True)
    min_stock_alert = Column(Integer, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_favorite = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    batches = relationship("ProductBatch", back_populates="product", cascade="all, delete-orphan")


# A physically pre-weighed package (lot) of a vacuum-packed product.
# Weight and price are fixed at packing time.
class ProductBatch(Base):
    __tablename__ = "product_batches"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    batch_number = Column(String, unique=True, nullable=False, index=True)

    actual_weight = Column(Float, CheckConstraint("actual_weight > 0"), nullable=False)
    unit_price = Column(Float, CheckConstraint("unit_price >= 0"), nullable=False)
    unit_cost = Column(Float, nullable=True)

    # Lifecycle flags; claims are made with conditional updates on these columns
    is_sold = Column(Boolean, nullable=False, default=False, index=True)
    reserved_order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=True)

    packed_at = Column(DateTime(timezone=True), server_default=func.now())
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(String, nullable=True)

    product = relationship("Product", back_populates="batches")

    @property
    def is_reserved(self) -> bool:
        return self.reserved_order_id is not None
