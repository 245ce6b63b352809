# backend/models/order.py
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Date, Enum, func
from sqlalchemy.orm import relationship
from database import Base
from models.enums import OrderStatus, SaleType

# Customer reservation to be picked up (and charged) on a delivery date
class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(Integer, unique=True, nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    # Snapshot of the customer for history
    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=True)

    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.PENDING, index=True)
    delivery_date = Column(Date, nullable=False, index=True)
    delivery_time = Column(String, nullable=True)  # HH:MM

    subtotal = Column(Float, nullable=False)
    discount = Column(Float, nullable=False, default=0)
    total = Column(Float, nullable=False)
    deposit = Column(Float, nullable=False, default=0)

    notes = Column(String, nullable=True)
    internal_notes = Column(String, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    # Set when the order is charged at the counter
    sale_id = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(String, nullable=True)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    batch_id = Column(Integer, ForeignKey("product_batches.id"), nullable=True)

    product_name = Column(String, nullable=False)
    product_sku = Column(String, nullable=False)
    sale_type = Column(Enum(SaleType), nullable=False)
    unit = Column(String, nullable=False)

    qty = Column(Float, nullable=False)
    unit_price = Column(Float, nullable=False)
    discount = Column(Float, nullable=False, default=0)
    subtotal = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    notes = Column(String, nullable=True)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
    batch = relationship("ProductBatch")
