# backend/models/sale.py
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Enum, ForeignKey, func
from sqlalchemy.orm import relationship
from database import Base
from models.enums import SaleStatus, PaymentMethod, SaleType

class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    cash_session_id = Column(Integer, ForeignKey("cash_sessions.id"), nullable=False, index=True)
    cashier_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True)
    status = Column(Enum(SaleStatus), nullable=False, default=SaleStatus.COMPLETED, index=True)

    # Amounts in Bs, rounded to the integer unit
    subtotal = Column(Float, nullable=False)
    discount = Column(Float, nullable=False, default=0)
    total = Column(Float, nullable=False)

    payment_method = Column(Enum(PaymentMethod), nullable=False)
    cash_amount = Column(Float, nullable=True)
    card_amount = Column(Float, nullable=True)
    transfer_amount = Column(Float, nullable=True)
    change_amount = Column(Float, nullable=True)

    notes = Column(String, nullable=True)
    customer_name = Column(String, nullable=True)
    cancellation_reason = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")
    cash_session = relationship("CashSession")


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    batch_id = Column(Integer, ForeignKey("product_batches.id"), nullable=True)

    # Snapshots taken at checkout
    product_name = Column(String, nullable=False)
    sale_type = Column(Enum(SaleType), nullable=False)
    scanned_barcode = Column(String, nullable=True)
    qty = Column(Float, nullable=False)
    unit_price = Column(Float, nullable=False)
    effective_unit_price = Column(Float, nullable=True)
    discount = Column(Float, nullable=False, default=0)
    subtotal = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    # Units were taken off the shelf at checkout and go back on cancellation
    stock_taken = Column(Boolean, nullable=False, default=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")
