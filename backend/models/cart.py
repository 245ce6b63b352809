# backend/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, JSON, func
from database import Base

# Checkout cart of a cashier.
# The lines live in `state` as a serialized CartState snapshot; every change
# replaces the whole snapshot.
class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    status = Column(String, default="open", index=True)  # open / checked_out
    state = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
