# backend/models/cash.py
from sqlalchemy import Column, Integer, String, Float, DateTime, Enum, ForeignKey, func
from sqlalchemy.orm import relationship
from database import Base
from models.enums import CashSessionStatus, CashMovementType

# A terminal-scoped shift during which sales and cash movements accumulate
class CashSession(Base):
    __tablename__ = "cash_sessions"

    id = Column(Integer, primary_key=True, index=True)
    terminal_id = Column(String, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(Enum(CashSessionStatus), nullable=False, default=CashSessionStatus.OPEN, index=True)

    opening_amount = Column(Float, nullable=False, default=0)
    opening_notes = Column(String, nullable=True)
    opened_at = Column(DateTime(timezone=True), server_default=func.now())

    # Filled in when the drawer is counted
    closed_at = Column(DateTime(timezone=True), nullable=True)
    closed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    closing_notes = Column(String, nullable=True)
    expected_amount = Column(Float, nullable=True)
    closing_amount = Column(Float, nullable=True)
    difference_amount = Column(Float, nullable=True)

    user = relationship("User", foreign_keys=[user_id])
    movements = relationship("CashMovement", back_populates="session", cascade="all, delete-orphan")


class CashMovement(Base):
    __tablename__ = "cash_movements"

    id = Column(Integer, primary_key=True, index=True)
    cash_session_id = Column(Integer, ForeignKey("cash_sessions.id"), nullable=False, index=True)
    type = Column(Enum(CashMovementType), nullable=False)
    # Signed only for ADJUSTMENT; deposits and withdrawals are positive
    amount = Column(Float, nullable=False)
    reason = Column(String, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    session = relationship("CashSession", back_populates="movements")
