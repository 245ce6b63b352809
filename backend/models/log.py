# backend/models/log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Index, func
from sqlalchemy.orm import relationship
from database import Base

# Audit trail of cashier actions and notable events (price mismatches, stock clamps)
class Log(Base):
    __tablename__ = "logs"
    __table_args__ = (
        # GET /logs filters by resource and pages newest first
        Index("ix_logs_resource_ts", "resource", "ts"),
    )

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String(50), index=True)   # LOGIN, SALE_CREATE, SCALE_PRICE_MISMATCH, ...
    resource = Column(String(50), index=True)  # auth, cart, sales, orders, cash, ...
    status = Column(String(20), index=True)   # SUCCESS / FAIL / WARN
    ip = Column(String(64), nullable=True)

    # Event specific context (ids, amounts, before/after values)
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)
