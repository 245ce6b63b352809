# backend/schemas/cash.py
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List
from datetime import datetime

from models.enums import CashSessionStatus, CashMovementType


class CashSessionOpen(BaseModel):
    terminal_id: str = Field(min_length=1)
    opening_amount: float = Field(ge=0)
    notes: Optional[str] = None


class CashSessionClose(BaseModel):
    closing_amount: float = Field(ge=0)
    notes: Optional[str] = None


class CashMovementCreate(BaseModel):
    type: CashMovementType
    amount: float
    reason: str = Field(min_length=1)

    @model_validator(mode="after")
    def _check_amount(self):
        # Only adjustments may be negative
        if self.type != CashMovementType.ADJUSTMENT and self.amount <= 0:
            raise ValueError("Amount must be greater than zero")
        if self.amount == 0:
            raise ValueError("Amount cannot be zero")
        return self


class CashMovementOut(BaseModel):
    id: int
    cash_session_id: int
    type: CashMovementType
    amount: float
    reason: str
    created_by: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CashSessionOut(BaseModel):
    id: int
    terminal_id: str
    user_id: int
    status: CashSessionStatus
    opening_amount: float
    opening_notes: Optional[str] = None
    opened_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    closed_by_id: Optional[int] = None
    closing_notes: Optional[str] = None
    expected_amount: Optional[float] = None
    closing_amount: Optional[float] = None
    difference_amount: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class CashSessionPage(BaseModel):
    items: List[CashSessionOut]
    total: int
    page: int
    page_size: int


class CashSessionStats(BaseModel):
    session_id: int
    sales_count: int
    sales_total: float
    cash_sales: float
    card_sales: float
    transfer_sales: float
    deposits: float
    withdrawals: float
    adjustments: float
    expected_amount: float
