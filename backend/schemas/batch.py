# backend/schemas/batch.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


class BatchCreate(BaseModel):
    product_id: int
    batch_number: str = Field(min_length=1)
    actual_weight: float = Field(gt=0)
    unit_price: float = Field(ge=0)
    unit_cost: Optional[float] = Field(None, ge=0)
    expiry_date: Optional[datetime] = None
    notes: Optional[str] = None


class BatchOut(BaseModel):
    id: int
    product_id: int
    batch_number: str
    actual_weight: float
    unit_price: float
    unit_cost: Optional[float] = None
    is_sold: bool
    # Only filled when reservation status was requested
    is_reserved: Optional[bool] = None
    packed_at: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
