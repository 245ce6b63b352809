# backend/schemas/customer.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime


def _clean_phone(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    phone = "".join(ch for ch in v if ch.isdigit() or ch == "+")
    if len(phone) < 7:
        raise ValueError("Phone number is too short")
    return phone


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1)
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return _clean_phone(v)


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return _clean_phone(v)


class CustomerOut(BaseModel):
    id: int
    name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CustomerPage(BaseModel):
    items: List[CustomerOut]
    total: int
    page: int
    page_size: int
