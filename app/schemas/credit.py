"""Pydantic schemas for credit customers and their bills."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

CreditStatus = Literal["PAID", "UNPAID"]


# ── Customers ───────────────────────────────────────────────────────
class CustomerCreate(BaseModel):
    full_name: str = Field(max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("full_name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v


class CustomerUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("full_name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v


class CustomerRead(BaseModel):
    id: int
    full_name: str
    phone: str | None
    address: str | None
    notes: str | None
    created_at: datetime | None
    total_unpaid: float = 0.0

    model_config = {"from_attributes": True}


class CustomerDetail(CustomerRead):
    total_paid: float = 0.0


# ── Bills ───────────────────────────────────────────────────────────
class BillCreate(BaseModel):
    bill_no: str | None = Field(default=None, max_length=100)
    bill_date: date | None = None
    amount: float = Field(gt=0, allow_inf_nan=False)


class BillUpdate(BaseModel):
    bill_no: str | None = Field(default=None, max_length=100)
    bill_date: date | None = None
    amount: float | None = Field(default=None, gt=0, allow_inf_nan=False)


class BillRead(BaseModel):
    id: int
    customer_id: int
    bill_no: str | None
    bill_date: date | None
    amount: float
    status: CreditStatus
    paid_date: date | None
    attachment_url: str | None
    created_at: datetime | None

    model_config = {"from_attributes": True}
