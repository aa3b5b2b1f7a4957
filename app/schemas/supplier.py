"""Pydantic schemas for supplier (GRN) invoices."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

InvoiceStatus = Literal["PAID", "UNPAID", "PENDING"]


class InvoiceCreate(BaseModel):
    supplier_name: str = Field(max_length=255)
    grn_no: str | None = Field(default=None, max_length=100)
    invoice_no: str = Field(max_length=100)
    invoice_date: date
    amount: float = Field(gt=0, allow_inf_nan=False)
    credit_days: int | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("supplier_name", "invoice_no")
    @classmethod
    def _required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field must not be empty")
        return v


class InvoiceUpdate(BaseModel):
    supplier_name: str | None = Field(default=None, min_length=1, max_length=255)
    grn_no: str | None = Field(default=None, max_length=100)
    invoice_no: str | None = Field(default=None, min_length=1, max_length=100)
    invoice_date: date | None = None
    amount: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    credit_days: int | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("supplier_name", "invoice_no")
    @classmethod
    def _required(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Field must not be empty")
        return v


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus


class InvoiceRead(BaseModel):
    id: int
    supplier_name: str
    grn_no: str | None
    invoice_no: str
    invoice_date: date
    amount: float
    credit_days: int
    due_date: date
    notes: str | None
    status: InvoiceStatus
    paid_date: date | None
    attachment_url: str | None
    created_at: datetime | None

    model_config = {"from_attributes": True}
