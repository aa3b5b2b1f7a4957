"""Pydantic schemas for utility bills."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

UtilityStatus = Literal["PAID", "UNPAID"]


class UtilityBillCreate(BaseModel):
    branch_name: str = Field(max_length=255)
    bill_type: str = Field(max_length=100)
    bill_no: str | None = Field(default=None, max_length=100)
    amount: float = Field(gt=0, allow_inf_nan=False)
    due_date: date | None = None
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("branch_name", "bill_type")
    @classmethod
    def _required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field must not be empty")
        return v


class UtilityBillUpdate(BaseModel):
    branch_name: str | None = Field(default=None, min_length=1, max_length=255)
    bill_type: str | None = Field(default=None, min_length=1, max_length=100)
    bill_no: str | None = Field(default=None, max_length=100)
    amount: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    due_date: date | None = None
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("branch_name", "bill_type")
    @classmethod
    def _required(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Field must not be empty")
        return v


class UtilityBillRead(BaseModel):
    id: int
    branch_name: str
    bill_type: str
    bill_no: str | None
    amount: float
    due_date: date | None
    notes: str | None
    status: UtilityStatus
    paid_date: date | None
    attachment_url: str | None
    created_at: datetime | None

    model_config = {"from_attributes": True}
