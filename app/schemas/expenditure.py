"""Pydantic schemas for expenditure sections, categories and spend rows."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator


class NameCreate(BaseModel):
    name: str = Field(max_length=255)

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class SectionRead(BaseModel):
    id: int
    name: str
    created_at: datetime | None

    model_config = {"from_attributes": True}


class CategoryRead(BaseModel):
    id: int
    section_id: int
    name: str
    created_at: datetime | None

    model_config = {"from_attributes": True}


class ExpenditureCreate(BaseModel):
    section_id: int = Field(gt=0)
    category_id: int = Field(gt=0)
    amount: float = Field(gt=0, allow_inf_nan=False)
    expense_date: date
    description: str | None = Field(default=None, max_length=1000)


class ExpenditureRead(BaseModel):
    id: int
    section_id: int
    category_id: int
    amount: float
    expense_date: date
    description: str | None
    attachment_url: str | None
    created_at: datetime | None
    section_name: str | None = None
    category_name: str | None = None

    model_config = {"from_attributes": True}


# ── Summary ─────────────────────────────────────────────────────────
class SectionTotal(BaseModel):
    section_id: int
    section_name: str
    total: float


class CategoryTotal(BaseModel):
    section_name: str
    category_name: str
    total: float


class MonthTotal(BaseModel):
    month: str  # YYYY-MM
    total: float


class ExpenditureSummary(BaseModel):
    grand_total: float
    totals_by_section: list[SectionTotal]
    totals_by_category: list[CategoryTotal]
    totals_by_month: list[MonthTotal]
