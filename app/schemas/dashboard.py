"""Pydantic schemas for the per-module dashboard cards."""

from __future__ import annotations

from pydantic import BaseModel

from app.schemas.supplier import InvoiceRead
from app.schemas.utility import UtilityBillRead


class CreditStats(BaseModel):
    total_customers: int
    total_outstanding: float
    total_collected: float


class UtilityStats(BaseModel):
    due_soon: list[UtilityBillRead]
    total_unpaid: float


class SectionSpend(BaseModel):
    name: str
    total: float


class ExpenditureStats(BaseModel):
    total: float
    by_top_sections: list[SectionSpend]


class OverdueSummary(BaseModel):
    count: int
    amount: float


class SupplierStats(BaseModel):
    overdue_summary: OverdueSummary
    due_soon: list[InvoiceRead]
