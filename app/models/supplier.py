"""
Supplier invoices received against a GRN, with a credit period.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String

from app.db.base import Base


class SupplierInvoice(Base):
    __tablename__ = "supplier_invoices"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    supplier_name: str = Column(String(255), nullable=False, index=True)  # type: ignore[assignment]
    grn_no: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    invoice_no: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    invoice_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    amount: float = Column(Numeric(12, 2, asdecimal=False), nullable=False)  # type: ignore[assignment]
    credit_days: int = Column(Integer, nullable=False, default=30)  # type: ignore[assignment]
    due_date: date = Column(Date, nullable=False, index=True)  # type: ignore[assignment]
    notes: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    status: str = Column(String(10), nullable=False, default="UNPAID")  # type: ignore[assignment]
    # PAID | UNPAID | PENDING
    paid_date: date | None = Column(Date, nullable=True)  # type: ignore[assignment]
    attachment_url: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
