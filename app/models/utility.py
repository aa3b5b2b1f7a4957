"""
Utility bills (electricity, water, internet, …) per branch.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String

from app.db.base import Base


class UtilityBill(Base):
    __tablename__ = "utility_bills"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    branch_name: str = Column(String(255), nullable=False)  # type: ignore[assignment]
    bill_type: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    bill_no: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    amount: float = Column(Numeric(12, 2, asdecimal=False), nullable=False)  # type: ignore[assignment]
    due_date: date | None = Column(Date, nullable=True, index=True)  # type: ignore[assignment]
    notes: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    status: str = Column(String(10), nullable=False, default="UNPAID")  # type: ignore[assignment]
    # PAID | UNPAID
    paid_date: date | None = Column(Date, nullable=True)  # type: ignore[assignment]
    attachment_url: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
