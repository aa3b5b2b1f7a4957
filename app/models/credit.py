"""
Credit customers and the bills they owe.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (Column, Date, DateTime, ForeignKey, Index, Integer,
                        Numeric, String)
from sqlalchemy.orm import relationship

from app.db.base import Base


class CreditCustomer(Base):
    __tablename__ = "credit_customers"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    full_name: str = Column(String(255), nullable=False)  # type: ignore[assignment]
    phone: str | None = Column(String(50), nullable=True)  # type: ignore[assignment]
    address: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    notes: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    bills = relationship(
        "CreditBill",
        back_populates="customer",
        cascade="all, delete-orphan",
    )


class CreditBill(Base):
    __tablename__ = "credit_bills"
    __table_args__ = (Index("ix_credit_bill_customer_status", "customer_id", "status"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    customer_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("credit_customers.id", ondelete="CASCADE"), nullable=False
    )
    bill_no: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    bill_date: date | None = Column(Date, nullable=True)  # type: ignore[assignment]
    amount: float = Column(Numeric(12, 2, asdecimal=False), nullable=False)  # type: ignore[assignment]
    status: str = Column(String(10), nullable=False, default="UNPAID")  # type: ignore[assignment]
    # PAID | UNPAID
    paid_date: date | None = Column(Date, nullable=True)  # type: ignore[assignment]
    attachment_url: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    customer = relationship("CreditCustomer", back_populates="bills")
