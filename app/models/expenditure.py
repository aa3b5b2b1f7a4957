"""
Discretionary expenditure — sections, their categories, and spend rows.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (Column, Date, DateTime, ForeignKey, Integer, Numeric,
                        String, UniqueConstraint)
from sqlalchemy.orm import relationship

from app.db.base import Base


class ExpenditureSection(Base):
    __tablename__ = "expenditure_sections"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(255), unique=True, nullable=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    categories = relationship(
        "ExpenditureCategory",
        back_populates="section",
        cascade="all, delete-orphan",
    )
    expenditures = relationship(
        "Expenditure",
        back_populates="section",
        cascade="all, delete-orphan",
    )


class ExpenditureCategory(Base):
    __tablename__ = "expenditure_categories"
    __table_args__ = (UniqueConstraint("section_id", "name", name="uq_category_section_name"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    section_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("expenditure_sections.id", ondelete="CASCADE"), nullable=False
    )
    name: str = Column(String(255), nullable=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    section = relationship("ExpenditureSection", back_populates="categories")
    expenditures = relationship(
        "Expenditure",
        back_populates="category",
        cascade="all, delete-orphan",
    )


class Expenditure(Base):
    __tablename__ = "expenditures"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    section_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("expenditure_sections.id", ondelete="CASCADE"), nullable=False
    )
    category_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("expenditure_categories.id", ondelete="CASCADE"), nullable=False
    )
    amount: float = Column(Numeric(12, 2, asdecimal=False), nullable=False)  # type: ignore[assignment]
    expense_date: date = Column(Date, nullable=False, index=True)  # type: ignore[assignment]
    description: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    attachment_url: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    section = relationship("ExpenditureSection", back_populates="expenditures")
    category = relationship("ExpenditureCategory", back_populates="expenditures")
