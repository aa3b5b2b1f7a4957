"""
Dashboard cards — one summary per module, each gated on that module's view.
"""

from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.api.endpoints.suppliers import due_soon_filter, overdue_filter
from app.core.config import settings
from app.core.permissions import ModuleKey
from app.models.credit import CreditBill, CreditCustomer
from app.models.expenditure import Expenditure, ExpenditureSection
from app.models.supplier import SupplierInvoice
from app.models.user import User
from app.models.utility import UtilityBill
from app.schemas.dashboard import (CreditStats, ExpenditureStats,
                                   OverdueSummary, SectionSpend,
                                   SupplierStats, UtilityStats)
from app.schemas.supplier import InvoiceRead
from app.schemas.utility import UtilityBillRead

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/credit", response_model=CreditStats)
async def credit_stats(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(ModuleKey.CREDIT_TO_COME, "view")),
) -> CreditStats:
    result = await db.execute(
        select(
            func.count(func.distinct(CreditCustomer.id)),
            func.coalesce(
                func.sum(case((CreditBill.status == "UNPAID", CreditBill.amount), else_=0)), 0
            ),
            func.coalesce(
                func.sum(case((CreditBill.status == "PAID", CreditBill.amount), else_=0)), 0
            ),
        ).select_from(CreditCustomer).outerjoin(
            CreditBill, CreditBill.customer_id == CreditCustomer.id
        )
    )
    customers, outstanding, collected = result.one()
    return CreditStats(
        total_customers=customers or 0,
        total_outstanding=float(outstanding or 0),
        total_collected=float(collected or 0),
    )


@router.get("/utilities", response_model=UtilityStats)
async def utility_stats(
    days: int = Query(settings.DUE_SOON_DAYS, ge=0, le=365),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(
        require_permission(ModuleKey.DAILY_EXPENDITURE_UTILITIES, "view")
    ),
) -> UtilityStats:
    today = date.today()
    due_soon = await db.execute(
        select(UtilityBill)
        .where(
            UtilityBill.status == "UNPAID",
            UtilityBill.due_date >= today,
            UtilityBill.due_date <= today + timedelta(days=days),
        )
        .order_by(UtilityBill.due_date.asc())
    )
    total_unpaid = await db.execute(
        select(func.coalesce(func.sum(UtilityBill.amount), 0)).where(
            UtilityBill.status == "UNPAID"
        )
    )
    return UtilityStats(
        due_soon=[UtilityBillRead.model_validate(b) for b in due_soon.scalars().all()],
        total_unpaid=float(total_unpaid.scalar() or 0),
    )


@router.get("/expenditure", response_model=ExpenditureStats)
async def expenditure_stats(
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(
        require_permission(ModuleKey.DAILY_EXPENDITURE_TRACKER, "view")
    ),
) -> ExpenditureStats:
    """Total spend and the five biggest sections; the range applies only when both ends are given."""
    conditions = []
    if date_from and date_to:
        conditions = [Expenditure.expense_date >= date_from, Expenditure.expense_date <= date_to]

    total = await db.execute(
        select(func.coalesce(func.sum(Expenditure.amount), 0)).where(*conditions)
    )
    section_total = func.coalesce(func.sum(Expenditure.amount), 0).label("total")
    sections = await db.execute(
        select(ExpenditureSection.name, section_total)
        .join(ExpenditureSection, Expenditure.section_id == ExpenditureSection.id)
        .where(*conditions)
        .group_by(ExpenditureSection.name)
        .order_by(section_total.desc())
        .limit(5)
    )
    return ExpenditureStats(
        total=float(total.scalar() or 0),
        by_top_sections=[
            SectionSpend(name=name, total=float(amount or 0)) for name, amount in sections.all()
        ],
    )


@router.get("/suppliers", response_model=SupplierStats)
async def supplier_stats(
    days: int = Query(settings.DUE_SOON_DAYS, ge=0, le=365),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(ModuleKey.GRN_CREDIT_REMINDER, "view")),
) -> SupplierStats:
    overdue = await db.execute(
        select(
            func.count(SupplierInvoice.id),
            func.coalesce(func.sum(SupplierInvoice.amount), 0),
        ).where(*overdue_filter())
    )
    count, amount = overdue.one()
    due_soon = await db.execute(
        select(SupplierInvoice)
        .where(*due_soon_filter(days))
        .order_by(SupplierInvoice.due_date.asc())
    )
    return SupplierStats(
        overdue_summary=OverdueSummary(count=count or 0, amount=float(amount or 0)),
        due_soon=[InvoiceRead.model_validate(i) for i in due_soon.scalars().all()],
    )
