"""
Daily expenditure tracker — sections, categories, spend rows and summaries.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.core.permissions import ModuleKey
from app.core.uploads import save_upload
from app.models.expenditure import (Expenditure, ExpenditureCategory,
                                    ExpenditureSection)
from app.models.user import User
from app.schemas.common import DeleteResponse
from app.schemas.expenditure import (CategoryRead, CategoryTotal,
                                     ExpenditureCreate, ExpenditureRead,
                                     ExpenditureSummary, MonthTotal,
                                     NameCreate, SectionRead, SectionTotal)

MODULE = ModuleKey.DAILY_EXPENDITURE_TRACKER

router = APIRouter(prefix="/expenditure", tags=["expenditure"])
logger = logging.getLogger(__name__)


def _joined_rows(
    section_id: int | None = None,
    category_id: int | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
):
    stmt = (
        select(Expenditure, ExpenditureSection.name, ExpenditureCategory.name)
        .join(ExpenditureSection, Expenditure.section_id == ExpenditureSection.id)
        .join(ExpenditureCategory, Expenditure.category_id == ExpenditureCategory.id)
    )
    if section_id:
        stmt = stmt.where(Expenditure.section_id == section_id)
    if category_id:
        stmt = stmt.where(Expenditure.category_id == category_id)
    if date_from:
        stmt = stmt.where(Expenditure.expense_date >= date_from)
    if date_to:
        stmt = stmt.where(Expenditure.expense_date <= date_to)
    return stmt


def _to_read(exp: Expenditure, section_name: str, category_name: str) -> ExpenditureRead:
    base = ExpenditureRead.model_validate(exp).model_dump(
        exclude={"section_name", "category_name"}
    )
    return ExpenditureRead(**base, section_name=section_name, category_name=category_name)


async def _get_section(db: AsyncSession, section_id: int) -> ExpenditureSection:
    result = await db.execute(
        select(ExpenditureSection).where(ExpenditureSection.id == section_id)
    )
    section = result.scalar_one_or_none()
    if section is None:
        raise HTTPException(status_code=404, detail="Section not found")
    return section


# ── Sections ────────────────────────────────────────────────────────
@router.get("/sections", response_model=list[SectionRead])
async def list_sections(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> list[ExpenditureSection]:
    result = await db.execute(select(ExpenditureSection).order_by(ExpenditureSection.name))
    return list(result.scalars().all())


@router.post("/sections", response_model=SectionRead, status_code=201)
async def create_section(
    body: NameCreate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "create")),
) -> ExpenditureSection:
    existing = await db.execute(
        select(ExpenditureSection).where(ExpenditureSection.name == body.name)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Section already exists")
    section = ExpenditureSection(name=body.name)
    db.add(section)
    await db.commit()
    await db.refresh(section)
    return section


@router.delete("/sections/{section_id}", response_model=DeleteResponse)
async def delete_section(
    section_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "delete")),
) -> DeleteResponse:
    """Delete a section with its categories and expenditures."""
    section = await _get_section(db, section_id)
    await db.delete(section)
    await db.commit()
    logger.info("Expenditure section %s deleted by user %s", section_id, _user.id)
    return DeleteResponse(success=True, message="Section deleted")


# ── Categories ──────────────────────────────────────────────────────
@router.get("/sections/{section_id}/categories", response_model=list[CategoryRead])
async def list_categories(
    section_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> list[ExpenditureCategory]:
    result = await db.execute(
        select(ExpenditureCategory)
        .where(ExpenditureCategory.section_id == section_id)
        .order_by(ExpenditureCategory.name)
    )
    return list(result.scalars().all())


@router.post(
    "/sections/{section_id}/categories", response_model=CategoryRead, status_code=201
)
async def create_category(
    section_id: int,
    body: NameCreate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "create")),
) -> ExpenditureCategory:
    await _get_section(db, section_id)
    category = ExpenditureCategory(section_id=section_id, name=body.name)
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return category


@router.delete("/categories/{category_id}", response_model=DeleteResponse)
async def delete_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "delete")),
) -> DeleteResponse:
    result = await db.execute(
        select(ExpenditureCategory).where(ExpenditureCategory.id == category_id)
    )
    category = result.scalar_one_or_none()
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    await db.delete(category)
    await db.commit()
    return DeleteResponse(success=True, message="Category deleted")


# ── Summary ─────────────────────────────────────────────────────────
@router.get("/summary", response_model=ExpenditureSummary)
async def expenditure_summary(
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> ExpenditureSummary:
    """Grand total plus breakdowns by section, category and month."""
    result = await db.execute(_joined_rows(date_from=date_from, date_to=date_to))

    grand_total = 0.0
    by_section: dict[int, list] = {}
    by_category: dict[int, list] = {}
    by_month: dict[str, float] = defaultdict(float)

    for exp, section_name, category_name in result.all():
        amount = float(exp.amount)
        grand_total += amount
        by_section.setdefault(exp.section_id, [section_name, 0.0])[1] += amount
        by_category.setdefault(exp.category_id, [section_name, category_name, 0.0])[2] += amount
        by_month[exp.expense_date.strftime("%Y-%m")] += amount

    return ExpenditureSummary(
        grand_total=round(grand_total, 2),
        totals_by_section=sorted(
            (
                SectionTotal(section_id=sid, section_name=name, total=round(total, 2))
                for sid, (name, total) in by_section.items()
            ),
            key=lambda t: t.total,
            reverse=True,
        ),
        totals_by_category=sorted(
            (
                CategoryTotal(section_name=s, category_name=c, total=round(total, 2))
                for s, c, total in by_category.values()
            ),
            key=lambda t: t.total,
            reverse=True,
        ),
        totals_by_month=[
            MonthTotal(month=month, total=round(by_month[month], 2))
            for month in sorted(by_month, reverse=True)
        ],
    )


# ── Expenditures ────────────────────────────────────────────────────
@router.get("", response_model=list[ExpenditureRead])
async def list_expenditures(
    section_id: int | None = Query(None),
    category_id: int | None = Query(None),
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> list[ExpenditureRead]:
    stmt = _joined_rows(section_id, category_id, date_from, date_to).order_by(
        Expenditure.expense_date.desc(), Expenditure.created_at.desc()
    )
    result = await db.execute(stmt)
    return [_to_read(exp, s, c) for exp, s, c in result.all()]


@router.post("", response_model=ExpenditureRead, status_code=201)
async def create_expenditure(
    body: ExpenditureCreate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "create")),
) -> ExpenditureRead:
    result = await db.execute(
        select(ExpenditureCategory, ExpenditureSection.name)
        .join(ExpenditureSection, ExpenditureCategory.section_id == ExpenditureSection.id)
        .where(
            ExpenditureCategory.id == body.category_id,
            ExpenditureCategory.section_id == body.section_id,
        )
    )
    row = result.one_or_none()
    if row is None:
        raise HTTPException(
            status_code=400,
            detail="Category does not belong to the specified section",
        )
    category, section_name = row

    expenditure = Expenditure(**body.model_dump())
    db.add(expenditure)
    await db.commit()
    await db.refresh(expenditure)
    return _to_read(expenditure, section_name, category.name)


@router.delete("/{expenditure_id}", response_model=DeleteResponse)
async def delete_expenditure(
    expenditure_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "delete")),
) -> DeleteResponse:
    result = await db.execute(select(Expenditure).where(Expenditure.id == expenditure_id))
    expenditure = result.scalar_one_or_none()
    if expenditure is None:
        raise HTTPException(status_code=404, detail="Expenditure not found")
    await db.delete(expenditure)
    await db.commit()
    return DeleteResponse(success=True, message="Expenditure deleted")


@router.post("/{expenditure_id}/attachment", response_model=ExpenditureRead)
async def upload_expenditure_attachment(
    expenditure_id: int,
    attachment: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> ExpenditureRead:
    result = await db.execute(
        _joined_rows().where(Expenditure.id == expenditure_id)
    )
    row = result.one_or_none()
    if row is None:
        raise HTTPException(status_code=404, detail="Expenditure not found")
    expenditure, section_name, category_name = row
    expenditure.attachment_url = await save_upload(attachment, "expenditure")
    await db.commit()
    await db.refresh(expenditure)
    return _to_read(expenditure, section_name, category_name)
