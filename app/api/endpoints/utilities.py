"""
Utility bill endpoints — branch bills with due dates and calendar reminders.
"""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.core.ical import due_date_event
from app.core.permissions import ModuleKey
from app.core.uploads import save_upload
from app.models.user import User
from app.models.utility import UtilityBill
from app.schemas.common import DeleteResponse
from app.schemas.utility import (UtilityBillCreate, UtilityBillRead,
                                 UtilityBillUpdate, UtilityStatus)

MODULE = ModuleKey.DAILY_EXPENDITURE_UTILITIES

router = APIRouter(prefix="/utilities", tags=["utilities"])
logger = logging.getLogger(__name__)


async def _get_bill(db: AsyncSession, bill_id: int) -> UtilityBill:
    result = await db.execute(select(UtilityBill).where(UtilityBill.id == bill_id))
    bill = result.scalar_one_or_none()
    if bill is None:
        raise HTTPException(status_code=404, detail="Bill not found")
    return bill


@router.get("", response_model=list[UtilityBillRead])
async def list_bills(
    branch_name: str | None = Query(None),
    status: UtilityStatus | None = Query(None),
    start_date: date | None = Query(None, description="Due on or after"),
    end_date: date | None = Query(None, description="Due on or before"),
    search: str | None = Query(None, description="Branch, bill type or bill number"),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> list[UtilityBill]:
    stmt = select(UtilityBill)
    if branch_name:
        stmt = stmt.where(UtilityBill.branch_name.ilike(f"%{branch_name}%"))
    if status:
        stmt = stmt.where(UtilityBill.status == status)
    if start_date:
        stmt = stmt.where(UtilityBill.due_date >= start_date)
    if end_date:
        stmt = stmt.where(UtilityBill.due_date <= end_date)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(
                UtilityBill.branch_name.ilike(pattern),
                UtilityBill.bill_type.ilike(pattern),
                UtilityBill.bill_no.ilike(pattern),
            )
        )
    stmt = stmt.order_by(UtilityBill.due_date.asc(), UtilityBill.created_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


@router.post("", response_model=UtilityBillRead, status_code=201)
async def create_bill(
    body: UtilityBillCreate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "create")),
) -> UtilityBill:
    bill = UtilityBill(status="UNPAID", **body.model_dump())
    db.add(bill)
    await db.commit()
    await db.refresh(bill)
    logger.info("Utility bill %s created by user %s", bill.id, _user.id)
    return bill


@router.get("/{bill_id}", response_model=UtilityBillRead)
async def get_bill(
    bill_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> UtilityBill:
    return await _get_bill(db, bill_id)


@router.put("/{bill_id}", response_model=UtilityBillRead)
async def update_bill(
    bill_id: int,
    body: UtilityBillUpdate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> UtilityBill:
    bill = await _get_bill(db, bill_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is None and field in {"branch_name", "bill_type", "amount"}:
            continue
        setattr(bill, field, value)
    await db.commit()
    await db.refresh(bill)
    return bill


@router.delete("/{bill_id}", response_model=DeleteResponse)
async def delete_bill(
    bill_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "delete")),
) -> DeleteResponse:
    bill = await _get_bill(db, bill_id)
    await db.delete(bill)
    await db.commit()
    return DeleteResponse(success=True, message="Bill deleted")


@router.patch("/{bill_id}/mark-paid", response_model=UtilityBillRead)
async def mark_bill_paid(
    bill_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> UtilityBill:
    bill = await _get_bill(db, bill_id)
    bill.status = "PAID"
    bill.paid_date = date.today()
    await db.commit()
    await db.refresh(bill)
    return bill


@router.patch("/{bill_id}/mark-unpaid", response_model=UtilityBillRead)
async def mark_bill_unpaid(
    bill_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> UtilityBill:
    bill = await _get_bill(db, bill_id)
    bill.status = "UNPAID"
    bill.paid_date = None
    await db.commit()
    await db.refresh(bill)
    return bill


@router.post("/{bill_id}/attachment", response_model=UtilityBillRead)
async def upload_bill_attachment(
    bill_id: int,
    attachment: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> UtilityBill:
    bill = await _get_bill(db, bill_id)
    bill.attachment_url = await save_upload(attachment, "utility")
    await db.commit()
    await db.refresh(bill)
    return bill


@router.get("/{bill_id}/calendar.ics")
async def bill_calendar_event(
    bill_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> Response:
    """Download an all-day calendar reminder for the bill's due date."""
    bill = await _get_bill(db, bill_id)
    if bill.due_date is None:
        raise HTTPException(status_code=400, detail="This bill has no due date")

    body = due_date_event(
        uid=f"utility-{bill.id}@crediflow",
        due=bill.due_date,
        summary=f"{bill.bill_type} Due - {bill.branch_name}",
        description=(
            f"Bill No: {bill.bill_no or 'N/A'}\n"
            f"Amount: {bill.amount:.2f}\n"
            f"Notes: {bill.notes or ''}"
        ),
    )
    return Response(
        content=body,
        media_type="text/calendar",
        headers={"Content-Disposition": f"attachment; filename=utility-bill-{bill.id}.ics"},
    )
