"""
GRN credit reminder endpoints — supplier invoices and their due dates.

An invoice falls due ``credit_days`` calendar days after its invoice date.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.core.config import settings
from app.core.ical import due_date_event
from app.core.permissions import ModuleKey
from app.core.uploads import save_upload
from app.models.supplier import SupplierInvoice
from app.models.user import User
from app.schemas.common import DeleteResponse
from app.schemas.supplier import (InvoiceCreate, InvoiceRead, InvoiceStatus,
                                  InvoiceStatusUpdate, InvoiceUpdate)

MODULE = ModuleKey.GRN_CREDIT_REMINDER

router = APIRouter(prefix="/suppliers", tags=["suppliers"])
logger = logging.getLogger(__name__)


def calculate_due_date(invoice_date: date, credit_days: int) -> date:
    return invoice_date + timedelta(days=int(credit_days))


def due_soon_filter(days: int, today: date | None = None):
    """UNPAID invoices falling due within ``[today, today + days]``."""
    today = today or date.today()
    return (
        SupplierInvoice.status == "UNPAID",
        SupplierInvoice.due_date >= today,
        SupplierInvoice.due_date <= today + timedelta(days=days),
    )


def overdue_filter(today: date | None = None):
    today = today or date.today()
    return (
        SupplierInvoice.status == "UNPAID",
        SupplierInvoice.due_date < today,
    )


async def _get_invoice(db: AsyncSession, invoice_id: int) -> SupplierInvoice:
    result = await db.execute(select(SupplierInvoice).where(SupplierInvoice.id == invoice_id))
    invoice = result.scalar_one_or_none()
    if invoice is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


@router.get("/invoices", response_model=list[InvoiceRead])
async def list_invoices(
    supplier_name: str | None = Query(None),
    status: InvoiceStatus | None = Query(None),
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    search: str | None = Query(None, description="Invoice or GRN number"),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> list[SupplierInvoice]:
    stmt = select(SupplierInvoice)
    if supplier_name:
        stmt = stmt.where(SupplierInvoice.supplier_name.ilike(f"%{supplier_name}%"))
    if status:
        stmt = stmt.where(SupplierInvoice.status == status)
    if date_from:
        stmt = stmt.where(SupplierInvoice.invoice_date >= date_from)
    if date_to:
        stmt = stmt.where(SupplierInvoice.invoice_date <= date_to)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(
                SupplierInvoice.invoice_no.ilike(pattern),
                SupplierInvoice.grn_no.ilike(pattern),
            )
        )
    stmt = stmt.order_by(SupplierInvoice.due_date.asc(), SupplierInvoice.created_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


@router.post("/invoices", response_model=InvoiceRead, status_code=201)
async def create_invoice(
    body: InvoiceCreate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "create")),
) -> SupplierInvoice:
    data = body.model_dump()
    if data["credit_days"] is None:
        data["credit_days"] = settings.DEFAULT_CREDIT_DAYS
    invoice = SupplierInvoice(
        **data,
        due_date=calculate_due_date(data["invoice_date"], data["credit_days"]),
        status="UNPAID",
    )
    db.add(invoice)
    await db.commit()
    await db.refresh(invoice)
    logger.info(
        "Supplier invoice %s created by user %s, due %s",
        invoice.id,
        _user.id,
        invoice.due_date,
    )
    return invoice


@router.get("/invoices/due-soon", response_model=list[InvoiceRead])
async def invoices_due_soon(
    days: int = Query(settings.DUE_SOON_DAYS, ge=0, le=365),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> list[SupplierInvoice]:
    result = await db.execute(
        select(SupplierInvoice)
        .where(*due_soon_filter(days))
        .order_by(SupplierInvoice.due_date.asc())
    )
    return list(result.scalars().all())


@router.get("/invoices/overdue", response_model=list[InvoiceRead])
async def invoices_overdue(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> list[SupplierInvoice]:
    result = await db.execute(
        select(SupplierInvoice)
        .where(*overdue_filter())
        .order_by(SupplierInvoice.due_date.asc())
    )
    return list(result.scalars().all())


@router.get("/invoices/{invoice_id}", response_model=InvoiceRead)
async def get_invoice(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> SupplierInvoice:
    return await _get_invoice(db, invoice_id)


@router.put("/invoices/{invoice_id}", response_model=InvoiceRead)
async def update_invoice(
    invoice_id: int,
    body: InvoiceUpdate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> SupplierInvoice:
    """Partial update; the due date follows any change to date or credit days."""
    invoice = await _get_invoice(db, invoice_id)
    changes = {
        field: value
        for field, value in body.model_dump(exclude_unset=True).items()
        if value is not None or field in {"grn_no", "notes"}
    }
    for field, value in changes.items():
        setattr(invoice, field, value)
    if "invoice_date" in changes or "credit_days" in changes:
        invoice.due_date = calculate_due_date(invoice.invoice_date, invoice.credit_days)
    await db.commit()
    await db.refresh(invoice)
    return invoice


@router.patch("/invoices/{invoice_id}/mark-paid", response_model=InvoiceRead)
async def mark_invoice_paid(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> SupplierInvoice:
    invoice = await _get_invoice(db, invoice_id)
    invoice.status = "PAID"
    invoice.paid_date = date.today()
    await db.commit()
    await db.refresh(invoice)
    return invoice


@router.patch("/invoices/{invoice_id}/status", response_model=InvoiceRead)
async def update_invoice_status(
    invoice_id: int,
    body: InvoiceStatusUpdate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> SupplierInvoice:
    invoice = await _get_invoice(db, invoice_id)
    invoice.status = body.status
    invoice.paid_date = date.today() if body.status == "PAID" else None
    await db.commit()
    await db.refresh(invoice)
    return invoice


@router.delete("/invoices/{invoice_id}", response_model=DeleteResponse)
async def delete_invoice(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "delete")),
) -> DeleteResponse:
    invoice = await _get_invoice(db, invoice_id)
    await db.delete(invoice)
    await db.commit()
    logger.info("Supplier invoice %s deleted by user %s", invoice_id, _user.id)
    return DeleteResponse(success=True, message="Invoice deleted")


@router.post("/invoices/{invoice_id}/attachment", response_model=InvoiceRead)
async def upload_invoice_attachment(
    invoice_id: int,
    attachment: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> SupplierInvoice:
    invoice = await _get_invoice(db, invoice_id)
    invoice.attachment_url = await save_upload(attachment, "supplier")
    await db.commit()
    await db.refresh(invoice)
    return invoice


@router.get("/invoices/{invoice_id}/calendar.ics")
async def invoice_calendar_event(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> Response:
    invoice = await _get_invoice(db, invoice_id)
    body = due_date_event(
        uid=f"supplier-invoice-{invoice.id}@crediflow",
        due=invoice.due_date,
        summary=f"Payment Due - {invoice.supplier_name} ({invoice.invoice_no})",
        description=(
            f"GRN No: {invoice.grn_no or 'N/A'}\n"
            f"Amount: {invoice.amount:.2f}\n"
            f"Notes: {invoice.notes or ''}"
        ),
    )
    return Response(
        content=body,
        media_type="text/calendar",
        headers={
            "Content-Disposition": f"attachment; filename=supplier-invoice-{invoice.id}.ics"
        },
    )
