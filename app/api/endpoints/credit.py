"""
Credit-to-come endpoints — customers on credit and their outstanding bills.

Adding a bill counts as *updating* the customer's credit record, so it is
gated on ``update`` rather than ``create``.
"""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.core.permissions import ModuleKey
from app.core.uploads import save_upload
from app.models.credit import CreditBill, CreditCustomer
from app.models.user import User
from app.schemas.common import DeleteResponse
from app.schemas.credit import (BillCreate, BillRead, BillUpdate,
                                CustomerCreate, CustomerDetail, CustomerRead,
                                CustomerUpdate)

MODULE = ModuleKey.CREDIT_TO_COME

router = APIRouter(prefix="/credit", tags=["credit"])
logger = logging.getLogger(__name__)

_unpaid_sum = func.coalesce(
    func.sum(case((CreditBill.status == "UNPAID", CreditBill.amount), else_=0)), 0
)
_paid_sum = func.coalesce(
    func.sum(case((CreditBill.status == "PAID", CreditBill.amount), else_=0)), 0
)


async def _get_customer(db: AsyncSession, customer_id: int) -> CreditCustomer:
    result = await db.execute(select(CreditCustomer).where(CreditCustomer.id == customer_id))
    customer = result.scalar_one_or_none()
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


async def _get_bill(db: AsyncSession, bill_id: int) -> CreditBill:
    result = await db.execute(select(CreditBill).where(CreditBill.id == bill_id))
    bill = result.scalar_one_or_none()
    if bill is None:
        raise HTTPException(status_code=404, detail="Bill not found")
    return bill


async def _customer_totals(db: AsyncSession, customer_id: int) -> tuple[float, float]:
    result = await db.execute(
        select(_unpaid_sum, _paid_sum).where(CreditBill.customer_id == customer_id)
    )
    unpaid, paid = result.one()
    return float(unpaid or 0), float(paid or 0)


async def _detail(db: AsyncSession, customer: CreditCustomer) -> CustomerDetail:
    unpaid, paid = await _customer_totals(db, customer.id)
    base = CustomerRead.model_validate(customer).model_dump(exclude={"total_unpaid"})
    return CustomerDetail(**base, total_unpaid=unpaid, total_paid=paid)


# ── Customers ───────────────────────────────────────────────────────
@router.get("/customers", response_model=list[CustomerRead])
async def list_customers(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> list[CustomerRead]:
    """All customers with their total unpaid amount, newest first."""
    result = await db.execute(
        select(CreditCustomer, _unpaid_sum)
        .outerjoin(CreditBill, CreditBill.customer_id == CreditCustomer.id)
        .group_by(CreditCustomer.id)
        .order_by(CreditCustomer.created_at.desc(), CreditCustomer.id.desc())
    )
    customers = []
    for customer, unpaid in result.all():
        base = CustomerRead.model_validate(customer).model_dump(exclude={"total_unpaid"})
        customers.append(CustomerRead(**base, total_unpaid=float(unpaid or 0)))
    return customers


@router.post("/customers", response_model=CustomerRead, status_code=201)
async def create_customer(
    body: CustomerCreate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "create")),
) -> CreditCustomer:
    customer = CreditCustomer(**body.model_dump())
    db.add(customer)
    await db.commit()
    await db.refresh(customer)
    logger.info("Credit customer %s created by user %s", customer.id, _user.id)
    return customer


@router.get("/customers/{customer_id}", response_model=CustomerDetail)
async def get_customer(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> CustomerDetail:
    customer = await _get_customer(db, customer_id)
    return await _detail(db, customer)


@router.put("/customers/{customer_id}", response_model=CustomerDetail)
async def update_customer(
    customer_id: int,
    body: CustomerUpdate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> CustomerDetail:
    customer = await _get_customer(db, customer_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if field == "full_name" and value is None:
            continue
        setattr(customer, field, value)
    await db.commit()
    await db.refresh(customer)
    return await _detail(db, customer)


@router.delete("/customers/{customer_id}", response_model=DeleteResponse)
async def delete_customer(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "delete")),
) -> DeleteResponse:
    """Delete a customer together with all of their bills."""
    customer = await _get_customer(db, customer_id)
    await db.delete(customer)
    await db.commit()
    logger.info("Credit customer %s deleted by user %s", customer_id, _user.id)
    return DeleteResponse(success=True, message="Customer deleted")


# ── Bills ───────────────────────────────────────────────────────────
@router.get("/customers/{customer_id}/bills", response_model=list[BillRead])
async def list_bills(
    customer_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "view")),
) -> list[CreditBill]:
    await _get_customer(db, customer_id)
    result = await db.execute(
        select(CreditBill)
        .where(CreditBill.customer_id == customer_id)
        .order_by(CreditBill.bill_date.desc(), CreditBill.created_at.desc())
    )
    return list(result.scalars().all())


@router.post("/customers/{customer_id}/bills", response_model=BillRead, status_code=201)
async def create_bill(
    customer_id: int,
    body: BillCreate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> CreditBill:
    await _get_customer(db, customer_id)
    bill = CreditBill(customer_id=customer_id, status="UNPAID", **body.model_dump())
    db.add(bill)
    await db.commit()
    await db.refresh(bill)
    return bill


@router.put("/bills/{bill_id}", response_model=BillRead)
async def update_bill(
    bill_id: int,
    body: BillUpdate,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> CreditBill:
    bill = await _get_bill(db, bill_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if field == "amount" and value is None:
            continue
        setattr(bill, field, value)
    await db.commit()
    await db.refresh(bill)
    return bill


@router.patch("/bills/{bill_id}/mark-paid", response_model=BillRead)
async def mark_bill_paid(
    bill_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> CreditBill:
    bill = await _get_bill(db, bill_id)
    bill.status = "PAID"
    bill.paid_date = date.today()
    await db.commit()
    await db.refresh(bill)
    return bill


@router.patch("/bills/{bill_id}/mark-unpaid", response_model=BillRead)
async def mark_bill_unpaid(
    bill_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> CreditBill:
    bill = await _get_bill(db, bill_id)
    bill.status = "UNPAID"
    bill.paid_date = None
    await db.commit()
    await db.refresh(bill)
    return bill


@router.delete("/bills/{bill_id}", response_model=DeleteResponse)
async def delete_bill(
    bill_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "delete")),
) -> DeleteResponse:
    bill = await _get_bill(db, bill_id)
    await db.delete(bill)
    await db.commit()
    return DeleteResponse(success=True, message="Bill deleted")


@router.post("/bills/{bill_id}/attachment", response_model=BillRead)
async def upload_bill_attachment(
    bill_id: int,
    attachment: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(MODULE, "update")),
) -> CreditBill:
    bill = await _get_bill(db, bill_id)
    bill.attachment_url = await save_upload(attachment, "credit")
    await db.commit()
    await db.refresh(bill)
    return bill
