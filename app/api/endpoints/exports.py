"""
Spreadsheet exports — every module's records as CSV or Excel downloads.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable, Sequence
from datetime import date
from typing import Any

import openpyxl
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.core.permissions import ModuleKey
from app.models.credit import CreditBill, CreditCustomer
from app.models.expenditure import (Expenditure, ExpenditureCategory,
                                    ExpenditureSection)
from app.models.supplier import SupplierInvoice
from app.models.user import User
from app.models.utility import UtilityBill

router = APIRouter(prefix="/export", tags=["export"])
logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

Table = tuple[list[str], list[list[Any]]]


def _fmt_date(value: date | None) -> str:
    return value.isoformat() if value else ""


# ── Writers ─────────────────────────────────────────────────────────
def _csv_response(filename: str, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> StreamingResponse:
    def iter_csv():
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(headers)
        yield buffer.getvalue()
        for row in rows:
            buffer.seek(0)
            buffer.truncate(0)
            writer.writerow(["" if v is None else v for v in row])
            yield buffer.getvalue()

    return StreamingResponse(
        iter_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _cell_value(value: Any) -> Any:
    # Worksheets reject ASCII control characters
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def _style_header(ws, headers: Sequence[str]) -> None:
    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF", size=11)
    border = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin"),
    )
    for col_num, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col_num, value=header)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = border
        ws.column_dimensions[get_column_letter(col_num)].width = max(len(header) + 5, 15)
    ws.freeze_panes = "A2"


def _xlsx_response(
    filename: str, title: str, headers: Sequence[str], rows: Iterable[Sequence[Any]]
) -> StreamingResponse:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = title
    _style_header(ws, headers)
    for row_num, row in enumerate(rows, 2):
        for col_num, value in enumerate(row, 1):
            ws.cell(row=row_num, column=col_num, value=_cell_value(value))

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return StreamingResponse(
        output,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ── Datasets ────────────────────────────────────────────────────────
async def _credit_bills(db: AsyncSession) -> Table:
    result = await db.execute(
        select(CreditBill, CreditCustomer.full_name)
        .join(CreditCustomer, CreditBill.customer_id == CreditCustomer.id)
        .order_by(CreditBill.bill_date.desc(), CreditBill.id.desc())
    )
    headers = ["ID", "Customer", "Bill No", "Bill Date", "Amount", "Status", "Paid Date"]
    rows = [
        [b.id, name, b.bill_no or "", _fmt_date(b.bill_date), b.amount, b.status, _fmt_date(b.paid_date)]
        for b, name in result.all()
    ]
    return headers, rows


async def _utility_bills(db: AsyncSession) -> Table:
    result = await db.execute(
        select(UtilityBill).order_by(UtilityBill.due_date.desc(), UtilityBill.id.desc())
    )
    headers = ["ID", "Branch", "Type", "Bill No", "Amount", "Due Date", "Status", "Paid Date"]
    rows = [
        [
            b.id,
            b.branch_name,
            b.bill_type,
            b.bill_no or "",
            b.amount,
            _fmt_date(b.due_date),
            b.status,
            _fmt_date(b.paid_date),
        ]
        for b in result.scalars().all()
    ]
    return headers, rows


async def _expenditures(db: AsyncSession) -> Table:
    result = await db.execute(
        select(Expenditure, ExpenditureSection.name, ExpenditureCategory.name)
        .join(ExpenditureSection, Expenditure.section_id == ExpenditureSection.id)
        .join(ExpenditureCategory, Expenditure.category_id == ExpenditureCategory.id)
        .order_by(Expenditure.expense_date.desc(), Expenditure.id.desc())
    )
    headers = ["ID", "Section", "Category", "Amount", "Date", "Description"]
    rows = [
        [e.id, section, category, e.amount, _fmt_date(e.expense_date), e.description or ""]
        for e, section, category in result.all()
    ]
    return headers, rows


async def _supplier_invoices(db: AsyncSession) -> Table:
    result = await db.execute(
        select(SupplierInvoice).order_by(
            SupplierInvoice.invoice_date.desc(), SupplierInvoice.id.desc()
        )
    )
    headers = [
        "ID",
        "Supplier",
        "GRN No",
        "Invoice No",
        "Invoice Date",
        "Amount",
        "Due Date",
        "Status",
    ]
    rows = [
        [
            i.id,
            i.supplier_name,
            i.grn_no or "",
            i.invoice_no,
            _fmt_date(i.invoice_date),
            i.amount,
            _fmt_date(i.due_date),
            i.status,
        ]
        for i in result.scalars().all()
    ]
    return headers, rows


# ── Routes ──────────────────────────────────────────────────────────
@router.get("/credit-bills.csv")
async def export_credit_bills_csv(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(ModuleKey.CREDIT_TO_COME, "view")),
) -> StreamingResponse:
    headers, rows = await _credit_bills(db)
    return _csv_response("credit-bills.csv", headers, rows)


@router.get("/credit-bills.xlsx")
async def export_credit_bills_xlsx(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(ModuleKey.CREDIT_TO_COME, "view")),
) -> StreamingResponse:
    headers, rows = await _credit_bills(db)
    return _xlsx_response("credit-bills.xlsx", "Credit Bills", headers, rows)


@router.get("/utility-bills.csv")
async def export_utility_bills_csv(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(
        require_permission(ModuleKey.DAILY_EXPENDITURE_UTILITIES, "view")
    ),
) -> StreamingResponse:
    headers, rows = await _utility_bills(db)
    return _csv_response("utility-bills.csv", headers, rows)


@router.get("/utility-bills.xlsx")
async def export_utility_bills_xlsx(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(
        require_permission(ModuleKey.DAILY_EXPENDITURE_UTILITIES, "view")
    ),
) -> StreamingResponse:
    headers, rows = await _utility_bills(db)
    return _xlsx_response("utility-bills.xlsx", "Utility Bills", headers, rows)


@router.get("/expenditures.csv")
async def export_expenditures_csv(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(
        require_permission(ModuleKey.DAILY_EXPENDITURE_TRACKER, "view")
    ),
) -> StreamingResponse:
    headers, rows = await _expenditures(db)
    return _csv_response("expenditures.csv", headers, rows)


@router.get("/expenditures.xlsx")
async def export_expenditures_xlsx(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(
        require_permission(ModuleKey.DAILY_EXPENDITURE_TRACKER, "view")
    ),
) -> StreamingResponse:
    headers, rows = await _expenditures(db)
    return _xlsx_response("expenditures.xlsx", "Expenditures", headers, rows)


@router.get("/supplier-invoices.csv")
async def export_supplier_invoices_csv(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(ModuleKey.GRN_CREDIT_REMINDER, "view")),
) -> StreamingResponse:
    headers, rows = await _supplier_invoices(db)
    return _csv_response("supplier-invoices.csv", headers, rows)


@router.get("/supplier-invoices.xlsx")
async def export_supplier_invoices_xlsx(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(require_permission(ModuleKey.GRN_CREDIT_REMINDER, "view")),
) -> StreamingResponse:
    headers, rows = await _supplier_invoices(db)
    logger.info("Supplier invoice workbook exported by user %s (%d rows)", _user.id, len(rows))
    return _xlsx_response("supplier-invoices.xlsx", "Supplier Invoices", headers, rows)
