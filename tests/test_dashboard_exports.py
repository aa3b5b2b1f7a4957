"""Tests for dashboard cards and spreadsheet exports."""

import csv
import io
from datetime import date, timedelta

import openpyxl
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.endpoints.exports import XLSX_MEDIA_TYPE
from app.core.permissions import ModuleKey
from app.models.user import User
from conftest import grant


@pytest.mark.asyncio
async def test_credit_card(async_client: AsyncClient, admin_headers: dict):
    c = (await async_client.post("/api/credit/customers", json={"full_name": "A"}, headers=admin_headers)).json()
    await async_client.post("/api/credit/customers", json={"full_name": "B"}, headers=admin_headers)
    b1 = (await async_client.post(f"/api/credit/customers/{c['id']}/bills", json={"amount": 700}, headers=admin_headers)).json()
    await async_client.post(f"/api/credit/customers/{c['id']}/bills", json={"amount": 300}, headers=admin_headers)
    await async_client.patch(f"/api/credit/bills/{b1['id']}/mark-paid", headers=admin_headers)

    resp = await async_client.get("/api/dashboard/credit", headers=admin_headers)
    assert resp.json() == {"total_customers": 2, "total_outstanding": 300, "total_collected": 700}


@pytest.mark.asyncio
async def test_utilities_card(async_client: AsyncClient, admin_headers: dict):
    today = date.today()
    for offset, amount in [(2, 100), (30, 50)]:
        await async_client.post(
            "/api/utilities",
            json={
                "branch_name": "Main",
                "bill_type": "Water",
                "amount": amount,
                "due_date": (today + timedelta(days=offset)).isoformat(),
            },
            headers=admin_headers,
        )
    resp = await async_client.get("/api/dashboard/utilities", headers=admin_headers)
    data = resp.json()
    assert data["total_unpaid"] == 150
    assert [b["amount"] for b in data["due_soon"]] == [100]


@pytest.mark.asyncio
async def test_expenditure_card_range_needs_both_ends(async_client: AsyncClient, admin_headers: dict):
    section = (await async_client.post("/api/expenditure/sections", json={"name": "Ops"}, headers=admin_headers)).json()
    cat = (await async_client.post(f"/api/expenditure/sections/{section['id']}/categories", json={"name": "Fuel"}, headers=admin_headers)).json()
    for day, amount in [("2025-01-10", 100), ("2025-03-10", 40)]:
        await async_client.post(
            "/api/expenditure",
            json={"section_id": section["id"], "category_id": cat["id"], "amount": amount, "expense_date": day},
            headers=admin_headers,
        )

    everything = await async_client.get("/api/dashboard/expenditure?from=2025-03-01", headers=admin_headers)
    assert everything.json()["total"] == 140

    ranged = await async_client.get(
        "/api/dashboard/expenditure?from=2025-03-01&to=2025-03-31", headers=admin_headers
    )
    assert ranged.json() == {"total": 40, "by_top_sections": [{"name": "Ops", "total": 40}]}


@pytest.mark.asyncio
async def test_suppliers_card(async_client: AsyncClient, admin_headers: dict):
    today = date.today()
    for no, invoice_date, days in [
        ("LATE", today - timedelta(days=20), 10),
        ("SOON", today, 5),
    ]:
        await async_client.post(
            "/api/suppliers/invoices",
            json={
                "supplier_name": "Acme",
                "invoice_no": no,
                "invoice_date": invoice_date.isoformat(),
                "amount": 999,
                "credit_days": days,
            },
            headers=admin_headers,
        )
    data = (await async_client.get("/api/dashboard/suppliers", headers=admin_headers)).json()
    assert data["overdue_summary"] == {"count": 1, "amount": 999}
    assert [i["invoice_no"] for i in data["due_soon"]] == ["SOON"]


@pytest.mark.asyncio
async def test_dashboard_cards_are_gated_per_module(
    async_client: AsyncClient, db_session: AsyncSession, staff_user: User, staff_headers: dict
):
    await grant(db_session, staff_user, ModuleKey.DAILY_EXPENDITURE_TRACKER, can_view=True)
    assert (await async_client.get("/api/dashboard/expenditure", headers=staff_headers)).status_code == 200
    for card in ("credit", "utilities", "suppliers"):
        resp = await async_client.get(f"/api/dashboard/{card}", headers=staff_headers)
        assert resp.status_code == 403, card


# ── Exports ─────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_supplier_csv_export(async_client: AsyncClient, admin_headers: dict):
    await async_client.post(
        "/api/suppliers/invoices",
        json={
            "supplier_name": "Acme, Ltd",
            "invoice_no": "INV-9",
            "invoice_date": "2025-01-01",
            "amount": 120.5,
            "credit_days": 14,
        },
        headers=admin_headers,
    )
    resp = await async_client.get("/api/export/supplier-invoices.csv", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "supplier-invoices.csv" in resp.headers["content-disposition"]

    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[0][:4] == ["ID", "Supplier", "GRN No", "Invoice No"]
    assert rows[1][1] == "Acme, Ltd"
    assert rows[1][6] == "2025-01-15"


@pytest.mark.asyncio
async def test_credit_xlsx_export(async_client: AsyncClient, admin_headers: dict):
    c = (await async_client.post("/api/credit/customers", json={"full_name": "Nimal"}, headers=admin_headers)).json()
    await async_client.post(
        f"/api/credit/customers/{c['id']}/bills",
        json={"amount": 42, "bill_no": "CB-1", "bill_date": "2025-02-02"},
        headers=admin_headers,
    )
    resp = await async_client.get("/api/export/credit-bills.xlsx", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.headers["content-type"] == XLSX_MEDIA_TYPE

    ws = openpyxl.load_workbook(io.BytesIO(resp.content)).active
    assert ws.title == "Credit Bills"
    assert ws.cell(row=1, column=2).value == "Customer"
    assert ws.cell(row=2, column=2).value == "Nimal"
    assert ws.cell(row=2, column=5).value == 42


@pytest.mark.asyncio
async def test_empty_exports_have_headers_only(async_client: AsyncClient, admin_headers: dict):
    for name in ("credit-bills", "utility-bills", "expenditures", "supplier-invoices"):
        resp = await async_client.get(f"/api/export/{name}.csv", headers=admin_headers)
        assert resp.status_code == 200, name
        assert len(list(csv.reader(io.StringIO(resp.text)))) == 1


@pytest.mark.asyncio
async def test_exports_follow_view_permission(
    async_client: AsyncClient, db_session: AsyncSession, staff_user: User, staff_headers: dict
):
    await grant(db_session, staff_user, ModuleKey.DAILY_EXPENDITURE_UTILITIES, can_view=True)
    assert (await async_client.get("/api/export/utility-bills.xlsx", headers=staff_headers)).status_code == 200
    assert (await async_client.get("/api/export/expenditures.csv", headers=staff_headers)).status_code == 403


@pytest.mark.asyncio
async def test_xlsx_export_strips_control_characters(async_client: AsyncClient, admin_headers: dict):
    created = await async_client.post(
        "/api/utilities",
        json={"branch_name": "Main\x07Branch", "bill_type": "Power\x1b", "amount": 75},
        headers=admin_headers,
    )
    assert created.status_code == 201

    resp = await async_client.get("/api/export/utility-bills.xlsx", headers=admin_headers)
    assert resp.status_code == 200
    ws = openpyxl.load_workbook(io.BytesIO(resp.content)).active
    assert ws.cell(row=2, column=2).value == "MainBranch"
    assert ws.cell(row=2, column=3).value == "Power"
