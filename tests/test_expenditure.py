"""Tests for the expenditure tracker: sections, categories, spend and summaries."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import ModuleKey
from app.models.user import User
from conftest import grant

URL = "/api/expenditure"


async def _section(client: AsyncClient, headers: dict, name: str) -> dict:
    resp = await client.post(f"{URL}/sections", json={"name": name}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _category(client: AsyncClient, headers: dict, section_id: int, name: str) -> dict:
    resp = await client.post(
        f"{URL}/sections/{section_id}/categories", json={"name": name}, headers=headers
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _spend(client: AsyncClient, headers: dict, section: dict, category: dict, amount: float, day: str):
    resp = await client.post(
        URL,
        json={
            "section_id": section["id"],
            "category_id": category["id"],
            "amount": amount,
            "expense_date": day,
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
async def ledger(async_client: AsyncClient, admin_headers: dict) -> dict:
    kitchen = await _section(async_client, admin_headers, "Kitchen")
    office = await _section(async_client, admin_headers, "Office")
    gas = await _category(async_client, admin_headers, kitchen["id"], "Gas")
    veg = await _category(async_client, admin_headers, kitchen["id"], "Vegetables")
    paper = await _category(async_client, admin_headers, office["id"], "Stationery")
    await _spend(async_client, admin_headers, kitchen, gas, 4000, "2025-01-05")
    await _spend(async_client, admin_headers, kitchen, veg, 1250.5, "2025-01-20")
    await _spend(async_client, admin_headers, office, paper, 300, "2025-02-02")
    return {"kitchen": kitchen, "office": office, "gas": gas, "veg": veg, "paper": paper}


@pytest.mark.asyncio
async def test_duplicate_section_is_409(async_client: AsyncClient, admin_headers: dict):
    await _section(async_client, admin_headers, "Kitchen")
    resp = await async_client.post(f"{URL}/sections", json={"name": "Kitchen"}, headers=admin_headers)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_category_must_belong_to_section(
    async_client: AsyncClient, admin_headers: dict, ledger: dict
):
    resp = await async_client.post(
        URL,
        json={
            "section_id": ledger["office"]["id"],
            "category_id": ledger["gas"]["id"],
            "amount": 10,
            "expense_date": "2025-01-01",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Category does not belong to the specified section"


@pytest.mark.asyncio
async def test_list_carries_names_and_filters(
    async_client: AsyncClient, admin_headers: dict, ledger: dict
):
    resp = await async_client.get(URL, headers=admin_headers)
    rows = resp.json()
    assert [r["amount"] for r in rows] == [300, 1250.5, 4000]
    assert rows[0]["section_name"] == "Office"
    assert rows[0]["category_name"] == "Stationery"

    resp = await async_client.get(f"{URL}?section_id={ledger['kitchen']['id']}", headers=admin_headers)
    assert len(resp.json()) == 2

    resp = await async_client.get(f"{URL}?from=2025-01-10&to=2025-01-31", headers=admin_headers)
    assert [r["category_name"] for r in resp.json()] == ["Vegetables"]


@pytest.mark.asyncio
async def test_summary(async_client: AsyncClient, admin_headers: dict, ledger: dict):
    resp = await async_client.get(f"{URL}/summary", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["grand_total"] == 5550.5
    assert [(s["section_name"], s["total"]) for s in data["totals_by_section"]] == [
        ("Kitchen", 5250.5),
        ("Office", 300),
    ]
    assert data["totals_by_category"][0] == {
        "section_name": "Kitchen",
        "category_name": "Gas",
        "total": 4000,
    }
    assert data["totals_by_month"] == [
        {"month": "2025-02", "total": 300},
        {"month": "2025-01", "total": 5250.5},
    ]


@pytest.mark.asyncio
async def test_summary_in_range(async_client: AsyncClient, admin_headers: dict, ledger: dict):
    resp = await async_client.get(f"{URL}/summary?from=2025-02-01", headers=admin_headers)
    assert resp.json()["grand_total"] == 300


@pytest.mark.asyncio
async def test_delete_section_cascades(async_client: AsyncClient, admin_headers: dict, ledger: dict):
    resp = await async_client.delete(f"{URL}/sections/{ledger['kitchen']['id']}", headers=admin_headers)
    assert resp.status_code == 200
    remaining = await async_client.get(URL, headers=admin_headers)
    assert [r["section_name"] for r in remaining.json()] == ["Office"]
    cats = await async_client.get(
        f"{URL}/sections/{ledger['kitchen']['id']}/categories", headers=admin_headers
    )
    assert cats.json() == []


@pytest.mark.asyncio
async def test_delete_expenditure(async_client: AsyncClient, admin_headers: dict, ledger: dict):
    rows = (await async_client.get(URL, headers=admin_headers)).json()
    resp = await async_client.delete(f"{URL}/{rows[0]['id']}", headers=admin_headers)
    assert resp.json()["success"] is True
    resp = await async_client.delete(f"{URL}/{rows[0]['id']}", headers=admin_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_attachment_needs_update_capability(
    async_client: AsyncClient,
    db_session: AsyncSession,
    admin_headers: dict,
    staff_user: User,
    staff_headers: dict,
    ledger: dict,
):
    spend = (await async_client.get(URL, headers=admin_headers)).json()[0]
    row = await grant(
        db_session, staff_user, ModuleKey.DAILY_EXPENDITURE_TRACKER, can_view=True, can_create=True
    )
    upload = {"attachment": ("receipt.png", b"\x89PNG fake", "image/png")}

    resp = await async_client.post(f"{URL}/{spend['id']}/attachment", files=upload, headers=staff_headers)
    assert resp.status_code == 403

    row.can_update = True
    await db_session.commit()
    resp = await async_client.post(f"{URL}/{spend['id']}/attachment", files=upload, headers=staff_headers)
    assert resp.status_code == 200
    assert resp.json()["attachment_url"].startswith("/uploads/expenditure-")
