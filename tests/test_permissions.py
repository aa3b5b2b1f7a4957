"""Tests for the per-module permission gate."""

import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_permission
from app.core.exceptions import (PermissionDenied, ProgrammingFault,
                                 register_exception_handlers)
from app.core.identity import IdentityResolver
from app.core.permissions import (Action, ModuleKey, Role, capability_column,
                                  check_permission, has_capability)
from app.core.security import TokenService
from app.models.permission import UserModulePermission
from app.models.user import User
from conftest import bearer, create_user, grant

ALL_MODULES = [
    ModuleKey.CREDIT_TO_COME,
    ModuleKey.DAILY_EXPENDITURE_UTILITIES,
    ModuleKey.DAILY_EXPENDITURE_TRACKER,
    ModuleKey.GRN_CREDIT_REMINDER,
]
ALL_ACTIONS = ["view", "create", "update", "delete"]

# One representative read and write route per module
VIEW_ROUTES = {
    ModuleKey.CREDIT_TO_COME: "/api/credit/customers",
    ModuleKey.DAILY_EXPENDITURE_UTILITIES: "/api/utilities",
    ModuleKey.DAILY_EXPENDITURE_TRACKER: "/api/expenditure/sections",
    ModuleKey.GRN_CREDIT_REMINDER: "/api/suppliers/invoices",
}


def test_capability_column_mapping():
    assert capability_column("view") is UserModulePermission.can_view
    assert capability_column("create") is UserModulePermission.can_create
    assert capability_column("update") is UserModulePermission.can_update
    assert capability_column(Action.DELETE) is UserModulePermission.can_delete


@pytest.mark.parametrize("action", ["archive", "VIEW", "", None])
def test_unknown_action_is_programming_fault(action):
    with pytest.raises(ProgrammingFault):
        capability_column(action)


@pytest.mark.asyncio
async def test_default_deny_without_grant_row(db_session: AsyncSession, staff_user: User):
    for module in ALL_MODULES:
        for action in ALL_ACTIONS:
            assert await has_capability(db_session, staff_user.id, module, action) is False
            with pytest.raises(PermissionDenied):
                await check_permission(db_session, staff_user, module, action)


@pytest.mark.asyncio
async def test_admin_bypasses_even_all_false_row(db_session: AsyncSession, admin_user: User):
    await grant(db_session, admin_user, ModuleKey.CREDIT_TO_COME)
    for module in ALL_MODULES:
        for action in ALL_ACTIONS:
            await check_permission(db_session, admin_user, module, action)


@pytest.mark.asyncio
async def test_view_grant_does_not_imply_create(db_session: AsyncSession, staff_user: User):
    await grant(db_session, staff_user, ModuleKey.GRN_CREDIT_REMINDER, can_view=True)

    await check_permission(db_session, staff_user, ModuleKey.GRN_CREDIT_REMINDER, "view")
    for action in ["create", "update", "delete"]:
        with pytest.raises(PermissionDenied):
            await check_permission(db_session, staff_user, ModuleKey.GRN_CREDIT_REMINDER, action)
    # Grant is scoped to its module only
    with pytest.raises(PermissionDenied):
        await check_permission(db_session, staff_user, ModuleKey.CREDIT_TO_COME, "view")


@pytest.mark.asyncio
async def test_grants_are_scoped_per_user(db_session: AsyncSession, staff_user: User):
    other = await create_user(db_session, "other@example.com")
    await grant(db_session, staff_user, ModuleKey.CREDIT_TO_COME, can_view=True)
    assert await has_capability(db_session, other.id, ModuleKey.CREDIT_TO_COME, "view") is False


@pytest.mark.asyncio
async def test_unknown_action_never_allows_staff(db_session: AsyncSession, staff_user: User):
    await grant(
        db_session,
        staff_user,
        ModuleKey.CREDIT_TO_COME,
        can_view=True,
        can_create=True,
        can_update=True,
        can_delete=True,
    )
    with pytest.raises(ProgrammingFault):
        await check_permission(db_session, staff_user, ModuleKey.CREDIT_TO_COME, "approve")


# ── Over HTTP ───────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_staff_without_grants_gets_403_everywhere(
    async_client: AsyncClient, staff_headers: dict
):
    for path in VIEW_ROUTES.values():
        resp = await async_client.get(path, headers=staff_headers)
        assert resp.status_code == 403, path
        assert resp.json()["detail"] == "Insufficient permissions"


@pytest.mark.asyncio
async def test_admin_reaches_every_module(async_client: AsyncClient, admin_headers: dict):
    for path in VIEW_ROUTES.values():
        resp = await async_client.get(path, headers=admin_headers)
        assert resp.status_code == 200, path


@pytest.mark.asyncio
async def test_grant_change_visible_on_next_request(
    async_client: AsyncClient,
    db_session: AsyncSession,
    staff_user: User,
    staff_headers: dict,
):
    path = VIEW_ROUTES[ModuleKey.DAILY_EXPENDITURE_UTILITIES]
    assert (await async_client.get(path, headers=staff_headers)).status_code == 403

    row = await grant(
        db_session, staff_user, ModuleKey.DAILY_EXPENDITURE_UTILITIES, can_view=True
    )
    assert (await async_client.get(path, headers=staff_headers)).status_code == 200

    row.can_view = False
    await db_session.commit()
    assert (await async_client.get(path, headers=staff_headers)).status_code == 403


@pytest.mark.asyncio
async def test_misdeclared_route_action_returns_500(
    session_factory, db_session: AsyncSession, token_service: TokenService
):
    probe = FastAPI()
    probe.state.token_service = token_service
    probe.state.identity_resolver = IdentityResolver(token_service)
    register_exception_handlers(probe)

    @probe.get("/probe")
    async def probe_route(
        _user: User = Depends(require_permission(ModuleKey.CREDIT_TO_COME, "archive")),
    ):
        return {"ok": True}

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    probe.dependency_overrides[get_db] = _override_get_db

    staff = await create_user(db_session, "probe@example.com", role=Role.STAFF)
    transport = ASGITransport(app=probe)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/probe", headers=bearer(token_service, staff))

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Invalid permission action"
