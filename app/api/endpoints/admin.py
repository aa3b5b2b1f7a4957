"""
Admin endpoints — staff accounts and the per-module permission matrix.

Every route requires an authenticated ADMIN.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_admin
from app.core.permissions import Role
from app.core.security import get_password_hash
from app.models.permission import Module, UserModulePermission
from app.models.user import User
from app.schemas.permission import (ModulePermissionRead, ModuleRead,
                                    PermissionGrantRead,
                                    PermissionUpdateRequest)
from app.schemas.user import (StaffCreate, StaffStatusRead, StaffStatusUpdate,
                              UserRead)

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=404, detail="Staff member not found")
    return user


# ── Staff accounts ──────────────────────────────────────────────────
@router.post("/staff", response_model=UserRead, status_code=201)
async def create_staff(
    body: StaffCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> User:
    """Create a STAFF account. There is no self-registration."""
    existing = await db.execute(select(User).where(User.email == body.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Email already exists")

    staff = User(
        full_name=body.full_name,
        email=body.email,
        hashed_password=get_password_hash(body.password),
        role=Role.STAFF.value,
        is_active=True,
    )
    db.add(staff)
    await db.commit()
    await db.refresh(staff)
    logger.info("Admin %s created staff account %s", _admin.id, staff.id)
    return staff


@router.get("/staff", response_model=list[UserRead])
async def list_staff(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[User]:
    result = await db.execute(
        select(User)
        .where(User.role == Role.STAFF.value)
        .order_by(User.created_at.desc(), User.id.desc())
    )
    return list(result.scalars().all())


@router.patch("/staff/{user_id}", response_model=StaffStatusRead)
async def set_staff_status(
    user_id: int,
    body: StaffStatusUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> User:
    """Activate or deactivate a STAFF account; takes effect on its next request."""
    result = await db.execute(
        select(User).where(User.id == user_id, User.role == Role.STAFF.value)
    )
    staff = result.scalar_one_or_none()
    if staff is None:
        raise HTTPException(status_code=404, detail="Staff member not found")

    staff.is_active = body.is_active
    await db.commit()
    await db.refresh(staff)
    logger.info(
        "Admin %s set staff %s active=%s", _admin.id, staff.id, staff.is_active
    )
    return staff


# ── Modules & permissions ───────────────────────────────────────────
@router.get("/modules", response_model=list[ModuleRead])
async def list_modules(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[Module]:
    result = await db.execute(select(Module).order_by(Module.name))
    return list(result.scalars().all())


@router.get("/staff/{user_id}/permissions", response_model=list[ModulePermissionRead])
async def get_staff_permissions(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[ModulePermissionRead]:
    """Every module, with the user's grant or all-false when none exists."""
    await _get_user_or_404(db, user_id)

    result = await db.execute(
        select(Module, UserModulePermission)
        .outerjoin(
            UserModulePermission,
            and_(
                UserModulePermission.module_id == Module.id,
                UserModulePermission.user_id == user_id,
            ),
        )
        .order_by(Module.name)
    )
    rows: list[ModulePermissionRead] = []
    for module, grant in result.all():
        rows.append(
            ModulePermissionRead(
                module_id=module.id,
                key=module.key,
                name=module.name,
                can_view=bool(grant and grant.can_view),
                can_create=bool(grant and grant.can_create),
                can_update=bool(grant and grant.can_update),
                can_delete=bool(grant and grant.can_delete),
            )
        )
    return rows


@router.put("/staff/{user_id}/permissions", response_model=list[PermissionGrantRead])
async def update_staff_permissions(
    user_id: int,
    body: PermissionUpdateRequest,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> list[UserModulePermission]:
    """Upsert one grant per entry. Modules absent from the batch are untouched."""
    await _get_user_or_404(db, user_id)

    module_ids = {p.module_id for p in body.permissions}
    if module_ids:
        found = await db.execute(select(Module.id).where(Module.id.in_(module_ids)))
        missing = module_ids - set(found.scalars().all())
        if missing:
            raise HTTPException(
                status_code=404, detail=f"Module not found: {sorted(missing)}"
            )

    results: list[UserModulePermission] = []
    for entry in body.permissions:
        existing = await db.execute(
            select(UserModulePermission).where(
                UserModulePermission.user_id == user_id,
                UserModulePermission.module_id == entry.module_id,
            )
        )
        grant = existing.scalar_one_or_none()
        if grant is None:
            grant = UserModulePermission(user_id=user_id, module_id=entry.module_id)
            db.add(grant)
        grant.can_view = entry.can_view
        grant.can_create = entry.can_create
        grant.can_update = entry.can_update
        grant.can_delete = entry.can_delete
        await db.flush()
        results.append(grant)

    await db.commit()
    for grant in results:
        await db.refresh(grant)
    logger.info(
        "Admin %s updated %d permission grant(s) for user %s",
        _admin.id,
        len(results),
        user_id,
    )
    return results
