"""
Permission gate — role tag first, then the per-user, per-module matrix.

There are exactly two roles. ADMIN passes every check without touching the
matrix; STAFF is governed entirely by ``user_module_permissions`` rows, and a
missing row denies everything.
"""

from __future__ import annotations

import enum
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PermissionDenied, ProgrammingFault
from app.models.permission import Module, UserModulePermission
from app.models.user import User

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"


class Action(str, enum.Enum):
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ModuleKey:
    CREDIT_TO_COME = "CREDIT_TO_COME"
    DAILY_EXPENDITURE_UTILITIES = "DAILY_EXPENDITURE_UTILITIES"
    DAILY_EXPENDITURE_TRACKER = "DAILY_EXPENDITURE_TRACKER"
    GRN_CREDIT_REMINDER = "GRN_CREDIT_REMINDER"


# Seeded at startup; read-only afterwards.
MODULE_CATALOGUE: dict[str, str] = {
    ModuleKey.CREDIT_TO_COME: "Credit To Come",
    ModuleKey.DAILY_EXPENDITURE_UTILITIES: "Daily Expenditure - Utilities",
    ModuleKey.DAILY_EXPENDITURE_TRACKER: "Daily Expenditure Tracker",
    ModuleKey.GRN_CREDIT_REMINDER: "GRN Credit Reminder",
}

ACTION_COLUMNS: dict[str, str] = {
    "view": "can_view",
    "create": "can_create",
    "update": "can_update",
    "delete": "can_delete",
}


def capability_column(action: str):
    """Map an action to its boolean column on ``UserModulePermission``.

    Anything outside the four known actions is a route declaration bug and
    raises :class:`ProgrammingFault`, never an implicit allow.
    """
    key = action.value if isinstance(action, Action) else action
    column = ACTION_COLUMNS.get(key) if isinstance(key, str) else None
    if column is None:
        raise ProgrammingFault(f"Unknown permission action: {action!r}")
    return getattr(UserModulePermission, column)


def is_admin(user: User) -> bool:
    return user.role == Role.ADMIN.value


async def has_capability(db: AsyncSession, user_id: int, module_key: str, action: str) -> bool:
    """True when a grant row exists for (user, module) and its column is set."""
    column = capability_column(action)
    result = await db.execute(
        select(column)
        .select_from(UserModulePermission)
        .join(Module, UserModulePermission.module_id == Module.id)
        .where(UserModulePermission.user_id == user_id, Module.key == module_key)
    )
    return bool(result.scalar_one_or_none())


async def check_permission(db: AsyncSession, user: User, module_key: str, action: str) -> None:
    """Raise :class:`PermissionDenied` unless *user* may perform *action* on *module_key*."""
    if is_admin(user):
        return
    if not await has_capability(db, user.id, module_key, action):
        logger.warning(
            "Permission denied: user=%s module=%s action=%s", user.id, module_key, action
        )
        raise PermissionDenied()
