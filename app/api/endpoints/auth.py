"""
Auth endpoints — login (OAuth2 password flow) & current profile.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, get_token_service
from app.core.config import settings
from app.core.exceptions import AccountSuspended
from app.core.permissions import is_admin
from app.core.security import TokenService, verify_password
from app.models.permission import Module, UserModulePermission
from app.models.user import User
from app.schemas.user import CurrentUser, Token, UserRead

# Rate limiter keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


async def _viewable_module_keys(db: AsyncSession, user: User) -> list[str]:
    """Module keys the user may view; admins see every module."""
    if is_admin(user):
        result = await db.execute(select(Module.key).order_by(Module.name))
    else:
        result = await db.execute(
            select(Module.key)
            .join(UserModulePermission, UserModulePermission.module_id == Module.id)
            .where(
                UserModulePermission.user_id == user.id,
                UserModulePermission.can_view.is_(True),
            )
            .order_by(Module.name)
        )
    return list(result.scalars().all())


async def _profile(db: AsyncSession, user: User) -> CurrentUser:
    base = UserRead.model_validate(user)
    return CurrentUser(**base.model_dump(), permissions=await _viewable_module_keys(db, user))


@router.post("/login", response_model=Token)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> Token:
    """Authenticate with email/password and return a bearer token."""
    result = await db.execute(
        select(User).where(User.email == form_data.username.lower().strip())
    )
    user = result.scalar_one_or_none()

    if user is None or not verify_password(form_data.password, user.hashed_password):
        logger.info("Failed login for %s", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise AccountSuspended()

    access_token = tokens.create_access_token(user.id, role=user.role)
    logger.info("User %s logged in", user.id)
    return Token(access_token=access_token, user=await _profile(db, user))


@router.get("/me", response_model=CurrentUser)
async def read_current_user(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Return profile of the currently authenticated user."""
    return await _profile(db, current_user)
