"""
FastAPI dependencies — database session, identity resolution and the
per-route permission gate.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.identity import IdentityResolver
from app.core.permissions import check_permission, is_admin
from app.core.security import TokenService
from app.db.session import async_session_factory
from app.models.user import User

# auto_error=False so a missing header reaches the resolver and becomes our 401
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Configured services (built once by the app factory) ─────────────
def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_identity_resolver(request: Request) -> IdentityResolver:
    return request.app.state.identity_resolver


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> User:
    """Resolve the bearer token to an existing, active user."""
    return await resolver.resolve(db, token)


async def require_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    """Only allow the ADMIN role to proceed."""
    if not is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admins only.",
        )
    return current_user


def require_permission(
    module_key: str, action: str
) -> Callable[..., Coroutine[Any, Any, User]]:
    """Build a route dependency gating on (*module_key*, *action*).

    Usage::

        @router.get("/customers")
        async def list_customers(
            _user: User = Depends(require_permission(ModuleKey.CREDIT_TO_COME, "view")),
        ): ...
    """

    async def _permission_gate(
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ) -> User:
        await check_permission(db, current_user, module_key, action)
        return current_user

    _permission_gate.__name__ = f"require_{module_key.lower()}_{action}"
    return _permission_gate
