"""
Identity resolver — bearer token to an active ``User`` row.

The user row is re-read on every request so that deactivating an account
takes effect on the very next call, whatever the token's expiry.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AccountSuspended, Unauthenticated
from app.core.security import TokenService
from app.models.user import User

logger = logging.getLogger(__name__)


class IdentityResolver:
    def __init__(self, tokens: TokenService) -> None:
        self.tokens = tokens

    def subject_of(self, token: str | None) -> int:
        """Verify *token* and return its subject id, or raise ``Unauthenticated``."""
        if not token:
            raise Unauthenticated()

        payload = self.tokens.decode_access_token(token)
        if payload is None:
            raise Unauthenticated()

        sub = payload.get("sub")
        try:
            return int(sub)
        except (TypeError, ValueError):
            raise Unauthenticated() from None

    async def resolve(self, db: AsyncSession, token: str | None) -> User:
        user_id = self.subject_of(token)

        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise Unauthenticated()
        if not user.is_active:
            logger.warning("Rejected request from inactive account %s", user.id)
            raise AccountSuspended()
        return user
