"""
JWT token creation / verification and password hashing (bcrypt).

The signing secret is held by a :class:`TokenService` instance built once by
the app factory, so tests can swap secrets and clocks freely.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import Settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Passwords ───────────────────────────────────────────────────────
def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def get_password_hash(plain: str) -> str:
    return pwd_context.hash(plain)


# ── JWT tokens ──────────────────────────────────────────────────────
class TokenService:
    """Issue and verify signed access tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_minutes: int = 60,
        clock: Clock | None = None,
    ) -> None:
        self._secret = secret_key
        self._algorithm = algorithm
        self._expire = timedelta(minutes=expire_minutes)
        self._clock = clock or _utcnow

    @classmethod
    def from_settings(cls, config: Settings, clock: Clock | None = None) -> TokenService:
        return cls(
            secret_key=config.SECRET_KEY,
            algorithm=config.ALGORITHM,
            expire_minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES,
            clock=clock,
        )

    def now(self) -> datetime:
        return self._clock()

    def create_access_token(
        self,
        subject: str | Any,
        role: str | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        issued = self._clock()
        claims: dict[str, Any] = {
            "sub": str(subject),
            "type": "access",
            "iat": int(issued.timestamp()),
            "exp": int((issued + (expires_delta or self._expire)).timestamp()),
        }
        if role is not None:
            claims["role"] = role
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def decode_access_token(self, token: str) -> dict | None:
        """Return payload dict if the *access* token is valid, else ``None``.

        Signature is checked by jose; expiry is checked here against the
        injected clock rather than the wall clock.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            return None
        if payload.get("type") != "access":
            return None
        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            return None
        if exp <= self._clock().timestamp():
            return None
        return payload
