"""
Shared test fixtures for the back-office test suite.

Every test gets a fresh in-memory aiosqlite database with the permission
modules seeded, and talks to the real app through httpx + ASGITransport.
Auth is *not* overridden: requests carry genuine bearer tokens.
"""

import os
import sys
import tempfile
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="crediflow-uploads-")

from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.permissions import Role
from app.core.security import TokenService, get_password_hash
from app.db.base import Base
from app.db.seed import seed_modules
from app.main import app
from app.models.permission import Module, UserModulePermission
from app.models.user import User

DEFAULT_PASSWORD = "password123"


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
async def setup_db(session_factory):
    """Seed modules and point the app's get_db at the per-test database."""
    async with session_factory() as session:
        await seed_modules(session)

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def token_service() -> TokenService:
    return app.state.token_service


# ── Users & grants ──────────────────────────────────────────────────
async def create_user(
    session: AsyncSession,
    email: str,
    role: Role = Role.STAFF,
    is_active: bool = True,
    password: str = DEFAULT_PASSWORD,
) -> User:
    user = User(
        full_name=email.split("@")[0].title(),
        email=email,
        hashed_password=get_password_hash(password),
        role=role.value,
        is_active=is_active,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def grant(
    session: AsyncSession,
    user: User,
    module_key: str,
    *,
    can_view: bool = False,
    can_create: bool = False,
    can_update: bool = False,
    can_delete: bool = False,
) -> UserModulePermission:
    module = (await session.execute(select(Module).where(Module.key == module_key))).scalar_one()
    row = UserModulePermission(
        user_id=user.id,
        module_id=module.id,
        can_view=can_view,
        can_create=can_create,
        can_update=can_update,
        can_delete=can_delete,
    )
    session.add(row)
    await session.commit()
    return row


def bearer(tokens: TokenService, user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {tokens.create_access_token(user.id, role=user.role)}"}


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "admin@example.com", role=Role.ADMIN)


@pytest.fixture
async def staff_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "staff@example.com")


@pytest.fixture
def admin_headers(token_service: TokenService, admin_user: User) -> dict[str, str]:
    return bearer(token_service, admin_user)


@pytest.fixture
def staff_headers(token_service: TokenService, staff_user: User) -> dict[str, str]:
    return bearer(token_service, staff_user)


@pytest.fixture
async def module_ids(db_session: AsyncSession) -> dict[str, int]:
    result = await db_session.execute(select(Module.key, Module.id))
    return dict(result.all())
