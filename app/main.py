"""
CrediFlow back office — application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `api/`, `models/`, and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.api.endpoints.auth import limiter
from app.api.router import api_router
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.identity import IdentityResolver
from app.core.security import TokenService
from app.core.uploads import upload_root
from app.db.base import Base
from app.db.seed import seed_first_admin, seed_modules
from app.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from app.models import credit, expenditure, permission, supplier, user, utility  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    # Reference data + first admin on first run
    async with async_session_factory() as session:
        await seed_modules(session)
        await seed_first_admin(session, settings)

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app(token_service: TokenService | None = None) -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Credit, utilities, expenditure and supplier tracking",
        version=settings.VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Signing secret is read once here and handed to the resolver
    tokens = token_service or TokenService.from_settings(settings)
    application.state.token_service = tokens
    application.state.identity_resolver = IdentityResolver(tokens)

    # Login throttling
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.API_PREFIX)

    # Attachments
    application.mount(
        "/uploads",
        StaticFiles(directory=str(upload_root())),
        name="uploads",
    )

    return application


app = create_app()
