"""
API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from app.api.endpoints import (admin, auth, credit, dashboard, expenditure,
                               exports, health, suppliers, utilities)

api_router = APIRouter()

# Liveness
api_router.include_router(health.router)

# Login, profile
api_router.include_router(auth.router)

# Staff accounts and permission matrix (admin only)
api_router.include_router(admin.router)

# Business modules, each gated per module + action
api_router.include_router(credit.router)
api_router.include_router(utilities.router)
api_router.include_router(expenditure.router)
api_router.include_router(suppliers.router)

# Read-only views across modules
api_router.include_router(dashboard.router)
api_router.include_router(exports.router)
