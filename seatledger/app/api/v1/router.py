"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from seatledger.app.api.v1.endpoints import (
    auth, libraries, students, seats, billing, dashboard
)

router = APIRouter()

# Authentication
router.include_router(auth.router)

# Tenants and managers (superadmin)
router.include_router(libraries.router)
router.include_router(libraries.managers_router)

# Library-scoped resources
router.include_router(students.router)
router.include_router(seats.router)
router.include_router(billing.plans_router)
router.include_router(billing.payments_router)

# Derived views
router.include_router(dashboard.router)
