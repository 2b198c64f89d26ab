"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from svr_backend.app.api.v1.endpoints import auth, requests, trips, reference, notifications, audit

router = APIRouter()

# Include authentication endpoints
router.include_router(auth.router)

# Requests and approval
router.include_router(requests.router)

# Trips
router.include_router(trips.router)

# Department / vehicle catalogs
router.include_router(reference.router)

# Notification feed
router.include_router(notifications.router)

# Audit trail
router.include_router(audit.router)
