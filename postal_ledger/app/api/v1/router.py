"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from postal_ledger.app.api.v1.endpoints import parcels, identities, events

router = APIRouter()

router.include_router(identities.router)
router.include_router(parcels.router)
router.include_router(events.router)
