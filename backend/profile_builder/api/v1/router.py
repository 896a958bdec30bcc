"""API v1 router aggregator.

All v1 endpoint routers are included here.
"""

from fastapi import APIRouter

from profile_builder.api.v1 import wizards

router = APIRouter()

# =============================================================================
# Profile wizards
# =============================================================================

router.include_router(wizards.router, prefix="/wizards", tags=["wizards"])
