"""
owner_scout/api/routers package marker.
"""

from owner_scout.api.routers.status_router import router as status_router

__all__ = [
    "status_router",
]
