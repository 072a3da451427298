"""
app/api/routers package marker.
"""

from app.api.routers.flows import router as flows_router
from app.api.routers.leads import router as leads_router
from app.api.routers.search import router as search_router

__all__ = [
    "flows_router",
    "leads_router",
    "search_router",
]
