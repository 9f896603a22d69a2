"""API layer module.

Contains FastAPI routers and request/response schemas.
"""

from storefront.api.health import router as health_router
from storefront.api.recommendations import router as recommendations_router
from storefront.api.search import router as search_router

__all__ = [
    "health_router",
    "recommendations_router",
    "search_router",
]
