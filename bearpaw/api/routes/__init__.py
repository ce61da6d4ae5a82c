"""API routers."""

from bearpaw.api.routes.items import build_collection_router
from bearpaw.api.routes.projections import router as projections_router

__all__ = ["build_collection_router", "projections_router"]
