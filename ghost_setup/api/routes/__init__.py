"""API routes package."""

from .build_routes import router as build_router
from .cache_routes import router as cache_router
from .catalog_routes import router as catalog_router
from .health_routes import router as health_router
from .history_routes import router as history_router
from .scene_routes import router as scene_router
from .share_routes import router as share_router

__all__ = [
    "build_router",
    "cache_router",
    "catalog_router",
    "health_router",
    "history_router",
    "scene_router",
    "share_router",
]
