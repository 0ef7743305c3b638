"""API 엔드포인트 패키지 - export only."""

from .dependencies import get_cache_service, get_orchestrator
from .error_handlers import register_error_handlers
from .routes import (
    build_router,
    cache_router,
    catalog_router,
    health_router,
    history_router,
    scene_router,
    share_router,
)

__all__ = [
    "build_router",
    "cache_router",
    "catalog_router",
    "health_router",
    "history_router",
    "scene_router",
    "share_router",
    "get_cache_service",
    "get_orchestrator",
    "register_error_handlers",
]
