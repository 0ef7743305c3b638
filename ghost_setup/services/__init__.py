"""서비스 레이어 - export only."""

from .impl.cache_service import CacheService
from .impl.cache_store import CacheStore, MemoryCacheStore, RedisCacheStore, create_cache_store

__all__ = ["CacheService", "CacheStore", "MemoryCacheStore", "RedisCacheStore", "create_cache_store"]
