"""캐시 저장소 - Redis 또는 프로세스 로컬 메모리

CacheService는 이 인터페이스에만 의존하므로
테스트나 Redis 없는 로컬 실행에서는 MemoryCacheStore를 주입합니다.
"""
import fnmatch
import time
from typing import Callable, Optional, Protocol

from redis.asyncio import Redis

from ghost_setup.core.config import settings
from ghost_setup.core.logging import logger, sanitize_for_log


class CacheStore(Protocol):
    """키-값 저장소 인터페이스 (값은 문자열)"""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def setex(self, key: str, ttl: int, value: str) -> None:
        ...

    async def delete(self, *keys: str) -> int:
        ...

    async def exists(self, key: str) -> bool:
        ...

    async def ping(self) -> bool:
        ...

    async def scan_keys(self, pattern: str) -> list[str]:
        ...

    async def close(self) -> None:
        ...


class RedisCacheStore:
    """redis.asyncio 기반 저장소"""

    def __init__(self, url: str, client: Optional[Redis] = None):
        self.redis_client = client or Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=settings.redis_socket_timeout_s,
            socket_timeout=settings.redis_socket_timeout_s,
        )
        logger.info(f"Redis cache store configured: {sanitize_for_log(url.split('@')[-1])}")

    async def get(self, key: str) -> Optional[str]:
        return await self.redis_client.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        await self.redis_client.setex(key, ttl, value)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self.redis_client.delete(*keys))

    async def exists(self, key: str) -> bool:
        return bool(await self.redis_client.exists(key))

    async def ping(self) -> bool:
        return bool(await self.redis_client.ping())

    async def scan_keys(self, pattern: str) -> list[str]:
        return [key async for key in self.redis_client.scan_iter(match=pattern)]

    async def close(self) -> None:
        await self.redis_client.aclose()


class MemoryCacheStore:
    """프로세스 로컬 TTL 저장소

    clock을 주입하면 만료를 결정적으로 테스트할 수 있습니다.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: dict[str, tuple[str, float]] = {}

    def _alive(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        return self._alive(key)

    def _purge_expired(self, now: float) -> None:
        # 키에 시간 버킷이 들어가 있어 만료된 키는 다시 조회되지 않음
        expired = [key for key, (_, expires_at) in self._data.items() if now >= expires_at]
        for key in expired:
            del self._data[key]

    async def setex(self, key: str, ttl: int, value: str) -> None:
        now = self._clock()
        self._purge_expired(now)
        self._data[key] = (value, now + ttl)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._alive(key) is not None:
                removed += 1
            self._data.pop(key, None)
        return removed

    async def exists(self, key: str) -> bool:
        return self._alive(key) is not None

    async def ping(self) -> bool:
        return True

    async def scan_keys(self, pattern: str) -> list[str]:
        return [key for key in list(self._data) if fnmatch.fnmatchcase(key, pattern) and self._alive(key) is not None]

    async def close(self) -> None:
        self._data.clear()


def create_cache_store() -> CacheStore:
    """REDIS_URL이 있으면 Redis, 없으면 메모리 저장소"""
    if settings.redis_url:
        return RedisCacheStore(settings.redis_url)
    logger.warning("REDIS_URL not set, using in-memory cache store (not shared across processes)")
    return MemoryCacheStore()
