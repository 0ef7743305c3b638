"""캐시 서비스 - 네임스페이스 키 + JSON 직렬화 (strict)

실패를 삼키지 않고 CacheConnectionException / CacheSerializationException으로 올립니다.
실패를 캐시 미스로 취급해야 하는 호출부는 engine.CacheAdapter를 거칩니다.
"""
import json
from typing import Any, Iterable, Optional

from ghost_setup.core.logging import logger
from ghost_setup.core.exceptions import (
    CacheConnectionException,
    CacheSerializationException,
)
from ghost_setup.utils.hash_utils import GENERIC_PREFIX, SEARCH_PREFIX, SETUP_PREFIX

from .cache_store import CacheStore, create_cache_store


class CacheService:
    """캐시 관리 서비스"""

    def __init__(self, store: Optional[CacheStore] = None):
        self.store = store if store is not None else create_cache_store()

    async def get(self, key: str) -> Optional[Any]:
        """
        캐시 조회

        Args:
            key: 네임스페이스 포함 캐시 키

        Returns:
            역직렬화된 값 또는 None
        """
        try:
            raw = await self.store.get(key)
        except Exception as e:
            logger.error(f"[CACHE] read error: {type(e).__name__}: {e}")
            raise CacheConnectionException(
                "Cache read failed",
                "CACHE_READ_FAILED",
                {"key": key, "error": str(e)},
            ) from e

        if raw is None:
            logger.debug(f"[CACHE] miss: {key}")
            return None

        try:
            value = json.loads(raw)
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            logger.error(f"[CACHE] failed to deserialize {key}: {e}")
            raise CacheSerializationException(
                "Failed to deserialize cached data",
                "CACHE_DESER_FAILED",
                {"key": key, "error": str(e)},
            ) from e

        logger.debug(f"[CACHE] hit: {key}")
        return value

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        """
        캐시 저장

        Args:
            key: 네임스페이스 포함 캐시 키
            value: JSON 직렬화 가능한 값
            ttl: 만료 시간 (초)

        Returns:
            성공 여부
        """
        try:
            payload = json.dumps(value, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            logger.error(f"[CACHE] failed to serialize {key}: {e}")
            raise CacheSerializationException(
                "Failed to serialize cache data",
                "CACHE_SER_FAILED",
                {"key": key, "error": str(e)},
            ) from e

        try:
            await self.store.setex(key, ttl, payload)
        except Exception as e:
            logger.error(f"[CACHE] write error: {type(e).__name__}: {e}")
            raise CacheConnectionException(
                "Failed to write cache",
                "CACHE_WRITE_FAILED",
                {"key": key, "error": str(e)},
            ) from e

        logger.debug(f"[CACHE] set: {key}, TTL: {ttl}s")
        return True

    async def delete(self, key: str) -> bool:
        try:
            return await self.store.delete(key) > 0
        except Exception as e:
            raise CacheConnectionException(
                "Cache delete failed",
                "CACHE_DELETE_FAILED",
                {"key": key, "error": str(e)},
            ) from e

    async def exists(self, key: str) -> bool:
        try:
            return await self.store.exists(key)
        except Exception as e:
            raise CacheConnectionException(
                "Cache exists check failed",
                "CACHE_READ_FAILED",
                {"key": key, "error": str(e)},
            ) from e

    async def ping(self) -> str:
        """연결 왕복 확인 ("PONG")"""
        try:
            ok = await self.store.ping()
        except Exception as e:
            raise CacheConnectionException(
                "Cache ping failed",
                "CACHE_PING_FAILED",
                {"error": str(e)},
            ) from e
        if not ok:
            raise CacheConnectionException("Cache ping returned falsy response", "CACHE_PING_FAILED")
        return "PONG"

    async def health_check(self) -> bool:
        """캐시 연결 상태 확인"""
        try:
            return await self.ping() == "PONG"
        except CacheConnectionException as e:
            logger.warning(f"[CACHE] health check failed: {e.error_code}")
            return False

    async def count_keys(self, prefix: str) -> int:
        try:
            return len(await self.store.scan_keys(f"{prefix}*"))
        except Exception as e:
            raise CacheConnectionException(
                "Cache key scan failed",
                "CACHE_SCAN_FAILED",
                {"prefix": prefix, "error": str(e)},
            ) from e

    async def get_stats(self) -> dict[str, int]:
        """네임스페이스별 키 개수"""
        return {
            "searchResults": await self.count_keys(SEARCH_PREFIX),
            "sharedSetups": await self.count_keys(SETUP_PREFIX),
            "generic": await self.count_keys(GENERIC_PREFIX),
        }

    async def clear(self, prefixes: Iterable[str] = (SEARCH_PREFIX, GENERIC_PREFIX)) -> int:
        """prefix에 해당하는 키 전부 삭제 (기본: 검색/범용 캐시, 공유 세트는 유지)

        Returns:
            삭제된 키 수
        """
        cleared = 0
        try:
            for prefix in prefixes:
                keys = await self.store.scan_keys(f"{prefix}*")
                if keys:
                    cleared += await self.store.delete(*keys)
        except Exception as e:
            raise CacheConnectionException(
                "Cache clear failed",
                "CACHE_CLEAR_FAILED",
                {"error": str(e)},
            ) from e
        logger.info(f"[CACHE] cleared {cleared} keys")
        return cleared

    async def close(self) -> None:
        try:
            await self.store.close()
        except Exception as e:
            logger.warning(f"[CACHE] close failed: {e}")
