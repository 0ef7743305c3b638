"""Cache Adapter - best-effort 캐시 접근

캐시는 최적화 수단일 뿐이므로 어떤 실패도 빌드를 막지 않습니다.
조회 실패는 미스(None), 저장 실패는 no-op으로 바뀌고 WARNING 로그만 남습니다.
"""

import asyncio
from typing import Any, Optional

from ghost_setup.core.config import settings
from ghost_setup.core.logging import logger
from ghost_setup.services.impl.cache_service import CacheService


class CacheAdapter:
    """CacheService 어댑터 (실패 흡수 버전)

    BuildOrchestrator, 검색/스왑 서비스가 기대하는 get/set 인터페이스를 제공합니다.
    """

    def __init__(self, cache_service: Optional[CacheService] = None, timeout: Optional[float] = None):
        """
        Args:
            cache_service: CacheService 인스턴스 (없으면 내부 생성)
            timeout: 캐시 연산당 타임아웃 (초)
        """
        self.cache_service = cache_service if cache_service is not None else CacheService()
        self.timeout = timeout if timeout is not None else settings.cache_op_timeout_s

    async def get(self, key: str) -> Optional[Any]:
        """캐시 조회

        Returns:
            캐시된 값 또는 None (미스/오류 모두 None)
        """
        if not key or not isinstance(key, str):
            logger.warning(f"[CACHE] invalid key for get: {key!r}")
            return None
        try:
            return await asyncio.wait_for(self.cache_service.get(key), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[CACHE] get timeout: {key}")
            return None
        except Exception as e:
            logger.warning(f"[CACHE] get failed: {type(e).__name__}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int) -> None:
        """캐시 저장 (실패는 로깅만)"""
        if not key or not isinstance(key, str):
            logger.warning(f"[CACHE] invalid key for set: {key!r}")
            return
        if value is None:
            return
        try:
            await asyncio.wait_for(self.cache_service.set(key, value, ttl), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[CACHE] set timeout: {key}")
        except Exception as e:
            logger.warning(f"[CACHE] set failed: {type(e).__name__}: {e}")
