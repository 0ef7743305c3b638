"""FastAPI 의존성 - 서비스 싱글톤

모든 제공자는 app.dependency_overrides로 교체할 수 있습니다.
"""

from typing import Optional

from fastapi import Depends

from ghost_setup.core.config import settings
from ghost_setup.core.logging import logger
from ghost_setup.engine import BuildOrchestrator, CacheAdapter
from ghost_setup.providers.gemini import GeminiClient
from ghost_setup.providers.gemini_image import GeminiImageClient
from ghost_setup.providers.serpapi import SerpAPIClient
from ghost_setup.services import CacheService
from ghost_setup.services.impl.share_service import ShareService
from ghost_setup.services.impl.swap_service import SwapService

# 싱글톤 서비스
_cache_service: Optional[CacheService] = None
_cache_adapter: Optional[CacheAdapter] = None
_serp_client: Optional[SerpAPIClient] = None
_gemini_client: Optional[GeminiClient] = None
_image_client: Optional[GeminiImageClient] = None


def get_cache_service() -> CacheService:
    """CacheService 싱글톤"""
    global _cache_service
    if _cache_service is None:
        _cache_service = CacheService()
    return _cache_service


def get_cache_adapter(cache_service: CacheService = Depends(get_cache_service)) -> CacheAdapter:
    """best-effort 캐시 어댑터 싱글톤"""
    global _cache_adapter
    if _cache_adapter is None:
        _cache_adapter = CacheAdapter(cache_service)
    return _cache_adapter


def get_serp_client() -> SerpAPIClient:
    """SerpAPI 클라이언트 싱글톤

    Raises:
        ExternalAPIException: SERPAPI_KEY 미설정 (MISSING_API_KEY)
    """
    global _serp_client
    if _serp_client is None:
        _serp_client = SerpAPIClient()
    return _serp_client


def get_gemini_client() -> Optional[GeminiClient]:
    """Gemini 텍스트 클라이언트 싱글톤 (키가 없으면 None, 로컬 계획/휴리스틱으로 동작)"""
    global _gemini_client
    if _gemini_client is None:
        if not settings.gemini_api_key:
            logger.debug("[API] GEMINI_API_KEY not set, AI planning disabled")
            return None
        _gemini_client = GeminiClient()
    return _gemini_client


def get_image_client() -> GeminiImageClient:
    """Gemini 이미지 클라이언트 싱글톤

    Raises:
        ExternalAPIException: GEMINI_API_KEY 미설정 (MISSING_API_KEY)
    """
    global _image_client
    if _image_client is None:
        _image_client = GeminiImageClient()
    return _image_client


def get_orchestrator(
    cache: CacheAdapter = Depends(get_cache_adapter),
    serp_client: SerpAPIClient = Depends(get_serp_client),
    gemini_client: Optional[GeminiClient] = Depends(get_gemini_client),
) -> BuildOrchestrator:
    """BuildOrchestrator

    상태는 주입된 싱글톤들이 들고 있으므로 요청마다 가볍게 조립합니다.
    """
    return BuildOrchestrator(cache=cache, search_provider=serp_client, ai_provider=gemini_client)


def get_share_service(cache_service: CacheService = Depends(get_cache_service)) -> ShareService:
    return ShareService(cache_service)


def get_swap_service(
    cache: CacheAdapter = Depends(get_cache_adapter),
    serp_client: SerpAPIClient = Depends(get_serp_client),
    gemini_client: Optional[GeminiClient] = Depends(get_gemini_client),
) -> SwapService:
    return SwapService(cache=cache, search_provider=serp_client, ranker=gemini_client)
