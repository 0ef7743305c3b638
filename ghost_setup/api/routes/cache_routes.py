"""캐시 관리 엔드포인트"""
from fastapi import APIRouter, Depends

from ghost_setup.api.dependencies import get_cache_service
from ghost_setup.core.logging import logger
from ghost_setup.schemas.api_schema import CacheClearResponse, CacheStatsResponse
from ghost_setup.services import CacheService

router = APIRouter(prefix="/api/cache", tags=["cache"])


@router.post("/clear", response_model=CacheClearResponse, response_model_by_alias=True)
async def clear_cache(cache_service: CacheService = Depends(get_cache_service)):
    """검색/범용 캐시 전체 삭제 (공유 세트는 유지)

    Raises:
        CacheConnectionException: 저장소 접근 실패
    """
    cleared = await cache_service.clear()
    logger.info(f"[API] Cache cleared: {cleared} keys")
    return CacheClearResponse(success=True, message="Cache cleared successfully", cleared_keys=cleared)


@router.get("/stats", response_model=CacheStatsResponse, response_model_by_alias=True)
async def cache_stats(cache_service: CacheService = Depends(get_cache_service)):
    """네임스페이스별 키 개수 + 연결 상태"""
    healthy = await cache_service.health_check()
    stats = await cache_service.get_stats() if healthy else {}
    return CacheStatsResponse(healthy=healthy, stats=stats)
