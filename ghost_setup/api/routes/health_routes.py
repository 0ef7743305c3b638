"""헬스 체크 엔드포인트

캐시 저장소와 DB를 각각 확인해 ok / degraded / error 로 요약합니다.
어느 쪽이 실패해도 엔드포인트 자체는 200으로 응답합니다.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ghost_setup import __version__
from ghost_setup.api.dependencies import get_cache_service
from ghost_setup.core import database
from ghost_setup.core.exceptions import CacheConnectionException
from ghost_setup.core.logging import logger
from ghost_setup.schemas.api_schema import HealthResponse
from ghost_setup.services import CacheService

router = APIRouter(tags=["health"])


async def _cache_ok(cache_service: CacheService) -> bool:
    try:
        return await cache_service.health_check()
    except CacheConnectionException as e:
        logger.warning(f"[HEALTH] cache unreachable: {e.error_code}")
    except Exception as e:
        logger.error(f"[HEALTH] unexpected cache error: {e}")
    return False


def _database_ok() -> bool:
    try:
        with database.engine.connect() as connection:
            connection.exec_driver_sql("SELECT 1")
        return True
    except Exception as e:
        logger.error(f"[HEALTH] database unreachable: {e}")
        return False


def summarize(checks: dict[str, bool]) -> str:
    if all(checks.values()):
        return "ok"
    return "degraded" if any(checks.values()) else "error"


@router.get("/health", response_model=HealthResponse, response_model_by_alias=True)
async def health_check(cache_service: CacheService = Depends(get_cache_service)):
    """서버 / 캐시 저장소 / DB 상태"""
    checks = {"cache": await _cache_ok(cache_service), "database": _database_ok()}
    return HealthResponse(
        status=summarize(checks),
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        checks=checks,
    )


@router.get("/")
async def root():
    return {
        "service": "Ghost Setup Finder",
        "version": __version__,
        "docs": "/docs",
    }
