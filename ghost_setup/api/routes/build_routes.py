"""Build Routes - 세트 빌드 / 다시 뽑기

HTTP Layer는 요청을 BuildOrchestrator에 위임하고 결과를 그대로 돌려줍니다.
실패는 예외로 올라가 error_handlers에서 에러 봉투로 변환됩니다.
"""

from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends

from ghost_setup.api.dependencies import get_orchestrator
from ghost_setup.core.database import get_db_context
from ghost_setup.core.logging import logger
from ghost_setup.engine import BuildOrchestrator, BuildResult
from ghost_setup.repositories import SearchRecordRepository
from ghost_setup.schemas.api_schema import BuildRequest, BuildResponse, RerollRequest

router = APIRouter(prefix="/api", tags=["build"])


@router.post("/build", response_model=BuildResponse, response_model_by_alias=True)
async def build_setup(
    request: BuildRequest,
    background_tasks: BackgroundTasks,
    orchestrator: BuildOrchestrator = Depends(get_orchestrator),
):
    """세트 빌드 API

    Flow:
        1. Cache 확인 (10분 버킷)
        2. Plan → 항목별 Search → Rank
        3. 예산 검증 후 응답 조립
        4. 백그라운드로 검색 기록 저장
    """
    logger.info(f"[API] Build request: query='{request.query}', budget={request.settings.budget}")
    result = await orchestrator.build(request.query, request.settings)
    _schedule_log(background_tasks, request.query, result)
    return result.response


@router.post("/reroll", response_model=BuildResponse, response_model_by_alias=True)
async def reroll_setup(
    request: RerollRequest,
    background_tasks: BackgroundTasks,
    orchestrator: BuildOrchestrator = Depends(get_orchestrator),
):
    """이전 결과(excludeIds)를 제외하고 다시 빌드 (캐시 미사용)"""
    logger.info(
        f"[API] Reroll request: query='{request.original_query}', excluded={len(request.exclude_ids)}"
    )
    result = await orchestrator.reroll(request.original_query, request.settings, request.exclude_ids)
    _schedule_log(background_tasks, request.original_query, result)
    return result.response


def _schedule_log(background_tasks: BackgroundTasks, query: str, result: BuildResult) -> None:
    # 캐시 히트는 최초 빌드 때 이미 기록됨
    if result.from_cache_hit or not result.search_id:
        return
    background_tasks.add_task(
        _log_search,
        search_id=result.search_id,
        query=query,
        settings=result.settings,
        products=[p.to_json_dict() for p in result.response.products],
        source=result.plan_source,
        elapsed_ms=result.elapsed_ms,
    )


def _log_search(
    search_id: str,
    query: str,
    settings: dict[str, Any],
    products: list[dict[str, Any]],
    source: Optional[str] = None,
    elapsed_ms: Optional[float] = None,
):
    """검색 기록 저장 (백그라운드)"""
    try:
        with get_db_context() as db:
            repo = SearchRecordRepository(db)
            repo.create(
                search_id=search_id,
                query=query,
                settings=settings,
                products=products,
                source=source,
                elapsed_ms=elapsed_ms,
            )
        logger.debug(f"[API] Search record saved: {search_id}")
    except Exception as e:
        logger.error(f"[API] Failed to save search record {search_id}: {e}")
