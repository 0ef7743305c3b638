"""검색 기록 엔드포인트 - 저장된 빌드 결과 / 최근 기록 / 저장한 검색"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ghost_setup.core.database import get_db
from ghost_setup.core.exceptions import NotFoundException
from ghost_setup.core.logging import logger
from ghost_setup.repositories import SearchRecord, SearchRecordRepository
from ghost_setup.schemas.api_schema import (
    CachedResultsResponse,
    SaveSearchRequest,
    SaveSearchResponse,
    SearchHistoryItem,
    SearchHistoryResponse,
)

router = APIRouter(prefix="/api", tags=["history"])


def _to_history_item(record: SearchRecord) -> SearchHistoryItem:
    return SearchHistoryItem(
        search_id=record.search_id,
        query=record.query,
        settings=SearchRecordRepository.decode_settings(record),
        product_count=record.product_count or 0,
        source=record.source,
        elapsed_ms=record.elapsed_ms,
        is_saved=bool(record.is_saved),
        created_at=record.created_at,
    )


@router.get(
    "/cached-results/{search_id}", response_model=CachedResultsResponse, response_model_by_alias=True
)
async def get_cached_results(search_id: str, db: Session = Depends(get_db)):
    """저장된 빌드 결과 조회"""
    record = SearchRecordRepository(db).get_by_search_id(search_id)
    if record is None:
        raise NotFoundException("Search results not found", "SEARCH_NOT_FOUND")
    return CachedResultsResponse(
        search_id=record.search_id,
        query=record.query,
        settings=SearchRecordRepository.decode_settings(record),
        products=SearchRecordRepository.decode_products(record),
        is_saved=bool(record.is_saved),
        created_at=record.created_at,
    )


@router.get("/search-history", response_model=SearchHistoryResponse, response_model_by_alias=True)
async def get_search_history(
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """최근 빌드 기록"""
    repo = SearchRecordRepository(db)
    records = repo.get_recent(limit)
    return SearchHistoryResponse(searches=[_to_history_item(r) for r in records], total=repo.count())


@router.post("/save-search", response_model=SaveSearchResponse, response_model_by_alias=True)
async def save_search(request: SaveSearchRequest, db: Session = Depends(get_db)):
    """검색 저장 표시"""
    record = SearchRecordRepository(db).mark_saved(request.search_id)
    if record is None:
        raise NotFoundException("Search not found", "SEARCH_NOT_FOUND")
    logger.info(f"[API] Search saved: {request.search_id}")
    return SaveSearchResponse(success=True, search_id=request.search_id, message="Search saved")


@router.get("/save-search", response_model=SearchHistoryResponse, response_model_by_alias=True)
async def get_saved_searches(
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """저장한 검색 목록"""
    records = SearchRecordRepository(db).get_saved(limit)
    return SearchHistoryResponse(searches=[_to_history_item(r) for r in records], total=len(records))
