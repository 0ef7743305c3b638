"""Catalog Routes - 검색 / 랭킹 / 계획 / 교체 단일 단계 API"""

import time
from typing import Optional

from fastapi import APIRouter, Depends

from ghost_setup.api.dependencies import (
    get_cache_adapter,
    get_gemini_client,
    get_serp_client,
    get_swap_service,
)
from ghost_setup.core.config import settings
from ghost_setup.core.logging import logger
from ghost_setup.engine import CacheAdapter, RetryConfig, with_retry
from ghost_setup.engine.ranking import heuristic_rank
from ghost_setup.providers.gemini import GeminiClient
from ghost_setup.providers.gemini_parsing import fallback_plan_response
from ghost_setup.providers.serpapi import SerpAPIClient
from ghost_setup.schemas.api_schema import SwapRequest, SwapResponse
from ghost_setup.schemas.product_schema import (
    PlanRequest,
    PlanResponse,
    RankRequest,
    RankResponse,
    SearchRequest,
    SearchResponse,
)
from ghost_setup.services.impl.swap_service import SwapService
from ghost_setup.utils.hash_utils import generate_generic_cache_key

router = APIRouter(prefix="/api", tags=["catalog"])


@router.post("/search", response_model=SearchResponse, response_model_by_alias=True)
async def search_products(
    request: SearchRequest,
    cache: CacheAdapter = Depends(get_cache_adapter),
    serp_client: SerpAPIClient = Depends(get_serp_client),
):
    """상품 검색 (10분 버킷 캐시)"""
    cache_key = generate_generic_cache_key(
        "search",
        request.to_json_dict(),
        now=time.time(),
        bucket_seconds=settings.cache_bucket_seconds,
    )
    cached = await cache.get(cache_key)
    if cached:
        try:
            hit = SearchResponse.model_validate(cached)
            logger.info(f"[API] Search cache hit: query='{request.query}'")
            return hit
        except ValueError as e:
            logger.warning(f"[API] cached search invalid, ignoring: {e}")

    response = await with_retry(
        lambda: serp_client.search_products(request),
        RetryConfig.from_settings(),
        label="search",
    )
    if response.products:
        await cache.set(cache_key, response.to_json_dict(), settings.generic_cache_ttl)
    return response


@router.post("/rank", response_model=RankResponse, response_model_by_alias=True)
async def rank_products(
    request: RankRequest,
    gemini_client: Optional[GeminiClient] = Depends(get_gemini_client),
):
    """상품 랭킹 (AI 미설정/실패 시 가중 점수 휴리스틱)"""
    logger.info(f"[API] Rank request: {len(request.products)} products")
    if gemini_client is None:
        return heuristic_rank(request.products, request.criteria, request.user_preferences)
    return await gemini_client.rank_products(request)


@router.post("/plan", response_model=PlanResponse, response_model_by_alias=True)
async def plan_setup(
    request: PlanRequest,
    gemini_client: Optional[GeminiClient] = Depends(get_gemini_client),
):
    """세트 계획 (AI 미설정/실패 시 기본 분배)"""
    logger.info(f"[API] Plan request: query='{request.query}', budget={request.budget}")
    if gemini_client is None:
        return fallback_plan_response(request)
    try:
        return await gemini_client.generate_plan(request)
    except Exception as e:
        logger.warning(f"[API] Plan generation failed, using fallback plan: {e}")
        return fallback_plan_response(request)


@router.post("/swap", response_model=SwapResponse, response_model_by_alias=True)
async def swap_product(
    request: SwapRequest,
    swap_service: SwapService = Depends(get_swap_service),
):
    """선택된 상품의 대체 후보 (최대 5개, 30분 캐시)"""
    logger.info(f"[API] Swap request: product={request.product_id}, budget={request.budget}")
    return await swap_service.find_alternatives(request)
