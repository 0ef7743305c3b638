"""상품 교체(Swap) Service - 선택된 상품의 대체 후보 찾기"""

from typing import Optional

from ghost_setup.core.config import settings
from ghost_setup.core.exceptions import ExternalAPIException
from ghost_setup.core.logging import logger
from ghost_setup.engine.cache_adapter import CacheAdapter
from ghost_setup.engine.ranking import SWAP_CRITERIA, heuristic_rank
from ghost_setup.engine.retry import RetryConfig, with_retry
from ghost_setup.schemas.api_schema import SwapRequest, SwapResponse
from ghost_setup.schemas.product_schema import Product, RankRequest, SearchRequest, UserPreferences
from ghost_setup.utils.hash_utils import generate_generic_cache_key

MAX_ALTERNATIVES = 5
SEARCH_LIMIT = 15
# 대체 후보는 원래 예산보다 약간 비싼 것까지 검색
BUDGET_HEADROOM = 1.2

PRODUCT_TYPES = (
    "laptop", "computer", "pc", "desktop", "monitor", "screen", "display",
    "chair", "desk", "table", "keyboard", "mouse", "headset", "headphones",
    "mattress", "bed", "pillow", "sheets", "dresser", "nightstand",
    "sofa", "couch", "tv", "television", "coffee table", "lamp",
    "refrigerator", "fridge", "stove", "microwave", "cookware", "knife",
)


def build_swap_query(category: Optional[str], product_title: Optional[str]) -> str:
    """카테고리 → 제목 속 상품 유형 → 제목 앞 3단어 → 기본 문구"""
    if category and category.strip():
        return category.strip()
    if product_title and product_title.strip():
        title_lower = product_title.lower()
        for product_type in PRODUCT_TYPES:
            if product_type in title_lower:
                return product_type
        return " ".join(product_title.split()[:3])
    return "alternative product"


class SwapService:
    """대체 후보 검색 + 랭킹 (30분 캐시)"""

    def __init__(self, cache: CacheAdapter, search_provider, ranker=None, retry_config: Optional[RetryConfig] = None):
        """
        Args:
            cache: best-effort 캐시 어댑터
            search_provider: search_products 구현체
            ranker: rank_products 구현체 (없으면 휴리스틱 랭킹)
            retry_config: 검색 재시도 설정
        """
        self.cache = cache
        self.search_provider = search_provider
        self.ranker = ranker
        self.retry_config = retry_config or RetryConfig.from_settings()

    async def find_alternatives(self, request: SwapRequest) -> SwapResponse:
        """
        Raises:
            ExternalAPIException: 검색 결과 없음(SWAP_NO_RESULTS) 또는 제외 후 남은 후보 없음(SWAP_NO_NEW_RESULTS)
            GhostSetupException: 검색 실패 (재시도 후)
        """
        cache_key = generate_generic_cache_key("swap", request.to_json_dict())
        alternatives = await self._try_cache(cache_key)
        if alternatives is not None:
            logger.info(f"[SWAP] cache hit: {request.product_id}")
            return SwapResponse(alternatives=alternatives, from_cache=True)

        query = build_swap_query(request.category, request.product_title)
        search_request = SearchRequest(
            query=query,
            category=request.category,
            budget=min(request.budget * BUDGET_HEADROOM, 1_000_000),
            currency=request.settings.currency,
            amazon_only=request.settings.amazon_only,
            limit=SEARCH_LIMIT,
        )
        response = await with_retry(
            lambda: self.search_provider.search_products(search_request),
            self.retry_config,
            label="swap search",
        )
        if not response.products:
            raise ExternalAPIException("No alternative products found", "SWAP_NO_RESULTS", retryable=False)

        excluded = set(request.exclude_ids) | {request.product_id}
        candidates = [p for p in response.products if p.id not in excluded]
        if not candidates:
            logger.warning(
                f"[SWAP] no new alternatives for {request.product_id} after filtering {len(response.products)}"
            )
            raise ExternalAPIException(
                "No new alternatives available. Try adjusting your budget or search criteria.",
                "SWAP_NO_NEW_RESULTS",
                retryable=False,
            )

        rank_request = RankRequest(
            products=candidates[:100],
            criteria=SWAP_CRITERIA,
            user_preferences=UserPreferences(
                style=request.settings.style,
                budget=request.budget,
                prioritize_rating=True,
            ),
        )
        if self.ranker is not None:
            ranked = await self.ranker.rank_products(rank_request)
        else:
            ranked = heuristic_rank(rank_request.products, rank_request.criteria, rank_request.user_preferences)

        alternatives = ranked.ranked_products[:MAX_ALTERNATIVES]
        logger.info(f"[SWAP] '{query}': {len(alternatives)} alternatives for {request.product_id}")
        await self.cache.set(cache_key, [p.to_json_dict() for p in alternatives], settings.swap_cache_ttl)
        return SwapResponse(alternatives=alternatives, from_cache=False)

    async def _try_cache(self, cache_key: str) -> Optional[list[Product]]:
        """캐시된 대체 후보 목록 (미스 또는 형식 불일치 시 None)"""
        cached = await self.cache.get(cache_key)
        if not cached:
            return None
        if not isinstance(cached, list):
            logger.warning(f"[SWAP] cached alternatives not a list, ignoring: {type(cached).__name__}")
            return None
        try:
            return [Product.model_validate(p) for p in cached]
        except ValueError as e:
            logger.warning(f"[SWAP] cached alternatives invalid, ignoring: {e}")
            return None
