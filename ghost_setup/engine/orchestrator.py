"""Build Orchestrator - 세트 빌드 파이프라인

Cache → Plan → Search → Rank → Assemble → Cache write 순서로 실행합니다.

- Plan: 단일 상품 질의는 로컬 계획, 세트 질의는 AI 계획 (실패 시 키워드 기반 로컬 계획)
- Search: 항목별 검색을 asyncio.gather로 동시에 실행, 각 검색은 재시도 + generic 캐시
- Rank: 항목별 AI 선택 (실패 시 가중 점수 휴리스틱)
- 검색 실패는 재시도 후 분류된 예외로 전파되고, 결과 0개는 정상 응답입니다.
"""

import asyncio
import secrets
import time
from typing import Callable, Iterable, Optional, Protocol

from ghost_setup.core.config import settings as app_settings
from ghost_setup.core.logging import logger
from ghost_setup.providers.serpapi_parsing import filter_amazon_only
from ghost_setup.schemas.api_schema import BuildResponse
from ghost_setup.schemas.product_schema import (
    Need,
    PlanRequest,
    PlanResponse,
    Product,
    RankingCriteria,
    RawProduct,
    SearchMetadata,
    SearchRequest,
    SearchResponse,
    SearchSettings,
)
from ghost_setup.utils.hash_utils import generate_generic_cache_key, generate_search_cache_key

from .budget import BudgetConfig, BudgetManager
from .cache_adapter import CacheAdapter
from .ranking import select_fallback_product
from .result import BuildResult
from .retry import RetryConfig, with_retry
from .strategy import Plan, PlanStrategy
from .tips import REROLL_TIPS, tips_for_result


class SearchProvider(Protocol):
    async def search_products(self, request: SearchRequest) -> SearchResponse: ...


class AIProvider(Protocol):
    async def generate_plan(self, request: PlanRequest) -> PlanResponse: ...

    async def select_best_product(
        self,
        need: Need,
        products: list[RawProduct],
        *,
        budget: float,
        style: str,
        existing: Optional[list[Product]] = None,
    ) -> Optional[Product]: ...


def generate_search_id(now: Optional[float] = None) -> str:
    """search_<밀리초>_<랜덤 8자리>"""
    ms = int((now if now is not None else time.time()) * 1000)
    return f"search_{ms}_{secrets.token_hex(4)}"


class BuildOrchestrator:
    """빌드 오케스트레이터

    Usage:
        orchestrator = BuildOrchestrator(CacheAdapter(), SerpAPIClient(), GeminiClient())
        result = await orchestrator.build("home office setup", SearchSettings(budget=1500))
        result.response.products
    """

    def __init__(
        self,
        cache: CacheAdapter,
        search_provider: SearchProvider,
        ai_provider: Optional[AIProvider] = None,
        retry_config: Optional[RetryConfig] = None,
        tolerance: Optional[float] = None,
        criteria: Optional[RankingCriteria] = None,
        search_limit: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            cache: best-effort 캐시 어댑터
            search_provider: 상품 검색 제공자 (search_products 구현)
            ai_provider: 계획/선택 제공자 (없으면 로컬 계획과 휴리스틱만 사용)
            retry_config: 검색 호출 재시도 설정
            tolerance: 예산 허용 오차 (기본 5%)
            criteria: 휴리스틱 랭킹 가중치
            search_limit: 항목당 검색 결과 수
            clock: 캐시 시간 버킷 계산용 시계 (테스트에서 주입)
        """
        if cache is None:
            raise ValueError("cache must not be None")
        if search_provider is None:
            raise ValueError("search_provider must not be None")

        self.cache = cache
        self.search_provider = search_provider
        self.ai_provider = ai_provider
        self.retry_config = retry_config or RetryConfig.from_settings()
        self.tolerance = app_settings.budget_tolerance if tolerance is None else tolerance
        self.criteria = criteria
        self.search_limit = search_limit or app_settings.search_limit_per_need
        self.clock = clock

    async def build(
        self,
        query: str,
        settings: SearchSettings,
        *,
        use_cache: bool = True,
        exclude_ids: Iterable[str] = (),
    ) -> BuildResult:
        """세트 빌드

        Raises:
            GhostSetupException: 검색 단계가 재시도 후에도 실패한 경우
        """
        started = time.perf_counter()
        query = query.strip()
        settings_dict = settings.to_json_dict()
        cache_key = self._search_cache_key(query, settings)

        # 1. Cache 확인
        if use_cache:
            cached = await self._try_cache(cache_key)
            if cached is not None:
                elapsed_ms = (time.perf_counter() - started) * 1000
                logger.info(f"[BUILD] cache hit: query='{query}'")
                return BuildResult.from_cache(cached, elapsed_ms, settings_dict)

        # 2. Plan
        plan = await self._plan(query, settings)
        logger.info(
            f"[BUILD] plan ({plan.source.value}): "
            + ", ".join(f"{n.name} (${n.target_price})" for n in plan.needs)
        )

        # 3~4. 항목별 Search + Rank (동시 실행, 검색 실패는 전파)
        budget = BudgetManager(BudgetConfig(total_budget=settings.budget, tolerance=self.tolerance))
        excluded = set(exclude_ids)
        selections = await asyncio.gather(
            *(self._process_need(need, settings, budget, excluded) for need in plan.needs)
        )

        # 5. Assemble
        products = budget.enforce(self._dedupe(p for p in selections if p is not None))
        products.sort(key=lambda p: p.search_rank)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response = BuildResponse(
            products=products,
            budget_chart=budget.chart(products) or None,
            ghost_tips=tips_for_result(len(products), len(plan.needs)),
            search_metadata=SearchMetadata(
                total_results=len(products),
                search_time=round(elapsed_ms, 1),
                currency=settings.currency,
                query=query,
            ),
            is_setup=plan.is_setup,
            search_id=generate_search_id(self.clock()),
        )
        logger.info(
            f"[BUILD] done: query='{query}', products={len(products)}/{len(plan.needs)}, "
            f"total={budget.total(products)}, elapsed={elapsed_ms:.0f}ms"
        )

        # 6. Cache 저장 (best effort)
        if use_cache:
            await self.cache.set(cache_key, response.to_json_dict(), app_settings.search_results_ttl)

        return BuildResult.from_pipeline(response, elapsed_ms, plan.source.value, settings_dict)

    async def reroll(self, original_query: str, settings: SearchSettings, exclude_ids: Iterable[str]) -> BuildResult:
        """이전 결과를 제외하고 다시 빌드 (캐시 미사용)"""
        result = await self.build(original_query, settings, use_cache=False, exclude_ids=exclude_ids)
        response = result.response.model_copy(
            update={
                "ghost_tips": [*result.response.ghost_tips, *REROLL_TIPS],
                "search_metadata": result.response.search_metadata.model_copy(
                    update={"query": f"{original_query.strip()} (rerolled)"}
                ),
            }
        )
        result.response = response
        return result

    def _search_cache_key(self, query: str, settings: SearchSettings) -> str:
        return generate_search_cache_key(
            query,
            style=settings.style,
            budget=settings.budget,
            currency=settings.currency,
            amazon_only=settings.amazon_only,
            region=settings.resolved_region(),
            now=self.clock(),
            bucket_seconds=app_settings.cache_bucket_seconds,
        )

    async def _try_cache(self, cache_key: str) -> Optional[BuildResponse]:
        """Cache 조회 시도

        Returns:
            Optional[BuildResponse]: 히트 시 응답, 미스 또는 형식 불일치 시 None
        """
        cached = await self.cache.get(cache_key)
        if not cached:
            return None
        try:
            return BuildResponse.model_validate(cached)
        except ValueError as e:
            logger.warning(f"[BUILD] cached envelope invalid, ignoring: {e}")
            return None

    async def _plan(self, query: str, settings: SearchSettings) -> Plan:
        if PlanStrategy.is_single_item_query(query):
            return PlanStrategy.single_item_plan(query, settings.budget)

        if self.ai_provider is None:
            return PlanStrategy.fallback_plan(query, settings.budget, settings.style)

        request = PlanRequest(query=query, budget=settings.budget, style=settings.style, currency=settings.currency)
        try:
            response = await self.ai_provider.generate_plan(request)
        except Exception as e:
            logger.warning(f"[BUILD] plan generation failed, using fallback: {e}")
            return PlanStrategy.fallback_plan(query, settings.budget, settings.style)

        plan = PlanStrategy.from_plan_response(response, settings.budget)
        if not plan.needs:
            logger.warning("[BUILD] plan has no needs, using fallback")
            return PlanStrategy.fallback_plan(query, settings.budget, settings.style)
        return plan

    async def _search(self, need: Need, settings: SearchSettings) -> SearchResponse:
        """항목 검색 (generic 캐시 + 재시도)"""
        request = SearchRequest(
            query=need.name[:200],
            currency=settings.currency,
            amazon_only=settings.amazon_only,
            limit=self.search_limit,
        )
        cache_key = generate_generic_cache_key(
            "search",
            request.to_json_dict(),
            now=self.clock(),
            bucket_seconds=app_settings.cache_bucket_seconds,
        )
        cached = await self.cache.get(cache_key)
        if cached:
            try:
                return SearchResponse.model_validate(cached)
            except ValueError as e:
                logger.warning(f"[BUILD] cached search invalid, ignoring: {e}")

        response = await with_retry(
            lambda: self.search_provider.search_products(request),
            self.retry_config,
            label=f"search {need.key}",
        )
        if response.products:
            await self.cache.set(cache_key, response.to_json_dict(), app_settings.generic_cache_ttl)
        return response

    def _candidates(
        self,
        need: Need,
        products: list[RawProduct],
        settings: SearchSettings,
        budget: BudgetManager,
        excluded: set[str],
    ) -> list[RawProduct]:
        """목표가(허용 오차 포함) / Amazon 전용 / 제외 id 필터"""
        candidates = [
            p for p in products
            if p.id not in excluded and budget.fits_target(p.price, need.target_price)
        ]
        if settings.amazon_only:
            candidates = filter_amazon_only(candidates)
        return candidates

    async def _select(self, need: Need, candidates: list[RawProduct], settings: SearchSettings) -> Optional[Product]:
        if self.ai_provider is not None:
            try:
                selected = await self.ai_provider.select_best_product(
                    need, candidates, budget=settings.budget, style=settings.style
                )
                if selected is not None:
                    return selected
                logger.info(f"[BUILD] AI found no fit for '{need.name}', using heuristic")
            except Exception as e:
                logger.warning(f"[BUILD] AI selection failed for '{need.name}', using heuristic: {e}")
        return select_fallback_product(need, candidates, self.criteria)

    async def _process_need(
        self,
        need: Need,
        settings: SearchSettings,
        budget: BudgetManager,
        excluded: set[str],
    ) -> Optional[Product]:
        response = await self._search(need, settings)
        candidates = self._candidates(need, response.products, settings, budget, excluded)
        logger.debug(
            f"[BUILD] '{need.name}': {len(response.products)} found, {len(candidates)} candidates"
        )
        if not candidates:
            return None

        product = await self._select(need, candidates, settings)
        if product is not None and settings.amazon_only:
            product = product.model_copy(update={"merchant": "Amazon"})
        return product

    @staticmethod
    def _dedupe(products: Iterable[Product]) -> list[Product]:
        """같은 상품이 여러 항목에 선택되면 우선순위 높은 쪽만 남김"""
        seen: set[str] = set()
        unique: list[Product] = []
        for product in sorted(products, key=lambda p: p.search_rank):
            if product.id not in seen:
                seen.add(product.id)
                unique.append(product)
        return unique

