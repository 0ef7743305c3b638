"""BuildOrchestrator 단위 테스트

원칙:
- 외부 호출 없음 (검색/AI는 Fake, 캐시는 메모리 저장소)
- Cache → Plan → Search → Rank → Assemble 의미 검증
"""

from __future__ import annotations

from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from ghost_setup.core.exceptions import CacheConnectionException, NetworkException, ValidationException
from ghost_setup.engine import BuildOrchestrator, BuildSource, CacheAdapter
from ghost_setup.engine.tips import NO_RESULTS_TIPS, REROLL_TIPS
from ghost_setup.schemas.product_schema import (
    CategoryPlan,
    Need,
    PlanRequest,
    PlanResponse,
    Product,
    RawProduct,
    SearchSettings,
    SearchStrategy,
)


class FakeAI:
    def __init__(
        self,
        plan: Optional[PlanResponse] = None,
        plan_error: Optional[Exception] = None,
        pick: Optional[str] = None,
        select_error: Optional[Exception] = None,
    ):
        self.plan = plan
        self.plan_error = plan_error
        self.pick = pick
        self.select_error = select_error
        self.plan_calls = 0
        self.select_calls = 0

    async def generate_plan(self, request: PlanRequest) -> PlanResponse:
        self.plan_calls += 1
        if self.plan_error:
            raise self.plan_error
        return self.plan

    async def select_best_product(self, need: Need, products: list[RawProduct], **kwargs) -> Optional[Product]:
        self.select_calls += 1
        if self.select_error:
            raise self.select_error
        for raw in products:
            if raw.id == self.pick:
                return Product(
                    id=raw.id,
                    title=raw.title,
                    price=raw.price,
                    merchant=raw.merchant or "Unknown",
                    category=need.name,
                    rationale="AI pick",
                    search_rank=need.priority,
                )
        return None


@pytest.fixture
def chair_settings() -> SearchSettings:
    return SearchSettings(style="Premium", budget=300, currency="USD", amazon_only=True)


@pytest.fixture
def mixed_products(raw_product) -> list[RawProduct]:
    return [
        raw_product("amz_ok", 249.99, merchant="Amazon.com", rating=4.6, review_count=1500),
        raw_product("walmart", 89.0, merchant="Walmart", rating=4.9, review_count=5000),
        raw_product("amz_over", 1299.0, merchant="Amazon", rating=4.9, review_count=9000),
        raw_product("amz_edge", 310.0, merchant="Amazon", rating=4.0, review_count=40),
        raw_product("amz_noprice", None, merchant="Amazon"),
    ]


def _orchestrator(cache_adapter, provider, fast_retry, fake_clock, ai=None) -> BuildOrchestrator:
    return BuildOrchestrator(
        cache=cache_adapter,
        search_provider=provider,
        ai_provider=ai,
        retry_config=fast_retry,
        clock=fake_clock,
    )


class TestBudgetAndMerchant:
    @pytest.mark.asyncio
    async def test_amazon_only_within_budget(
        self, cache_adapter, search_provider, mixed_products, fast_retry, fake_clock, chair_settings
    ):
        provider = search_provider(mixed_products)
        orchestrator = _orchestrator(cache_adapter, provider, fast_retry, fake_clock)

        result = await orchestrator.build("office chair", chair_settings)

        products = result.response.products
        assert products
        assert all(p.merchant == "Amazon" for p in products)
        assert all(p.price <= 300 * 1.05 for p in products)
        assert sum(p.price for p in products) <= 300 * 1.05
        assert result.response.is_setup is False
        assert result.source == BuildSource.PIPELINE
        assert result.response.search_id.startswith("search_")

    @pytest.mark.asyncio
    async def test_zero_results_is_empty_success(
        self, cache_adapter, search_provider, fast_retry, fake_clock, chair_settings
    ):
        orchestrator = _orchestrator(cache_adapter, search_provider([]), fast_retry, fake_clock)

        result = await orchestrator.build("office chair", chair_settings)

        assert result.response.products == []
        assert result.response.budget_chart is None
        assert result.response.ghost_tips == list(NO_RESULTS_TIPS)
        assert result.response.search_metadata.total_results == 0

    @pytest.mark.asyncio
    async def test_exclude_ids_are_never_selected(
        self, cache_adapter, search_provider, mixed_products, fast_retry, fake_clock, chair_settings
    ):
        orchestrator = _orchestrator(cache_adapter, search_provider(mixed_products), fast_retry, fake_clock)

        result = await orchestrator.build("office chair", chair_settings, use_cache=False, exclude_ids=["amz_ok"])

        assert [p.id for p in result.response.products] == ["amz_edge"]

    @pytest.mark.asyncio
    async def test_same_product_for_many_needs_is_deduped(
        self, cache_adapter, search_provider, raw_product, fast_retry, fake_clock
    ):
        provider = search_provider([raw_product("cheap", 20.0)])
        orchestrator = _orchestrator(cache_adapter, provider, fast_retry, fake_clock)

        result = await orchestrator.build("home office setup", SearchSettings(budget=1000))

        ids = [p.id for p in result.response.products]
        assert ids == ["cheap"]
        assert result.response.is_setup is True
        assert len(provider.calls) == 8


class TestCache:
    @pytest.mark.asyncio
    async def test_repeated_build_within_bucket_hits_cache(
        self, cache_adapter, search_provider, mixed_products, fast_retry, fake_clock, chair_settings
    ):
        provider = search_provider(mixed_products)
        orchestrator = _orchestrator(cache_adapter, provider, fast_retry, fake_clock)

        first = await orchestrator.build("office chair", chair_settings)
        fake_clock.advance(30)
        second = await orchestrator.build("office chair", chair_settings)

        assert len(provider.calls) == 1
        assert second.source == BuildSource.CACHE
        assert second.from_cache_hit is True
        assert second.response.products == first.response.products
        assert second.search_id == first.search_id

    @pytest.mark.asyncio
    async def test_cache_failure_does_not_break_build(
        self, search_provider, mixed_products, fast_retry, fake_clock, chair_settings
    ):
        broken = MagicMock()
        broken.get = AsyncMock(side_effect=CacheConnectionException("down", "CACHE_READ_FAILED"))
        broken.set = AsyncMock(side_effect=CacheConnectionException("down", "CACHE_WRITE_FAILED"))
        orchestrator = _orchestrator(CacheAdapter(broken, timeout=1.0), search_provider(mixed_products), fast_retry, fake_clock)

        result = await orchestrator.build("office chair", chair_settings)

        assert [p.id for p in result.response.products] == ["amz_ok"]


class TestFailures:
    @pytest.mark.asyncio
    async def test_retryable_search_failure_propagates_after_retries(
        self, cache_adapter, search_provider, fast_retry, fake_clock, chair_settings
    ):
        provider = search_provider(error=NetworkException("down", "FETCH_FAILED"))
        orchestrator = _orchestrator(cache_adapter, provider, fast_retry, fake_clock)

        with pytest.raises(NetworkException):
            await orchestrator.build("office chair", chair_settings)

        assert len(provider.calls) == fast_retry.max_retries + 1

    @pytest.mark.asyncio
    async def test_non_retryable_search_failure_called_once(
        self, cache_adapter, search_provider, fast_retry, fake_clock, chair_settings
    ):
        provider = search_provider(error=ValidationException("bad query", "BAD_QUERY"))
        orchestrator = _orchestrator(cache_adapter, provider, fast_retry, fake_clock)

        with pytest.raises(ValidationException):
            await orchestrator.build("office chair", chair_settings)

        assert len(provider.calls) == 1


class TestAIProvider:
    @pytest.mark.asyncio
    async def test_ai_plan_and_pick_are_used(self, cache_adapter, search_provider, mixed_products, fast_retry, fake_clock):
        plan = PlanResponse(
            categories=[
                CategoryPlan(category="Gaming Chair", priority=1, budget_allocation=300),
                CategoryPlan(category="Desk", priority=2, budget_allocation=300),
            ],
            search_strategy=SearchStrategy(approach="setup", categories=["Gaming Chair", "Desk"], total_items=2),
        )
        ai = FakeAI(plan=plan, pick="walmart")
        orchestrator = _orchestrator(cache_adapter, search_provider(mixed_products), fast_retry, fake_clock, ai)

        result = await orchestrator.build("gaming setup", SearchSettings(budget=600))

        assert ai.plan_calls == 1
        assert result.plan_source == "ai"
        # 같은 상품을 두 항목이 골라도 한 번만
        assert [p.id for p in result.response.products] == ["walmart"]
        assert result.response.products[0].rationale == "AI pick"

    @pytest.mark.asyncio
    async def test_plan_failure_uses_fallback_plan(
        self, cache_adapter, search_provider, mixed_products, fast_retry, fake_clock
    ):
        ai = FakeAI(plan_error=RuntimeError("model down"), select_error=RuntimeError("model down"))
        orchestrator = _orchestrator(cache_adapter, search_provider(mixed_products), fast_retry, fake_clock, ai)

        result = await orchestrator.build("gaming setup", SearchSettings(budget=2000))

        assert result.plan_source == "fallback"
        assert result.response.is_setup is True
        assert result.response.products

    @pytest.mark.asyncio
    async def test_ai_no_fit_uses_heuristic(
        self, cache_adapter, search_provider, mixed_products, fast_retry, fake_clock, chair_settings
    ):
        ai = FakeAI(pick=None)
        orchestrator = _orchestrator(cache_adapter, search_provider(mixed_products), fast_retry, fake_clock, ai)

        result = await orchestrator.build("ergonomic chair", chair_settings)

        assert ai.plan_calls == 0  # 단일 상품 질의는 AI 계획 생략
        assert ai.select_calls == 1
        assert result.response.products[0].rationale == "Selected based on best value for money"


class TestReroll:
    @pytest.mark.asyncio
    async def test_reroll_excludes_previous_and_marks_query(
        self, cache_adapter, search_provider, mixed_products, fast_retry, fake_clock, chair_settings
    ):
        orchestrator = _orchestrator(cache_adapter, search_provider(mixed_products), fast_retry, fake_clock)

        first = await orchestrator.build("office chair", chair_settings)
        rerolled = await orchestrator.reroll("office chair", chair_settings, [p.id for p in first.response.products])

        assert rerolled.source == BuildSource.PIPELINE
        assert {p.id for p in rerolled.response.products}.isdisjoint(p.id for p in first.response.products)
        assert rerolled.response.search_metadata.query == "office chair (rerolled)"
        assert rerolled.response.ghost_tips[-len(REROLL_TIPS):] == list(REROLL_TIPS)
