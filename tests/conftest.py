"""전역 테스트 설정

역할:
- 테스트 환경 구성 (인메모리 DB/캐시, 외부 API 키 없음)
- 공통 Fake 주입

설정 객체는 import 시점에 만들어지므로 환경 변수는 패키지 import 전에 지정합니다.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "INFO"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["SERPAPI_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""

import pytest  # noqa: E402

# 프로젝트 루트를 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from ghost_setup.engine import CacheAdapter, RetryConfig  # noqa: E402
from ghost_setup.schemas.product_schema import (  # noqa: E402
    RawProduct,
    SearchMetadata,
    SearchRequest,
    SearchResponse,
)
from ghost_setup.services import CacheService, MemoryCacheStore  # noqa: E402


class FakeClock:
    """수동으로 진행시키는 시계"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSearchProvider:
    """search_products 호출을 기록하는 검색 제공자

    - products: 매 호출마다 돌려줄 상품
    - error: 지정하면 매 호출마다 raise
    """

    def __init__(self, products: Optional[list[RawProduct]] = None, error: Optional[Exception] = None):
        self.products = products or []
        self.error = error
        self.calls: list[SearchRequest] = []

    async def search_products(self, request: SearchRequest) -> SearchResponse:
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        return SearchResponse(
            products=list(self.products),
            total_results=len(self.products),
            search_metadata=SearchMetadata(
                total_results=len(self.products),
                search_time=1.0,
                currency=request.currency,
                query=request.query,
            ),
        )


def make_raw_product(
    product_id: str,
    price: Optional[float],
    merchant: str = "Amazon",
    rating: float = 4.5,
    review_count: int = 500,
    title: Optional[str] = None,
) -> RawProduct:
    return RawProduct(
        id=product_id,
        title=title or f"Product {product_id}",
        url=f"https://example.com/{product_id}",
        price=price,
        currency="USD",
        merchant=merchant,
        rating=rating,
        review_count=review_count,
        image=f"https://images.example.com/{product_id}.jpg",
    )


async def _no_sleep(_: float) -> None:
    return None


@pytest.fixture
def raw_product():
    """RawProduct 팩토리"""
    return make_raw_product


@pytest.fixture
def search_provider():
    """FakeSearchProvider 팩토리"""
    return FakeSearchProvider


@pytest.fixture
def no_sleep():
    """with_retry/이미지 생성용 대기 없는 sleep"""
    return _no_sleep


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(fake_clock: FakeClock) -> MemoryCacheStore:
    return MemoryCacheStore(clock=fake_clock)


@pytest.fixture
def cache_service(memory_store: MemoryCacheStore) -> CacheService:
    return CacheService(store=memory_store)


@pytest.fixture
def cache_adapter(cache_service: CacheService) -> CacheAdapter:
    return CacheAdapter(cache_service, timeout=1.0)


@pytest.fixture
def fast_retry() -> RetryConfig:
    """대기 0, 재시도 2회"""
    return RetryConfig(max_retries=2, initial_delay=0.0, max_delay=0.0, jitter=0.0, rate_limit_extra_delay=0.0)
