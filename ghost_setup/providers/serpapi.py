"""SerpAPI 상품 검색 클라이언트

google_shopping 엔진으로 검색하고, Amazon 전용 요청인데 결과가 없으면
amazon 엔진으로 한 번 더 찾아봅니다.

실패 매핑:
- 401/403 → ExternalAPIException SERPAPI_KEY_INVALID (재시도 불가)
- 429 → RateLimitException SERPAPI_RATE_LIMIT
- 그 밖의 HTTP 오류 → ExternalAPIException SERPAPI_<status> (5xx만 재시도)
- 응답 본문의 error 필드 → ExternalAPIException SERPAPI_ERROR (재시도 불가)
- 연결 실패/타임아웃 → classify_exception
"""

from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from ghost_setup.core.config import settings
from ghost_setup.core.exceptions import ExternalAPIException, GhostSetupException, RateLimitException
from ghost_setup.core.logging import logger
from ghost_setup.engine.classifier import classify_exception
from ghost_setup.schemas.product_schema import RawProduct, SearchMetadata, SearchRequest, SearchResponse
from ghost_setup.utils.currency import get_country_code_from_currency, get_region_from_currency

from .http_client import SharedHttpClient, get_shared_http_client
from .serpapi_parsing import (
    AMAZON_DOMAINS_BY_REGION,
    filter_amazon_only,
    normalize_amazon_item,
    parse_shopping_results,
)


class SerpAPIClient:
    """SerpAPI 검색 제공자

    Usage:
        client = SerpAPIClient()
        response = await client.search_products(SearchRequest(query="desk", limit=8))
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        http_client: Optional[SharedHttpClient] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.serpapi_key
        if not self.api_key:
            raise ExternalAPIException("SerpAPI key is required", "MISSING_API_KEY", retryable=False)
        self.http_client = http_client or get_shared_http_client()
        self.base_url = base_url or settings.serpapi_base_url
        self.timeout_s = timeout_s

    async def search_products(self, request: SearchRequest) -> SearchResponse:
        """상품 검색

        Raises:
            GhostSetupException: 분류된 검색 실패
        """
        started = time.perf_counter()
        region = get_region_from_currency(request.currency)
        params = {
            "q": request.query.strip(),
            "engine": "google_shopping",
            "api_key": self.api_key,
            "hl": "en",
            "gl": get_country_code_from_currency(request.currency),
            "num": str(request.limit),
        }

        try:
            payload = await self._get_json(params, context="SerpAPI search")
        except GhostSetupException:
            raise
        except Exception as e:
            raise classify_exception(e, "SerpAPI search") from e

        if payload.get("error"):
            raise ExternalAPIException(f"SerpAPI error: {payload['error']}", "SERPAPI_ERROR", retryable=False)

        products = parse_shopping_results(payload, request.currency, region)
        if request.amazon_only:
            before = len(products)
            products = filter_amazon_only(products)
            logger.info(f"[SERPAPI] amazon filter: {len(products)}/{before} kept")
            if not products:
                logger.warning("[SERPAPI] amazon-only returned 0 from shopping, trying amazon engine")
                products = await self.search_amazon(request.query, region)

        total = (payload.get("search_information") or {}).get("total_results") or len(products)
        search_time = (payload.get("search_metadata") or {}).get("total_time_taken")
        if not isinstance(search_time, (int, float)):
            search_time = round((time.perf_counter() - started) * 1000, 1)

        logger.info(f"[SERPAPI] '{request.query}' -> {len(products)} products")
        return SearchResponse(
            products=products,
            total_results=int(total),
            search_metadata=SearchMetadata(
                total_results=int(total),
                search_time=float(search_time),
                currency=request.currency,
                query=request.query,
            ),
        )

    async def search_amazon(self, query: str, region: str) -> list[RawProduct]:
        """amazon 엔진 검색 (실패 시 빈 목록)"""
        params = {
            "engine": "amazon",
            "amazon_domain": AMAZON_DOMAINS_BY_REGION.get(region, "amazon.com"),
            "k": query,
            "api_key": self.api_key,
        }
        try:
            payload = await self._get_json(params, context="SerpAPI amazon")
        except Exception as e:
            logger.warning(f"[SERPAPI] amazon engine failed: {type(e).__name__}: {e}")
            return []

        rows = payload.get("organic_results") or []
        products = []
        for index, row in enumerate(rows):
            if isinstance(row, dict):
                product = normalize_amazon_item(row, index, region)
                if product is not None:
                    products.append(product)
        return products

    async def _get_json(self, params: dict[str, Any], *, context: str) -> dict[str, Any]:
        response = await self.http_client.get(self.base_url, params=params, timeout_s=self.timeout_s)
        self._raise_for_status(response)
        try:
            payload = response.json()
        except ValueError as e:
            raise ExternalAPIException(
                f"{context}: response is not JSON",
                "SERPAPI_BAD_RESPONSE",
                retryable=False,
            ) from e
        if not isinstance(payload, dict):
            raise ExternalAPIException(f"{context}: unexpected response shape", "SERPAPI_BAD_RESPONSE", retryable=False)
        return payload

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return
        if status in (401, 403):
            raise ExternalAPIException("SerpAPI key invalid", "SERPAPI_KEY_INVALID", retryable=False)
        if status == 429:
            raise RateLimitException("SerpAPI quota exceeded", "SERPAPI_RATE_LIMIT")
        raise ExternalAPIException(
            f"SerpAPI request failed: HTTP {status}",
            f"SERPAPI_{status}",
            retryable=status >= 500,
            details={"status": status},
        )
