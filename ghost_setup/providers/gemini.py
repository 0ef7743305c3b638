"""Gemini AI 클라이언트 - 계획/랭킹/상품 선택

google-genai 비동기 클라이언트(client.aio)를 사용합니다.
각 호출은 with_retry로 감싸며, 실패 시 동작은 용도마다 다릅니다.

- generate_plan: 분류된 예외 전파 (/api/plan 라우트가 로컬 계획으로 대체)
- rank_products: 휴리스틱 랭킹으로 대체
- select_best_product: 예외 전파 (오케스트레이터가 로컬 선택으로 대체)
"""

import asyncio
from typing import Any, Optional

import httpx
from google import genai

from ghost_setup.core.config import settings
from ghost_setup.core.exceptions import ExternalAPIException, GhostSetupException, RateLimitException
from ghost_setup.core.logging import logger
from ghost_setup.engine.classifier import classify_exception
from ghost_setup.engine.ranking import heuristic_rank, normalize_criteria
from ghost_setup.engine.retry import RetryConfig, with_retry
from ghost_setup.schemas.product_schema import (
    Need,
    PlanRequest,
    PlanResponse,
    Product,
    RankRequest,
    RankResponse,
    RawProduct,
)
from ghost_setup.utils.currency import format_price

from .gemini_parsing import parse_plan_response, parse_product_selection, parse_rank_response


def map_gemini_error(exc: BaseException) -> GhostSetupException:
    """google-genai 예외 → 분류된 예외

    - 429 / RESOURCE_EXHAUSTED / quota 문구 → RateLimitException GEMINI_RATE_LIMIT
    - 5xx / server error 문구 → ExternalAPIException GEMINI_<status> (재시도)
    - 연결 실패/타임아웃 → NetworkException
    - 그 외 → ExternalAPIException GEMINI_ERROR (재시도 불가)
    """
    if isinstance(exc, GhostSetupException):
        return exc
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, httpx.TransportError, ConnectionError)):
        return classify_exception(exc, "Gemini")

    # google.genai.errors.APIError: code=HTTP 상태(int), status="RESOURCE_EXHAUSTED" 등
    code = getattr(exc, "code", None)
    status = code if isinstance(code, int) else getattr(exc, "status_code", None)
    status_text = str(getattr(exc, "status", "") or "").upper()
    message = str(exc).lower()

    if status == 429 or status_text == "RESOURCE_EXHAUSTED" or "rate limit" in message or "quota" in message:
        return RateLimitException("Gemini rate limit", "GEMINI_RATE_LIMIT", {"reason": str(exc)[:200]})

    if (isinstance(status, int) and status >= 500) or "server error" in message or "internal" in message:
        return ExternalAPIException(
            "Gemini server error",
            f"GEMINI_{status or '5XX'}",
            retryable=True,
            details={"reason": str(exc)[:200]},
        )

    return ExternalAPIException(f"Gemini error: {exc}", "GEMINI_ERROR", retryable=False)


def _product_line(index: int, product: RawProduct) -> str:
    price = format_price(product.price or 0, product.currency or "USD")
    return (
        f'[{index}] "{product.title}" - {price} - {product.rating or 0}⭐ '
        f"({product.review_count or 0} reviews) - {product.merchant or 'Unknown'}"
    )


def _existing_section(existing: Optional[list[Product]], style: str) -> str:
    if not existing:
        return ""
    lines = "\n".join(
        f'• {p.category or "Product"}: "{p.title}" - {format_price(p.price, p.currency)} - {p.rating}⭐ - {p.merchant}'
        for p in existing
    )
    return (
        f"EXISTING PRODUCTS IN SETUP:\n{lines}\n\n"
        "COMPATIBILITY REQUIREMENTS:\n"
        "- Must complement existing products, not duplicate functionality\n"
        f"- Should match {style} aesthetic and quality level\n"
        "- Ensure technical compatibility (ports, power, space requirements)\n\n"
    )


def build_planning_prompt(request: PlanRequest) -> str:
    budget = format_price(request.budget, request.currency)
    return f"""Create a {request.style.lower()} product plan for "{request.query}" with {budget} budget.

Return JSON only:
{{
  "approach": "setup" | "single",
  "categories": [
    {{
      "category": "string",
      "priority": 1-10,
      "budgetAllocation": number,
      "searchTerms": ["term1", "term2"],
      "requirements": ["req1", "req2"]
    }}
  ],
  "budgetDistribution": [
    {{"category": "string", "amount": number, "percentage": number, "color": "#FF6B6B"}}
  ],
  "totalItems": number
}}

Rules:
- Setup: 3-8 categories for room/workspace queries
- Single: 1-3 variations for specific items
- Budget must total {request.budget}
- Use colors: #FF6B6B, #4ECDC4, #45B7D1, #96CEB4"""


def build_ranking_prompt(request: RankRequest, existing: Optional[list[Product]] = None) -> str:
    prefs = request.user_preferences
    criteria = request.criteria
    products_text = "\n".join(_product_line(i, p) for i, p in enumerate(request.products[:10]))
    return f"""You are an expert product analyst ranking products for a {prefs.style.lower()} user with ${prefs.budget} total budget.

{_existing_section(existing, prefs.style)}PRODUCTS TO RANK:
{products_text}

RANKING CRITERIA (weights):
- Price Value: {criteria.price_weight * 100:.0f}%
- Rating Quality: {criteria.rating_weight * 100:.0f}%
- Review Count: {criteria.review_weight * 100:.0f}%
- Relevance: {criteria.relevance_weight * 100:.0f}%

Return JSON:
{{
  "rankings": [
    {{
      "productIndex": number,
      "score": number,
      "rationale": "why this product ranks here",
      "pros": ["advantage"],
      "cons": ["limitation"],
      "confidence": 0.0-1.0
    }}
  ],
  "reasoning": ["Overall ranking strategy", "Key decision factors"]
}}
productIndex is zero-based."""


def build_selection_prompt(
    need: Need,
    products: list[RawProduct],
    *,
    budget: float,
    style: str,
    existing: Optional[list[Product]] = None,
) -> str:
    products_text = "\n".join(_product_line(i, p) for i, p in enumerate(products[:12]))
    return f"""You are selecting the BEST {need.name} for a {style.lower()} setup with ${budget} total budget.

{_existing_section(existing, style)}TARGET: {need.name} with budget of ${need.target_price}
SPECS: {need.specs or "any"}
AVAILABLE OPTIONS:
{products_text}

SELECTION CRITERIA (in priority order):
1. Budget Fit: Must be <= ${need.target_price}
2. Value Proposition: Best price-to-quality ratio
3. Quality Indicators: High rating (4.0+) with good review count (100+)
4. Style Match: Appropriate for {style.lower()} aesthetic
5. Merchant Reliability: Trusted seller with good shipping

Return JSON:
{{
  "selectedIndex": number,
  "rationale": "why this is the optimal choice",
  "pros": ["advantage"],
  "cons": ["limitation"],
  "confidence": 0.0-1.0
}}
selectedIndex is zero-based.
If no product fits the budget or requirements, return: {{"selectedIndex": -1, "rationale": "No suitable products meet the criteria"}}"""


class GeminiClient:
    """Gemini 텍스트 모델 제공자

    Usage:
        client = GeminiClient()
        plan = await client.generate_plan(PlanRequest(query="gaming setup", budget=1500))
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[Any] = None,
        model: Optional[str] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        """
        Args:
            api_key: Gemini API 키 (없으면 설정값)
            client: genai.Client 호환 객체 (테스트에서 주입)
            model: 텍스트 모델 이름
            retry_config: 호출별 재시도 설정
        """
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        if client is None and not self.api_key:
            raise ExternalAPIException("Gemini API key is required", "MISSING_API_KEY", retryable=False)
        self.client = client if client is not None else genai.Client(api_key=self.api_key)
        self.model = model or settings.gemini_text_model
        self.retry_config = retry_config or RetryConfig.from_settings()

    async def generate_content(self, prompt: str) -> str:
        """단일 호출 (재시도 없음)

        Raises:
            GhostSetupException: 분류된 Gemini 실패 (빈 응답은 EMPTY_RESPONSE, 재시도 가능)
        """
        try:
            response = await self.client.aio.models.generate_content(model=self.model, contents=prompt)
        except Exception as e:
            raise map_gemini_error(e) from e

        text = getattr(response, "text", None)
        if not text:
            raise ExternalAPIException("Empty response from Gemini", "EMPTY_RESPONSE", retryable=True)
        return text

    async def _generate_with_retry(self, prompt: str, label: str) -> str:
        return await with_retry(lambda: self.generate_content(prompt), self.retry_config, label=label)

    async def generate_plan(self, request: PlanRequest) -> PlanResponse:
        """세트/단일 계획 생성 (실패는 전파)"""
        text = await self._generate_with_retry(build_planning_prompt(request), "Gemini plan")
        plan = parse_plan_response(text, request)
        logger.info(f"[GEMINI] plan '{request.query}': {len(plan.categories)} categories")
        return plan

    async def rank_products(self, request: RankRequest, existing: Optional[list[Product]] = None) -> RankResponse:
        """상품 랭킹 (AI 실패 시 휴리스틱)"""
        # 가중치가 모두 0이면 프롬프트에도 균등 가중치로 전달
        request = request.model_copy(update={"criteria": normalize_criteria(request.criteria)})
        if not request.products:
            return heuristic_rank([], request.criteria, request.user_preferences)
        try:
            text = await self._generate_with_retry(build_ranking_prompt(request, existing), "Gemini rank")
        except Exception as e:
            logger.warning(f"[GEMINI] ranking failed, using heuristic ranking: {e}")
            return heuristic_rank(request.products, request.criteria, request.user_preferences)
        return parse_rank_response(text, request.products, request.user_preferences)

    async def select_best_product(
        self,
        need: Need,
        products: list[RawProduct],
        *,
        budget: float,
        style: str,
        existing: Optional[list[Product]] = None,
    ) -> Optional[Product]:
        """후보 중 하나 선택 (적합한 상품이 없으면 None)

        Raises:
            GhostSetupException: 재시도 후에도 AI 호출 실패
            ResponseParseError: 응답을 해석할 수 없음
        """
        if not products:
            return None
        prompt = build_selection_prompt(need, products, budget=budget, style=style, existing=existing)
        text = await self._generate_with_retry(prompt, f"Gemini select {need.key}")
        return parse_product_selection(text, products, need)
