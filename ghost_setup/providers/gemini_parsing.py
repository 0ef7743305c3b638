"""Gemini 응답 파싱

모델 출력은 마크다운 코드블록에 감싸져 오거나 앞뒤에 설명이 붙기도 해서
JSON 객체만 골라낸 뒤 스키마 레코드로 변환합니다.
파싱 실패 시 계획은 로컬 대체 계획, 랭킹은 휴리스틱, 선택은 None으로 떨어집니다.
"""

import json
import re
from typing import Any, Optional

from ghost_setup.core.logging import logger
from ghost_setup.engine.ranking import heuristic_rank, to_product
from ghost_setup.engine.strategy import BUDGET_COLORS, PlanStrategy
from ghost_setup.schemas.product_schema import (
    BudgetDistribution,
    CategoryPlan,
    Need,
    PlanRequest,
    PlanResponse,
    Product,
    RankResponse,
    RawProduct,
    SearchStrategy,
    UserPreferences,
)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")
_BARE_JSON = re.compile(r"(\{[\s\S]*\})")
_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")

_FALLBACK_SETUP_SPLIT = (
    ("Primary Item", 0.40, ["High quality", "Good reviews"]),
    ("Secondary Items", 0.35, ["Compatible", "Value for money"]),
    ("Accessories", 0.25, ["Useful", "Affordable"]),
)


class ResponseParseError(ValueError):
    """모델 응답에서 JSON을 찾지 못함"""


def extract_json(text: str) -> dict[str, Any]:
    """응답 텍스트에서 JSON 객체 추출

    Raises:
        ResponseParseError: JSON 객체가 없거나 해석 불가
    """
    match = _FENCED_JSON.search(text or "") or _BARE_JSON.search(text or "")
    if not match:
        raise ResponseParseError("No JSON found in response")
    try:
        parsed = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Invalid JSON in response: {e}") from e
    if not isinstance(parsed, dict):
        raise ResponseParseError("Response JSON is not an object")
    return parsed


def _clamp(value: Any, low: float, high: float, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, number))


def _color(value: Any, index: int) -> str:
    if isinstance(value, str) and _HEX_COLOR.match(value):
        return value.upper()
    return BUDGET_COLORS[index % len(BUDGET_COLORS)]


def fallback_plan_response(request: PlanRequest) -> PlanResponse:
    """AI 계획을 해석할 수 없을 때의 대체 계획 (세트 40/35/25% 또는 단일)"""
    if PlanStrategy.is_single_item_query(request.query):
        categories = [
            CategoryPlan(
                category=request.query,
                priority=1,
                budget_allocation=request.budget,
                search_terms=[request.query],
                requirements=["Within budget", "Good quality"],
            )
        ]
        approach = "single"
    else:
        categories = [
            CategoryPlan(
                category=name,
                priority=index + 1,
                budget_allocation=round(request.budget * ratio, 2),
                search_terms=[request.query] if index == 0 else [request.query, "accessories"],
                requirements=requirements,
            )
            for index, (name, ratio, requirements) in enumerate(_FALLBACK_SETUP_SPLIT)
        ]
        approach = "setup"

    return PlanResponse(
        categories=categories,
        budget_distribution=[
            BudgetDistribution(
                category=c.category,
                amount=c.budget_allocation,
                percentage=round(c.budget_allocation / request.budget * 100, 1),
                color=BUDGET_COLORS[index],
            )
            for index, c in enumerate(categories)
        ],
        search_strategy=SearchStrategy(
            approach=approach,
            categories=[c.category for c in categories],
            total_items=len(categories),
        ),
    )


def _plan_from_needs(parsed: dict[str, Any], request: PlanRequest) -> PlanResponse:
    needs = [n for n in parsed["needs"] if isinstance(n, dict) and n.get("name")]
    categories = [
        CategoryPlan(
            category=str(n["name"]),
            priority=int(_clamp(n.get("priority", 5), 1, 10, 5)),
            budget_allocation=_clamp(n.get("targetPrice"), 0, request.budget, 0),
            search_terms=[str(n["name"])],
            requirements=[str(n.get("rationale") or "")] if n.get("rationale") else [],
        )
        for n in needs
    ]
    distribution = [
        BudgetDistribution(
            category=c.category,
            amount=c.budget_allocation,
            percentage=min(100.0, round(c.budget_allocation / request.budget * 100)),
            color=BUDGET_COLORS[index % len(BUDGET_COLORS)],
        )
        for index, c in enumerate(categories)
    ]
    return PlanResponse(
        categories=categories,
        budget_distribution=distribution,
        search_strategy=SearchStrategy(
            approach="setup",
            categories=[c.category for c in categories],
            total_items=len(categories),
        ),
    )


def _plan_from_categories(parsed: dict[str, Any]) -> PlanResponse:
    categories = []
    for raw in parsed.get("categories") or []:
        if not isinstance(raw, dict) or not raw.get("category"):
            continue
        terms = raw.get("searchTerms")
        requirements = raw.get("requirements")
        categories.append(
            CategoryPlan(
                category=str(raw["category"]),
                priority=int(_clamp(raw.get("priority", 5), 1, 10, 5)),
                budget_allocation=_clamp(raw.get("budgetAllocation"), 0, float("inf"), 0),
                search_terms=[str(t) for t in terms] if isinstance(terms, list) else [str(raw["category"])],
                requirements=[str(r) for r in requirements] if isinstance(requirements, list) else [],
            )
        )

    distribution = [
        BudgetDistribution(
            category=str(raw.get("category") or "Other"),
            amount=_clamp(raw.get("amount"), 0, float("inf"), 0),
            percentage=_clamp(raw.get("percentage"), 0, 100, 0),
            color=_color(raw.get("color"), index),
        )
        for index, raw in enumerate(parsed.get("budgetDistribution") or [])
        if isinstance(raw, dict)
    ]

    total_items = parsed.get("totalItems") or len(categories)
    return PlanResponse(
        categories=categories,
        budget_distribution=distribution,
        search_strategy=SearchStrategy(
            approach="setup" if parsed.get("approach") == "setup" else "single",
            categories=[c.category for c in categories],
            total_items=max(1, int(_clamp(total_items, 1, 100, 1))),
        ),
    )


def parse_plan_response(text: str, request: PlanRequest) -> PlanResponse:
    """계획 응답 파싱 (needs 형식과 categories 형식 모두 지원)"""
    try:
        parsed = extract_json(text)
        if isinstance(parsed.get("needs"), list):
            plan = _plan_from_needs(parsed, request)
        else:
            plan = _plan_from_categories(parsed)
        if not plan.categories:
            raise ResponseParseError("Plan has no categories")
        return plan
    except (ResponseParseError, ValueError, TypeError) as e:
        logger.warning(f"[GEMINI] plan parse failed, using fallback plan: {e}")
        return fallback_plan_response(request)


def parse_rank_response(
    text: str, products: list[RawProduct], preferences: Optional[UserPreferences] = None
) -> RankResponse:
    """랭킹 응답 파싱 (해석 불가면 휴리스틱 랭킹)"""
    try:
        parsed = extract_json(text)
        rankings = [r for r in parsed.get("rankings") or [] if isinstance(r, dict)]
        if not rankings:
            raise ResponseParseError("No rankings in response")
        rankings.sort(key=lambda r: _clamp(r.get("score"), float("-inf"), float("inf"), 0), reverse=True)

        ranked: list[Product] = []
        seen: set[int] = set()
        for ranking in rankings:
            index = ranking.get("productIndex")
            if not isinstance(index, int) or not 0 <= index < len(products) or index in seen:
                continue
            seen.add(index)
            ranked.append(
                to_product(
                    products[index],
                    rationale=ranking.get("rationale") or "AI-powered recommendation",
                    pros=[str(p) for p in ranking.get("pros") or []],
                    cons=[str(c) for c in ranking.get("cons") or []],
                    confidence=_clamp(ranking.get("confidence"), 0, 1, 0.8),
                    search_rank=len(ranked) + 1,
                )
            )
        if not ranked:
            raise ResponseParseError("Rankings reference no known products")

        reasoning = parsed.get("reasoning")
        return RankResponse(
            ranked_products=ranked,
            reasoning=[str(r) for r in reasoning] if isinstance(reasoning, list) and reasoning
            else ["AI-powered ranking based on multiple criteria"],
        )
    except (ResponseParseError, ValueError, TypeError) as e:
        logger.warning(f"[GEMINI] rank parse failed, using heuristic ranking: {e}")
        return heuristic_rank(products, None, preferences or UserPreferences(budget=1000))


def parse_product_selection(text: str, products: list[RawProduct], need: Need) -> Optional[Product]:
    """상품 선택 응답 파싱 (selectedIndex -1 또는 범위 밖이면 None)

    Raises:
        ResponseParseError: JSON을 해석할 수 없음
    """
    parsed = extract_json(text)
    index = parsed.get("selectedIndex")
    if not isinstance(index, int) or index < 0 or index >= len(products):
        return None

    return to_product(
        products[index],
        rationale=parsed.get("rationale") or "AI-selected best option",
        category=need.name,
        pros=[str(p) for p in parsed.get("pros") or []],
        cons=[str(c) for c in parsed.get("cons") or []],
        confidence=_clamp(parsed.get("confidence"), 0, 1, 0.8),
        search_rank=need.priority,
    )
