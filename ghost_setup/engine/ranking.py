"""Heuristic Ranking - 가격/평점/리뷰/관련도 가중 점수

AI 랭킹이 실패하거나 응답을 해석할 수 없을 때 쓰는 로컬 랭킹입니다.
"""

from typing import Optional

from ghost_setup.schemas.product_schema import (
    Need,
    Product,
    RankingCriteria,
    RankResponse,
    RawProduct,
    UserPreferences,
)
from ghost_setup.utils.images import resolve_image

DEFAULT_RELEVANCE = 0.8
DEFAULT_BUDGET = 1000.0

# 교체 후보는 평점 비중을 높여서 정렬
SWAP_CRITERIA = RankingCriteria(
    price_weight=0.25,
    rating_weight=0.35,
    review_weight=0.25,
    relevance_weight=0.15,
)


def normalize_criteria(criteria: Optional[RankingCriteria]) -> RankingCriteria:
    """가중치가 모두 0이면 균등(0.25)으로 대체"""
    if criteria is None:
        return RankingCriteria()
    total = criteria.price_weight + criteria.rating_weight + criteria.review_weight + criteria.relevance_weight
    if total <= 0:
        return RankingCriteria()
    return criteria


def price_score(price: Optional[float], budget: Optional[float]) -> float:
    """가격 점수 (예산의 30~70% 부근이 유리, 너무 싸면 감점)"""
    b = budget if budget and budget > 0 else DEFAULT_BUDGET
    if price is None:
        return 0.6
    if price > b:
        return 0.0
    if price < b * 0.1:
        return 0.3
    return max(0.0, min(1.0, 1 - (price / b) * 0.7))


def heuristic_score(product: RawProduct, criteria: RankingCriteria, budget: Optional[float]) -> float:
    rating_score = max(0.0, min(1.0, (product.rating or 0) / 5))
    review_score = max(0.0, min(1.0, (product.review_count or 0) / 1000))
    return (
        price_score(product.price, budget) * criteria.price_weight
        + rating_score * criteria.rating_weight
        + review_score * criteria.review_weight
        + DEFAULT_RELEVANCE * criteria.relevance_weight
    )


def generate_pros(product: RawProduct) -> list[str]:
    pros = []
    rating = product.rating or 0
    reviews = product.review_count or 0
    if rating >= 4.5:
        pros.append("Excellent rating")
    elif rating >= 4.0:
        pros.append("Good rating")
    if reviews >= 1000:
        pros.append("Well-reviewed")
    elif reviews >= 100:
        pros.append("Decent review count")
    if product.merchant == "Amazon":
        pros.append("Fast shipping available")
    return pros[:3]


def generate_cons(product: RawProduct) -> list[str]:
    cons = []
    if (product.rating or 0) < 3.5:
        cons.append("Lower rating")
    if (product.review_count or 0) < 50:
        cons.append("Limited reviews")
    return cons[:2]


def to_product(
    raw: RawProduct,
    *,
    rationale: str,
    search_rank: int = 1,
    category: Optional[str] = None,
    pros: Optional[list[str]] = None,
    cons: Optional[list[str]] = None,
    confidence: float = 0.7,
) -> Product:
    """RawProduct → 추천 Product"""
    resolved_category = category or raw.category
    return Product(
        id=raw.id,
        title=raw.title,
        price=raw.price or 0.0,
        currency=raw.currency or "USD",
        merchant=raw.merchant or "Unknown",
        rating=raw.rating or 0.0,
        review_count=raw.review_count or 0,
        image_url=resolve_image(raw.image, raw.title, resolved_category or "Product"),
        product_url=raw.url or "#",
        rationale=rationale,
        category=resolved_category,
        pros=generate_pros(raw) if pros is None else pros,
        cons=generate_cons(raw) if cons is None else cons,
        confidence=max(0.0, min(1.0, confidence)),
        search_rank=max(1, search_rank),
    )


def heuristic_rank(
    products: list[RawProduct],
    criteria: Optional[RankingCriteria],
    preferences: UserPreferences,
) -> RankResponse:
    """점수 내림차순 정렬 (동점은 입력 순서 유지), searchRank는 1부터"""
    if not products:
        return RankResponse(ranked_products=[], reasoning=["No products provided for ranking"])

    weights = normalize_criteria(criteria)
    scored = [(heuristic_score(p, weights, preferences.budget), p) for p in products]
    scored.sort(key=lambda item: item[0], reverse=True)

    ranked = [
        to_product(
            raw,
            rationale=f"Scored {score * 100:.0f}/100 based on price, rating, and reviews",
            search_rank=index + 1,
        )
        for index, (score, raw) in enumerate(scored)
    ]
    return RankResponse(
        ranked_products=ranked,
        reasoning=[
            "Ranked using heuristic algorithm based on price, rating, and review count",
            f"Optimized for {preferences.style.lower()} style preferences",
        ],
    )


def select_fallback_product(
    need: Need,
    products: list[RawProduct],
    criteria: Optional[RankingCriteria] = None,
) -> Optional[Product]:
    """AI 선택이 실패했을 때 가중 점수 1위 후보 선택

    후보의 예산 필터는 호출자가 이미 적용했다고 가정하고, 가격 없는 상품만 제외합니다.
    동점이면 검색 순위가 앞선 상품이 이깁니다.
    """
    priced = [p for p in products if p.price]
    if not priced:
        return None

    weights = normalize_criteria(criteria)
    best = max(priced, key=lambda p: heuristic_score(p, weights, need.target_price))
    return to_product(
        best,
        rationale="Selected based on best value for money",
        category=need.name,
        pros=["Good value", "Within budget"],
        cons=["Limited AI analysis"],
        confidence=0.7,
        search_rank=need.priority,
    )
