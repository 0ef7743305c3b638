"""SerpAPI 응답 정규화

google_shopping / amazon 엔진의 원본 행(dict)을 RawProduct로 바꾸는
순수 함수 모음입니다. 네트워크 호출은 하지 않습니다.
"""

from __future__ import annotations

import re
from typing import Any, Optional
from urllib.parse import urlsplit

from ghost_setup.core.logging import logger
from ghost_setup.schemas.product_schema import RawProduct
from ghost_setup.utils.currency import guess_currency
from ghost_setup.utils.hash_utils import hash_string

_PRICE_PATTERN = re.compile(r"(\d[\d,]*(?:\.\d+)?)")

AMAZON_DOMAINS = (
    "amazon.com",
    "amazon.co.uk",
    "amazon.ca",
    "amazon.com.au",
    "amazon.in",
    "amazon.de",
    "amazon.co.jp",
    "amazon.cn",
    "amazon.com.br",
    "amazon.com.mx",
)

AMAZON_DOMAINS_BY_REGION = {
    "US": "amazon.com",
    "UK": "amazon.co.uk",
    "CA": "amazon.ca",
    "AU": "amazon.com.au",
    "IN": "amazon.in",
    "EU": "amazon.de",
}


def parse_price(text: Any) -> Optional[float]:
    """가격 문자열에서 첫 번째 양수 추출

    예시:
    - "$1,299.99" -> 1299.99
    - "from £19.99 to £29.99" -> 19.99
    - "free" -> None
    """
    if text is None:
        return None
    if isinstance(text, (int, float)):
        return float(text) if text > 0 else None
    match = _PRICE_PATTERN.search(str(text))
    if not match:
        return None
    try:
        value = float(match.group(1).replace(",", ""))
    except ValueError:
        return None
    return value if value > 0 else None


def to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def is_amazon_product(merchant: Optional[str], url: Optional[str]) -> bool:
    """판매처 이름이나 URL 도메인으로 Amazon 상품인지 판별"""
    if "amazon" in (merchant or "").lower():
        return True
    if not url:
        return False
    try:
        host = urlsplit(url).hostname or ""
    except ValueError:
        return False
    return any(host == domain or host.endswith("." + domain) for domain in AMAZON_DOMAINS)


def _first(item: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = item.get(key)
        if value:
            return value
    return None


def _fallback_id(prefix: str, index: int, title: str) -> str:
    # 같은 응답이면 같은 id (재정렬/제외 목록과 맞추기 위해 결정적으로)
    return f"{prefix}_{index}_{hash_string(title)[:8]}"


def _clamp_rating(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return max(0.0, min(5.0, value))


def normalize_shopping_item(
    item: dict[str, Any], index: int, currency: str, region: str
) -> Optional[RawProduct]:
    """google_shopping 결과 한 행 → RawProduct (제목 없으면 None)"""
    title = (item.get("title") or "").strip()
    if not title:
        return None

    price = item.get("extracted_price")
    if not isinstance(price, (int, float)) or price <= 0:
        price = parse_price(item.get("price"))

    product_id = _first(item, "product_id", "offer_id", "serpapi_product_id")
    nested = item.get("product") if isinstance(item.get("product"), dict) else {}
    url = _first(item, "link", "product_link", "source_link") or nested.get("link") or ""
    images = item.get("images") if isinstance(item.get("images"), list) else []

    review_count = to_int(item.get("reviews"))
    return RawProduct(
        id=str(product_id) if product_id else _fallback_id("serp", index, title),
        title=title,
        url=url,
        price=float(price) if price else None,
        currency=item.get("currency") or guess_currency(item.get("price"), currency),
        merchant=_first(item, "source", "seller", "store") or "Unknown",
        rating=_clamp_rating(to_float(item.get("rating"))),
        review_count=review_count if review_count and review_count > 0 else None,
        image=_first(item, "thumbnail", "image", "thumbnail_link") or (images[0] if images else None),
        ship_region=(region or "US").upper(),
    )


def normalize_amazon_item(item: dict[str, Any], index: int, region: str) -> Optional[RawProduct]:
    """amazon 엔진 organic_results 한 행 → RawProduct (제목/링크 없으면 None)"""
    title = (item.get("title") or "").strip()
    url = item.get("link") or ""
    if not title or not url:
        return None

    # extracted_price → price 문자열 → 정가(old price) 순으로 시도
    price = None
    extracted = item.get("extracted_price")
    if isinstance(extracted, (int, float)) and extracted > 0:
        price = float(extracted)
    if price is None:
        price = parse_price(item.get("price") if isinstance(item.get("price"), str) else None)
    if price is None:
        old = item.get("extracted_old_price")
        price = float(old) if isinstance(old, (int, float)) and old > 0 else parse_price(item.get("old_price"))

    product_id = _first(item, "asin", "product_id")
    review_count = to_int(item.get("reviews_count") or item.get("reviews"))
    return RawProduct(
        id=str(product_id) if product_id else _fallback_id("amz", index, title),
        title=title,
        url=url,
        price=price,
        currency="USD",
        merchant="Amazon",
        rating=_clamp_rating(to_float(item.get("rating")) or None),
        review_count=review_count if review_count and review_count > 0 else None,
        image=item.get("thumbnail"),
        ship_region=region,
    )


def parse_shopping_results(payload: dict[str, Any], currency: str, region: str) -> list[RawProduct]:
    """shopping_results → RawProduct 목록 (제목/URL 없는 행은 제외)"""
    rows = payload.get("shopping_results")
    if not isinstance(rows, list):
        logger.warning("[SERPAPI] shopping_results missing or not a list")
        return []

    products = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            continue
        product = normalize_shopping_item(row, index, currency, region)
        if product is not None and product.url:
            products.append(product)
    return products


def filter_amazon_only(products: list[RawProduct]) -> list[RawProduct]:
    """Amazon 상품만 남기고 판매처 이름을 "Amazon"으로 통일"""
    return [
        p.model_copy(update={"merchant": "Amazon"})
        for p in products
        if is_amazon_product(p.merchant, p.url)
    ]
