"""상품 이미지 URL 검증 및 플레이스홀더"""
import re
from typing import Optional
from urllib.parse import parse_qs, quote, urlparse

_IRRELEVANT_IMAGE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (r"no-image", r"placeholder", r"default", r"missing", r"unavailable", r"generic", r"stock-photo", r"sample")
]

# 카테고리 키워드 → 플레이스홀더 배경색
_CATEGORY_COLORS = (
    ("gaming", "6366f1"),
    ("monitor", "3b82f6"),
    ("chair", "8b5cf6"),
    ("desk", "10b981"),
    ("keyboard", "f59e0b"),
    ("mouse", "ef4444"),
    ("headset", "ec4899"),
    ("laptop", "6b7280"),
    ("office", "059669"),
    ("storage", "7c3aed"),
    ("lighting", "f97316"),
)


def _dimension(params: dict[str, list[str]], *names: str) -> int:
    for name in names:
        values = params.get(name)
        if values and values[0].isdigit():
            return int(values[0])
    return 0


def validate_image_url(url: Optional[str]) -> Optional[str]:
    """http(s) 이미지이고 아이콘/빈 이미지로 보이지 않으면 그대로 반환"""
    if not url:
        return None
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    if any(p.search(url) for p in _IRRELEVANT_IMAGE_PATTERNS):
        return None

    params = parse_qs(parsed.query)
    width = _dimension(params, "w", "width")
    height = _dimension(params, "h", "height")
    if 0 < width < 100 or 0 < height < 100:
        return None
    return url


def placeholder_image(title: str, category: Optional[str]) -> str:
    """카테고리별 색상의 플레이스홀더 이미지 URL"""
    category_lower = (category or "").lower()
    color = "6b7280"
    for keyword, mapped in _CATEGORY_COLORS:
        if keyword in category_lower:
            color = mapped
            break
    return f"https://via.placeholder.com/400x300/{color}/ffffff?text={quote(title[:30])}"


def resolve_image(url: Optional[str], title: str, category: Optional[str]) -> str:
    return validate_image_url(url) or placeholder_image(title, category)
