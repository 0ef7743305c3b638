"""테스트 자산(데이터) 레이어

규칙:
- 로직 없음 (단순 dict/list/primitive)
- 엔진/네트워크 의존 없음
"""

from .build_payloads import BUILD_PAYLOADS
from .serp_payloads import SERP_PAYLOADS

__all__ = [
    "BUILD_PAYLOADS",
    "SERP_PAYLOADS",
]
