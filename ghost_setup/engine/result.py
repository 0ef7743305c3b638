"""Build Result - 빌드 파이프라인 결과 표준 포맷"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ghost_setup.schemas.api_schema import BuildResponse


class BuildSource(str, Enum):
    """결과 출처"""

    CACHE = "cache"
    PIPELINE = "pipeline"


@dataclass
class BuildResult:
    """빌드 결과

    Attributes:
        response: 클라이언트에 그대로 내려갈 응답
        source: 결과 출처 ("cache" | "pipeline")
        elapsed_ms: 소요 시간 (밀리초)
        plan_source: 계획 출처 ("ai" | "fallback" | "single"), 캐시 히트면 None
        settings: 요청 설정 (검색 기록 저장용)
    """

    response: BuildResponse
    source: BuildSource
    elapsed_ms: float
    plan_source: Optional[str] = None
    settings: dict[str, Any] = field(default_factory=dict)

    @property
    def from_cache_hit(self) -> bool:
        return self.source == BuildSource.CACHE

    @property
    def search_id(self) -> Optional[str]:
        return self.response.search_id

    @property
    def product_count(self) -> int:
        return len(self.response.products)

    @classmethod
    def from_cache(cls, response: BuildResponse, elapsed_ms: float, settings: dict[str, Any]) -> "BuildResult":
        """캐시 히트 결과 생성"""
        return cls(
            response=response,
            source=BuildSource.CACHE,
            elapsed_ms=elapsed_ms,
            settings=settings,
        )

    @classmethod
    def from_pipeline(
        cls, response: BuildResponse, elapsed_ms: float, plan_source: str, settings: dict[str, Any]
    ) -> "BuildResult":
        """파이프라인 실행 결과 생성"""
        return cls(
            response=response,
            source=BuildSource.PIPELINE,
            elapsed_ms=elapsed_ms,
            plan_source=plan_source,
            settings=settings,
        )
