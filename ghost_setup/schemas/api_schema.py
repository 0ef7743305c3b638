"""Pydantic 스키마 - HTTP 요청/응답"""
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field, field_validator

from .product_schema import (
    BudgetDistribution,
    CamelModel,
    Currency,
    Product,
    SearchMetadata,
    SearchSettings,
    Style,
)

SceneStyle = Literal["Cozy", "Minimal", "Gaming", "Modern"]


def _strip_query(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("query must not be blank")
    return v.strip()


class BuildRequest(CamelModel):
    """세트 빌드 요청"""
    query: str = Field(..., min_length=1, max_length=200, description="예: home office setup")
    settings: SearchSettings

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        return _strip_query(v)


class BuildResponse(CamelModel):
    """세트 빌드 응답"""
    products: list[Product]
    budget_chart: Optional[list[BudgetDistribution]] = None
    ghost_tips: list[str] = Field(default_factory=list)
    search_metadata: SearchMetadata
    is_setup: bool = False
    search_id: Optional[str] = None


class RerollRequest(CamelModel):
    original_query: str = Field(..., min_length=1, max_length=200)
    settings: SearchSettings
    exclude_ids: list[str] = Field(default_factory=list, max_length=200)

    @field_validator("original_query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        return _strip_query(v)


class SwapSettings(CamelModel):
    style: Style = "Casual"
    currency: Currency = "USD"
    region: str = Field("US", max_length=8)
    amazon_only: bool = False


class SwapRequest(CamelModel):
    """상품 교체 후보 요청"""
    product_id: str = Field(..., min_length=1)
    category: Optional[str] = Field(None, max_length=100)
    product_title: Optional[str] = Field(None, max_length=300)
    budget: float = Field(..., gt=0, le=1_000_000)
    settings: SwapSettings
    exclude_ids: list[str] = Field(default_factory=list, max_length=200)


class SwapResponse(CamelModel):
    alternatives: list[Product]
    from_cache: bool = False


class SceneRequest(CamelModel):
    """AI 장면 이미지 생성 요청"""
    products: list[Product] = Field(..., min_length=1, max_length=10)
    style: SceneStyle = "Modern"
    room_type: Optional[str] = Field(None, max_length=50)


class SceneResult(CamelModel):
    image_url: str
    prompt: str
    style: str
    variation: int = 1
    is_placeholder: bool = False


class SceneResponse(CamelModel):
    scenes: list[SceneResult]
    count: int
    style: str
    product_count: int
    metadata: dict[str, Any] = Field(default_factory=dict)


class SharedSetup(CamelModel):
    """공유할 세트"""
    query: str = Field(..., min_length=1, max_length=200)
    products: list[Product] = Field(..., min_length=1, max_length=50)
    budget_distribution: Optional[list[BudgetDistribution]] = None
    total_cost: float = Field(..., ge=0)
    settings: SearchSettings


class ShareRequest(CamelModel):
    setup: SharedSetup


class ShareResponse(CamelModel):
    share_id: str
    short_url: str
    expires_at: datetime


class ShareMetadata(CamelModel):
    share_id: str
    shared_at: Optional[str] = None
    expires_at: Optional[str] = None
    access_count: int = 0
    last_accessed: Optional[str] = None


class SharedSetupResponse(CamelModel):
    setup: SharedSetup
    metadata: ShareMetadata


class SearchHistoryItem(CamelModel):
    search_id: str
    query: str
    settings: dict[str, Any] = Field(default_factory=dict)
    product_count: int = 0
    source: Optional[str] = None
    elapsed_ms: Optional[float] = None
    is_saved: bool = False
    created_at: Optional[datetime] = None


class SearchHistoryResponse(CamelModel):
    searches: list[SearchHistoryItem]
    total: int


class CachedResultsResponse(CamelModel):
    search_id: str
    query: str
    settings: dict[str, Any] = Field(default_factory=dict)
    products: list[Product] = Field(default_factory=list)
    is_saved: bool = False
    created_at: Optional[datetime] = None


class SaveSearchRequest(CamelModel):
    search_id: str = Field(..., min_length=1, max_length=64)


class SaveSearchResponse(CamelModel):
    success: bool
    search_id: str
    message: str


class CacheClearResponse(CamelModel):
    success: bool
    message: str
    cleared_keys: int = 0


class CacheStatsResponse(CamelModel):
    healthy: bool
    stats: dict[str, int] = Field(default_factory=dict)


class HealthResponse(CamelModel):
    """헬스 체크 응답"""
    status: str = Field(..., description="ok | degraded | error")
    timestamp: datetime
    version: str
    checks: dict[str, bool] = Field(default_factory=dict)
