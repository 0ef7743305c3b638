"""Pydantic 스키마 - 상품/계획/랭킹 도메인 레코드

JSON 표면은 camelCase(alias), 파이썬 코드에서는 snake_case 필드명을 씁니다.
"""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ghost_setup.utils.currency import get_region_from_currency

Currency = Literal["USD", "EUR", "GBP", "INR", "CAD", "AUD", "JPY", "CNY", "BRL", "MXN"]
Style = Literal["Premium", "Casual"]

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class CamelModel(BaseModel):
    """camelCase alias 공통 베이스"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """캐시/DB 저장용 JSON dict (camelCase)"""
        return self.model_dump(by_alias=True, mode="json")


class SearchSettings(CamelModel):
    """사용자 검색 설정"""
    style: Style = Field("Casual", description="Premium | Casual")
    budget: float = Field(..., gt=0, le=1_000_000, description="총 예산")
    currency: Currency = Field("USD", description="통화")
    amazon_only: bool = Field(False, description="Amazon 상품만")
    region: Optional[str] = Field(None, max_length=8, description="지역 (없으면 통화로 추정)")

    def resolved_region(self) -> str:
        return self.region or get_region_from_currency(self.currency)


class RawProduct(CamelModel):
    """검색 제공자가 돌려준 정규화 전 상품"""
    id: str
    title: str
    url: str = ""
    price: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None
    merchant: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    review_count: Optional[int] = Field(None, ge=0)
    image: Optional[str] = None
    ship_region: Optional[str] = None
    category: Optional[str] = None


class Product(CamelModel):
    """추천 상품"""
    id: str
    title: str
    price: float = Field(..., ge=0)
    currency: str = "USD"
    merchant: str = "Unknown"
    rating: float = Field(0, ge=0, le=5)
    review_count: int = Field(0, ge=0)
    image_url: str = ""
    product_url: str = "#"
    rationale: str = ""
    category: Optional[str] = None
    features: list[str] = Field(default_factory=list)
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    confidence: float = Field(0.7, ge=0, le=1)
    search_rank: int = Field(1, ge=1)


class BudgetDistribution(CamelModel):
    """예산 분배 항목 (차트용)"""
    category: str
    amount: float = Field(..., ge=0)
    percentage: float = Field(..., ge=0, le=100)
    color: str = Field("#FF6B6B", pattern=HEX_COLOR_PATTERN)


class Need(CamelModel):
    """계획 단계에서 나온 구매 항목"""
    key: str
    name: str
    target_price: float = Field(..., ge=0)
    specs: str = ""
    priority: int = Field(5, ge=1, le=10)


class CategoryPlan(CamelModel):
    category: str
    priority: int = Field(5, ge=1, le=10)
    budget_allocation: float = Field(..., ge=0)
    search_terms: list[str] = Field(default_factory=list)
    requirements: list[str] = Field(default_factory=list)


class SearchStrategy(CamelModel):
    approach: Literal["setup", "single"] = "single"
    categories: list[str] = Field(default_factory=list)
    total_items: int = Field(1, ge=0)


class PlanRequest(CamelModel):
    query: str = Field(..., min_length=1, max_length=200)
    budget: float = Field(..., gt=0, le=1_000_000)
    style: Style = "Casual"
    currency: Currency = "USD"

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be blank")
        return v.strip()


class PlanResponse(CamelModel):
    categories: list[CategoryPlan]
    budget_distribution: list[BudgetDistribution] = Field(default_factory=list)
    search_strategy: SearchStrategy


class SearchRequest(CamelModel):
    query: str = Field(..., min_length=1, max_length=200)
    category: Optional[str] = None
    budget: Optional[float] = Field(None, gt=0, le=1_000_000)
    currency: Currency = "USD"
    amazon_only: bool = False
    limit: int = Field(10, ge=1, le=50)

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be blank")
        return v.strip()


class SearchMetadata(CamelModel):
    total_results: int = 0
    search_time: float = 0  # 밀리초
    currency: str = "USD"
    query: str = ""


class SearchResponse(CamelModel):
    products: list[RawProduct]
    total_results: int = 0
    search_metadata: SearchMetadata


class RankingCriteria(CamelModel):
    price_weight: float = Field(0.25, ge=0, le=1)
    rating_weight: float = Field(0.25, ge=0, le=1)
    review_weight: float = Field(0.25, ge=0, le=1)
    relevance_weight: float = Field(0.25, ge=0, le=1)


class UserPreferences(CamelModel):
    style: Style = "Casual"
    budget: float = Field(..., gt=0, le=1_000_000)
    prioritize_rating: bool = False


class RankRequest(CamelModel):
    products: list[RawProduct] = Field(default_factory=list, max_length=100)
    criteria: RankingCriteria = Field(default_factory=RankingCriteria)
    user_preferences: UserPreferences


class RankResponse(CamelModel):
    ranked_products: list[Product]
    reasoning: list[str] = Field(default_factory=list)
