"""Plan Strategy - 질의 유형 판별 및 로컬 계획

AI 계획이 없거나 실패했을 때 쓸 결정적인(deterministic) 계획을 만듭니다.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ghost_setup.schemas.product_schema import BudgetDistribution, Need, PlanResponse

# 차트 색상 팔레트 (순환 사용)
BUDGET_COLORS = ["#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FECA57", "#FF9FF3", "#54A0FF", "#5F27CD"]

SETUP_KEYWORDS = (
    "setup", "room", "office", "bedroom", "kitchen", "living room",
    "gaming", "workspace", "studio", "home office", "apartment",
    "desk setup", "work from home", "home workspace", "office setup",
)

_HOME_OFFICE_TRIGGERS = ("home office", "office setup", "workspace", "work from home")
_GAMING_TRIGGERS = ("gaming", "game", "pc")


class PlanType(str, Enum):
    """계획 유형"""

    SETUP = "SETUP"
    SINGLE = "SINGLE"


class PlanSource(str, Enum):
    """계획 출처"""

    AI = "ai"
    FALLBACK = "fallback"
    SINGLE = "single"


@dataclass(frozen=True)
class Plan:
    """검색할 항목 목록 + 예산 분배"""

    plan_type: PlanType
    needs: list[Need]
    budget_distribution: list[BudgetDistribution] = field(default_factory=list)
    source: PlanSource = PlanSource.FALLBACK

    @property
    def is_setup(self) -> bool:
        return self.plan_type == PlanType.SETUP


# (key, 비율, Premium 이름, 일반 이름, Premium 스펙, 일반 스펙)
_HOME_OFFICE_NEEDS = (
    ("desk", 0.25, "Premium Standing Desk Large", "Office Desk Large",
     "Standing desk Premium materials Large surface", "Large surface Sturdy Good storage"),
    ("chair", 0.20, "Premium Ergonomic Office Chair", "Ergonomic Office Chair",
     "Premium ergonomic Lumbar support High-end materials", "Ergonomic Comfortable Adjustable"),
    ("monitor", 0.18, "4K Monitor 27 inch Professional", "Monitor 24 inch Office",
     "4K 27+ inch IPS Professional", "1080p+ Good size IPS"),
    ("laptop", 0.15, "Premium Business Laptop", "Business Laptop",
     "High performance Premium build Professional", "Good performance Reliable Business grade"),
    ("lighting", 0.08, "Premium Desk Lamp LED", "Desk Lamp LED",
     "LED Premium design Adjustable", "LED Good lighting Adjustable"),
    ("storage", 0.07, "Premium Office Storage Cabinet", "Office Storage Solutions",
     "Premium materials Good capacity Stylish", "Good storage Functional Affordable"),
    ("keyboard", 0.04, "Premium Wireless Keyboard Mouse", "Wireless Keyboard Mouse Set",
     "Premium wireless Ergonomic Professional", "Wireless Reliable Good quality"),
    ("accessories", 0.03, "Office Desk Accessories", "Office Desk Accessories",
     "Desk organizer Useful accessories Good quality", "Desk organizer Useful accessories Good quality"),
)

_GAMING_NEEDS = (
    ("gaming_pc", 0.45, "High-End Gaming PC Desktop Computer", "Gaming PC Desktop Computer",
     "RTX 4070+ Intel i7+ 32GB RAM", "GTX 1660+ Intel i5+ 16GB RAM"),
    ("monitor", 0.20, "4K Gaming Monitor 144Hz", "Gaming Monitor 1080p 144Hz",
     "4K 144Hz HDR IPS", "1080p 144Hz Fast response"),
    ("chair", 0.15, "Premium Gaming Chair Ergonomic", "Gaming Chair Comfortable",
     "Ergonomic Leather Premium", "Comfortable Adjustable"),
    ("desk", 0.08, "Premium Gaming Desk Large", "Gaming Desk",
     "Large Premium materials", "Sturdy Good size"),
    ("keyboard", 0.04, "Mechanical Gaming Keyboard RGB", "Gaming Keyboard",
     "Mechanical RGB Premium", "Responsive Good build"),
    ("mouse", 0.03, "High-End Gaming Mouse", "Gaming Mouse",
     "High DPI Premium sensor", "Good DPI Reliable"),
    ("headset", 0.03, "Premium Gaming Headset", "Gaming Headset",
     "7.1 Surround Premium", "Good sound Comfortable"),
    ("mousepad", 0.02, "Gaming Mousepad Large", "Gaming Mousepad Large",
     "Large Extended Good surface", "Large Extended Good surface"),
)


class PlanStrategy:
    """계획 전략 결정

    Usage:
        if PlanStrategy.is_single_item_query(query):
            plan = PlanStrategy.single_item_plan(query, budget)
        else:
            plan = PlanStrategy.fallback_plan(query, budget, style)
    """

    @staticmethod
    def is_single_item_query(query: str) -> bool:
        """세트 키워드가 하나도 없으면 단일 상품 질의"""
        query_lower = query.lower()
        return not any(keyword in query_lower for keyword in SETUP_KEYWORDS)

    @staticmethod
    def single_item_plan(query: str, budget: float) -> Plan:
        """질의 자체를 하나의 항목으로 (목표가 = 전체 예산)"""
        need = Need(key="item", name=query, target_price=budget, specs="Within budget Good quality", priority=1)
        return Plan(
            plan_type=PlanType.SINGLE,
            needs=[need],
            budget_distribution=PlanStrategy.distribution_for_needs([need], budget),
            source=PlanSource.SINGLE,
        )

    @staticmethod
    def fallback_plan(query: str, budget: float, style: str) -> Plan:
        """키워드 기반 로컬 계획 (홈오피스 / 게이밍 / 단일)"""
        query_lower = query.lower()
        is_premium = style == "Premium"

        template: Optional[tuple] = None
        if any(t in query_lower for t in _HOME_OFFICE_TRIGGERS):
            template = _HOME_OFFICE_NEEDS
        elif any(t in query_lower for t in _GAMING_TRIGGERS):
            template = _GAMING_NEEDS

        if template is None:
            plan = PlanStrategy.single_item_plan(query, budget)
            return Plan(plan.plan_type, plan.needs, plan.budget_distribution, PlanSource.FALLBACK)

        needs = [
            Need(
                key=key,
                name=premium_name if is_premium else name,
                target_price=round(budget * ratio, 2),
                specs=premium_specs if is_premium else specs,
                priority=min(index + 1, 10),
            )
            for index, (key, ratio, premium_name, name, premium_specs, specs) in enumerate(template)
        ]
        return Plan(
            plan_type=PlanType.SETUP,
            needs=needs,
            budget_distribution=PlanStrategy.distribution_for_needs(needs, budget),
            source=PlanSource.FALLBACK,
        )

    @staticmethod
    def from_plan_response(response: PlanResponse, budget: float) -> Plan:
        """AI 계획 응답 → Plan (categories를 needs로 변환)"""
        needs = [
            Need(
                key=category.category.lower().replace(" ", "_"),
                name=category.category,
                target_price=category.budget_allocation,
                specs=" ".join(category.requirements),
                priority=category.priority,
            )
            for category in response.categories
            if category.category
        ]
        distribution = response.budget_distribution or PlanStrategy.distribution_for_needs(needs, budget)
        plan_type = PlanType.SETUP if response.search_strategy.approach == "setup" or len(needs) > 1 else PlanType.SINGLE
        return Plan(plan_type=plan_type, needs=needs, budget_distribution=distribution, source=PlanSource.AI)

    @staticmethod
    def distribution_for_needs(needs: list[Need], budget: float) -> list[BudgetDistribution]:
        """항목별 목표가 → 차트 데이터"""
        return [
            BudgetDistribution(
                category=need.name,
                amount=round(need.target_price, 2),
                percentage=min(100.0, round(need.target_price / budget * 100, 1)) if budget > 0 else 0.0,
                color=BUDGET_COLORS[index % len(BUDGET_COLORS)],
            )
            for index, need in enumerate(needs)
        ]
