"""Budget Manager - 금액 예산 관리

빌드 결과가 사용자 예산(허용 오차 포함)을 넘지 않도록
후보 필터링, 전체 합계 조정, 예산 차트 계산을 담당합니다.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from ghost_setup.schemas.product_schema import BudgetDistribution, Product
from ghost_setup.utils.currency import is_within_budget

from .strategy import BUDGET_COLORS


@dataclass
class BudgetConfig:
    """예산 설정"""

    total_budget: float
    tolerance: float = 0.05  # 5% 초과까지 허용

    def __post_init__(self):
        """설정 검증"""
        if self.total_budget <= 0:
            raise ValueError(f"total_budget must be positive (got {self.total_budget})")
        if self.tolerance < 0:
            raise ValueError(f"tolerance must be >= 0 (got {self.tolerance})")

    @property
    def ceiling(self) -> float:
        return self.total_budget * (1 + self.tolerance)


class BudgetManager:
    """금액 예산 관리자

    Usage:
        manager = BudgetManager(BudgetConfig(total_budget=300))

        # 항목별 목표가 기준 후보 필터
        candidates = [p for p in raw if manager.fits_target(p.price, need.target_price)]

        # 선택된 상품 전체 합계 조정
        products = manager.enforce(selected)

        # 차트
        chart = manager.chart(products)
    """

    def __init__(self, config: BudgetConfig):
        self.config = config

    def fits_target(self, price: Optional[float], target: float) -> bool:
        """가격이 있고 목표가 × (1 + tolerance) 이하인지"""
        if price is None or price <= 0:
            return False
        return is_within_budget(price, target, self.config.tolerance)

    def total(self, products: Iterable[Product]) -> float:
        return round(sum(p.price for p in products), 2)

    def enforce(self, products: list[Product]) -> list[Product]:
        """합계가 예산 상한을 넘으면 우선순위 낮은(searchRank 큰) 상품부터 제외

        Returns:
            우선순위 순으로 정렬된, 상한 이내의 상품 목록
        """
        if self.total(products) <= self.config.ceiling:
            return list(products)

        kept: list[Product] = []
        running = 0.0
        for product in sorted(products, key=lambda p: p.search_rank):
            if running + product.price <= self.config.ceiling:
                kept.append(product)
                running += product.price
        return kept

    def remaining(self, products: Iterable[Product]) -> float:
        return round(self.config.total_budget - self.total(products), 2)

    def chart(self, products: list[Product]) -> list[BudgetDistribution]:
        """선택된 상품 기준 카테고리별 지출 비율"""
        total_cost = self.total(products)
        if total_cost <= 0:
            return []

        amounts: dict[str, float] = {}
        for product in products:
            category = product.category or "Other"
            amounts[category] = amounts.get(category, 0.0) + product.price

        return [
            BudgetDistribution(
                category=category,
                amount=round(amount, 2),
                percentage=round(amount / total_cost * 100, 1),
                color=BUDGET_COLORS[index % len(BUDGET_COLORS)],
            )
            for index, (category, amount) in enumerate(amounts.items())
        ]
