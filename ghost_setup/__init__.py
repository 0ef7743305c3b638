"""Ghost Setup Finder - 예산 기반 상품 세트 추천 API"""

__version__ = "1.0.0"
