"""데이터베이스 모델"""
from sqlalchemy import Boolean, Column, Float, Index, Integer, String, Text, TIMESTAMP, func

from ghost_setup.core.database import Base


class SearchRecord(Base):
    """빌드 결과 기록 테이블 (검색 기록 / 저장한 검색 / 결과 재조회)"""

    __tablename__ = "search_records"

    id = Column(Integer, primary_key=True, index=True)
    search_id = Column(String(64), nullable=False, unique=True, index=True)
    query = Column(String(255), nullable=False, index=True)
    settings_json = Column(Text, nullable=False)  # JSON: SearchSettings (camelCase)
    results_json = Column(Text, nullable=False)  # JSON: Product 목록
    product_count = Column(Integer, nullable=False, default=0)
    source = Column(String(20), nullable=True)  # cache, pipeline
    elapsed_ms = Column(Float, nullable=True)
    is_saved = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now(), index=True)

    __table_args__ = (
        Index("idx_saved_created", "is_saved", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<SearchRecord(search_id={self.search_id}, query={self.query}, saved={self.is_saved})>"
