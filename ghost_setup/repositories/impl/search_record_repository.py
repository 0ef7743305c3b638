"""빌드 결과 기록 리포지토리 - DB 접근 로직"""
import json
from typing import Any, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from ghost_setup.core.exceptions import DatabaseException
from ghost_setup.core.logging import logger
from ghost_setup.repositories.models import SearchRecord


class SearchRecordRepository:
    """빌드 결과 기록 데이터 액세스 레이어"""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        search_id: str,
        query: str,
        settings: dict[str, Any],
        products: List[dict[str, Any]],
        source: Optional[str] = None,
        elapsed_ms: Optional[float] = None,
    ) -> SearchRecord:
        """빌드 결과 기록 (같은 search_id가 이미 있으면 기존 행 반환)"""
        existing = self.get_by_search_id(search_id)
        if existing is not None:
            return existing
        try:
            record = SearchRecord(
                search_id=search_id,
                query=query[:255],
                settings_json=json.dumps(settings, ensure_ascii=False),
                results_json=json.dumps(products, ensure_ascii=False),
                product_count=len(products),
                source=source,
                elapsed_ms=elapsed_ms,
                is_saved=False,
            )
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
            logger.info(f"[HISTORY] search record created: {search_id}")
            return record
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create search record: {e}")
            raise DatabaseException(f"Failed to create search record: {e}")

    def get_by_search_id(self, search_id: str) -> Optional[SearchRecord]:
        return self.db.query(SearchRecord).filter(SearchRecord.search_id == search_id).first()

    def get_recent(self, limit: int = 20) -> List[SearchRecord]:
        """최근 기록 조회"""
        return self.db.query(SearchRecord).order_by(
            desc(SearchRecord.created_at), desc(SearchRecord.id)
        ).limit(limit).all()

    def get_saved(self, limit: int = 50) -> List[SearchRecord]:
        """저장한 검색 조회"""
        return self.db.query(SearchRecord).filter(
            SearchRecord.is_saved.is_(True)
        ).order_by(
            desc(SearchRecord.created_at), desc(SearchRecord.id)
        ).limit(limit).all()

    def mark_saved(self, search_id: str) -> Optional[SearchRecord]:
        """저장 표시 (기록이 없으면 None)"""
        record = self.get_by_search_id(search_id)
        if record is None:
            return None
        try:
            record.is_saved = True
            self.db.commit()
            self.db.refresh(record)
            return record
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to save search {search_id}: {e}")
            raise DatabaseException(f"Failed to save search: {e}")

    def count(self) -> int:
        return self.db.query(SearchRecord).count()

    @staticmethod
    def decode_settings(record: SearchRecord) -> dict[str, Any]:
        return json.loads(record.settings_json or "{}")

    @staticmethod
    def decode_products(record: SearchRecord) -> List[dict[str, Any]]:
        return json.loads(record.results_json or "[]")
