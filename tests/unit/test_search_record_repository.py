"""SearchRecordRepository 테스트 (인메모리 sqlite)"""

import pytest

from ghost_setup.core.database import SessionLocal, init_db
from ghost_setup.repositories import SearchRecord, SearchRecordRepository


@pytest.fixture
def db():
    init_db()
    session = SessionLocal()
    session.query(SearchRecord).delete()
    session.commit()
    yield session
    session.close()


def _create(repo: SearchRecordRepository, search_id: str, query: str = "office chair") -> SearchRecord:
    return repo.create(
        search_id=search_id,
        query=query,
        settings={"style": "Casual", "budget": 300.0, "amazonOnly": False},
        products=[{"id": "p1", "price": 199.0}, {"id": "p2", "price": 49.0}],
        source="pipeline",
        elapsed_ms=812.5,
    )


def test_create_and_decode(db):
    """저장한 설정/상품을 그대로 복원"""
    repo = SearchRecordRepository(db)

    record = _create(repo, "search_1")

    assert record.product_count == 2
    assert repo.decode_settings(record)["amazonOnly"] is False
    assert [p["id"] for p in repo.decode_products(record)] == ["p1", "p2"]
    assert record.is_saved is False


def test_create_is_idempotent_per_search_id(db):
    repo = SearchRecordRepository(db)

    first = _create(repo, "search_1")
    second = _create(repo, "search_1", query="something else")

    assert second.id == first.id
    assert second.query == "office chair"
    assert repo.count() == 1


def test_mark_saved_and_list(db):
    repo = SearchRecordRepository(db)
    _create(repo, "search_1")
    _create(repo, "search_2", query="standing desk")

    assert repo.mark_saved("search_2").is_saved is True
    assert repo.mark_saved("search_missing") is None

    assert [r.search_id for r in repo.get_saved()] == ["search_2"]
    assert {r.search_id for r in repo.get_recent(10)} == {"search_1", "search_2"}
    assert len(repo.get_recent(1)) == 1
