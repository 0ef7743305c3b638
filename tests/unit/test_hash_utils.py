"""캐시 키 유틸리티 테스트"""

from ghost_setup.utils.hash_utils import (
    GENERIC_PREFIX,
    SEARCH_PREFIX,
    generate_cache_hash,
    generate_generic_cache_key,
    generate_search_cache_key,
    hash_string,
    time_bucket,
)


def _search_key(query="home office", now=1_700_000_000.0, **overrides):
    params = {
        "style": "Casual",
        "budget": 1500,
        "currency": "USD",
        "amazon_only": False,
        "region": "US",
    }
    params.update(overrides)
    return generate_search_cache_key(query, now=now, bucket_seconds=600, **params)


def test_hash_string_is_md5():
    assert hash_string("test") == "098f6bcd4621d373cade4e832627b4f6"


def test_cache_hash_ignores_key_order():
    assert generate_cache_hash({"a": 1, "b": 2}) == generate_cache_hash({"b": 2, "a": 1})


def test_cache_hash_ignores_nested_key_order():
    left = {"settings": {"budget": 100, "style": "Casual"}, "q": "desk"}
    right = {"q": "desk", "settings": {"style": "Casual", "budget": 100}}

    assert generate_cache_hash(left) == generate_cache_hash(right)


def test_cache_hash_differs_on_value():
    assert generate_cache_hash({"a": 1}) != generate_cache_hash({"a": 2})


def test_time_bucket():
    assert time_bucket(1200, 600) == 2
    assert time_bucket(1799, 600) == 2
    assert time_bucket(1800, 600) == 3


def test_search_key_prefix_and_normalized_query():
    key = _search_key("  Home Office  ")

    assert key.startswith(SEARCH_PREFIX)
    assert key == _search_key("home office")


def test_search_key_same_within_bucket():
    base = 1_700_000_400.0  # 버킷 시작 시각
    assert _search_key(now=base) == _search_key(now=base + 599)


def test_search_key_changes_across_bucket():
    base = 1_700_000_400.0
    assert _search_key(now=base) != _search_key(now=base + 600)


def test_search_key_depends_on_settings():
    assert _search_key() != _search_key(amazon_only=True)
    assert _search_key() != _search_key(budget=1501)
    assert _search_key() != _search_key(style="Premium")


def test_generic_key_scope_and_bucket():
    key = generate_generic_cache_key("swap", {"productId": "p1"})

    assert key.startswith(f"{GENERIC_PREFIX}swap:")
    assert key == generate_generic_cache_key("swap", {"productId": "p1"})
    assert generate_generic_cache_key("search", {"q": "x"}, now=0, bucket_seconds=600) != generate_generic_cache_key(
        "search", {"q": "x"}, now=600, bucket_seconds=600
    )
