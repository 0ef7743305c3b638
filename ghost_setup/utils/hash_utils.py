"""해싱 유틸리티 - 캐시 키 생성"""
import hashlib
import json
import time
from typing import Any, Mapping, Optional

# 캐시 네임스페이스 (키 prefix)
SEARCH_PREFIX = "search:"
SETUP_PREFIX = "setup:"
GENERIC_PREFIX = "generic:"
RATE_LIMIT_PREFIX = "rate:"

CACHE_VERSION = "v2"


def hash_string(text: str) -> str:
    """
    문자열을 MD5 해시로 변환

    Args:
        text: 해시할 문자열

    Returns:
        MD5 해시 문자열
    """
    return hashlib.md5(text.encode()).hexdigest()


def generate_cache_hash(data: Mapping[str, Any]) -> str:
    """
    dict를 키 순서와 무관한 해시로 변환

    키를 정렬한 뒤 `key:JSON(value)`를 "|"로 이어 붙여 해시합니다.
    중첩 dict도 sort_keys로 직렬화되므로 순서 영향을 받지 않습니다.

    Args:
        data: 해시할 데이터

    Returns:
        MD5 해시 문자열
    """
    parts = [
        f"{key}:{json.dumps(data[key], sort_keys=True, separators=(',', ':'), default=str)}"
        for key in sorted(data)
    ]
    return hash_string("|".join(parts))


def generate_key(prefix: str, identifier: str) -> str:
    """네임스페이스 prefix + 식별자로 캐시 키 생성"""
    return f"{prefix}{identifier}"


def time_bucket(now: Optional[float] = None, bucket_seconds: int = 600) -> int:
    """현재 시각을 bucket_seconds 단위로 내림한 버킷 번호"""
    current = time.time() if now is None else now
    return int(current // bucket_seconds)


def generate_search_cache_key(
    query: str,
    *,
    style: str,
    budget: float,
    currency: str,
    amazon_only: bool,
    region: Optional[str] = None,
    now: Optional[float] = None,
    bucket_seconds: int = 600,
) -> str:
    """
    빌드/검색 결과 캐시 키 생성

    같은 입력이라도 bucket_seconds(기본 10분)가 지나면 다른 키가 됩니다.

    Returns:
        "search:<md5>" 형태의 Redis 키
    """
    payload = {
        "query": query.strip().lower(),
        "style": style,
        "budget": budget,
        "currency": currency,
        "region": region,
        "amazonOnly": amazon_only,
        "cacheVersion": CACHE_VERSION,
        "timestamp": time_bucket(now, bucket_seconds),
    }
    return generate_key(SEARCH_PREFIX, generate_cache_hash(payload))


def generate_generic_cache_key(
    scope: str,
    data: Mapping[str, Any],
    *,
    now: Optional[float] = None,
    bucket_seconds: Optional[int] = None,
) -> str:
    """
    범용 캐시 키 생성 (검색/스왑 등 하위 호출용)

    Args:
        scope: 호출 구분자 (예: "serp", "swap")
        data: 키에 반영할 입력값
        bucket_seconds: 지정하면 시간 버킷도 키에 포함

    Returns:
        "generic:<scope>:<md5>" 형태의 키
    """
    payload = dict(data)
    if bucket_seconds:
        payload["timestamp"] = time_bucket(now, bucket_seconds)
    return generate_key(GENERIC_PREFIX, f"{scope}:{generate_cache_hash(payload)}")
