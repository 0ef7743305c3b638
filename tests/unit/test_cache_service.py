"""CacheService / 저장소 단위 테스트

- MemoryCacheStore: 주입한 시계로 TTL 만료 검증
- RedisCacheStore: redis.asyncio 클라이언트 Mock
- CacheService: strict 모드 (실패는 CacheException 계열)
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ghost_setup.core.exceptions import CacheConnectionException, CacheSerializationException
from ghost_setup.services import CacheService, MemoryCacheStore, RedisCacheStore, create_cache_store


class TestMemoryCacheStore:
    @pytest.mark.asyncio
    async def test_value_expires_after_ttl(self, memory_store, fake_clock):
        await memory_store.setex("search:k", 60, "v")

        fake_clock.advance(59)
        assert await memory_store.get("search:k") == "v"

        fake_clock.advance(1)
        assert await memory_store.get("search:k") is None
        assert await memory_store.exists("search:k") is False

    @pytest.mark.asyncio
    async def test_scan_keys_by_prefix(self, memory_store):
        await memory_store.setex("search:a", 60, "1")
        await memory_store.setex("search:b", 60, "1")
        await memory_store.setex("setup:c", 60, "1")

        assert sorted(await memory_store.scan_keys("search:*")) == ["search:a", "search:b"]

    @pytest.mark.asyncio
    async def test_delete_counts_only_live_keys(self, memory_store, fake_clock):
        await memory_store.setex("a", 10, "1")
        await memory_store.setex("b", 100, "1")
        fake_clock.advance(50)

        assert await memory_store.delete("a", "b", "missing") == 1

    @pytest.mark.asyncio
    async def test_write_reclaims_expired_keys(self, memory_store, fake_clock):
        """다시 조회되지 않는 만료 키도 다음 쓰기에서 정리"""
        for i in range(5):
            await memory_store.setex(f"search:old{i}", 1, "v")
        await memory_store.setex("search:live", 60, "v")
        fake_clock.advance(10)

        await memory_store.setex("search:new", 60, "v")

        assert sorted(memory_store._data) == ["search:live", "search:new"]


class TestRedisCacheStore:
    @pytest.mark.asyncio
    async def test_delegates_to_client(self):
        client = MagicMock()
        client.get = AsyncMock(return_value='{"a": 1}')
        client.setex = AsyncMock(return_value=True)
        client.exists = AsyncMock(return_value=1)
        client.ping = AsyncMock(return_value=True)
        store = RedisCacheStore("redis://localhost:6379/0", client=client)

        assert await store.get("k") == '{"a": 1}'
        await store.setex("k", 30, "v")
        client.setex.assert_awaited_once_with("k", 30, "v")
        assert await store.exists("k") is True
        assert await store.ping() is True

    def test_create_cache_store_uses_redis_when_configured(self):
        with patch("ghost_setup.services.impl.cache_store.settings") as mock_settings, patch(
            "ghost_setup.services.impl.cache_store.Redis"
        ) as mock_redis:
            mock_settings.redis_url = "redis://cache:6379/0"
            mock_settings.redis_socket_timeout_s = 1.0
            store = create_cache_store()

        assert isinstance(store, RedisCacheStore)
        mock_redis.from_url.assert_called_once()

    def test_create_cache_store_falls_back_to_memory(self):
        with patch("ghost_setup.services.impl.cache_store.settings") as mock_settings:
            mock_settings.redis_url = ""
            store = create_cache_store()

        assert isinstance(store, MemoryCacheStore)


class TestCacheService:
    @pytest.mark.asyncio
    async def test_set_then_get_returns_equal_value(self, cache_service):
        value = {"products": [{"id": "p1", "price": 19.99}], "isSetup": False}

        assert await cache_service.set("search:abc", value, 3600) is True
        assert await cache_service.get("search:abc") == value

    @pytest.mark.asyncio
    async def test_get_after_expiry_is_none(self, cache_service, fake_clock):
        await cache_service.set("search:abc", {"a": 1}, 10)
        fake_clock.advance(10)

        assert await cache_service.get("search:abc") is None

    @pytest.mark.asyncio
    async def test_store_read_failure_raises_connection_exception(self):
        store = MagicMock()
        store.get = AsyncMock(side_effect=ConnectionError("down"))
        service = CacheService(store=store)

        with pytest.raises(CacheConnectionException) as exc_info:
            await service.get("search:abc")

        assert exc_info.value.error_code == "CACHE_READ_FAILED"

    @pytest.mark.asyncio
    async def test_corrupt_payload_raises_serialization_exception(self, memory_store):
        await memory_store.setex("search:bad", 60, "{not json")
        service = CacheService(store=memory_store)

        with pytest.raises(CacheSerializationException):
            await service.get("search:bad")

    @pytest.mark.asyncio
    async def test_unserializable_value_raises(self, cache_service):
        value: dict = {}
        value["self"] = value  # 순환 참조

        with pytest.raises(CacheSerializationException):
            await cache_service.set("search:x", value, 60)

    @pytest.mark.asyncio
    async def test_health_check_false_on_ping_failure(self):
        store = MagicMock()
        store.ping = AsyncMock(side_effect=ConnectionError("down"))

        assert await CacheService(store=store).health_check() is False

    @pytest.mark.asyncio
    async def test_stats_and_clear_keep_shared_setups(self, cache_service):
        await cache_service.set("search:a", {"x": 1}, 60)
        await cache_service.set("generic:search:b", {"x": 1}, 60)
        await cache_service.set("setup:AbCd1234", {"x": 1}, 60)

        stats = await cache_service.get_stats()
        assert stats == {"searchResults": 1, "sharedSetups": 1, "generic": 1}

        cleared = await cache_service.clear()
        assert cleared == 2
        assert await cache_service.exists("setup:AbCd1234") is True
