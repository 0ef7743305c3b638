"""ShareService 단위 테스트"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from ghost_setup.core.exceptions import CacheConnectionException, NotFoundException, ValidationException
from ghost_setup.schemas.api_schema import SharedSetup
from ghost_setup.schemas.product_schema import Product, SearchSettings
from ghost_setup.services.impl.share_service import ShareService
from ghost_setup.utils.share_id import is_valid_share_id

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def setup() -> SharedSetup:
    return SharedSetup(
        query="home office setup",
        products=[Product(id="p1", title="Desk", price=199.0, category="Desk")],
        total_cost=199.0,
        settings=SearchSettings(budget=500),
    )


@pytest.fixture
def share_service(cache_service) -> ShareService:
    return ShareService(cache_service, ttl=604800, base_url="https://ghost.example/", now=lambda: NOW)


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_stores_setup_and_returns_short_url(self, share_service, cache_service, setup):
        response = await share_service.create(setup)

        assert is_valid_share_id(response.share_id)
        assert len(response.share_id) == 8
        assert response.short_url == f"https://ghost.example/shared/{response.share_id}"
        assert response.expires_at == NOW + timedelta(days=7)

        stored = await cache_service.get(f"setup:{response.share_id}")
        assert stored["query"] == "home office setup"
        assert stored["accessCount"] == 0
        assert stored["shareId"] == response.share_id

    @pytest.mark.asyncio
    async def test_collisions_fall_back_to_long_id(self, setup):
        cache = MagicMock()
        cache.exists = AsyncMock(return_value=True)
        cache.set = AsyncMock(return_value=True)
        service = ShareService(cache, ttl=60, base_url="https://ghost.example")

        response = await service.create(setup)

        assert cache.exists.await_count == 10
        assert len(response.share_id) == 12

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, setup):
        cache = MagicMock()
        cache.exists = AsyncMock(return_value=False)
        cache.set = AsyncMock(side_effect=CacheConnectionException("down", "CACHE_WRITE_FAILED"))
        service = ShareService(cache, ttl=60, base_url="https://ghost.example")

        with pytest.raises(CacheConnectionException):
            await service.create(setup)


class TestGet:
    @pytest.mark.asyncio
    async def test_get_increments_access_count(self, share_service, setup):
        created = await share_service.create(setup)

        first = await share_service.get(created.share_id)
        second = await share_service.get(created.share_id)

        assert first.metadata.access_count == 1
        assert second.metadata.access_count == 2
        assert second.metadata.last_accessed == NOW.isoformat()
        assert second.setup == setup

    @pytest.mark.asyncio
    @pytest.mark.parametrize("share_id,code", [(None, "MISSING_SHARE_ID"), ("", "MISSING_SHARE_ID"), ("bad id!", "INVALID_SHARE_ID")])
    async def test_invalid_ids(self, share_service, share_id, code):
        with pytest.raises(ValidationException) as exc_info:
            await share_service.get(share_id)

        assert exc_info.value.error_code == code

    @pytest.mark.asyncio
    async def test_missing_setup_is_not_found(self, share_service):
        with pytest.raises(NotFoundException) as exc_info:
            await share_service.get("AbCd1234")

        assert exc_info.value.error_code == "SETUP_NOT_FOUND"
        assert exc_info.value.http_status == 404

    @pytest.mark.asyncio
    async def test_expired_setup_is_not_found(self, share_service, setup, fake_clock):
        created = await share_service.create(setup)
        fake_clock.advance(604800)

        with pytest.raises(NotFoundException):
            await share_service.get(created.share_id)
