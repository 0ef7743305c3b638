"""공유 링크 Service

세트를 setup:<shareId> 키로 7일간 저장하고 짧은 URL을 돌려줍니다.
저장소가 곧 기능이므로 best-effort 어댑터가 아닌 CacheService를 직접 쓰며,
저장소 실패는 CacheException(INTERNAL)으로 그대로 올라갑니다.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ghost_setup.core.config import settings
from ghost_setup.core.exceptions import NotFoundException, ValidationException
from ghost_setup.core.logging import logger
from ghost_setup.schemas.api_schema import (
    ShareMetadata,
    ShareResponse,
    SharedSetup,
    SharedSetupResponse,
)
from ghost_setup.utils.hash_utils import SETUP_PREFIX, generate_key
from ghost_setup.utils.share_id import (
    FALLBACK_SHARE_ID_LENGTH,
    generate_share_id,
    is_valid_share_id,
)

from .cache_service import CacheService

MAX_ID_ATTEMPTS = 10

# 저장 시 setup 본문 옆에 붙는 내부 메타데이터 필드
_METADATA_FIELDS = ("shareId", "sharedAt", "expiresAt", "accessCount", "lastAccessed")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ShareService:
    """공유 세트 저장/조회"""

    def __init__(
        self,
        cache_service: CacheService,
        ttl: Optional[int] = None,
        base_url: Optional[str] = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.cache = cache_service
        self.ttl = ttl or settings.shared_setup_ttl
        self.base_url = (base_url or settings.public_base_url).rstrip("/")
        self._now = now

    async def _generate_unique_id(self) -> str:
        """충돌 검사 후 8자리 id, 10번 모두 충돌하면 12자리"""
        for _ in range(MAX_ID_ATTEMPTS):
            share_id = generate_share_id()
            if not await self.cache.exists(generate_key(SETUP_PREFIX, share_id)):
                return share_id
        logger.warning("[SHARE] id collisions exhausted, using long id")
        return generate_share_id(FALLBACK_SHARE_ID_LENGTH)

    async def create(self, setup: SharedSetup) -> ShareResponse:
        """세트 공유 링크 생성

        Raises:
            CacheException: 저장소 읽기/쓰기 실패
        """
        share_id = await self._generate_unique_id()
        now = self._now()
        expires_at = now + timedelta(seconds=self.ttl)

        record = setup.to_json_dict()
        record.update(
            {
                "shareId": share_id,
                "sharedAt": now.isoformat(),
                "expiresAt": expires_at.isoformat(),
                "accessCount": 0,
            }
        )
        await self.cache.set(generate_key(SETUP_PREFIX, share_id), record, self.ttl)
        logger.info(f"[SHARE] created {share_id} ({len(setup.products)} products)")

        return ShareResponse(
            share_id=share_id,
            short_url=f"{self.base_url}/shared/{share_id}",
            expires_at=expires_at,
        )

    async def get(self, share_id: Optional[str]) -> SharedSetupResponse:
        """공유 세트 조회 (조회수 증가, TTL 연장)

        Raises:
            ValidationException: id 누락(MISSING_SHARE_ID) 또는 형식 오류(INVALID_SHARE_ID)
            NotFoundException: 없거나 만료됨(SETUP_NOT_FOUND)
            CacheException: 저장소 실패
        """
        if not share_id:
            raise ValidationException("Share ID is required", "MISSING_SHARE_ID")
        if not is_valid_share_id(share_id):
            raise ValidationException("Invalid share ID format", "INVALID_SHARE_ID")

        key = generate_key(SETUP_PREFIX, share_id)
        record = await self.cache.get(key)
        if not record:
            raise NotFoundException("Shared setup not found or expired", "SETUP_NOT_FOUND")

        record["accessCount"] = int(record.get("accessCount") or 0) + 1
        record["lastAccessed"] = self._now().isoformat()
        await self.cache.set(key, record, self.ttl)

        metadata = ShareMetadata(
            share_id=share_id,
            shared_at=record.get("sharedAt"),
            expires_at=record.get("expiresAt"),
            access_count=record["accessCount"],
            last_accessed=record["lastAccessed"],
        )
        setup = SharedSetup.model_validate({k: v for k, v in record.items() if k not in _METADATA_FIELDS})
        return SharedSetupResponse(setup=setup, metadata=metadata)
