"""공유 HTTP 클라이언트 (httpx)

- 외부 API 호출마다 AsyncClient를 만들면 TLS/커넥션 오버헤드가 커서
  프로세스 단위로 클라이언트를 재사용합니다.
- 앱 종료 시 close()로 정리합니다.
- 실패는 여기서 삼키지 않고 호출자(Provider)가 분류하도록 그대로 올립니다.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import httpx

from ghost_setup.core.config import settings
from ghost_setup.core.logging import logger


class SharedHttpClient:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._lock = asyncio.Lock()
        self._client: Optional[httpx.AsyncClient] = None
        # 테스트에서 httpx.MockTransport 주입
        self._transport = transport

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._lock:
            if self._client is not None:
                return self._client
            self._client = httpx.AsyncClient(
                headers=self.default_headers(),
                timeout=settings.http_timeout_s,
                follow_redirects=True,
                transport=self._transport,
            )
            return self._client

    def default_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": settings.http_user_agent,
            "Accept": "application/json",
        }

    async def get(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        timeout_s: Optional[float] = None,
    ) -> httpx.Response:
        client = await self._ensure_client()
        timeout = timeout_s if timeout_s is not None else settings.http_timeout_s
        return await client.get(url, params=params, timeout=timeout)

    async def close(self) -> None:
        async with self._lock:
            if self._client is None:
                return
            try:
                await self._client.aclose()
            except Exception as e:
                logger.info(f"[HTTP_CLIENT] close failed: {type(e).__name__}: {e!r}")
            self._client = None


_shared_http_client = SharedHttpClient()


def get_shared_http_client() -> SharedHttpClient:
    return _shared_http_client


async def shutdown_shared_http_client() -> None:
    await _shared_http_client.close()
