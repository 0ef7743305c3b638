"""Retry/Backoff Executor

외부 호출을 지수 백오프 + 지터로 재시도합니다.

지연 계산:
    delay = min(initial × multiplier^attempt + jitter + (rate limit이면 +extra), max_delay)

재시도 여부는 Error Classifier의 retryable 판정을 따르며,
포기할 때는 마지막 시도의 예외 객체를 그대로 다시 던집니다.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from ghost_setup.core.config import settings
from ghost_setup.core.exceptions import ErrorType, NetworkException
from ghost_setup.core.logging import logger

from .classifier import classify_exception

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """재시도 설정"""

    max_retries: int = 2
    backoff_multiplier: float = 2.0
    initial_delay: float = 0.8  # 초
    max_delay: float = 10.0  # 초
    jitter: float = 0.25  # 0 ~ jitter 초 랜덤 가산
    rate_limit_extra_delay: float = 1.0  # rate limit 시 추가 대기
    attempt_timeout: Optional[float] = None  # 시도당 하드 캡 (None이면 없음)

    def __post_init__(self):
        """설정 검증"""
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")
        if self.attempt_timeout is not None and self.attempt_timeout <= 0:
            raise ValueError("attempt_timeout must be positive")

    @classmethod
    def from_settings(cls, **overrides) -> "RetryConfig":
        """환경 설정 기반 기본값"""
        values = {
            "max_retries": settings.retry_max_retries,
            "backoff_multiplier": settings.retry_backoff_multiplier,
            "initial_delay": settings.retry_initial_delay_s,
            "max_delay": settings.retry_max_delay_s,
            "attempt_timeout": settings.external_call_timeout_s or None,
        }
        values.update(overrides)
        return cls(**values)


# 보수적인 프로필 (재시도 3회, 1초 시작)
DEFAULT_RETRY_CONFIG = RetryConfig(max_retries=3, initial_delay=1.0, max_delay=10.0)


def compute_delay(
    attempt: int,
    config: RetryConfig,
    error_type: ErrorType,
    rng: Callable[[], float] = random.random,
) -> float:
    """attempt번째 실패 후 대기 시간 (초)"""
    base = config.initial_delay * (config.backoff_multiplier ** attempt)
    jitter = rng() * config.jitter
    extra = config.rate_limit_extra_delay if error_type == ErrorType.RATE_LIMIT_ERROR else 0.0
    return min(base + jitter + extra, config.max_delay)


async def _run_attempt(operation: Callable[[], Awaitable[T]], timeout: Optional[float]) -> T:
    if timeout is None:
        return await operation()
    try:
        return await asyncio.wait_for(operation(), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise NetworkException(
            f"Operation timed out after {timeout}s",
            "TIMEOUT",
            {"timeout_s": timeout},
        ) from e


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rng: Callable[[], float] = random.random,
    label: str = "operation",
) -> T:
    """operation을 재시도하며 실행

    Args:
        operation: 인자 없는 코루틴 팩토리 (시도마다 새로 호출됨)
        config: 재시도 설정 (없으면 RetryConfig())
        sleep: 대기 함수 (테스트에서 주입)
        rng: 0~1 난수 함수 (지터용)
        label: 로그용 이름

    Returns:
        operation의 결과

    Raises:
        Exception: 재시도 불가 오류이거나 재시도를 모두 소진한 경우 마지막 예외
    """
    config = config or RetryConfig()
    attempt = 0

    while True:
        try:
            return await _run_attempt(operation, config.attempt_timeout)
        except Exception as exc:
            classified = classify_exception(exc, label)
            if not classified.retryable:
                logger.debug(f"[RETRY] {label}: non-retryable {classified.error_code}, giving up")
                raise
            if attempt >= config.max_retries:
                logger.warning(
                    f"[RETRY] {label}: giving up after {attempt + 1} attempts ({classified.error_code})"
                )
                raise

            delay = compute_delay(attempt, config, classified.error_type, rng)
            logger.warning(
                f"[RETRY] {label}: attempt {attempt + 1}/{config.max_retries + 1} failed "
                f"({classified.error_code}), retrying in {delay:.2f}s"
            )
            await sleep(delay)
            attempt += 1
