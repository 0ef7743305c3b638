"""Error Classifier - 임의의 실패를 다섯 가지 에러 종류로 분류

재시도 실행기(retry)와 HTTP 에러 핸들러가 같은 판정 기준을 쓰도록
분류 로직을 한 곳에 모아 둡니다.
"""

import asyncio
from typing import Any, Optional, Union

import httpx
from pydantic import ValidationError as PydanticValidationError

from ghost_setup.core.exceptions import (
    APIError,
    ErrorType,
    ExternalAPIException,
    GhostSetupException,
    InternalException,
    NetworkException,
    RateLimitException,
    ValidationException,
)


_STATUS_BY_TYPE: dict[ErrorType, int] = {
    ErrorType.VALIDATION_ERROR: 400,
    ErrorType.EXTERNAL_API_ERROR: 502,
    ErrorType.RATE_LIMIT_ERROR: 429,
    ErrorType.NETWORK_ERROR: 503,
    ErrorType.INTERNAL_ERROR: 500,
}


def status_for_error_type(error_type: ErrorType) -> int:
    """에러 종류 → HTTP 상태 코드"""
    return _STATUS_BY_TYPE.get(error_type, 500)


def status_for_exception(exc: GhostSetupException) -> int:
    """예외 → HTTP 상태 코드 (예외 클래스의 http_status 우선)"""
    return exc.http_status or status_for_error_type(exc.error_type)


def format_validation_issues(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """pydantic errors() 결과를 {path, message} 목록으로 변환"""
    issues = []
    for err in errors:
        loc = err.get("loc") or ()
        path = ".".join(str(part) for part in loc if part != "body")
        issues.append({"path": path, "message": str(err.get("msg", "invalid value"))})
    return issues


def validation_exception_from_errors(errors: list[dict[str, Any]]) -> ValidationException:
    """스키마 검증 오류 목록 → ValidationException"""
    issues = format_validation_issues(errors)
    message = "; ".join(f"{issue['path']}: {issue['message']}" for issue in issues) or "Invalid request data"
    return ValidationException(
        f"Validation failed: {message}",
        "SCHEMA_VALIDATION_ERROR",
        details={"issues": issues},
    )


def _extract_status(exc: BaseException) -> Optional[int]:
    """예외에서 HTTP 상태 코드 추출 (없으면 None)"""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    for attr in ("status_code", "status", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and 100 <= value <= 599:
            return value
    return None


def classify_exception(exc: BaseException, context: str = "") -> GhostSetupException:
    """예외를 GhostSetupException 계열로 분류

    Args:
        exc: 발생한 예외
        context: 로그/메시지용 호출 위치 (예: "SerpAPI search")

    Returns:
        GhostSetupException: 이미 분류된 예외면 그대로, 아니면 새로 만든 예외
    """
    if isinstance(exc, GhostSetupException):
        return exc

    prefix = f"{context}: " if context else ""

    if isinstance(exc, PydanticValidationError):
        return validation_exception_from_errors(exc.errors())

    # TimeoutError는 OSError 하위 클래스이므로 먼저 확인
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
        return NetworkException(f"{prefix}request timed out", "TIMEOUT")

    status = _extract_status(exc)
    if status is not None:
        if status == 429:
            return RateLimitException(f"{prefix}rate limited (HTTP 429)", "HTTP_429")
        return ExternalAPIException(
            f"{prefix}HTTP {status}: {exc}",
            f"HTTP_{status}",
            retryable=status >= 500,
            details={"status": status},
        )

    if isinstance(exc, (httpx.TransportError, ConnectionError, OSError)):
        return NetworkException(f"{prefix}network request failed: {exc}", "FETCH_FAILED")

    return InternalException(f"{prefix}{type(exc).__name__}: {exc}", "UNKNOWN_ERROR")


def is_retryable(exc: BaseException) -> bool:
    """재시도 실행기가 사용하는 재시도 가능 판정"""
    return classify_exception(exc).retryable


_ErrorLike = Union[APIError, GhostSetupException]


def get_user_friendly_message(error: _ErrorLike) -> str:
    """사용자에게 보여줄 안내 문구"""
    api_error = error.to_api_error() if isinstance(error, GhostSetupException) else error

    if api_error.type == ErrorType.VALIDATION_ERROR:
        return "Please check your input and try again."
    if api_error.type == ErrorType.EXTERNAL_API_ERROR:
        if "404" in api_error.code:
            return "No products found for your search. Try adjusting your filters or search terms."
        if "401" in api_error.code or "403" in api_error.code:
            return "Authentication error. Please try again later."
        return "Having trouble connecting to our services. Please try again in a moment."
    if api_error.type == ErrorType.RATE_LIMIT_ERROR:
        return "We're getting lots of requests! Please wait a moment and try again."
    if api_error.type == ErrorType.NETWORK_ERROR:
        return "Having trouble connecting. Please check your internet and try again."
    return "Something went wrong on our end. Please try again later."
