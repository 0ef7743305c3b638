"""커스텀 예외 정의 (Structured Exception Hierarchy)

모든 실패는 다섯 가지 종류(ErrorType) 중 하나로 분류되며,
HTTP 응답 직전에 APIError 레코드로 변환됩니다.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ErrorType(str, Enum):
    """실패 종류"""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    EXTERNAL_API_ERROR = "EXTERNAL_API_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class APIError:
    """클라이언트에 노출되는 에러 레코드 (생성 후 불변)"""

    type: ErrorType
    message: str
    code: str
    retryable: bool
    details: Optional[dict[str, Any]] = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error": True,
            "type": self.type.value,
            "message": self.message,
            "code": self.code,
            "retryable": self.retryable,
        }
        if self.details:
            payload["details"] = self.details
        return payload


# 기본 예외 클래스
class GhostSetupException(Exception):
    """기본 예외 클래스 - 모든 커스텀 예외의 부모"""

    error_type: ErrorType = ErrorType.INTERNAL_ERROR
    default_code: str = "INTERNAL_ERROR"
    default_retryable: bool = False
    # 지정하면 에러 종류 기본 상태 코드 대신 사용
    http_status: Optional[int] = None

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        retryable: Optional[bool] = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}
        self.retryable = self.default_retryable if retryable is None else retryable
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def to_api_error(self) -> APIError:
        return APIError(
            type=self.error_type,
            message=self.message,
            code=self.error_code,
            retryable=self.retryable,
            details=dict(self.details) if self.details else None,
        )


class ValidationException(GhostSetupException):
    """입력 검증 실패 (재시도 불가)"""

    error_type = ErrorType.VALIDATION_ERROR
    default_code = "VALIDATION_FAILED"

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code, details, retryable=False)


class NotFoundException(ValidationException):
    """요청한 리소스 없음 (만료 포함)"""

    default_code = "NOT_FOUND"
    http_status = 404


class ExternalAPIException(GhostSetupException):
    """외부 API(검색/AI) 실패"""

    error_type = ErrorType.EXTERNAL_API_ERROR
    default_code = "EXTERNAL_API_FAILED"
    default_retryable = True

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        retryable: bool = True,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details, retryable=retryable)


class RateLimitException(GhostSetupException):
    """업스트림 쿼터 초과 (재시도 가능, 추가 대기)"""

    error_type = ErrorType.RATE_LIMIT_ERROR
    default_code = "RATE_LIMIT_EXCEEDED"
    default_retryable = True

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code, details, retryable=True)


class NetworkException(GhostSetupException):
    """연결 실패/타임아웃 (재시도 가능)"""

    error_type = ErrorType.NETWORK_ERROR
    default_code = "NETWORK_FAILED"
    default_retryable = True

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code, details, retryable=True)


class InternalException(GhostSetupException):
    """내부 오류 (재시도 불가)"""

    error_type = ErrorType.INTERNAL_ERROR
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code, details, retryable=False)


# 캐시 관련 예외
class CacheException(InternalException):
    """캐시 관련 예외"""
    def __init__(self, message: str, error_code: str = "CACHE_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "CACHE_ERROR", details)


class CacheConnectionException(CacheException):
    """캐시 연결/읽기/쓰기 실패"""
    def __init__(self, message: str, error_code: str = "CACHE_CONNECTION_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class CacheSerializationException(CacheException):
    """캐시 직렬화/역직렬화 오류"""
    def __init__(self, message: str, error_code: str = "CACHE_SERIALIZATION_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code, details)


# 데이터베이스 관련 예외
class DatabaseException(InternalException):
    """데이터베이스 관련 예외"""
    def __init__(self, message: str, error_code: str = "DB_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "DB_ERROR", details)
