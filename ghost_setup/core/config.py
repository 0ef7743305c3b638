"""설정 관리 - 환경 변수 로드 및 검증"""
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 데이터베이스 (검색 기록 저장용)
    database_url: str = "sqlite:///./ghost_setup.db"

    # Redis
    # 비어 있으면 프로세스 로컬 메모리 저장소를 사용합니다.
    redis_url: str = ""
    redis_socket_timeout_s: float = 5.0
    # 캐시 조회/저장은 응답 경로에 있으므로 짧게 끊음
    cache_op_timeout_s: float = 1.0

    # 캐시 TTL (초)
    search_results_ttl: int = 3600  # 1시간
    shared_setup_ttl: int = 604800  # 7일
    generic_cache_ttl: int = 3600
    swap_cache_ttl: int = 1800  # 30분
    # 검색 캐시 키의 시간 버킷 (10분 단위로 키가 바뀜)
    cache_bucket_seconds: int = 600

    # 외부 API
    serpapi_key: str = ""
    serpapi_base_url: str = "https://serpapi.com/search.json"
    gemini_api_key: str = ""
    gemini_text_model: str = "gemini-2.0-flash"
    gemini_image_model: str = "gemini-2.0-flash-preview-image-generation"
    http_timeout_s: float = 15.0
    http_user_agent: str = "GhostSetupFinder/1.0"

    # 재시도 기본값
    retry_max_retries: int = 2
    retry_backoff_multiplier: float = 2.0
    retry_initial_delay_s: float = 0.8
    retry_max_delay_s: float = 10.0
    # 단일 시도에 거는 하드 캡. 0이면 비활성화
    external_call_timeout_s: float = 15.0

    # 빌드 파이프라인
    budget_tolerance: float = 0.05
    search_limit_per_need: int = 8

    # 공유 링크
    public_base_url: str = "http://localhost:3000"

    # API
    api_title: str = "Ghost Setup Finder API"
    api_version: str = "1.0.0"
    api_description: str = "예산 안에서 상품 세트를 계획하고 검색/랭킹/공유합니다."

    # 로깅 / 실행 환경 (development | test | production)
    environment: str = "development"
    log_level: str = "INFO"

    @field_validator(
        "search_results_ttl",
        "shared_setup_ttl",
        "generic_cache_ttl",
        "swap_cache_ttl",
        "cache_bucket_seconds",
    )
    @classmethod
    def validate_ttls(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("cache TTLs must be positive")
        return v

    @field_validator("http_timeout_s", "retry_initial_delay_s", "retry_max_delay_s", "cache_op_timeout_s")
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts and delays must be positive")
        return v

    @field_validator("external_call_timeout_s")
    @classmethod
    def validate_call_timeout(cls, v: float) -> float:
        if v < 0:
            raise ValueError("external_call_timeout_s must be >= 0")
        return v

    @field_validator("retry_max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("retry_max_retries must be >= 0")
        return v

    @field_validator("budget_tolerance")
    @classmethod
    def validate_budget_tolerance(cls, v: float) -> float:
        if v < 0:
            raise ValueError("budget_tolerance must be >= 0")
        return v

    @field_validator("search_limit_per_need")
    @classmethod
    def validate_search_limit(cls, v: int) -> int:
        if not 1 <= v <= 50:
            raise ValueError("search_limit_per_need must be between 1 and 50")
        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v:
            raise ValueError("database_url must not be empty")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
