"""로깅 설정

- 로거 이름: ghost_setup (모듈은 모두 이 로거 하나를 import 해서 씀)
- production: 짧은 포맷, DEBUG 금지
- 외부 API 키는 URL 쿼리에 섞여 들어오므로 sanitize_for_log로 가림
"""
import logging
import re
import sys

from ghost_setup.core.config import settings

IS_PRODUCTION = settings.environment.lower() == "production"

_PRODUCTION_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
_DEVELOPMENT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"

# 요청 URL 전체를 INFO로 찍는 라이브러리 (api_key 쿼리 포함)
_NOISY_LOGGERS = ("httpx", "httpcore", "google_genai")

_SECRET_QUERY = re.compile(r"((?:api_key|key|token)=)[^&\s]+", re.IGNORECASE)
_SECRET_WORDS = ("password", "secret", "token", "api_key")


def _resolve_level(name: str) -> int:
    level = getattr(logging, name.upper(), logging.INFO)
    if IS_PRODUCTION and level < logging.INFO:
        return logging.INFO
    return level


def setup_logging() -> logging.Logger:
    """ghost_setup 로거 초기화 (여러 번 불러도 핸들러는 하나)"""
    level = _resolve_level(settings.log_level)

    app_logger = logging.getLogger("ghost_setup")
    app_logger.setLevel(level)

    if not app_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                fmt=_PRODUCTION_FORMAT if IS_PRODUCTION else _DEVELOPMENT_FORMAT,
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        app_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return app_logger


logger = setup_logging()


def sanitize_for_log(value: str, max_length: int = 100) -> str:
    """로그에 남길 문자열 정리

    key=/api_key=/token= 쿼리 값은 ***로 바꾸고, 그 밖의 민감 단어가
    들어 있으면 통째로 가린 뒤 max_length로 자릅니다.
    """
    if not value:
        return "[empty]"

    result = _SECRET_QUERY.sub(r"\1***", value)
    if _SECRET_QUERY.search(value) is None and any(word in result.lower() for word in _SECRET_WORDS):
        result = "***"

    if len(result) > max_length:
        result = result[:max_length] + "..."
    return result
