"""예외 → 에러 응답 변환

모든 실패는 분류기를 거쳐 같은 봉투로 내려갑니다:
{error, type, message, code, retryable, details?, userMessage}
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ghost_setup.core.exceptions import ErrorType, GhostSetupException
from ghost_setup.core.logging import logger
from ghost_setup.engine.classifier import (
    classify_exception,
    get_user_friendly_message,
    status_for_exception,
    validation_exception_from_errors,
)


def error_response(exc: GhostSetupException) -> JSONResponse:
    """분류된 예외 → JSON 에러 응답"""
    body = exc.to_api_error().to_dict()
    if exc.error_type == ErrorType.INTERNAL_ERROR:
        # 내부 오류 메시지는 노출하지 않음
        body["message"] = "Internal server error"
        body.pop("details", None)
    body["userMessage"] = get_user_friendly_message(exc)
    return JSONResponse(status_code=status_for_exception(exc), content=body)


async def ghost_setup_exception_handler(request: Request, exc: GhostSetupException) -> JSONResponse:
    log = logger.error if exc.error_type == ErrorType.INTERNAL_ERROR else logger.warning
    log(f"[API] {request.method} {request.url.path} failed: {exc}")
    return error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    validation_error = validation_exception_from_errors(list(exc.errors()))
    logger.warning(f"[API] {request.method} {request.url.path} invalid request: {validation_error.message}")
    return error_response(validation_error)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    classified = classify_exception(exc, context=request.url.path)
    logger.error(f"[API] {request.method} {request.url.path} unhandled error: {exc}", exc_info=True)
    return error_response(classified)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GhostSetupException, ghost_setup_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
