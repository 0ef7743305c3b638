"""FastAPI 앱 팩토리"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ghost_setup.api import (
    build_router,
    cache_router,
    catalog_router,
    get_cache_service,
    health_router,
    history_router,
    register_error_handlers,
    scene_router,
    share_router,
)
from ghost_setup.core.config import settings
from ghost_setup.core.database import init_db
from ghost_setup.core.logging import logger
from ghost_setup.providers.http_client import shutdown_shared_http_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 생명주기"""
    logger.info("Starting application...")
    init_db()
    logger.info("Application started")
    yield
    logger.info("Shutting down application...")
    await shutdown_shared_http_client()
    await get_cache_service().close()


def create_app() -> FastAPI:
    """
    FastAPI 앱 생성 (Factory Pattern)

    Returns:
        FastAPI 앱 인스턴스
    """
    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # 라우터 등록
    app.include_router(health_router)
    app.include_router(build_router)
    app.include_router(catalog_router)
    app.include_router(scene_router)
    app.include_router(share_router)
    app.include_router(history_router)
    app.include_router(cache_router)

    return app


# 앱 인스턴스 생성 (uvicorn이 로드할 수 있도록)
app = create_app()
