"""
행동 데이터 수집 API 메인 애플리케이션

봇 탐지 모델 학습용 클라이언트 행동 데이터(마우스, 클릭, 스크롤, 키 타이밍,
페이지 뷰, 디바이스 핑거프린트)를 수집/저장하고 조회/집계 API를 제공합니다.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from botdetect.config import settings
from botdetect.database import init_db, close_db
from botdetect.middleware.body_limit import BodySizeLimitMiddleware
from botdetect.middleware.logging import StructuredLoggingMiddleware, configure_logging
from botdetect.middleware.rate_limiting import RateLimiter, RateLimitMiddleware
from botdetect.utils.exceptions import AppException, DatabaseException
from botdetect.utils.redis_client import init_redis, close_redis
from botdetect.utils.sentry_config import init_sentry
from botdetect.api.behavior import router as behavior_router
from botdetect.api.analytics import router as analytics_router

# 로깅 설정
configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
logger = logging.getLogger(__name__)

# Rate Limiter (Redis는 시작 시 연결되면 교체)
rate_limiter = RateLimiter()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    애플리케이션 생명주기 관리

    시작 시 데이터베이스 초기화 및 Redis 연결, 종료 시 연결 정리
    """
    logger.info("행동 데이터 수집 API 시작 중...")
    init_sentry(settings.SENTRY_DSN, settings.ENV, settings.APP_VERSION)

    await init_db()
    logger.info("데이터베이스 초기화 완료")

    if settings.REDIS_URL:
        rate_limiter.redis = await init_redis(settings.REDIS_URL)

    logger.info(f"Environment: {settings.ENV}")
    yield

    logger.info("행동 데이터 수집 API 종료 중...")
    if settings.REDIS_URL:
        await close_redis()
        rate_limiter.redis = None
    await close_db()
    logger.info("데이터베이스 연결 종료 완료")


# FastAPI 애플리케이션 생성
app = FastAPI(
    title=settings.APP_NAME,
    description="봇 탐지용 클라이언트 행동 데이터 수집 및 조회 API",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# 미들웨어 (마지막에 추가한 것이 가장 바깥)
if settings.RATE_LIMIT_ENABLED:
    app.add_middleware(
        RateLimitMiddleware,
        limiter=rate_limiter,
        collect_max_requests=settings.COLLECT_RATE_LIMIT,
        api_max_requests=settings.API_RATE_LIMIT,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )
app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.MAX_BODY_BYTES)
app.add_middleware(StructuredLoggingMiddleware)

# CORS 미들웨어 설정 (수집 스크립트가 임의의 사이트에서 호출)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)


def _error_detail(exc: AppException):
    """프로덕션이 아닐 때만 노출하는 상세 오류 문자열"""
    if settings.is_production:
        return None
    if isinstance(exc, DatabaseException) and exc.cause is not None:
        return str(exc.cause)
    errors = exc.details.get("errors")
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        return f"{location}: {first.get('msg')}"
    return None


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """애플리케이션 정의 예외를 표준 응답 봉투로 변환"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"AppException: {exc.message}",
        extra={
            "error_code": exc.error_code,
            "endpoint": request.url.path,
            "http_method": request.method,
        },
    )

    content = {"success": False, "message": exc.message}
    detail = _error_detail(exc)
    if detail:
        content["error"] = detail

    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """라우팅 단계 HTTP 예외 (404 등)"""
    message = "API endpoint not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """모든 예외를 캐치하는 최종 핸들러"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        exc_info=True,
        extra={"endpoint": request.url.path, "http_method": request.method},
    )
    content = {"success": False, "message": "Internal server error"}
    if not settings.is_production:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


# 헬스 체크 엔드포인트
@app.get("/", tags=["Health"])
async def root():
    """루트 엔드포인트 (서비스 상태 및 환경)"""
    return {
        "success": True,
        "message": "Bot Detection Behavior API is running!",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENV,
    }


# 라우터 등록
app.include_router(behavior_router)
app.include_router(analytics_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "botdetect.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
    )
