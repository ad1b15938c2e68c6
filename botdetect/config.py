"""
행동 데이터 수집 API 환경 설정 관리

Pydantic Settings를 사용하여 타입 안전한 환경 변수 관리를 제공합니다.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from functools import lru_cache


class Settings(BaseSettings):
    """
    행동 데이터 수집 API 전역 설정

    환경 변수에서 자동으로 값을 로드하며, 타입 검증을 수행합니다.
    """

    # 애플리케이션 기본 설정
    APP_NAME: str = "Bot Detection Behavior API"
    APP_VERSION: str = "1.0.0"
    ENV: str = "development"  # development, staging, production, testing
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # 데이터베이스 설정
    DATABASE_URL: str = "sqlite+aiosqlite:///./behavior.db"
    SQL_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 3600  # 1시간

    # CORS 설정 (수집 스크립트는 모든 사이트에서 호출됨)
    CORS_ORIGINS: List[str] = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = False

    # 요청 본문 최대 크기 (10MB)
    MAX_BODY_BYTES: int = 10 * 1024 * 1024

    # Rate Limiting 설정 (REDIS_URL이 없으면 인메모리)
    REDIS_URL: Optional[str] = None
    RATE_LIMIT_ENABLED: bool = True
    COLLECT_RATE_LIMIT: int = 100  # 수집 요청 / 창
    API_RATE_LIMIT: int = 200  # 조회 요청 / 창
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    # 통계 샘플 크기 (최근 24시간 이벤트 통계)
    STATS_SAMPLE_SIZE: int = 1000

    # 로깅 설정
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json, text

    # Sentry 설정 (에러 트래킹)
    SENTRY_DSN: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # 알 수 없는 환경 변수 무시
    )

    @property
    def is_development(self) -> bool:
        """개발 환경 여부"""
        return self.ENV == "development"

    @property
    def is_production(self) -> bool:
        """프로덕션 환경 여부"""
        return self.ENV == "production"

    @property
    def is_testing(self) -> bool:
        """테스트 환경 여부"""
        return self.ENV == "testing"

    def get_cors_origins(self) -> List[str]:
        """
        CORS Origins 목록 반환

        환경 변수에서 쉼표로 구분된 문자열을 리스트로 변환합니다.
        """
        if isinstance(self.CORS_ORIGINS, str):
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]
        return self.CORS_ORIGINS


@lru_cache
def get_settings() -> Settings:
    """
    설정 객체 싱글톤 반환

    @lru_cache를 사용하여 한 번만 로드됩니다.
    """
    return Settings()


# 전역 설정 인스턴스
settings = get_settings()
