"""
Rate Limiting 미들웨어 (FastAPI 레벨)

목적: 수집 엔드포인트 남용 방지, 서버 자원 보호
전략:
- IP 기반 제한: 동일 IP에서 일정 시간 내 요청 횟수 제한
- 라우트 그룹별 제한: 수집(POST /api/collect-behavior)과 조회(/api/*)를 분리
"""

import time
import logging
from typing import Any, Dict, Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.base import RequestResponseEndpoint
from datetime import datetime

from botdetect.utils.request import get_client_ip

logger = logging.getLogger(__name__)


class RateLimiter:
    """Rate Limiting 로직 (Redis 또는 인메모리 슬라이딩 윈도우)"""

    # 만료 키 정리 최소 간격
    SWEEP_INTERVAL_SECONDS = 60

    def __init__(self, redis_client=None):
        """
        Args:
            redis_client: redis.asyncio 클라이언트 (None이면 인메모리 사용)
        """
        self.redis = redis_client
        # 인메모리 저장소 (Redis 없을 때 사용)
        self.memory_store: Dict[str, Dict[str, int]] = {}
        # 키별 시간 창 (만료 키 정리용)
        self._key_windows: Dict[str, int] = {}
        self._last_sweep = 0.0

    async def check_rate_limit(
        self, key: str, max_requests: int, window_seconds: int
    ) -> Dict[str, Any]:
        """
        Rate Limit 확인

        Args:
            key: 고유 키 (예: "ip:192.168.1.1:collect")
            max_requests: 시간 창 내 최대 요청 수
            window_seconds: 시간 창 (초)

        Returns:
            {
                "allowed": bool,  # 요청 허용 여부
                "requests_made": int,  # 현재까지 요청 수
                "requests_remaining": int,  # 남은 요청 수
                "reset_at": datetime,  # 제한 리셋 시간
                "retry_after": int,  # 재시도 가능 시간 (초)
            }
        """
        current_time = time.time()

        if self.redis:
            return await self._check_rate_limit_redis(
                key, max_requests, window_seconds, current_time
            )
        return self._check_rate_limit_memory(
            key, max_requests, window_seconds, current_time
        )

    async def _check_rate_limit_redis(
        self, key: str, max_requests: int, window_seconds: int, current_time: float
    ) -> Dict[str, Any]:
        """Redis 기반 Rate Limiting (sorted set)"""
        redis_key = f"rate_limit:{key}"

        pipe = self.redis.pipeline()
        pipe.zremrangebyscore(redis_key, 0, current_time - window_seconds)
        pipe.zadd(redis_key, {str(current_time): current_time})
        pipe.zcard(redis_key)
        pipe.expire(redis_key, window_seconds)
        _, _, requests_made, _ = await pipe.execute()

        allowed = requests_made <= max_requests
        requests_remaining = max(0, max_requests - requests_made)
        reset_at = datetime.fromtimestamp(current_time + window_seconds)
        retry_after = window_seconds if not allowed else 0

        return {
            "allowed": allowed,
            "requests_made": requests_made,
            "requests_remaining": requests_remaining,
            "reset_at": reset_at,
            "retry_after": retry_after,
        }

    def _check_rate_limit_memory(
        self, key: str, max_requests: int, window_seconds: int, current_time: float
    ) -> Dict[str, Any]:
        """인메모리 Rate Limiting (Redis 없을 때)"""
        if current_time - self._last_sweep >= self.SWEEP_INTERVAL_SECONDS:
            self._sweep_expired(current_time)
        self._key_windows[key] = window_seconds

        # 만료된 요청 제거
        window = {
            timestamp: count
            for timestamp, count in self.memory_store.get(key, {}).items()
            if current_time - float(timestamp) < window_seconds
        }

        requests_made = sum(window.values())
        allowed = requests_made < max_requests

        if allowed:
            window[str(current_time)] = window.get(str(current_time), 0) + 1

        if window:
            self.memory_store[key] = window
        else:
            self._forget(key)

        requests_remaining = max(0, max_requests - requests_made - 1)
        reset_at = datetime.fromtimestamp(current_time + window_seconds)
        retry_after = window_seconds if not allowed else 0

        return {
            "allowed": allowed,
            "requests_made": requests_made + (1 if allowed else 0),
            "requests_remaining": requests_remaining,
            "reset_at": reset_at,
            "retry_after": retry_after,
        }

    def _sweep_expired(self, current_time: float) -> None:
        """시간 창 안의 요청이 하나도 없는 키 제거"""
        self._last_sweep = current_time
        for key, window in list(self.memory_store.items()):
            window_seconds = self._key_windows.get(key, 0)
            if all(current_time - float(timestamp) >= window_seconds for timestamp in window):
                self._forget(key)
        for key in [k for k in self._key_windows if k not in self.memory_store]:
            del self._key_windows[key]

    def _forget(self, key: str) -> None:
        self.memory_store.pop(key, None)
        self._key_windows.pop(key, None)

    async def reset(self, key: str) -> None:
        """특정 키의 Rate Limit 리셋 (테스트용)"""
        if self.redis:
            await self.redis.delete(f"rate_limit:{key}")
        else:
            self._forget(key)


def route_group(path: str) -> Optional[str]:
    """
    경로의 Rate Limit 그룹

    Returns:
        "collect" | "api" | None (제한 제외)
    """
    if path.rstrip("/") == "/api/collect-behavior":
        return "collect"
    if path.startswith("/api/"):
        return "api"
    return None


class RateLimitMiddleware(BaseHTTPMiddleware):
    """FastAPI Rate Limiting 미들웨어"""

    def __init__(
        self,
        app,
        limiter: Optional[RateLimiter] = None,
        collect_max_requests: int = 100,
        api_max_requests: int = 200,
        window_seconds: int = 60,
    ):
        super().__init__(app)
        self.limiter = limiter or RateLimiter()
        self.group_limits = {
            "collect": collect_max_requests,
            "api": api_max_requests,
        }
        self.window_seconds = window_seconds

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        """/api 요청에 대해 Rate Limiting 적용"""
        group = route_group(request.url.path)
        if group is None or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = get_client_ip(request)
        max_requests = self.group_limits[group]

        result = await self.limiter.check_rate_limit(
            key=f"ip:{client_ip}:{group}",
            max_requests=max_requests,
            window_seconds=self.window_seconds,
        )

        headers = {
            "X-RateLimit-Limit": str(max_requests),
            "X-RateLimit-Remaining": str(result["requests_remaining"]),
            "X-RateLimit-Reset": result["reset_at"].isoformat(),
        }

        if not result["allowed"]:
            logger.warning(
                f"Rate limit exceeded for IP {client_ip} on {group}. "
                f"Requests: {result['requests_made']}/{max_requests}"
            )
            headers["Retry-After"] = str(result["retry_after"])

            message = (
                "Too many behavior data submissions, please try again later."
                if group == "collect"
                else "Too many API requests, please try again later."
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"success": False, "message": message},
                headers=headers,
            )

        response = await call_next(request)
        for header_name, header_value in headers.items():
            response.headers[header_name] = header_value

        return response
