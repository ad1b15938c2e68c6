"""
Rate Limiting 미들웨어 유닛 테스트
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from botdetect.middleware import rate_limiting
from botdetect.middleware.rate_limiting import (
    RateLimiter,
    RateLimitMiddleware,
    route_group,
)


class TestRateLimiter:
    """RateLimiter 클래스 테스트 (인메모리)"""

    async def test_rate_limit_within_limit(self):
        """제한 내 요청 (정상)"""
        limiter = RateLimiter()

        for i in range(5):
            result = await limiter.check_rate_limit(
                key="test_key",
                max_requests=5,
                window_seconds=10,
            )
            assert result["allowed"] is True
            assert result["requests_made"] == i + 1
            assert result["requests_remaining"] >= 0

    async def test_rate_limit_exceeded(self):
        """Rate Limit 초과"""
        limiter = RateLimiter()

        for _ in range(3):
            result = await limiter.check_rate_limit(
                key="test_key_exceeded",
                max_requests=3,
                window_seconds=10,
            )
            assert result["allowed"] is True

        # 4번째 요청은 거부되어야 함
        result = await limiter.check_rate_limit(
            key="test_key_exceeded",
            max_requests=3,
            window_seconds=10,
        )
        assert result["allowed"] is False
        assert result["retry_after"] == 10

    async def test_keys_are_independent(self):
        """키별 독립 카운트"""
        limiter = RateLimiter()

        await limiter.check_rate_limit("ip:1.1.1.1:collect", 1, 60)
        result = await limiter.check_rate_limit("ip:2.2.2.2:collect", 1, 60)

        assert result["allowed"] is True

    async def test_reset(self):
        limiter = RateLimiter()
        await limiter.check_rate_limit("k", 1, 60)

        await limiter.reset("k")
        result = await limiter.check_rate_limit("k", 1, 60)

        assert result["allowed"] is True

    async def test_expired_keys_are_evicted(self, monkeypatch):
        """시간 창이 지난 IP 키는 저장소에서 제거"""
        now = [1000.0]
        monkeypatch.setattr(rate_limiting.time, "time", lambda: now[0])
        limiter = RateLimiter()

        await limiter.check_rate_limit("ip:1.1.1.1:collect", 100, 60)
        now[0] = 1061.0
        await limiter.check_rate_limit("ip:2.2.2.2:collect", 100, 60)

        assert "ip:1.1.1.1:collect" not in limiter.memory_store
        assert "ip:2.2.2.2:collect" in limiter.memory_store

    async def test_active_keys_survive_sweep(self, monkeypatch):
        now = [1000.0]
        monkeypatch.setattr(rate_limiting.time, "time", lambda: now[0])
        limiter = RateLimiter()

        await limiter.check_rate_limit("ip:1.1.1.1:collect", 100, 60)
        now[0] = 1050.0
        await limiter.check_rate_limit("ip:1.1.1.1:collect", 100, 60)
        now[0] = 1061.0
        await limiter.check_rate_limit("ip:2.2.2.2:collect", 100, 60)

        assert "ip:1.1.1.1:collect" in limiter.memory_store

    async def test_rejected_request_with_empty_window_leaves_no_key(self):
        limiter = RateLimiter()

        result = await limiter.check_rate_limit("ip:3.3.3.3:collect", 0, 60)

        assert result["allowed"] is False
        assert limiter.memory_store == {}

    async def test_redis_backend(self):
        """Redis sorted set 백엔드"""
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=[0, 1, 4, True])
        redis_client = MagicMock()
        redis_client.pipeline.return_value = pipe

        limiter = RateLimiter(redis_client=redis_client)
        result = await limiter.check_rate_limit("ip:1.2.3.4:api", 3, 60)

        assert result["allowed"] is False
        assert result["requests_made"] == 4
        assert result["retry_after"] == 60
        pipe.zadd.assert_called_once()


class TestRouteGroup:
    """라우트 그룹 분류"""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/api/collect-behavior", "collect"),
            ("/api/collect-behavior/", "collect"),
            ("/api/behavior-data", "api"),
            ("/api/stats", "api"),
            ("/", None),
            ("/docs", None),
        ],
    )
    def test_route_group(self, path, expected):
        assert route_group(path) == expected


class TestRateLimitMiddleware:
    """미들웨어 동작"""

    @pytest.fixture
    def app(self):
        app = FastAPI()
        app.add_middleware(
            RateLimitMiddleware,
            limiter=RateLimiter(),
            collect_max_requests=2,
            api_max_requests=3,
            window_seconds=60,
        )

        @app.post("/api/collect-behavior")
        async def collect():
            return {"success": True}

        @app.get("/api/stats")
        async def stats():
            return {"success": True}

        @app.get("/")
        async def health():
            return {"success": True}

        return app

    async def test_collect_limit_returns_429_envelope(self, app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as client:
            for _ in range(2):
                response = await client.post("/api/collect-behavior")
                assert response.status_code == 200
                assert response.headers["X-RateLimit-Limit"] == "2"

            response = await client.post("/api/collect-behavior")

        assert response.status_code == 429
        assert response.json() == {
            "success": False,
            "message": "Too many behavior data submissions, please try again later.",
        }
        assert response.headers["Retry-After"] == "60"

    async def test_groups_are_counted_separately(self, app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as client:
            for _ in range(3):
                await client.post("/api/collect-behavior")
            response = await client.get("/api/stats")

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "3"

    async def test_health_not_limited(self, app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as client:
            for _ in range(10):
                response = await client.get("/")

        assert response.status_code == 200
        assert "X-RateLimit-Limit" not in response.headers

    async def test_forwarded_for_is_the_client_key(self, app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as client:
            for _ in range(2):
                await client.post(
                    "/api/collect-behavior", headers={"X-Forwarded-For": "9.9.9.9"}
                )
            response = await client.post(
                "/api/collect-behavior", headers={"X-Forwarded-For": "8.8.8.8"}
            )

        assert response.status_code == 200
