"""
애플리케이션 공통 동작 통합 테스트

헬스 체크, 404 봉투, 요청 본문 크기 제한, CORS, 요청 ID
"""

import pytest

from botdetect.config import settings

pytestmark = pytest.mark.integration


class TestHealth:
    async def test_root(self, async_client):
        response = await async_client.get("/")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Bot Detection Behavior API is running!"
        assert body["environment"] == settings.ENV
        assert body["timestamp"]


class TestErrorEnvelope:
    async def test_unknown_route(self, async_client):
        response = await async_client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "API endpoint not found"}

    async def test_body_too_large(self, async_client):
        response = await async_client.post(
            "/api/collect-behavior",
            content=b" " * (settings.MAX_BODY_BYTES + 1),
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 413
        assert response.json() == {"success": False, "message": "Request body too large"}


class TestMiddleware:
    async def test_request_id_header(self, async_client):
        response = await async_client.get("/", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
        assert "X-Response-Time" in response.headers

    async def test_cors_preflight(self, async_client):
        response = await async_client.options(
            "/api/collect-behavior",
            headers={
                "Origin": "https://shop.test",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] in ("*", "https://shop.test")
