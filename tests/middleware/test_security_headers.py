"""
Unit Tests: SecurityHeadersMiddleware
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from unittest.mock import patch

from middleware.security_headers import SecurityHeadersMiddleware


def build_app() -> FastAPI:
    app = FastAPI()

    @app.get("/api/ping")
    async def ping():
        return {"ok": True}

    app.add_middleware(SecurityHeadersMiddleware)
    return app


class TestSecurityHeaders:

    @pytest.mark.asyncio
    async def test_headers_present(self):
        async with AsyncClient(transport=ASGITransport(app=build_app()), base_url="http://test") as client:
            response = await client.get("/api/ping")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "no-referrer"
        assert "Strict-Transport-Security" not in response.headers

    @pytest.mark.asyncio
    async def test_hsts_when_enabled(self):
        with patch("config.HSTS_ENABLED", True):
            async with AsyncClient(transport=ASGITransport(app=build_app()), base_url="http://test") as client:
                response = await client.get("/api/ping")

        assert response.headers["Strict-Transport-Security"].startswith("max-age=31536000")
