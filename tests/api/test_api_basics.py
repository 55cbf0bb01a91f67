"""
API Tests: envelope, headers and authentication

Runs the full application through httpx.ASGITransport with database
sessions bound to the in-memory test engine.
"""

import pytest

from tests.factories import auth_headers, create_user
from utils.security import create_access_token


class TestEnvelope:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["status"] == "success"
        assert body["message"] == "ExpressKart API is running"
        assert body["data"]["environment"] == "TEST"

    @pytest.mark.asyncio
    async def test_request_id_and_version_headers(self, client):
        generated = await client.get("/api/health")
        echoed = await client.get("/api/health", headers={"X-Request-ID": "trace-123"})

        assert len(generated.headers["X-Request-ID"]) == 12
        assert echoed.headers["X-Request-ID"] == "trace-123"
        assert echoed.headers["X-API-Version"] == "1"
        assert echoed.headers["X-Content-Type-Options"] == "nosniff"

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/api/nowhere")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "status": "error",
            "message": "Route /api/nowhere not found",
            "data": None,
        }

    @pytest.mark.asyncio
    async def test_validation_error_is_400(self, client, customer):
        response = await client.post("/api/orders", json={"items": []}, headers=auth_headers(customer))

        assert response.status_code == 400
        assert response.json()["success"] is False


class TestAuthentication:

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/cart")

        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized to access this route"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get("/api/cart", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_user(self, client):
        response = await client.get("/api/cart", headers={"Authorization": f"Bearer {create_access_token(999)}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_deactivated_user(self, client, test_session):
        dormant = await create_user(test_session, "Dormant User", is_active=False)

        response = await client.get("/api/users/me", headers=auth_headers(dormant))

        assert response.status_code == 401
        assert response.json()["message"] == "User account is deactivated"

    @pytest.mark.asyncio
    async def test_role_from_database(self, client, customer):
        response = await client.get("/api/admin/dashboard", headers=auth_headers(customer))

        assert response.status_code == 403
        assert response.json()["message"] == "User role user is not authorized to access this route"

    @pytest.mark.asyncio
    async def test_profile(self, client, customer):
        response = await client.get("/api/users/me", headers=auth_headers(customer))

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "asha.customer@example.com"
