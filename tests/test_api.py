"""
Tests for the HTTP layer
Version: 1.0

Envelope, authentication, routing and the error mapping.
"""

import pytest

from conftest import auth


class TestEnvelope:

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client):
        response = await client.get("/me")

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Unauthenticated."}

    @pytest.mark.asyncio
    async def test_unknown_token_is_401(self, client):
        response = await client.get("/me", headers={"Authorization": "Bearer not-a-real-token"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_inactive_user_is_401(self, client, db, users):
        users["other"].is_active = False
        await db.commit()

        response = await client.get("/me", headers=auth("other"))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me(self, client):
        response = await client.get("/me", headers=auth("customer"))
        body = response.json()

        assert response.status_code == 200
        assert body["success"] is True
        assert "message" not in body
        assert body["data"]["email"] == "cara@example.com"
        assert body["data"]["role"] == "customer"

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/definitely/not/here", headers=auth("staff"))

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "API endpoint not found"}

    @pytest.mark.asyncio
    async def test_missing_entity_is_404(self, client):
        response = await client.get("/vehicles/4242", headers=auth("staff"))

        assert response.status_code == 404
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_request_validation_is_422_field_map(self, client):
        response = await client.post("/bookings", json={"start_date": "2030-01-01"}, headers=auth("customer"))
        body = response.json()

        assert response.status_code == 422
        assert body["success"] is False
        assert body["message"] == "Validation error"
        assert set(body["errors"]) == {"vehicle_id", "end_date"}

    @pytest.mark.asyncio
    async def test_customer_forbidden_is_403(self, client):
        response = await client.get("/stats", headers=auth("customer"))

        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "Unauthorized"}


class TestOperationalEndpoints:

    @pytest.mark.asyncio
    async def test_root(self, client):
        response = await client.get("/")
        assert response.json()["status"] == "running"

    @pytest.mark.asyncio
    async def test_liveness(self, client):
        response = await client.get("/health/live")
        assert response.json() == {"status": "alive"}

    @pytest.mark.asyncio
    async def test_trace_id_is_echoed(self, client):
        response = await client.get("/health/live", headers={"X-Trace-ID": "abc12345"})
        assert response.headers["X-Trace-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_metrics(self, client):
        await client.get("/me", headers=auth("staff"))
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "fleet_requests_total" in response.text
