"""HTTP-level tests for authentication, role guards and error formatting."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.api.v1.endpoints import health
from app.config import settings
from app.main import create_app

API = settings.api_v1_prefix


class TestAuthentication:
    """Tests for bearer token handling."""

    async def test_missing_token(self, client: AsyncClient):
        response = await client.get(f"{API}/auth/me")

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "UnauthorizedException"
        assert body["message"] == "Missing bearer token"

    async def test_garbage_token(self, client: AsyncClient):
        response = await client.get(f"{API}/chats", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    async def test_logout_is_acknowledged(self, client: AsyncClient, guest_headers):
        response = await client.post(f"{API}/auth/logout", headers=guest_headers)

        assert response.status_code == 200
        assert response.json() == {"ok": True, "message": "Logged out"}


class TestRoleGuards:
    """Tests for capability checks on protected routes."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/admin/providers"),
            ("post", f"/admin/providers/{uuid4()}/approve"),
            ("post", f"/admin/blacklist/{uuid4()}/verify"),
        ],
    )
    async def test_guest_cannot_moderate(
        self, client: AsyncClient, guest_headers, mock_db: AsyncMock, method, path
    ):
        response = await client.request(method.upper(), f"{API}{path}", headers=guest_headers)

        assert response.status_code == 403
        assert response.json()["message"] == "Admin only"
        mock_db.execute.assert_not_called()

    async def test_provider_cannot_moderate(self, client: AsyncClient, provider_headers):
        response = await client.get(f"{API}/admin/providers", headers=provider_headers)

        assert response.status_code == 403

    @pytest.mark.parametrize(
        "method,path",
        [("get", "/providers/me"), ("get", "/providers/me/media"), ("patch", "/providers/me")],
    )
    async def test_guest_cannot_manage_profile(
        self, client: AsyncClient, guest_headers, method, path
    ):
        response = await client.request(
            method.upper(), f"{API}{path}", headers=guest_headers, json={}
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Providers only"

    async def test_guest_cannot_post_to_feed(self, client: AsyncClient, guest_headers):
        response = await client.post(
            f"{API}/feeds", headers=guest_headers, json={"content": "hello"}
        )

        assert response.status_code == 403

    async def test_provider_cannot_start_chat(
        self, client: AsyncClient, provider_headers, mock_db: AsyncMock
    ):
        response = await client.post(
            f"{API}/chats", headers=provider_headers, json={"providerUserId": str(uuid4())}
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Only clients can start a new chat"
        mock_db.execute.assert_not_called()


class TestErrorFormat:
    """Tests for the shared error envelope."""

    async def test_validation_error_lists_fields(self, client: AsyncClient):
        response = await client.post(
            f"{API}/auth/register-guest",
            json={"email": "not-an-email", "password": "123", "displayName": "G"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "ValidationError"
        fields = {detail["field"] for detail in body["details"]}
        assert {"email", "password"} <= fields
        assert all(detail["message"] for detail in body["details"])

    async def test_custom_validator_message_is_clean(
        self, client: AsyncClient, provider_headers
    ):
        response = await client.post(
            f"{API}/blacklist", headers=provider_headers, json={"notes": "no details"}
        )

        assert response.status_code == 400
        messages = [detail["message"] for detail in response.json()["details"]]
        assert "Provide at least phone number or name" in messages

    async def test_malformed_uuid(self, client: AsyncClient, guest_headers):
        response = await client.post(f"{API}/favorites/not-a-uuid", headers=guest_headers)

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "provider_id"

    async def test_unknown_status_filter(self, client: AsyncClient, admin_headers):
        response = await client.get(f"{API}/admin/providers?status=bogus", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid status"

    async def test_not_found_envelope(
        self, client: AsyncClient, admin_headers, mock_db: AsyncMock, make_result
    ):
        mock_db.execute.return_value = make_result()

        response = await client.post(
            f"{API}/admin/providers/{uuid4()}/approve", headers=admin_headers
        )

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "NotFoundException"
        assert body["message"] == "Provider not found"
        assert body["path"].endswith("/approve")
        mock_db.rollback.assert_awaited_once()


async def test_admin_approves_with_note(
    client: AsyncClient, admin_headers, mock_db: AsyncMock, make_result
):
    provider_id = uuid4()
    mock_db.execute.side_effect = [
        make_result([{"id": provider_id, "verification_status": "APPROVED"}]),
        make_result(),
    ]

    response = await client.post(
        f"{API}/admin/providers/{provider_id}/approve",
        headers=admin_headers,
        json={"note": "ID checked"},
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True, "providerId": str(provider_id), "status": "APPROVED"}
    audit_params = mock_db.execute.await_args_list[1].args[0].compile().params
    assert audit_params["action"] == "PROVIDER_APPROVED"
    assert audit_params["meta"] == {"note": "ID checked"}


async def test_favorite_unknown_provider(
    client: AsyncClient, guest_headers, mock_db: AsyncMock, make_result
):
    mock_db.execute.return_value = make_result(scalar=None)

    response = await client.post(f"{API}/favorites/{uuid4()}", headers=guest_headers)

    assert response.status_code == 404


async def test_public_provider_listing_needs_no_token(
    client: AsyncClient, mock_db: AsyncMock, make_result
):
    mock_db.execute.return_value = make_result([])

    response = await client.get(f"{API}/providers?limit=500&page=0")

    assert response.status_code == 200
    assert response.json() == {"page": 1, "limit": 50, "count": 0, "items": []}


class TestHealth:
    """Tests for health endpoints."""

    async def test_health(self, client: AsyncClient):
        response = await client.get(f"{API}/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == settings.app_name

    async def test_ping(self, client: AsyncClient):
        response = await client.get(f"{API}/ping")

        assert response.json() == {"message": "pong"}

    async def test_redis_outage_ignored_for_memory_limiter(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(health, "check_database_connection", AsyncMock(return_value=True))
        monkeypatch.setattr(health, "check_redis_connection", AsyncMock(return_value=False))
        monkeypatch.setattr(settings, "rate_limit_backend", "memory")

        body = (await client.get(f"{API}/health/detailed")).json()

        assert body["status"] == "healthy"
        assert body["redis"] == "unhealthy"
        assert body["rateLimitBackend"] == "memory"

    async def test_redis_outage_degrades_redis_limiter(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(health, "check_database_connection", AsyncMock(return_value=True))
        monkeypatch.setattr(health, "check_redis_connection", AsyncMock(return_value=False))
        monkeypatch.setattr(settings, "rate_limit_backend", "redis")

        body = (await client.get(f"{API}/health/detailed")).json()

        assert body["status"] == "degraded"

    async def test_root(self, client: AsyncClient):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"


async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get(f"{API}/ping", headers={"X-Request-ID": "trace-123"})

    assert response.headers["X-Request-ID"] == "trace-123"


def test_each_app_gets_its_own_rate_limiter():
    assert create_app().state.rate_limiter is not create_app().state.rate_limiter
