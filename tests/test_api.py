# =============================================================================
# tests/test_api.py - HTTP API Tests
# =============================================================================
# Integration tests through the full ASGI stack:
# - /api/users registration and listing (envelopes, 201/409/422)
# - Health, readiness and liveness endpoints
# - Security headers and gzip compression
# - Per-client rate limiting (429)
# =============================================================================

from unittest.mock import MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from core.models.job import WELCOME_USER_JOB
from lib.database import DatabaseConnectionError


# =============================================================================
# Users
# =============================================================================

class TestCreateUserEndpoint:
    """Tests for POST /api/users."""

    @pytest.mark.anyio
    async def test_created(self, client, job_queue, sample_user):
        response = await client.post("/api/users", json=sample_user)

        assert response.status_code == 201
        body = response.json()
        assert body["status_code"] == 201
        assert body["status"] == 1
        assert body["message"] == "User created successfully"
        assert body["result"]["id"] == 1
        assert body["result"]["email"] == "ann@x.com"

        job_queue.enqueue.assert_called_once()
        assert job_queue.enqueue.call_args.args[0] == WELCOME_USER_JOB

    @pytest.mark.anyio
    async def test_duplicate_email(self, client, job_queue, sample_user):
        await client.post("/api/users", json=sample_user)
        response = await client.post("/api/users", json=sample_user)

        assert response.status_code == 409
        body = response.json()
        assert body["detail"] == "Email already exists"
        assert body["code"] == "EMAIL_ALREADY_EXISTS"
        assert "suggestion" in body
        assert job_queue.enqueue.call_count == 1

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "payload,field",
        [
            ({"name": "Ann", "email": "not-an-email", "age": 30}, "email"),
            ({"name": "Ann", "email": "ann@x.com", "age": -3}, "age"),
            ({"name": "Ann", "email": "ann@x.com"}, "age"),
            ({"name": "Ann", "email": "ann@x.com", "age": 30, "admin": True}, "admin"),
        ],
    )
    async def test_validation_errors(self, client, job_queue, payload, field):
        response = await client.post("/api/users", json=payload)

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert field in [error["field"] for error in body["errors"]]
        job_queue.enqueue.assert_not_called()

    @pytest.mark.anyio
    async def test_queue_failure_still_created(self, client, job_queue, sample_user):
        from lib.job_queue import QueueConnectionError

        job_queue.enqueue.side_effect = QueueConnectionError(WELCOME_USER_JOB, "refused")

        response = await client.post("/api/users", json=sample_user)

        assert response.status_code == 201

    @pytest.mark.anyio
    async def test_database_unreachable(self, client, sample_user):
        with patch(
            "core.services.user_repository.UserRepository.find_by_email",
            side_effect=DatabaseConnectionError("connection refused"),
        ):
            response = await client.post("/api/users", json=sample_user)

        assert response.status_code == 503
        assert response.json()["code"] == "SERVICE_UNAVAILABLE"


class TestListUsersEndpoints:
    """Tests for GET /api/users and GET /api/users/adults."""

    async def _register(self, client, users):
        for name, age in users:
            response = await client.post(
                "/api/users",
                json={"name": name, "email": f"{name.lower()}@x.com", "age": age},
            )
            assert response.status_code == 201

    @pytest.mark.anyio
    async def test_adults(self, client):
        await self._register(client, [("Zed", 17), ("Yan", 18), ("Bob", 19), ("Amy", 20)])

        response = await client.get("/api/users/adults")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Adult users fetched successfully"
        assert [user["name"] for user in body["result"]] == ["Amy", "Bob"]

    @pytest.mark.anyio
    async def test_adults_empty(self, client):
        response = await client.get("/api/users/adults")

        assert response.status_code == 200
        assert response.json()["result"] == []

    @pytest.mark.anyio
    async def test_all_users(self, client):
        await self._register(client, [("Zed", 17), ("Amy", 20)])

        response = await client.get("/api/users")

        assert response.status_code == 200
        assert [user["name"] for user in response.json()["result"]] == ["Zed", "Amy"]


# =============================================================================
# Health
# =============================================================================

class TestHealthEndpoints:
    """Tests for the health endpoints."""

    @pytest.mark.anyio
    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["health"] == "/api/health"

    @pytest.mark.anyio
    async def test_health_ok(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == "healthy"
        assert body["environment"] == "test"

    @pytest.mark.anyio
    async def test_health_database_down(self, client):
        with patch("app.routers.health.ping", side_effect=DatabaseConnectionError("refused")):
            response = await client.get("/api/health")

        assert response.status_code == 503
        assert response.json()["status"] == "error"
        assert response.json()["database"].startswith("unhealthy")

    @pytest.mark.anyio
    async def test_ready(self, client):
        redis_client = MagicMock()
        redis_client.__enter__.return_value = redis_client
        redis_client.__exit__.return_value = False
        with patch("app.routers.health.redis.from_url", return_value=redis_client):
            response = await client.get("/api/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"
        assert response.json()["checks"] == {"database": "healthy", "queue": "healthy"}
        redis_client.ping.assert_called_once()
        # The client is closed after every check
        redis_client.__exit__.assert_called_once()

    @pytest.mark.anyio
    async def test_ready_degraded(self, client):
        redis_client = MagicMock()
        redis_client.__enter__.return_value = redis_client
        redis_client.__exit__.return_value = False
        redis_client.ping.side_effect = ConnectionError("Connection refused")
        with patch("app.routers.health.redis.from_url", return_value=redis_client):
            response = await client.get("/api/health/ready")

        assert response.json()["status"] == "degraded"
        assert response.json()["checks"]["queue"].startswith("unhealthy")

    @pytest.mark.anyio
    async def test_live(self, client):
        response = await client.get("/api/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"


# =============================================================================
# Middleware
# =============================================================================

class TestMiddleware:
    """Security headers and compression."""

    @pytest.mark.anyio
    async def test_security_headers(self, client):
        response = await client.get("/api/health/live")

        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "SAMEORIGIN"
        assert response.headers["strict-transport-security"].startswith("max-age=")
        assert "content-security-policy" in response.headers
        assert "server" not in response.headers
        assert "x-powered-by" not in response.headers

    @pytest.mark.anyio
    async def test_error_responses_carry_headers(self, client, sample_user):
        await client.post("/api/users", json=sample_user)
        response = await client.post("/api/users", json=sample_user)

        assert response.status_code == 409
        assert response.headers["x-content-type-options"] == "nosniff"

    @pytest.mark.anyio
    async def test_large_responses_compressed(self, client):
        for index in range(20):
            await client.post(
                "/api/users",
                json={"name": f"User {index}", "email": f"user{index}@x.com", "age": 30},
            )

        response = await client.get("/api/users", headers={"Accept-Encoding": "gzip"})

        assert response.headers["content-encoding"] == "gzip"
        assert len(response.json()["result"]) == 20

    @pytest.mark.anyio
    async def test_small_responses_not_compressed(self, client):
        response = await client.get("/api/health/live", headers={"Accept-Encoding": "gzip"})

        assert "content-encoding" not in response.headers

    @pytest.mark.anyio
    async def test_cors_preflight(self, client):
        response = await client.options(
            "/api/users",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    @pytest.mark.anyio
    async def test_api_version_header_accepted(self, client):
        """Routes are version-neutral: any X-API-Version is served."""
        for version in ("1", "2"):
            response = await client.get("/api/users", headers={"X-API-Version": version})

            assert response.status_code == 200


# =============================================================================
# Rate limiting
# =============================================================================

class TestRateLimiting:
    """Per-client request throttling."""

    def _app(self, settings, engine, job_queue, sink, **overrides):
        from app.main import create_app

        return create_app(
            settings.model_copy(update=overrides),
            engine=engine,
            job_queue=job_queue,
            log_sinks=[sink],
        )

    @pytest.mark.anyio
    async def test_limit_exceeded(self, settings, engine, job_queue, sink):
        app = self._app(settings, engine, job_queue, sink, RATE_LIMIT="2/minute")

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            statuses = [(await client.get("/api/health/live")).status_code for _ in range(2)]
            response = await client.get("/api/health/live")

        assert statuses == [200, 200]
        assert response.status_code == 429
        body = response.json()
        assert body["code"] == "RATE_LIMITED"
        assert body["detail"].startswith("Rate limit exceeded")
        assert response.headers["x-content-type-options"] == "nosniff"

    @pytest.mark.anyio
    async def test_throttled_requests_not_logged(self, settings, engine, job_queue, sink):
        app = self._app(settings, engine, job_queue, sink, RATE_LIMIT="1/minute")

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            await client.get("/api/users")
            response = await client.get("/api/users")
        await app.state.activity_log_dispatcher.drain()

        assert response.status_code == 429
        assert [record.status_code for record in sink.records] == [200]

    @pytest.mark.anyio
    async def test_disabled(self, settings, engine, job_queue, sink):
        app = self._app(
            settings, engine, job_queue, sink, RATE_LIMIT="1/minute", RATE_LIMIT_ENABLED=False
        )

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            statuses = [(await client.get("/api/health/live")).status_code for _ in range(3)]

        assert statuses == [200, 200, 200]

    @pytest.mark.anyio
    async def test_counters_are_per_app(self, settings, engine, job_queue, sink):
        first = self._app(settings, engine, job_queue, sink, RATE_LIMIT="1/minute")
        second = self._app(settings, engine, job_queue, sink, RATE_LIMIT="1/minute")

        for app in (first, second):
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                response = await client.get("/api/health/live")

            assert response.status_code == 200
