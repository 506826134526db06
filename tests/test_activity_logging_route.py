# =============================================================================
# tests/test_activity_logging_route.py - Request Activity Logging Tests
# =============================================================================
# Tests for ActivityLoggingRoute:
# - Exactly one record per handled request, success or failure
# - The record carries the status code the client actually received
# - Failed requests carry the error in the elapsed description
# =============================================================================

import json
import time
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.datastructures import QueryParams
from starlette.requests import ClientDisconnect

from app.activity_logging import format_elapsed, query_dict
from core.services.user_service import UserService


async def settle(app):
    """Wait until every scheduled sink delivery has run."""
    await app.state.activity_log_dispatcher.drain()


class TestFormatElapsed:
    def test_success(self):
        elapsed = format_elapsed(time.perf_counter())

        assert elapsed.startswith("After... ")
        assert elapsed.endswith("ms")
        assert " -" not in elapsed

    def test_error_suffix(self):
        elapsed = format_elapsed(time.perf_counter(), ValueError("boom"))

        assert elapsed.endswith(" -ValueError: boom")


class TestSuccessfulRequests:
    """Requests that return normally."""

    @pytest.mark.anyio
    async def test_one_record_per_request(self, app, client, sink, sample_user):
        response = await client.post("/api/users", json=sample_user)
        await settle(app)

        assert response.status_code == 201
        assert len(sink.records) == 1

        record = sink.records[0]
        assert record.status_code == 201
        assert record.failed is False
        assert record.http_method == "POST"
        assert record.request_url == "/api/users"
        assert record.controller_name == "users"
        assert record.handler_name == "create_user"
        assert record.client_ip == "127.0.0.1"
        assert json.loads(record.request_body) == sample_user
        assert record.request_params == "{}"
        assert record.request_query == "{}"

    @pytest.mark.anyio
    async def test_query_and_headers_recorded(self, app, client, sink):
        response = await client.get(
            "/api/users",
            params={"page": "2"},
            headers={"X-Consumer-ID": "mobile-app", "User-Agent": "tests/1.0"},
        )
        await settle(app)

        assert response.status_code == 200
        record = sink.records[0]
        assert json.loads(record.request_query) == {"page": "2"}
        assert record.request_body == '""'
        assert record.correlation_consumer_id == "mobile-app"
        assert record.user_agent == "tests/1.0"
        assert record.handler_name == "list_users"

    @pytest.mark.anyio
    async def test_health_routes_are_logged(self, app, client, sink):
        await client.get("/api/health/live")
        await settle(app)

        assert [(r.controller_name, r.handler_name) for r in sink.records] == [
            ("health", "liveness_check")
        ]

    @pytest.mark.anyio
    async def test_every_sink_receives_the_record(self, app, client, sink):
        from tests.conftest import RecordingSink

        second = RecordingSink()
        app.state.activity_log_dispatcher.register(second)

        await client.get("/api/users")
        await settle(app)

        assert sink.records == second.records
        assert len(second.records) == 1


class TestFailedRequests:
    """Requests whose handler raised."""

    @pytest.mark.anyio
    async def test_conflict_recorded_with_409(self, app, client, sink, sample_user):
        await client.post("/api/users", json=sample_user)
        response = await client.post("/api/users", json=sample_user)
        await settle(app)

        assert response.status_code == 409
        assert len(sink.records) == 2

        record = sink.records[1]
        assert record.status_code == 409
        assert record.failed is True
        assert record.elapsed.endswith(" -EmailAlreadyExistsError: Email already exists")

    @pytest.mark.anyio
    async def test_validation_error_recorded_with_422(self, app, client, sink):
        response = await client.post("/api/users", json={"name": "Ann", "email": "bad", "age": 30})
        await settle(app)

        assert response.status_code == 422
        assert len(sink.records) == 1
        assert sink.records[0].status_code == 422
        assert " -RequestValidationError" in sink.records[0].elapsed

    @pytest.mark.anyio
    async def test_unexpected_error_recorded_with_500(self, app, sink):
        transport = ASGITransport(app=app, raise_app_exceptions=False)

        with patch.object(UserService, "list_users", side_effect=RuntimeError("boom")):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/api/users")
        await settle(app)

        assert response.status_code == 500
        assert response.json() == {"detail": "An unexpected error occurred", "code": "INTERNAL_ERROR"}
        assert len(sink.records) == 1
        assert sink.records[0].status_code == 500
        assert sink.records[0].elapsed.endswith(" -RuntimeError: boom")

    @pytest.mark.anyio
    async def test_unmatched_route_not_logged(self, app, client, sink):
        response = await client.get("/api/nowhere")
        await settle(app)

        assert response.status_code == 404
        assert sink.records == []


class TestPublisherFailures:
    @pytest.mark.anyio
    async def test_failing_sink_does_not_change_response(self, app, client, sample_user):
        class FailingSink:
            def handle(self, record):
                raise RuntimeError("sink down")

        app.state.activity_log_dispatcher.register(FailingSink())

        response = await client.post("/api/users", json=sample_user)
        await settle(app)

        assert response.status_code == 201
        assert response.json()["result"]["email"] == "ann@x.com"

    @pytest.mark.anyio
    async def test_missing_publisher_still_answers(self, app, client):
        app.state.activity_log_publisher = None

        response = await client.get("/api/users")

        assert response.status_code == 200


class TestQueryDict:
    """Repeated query keys keep every value."""

    def test_repeated_keys_become_lists(self):
        params = QueryParams("tag=a&tag=b&page=2")

        assert query_dict(params) == {"tag": ["a", "b"], "page": "2"}

    def test_empty(self):
        assert query_dict(QueryParams("")) == {}

    @pytest.mark.anyio
    async def test_repeated_keys_recorded(self, app, client, sink):
        await client.get("/api/users?tag=a&tag=b&tag=c")
        await settle(app)

        assert json.loads(sink.records[0].request_query) == {"tag": ["a", "b", "c"]}


class TestBodyReadFailures:
    @pytest.mark.anyio
    async def test_client_disconnect_still_recorded(self, app, sink, sample_user):
        transport = ASGITransport(app=app, raise_app_exceptions=False)

        with patch("app.activity_logging.read_body", side_effect=ClientDisconnect()):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await client.post("/api/users", json=sample_user)
        await settle(app)

        assert len(sink.records) == 1
        record = sink.records[0]
        assert record.failed is True
        assert " -ClientDisconnect" in record.elapsed
        assert record.request_body == '""'
