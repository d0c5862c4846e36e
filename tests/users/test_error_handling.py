"""
Error boundary: store failures become structured responses
"""

import logging

import httpx
import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from app import create_app
from services.user_store import UserStore
from utils.error_handling import ErrorHandlingConfig
from fakes import FailingCollection


def _client_for(app):
    # Failure responses are asserted on, not exceptions re-raised by the transport
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    return httpx.AsyncClient(transport=transport, base_url="http://testserver")


def _app_with_collection(collection):
    app = create_app()
    app.state.user_store = UserStore(collection)
    return app


class TestStoreFailures:

    @pytest.mark.asyncio
    async def test_no_store_handle_is_503(self):
        app = create_app()
        app.state.user_store = None

        async with _client_for(app) as client:
            response = await client.get("/users")

        assert response.status_code == 503
        assert response.json()["error"] == "Service Unavailable"

    @pytest.mark.asyncio
    async def test_connection_loss_is_503(self):
        app = _app_with_collection(FailingCollection(ServerSelectionTimeoutError("no servers")))

        async with _client_for(app) as client:
            response = await client.post("/users", json={"name": "Ann"})

        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_other_driver_error_is_500(self):
        app = _app_with_collection(FailingCollection(OperationFailure("boom", code=2)))

        async with _client_for(app) as client:
            response = await client.get("/users/active")

        assert response.status_code == 500
        body = response.json()
        assert body["message"] == "Record store operation failed"
        assert "boom" not in body["message"]

    @pytest.mark.asyncio
    async def test_unexpected_error_is_500(self):
        app = _app_with_collection(FailingCollection(RuntimeError("surprise")))

        async with _client_for(app) as client:
            response = await client.delete("/users/65a1b2c3d4e5f6a7b8c9d0e1")

        assert response.status_code == 500
        assert response.json()["message"] == "An unexpected error occurred"
        assert response.json()["trace_id"] == response.headers["X-Trace-ID"]

    @pytest.mark.asyncio
    async def test_failure_is_logged_with_trace_id(self, caplog):
        app = _app_with_collection(FailingCollection(OperationFailure("boom", code=2)))

        with caplog.at_level(logging.ERROR, logger="utils.error_handling"):
            async with _client_for(app) as client:
                response = await client.get("/users")

        trace_id = response.json()["trace_id"]
        assert any(trace_id in record.getMessage() for record in caplog.records)


class TestRouting:

    @pytest.mark.asyncio
    async def test_unknown_path_has_structured_body(self, client):
        response = await client.get("/nope")

        assert response.status_code == 404
        assert response.json()["error"] == "HTTP 404"

    @pytest.mark.asyncio
    async def test_wrong_method_keeps_allow_header(self, client):
        response = await client.patch("/users")

        assert response.status_code == 405
        assert "allow" in response.headers


class TestSanitizeData:

    def test_redacts_sensitive_keys(self):
        data = {"name": "Ann", "password": "x", "nested": {"api_key": "y"}}

        assert ErrorHandlingConfig.sanitize_data(data) == {
            "name": "Ann",
            "password": "***REDACTED***",
            "nested": {"api_key": "***REDACTED***"},
        }

    def test_truncates_long_strings(self):
        long_text = "a" * (ErrorHandlingConfig.MAX_BODY_LOG_SIZE + 10)

        sanitized = ErrorHandlingConfig.sanitize_data(long_text)

        assert sanitized.endswith("...[TRUNCATED]")
        assert len(sanitized) == ErrorHandlingConfig.MAX_BODY_LOG_SIZE + len("...[TRUNCATED]")
