"""
OneSim Backend: Application Wiring Tests
========================================

What:  Health check, error body shape, request IDs, access logging and
       lifespan services.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from onesim.middleware.request_id import resolve_request_id
from onesim.services.broadcaster import NotificationBroadcaster
from onesim.services.file_relay import FileRelay
from onesim.services.password_hasher import PasswordHasher


@pytest.fixture
def crash_client(app):
    """App with a route that raises, served without re-raising in the test."""
    async def explode():
        raise RuntimeError("boom")

    app.add_api_route("/explode", explode)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


class TestHealth:

    def test_healthy(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["connected_clients"] == 0
        assert body["version"] == "1.0.0"


class TestLifespan:

    def test_services_on_app_state(self, app, client, app_settings):
        assert isinstance(app.state.broadcaster, NotificationBroadcaster)
        assert isinstance(app.state.file_relay, FileRelay)
        assert isinstance(app.state.password_hasher, PasswordHasher)
        assert app.state.password_hasher.rounds == app_settings.bcrypt_rounds
        assert app.state.file_relay.target_url == app_settings.comparison_service_url


class TestErrorBodies:

    def test_application_error_shape(self, client):
        response = client.get("/api/student-assignments/nobody")

        assert response.status_code == 404
        body = response.json()
        assert set(body) >= {"error", "code", "request_id"}
        assert body["code"] == "not_found"
        assert body["request_id"] == response.headers["X-Request-ID"]

    def test_malformed_json_is_400(self, client):
        response = client.post(
            "/api/signup",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    def test_unknown_route(self, client):
        response = client.get("/api/does-not-exist")
        assert response.status_code == 404
        assert response.json()["code"] == "http_error"

    def test_client_request_id_propagated(self, client):
        response = client.get("/api/students", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"

    def test_unsafe_client_request_id_replaced(self, client):
        response = client.get(
            "/api/students",
            headers={"X-Request-ID": "abc def [forged] GET /admin 200"},
        )
        rid = response.headers["X-Request-ID"]
        assert rid != "abc def [forged] GET /admin 200"
        assert len(rid) == 8


class TestRequestId:

    def test_token_kept(self):
        assert resolve_request_id("trace-123.a_b") == "trace-123.a_b"

    def test_missing_generated(self):
        assert len(resolve_request_id(None)) == 8
        assert len(resolve_request_id("")) == 8

    def test_too_long_replaced(self):
        assert resolve_request_id("x" * 65) != "x" * 65


class TestAccessLog:

    def test_request_logged_with_status(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="onesim.access"):
            client.get("/api/does-not-exist", headers={"X-Request-ID": "log-1"})

        records = [r for r in caplog.records if r.name == "onesim.access"]
        assert len(records) == 1
        assert records[0].levelno == logging.WARNING
        assert records[0].status == 404
        assert records[0].path == "/api/does-not-exist"
        assert records[0].request_id == "log-1"

    def test_health_not_logged(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="onesim.access"):
            client.get("/health")

        assert [r for r in caplog.records if r.name == "onesim.access"] == []

    def test_unhandled_error_logged_as_500(self, crash_client, caplog):
        with caplog.at_level(logging.INFO, logger="onesim.access"):
            response = crash_client.get("/explode")

        assert response.status_code == 500
        records = [r for r in caplog.records if r.name == "onesim.access"]
        assert [r.status for r in records] == [500]
        assert records[0].levelno == logging.ERROR
