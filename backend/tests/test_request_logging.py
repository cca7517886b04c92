"""
Tests for the request logging middleware and the health endpoints.
"""
import logging
from unittest.mock import patch

import pytest

from app.middleware.request_logging import extract_session_id


class TestExtractSessionId:
    """Tests for extract_session_id."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/v1/test/session/abc123", "abc123"),
            ("/v1/test/session/abc123/answer", "abc123"),
            ("/v1/test/start", None),
            ("/v1/reports/students/s-1/history", None),
        ],
    )
    def test_paths(self, path, expected):
        assert extract_session_id(path) == expected


class TestRequestLoggingMiddleware:
    """Tests for RequestLoggingMiddleware."""

    def test_generates_request_id(self, client):
        response = client.get("/v1/ping")

        assert response.status_code == 200
        assert response.headers["X-Request-ID"]

    def test_echoes_request_id(self, client):
        response = client.get("/v1/ping", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    def test_session_requests_log_session_id(self, client):
        with patch("app.middleware.request_logging.logger") as mock_logger:
            client.get("/v1/test/session/s-404")

        extras = [call.kwargs["extra"] for call in mock_logger.log.call_args_list]
        assert extras[0]["session_id"] == "s-404"
        warning_extra = mock_logger.warning.call_args.kwargs["extra"]
        assert warning_extra["status_code"] == 404
        assert warning_extra["session_id"] == "s-404"

    def test_health_checks_logged_at_debug(self, client):
        with patch("app.middleware.request_logging.logger") as mock_logger:
            client.get("/v1/health")

        levels = {call.args[0] for call in mock_logger.log.call_args_list}
        assert levels == {logging.DEBUG}


class TestHealthEndpoints:
    """Tests for /v1/health and /v1/ping."""

    def test_health_reports_active_sessions(self, client):
        assert client.get("/v1/health").json()["active_sessions"] == 0

        client.post(
            "/v1/test/start", json={"student_id": "student-1", "test_id": "test-1"}
        )
        data = client.get("/v1/health").json()

        assert data["status"] == "healthy"
        assert data["active_sessions"] == 1

    def test_ping(self, client):
        assert client.get("/v1/ping").json() == {"message": "pong"}

    def test_root(self, client):
        assert "docs" in client.get("/").json()
