"""Tests for the error envelope and ErrorHandlerMiddleware."""

import logging

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from opsdesk.platform.errors import (
    AuthenticationError,
    ConfigurationError,
    ErrorHandlerMiddleware,
    NotFoundError,
    PermissionDeniedError,
    UpstreamError,
    ValidationError,
)


class TestErrorTypes:

    @pytest.mark.parametrize("error,status_code,code", [
        (ValidationError("bad"), 400, "VALIDATION_ERROR"),
        (AuthenticationError(), 401, "AUTHENTICATION_ERROR"),
        (PermissionDeniedError("CMO only"), 403, "PERMISSION_DENIED"),
        (NotFoundError("Summary", message="No cached summary yet"), 404, "NOT_FOUND"),
        (UpstreamError("Failed"), 500, "UPSTREAM_ERROR"),
        (ConfigurationError("CRON_SECRET"), 500, "CONFIGURATION_ERROR"),
    ])
    def test_status_and_code(self, error, status_code, code):
        assert error.status_code == status_code
        assert error.to_dict()["error"]["code"] == code

    def test_not_found_message_with_identifier(self):
        assert NotFoundError("Notification", "n1").message == "Notification with id 'n1' not found"


class TestErrorHandlerMiddleware:

    @pytest.fixture
    def client(self):
        app = FastAPI()
        app.add_middleware(ErrorHandlerMiddleware)

        @app.get("/ok")
        async def ok():
            return {"status": "ok"}

        @app.get("/app-error")
        async def app_error():
            raise ValidationError("Question is required")

        @app.get("/http-error")
        async def http_error():
            raise HTTPException(status_code=418, detail="teapot")

        @app.get("/crash")
        async def crash():
            raise RuntimeError("secret stack detail")

        return TestClient(app, raise_server_exceptions=False)

    def test_success_has_correlation_id(self, client):
        response = client.get("/ok")

        assert response.status_code == 200
        assert response.headers["X-Correlation-ID"]

    def test_incoming_correlation_id_is_propagated(self, client):
        response = client.get("/ok", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_app_error_envelope(self, client):
        response = client.get("/app-error")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Question is required"
        assert "X-Correlation-ID" in response.headers

    def test_http_exception_status_kept(self, client):
        assert client.get("/http-error").status_code == 418

    def test_unexpected_error_hides_details(self, client):
        response = client.get("/crash")

        assert response.status_code == 500
        assert "secret stack detail" not in response.text

    def test_unexpected_error_is_logged_with_correlation_id(self, client, caplog):
        with caplog.at_level(logging.ERROR, logger="opsdesk.platform.errors"):
            client.get("/crash", headers={"X-Correlation-ID": "corr-1"})

        record = next(r for r in caplog.records if r.getMessage() == "http.unhandled_exception")
        assert record.correlation_id == "corr-1"
        assert record.error_type == "RuntimeError"
        assert record.exc_info is not None

    def test_app_error_is_logged_as_warning(self, client, caplog):
        with caplog.at_level(logging.WARNING, logger="opsdesk.platform.errors"):
            client.get("/app-error")

        record = next(r for r in caplog.records if r.getMessage() == "http.app_error")
        assert record.levelno == logging.WARNING
        assert record.error_code == "VALIDATION_ERROR"
