"""
Tests for error handling middleware and exception handlers.

Tests:
- Sensitive data sanitization
- Domain error to status code mapping
- Error envelope shape
- Store failures (integrity, unavailable)
"""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, OperationalError

from core.exceptions import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    RosterError,
    StaleStateError,
)
from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    classify_exception,
    domain_error_status,
    error_envelope,
    get_safe_error_details,
    sanitize_error_message,
    setup_error_handlers,
)


class TestSensitiveDataSanitization:
    """Sanitization of messages before they reach a response."""

    @pytest.mark.parametrize("sensitive_input", [
        'password="secret123"',
        "user_password: hunter2",
        'token="abc123xyz"',
        "refresh_token=xyz789",
        "token=abc123",
        'client_secret:"abc123"',
        "authorization: Bearer",
    ])
    def test_sensitive_values_redacted(self, sensitive_input):
        assert "[REDACTED]" in sanitize_error_message(sensitive_input)

    def test_credential_value_removed(self):
        sanitized = sanitize_error_message("login failed, token=abc123")

        assert "abc123" not in sanitized
        assert sanitized.startswith("login failed")

    def test_database_url_credentials_redacted(self):
        message = "could not connect to postgresql+asyncpg://roster:pw123@db:5432/roster"
        sanitized = sanitize_error_message(message)

        assert "pw123" not in sanitized
        assert "roster:pw123" not in sanitized
        assert "db:5432/roster" in sanitized

    @pytest.mark.parametrize("safe_input", [
        "Job 12 not found",
        "This job is already full",
        "Invitation is no longer valid",
        "Token expired",
        "Token is invalid",
        "Password must not be empty",
    ])
    def test_domain_messages_untouched(self, safe_input):
        assert sanitize_error_message(safe_input) == safe_input

    def test_non_string_input(self):
        assert sanitize_error_message(404) == "404"

    def test_empty_string(self):
        assert sanitize_error_message("") == ""


class TestSafeErrorDetails:
    """get_safe_error_details output."""

    def test_basic_details(self):
        details = get_safe_error_details(ValueError("bad month"))

        assert details == {"type": "ValueError", "message": "bad month"}

    def test_traceback_only_when_requested(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError as exc:
            details = get_safe_error_details(exc, include_details=True)

        assert "traceback" in details
        assert "RuntimeError" in details["traceback"]

    def test_message_sanitized(self):
        details = get_safe_error_details(Exception('token="abc"'))
        assert "abc" not in details["message"]


class TestDomainErrorStatus:
    """Mapping of the roster error taxonomy to HTTP status codes."""

    @pytest.mark.parametrize("error,expected", [
        (InvalidInputError("x"), 400),
        (NotFoundError("x"), 404),
        (PermissionDeniedError("x"), 403),
        (ConflictError("x"), 409),
        (StaleStateError("x"), 409),
    ])
    def test_status_codes(self, error, expected):
        assert domain_error_status(error) == expected

    def test_subclass_inherits_status(self):
        class SlotTakenError(ConflictError):
            pass

        assert domain_error_status(SlotTakenError("x")) == 409

    def test_unknown_domain_error_is_bad_request(self):
        assert domain_error_status(RosterError("x")) == 400

    def test_stale_state_has_distinct_code(self):
        assert StaleStateError("x").code == "NO_LONGER_VALID"
        assert ConflictError("x").code == "CONFLICT"


class TestErrorEnvelope:
    def test_shape(self):
        body = error_envelope("NOT_FOUND", "Job 1 not found", "/api/v1/jobs/1", "GET")

        assert body == {
            "error": {
                "code": "NOT_FOUND",
                "message": "Job 1 not found",
                "path": "/api/v1/jobs/1",
                "method": "GET",
            }
        }

    def test_details_included_when_given(self):
        body = error_envelope("VALIDATION_ERROR", "bad", "/", "POST", [{"field": "x"}])
        assert body["error"]["details"] == [{"field": "x"}]


class _Payload(BaseModel):
    slots_total: int


class TestExceptionHandlers:
    """Handlers registered by setup_error_handlers plus the ASGI middleware."""

    @pytest.fixture
    def client(self):
        app = FastAPI()
        setup_error_handlers(app)
        app.add_middleware(ErrorHandlingMiddleware, debug=False)

        @app.get("/ok")
        async def ok():
            return {"status": "ok"}

        @app.get("/missing")
        async def missing():
            raise NotFoundError("Job 7 not found")

        @app.get("/stale")
        async def stale():
            raise StaleStateError("Invitation is no longer valid")

        @app.get("/forbidden")
        async def forbidden():
            raise PermissionDeniedError("Admin access required")

        @app.get("/http")
        async def http_error():
            raise HTTPException(
                status_code=401,
                detail="Token expired",
                headers={"WWW-Authenticate": "Bearer"},
            )

        @app.post("/validate")
        async def validate(payload: _Payload):
            return payload

        @app.get("/integrity")
        async def integrity():
            raise IntegrityError("INSERT", {}, Exception("duplicate key"))

        @app.get("/unavailable")
        async def unavailable():
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        @app.get("/crash")
        async def crash():
            raise RuntimeError("password=hunter2")

        return TestClient(app, raise_server_exceptions=False)

    def test_successful_request(self, client):
        response = client.get("/ok")
        assert response.status_code == 200

    def test_not_found(self, client):
        response = client.get("/missing")

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "NOT_FOUND"
        assert error["message"] == "Job 7 not found"
        assert error["path"] == "/missing"
        assert error["method"] == "GET"

    def test_stale_state(self, client):
        response = client.get("/stale")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "NO_LONGER_VALID"

    def test_permission_denied(self, client):
        response = client.get("/forbidden")

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    def test_http_exception_keeps_headers(self, client):
        response = client.get("/http")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["error"]["message"] == "Token expired"

    def test_validation_error(self, client):
        response = client.post("/validate", json={"slots_total": "many"})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "body.slots_total"

    def test_integrity_error_is_conflict(self, client):
        response = client.get("/integrity")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    def test_operational_error_is_unavailable(self, client):
        response = client.get("/unavailable")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "DATABASE_UNAVAILABLE"

    def test_unexpected_error_hides_details(self, client):
        response = client.get("/crash")

        assert response.status_code == 500
        assert "hunter2" not in response.text

    def test_request_id_echoed_for_domain_error(self, client):
        response = client.get("/missing", headers={"X-Request-ID": "req-42"})
        assert response.json()["error"]["request_id"] == "req-42"

    def test_request_id_echoed_for_crash(self, client):
        response = client.get("/crash", headers={"X-Request-ID": "req-43"})
        assert response.json()["error"]["request_id"] == "req-43"


class TestClassifyException:
    def test_debug_attaches_traceback_for_store_errors(self):
        try:
            raise IntegrityError("INSERT", {}, Exception("duplicate key"))
        except IntegrityError as exc:
            status_code, code, message, details = classify_exception(exc, debug=True)

        assert (status_code, code) == (409, "CONFLICT")
        assert "duplicate key" not in message
        assert details["type"] == "IntegrityError"

    def test_domain_errors_never_carry_details(self):
        assert classify_exception(ConflictError("full"), debug=True) == (409, "CONFLICT", "full", None)
