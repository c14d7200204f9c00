"""Unit tests for the HTTP logging middleware.

We assert structured log fields via `caplog` (not message strings) and verify:
- X-Request-ID is generated, propagated, or replaced when malformed
- Successful requests emit exactly one INFO log entry with metadata only
- Unhandled exceptions emit an ERROR log entry with a stack trace and return 500
"""

from __future__ import annotations

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.exception_handlers import register_exception_handlers
from app.core.middleware.http_logging import HttpLoggingMiddleware


def _make_app() -> FastAPI:
    """Create a minimal app for middleware unit tests."""
    app = FastAPI()
    app.add_middleware(HttpLoggingMiddleware)
    register_exception_handlers(app)

    @app.post("/api/query")
    async def query() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("boom")

    return app


def _get_http_log_records(caplog: pytest.LogCaptureFixture) -> list[logging.LogRecord]:
    return [r for r in caplog.records if r.name == "app.http"]


def test_successful_request_sets_request_id_and_logs_one_info(
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger="app.http")

    with TestClient(_make_app()) as client:
        res = client.post("/api/query?debug=secret-token", json={"prompt": "private words"})

    assert res.status_code == 200
    assert res.headers["x-request-id"]

    info_records = [r for r in _get_http_log_records(caplog) if r.levelno == logging.INFO]
    assert len(info_records) == 1

    record = info_records[0]
    assert record.__dict__["request_id"] == res.headers["x-request-id"]
    assert record.__dict__["http_method"] == "POST"
    # Route template only: no query string values.
    assert record.__dict__["request_path"] == "/api/query"
    assert record.__dict__["status_code"] == 200
    assert record.__dict__["duration_ms"] >= 0
    assert "private words" not in caplog.text


def test_propagates_valid_request_id(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="app.http")

    with TestClient(_make_app()) as client:
        res = client.post("/api/query", json={}, headers={"X-Request-ID": "req_abc-123"})

    assert res.headers["x-request-id"] == "req_abc-123"
    info_records = [r for r in _get_http_log_records(caplog) if r.levelno == logging.INFO]
    assert info_records[0].__dict__["request_id"] == "req_abc-123"


def test_replaces_malformed_request_id() -> None:
    with TestClient(_make_app()) as client:
        res = client.post("/api/query", json={}, headers={"X-Request-ID": "bad id with spaces!"})

    assert res.headers["x-request-id"] != "bad id with spaces!"
    assert len(res.headers["x-request-id"]) == 32


def test_unmatched_route_is_logged_with_fixed_label(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="app.http")

    with TestClient(_make_app()) as client:
        res = client.get("/wp-admin/secret.php")

    assert res.status_code == 404
    record = _get_http_log_records(caplog)[0]
    assert record.__dict__["request_path"] == "unmatched"


def test_unhandled_exception_returns_internal_error_and_logs_stack_trace(
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger="app.http")

    with TestClient(_make_app(), raise_server_exceptions=False) as client:
        res = client.get("/boom", headers={"X-Request-ID": "req_err_001"})

    assert res.status_code == 500
    assert res.json() == {"error": "Internal server error", "code": "INTERNAL_ERROR"}

    error_records = [r for r in _get_http_log_records(caplog) if r.levelno == logging.ERROR]
    assert len(error_records) == 1

    record = error_records[0]
    assert record.__dict__["request_id"] == "req_err_001"
    assert record.__dict__["http_method"] == "GET"
    assert record.__dict__["request_path"] == "/boom"
    assert record.__dict__["status_code"] == 500
    assert record.exc_info
